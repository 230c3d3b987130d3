"""kb-curator: file Markdown notes into folder categories with an LLM."""

__version__ = "0.1.0"
