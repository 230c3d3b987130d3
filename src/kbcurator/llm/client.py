"""Shared LLM client with a configurable primary provider and ordered fallback."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from anthropic import Anthropic
from openai import OpenAI
from openai.types.chat import ChatCompletionMessageParam

from kbcurator.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Order in which the remaining providers are tried after the primary one
FALLBACK_ORDER = ("anthropic", "ollama", "openai")


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding Markdown code fence (```json ... ```) if present."""
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = lines[1:]  # remove opening fence
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    return cleaned


def parse_json_response(raw: str) -> Any:
    """Parse a model reply as JSON, tolerating code fences."""
    return json.loads(strip_code_fences(raw))


class LLMClient:
    """LLM client that tries the configured provider first, then the others."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._anthropic_client: Anthropic | None = None
        self._ollama_client: OpenAI | None = None
        self._openai_client: OpenAI | None = None
        self._settings = settings or get_settings()
        self.model_name: str = self._settings.model_for(self._settings.llm_provider)

    @property
    def anthropic_client(self) -> Anthropic | None:
        """Lazy-load Anthropic client (None if no API key)."""
        if self._anthropic_client is None and self._settings.anthropic_api_key:
            self._anthropic_client = Anthropic(
                api_key=self._settings.anthropic_api_key,
                timeout=self._settings.llm_timeout_seconds,
            )
        return self._anthropic_client

    @property
    def ollama_client(self) -> OpenAI:
        """Lazy-load Ollama client."""
        if self._ollama_client is None:
            self._ollama_client = OpenAI(
                base_url=self._settings.ollama_base_url,
                api_key="ollama",
                timeout=self._settings.llm_timeout_seconds,
            )
        return self._ollama_client

    @property
    def openai_client(self) -> OpenAI | None:
        """Lazy-load OpenAI client (None if no API key)."""
        if self._openai_client is None and self._settings.openai_api_key:
            self._openai_client = OpenAI(
                api_key=self._settings.openai_api_key,
                timeout=self._settings.llm_timeout_seconds,
            )
        return self._openai_client

    def provider_order(self) -> list[str]:
        """Providers to try, primary first."""
        primary = self._settings.llm_provider
        if not self._settings.llm_fallback:
            return [primary]
        return [primary, *(p for p in FALLBACK_ORDER if p != primary)]

    def chat(self, system_prompt: str, user_prompt: str) -> str:
        """Send a single-turn chat completion and return the assistant's text."""
        return self.converse(system_prompt, [{"role": "user", "content": user_prompt}])

    def converse(self, system_prompt: str, messages: list[dict[str, str]]) -> str:
        """Send a multi-turn conversation of user/assistant messages.

        Returns the assistant's response text.

        Raises:
            RuntimeError: If every provider failed or none is configured.
        """
        failures: list[str] = []
        for provider in self.provider_order():
            model = self._settings.model_for(provider)
            start = time.perf_counter()
            try:
                if provider == "anthropic":
                    if self.anthropic_client is None:
                        logger.debug("Skipping Anthropic: no API key configured")
                        continue
                    logger.info("Trying Anthropic (%s)...", model)
                    content = self._call_anthropic(
                        self.anthropic_client, model, system_prompt, messages
                    )
                elif provider == "ollama":
                    logger.info("Trying Ollama (%s)...", model)
                    content = self._call_openai_compatible(
                        self.ollama_client, model, system_prompt, messages
                    )
                else:
                    if self.openai_client is None:
                        logger.debug("Skipping OpenAI: no API key configured")
                        continue
                    logger.info("Trying OpenAI (%s)...", model)
                    content = self._call_openai_compatible(
                        self.openai_client, model, system_prompt, messages
                    )
            except Exception as e:
                logger.warning("%s failed", provider, exc_info=True)
                failures.append(f"{provider}: {e}")
                continue

            latency_ms = (time.perf_counter() - start) * 1000
            logger.info("%s responded successfully in %.0fms", provider, latency_ms)
            self.model_name = model
            return content

        if not failures:
            raise RuntimeError("No LLM provider is configured")
        raise RuntimeError("All LLM providers failed (" + "; ".join(failures) + ")")

    def _call_anthropic(
        self,
        client: Anthropic,
        model: str,
        system_prompt: str,
        messages: list[dict[str, str]],
    ) -> str:
        response = client.messages.create(
            model=model,
            max_tokens=2000,
            system=system_prompt,
            messages=messages,  # type: ignore[arg-type]
        )
        return response.content[0].text  # type: ignore[union-attr]

    def _call_openai_compatible(
        self,
        client: OpenAI,
        model: str,
        system_prompt: str,
        messages: list[dict[str, str]],
    ) -> str:
        oai_messages: list[ChatCompletionMessageParam] = [
            {"role": "system", "content": system_prompt},
            *messages,  # type: ignore[list-item]
        ]
        response = client.chat.completions.create(
            model=model,
            messages=oai_messages,
            temperature=0.2,
            max_tokens=2000,
        )
        return response.choices[0].message.content or ""

    def chat_json(self, system_prompt: str, user_prompt: str) -> Any:
        """Send a chat completion and parse the response as JSON.

        The system prompt should instruct the model to return valid JSON.
        """
        return parse_json_response(self.chat(system_prompt, user_prompt))
