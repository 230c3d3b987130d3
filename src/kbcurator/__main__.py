"""CLI entry point: python -m kbcurator"""

import sys

from kbcurator.cli import main

if __name__ == "__main__":
    sys.exit(main())
