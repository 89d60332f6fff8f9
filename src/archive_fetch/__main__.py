"""Entry point for ``python -m archive_fetch``."""

import sys

from archive_fetch.cli import main

if __name__ == "__main__":
    sys.exit(main())
