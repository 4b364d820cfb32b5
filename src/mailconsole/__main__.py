"""Allow ``python -m mailconsole``."""

import sys

from mailconsole.cli import main

if __name__ == "__main__":
    sys.exit(main())
