"""Package entry point for ``python -m morsefeed``.

WHY: Users run the tool as ``python -m morsefeed -i book.txt -m`` as well
as through the installed ``morsefeed`` console script.

HOW: Delegates to the CLI's main() and exits with its return code.
"""

import sys

from morsefeed.cli import main

if __name__ == "__main__":
    sys.exit(main())
