import sys

from hdeps.cli import main

sys.exit(main() or 0)
