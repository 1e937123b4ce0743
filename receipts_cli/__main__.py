"""
Module execution entry point.

Allows running with: python -m receipts_cli
"""

import sys
from receipts_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
