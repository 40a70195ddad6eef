"""
Module execution entry point.

Allows running with: python -m merkledrop_cli
"""

import sys
from merkledrop_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
