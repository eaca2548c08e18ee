#!/usr/bin/env python3
"""
Entry point for quobyte-volumes CLI tool.
"""

import sys

from quobyte_volumes.cli.cli import main

if __name__ == "__main__":
    sys.exit(main())
