#!/usr/bin/env python3
"""
markport - markdown import pipeline

Main entry point for running markport from a source checkout. Installed
copies provide the same interface through the ``markport`` console script.
"""

import sys

from markport.cli import main


if __name__ == "__main__":
    sys.exit(main())
