#!/usr/bin/env python3
"""
Quick launcher for the Clippy desktop assistant.

Usage:
    python desktop.py              # Start with config/config.yaml
    python desktop.py --debug      # Debug logging
    python desktop.py --help       # Show all options
"""

import sys

from clippy.desktop.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
