#!/usr/bin/env python3
"""
Wrapper script for running from a checkout.
Entry point for the login diagnostics tool.
"""

import sys
from ad_diagnose.cli import main

if __name__ == "__main__":
    sys.exit(main())
