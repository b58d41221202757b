#!/usr/bin/env python3
"""
Incentives API Gift-Card Issuer

Run this script to issue gift-card claim codes.

Usage:
    python run.py                     # Use agcod.json or AGCOD_* variables
    python run.py -c custom.json      # Use custom config
    python run.py -n 3                # Issue three codes
    python run.py -v                  # Show redacted request headers
    python run.py -j trace.json       # Write a JSON trace of the exchanges
    python run.py --funds             # Show available funds
    python run.py --cancel REQ GCID   # Cancel a gift card
"""

import sys
from agcod.cli import main

if __name__ == "__main__":
    sys.exit(main())
