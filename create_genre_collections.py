#!/usr/bin/env python3
"""
Create a collection for every movie genre and keep movies linked into them.

Usage:
    python create_genre_collections.py [run|schedule|pins|pin ID...|apply-pins] [--config PATH] [--debug]
"""

import sys

from genrarr.cli import main

if __name__ == "__main__":
    sys.exit(main())
