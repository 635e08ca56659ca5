#!/usr/bin/env python3
"""Tripjournal - trip journals with rich text and photo links.

Usage:
    python main.py trips
    python main.py add-trip NAME START [END]
    python main.py show TRIP_ID DAY
    python main.py attach TRIP_ID DAY START END PHOTO...

Dates are ISO formatted (YYYY-MM-DD). Run with --help for all commands.
"""

from tripjournal.__main__ import main


if __name__ == "__main__":
    main()
