#!/usr/bin/env python3
"""
Entry point for running as module: python -m digger
"""

from digger.app import main


if __name__ == "__main__":
    main()
