#!/usr/bin/env python3
"""
bptile CLI - Entry point for the blueprint tiler.

This module allows running the tiler as:
    python -m blueprint_tiler compose unit.json --rows 2 --cols 4
    bptile compose unit.json --rows 2 --cols 4  (when installed via pip)
"""

from blueprint_tiler.cli import main

if __name__ == "__main__":
    main()
