#!/usr/bin/env python3
"""Run script for planbox."""

from planbox.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
