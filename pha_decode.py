#!/usr/bin/env python3
"""Command-line interface for the Phantasma transaction decoder."""

from __future__ import annotations

from phadecode.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
