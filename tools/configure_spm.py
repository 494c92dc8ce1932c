#!/usr/bin/env python3
"""CLI wrapper for the Swift Package Manager setup (delegates to kfire_setup.cli)."""

from kfire_setup.cli import main


if __name__ == "__main__":
    main()
