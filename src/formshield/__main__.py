"""CLI entrypoint for formshield."""

from __future__ import annotations

from formshield.cli import main

if __name__ == "__main__":
    main()
