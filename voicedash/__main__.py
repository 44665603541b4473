"""Module entrypoint for running voicedash as ``python -m voicedash``."""

from __future__ import annotations

from voicedash.cli import main


if __name__ == "__main__":
    main()
