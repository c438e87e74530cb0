"""Entry point for ``python -m webvtt_captions``."""

from .cli import main

if __name__ == "__main__":
    main()
