"""Package entry point for ``python -m progressive_stt``."""

from progressive_stt.cli import main

if __name__ == "__main__":
    main()
