"""Entry point for `python -m prismchat`.

Usage:
    python -m prismchat [options] [PROMPT...]
"""

from prismchat.cli import main

if __name__ == "__main__":
    main()
