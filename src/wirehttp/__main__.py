"""Main entry point for running wirehttp as a module.

Usage:
    python -m wirehttp request <url>
    python -m wirehttp --help
"""

from wirehttp.cli import main

if __name__ == '__main__':
    main()
