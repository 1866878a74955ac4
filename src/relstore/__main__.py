"""
relstore CLI entry point.

Usage:
    python -m relstore upload ./file.bin --repo owner/repo
    python -m relstore download locator.json
"""

from relstore.cli import main

if __name__ == "__main__":
    main()
