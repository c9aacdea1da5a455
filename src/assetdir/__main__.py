"""
Asset directory CLI entry point.

Usage:
    python -m assetdir info releases/app.zip
    python -m assetdir upload ./big.iso iso/big.iso
"""

from assetdir.cli import main

if __name__ == "__main__":
    main()
