"""
Main entry point for running the package as a module.

Usage:
    python -m assetgen convert --images-dir public/images
    python -m assetgen index --images-dir public/images
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
