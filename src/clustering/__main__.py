"""
Entry point for running clustering as a module.

Usage:
    python3 -m clustering --input request.json [--output result.json] [--quality]
"""

from .cli import main

if __name__ == '__main__':
    main()
