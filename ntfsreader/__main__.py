"""
Main entry point for ntfsreader when run as a module.
Allows execution via: python -m ntfsreader
"""

from ntfsreader.cli import main

if __name__ == '__main__':
    main()
