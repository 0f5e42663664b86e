"""
Entry point for the WordPress to Contentful migration tool.
"""

import sys

from wp2contentful.cli import main

if __name__ == "__main__":
    sys.exit(main())
