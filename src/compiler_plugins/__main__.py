"""
Entry point for module execution (``python -m compiler_plugins``).

This module delegates execution to the CLI handler in ``compiler_plugins.cli.__main__``.
"""

import sys

from compiler_plugins.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
