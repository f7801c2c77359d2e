"""
Main Entry Point for the compiler-plugins CLI.

This module handles argument parsing and dispatches to the command handlers
defined in `compiler_plugins.cli.handlers`.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from compiler_plugins import __version__
from compiler_plugins.cli.handlers import handle_build, handle_discover
from compiler_plugins.config import parse_cli_key_values
from compiler_plugins.utils.console import console


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="compiler-plugins: run compiler plugins over a project")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
  parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: DISCOVER ---
  cmd_disc = subparsers.add_parser("discover", help="List plugin bindings declared by a project")
  cmd_disc.add_argument("path", type=Path, nargs="?", default=None, help="Project directory (default: cwd)")

  # --- Command: BUILD ---
  cmd_build = subparsers.add_parser("build", help="Run plugins over a project through the reference host")
  cmd_build.add_argument("path", type=Path, nargs="?", default=None, help="Project directory (default: cwd)")
  cmd_build.add_argument("--out", type=Path, default=None, help="Artifact directory (overrides config)")
  cmd_build.add_argument(
    "--config",
    nargs="*",
    help="Plugin settings in key=value format (e.g. banner=generated strict=True)",
  )

  args = parser.parse_args(argv)

  if args.verbose:
    console.set_level(logging.DEBUG)

  if args.command == "discover":
    return handle_discover(args.path)

  elif args.command == "build":
    return handle_build(args.path, args.out, parse_cli_key_values(args.config))

  return 1


if __name__ == "__main__":
  sys.exit(main())
