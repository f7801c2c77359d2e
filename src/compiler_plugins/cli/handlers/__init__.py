"""
CLI Command Handlers.
"""

from compiler_plugins.cli.handlers.build import handle_build
from compiler_plugins.cli.handlers.discover import handle_discover

__all__ = ["handle_build", "handle_discover"]
