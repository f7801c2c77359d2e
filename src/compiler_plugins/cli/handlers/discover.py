"""
Discover Command Handler.

Lists the plugin bindings a project declares, without loading any plugin code.
"""

from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.table import Table

from compiler_plugins.config import PipelineConfig
from compiler_plugins.errors import CompilerPluginsError
from compiler_plugins.pipeline.discovery import discover_bindings
from compiler_plugins.utils.console import console, log_error, log_info


def handle_discover(path: Optional[Path]) -> int:
  """
  Handles the 'discover' command.

  Args:
      path: Project directory (searched upwards for pyproject.toml).

  Returns:
      int: 0 on success, 1 when the project cannot be read.
  """
  try:
    config = PipelineConfig.load(search_path=path)
    compilation = config.build_compilation()
  except (CompilerPluginsError, OSError) as e:
    log_error(escape(str(e)))
    return 1

  log_info(f"Scanning {len(compilation.units)} source unit(s) of [path]{escape(str(config.root))}[/path]")
  discovery = discover_bindings(compilation)
  if discovery is None:
    log_info("No plugin bindings declared.")
    return 0

  table = Table(title=f"Plugin bindings for {compilation.assembly_name}")
  table.add_column("#", justify="right")
  table.add_column("Binding", style="bold magenta")
  table.add_column("Module")
  table.add_column("Declared at", style="bold blue")

  for index, binding in enumerate(discovery.bindings, start=1):
    reference = discovery.compilation.get_metadata_reference(binding.module)
    origin = reference.display if reference else "<compiling sources>"
    table.add_row(str(index), binding.qualified_name, origin, binding.declared_at)

  console.print(table)
  return 0
