"""
Build Command Handler.

Runs a project through the reference host: pre-compile hooks, emission,
post-compile hooks, disposal. Diagnostics are printed; artifacts are written
when an output directory is configured.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from compiler_plugins.config import PipelineConfig
from compiler_plugins.diagnostics import Diagnostic
from compiler_plugins.errors import CompilerPluginsError
from compiler_plugins.host import compile_with_plugins, write_artifacts
from compiler_plugins.utils.console import console, log_error, log_info, log_success


def handle_build(path: Optional[Path], output_dir: Optional[Path], plugin_settings: Dict[str, Any]) -> int:
  """
  Handles the 'build' command.

  Args:
      path: Project directory (searched upwards for pyproject.toml).
      output_dir: Override for the artifact directory.
      plugin_settings: Settings from ``--config key=value`` flags.

  Returns:
      int: 0 when no error diagnostic was reported, 1 otherwise.
  """
  try:
    config = PipelineConfig.load(search_path=path, plugin_settings=plugin_settings, output_dir=output_dir)
    compilation = config.build_compilation()
  except (CompilerPluginsError, OSError) as e:
    log_error(escape(str(e)))
    return 1

  result = compile_with_plugins(compilation, settings=config.plugin_settings)
  log_info(f"Ran {len(result.bindings)} plugin(s) over {len(result.documents)} source unit(s)")

  if result.diagnostics:
    _print_diagnostics(result.diagnostics)

  if config.output_dir:
    for written in write_artifacts(result, config.output_dir):
      log_info(f"Wrote [path]{escape(str(written))}[/path]")

  if result.success:
    log_success(f"Build of {result.assembly_name} succeeded")
    return 0

  log_error(f"Build of {result.assembly_name} failed")
  return 1


def _print_diagnostics(diagnostics: List[Diagnostic]) -> None:
  table = Table(title="Diagnostics", show_lines=True)
  table.add_column("Severity")
  table.add_column("Id")
  table.add_column("Message", overflow="fold")

  for diag in diagnostics:
    style = "bold red" if diag.is_error else "yellow"
    table.add_row(Text(diag.severity.value, style=style), diag.id, Text(diag.message))

  console.print(table)
