"""
Reference Host.

A minimal stand-in for a host compiler, used by the CLI and by integration
tests to drive a `PluginExecutor` end to end:

1.  Run the pre-compile hooks on the compilation.
2.  "Emit" the resulting compilation: the units' text zipped into an assembly
    stream, and a JSON symbol document recording each unit's path and
    checksum (the checksums a debugger would match sources against).
3.  Run the post-compile hooks against the emitted streams.
4.  Dispose the plugins.

No actual compilation happens here; the point is the call protocol.
"""

import io
import json
import zipfile
from pathlib import Path
from typing import Any, BinaryIO, Callable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from compiler_plugins.compilation import Compilation
from compiler_plugins.diagnostics import Diagnostic
from compiler_plugins.pipeline.executor import PluginExecutor
from compiler_plugins.pipeline.loader import ModuleLoader

ASSEMBLY_FILE = "assembly.zip"
SYMBOLS_FILE = "symbols.json"

Emitter = Callable[[Compilation], Tuple[BinaryIO, BinaryIO]]


def emit_archive(compilation: Compilation) -> Tuple[io.BytesIO, io.BytesIO]:
  """
  Writes the compilation into in-memory assembly and symbol streams.

  Both streams are left open and positioned at their end.

  Returns:
      Tuple[BytesIO, BytesIO]: (assembly zip, JSON symbol document).
  """
  assembly = io.BytesIO()
  with zipfile.ZipFile(assembly, "w", compression=zipfile.ZIP_DEFLATED) as archive:
    for unit in compilation.units:
      archive.writestr(unit.path, unit.text)

  document = {
    "assembly": compilation.assembly_name,
    "documents": [
      {
        "path": unit.path,
        "checksum": unit.checksum,
        "algorithm": unit.checksum_algorithm,
        "lines": len(unit.text.splitlines()),
      }
      for unit in compilation.units
    ],
  }
  symbols = io.BytesIO()
  symbols.write(json.dumps(document, indent=2).encode("utf-8"))
  return assembly, symbols


class BuildResult(BaseModel):
  """
  Outcome of one build through the reference host.
  """

  assembly_name: str
  bindings: List[str] = Field(default_factory=list, description="Qualified names of discovered bindings.")
  documents: List[str] = Field(default_factory=list, description="Paths of the emitted source units.")
  diagnostics: List[Diagnostic] = Field(default_factory=list, description="Pre- then post-compile diagnostics.")
  assembly: bytes = b""
  symbols: bytes = b""

  @property
  def success(self) -> bool:
    """True when no error diagnostic was reported."""
    return not any(d.is_error for d in self.diagnostics)


def compile_with_plugins(
  compilation: Compilation,
  loader: Optional[ModuleLoader] = None,
  settings: Optional[Mapping[str, Any]] = None,
  emitter: Emitter = emit_archive,
) -> BuildResult:
  """
  Drives one compilation through both extension points.

  Args:
      compilation: The compilation as produced by the host front end.
      loader: Module loader for plugin modules. Defaults to `FileModuleLoader`.
      settings: Plugin settings exposed to every hook.
      emitter: Produces the artifact streams from the final compilation.

  Returns:
      BuildResult: Diagnostics of both phases and the emitted bytes.
  """
  diagnostics: List[Diagnostic] = []
  with PluginExecutor(loader=loader, settings=settings) as executor:
    final, before = executor.run_before_compile(compilation)
    diagnostics.extend(before)

    assembly_stream, symbol_stream = emitter(final)
    diagnostics.extend(executor.run_after_compile(final, assembly_stream, symbol_stream))
    bindings = [b.qualified_name for b in executor.bindings]

  return BuildResult(
    assembly_name=final.assembly_name,
    bindings=bindings,
    documents=final.paths,
    diagnostics=diagnostics,
    assembly=assembly_stream.getvalue() if isinstance(assembly_stream, io.BytesIO) else b"",
    symbols=symbol_stream.getvalue() if isinstance(symbol_stream, io.BytesIO) else b"",
  )


def write_artifacts(result: BuildResult, output_dir: Path) -> List[Path]:
  """
  Saves the emitted assembly and symbol document.

  Returns:
      List[Path]: The files written.
  """
  output_dir.mkdir(parents=True, exist_ok=True)
  assembly_path = output_dir / ASSEMBLY_FILE
  symbols_path = output_dir / SYMBOLS_FILE
  assembly_path.write_bytes(result.assembly)
  symbols_path.write_bytes(result.symbols)
  return [assembly_path, symbols_path]
