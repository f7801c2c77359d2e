"""
Plugin Executor.

This module provides `PluginExecutor`, the object a host compiler drives
through one compilation:

1.  **Pre-compile** (`run_before_compile`): discovers the bindings declared on
    the compilation, instantiates the plugins, runs every ``before_compile``
    hook in declaration order and retrofits checksums of rewritten units.
2.  **Post-compile** (`run_after_compile`): runs every ``after_compile`` hook
    against the final compilation and the emitted artifact streams.
3.  **Disposal** (`close`): disposes every plugin that was created.

Failures are fail-fast and never escape: the first exception in a phase is
recorded as a ``CP1001`` diagnostic and the remaining hooks of that phase are
skipped. Plugins may depend on each other's rewrites, so one failing plugin
suppressing the ones after it is the intended behaviour.

Usage
-----

.. code-block:: python

    with PluginExecutor() as executor:
      compilation, diagnostics = executor.run_before_compile(compilation)
      assembly, symbols = emit(compilation)
      diagnostics += executor.run_after_compile(compilation, assembly, symbols)
"""

import logging
from typing import Any, BinaryIO, List, Mapping, Optional, Tuple

from compiler_plugins.compilation import Compilation
from compiler_plugins.context import (
  AfterCompileRequest,
  AfterCompileResponse,
  BeforeCompileRequest,
  BeforeCompileResponse,
)
from compiler_plugins.contracts import CompilerPlugin
from compiler_plugins.diagnostics import Diagnostic, plugin_exception
from compiler_plugins.enums import PipelinePhase
from compiler_plugins.errors import PipelineStateError, PluginContractError
from compiler_plugins.pipeline.discovery import PluginBinding, discover_bindings
from compiler_plugins.pipeline.instantiation import instantiate_plugins
from compiler_plugins.pipeline.loader import FileModuleLoader, ModuleLoader
from compiler_plugins.pipeline.retrofit import retrofit_checksums, snapshot_checksums

logger = logging.getLogger(__name__)


def plugin_type_name(plugin: Any) -> str:
  """Runtime type name used to tag hook failures (``module.QualName``)."""
  cls = type(plugin)
  return f"{cls.__module__}.{cls.__qualname__}"


class PluginExecutor:
  """
  Runs the plugins of one compilation.

  An executor is single use: `run_before_compile` at most once, then
  `run_after_compile` at most once, then `close`. It is also a context
  manager that closes itself on exit.

  Attributes:
      compilation (Optional[Compilation]): The compilation of the latest phase.
      diagnostics (List[Diagnostic]): The latest phase's diagnostics. Cleared
          at the start of every phase.
      disposal_failures (List[Tuple[CompilerPlugin, Exception]]): Plugins whose
          `dispose()` raised, with the exception.
  """

  def __init__(self, loader: Optional[ModuleLoader] = None, settings: Optional[Mapping[str, Any]] = None):
    """
    Initializes the executor.

    Args:
        loader: Capability used to load plugin modules. Defaults to a `FileModuleLoader`.
        settings: Plugin settings exposed to every hook request.
    """
    self._loader = loader or FileModuleLoader()
    self._settings = dict(settings or {})
    self._phase = PipelinePhase.CREATED
    self._bindings: Tuple[PluginBinding, ...] = ()
    # None until discovery found bindings; fixed after pre-compile.
    self._plugins: Optional[List[CompilerPlugin]] = None

    self.compilation: Optional[Compilation] = None
    self.diagnostics: List[Diagnostic] = []
    self.disposal_failures: List[Tuple[CompilerPlugin, Exception]] = []

  @property
  def phase(self) -> PipelinePhase:
    return self._phase

  @property
  def bindings(self) -> Tuple[PluginBinding, ...]:
    """Bindings found by discovery (empty before pre-compile or when none)."""
    return self._bindings

  @property
  def plugins(self) -> Tuple[CompilerPlugin, ...]:
    """Plugins successfully created, in discovery order."""
    return tuple(self._plugins or ())

  def _enter_phase(self, phase: PipelinePhase, allowed: Tuple[PipelinePhase, ...]) -> None:
    if self._phase not in allowed:
      raise PipelineStateError(f"Cannot enter {phase.value} from {self._phase.value}")
    self._phase = phase

  def _report(self, plugin_name: str, exc: Exception) -> None:
    logger.warning(f"Plugin {plugin_name} raised {type(exc).__name__}: {exc}")
    self.diagnostics.append(plugin_exception(plugin_name, exc))

  def run_before_compile(self, compilation: Compilation) -> Tuple[Compilation, List[Diagnostic]]:
    """
    Runs the pre-compile extension point.

    Args:
        compilation: The compilation as produced by the host.

    Returns:
        Tuple[Compilation, List[Diagnostic]]: The compilation to build (the
        input itself when no plugin replaced it) and the phase's diagnostics.

    Raises:
        PipelineStateError: If called twice or after `close`.
    """
    self._enter_phase(PipelinePhase.BEFORE_COMPILE, (PipelinePhase.CREATED,))
    self.compilation = compilation
    self.diagnostics.clear()

    discovery = discover_bindings(compilation)
    if discovery is None:
      return compilation, list(self.diagnostics)

    self._bindings = discovery.bindings
    outcome = instantiate_plugins(discovery, self._loader, self.diagnostics)
    self._plugins = outcome.plugins
    if not outcome.completed:
      return compilation, list(self.diagnostics)

    original_checksums = snapshot_checksums(compilation)
    current = compilation

    for plugin in self._plugins:
      request = BeforeCompileRequest(compilation=current, diagnostics=self.diagnostics, settings=self._settings)
      try:
        response = plugin.before_compile(request)
        _check_before_response(response)
      except Exception as e:
        self._report(plugin_type_name(plugin), e)
        break

      if response is not None:
        self.diagnostics.extend(response.diagnostics)
        if response.compilation is not None:
          current = response.compilation

    self.compilation = retrofit_checksums(current, original_checksums)
    return self.compilation, list(self.diagnostics)

  def run_after_compile(
    self,
    compilation: Compilation,
    assembly_stream: BinaryIO,
    symbol_stream: BinaryIO,
  ) -> List[Diagnostic]:
    """
    Runs the post-compile extension point.

    Does nothing when pre-compile found no bindings. The streams are passed
    through untouched: not rewound, not closed.

    Args:
        compilation: The final compilation.
        assembly_stream: Emitted assembly, already written and still open.
        symbol_stream: Emitted debug symbols, already written and still open.

    Returns:
        List[Diagnostic]: The phase's diagnostics.

    Raises:
        PipelineStateError: If called twice or after `close`.
    """
    self._enter_phase(PipelinePhase.AFTER_COMPILE, (PipelinePhase.CREATED, PipelinePhase.BEFORE_COMPILE))
    self.compilation = compilation
    self.diagnostics.clear()

    if self._plugins is None:
      return []

    for plugin in self._plugins:
      request = AfterCompileRequest(
        compilation=compilation,
        assembly_stream=assembly_stream,
        symbol_stream=symbol_stream,
        diagnostics=self.diagnostics,
        settings=self._settings,
      )
      try:
        response = plugin.after_compile(request)
        _check_after_response(response)
      except Exception as e:
        self._report(plugin_type_name(plugin), e)
        break

      if response is not None:
        self.diagnostics.extend(response.diagnostics)

    return list(self.diagnostics)

  def close(self) -> None:
    """
    Disposes every created plugin once, in discovery order.

    A plugin whose `dispose()` raises is logged and recorded in
    `disposal_failures`; the remaining plugins are still disposed. Calling
    `close` again does nothing.
    """
    if self._phase is PipelinePhase.CLOSED:
      return
    self._phase = PipelinePhase.CLOSED

    for plugin in self._plugins or ():
      try:
        plugin.dispose()
      except Exception as e:
        logger.warning(f"Disposing plugin {plugin_type_name(plugin)} failed: {e}")
        self.disposal_failures.append((plugin, e))

  def __enter__(self) -> "PluginExecutor":
    return self

  def __exit__(self, exc_type, exc, tb) -> None:
    self.close()


def _check_before_response(response: Any) -> None:
  if response is None:
    return
  if not isinstance(response, BeforeCompileResponse):
    raise PluginContractError(f"before_compile returned {type(response).__name__}, expected BeforeCompileResponse")
  if response.compilation is not None and not isinstance(response.compilation, Compilation):
    raise PluginContractError(f"before_compile produced {type(response.compilation).__name__}, expected Compilation")


def _check_after_response(response: Any) -> None:
  if response is not None and not isinstance(response, AfterCompileResponse):
    raise PluginContractError(f"after_compile returned {type(response).__name__}, expected AfterCompileResponse")
