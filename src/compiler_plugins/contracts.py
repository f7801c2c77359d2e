"""
Plugin Contracts.

The two capabilities a third-party plugin module implements:

1.  `CompilerPluginBinding`: the inert marker. Declaring a subclass in a
    compiling unit's ``__compiler_plugins__`` list attaches the plugin to that
    compilation. Bindings are built with no arguments and asked to `create()`
    the behavioural plugin.
2.  `CompilerPlugin`: the behavioural object whose hooks run before and after
    the main compile pass, disposed once the compilation ends.

Example
-------

.. code-block:: python

    # acme_plugins.py, referenced by the compilation
    from compiler_plugins.contracts import CompilerPlugin, CompilerPluginBinding
    from compiler_plugins.context import BeforeCompileResponse

    class ShoutPlugin(CompilerPlugin):
      def before_compile(self, request):
        unit = request.compilation.get_unit("main.py")
        upper = request.compilation.replace_unit(unit, unit.with_text(unit.text.upper()))
        return BeforeCompileResponse(compilation=upper)

      def after_compile(self, request):
        return None

    class ShoutBinding(CompilerPluginBinding):
      def create(self):
        return ShoutPlugin()

    # main.py, a source unit of the compilation
    import acme_plugins
    __compiler_plugins__ = [acme_plugins.ShoutBinding()]

Bindings must derive from ``compiler_plugins.contracts.CompilerPluginBinding``
(directly or through intermediate classes) for discovery to recognise them.
"""

from abc import ABC, abstractmethod
from typing import Optional

from compiler_plugins.context import (
  AfterCompileRequest,
  AfterCompileResponse,
  BeforeCompileRequest,
  BeforeCompileResponse,
)


class CompilerPlugin(ABC):
  """
  Behavioural half of a plugin.
  """

  @abstractmethod
  def before_compile(self, request: BeforeCompileRequest) -> Optional[BeforeCompileResponse]:
    """
    Called before the main compile pass.

    Args:
        request: The current compilation and the phase's diagnostics so far.

    Returns:
        Optional[BeforeCompileResponse]: A replacement compilation and/or new
        diagnostics. None means nothing changed.
    """

  @abstractmethod
  def after_compile(self, request: AfterCompileRequest) -> Optional[AfterCompileResponse]:
    """
    Called once the host has emitted its artifacts.

    Args:
        request: The final compilation and the emitted streams.

    Returns:
        Optional[AfterCompileResponse]: Diagnostics to report, or None.
    """

  def dispose(self) -> None:
    """Releases resources held by the plugin. Called exactly once."""


class CompilerPluginBinding(ABC):
  """
  Declarative half of a plugin.
  """

  @abstractmethod
  def create(self) -> CompilerPlugin:
    """Creates the plugin instance for one compilation."""
