"""
compiler-plugins Package.

Lets external modules ("plugins") observe and rewrite a compilation at two
extension points: before the main compile pass and after it. The host
compiler drives one `PluginExecutor` per compilation.

Usage
-----

Driving the pipeline from a host
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from compiler_plugins import Compilation, MetadataReference, PluginExecutor, SourceUnit

    compilation = Compilation.create(
      "demo",
      units=[SourceUnit.from_text("main.py", "import acme_plugins\\n__compiler_plugins__ = [acme_plugins.ShoutBinding()]\\n")],
      references=[MetadataReference.from_path("plugins/acme_plugins.py")],
    )

    with PluginExecutor() as executor:
      compilation, diagnostics = executor.run_before_compile(compilation)
      assembly, symbols = emit(compilation)
      diagnostics += executor.run_after_compile(compilation, assembly, symbols)

Writing a plugin
^^^^^^^^^^^^^^^^

See `compiler_plugins.contracts`.
"""

from compiler_plugins.compilation import Compilation, MetadataReference, SourceUnit
from compiler_plugins.config import PipelineConfig
from compiler_plugins.diagnostics import PLUGIN_EXCEPTION, Diagnostic
from compiler_plugins.host import BuildResult, compile_with_plugins
from compiler_plugins.pipeline import PluginExecutor

__version__ = "0.1.0"

__all__ = [
  "BuildResult",
  "Compilation",
  "Diagnostic",
  "MetadataReference",
  "PLUGIN_EXCEPTION",
  "PipelineConfig",
  "PluginExecutor",
  "SourceUnit",
  "compile_with_plugins",
  "__version__",
]
