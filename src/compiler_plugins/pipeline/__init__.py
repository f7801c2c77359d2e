"""
Plugin Execution Pipeline.

Discovery, instantiation and ordered invocation of compiler plugins, plus the
checksum retrofit applied to rewritten source units.
"""

from compiler_plugins.pipeline.discovery import DiscoveryResult, PluginBinding, discover_bindings, framework_reference
from compiler_plugins.pipeline.executor import PluginExecutor
from compiler_plugins.pipeline.instantiation import InstantiationResult, instantiate_plugins
from compiler_plugins.pipeline.loader import FileModuleLoader, ModuleLoader
from compiler_plugins.pipeline.retrofit import retrofit_checksums, snapshot_checksums

__all__ = [
  "DiscoveryResult",
  "FileModuleLoader",
  "InstantiationResult",
  "ModuleLoader",
  "PluginBinding",
  "PluginExecutor",
  "discover_bindings",
  "framework_reference",
  "instantiate_plugins",
  "retrofit_checksums",
  "snapshot_checksums",
]
