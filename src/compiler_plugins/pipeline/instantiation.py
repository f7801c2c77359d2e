"""
Plugin Instantiation.

Turns discovered bindings into live `CompilerPlugin` objects:

1.  Find the path of the module declaring the binding's class through the
    compilation's reference table.
2.  Load that module with the injected `ModuleLoader`.
3.  Locate the class inside the module by its qualified name and build it with
    no arguments.
4.  Ask the binding to `create()` the plugin.

The first binding that fails stops the whole process (fail fast): one
diagnostic is recorded and the remaining bindings are never touched. Plugins
created before the failure are still returned so they can be disposed.
"""

import logging
from dataclasses import dataclass, field
from types import ModuleType
from typing import Dict, List, Optional

from compiler_plugins.compilation import Compilation
from compiler_plugins.contracts import CompilerPlugin, CompilerPluginBinding
from compiler_plugins.diagnostics import Diagnostic, plugin_exception
from compiler_plugins.errors import PluginContractError, PluginLoadError
from compiler_plugins.pipeline.discovery import DiscoveryResult, PluginBinding
from compiler_plugins.pipeline.loader import ModuleLoader

logger = logging.getLogger(__name__)


@dataclass
class InstantiationResult:
  """
  Outcome of instantiating every binding of a discovery.

  Attributes:
      plugins: Plugins created, in discovery order.
      completed: False when a binding failed and the rest were skipped.
  """

  plugins: List[CompilerPlugin] = field(default_factory=list)
  completed: bool = True


def resolve_module_path(compilation: Compilation, binding: PluginBinding) -> str:
  """
  Path of the module declaring the binding's class.

  Raises:
      PluginLoadError: If the class comes from the compilation's own sources,
          or from a module the compilation does not reference.
  """
  reference = compilation.get_metadata_reference(binding.module)
  if reference is None:
    raise PluginLoadError(
      f"{binding.qualified_name} is not declared in a referenced module (declared at {binding.declared_at})"
    )
  return reference.display


def locate_type(module: ModuleType, binding: PluginBinding) -> type:
  """
  Finds the binding's class inside its loaded module.

  The module's own dotted name prefixes the qualified name; the remainder is
  walked attribute by attribute so nested classes resolve.

  Raises:
      PluginLoadError: If the class is missing from the module.
  """
  module_name = binding.module.name
  qualified = binding.qualified_name
  if not qualified.startswith(module_name + "."):
    raise PluginLoadError(f"{qualified} is not qualified by its module {module_name}")

  target = module
  for part in qualified[len(module_name) + 1 :].split("."):
    try:
      target = getattr(target, part)
    except AttributeError as e:
      raise PluginLoadError(f"Type {qualified} not found in loaded module {module_name}") from e
  if not isinstance(target, type):
    raise PluginLoadError(f"{qualified} is not a class")
  return target


def instantiate_plugin(
  compilation: Compilation,
  binding: PluginBinding,
  loader: ModuleLoader,
  modules: Optional[Dict[str, ModuleType]] = None,
) -> CompilerPlugin:
  """
  Loads, constructs and runs the factory of one binding.

  Args:
      compilation: The compilation the binding resolved against.
      binding: The binding to instantiate.
      loader: Capability used to load plugin modules.
      modules: Modules already loaded in this run, by path. Updated in place.

  Raises:
      PluginLoadError: If the module or class cannot be found.
      PluginContractError: If the class or its product breaks the contract.
      Exception: Anything raised by the module, the constructor or `create()`.
  """
  module_path = resolve_module_path(compilation, binding)
  if modules is None:
    modules = {}
  module = modules.get(module_path)
  if module is None:
    module = modules[module_path] = loader.load(module_path)
  binding_type = locate_type(module, binding)

  instance = binding_type()
  if not isinstance(instance, CompilerPluginBinding):
    raise PluginContractError(f"{binding.qualified_name} is not a CompilerPluginBinding at runtime")

  plugin = instance.create()
  if not isinstance(plugin, CompilerPlugin):
    raise PluginContractError(
      f"{binding.qualified_name}.create() returned {type(plugin).__name__}, expected a CompilerPlugin"
    )
  return plugin


def instantiate_plugins(
  discovery: DiscoveryResult,
  loader: ModuleLoader,
  diagnostics: List[Diagnostic],
) -> InstantiationResult:
  """
  Instantiates every binding in order, stopping at the first failure.

  The loader is asked once per distinct module path.

  Args:
      discovery: Bindings and the compilation they resolved against.
      loader: Capability used to load plugin modules.
      diagnostics: The phase's diagnostics list. A failure appends one entry.

  Returns:
      InstantiationResult: Plugins created so far and whether all succeeded.
  """
  result = InstantiationResult()
  modules: Dict[str, ModuleType] = {}
  for binding in discovery.bindings:
    try:
      result.plugins.append(instantiate_plugin(discovery.compilation, binding, loader, modules))
    except Exception as e:
      logger.warning(f"Plugin binding {binding.qualified_name} failed to instantiate: {e}")
      diagnostics.append(plugin_exception(binding.qualified_name, e))
      result.completed = False
      break
  return result
