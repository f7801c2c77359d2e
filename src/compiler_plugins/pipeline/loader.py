"""
Module Loaders.

The pipeline never imports plugin code by itself: it asks a `ModuleLoader`
for the module found at a reference's path. `FileModuleLoader` is the default
implementation, executing the file under a unique module name. Hosts with a
different trust model (sandboxing, pre-registered plugins) inject their own.
"""

import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Dict, List, Protocol, Union

from compiler_plugins.errors import PluginLoadError

logger = logging.getLogger(__name__)


class ModuleLoader(Protocol):
  """Capability consumed by instantiation: path in, executed module out."""

  def load(self, path: str) -> ModuleType: ...


class FileModuleLoader:
  """
  Loads Python source files with `importlib`, once per distinct path.

  Modules are registered in `sys.modules` under a name derived from the file
  stem and inode, so two plugin files sharing a stem do not collide.
  """

  def __init__(self) -> None:
    self._modules: Dict[str, ModuleType] = {}

  def load(self, path: Union[str, Path]) -> ModuleType:
    """
    Executes the module at `path`, or returns the copy loaded earlier.

    Args:
        path: Location of a `.py` file.

    Returns:
        ModuleType: The executed module.

    Raises:
        PluginLoadError: If the path is not a loadable file.
        Exception: Whatever the module raises while executing.
    """
    item = Path(path).resolve()
    key = str(item)
    cached = self._modules.get(key)
    if cached is not None:
      return cached

    if not item.is_file():
      raise PluginLoadError(f"Plugin module not found: {key}")

    unique_name = f"compiler_plugin_{item.stem}_{item.stat().st_ino}"
    spec = importlib.util.spec_from_file_location(unique_name, item)
    if spec is None or spec.loader is None:
      raise PluginLoadError(f"Cannot create an import spec for {key}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[unique_name] = module
    try:
      spec.loader.exec_module(module)
    except BaseException:
      del sys.modules[unique_name]
      raise

    logger.debug(f"Loaded plugin module {key} as {unique_name}")
    self._modules[key] = module
    return module

  @property
  def loaded_paths(self) -> List[str]:
    return list(self._modules)

  def unload(self) -> None:
    """Forgets every module loaded so far and removes them from `sys.modules`."""
    for module in self._modules.values():
      sys.modules.pop(module.__name__, None)
    self._modules.clear()
