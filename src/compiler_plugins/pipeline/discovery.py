"""
Plugin Discovery.

Finds the plugin bindings declared on a compiling unit. The marker capability
(`CompilerPluginBinding`) is resolved by name in the compilation's own type
system; when the compilation does not reference this framework at all, the
lookup is retried on a derived compilation that also references it. The
derived compilation is only used for discovery and instantiation: the
compilation handed to plugins and the host is never the augmented one.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import compiler_plugins.contracts as contracts
from compiler_plugins.compilation import AttributeData, Compilation, MetadataReference, ModuleSymbol

logger = logging.getLogger(__name__)

CAPABILITY_TYPE_NAME = "compiler_plugins.contracts.CompilerPluginBinding"


def framework_reference() -> MetadataReference:
  """Reference to the module defining the plugin contracts."""
  return MetadataReference(path=Path(contracts.__file__).resolve(), module_name=contracts.__name__)


@dataclass(frozen=True)
class PluginBinding:
  """
  A marker on the compiling unit that implements the binding capability.
  """

  attribute: AttributeData

  @property
  def qualified_name(self) -> str:
    return self.attribute.attribute_class.qualified_name

  @property
  def module(self) -> ModuleSymbol:
    """Module declaring the binding's class."""
    return self.attribute.attribute_class.module

  @property
  def declared_at(self) -> str:
    return f"{self.attribute.source_path}:{self.attribute.line}"


@dataclass(frozen=True)
class DiscoveryResult:
  """
  Bindings found on a compilation.

  Attributes:
      compilation: The snapshot the bindings were resolved against (the
          input, or the derived snapshot referencing the framework).
      bindings: Bindings in declaration order. Never empty.
  """

  compilation: Compilation
  bindings: Tuple[PluginBinding, ...]

  def __len__(self) -> int:
    return len(self.bindings)


def discover_bindings(compilation: Compilation) -> Optional[DiscoveryResult]:
  """
  Returns the plugin bindings declared on `compilation`.

  A declared marker counts when its class transitively derives from the
  binding capability symbol of the same compilation (identity, not name).

  Args:
      compilation: The compiling unit.

  Returns:
      Optional[DiscoveryResult]: None when the capability cannot be resolved or
      no marker implements it.
  """
  lookup = compilation
  capability = lookup.get_type_by_metadata_name(CAPABILITY_TYPE_NAME)

  if capability is None:
    lookup = compilation.add_references(framework_reference())
    capability = lookup.get_type_by_metadata_name(CAPABILITY_TYPE_NAME)
    if capability is None:
      logger.debug("Plugin capability type not resolvable, no plugins to discover.")
      return None
    logger.debug("Resolved plugin capability through the framework reference.")

  table = lookup.symbols
  bindings = tuple(
    PluginBinding(attribute)
    for attribute in lookup.assembly_attributes()
    if table.implements(attribute.attribute_class, capability)
  )
  if not bindings:
    return None

  logger.debug(f"Discovered {len(bindings)} plugin binding(s): {[b.qualified_name for b in bindings]}")
  return DiscoveryResult(compilation=lookup, bindings=bindings)
