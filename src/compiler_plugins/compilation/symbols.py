"""
Symbol Table.

Builds the type system a `Compilation` can see: its own source units plus
every referenced module. Symbols are plain objects created fresh for each
table, so comparing two symbols with ``is`` only makes sense when both come
from the same compilation. Discovery relies on that: a marker counts as a
plugin binding when the capability symbol *itself* appears among its bases.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from compiler_plugins.compilation.reader import ModuleInfo
from compiler_plugins.compilation.references import MetadataReference

logger = logging.getLogger(__name__)

# Alias chains longer than this are treated as unresolvable (cycles).
_MAX_ALIAS_HOPS = 16


@dataclass(eq=False)
class ModuleSymbol:
  """
  A module visible to the compilation.

  `reference` is None for modules built from the compilation's own source units.
  """

  name: str
  reference: Optional[MetadataReference] = None
  source_path: Optional[str] = None

  @property
  def is_source(self) -> bool:
    return self.reference is None


@dataclass(eq=False)
class TypeSymbol:
  """
  A class visible to the compilation.
  """

  qualified_name: str
  module: ModuleSymbol
  base_names: Tuple[str, ...] = ()
  line: int = 0

  def __repr__(self) -> str:
    return f"TypeSymbol({self.qualified_name!r})"


@dataclass(eq=False)
class AttributeData:
  """
  A declarative marker applied to the compiling unit.

  Produced from one element of a ``__compiler_plugins__`` declaration whose
  class resolved in the compilation's symbol table.
  """

  attribute_class: TypeSymbol
  source_path: str
  line: int = 0


@dataclass
class SymbolTable:
  """
  Types and modules visible to one compilation.

  Attributes:
      modules: Module symbols by dotted name. The first module registered under
          a name wins.
      types: Type symbols by qualified name. The first definition wins.
  """

  modules: Dict[str, ModuleSymbol] = field(default_factory=dict)
  types: Dict[str, TypeSymbol] = field(default_factory=dict)
  _infos: Dict[str, ModuleInfo] = field(default_factory=dict, repr=False)
  _source_infos: Dict[str, ModuleInfo] = field(default_factory=dict, repr=False)

  @classmethod
  def build(cls, entries: Iterable[Tuple[ModuleSymbol, ModuleInfo]]) -> "SymbolTable":
    """
    Indexes module readings.

    Args:
        entries: Pairs of module symbol and what the reader found in it,
            in priority order.
    """
    table = cls()
    for module, info in entries:
      if module.source_path is not None:
        table._source_infos.setdefault(module.source_path, info)
      if module.name in table.modules:
        logger.debug(f"Module {module.name} already visible, ignoring duplicate definition.")
        continue
      table.modules[module.name] = module
      table._infos[module.name] = info
      for cls_info in info.classes:
        if cls_info.qualified_name in table.types:
          continue
        table.types[cls_info.qualified_name] = TypeSymbol(
          qualified_name=cls_info.qualified_name,
          module=module,
          base_names=cls_info.base_names,
          line=cls_info.line,
        )
    return table

  def module_info(self, module_name: str) -> Optional[ModuleInfo]:
    return self._infos.get(module_name)

  def source_info(self, source_path: str) -> Optional[ModuleInfo]:
    """Reading of the source unit at `source_path`, even when its module name is shadowed."""
    return self._source_infos.get(source_path)

  def get_type_by_metadata_name(self, qualified_name: str) -> Optional[TypeSymbol]:
    """
    Resolves a class by its qualified name.

    Names re-exported by a visible module (``from .impl import Thing`` inside
    ``pkg``) are followed, so ``pkg.Thing`` finds ``pkg.impl.Thing``.

    Args:
        qualified_name: Dotted name (e.g. "acme.plugins.UpperBinding").

    Returns:
        Optional[TypeSymbol]: The symbol, or None when nothing visible defines it.
    """
    name = qualified_name
    for _ in range(_MAX_ALIAS_HOPS):
      found = self.types.get(name)
      if found is not None:
        return found
      target = self._follow_alias(name)
      if target is None or target == name:
        return None
      name = target
    return None

  def _follow_alias(self, name: str) -> Optional[str]:
    # Longest module prefix first: "a.b.C" tries module "a.b" then "a".
    parts = name.split(".")
    for cut in range(len(parts) - 1, 0, -1):
      info = self._infos.get(".".join(parts[:cut]))
      if info is None:
        continue
      head, rest = parts[cut], parts[cut + 1 :]
      target = info.imports.get(head)
      if target is None:
        return None
      return ".".join([target, *rest])
    return None

  def base_types(self, symbol: TypeSymbol) -> List[TypeSymbol]:
    """Direct bases of `symbol` that resolve in this table."""
    bases = []
    for base_name in symbol.base_names:
      base = self.get_type_by_metadata_name(base_name)
      if base is not None:
        bases.append(base)
    return bases

  def all_base_types(self, symbol: TypeSymbol) -> List[TypeSymbol]:
    """
    Transitive bases of `symbol`, breadth first, each listed once.

    Unresolvable base names are skipped. Inheritance cycles in malformed
    sources terminate.
    """
    seen = {id(symbol)}
    ordered: List[TypeSymbol] = []
    queue = deque(self.base_types(symbol))
    while queue:
      current = queue.popleft()
      if id(current) in seen:
        continue
      seen.add(id(current))
      ordered.append(current)
      queue.extend(self.base_types(current))
    return ordered

  def implements(self, symbol: TypeSymbol, capability: TypeSymbol) -> bool:
    """True when `capability` (by identity) is among the transitive bases of `symbol`."""
    return any(base is capability for base in self.all_base_types(symbol))
