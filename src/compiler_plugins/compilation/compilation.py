"""
Program Representation.

A `Compilation` is an immutable snapshot of the program being compiled: its
source units, the module references it can see, and (lazily) the symbol table
built from both. Every modifier returns a new snapshot; the receiver stays
valid and unchanged, so plugins and the host can hold on to older snapshots
for comparison.
"""

import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from compiler_plugins.compilation.reader import ModuleInfo, read_module
from compiler_plugins.compilation.references import MetadataReference
from compiler_plugins.compilation.source_unit import SourceUnit
from compiler_plugins.compilation.symbols import (
  AttributeData,
  ModuleSymbol,
  SymbolTable,
  TypeSymbol,
)
from compiler_plugins.errors import SourceParseError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def _read_reference(path: str, mtime_ns: int, module_name: str) -> ModuleInfo:
  """
  Reads a referenced module from disk.

  Cached by modification time so derived compilations that share references
  do not parse the same file repeatedly.
  """
  file = Path(path)
  text = file.read_text(encoding="utf-8")
  return read_module(text, module_name, path=path, is_package=file.stem == "__init__")


def unit_module_name(path: str) -> str:
  """Dotted name under which a source unit's classes are visible (its file stem)."""
  return Path(path).stem


@dataclass(frozen=True)
class Compilation:
  """
  Immutable snapshot of a compiling program.
  """

  assembly_name: str = "compilation"
  """Name of the unit being compiled."""

  units: Tuple[SourceUnit, ...] = ()
  """Source units in compilation order."""

  references: Tuple[MetadataReference, ...] = ()
  """Referenced modules whose types are visible."""

  _symbols: Optional[SymbolTable] = field(default=None, init=False, repr=False, compare=False, hash=False)

  @classmethod
  def create(
    cls,
    assembly_name: str = "compilation",
    units: Iterable[SourceUnit] = (),
    references: Iterable[MetadataReference] = (),
  ) -> "Compilation":
    """Builds a compilation from any iterables of units and references."""
    return cls(assembly_name=assembly_name, units=tuple(units), references=tuple(references))

  # --- Source units ---

  @property
  def paths(self) -> List[str]:
    return [unit.path for unit in self.units]

  def get_unit(self, path: str) -> Optional[SourceUnit]:
    """First unit occupying `path`, if any."""
    for unit in self.units:
      if unit.path == path:
        return unit
    return None

  def with_units(self, units: Iterable[SourceUnit]) -> "Compilation":
    """Returns a snapshot with the unit list replaced wholesale."""
    return replace(self, units=tuple(units))

  def add_units(self, *units: SourceUnit) -> "Compilation":
    return replace(self, units=self.units + tuple(units))

  def replace_unit(self, old: Union[SourceUnit, str], new: SourceUnit) -> "Compilation":
    """
    Swaps one unit for another.

    Args:
        old: The unit to replace, or its path.
        new: The replacement. It may live at a different path.

    Raises:
        KeyError: If `old` is not part of this compilation.
    """
    updated = list(self.units)
    for index, unit in enumerate(updated):
      matches = unit.path == old if isinstance(old, str) else unit == old
      if matches:
        updated[index] = new
        return replace(self, units=tuple(updated))
    raise KeyError(old if isinstance(old, str) else old.path)

  def remove_unit(self, path: str) -> "Compilation":
    """Drops every unit at `path`. Unknown paths leave the units unchanged."""
    return replace(self, units=tuple(u for u in self.units if u.path != path))

  # --- References and symbols ---

  def add_references(self, *references: MetadataReference) -> "Compilation":
    """Returns a snapshot that can also see `references`. Already present paths are skipped."""
    known = {ref.path for ref in self.references}
    extra = tuple(ref for ref in references if ref.path not in known)
    if not extra:
      return self
    return replace(self, references=self.references + extra)

  @property
  def symbols(self) -> SymbolTable:
    """
    The symbol table for this snapshot, built on first access.

    Source units come first, then references in order. Units or references
    that cannot be read are left out and logged.
    """
    if self._symbols is None:
      object.__setattr__(self, "_symbols", SymbolTable.build(self._module_entries()))
    return self._symbols

  def _module_entries(self) -> List[Tuple[ModuleSymbol, ModuleInfo]]:
    entries = []
    for unit in self.units:
      name = unit_module_name(unit.path)
      try:
        info = read_module(unit.text, name, path=unit.path)
      except SourceParseError as e:
        logger.warning(f"Skipping unreadable source unit: {e}")
        continue
      entries.append((ModuleSymbol(name=name, source_path=unit.path), info))

    for ref in self.references:
      try:
        info = _read_reference(ref.display, ref.path.stat().st_mtime_ns, ref.module_name)
      except (OSError, UnicodeDecodeError, SourceParseError) as e:
        logger.warning(f"Skipping unreadable reference {ref.display}: {e}")
        continue
      entries.append((ModuleSymbol(name=ref.module_name, reference=ref), info))
    return entries

  def get_type_by_metadata_name(self, qualified_name: str) -> Optional[TypeSymbol]:
    return self.symbols.get_type_by_metadata_name(qualified_name)

  def get_metadata_reference(self, module: ModuleSymbol) -> Optional[MetadataReference]:
    """
    Maps a module symbol back to the reference that supplied it.

    Returns None for modules built from source units, or symbols that do not
    belong to this snapshot's references.
    """
    if module.reference is not None and module.reference in self.references:
      return module.reference
    return None

  def assembly_attributes(self) -> List[AttributeData]:
    """
    Markers declared on the compiling unit, in unit order then declaration order.

    Declarations whose class does not resolve are dropped.
    """
    attributes = []
    table = self.symbols
    for unit in self.units:
      info = table.source_info(unit.path)
      if info is None:
        continue
      for decl in info.declarations:
        symbol = table.get_type_by_metadata_name(decl.type_name)
        if symbol is None:
          logger.debug(f"Unresolved plugin declaration {decl.type_name} in {unit.path}:{decl.line}")
          continue
        attributes.append(AttributeData(attribute_class=symbol, source_path=unit.path, line=decl.line))
    return attributes
