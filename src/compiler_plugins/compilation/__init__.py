"""
Compilation Package.

The in-memory program representation plugins observe and rewrite: immutable
`Compilation` snapshots made of `SourceUnit`s, the `MetadataReference`s they
can see, and the symbol table built from both by static reading (LibCST).
"""

from compiler_plugins.compilation.compilation import Compilation
from compiler_plugins.compilation.references import MetadataReference
from compiler_plugins.compilation.source_unit import SourceUnit, compute_checksum
from compiler_plugins.compilation.symbols import AttributeData, ModuleSymbol, SymbolTable, TypeSymbol

__all__ = [
  "AttributeData",
  "Compilation",
  "MetadataReference",
  "ModuleSymbol",
  "SourceUnit",
  "SymbolTable",
  "TypeSymbol",
  "compute_checksum",
]
