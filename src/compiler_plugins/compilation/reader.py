"""
Static Module Reader.

This module provides the LibCST visitor that turns Python source text into the
facts the symbol table needs, without importing or executing anything:

1.  **Imports**: local alias -> qualified name (relative imports are resolved
    against the module's own dotted name).
2.  **Classes**: every class reachable by a dotted path (top-level or nested in
    other classes) with its base expressions resolved to qualified names.
3.  **Plugin declarations**: the elements of a module-level
    ``__compiler_plugins__ = [...]`` assignment, the declarative markers that
    attach plugin bindings to the compiling unit.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

from compiler_plugins.errors import SourceParseError

DECLARATION_NAME = "__compiler_plugins__"


def get_full_name(node: cst.CSTNode) -> str:
  """
  Flattens a `cst.Name` / `cst.Attribute` chain into a dotted string.

  Returns:
      str: e.g. "acme.plugins.Binding", or "" for any other node shape.
  """
  if isinstance(node, cst.Name):
    return node.value
  if isinstance(node, cst.Attribute):
    prefix = get_full_name(node.value)
    return f"{prefix}.{node.attr.value}" if prefix else ""
  return ""


@dataclass(frozen=True)
class ClassInfo:
  """A class definition found in a module."""

  qualified_name: str
  base_names: Tuple[str, ...]
  line: int


@dataclass(frozen=True)
class DeclarationInfo:
  """One element of a ``__compiler_plugins__`` declaration."""

  type_name: str
  """Qualified name of the declared marker's class."""

  line: int


@dataclass
class ModuleInfo:
  """
  Everything the reader learned about one module.
  """

  name: str
  imports: Dict[str, str] = field(default_factory=dict)
  classes: List[ClassInfo] = field(default_factory=list)
  declarations: List[DeclarationInfo] = field(default_factory=list)


class ModuleReader(cst.CSTVisitor):
  """
  Collects imports, classes and plugin declarations from a module tree.

  Names are recorded raw during traversal and resolved in `build()`, once all
  imports of the module are known.

  Attributes:
      module_name (str): Dotted name used to qualify the module's classes.
      is_package (bool): Whether the module is a package `__init__`.
  """

  METADATA_DEPENDENCIES = (PositionProvider,)

  def __init__(self, module_name: str, is_package: bool = False) -> None:
    self.module_name = module_name
    self.is_package = is_package
    self.imports: Dict[str, str] = {}
    # Class names, or None for function scopes.
    self._scope: List[Optional[str]] = []
    self._raw_classes: List[Tuple[str, List[str], int]] = []
    self._raw_declarations: List[Tuple[str, int]] = []
    self._top_level_classes: List[str] = []

  def _line(self, node: cst.CSTNode) -> int:
    return self.get_metadata(PositionProvider, node).start.line

  def visit_Import(self, node: cst.Import) -> None:
    """Records ``import a.b`` (binds ``a``) and ``import a.b as c`` (binds ``c``)."""
    for alias in node.names:
      dotted = alias.evaluated_name
      if alias.asname:
        self.imports[alias.evaluated_alias] = dotted
      else:
        head = dotted.split(".", 1)[0]
        self.imports[head] = head

  def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
    """Records ``from x import Y [as Z]``. Star imports are ignored."""
    if isinstance(node.names, cst.ImportStar):
      return
    source = self._resolve_from_module(node)
    for alias in node.names:
      name = alias.evaluated_name
      local = alias.evaluated_alias or name
      self.imports[local] = f"{source}.{name}" if source else name

  def _resolve_from_module(self, node: cst.ImportFrom) -> str:
    module = get_full_name(node.module) if node.module else ""
    level = len(node.relative)
    if not level:
      return module
    parts = self.module_name.split(".")
    drop = level - 1 if self.is_package else level
    package = parts[: len(parts) - drop]
    if module:
      package.append(module)
    return ".".join(package)

  def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
    self._scope.append(None)

  def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:
    self._scope.pop()

  def visit_ClassDef(self, node: cst.ClassDef) -> None:
    """
    Records classes addressable by a dotted path.

    Classes defined inside functions are skipped since no qualified name can
    reach them.
    """
    name = node.name.value
    if None not in self._scope:
      path = ".".join([*self._scope, name])
      bases = []
      for arg in node.bases:
        expr = arg.value
        if isinstance(expr, cst.Subscript):
          expr = expr.value
        dotted = get_full_name(expr)
        if dotted:
          bases.append(dotted)
      self._raw_classes.append((path, bases, self._line(node)))
      if not self._scope:
        self._top_level_classes.append(name)
    self._scope.append(name)

  def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
    self._scope.pop()

  def visit_Assign(self, node: cst.Assign) -> None:
    if self._scope:
      return
    for target in node.targets:
      if isinstance(target.target, cst.Name) and target.target.value == DECLARATION_NAME:
        self._collect_declarations(node.value)

  def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
    if self._scope or node.value is None:
      return
    if isinstance(node.target, cst.Name) and node.target.value == DECLARATION_NAME:
      self._collect_declarations(node.value)

  def _collect_declarations(self, value: cst.BaseExpression) -> None:
    if isinstance(value, (cst.List, cst.Tuple, cst.Set)):
      items = [element.value for element in value.elements]
    else:
      items = [value]
    for item in items:
      expr = item.func if isinstance(item, cst.Call) else item
      dotted = get_full_name(expr)
      if dotted:
        self._raw_declarations.append((dotted, self._line(item)))

  def qualify(self, dotted: str) -> str:
    """
    Qualifies a dotted name as seen from this module.

    Import aliases win, then classes defined at the module's top level.
    Anything else is assumed to be already qualified.
    """
    head, _, rest = dotted.partition(".")
    if head in self.imports:
      target = self.imports[head]
      return f"{target}.{rest}" if rest else target
    if head in self._top_level_classes:
      return f"{self.module_name}.{dotted}"
    return dotted

  def build(self) -> ModuleInfo:
    """Resolves the recorded names into a `ModuleInfo`."""
    info = ModuleInfo(name=self.module_name, imports=dict(self.imports))
    for path, bases, line in self._raw_classes:
      info.classes.append(
        ClassInfo(
          qualified_name=f"{self.module_name}.{path}",
          base_names=tuple(self.qualify(b) for b in bases),
          line=line,
        )
      )
    for dotted, line in self._raw_declarations:
      info.declarations.append(DeclarationInfo(type_name=self.qualify(dotted), line=line))
    return info


def read_module(text: str, module_name: str, path: Optional[str] = None, is_package: bool = False) -> ModuleInfo:
  """
  Parses source text and extracts its `ModuleInfo`.

  Args:
      text: Python source.
      module_name: Dotted name qualifying the module's classes.
      path: Origin of the text, used in error messages.
      is_package: True for a package `__init__` module, so relative imports
          resolve inside the package itself.

  Returns:
      ModuleInfo: Imports, classes and plugin declarations.

  Raises:
      SourceParseError: If the text is not valid Python.
  """
  try:
    tree = cst.parse_module(text)
  except cst.ParserSyntaxError as e:
    raise SourceParseError(f"Cannot parse {path or module_name}: {e}", path=path) from e

  reader = ModuleReader(module_name, is_package=is_package)
  MetadataWrapper(tree).visit(reader)
  return reader.build()
