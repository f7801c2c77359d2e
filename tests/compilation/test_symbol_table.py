"""
Tests for symbol resolution and base type walking.
"""

from compiler_plugins.compilation import Compilation, SourceUnit


def build(**modules: str) -> Compilation:
  """Compilation with one unit per keyword (module name -> source)."""
  units = [SourceUnit.from_text(f"{name}.py", text) for name, text in modules.items()]
  return Compilation.create("symbols", units=units)


def test_resolves_defined_type():
  comp = build(base="class Root:\n  pass\n")
  symbol = comp.get_type_by_metadata_name("base.Root")

  assert symbol is not None
  assert symbol.qualified_name == "base.Root"
  assert symbol.module.name == "base"
  assert symbol.module.is_source


def test_unknown_type_is_none():
  comp = build(base="class Root:\n  pass\n")
  assert comp.get_type_by_metadata_name("base.Missing") is None
  assert comp.get_type_by_metadata_name("nowhere.Root") is None


def test_follows_re_exports():
  comp = build(
    impl="class Thing:\n  pass\n",
    facade="from impl import Thing\n",
  )
  assert comp.get_type_by_metadata_name("facade.Thing") is comp.get_type_by_metadata_name("impl.Thing")


def test_alias_cycle_terminates():
  comp = build(
    a="from b import X\n",
    b="from a import X\n",
  )
  assert comp.get_type_by_metadata_name("a.X") is None


def test_transitive_bases():
  comp = build(
    base="class Root:\n  pass\n",
    mid="import base\nclass Middle(base.Root):\n  pass\n",
    leaf="from mid import Middle\nclass Leaf(Middle, Unknown):\n  pass\n",
  )
  table = comp.symbols
  leaf = table.get_type_by_metadata_name("leaf.Leaf")

  names = [b.qualified_name for b in table.all_base_types(leaf)]
  assert names == ["mid.Middle", "base.Root"]
  assert table.implements(leaf, table.get_type_by_metadata_name("base.Root"))
  assert not table.implements(table.get_type_by_metadata_name("base.Root"), leaf)


def test_inheritance_cycle_terminates():
  comp = build(cyc="class A(B):\n  pass\nclass B(A):\n  pass\n")
  table = comp.symbols
  a = table.get_type_by_metadata_name("cyc.A")
  assert [b.qualified_name for b in table.all_base_types(a)] == ["cyc.B"]


def test_implements_uses_identity():
  """A symbol from another compilation with the same name does not count."""
  sources = {
    "base": "class Root:\n  pass\n",
    "leaf": "import base\nclass Leaf(base.Root):\n  pass\n",
  }
  first = build(**sources)
  second = build(**sources)

  leaf = first.get_type_by_metadata_name("leaf.Leaf")
  foreign_root = second.get_type_by_metadata_name("base.Root")

  assert foreign_root.qualified_name == "base.Root"
  assert not first.symbols.implements(leaf, foreign_root)
  assert first.symbols.implements(leaf, first.get_type_by_metadata_name("base.Root"))


def test_first_definition_wins():
  comp = Compilation.create(
    units=[
      SourceUnit.from_text("dup.py", "class First:\n  pass\n"),
      SourceUnit.from_text("pkg/dup.py", "class Second:\n  pass\n"),
    ]
  )
  assert comp.get_type_by_metadata_name("dup.First") is not None
  assert comp.get_type_by_metadata_name("dup.Second") is None
  # The shadowed unit is still readable by path
  assert comp.symbols.source_info("pkg/dup.py").classes[0].qualified_name == "dup.Second"
