"""
Tests for the reference host driving both extension points end to end.
"""

import io
import json
import zipfile

from compiler_plugins.host import ASSEMBLY_FILE, SYMBOLS_FILE, compile_with_plugins, emit_archive, write_artifacts

FOO_TEXT = "FOO = 1\n"


def test_emit_archive(make_compilation):
  comp = make_compilation(["RecordingBinding"])
  assembly, symbols = emit_archive(comp)

  with zipfile.ZipFile(io.BytesIO(assembly.getvalue())) as archive:
    assert archive.namelist() == ["Foo.py", "main.py"]
    assert archive.read("Foo.py").decode() == FOO_TEXT

  document = json.loads(symbols.getvalue())
  assert document["assembly"] == "demo"
  assert document["documents"][0] == {
    "path": "Foo.py",
    "checksum": comp.get_unit("Foo.py").checksum,
    "algorithm": "sha1",
    "lines": 1,
  }


def test_build_rewrites_and_keeps_checksums(make_compilation, loader, events):
  comp = make_compilation(["RewriteBinding", "AddUnitBinding", "StreamReadingBinding"])

  result = compile_with_plugins(comp, loader=loader)

  assert result.success
  assert result.bindings == [
    "acme_plugins.RewriteBinding",
    "acme_plugins.AddUnitBinding",
    "acme_plugins.StreamReadingBinding",
  ]
  assert result.documents == ["Foo.py", "main.py", "Generated.py"]

  with zipfile.ZipFile(io.BytesIO(result.assembly)) as archive:
    assert archive.read("Foo.py").decode().endswith("# rewritten\n")

  documents = {d["path"]: d for d in json.loads(result.symbols)["documents"]}
  assert documents["Foo.py"]["checksum"] == comp.get_unit("Foo.py").checksum

  # Pre-compile note, then the post-compile stream reading note
  assert [d.arguments[0] for d in result.diagnostics] == ["add", "streams"]
  assert result.diagnostics[1].arguments[1] == str(len(result.symbols))

  disposals = [name for kind, name in events() if kind == "dispose"]
  assert disposals == ["rewrite", "add", "streams"]


def test_build_reports_failures(make_compilation, loader):
  result = compile_with_plugins(make_compilation(["FailingAfterBinding"]), loader=loader)

  assert not result.success
  assert [d.id for d in result.diagnostics] == ["CP1001"]


def test_build_without_plugins(make_compilation, loader):
  result = compile_with_plugins(make_compilation([]), loader=loader)
  assert result.success
  assert result.bindings == []
  assert result.diagnostics == []


def test_write_artifacts(make_compilation, loader, tmp_path):
  result = compile_with_plugins(make_compilation([]), loader=loader)
  written = write_artifacts(result, tmp_path / "out")

  assert [p.name for p in written] == [ASSEMBLY_FILE, SYMBOLS_FILE]
  assert (tmp_path / "out" / SYMBOLS_FILE).read_bytes() == result.symbols
