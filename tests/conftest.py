"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- A referenced plugin module (``acme_plugins.py``) with bindings covering the
  success and failure paths of the pipeline.
- A factory building compilations that declare a chosen list of bindings.
"""

import sys
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

# Add src to path so we can import 'compiler_plugins' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from compiler_plugins.compilation import Compilation, MetadataReference, SourceUnit  # noqa: E402
from compiler_plugins.pipeline.loader import FileModuleLoader  # noqa: E402
from compiler_plugins.utils.console import reset_console  # noqa: E402

FOO_TEXT = "FOO = 1\n"

PLUGIN_MODULE = '''
from compiler_plugins.compilation import SourceUnit
from compiler_plugins.contracts import CompilerPlugin, CompilerPluginBinding
from compiler_plugins.context import AfterCompileResponse, BeforeCompileResponse
from compiler_plugins.diagnostics import Diagnostic, DiagnosticDescriptor
from compiler_plugins.enums import DiagnosticSeverity

EVENTS = []

NOTE = DiagnosticDescriptor(
  id="TP0001",
  title="Test note",
  message_format="{0} saw {1}",
  default_severity=DiagnosticSeverity.INFO,
)


class RecordingPlugin(CompilerPlugin):
  name = "recording"

  def __init__(self):
    EVENTS.append(("create", self.name))

  def before_compile(self, request):
    EVENTS.append(("before", self.name))
    return None

  def after_compile(self, request):
    EVENTS.append(("after", self.name))
    return None

  def dispose(self):
    EVENTS.append(("dispose", self.name))


class RewritePlugin(RecordingPlugin):
  name = "rewrite"

  def before_compile(self, request):
    super().before_compile(request)
    unit = request.compilation.get_unit("Foo.py")
    rewritten = unit.with_text(unit.text + "# rewritten\\n")
    return BeforeCompileResponse(compilation=request.compilation.replace_unit(unit, rewritten))


class AddUnitPlugin(RecordingPlugin):
  name = "add"

  def before_compile(self, request):
    super().before_compile(request)
    path = request.setting("generated_path", "Generated.py")
    note = Diagnostic.create(NOTE, None, self.name, len(request.diagnostics))
    return BeforeCompileResponse(
      compilation=request.compilation.add_units(SourceUnit.from_text(path, "GENERATED = True\\n")),
      diagnostics=[note],
    )


class NotePlugin(RecordingPlugin):
  name = "note"

  def before_compile(self, request):
    super().before_compile(request)
    return BeforeCompileResponse(diagnostics=[Diagnostic.create(NOTE, None, self.name, "before")])

  def after_compile(self, request):
    super().after_compile(request)
    return AfterCompileResponse(diagnostics=[Diagnostic.create(NOTE, None, self.name, "after")])


class FailingBeforePlugin(RecordingPlugin):
  name = "fail-before"

  def before_compile(self, request):
    super().before_compile(request)
    raise RuntimeError("before hook exploded")


class FailingAfterPlugin(RecordingPlugin):
  name = "fail-after"

  def after_compile(self, request):
    super().after_compile(request)
    raise ValueError("after hook exploded")


class FailingDisposePlugin(RecordingPlugin):
  name = "fail-dispose"

  def dispose(self):
    super().dispose()
    raise OSError("dispose exploded")


class StreamReadingPlugin(RecordingPlugin):
  name = "streams"

  def after_compile(self, request):
    super().after_compile(request)
    request.symbol_stream.seek(0)
    payload = request.symbol_stream.read()
    return AfterCompileResponse(diagnostics=[Diagnostic.create(NOTE, None, self.name, len(payload))])


class BadResponsePlugin(RecordingPlugin):
  name = "bad-response"

  def before_compile(self, request):
    super().before_compile(request)
    return "not a response"


class RecordingBinding(CompilerPluginBinding):
  def create(self):
    return RecordingPlugin()


class RewriteBinding(CompilerPluginBinding):
  def create(self):
    return RewritePlugin()


class AddUnitBinding(CompilerPluginBinding):
  def create(self):
    return AddUnitPlugin()


class NoteBinding(CompilerPluginBinding):
  def create(self):
    return NotePlugin()


class FailingBeforeBinding(CompilerPluginBinding):
  def create(self):
    return FailingBeforePlugin()


class FailingAfterBinding(CompilerPluginBinding):
  def create(self):
    return FailingAfterPlugin()


class FailingDisposeBinding(CompilerPluginBinding):
  def create(self):
    return FailingDisposePlugin()


class StreamReadingBinding(CompilerPluginBinding):
  def create(self):
    return StreamReadingPlugin()


class BadResponseBinding(CompilerPluginBinding):
  def create(self):
    return BadResponsePlugin()


class ExplodingFactoryBinding(CompilerPluginBinding):
  def create(self):
    raise RuntimeError("factory exploded")


class WrongProductBinding(CompilerPluginBinding):
  def create(self):
    return object()


class IntermediateBinding(CompilerPluginBinding):
  def create(self):
    return RecordingPlugin()


class DerivedBinding(IntermediateBinding):
  pass


class Outer:
  class NestedBinding(CompilerPluginBinding):
    def create(self):
      return RecordingPlugin()


class NotABinding:
  pass
'''


@pytest.fixture(autouse=True)
def restore_console():
  """Ensures CLI tests that capture output do not leak their console."""
  yield
  reset_console()


@pytest.fixture
def plugin_reference(tmp_path) -> MetadataReference:
  """Writes ``acme_plugins.py`` to a temporary directory and references it."""
  plugin_dir = tmp_path / "plugins"
  plugin_dir.mkdir()
  module = plugin_dir / "acme_plugins.py"
  module.write_text(PLUGIN_MODULE, encoding="utf-8")
  return MetadataReference.from_path(module)


@pytest.fixture
def loader() -> FileModuleLoader:
  loader = FileModuleLoader()
  yield loader
  loader.unload()


def declaration_source(bindings: Iterable[str]) -> str:
  """Source of a unit declaring ``acme_plugins.<name>()`` for each binding."""
  elements = ", ".join(f"acme_plugins.{name}()" for name in bindings)
  return f"import acme_plugins\n\n__compiler_plugins__ = [{elements}]\n"


@pytest.fixture
def make_compilation(plugin_reference):
  """
  Factory building a compilation with ``Foo.py`` and a ``main.py`` declaring `bindings`.
  """

  def _make(bindings: List[str], references: Optional[List[MetadataReference]] = None) -> Compilation:
    units = [
      SourceUnit.from_text("Foo.py", FOO_TEXT),
      SourceUnit.from_text("main.py", declaration_source(bindings)),
    ]
    refs = [plugin_reference] if references is None else references
    return Compilation.create("demo", units=units, references=refs)

  return _make


@pytest.fixture
def events(loader, plugin_reference):
  """Returns a callable reading the EVENTS list of the loaded plugin module."""

  def _events():
    return list(loader.load(plugin_reference.display).EVENTS)

  return _events


@pytest.fixture
def cli_project(tmp_path):
  """
  Factory writing a project directory with a pyproject.toml, referenced plugins and sources.
  """

  def _make(bindings: List[str]) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "plugins").mkdir()
    (root / "plugins" / "acme_plugins.py").write_text(PLUGIN_MODULE, encoding="utf-8")
    (root / "src" / "Foo.py").write_text(FOO_TEXT, encoding="utf-8")
    (root / "src" / "main.py").write_text(declaration_source(bindings), encoding="utf-8")
    (root / "pyproject.toml").write_text(
      '[tool.compiler_plugins]\nassembly_name = "cli-demo"\nsources = ["src/**/*.py"]\n'
      'references = ["plugins/acme_plugins.py"]\n',
      encoding="utf-8",
    )
    return root

  return _make
