"""
Hook Requests and Responses.

Values exchanged between the pipeline and a plugin's hooks. A hook receives a
request describing the current state of its phase and answers with a response
(or None) stating what it changed. The pipeline applies the response; hooks
never mutate shared state directly.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, BinaryIO, Iterable, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from compiler_plugins.compilation import Compilation
from compiler_plugins.diagnostics import Diagnostic

T = TypeVar("T", bound=BaseModel)


def _freeze_settings(settings: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
  return MappingProxyType(dict(settings or {}))


class _SettingsAccess:
  """Read access to the plugin settings carried by a request."""

  settings: Mapping[str, Any]

  def setting(self, key: str, default: Any = None) -> Any:
    """Retrieve a raw value from the plugin settings."""
    return self.settings.get(key, default)

  def validate_settings(self, model: Type[T]) -> T:
    """
    Validates the settings against a plugin-specific Pydantic schema.

    Only keys declared by `model` are passed in, so plugins sharing one
    settings table do not trip over each other's keys.

    Raises:
        pydantic.ValidationError: If the relevant keys do not fit the schema.
    """
    relevant_keys = model.model_fields.keys()
    subset = {k: v for k, v in self.settings.items() if k in relevant_keys}
    return model.model_validate(subset)


@dataclass(frozen=True)
class BeforeCompileRequest(_SettingsAccess):
  """
  Input of `CompilerPlugin.before_compile`.
  """

  compilation: Compilation
  """The compilation as left by the previous hook (or the original one)."""

  diagnostics: Tuple[Diagnostic, ...] = ()
  """Diagnostics reported earlier in this phase."""

  settings: Mapping[str, Any] = field(default_factory=dict)

  def __post_init__(self) -> None:
    object.__setattr__(self, "diagnostics", tuple(self.diagnostics))
    object.__setattr__(self, "settings", _freeze_settings(self.settings))


@dataclass(frozen=True)
class BeforeCompileResponse:
  """
  Output of `CompilerPlugin.before_compile`.
  """

  compilation: Optional[Compilation] = None
  """Replacement compilation, or None to keep the current one."""

  diagnostics: Tuple[Diagnostic, ...] = ()
  """Diagnostics to append to the phase's list."""

  def __post_init__(self) -> None:
    object.__setattr__(self, "diagnostics", tuple(self.diagnostics))

  @classmethod
  def replace(cls, compilation: Compilation, diagnostics: Iterable[Diagnostic] = ()) -> "BeforeCompileResponse":
    return cls(compilation=compilation, diagnostics=tuple(diagnostics))


@dataclass(frozen=True)
class AfterCompileRequest(_SettingsAccess):
  """
  Input of `CompilerPlugin.after_compile`.

  The streams are owned by the host: already written, still open, positioned
  arbitrarily. Seek before reading; do not close them.
  """

  compilation: Compilation
  """The final compilation. Read only: replacing it has no effect on the output."""

  assembly_stream: BinaryIO
  symbol_stream: BinaryIO
  diagnostics: Tuple[Diagnostic, ...] = ()
  settings: Mapping[str, Any] = field(default_factory=dict)

  def __post_init__(self) -> None:
    object.__setattr__(self, "diagnostics", tuple(self.diagnostics))
    object.__setattr__(self, "settings", _freeze_settings(self.settings))


@dataclass(frozen=True)
class AfterCompileResponse:
  """
  Output of `CompilerPlugin.after_compile`.
  """

  diagnostics: Tuple[Diagnostic, ...] = ()

  def __post_init__(self) -> None:
    object.__setattr__(self, "diagnostics", tuple(self.diagnostics))
