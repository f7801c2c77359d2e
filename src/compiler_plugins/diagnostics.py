"""
Diagnostic records produced by the plugin pipeline.

A `Diagnostic` is an immutable record built from a `DiagnosticDescriptor`
(identity, title, message template, severity) and the arguments used to fill
the template. The pipeline only ever produces one kind of diagnostic,
`PLUGIN_EXCEPTION`, but plugins may attach their own descriptors to the
diagnostics they return from hooks.
"""

import traceback
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from compiler_plugins.enums import DiagnosticSeverity


class Location(BaseModel):
  """
  Source position a diagnostic is attached to.

  `NO_LOCATION` marks diagnostics that have no meaningful position.
  """

  model_config = ConfigDict(frozen=True)

  path: Optional[str] = Field(None, description="Source unit path, or None when unattached.")
  line: Optional[int] = Field(None, description="1-based line number.")
  column: Optional[int] = Field(None, description="1-based column number.")

  @property
  def is_none(self) -> bool:
    """True when the location points nowhere."""
    return self.path is None


NO_LOCATION = Location()


class DiagnosticDescriptor(BaseModel):
  """
  Static description of a kind of diagnostic.
  """

  model_config = ConfigDict(frozen=True)

  id: str = Field(..., description="Stable identifier (e.g. 'CP1001').")
  title: str = Field(..., description="Short human readable title.")
  message_format: str = Field(..., description="str.format template for the message.")
  category: str = Field("Plugin", description="Grouping category.")
  default_severity: DiagnosticSeverity = Field(DiagnosticSeverity.WARNING)
  enabled_by_default: bool = Field(True)


class Diagnostic(BaseModel):
  """
  A single reported problem.
  """

  model_config = ConfigDict(frozen=True)

  descriptor: DiagnosticDescriptor
  severity: DiagnosticSeverity
  location: Location = NO_LOCATION
  arguments: Tuple[str, ...] = Field(default_factory=tuple)

  @property
  def id(self) -> str:
    return self.descriptor.id

  @property
  def message(self) -> str:
    """The descriptor template rendered with this diagnostic's arguments."""
    return self.descriptor.message_format.format(*self.arguments)

  @property
  def is_error(self) -> bool:
    return self.severity == DiagnosticSeverity.ERROR

  @classmethod
  def create(
    cls,
    descriptor: DiagnosticDescriptor,
    location: Optional[Location] = None,
    *args: Any,
  ) -> "Diagnostic":
    """
    Builds a diagnostic with the descriptor's default severity.

    Args:
        descriptor: The kind of diagnostic.
        location: Where it applies. Defaults to `NO_LOCATION`.
        *args: Values substituted into the message template (converted to str).

    Returns:
        Diagnostic: The new record.
    """
    return cls(
      descriptor=descriptor,
      severity=descriptor.default_severity,
      location=location or NO_LOCATION,
      arguments=tuple(str(a) for a in args),
    )

  def __str__(self) -> str:
    return f"{self.severity.value} {self.id}: {self.message}"


PLUGIN_EXCEPTION = DiagnosticDescriptor(
  id="CP1001",
  title="Compiler plugin exception",
  message_format="Plugin exception thrown from {0}. Full exception: {1}",
  category="Plugin",
  default_severity=DiagnosticSeverity.ERROR,
  enabled_by_default=True,
)


def format_exception_details(exc: BaseException) -> str:
  """
  Renders an exception with its type, message and traceback.

  Args:
      exc: The caught exception.

  Returns:
      str: Full text, as `traceback.format_exception` prints it.
  """
  return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()


def plugin_exception(plugin_name: str, exc: BaseException) -> Diagnostic:
  """Builds the `CP1001` diagnostic for an exception raised by a plugin."""
  return Diagnostic.create(PLUGIN_EXCEPTION, NO_LOCATION, plugin_name, format_exception_details(exc))
