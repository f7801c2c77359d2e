"""
Enumerations for compiler-plugins.

This module defines standard enumerations shared by the diagnostics layer
and the execution pipeline.
"""

from enum import Enum


class DiagnosticSeverity(str, Enum):
  """
  Severity attached to a diagnostic record.

  The host compiler decides how each level is surfaced (build error, warning, etc).
  """

  HIDDEN = "hidden"
  INFO = "info"
  WARNING = "warning"
  ERROR = "error"


class PipelinePhase(str, Enum):
  """
  Lifecycle stages of a single `PluginExecutor`.
  """

  CREATED = "created"
  BEFORE_COMPILE = "before_compile"  # run_before_compile has been called
  AFTER_COMPILE = "after_compile"  # run_after_compile has been called
  CLOSED = "closed"
