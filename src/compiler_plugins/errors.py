"""
Exception hierarchy for compiler-plugins.

Errors raised by plugins themselves never escape the pipeline: they are turned
into diagnostics. The exceptions below signal problems on the host side
(misuse of the executor, unreadable sources, bad configuration) or are raised
internally during instantiation and then reported as diagnostics.
"""

from typing import Optional


class CompilerPluginsError(Exception):
  """Base class for all errors raised by this package."""


class PipelineStateError(CompilerPluginsError):
  """An executor entry point was called out of order, twice, or after close."""


class PluginLoadError(CompilerPluginsError):
  """A plugin module could not be located, loaded, or did not define the expected type."""


class PluginContractError(CompilerPluginsError):
  """A loaded type or created object does not implement the plugin contract."""


class ConfigError(CompilerPluginsError):
  """Configuration could not be read or validated."""


class SourceParseError(CompilerPluginsError):
  """
  A source unit or referenced module is not valid Python.

  Attributes:
      path: File path of the offending unit, if known.
  """

  def __init__(self, message: str, path: Optional[str] = None):
    super().__init__(message)
    self.path = path
