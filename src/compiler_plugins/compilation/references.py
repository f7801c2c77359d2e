"""
Metadata References.

A `MetadataReference` points the compilation at a Python module file whose
types become visible to the compilation's symbol table. It is the analogue of
a referenced library: plugin bindings live in referenced modules, and the
reference's `display` path is what the module loader is given.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class MetadataReference:
  """
  A referenced module file.
  """

  path: Path
  """Location of the module source on disk."""

  module_name: str
  """Dotted import name the module's types are qualified with."""

  @classmethod
  def from_path(cls, path: Union[str, Path], module_name: Optional[str] = None) -> "MetadataReference":
    """
    Builds a reference, defaulting the module name to the file stem.

    Args:
        path: Path to a `.py` file.
        module_name: Optional dotted name. Defaults to the file stem, or the
            directory name for a package `__init__.py`.
    """
    resolved = Path(path).resolve()
    default = resolved.parent.name if resolved.stem == "__init__" else resolved.stem
    return cls(path=resolved, module_name=module_name or default)

  @property
  def display(self) -> str:
    """Path string handed to module loaders."""
    return str(self.path)
