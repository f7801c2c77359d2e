"""
Source Units.

A `SourceUnit` is one named piece of source text plus the checksum a debugger
uses to match it against the text that was compiled. Units are immutable;
every change produces a new unit. Two units with the same `path` occupy the
same slot of a compilation, even when their text differs.
"""

import hashlib
from dataclasses import dataclass, replace

DEFAULT_CHECKSUM_ALGORITHM = "sha1"


def compute_checksum(text: str, algorithm: str = DEFAULT_CHECKSUM_ALGORITHM) -> str:
  """
  Hashes source text as UTF-8.

  Args:
      text: The source text.
      algorithm: Any name accepted by `hashlib.new`.

  Returns:
      str: Hex digest.
  """
  return hashlib.new(algorithm, text.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class SourceUnit:
  """
  One file of the compiling program.
  """

  path: str
  """Identity of the unit's slot (file path as given by the host)."""

  text: str
  """Source text."""

  checksum: str
  """Hex digest recorded for debuggers. Normally the hash of `text`."""

  checksum_algorithm: str = DEFAULT_CHECKSUM_ALGORITHM
  """Hash algorithm `checksum` was produced with."""

  @classmethod
  def from_text(cls, path: str, text: str, checksum_algorithm: str = DEFAULT_CHECKSUM_ALGORITHM) -> "SourceUnit":
    """Creates a unit whose checksum is the natural hash of its text."""
    return cls(
      path=path,
      text=text,
      checksum=compute_checksum(text, checksum_algorithm),
      checksum_algorithm=checksum_algorithm,
    )

  @property
  def natural_checksum(self) -> str:
    """Checksum of the current text, ignoring any forced value."""
    return compute_checksum(self.text, self.checksum_algorithm)

  @property
  def has_forced_checksum(self) -> bool:
    """True when `checksum` no longer matches the text."""
    return self.checksum != self.natural_checksum

  def with_text(self, text: str) -> "SourceUnit":
    """Returns a unit at the same path with new text and its natural checksum."""
    return SourceUnit.from_text(self.path, text, self.checksum_algorithm)

  def force_checksum(self, checksum: str, checksum_algorithm: str = "") -> "SourceUnit":
    """
    Returns a copy carrying an imposed checksum.

    The text is left as is, so the result may describe text it was not
    computed from. This is how rewritten units keep correlating with the
    originally compiled text.

    Args:
        checksum: Hex digest to record.
        checksum_algorithm: Algorithm of `checksum`. Keeps the current one when empty.
    """
    return replace(self, checksum=checksum, checksum_algorithm=checksum_algorithm or self.checksum_algorithm)
