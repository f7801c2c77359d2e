"""
Checksum Retrofit.

After the pre-compile hooks have run, every source unit that still occupies a
path present before the hooks gets the checksum that path had originally,
whether or not its text changed. Debuggers match source files by checksum, so
a rewritten file keeps correlating with the text the user actually wrote.
Units at new paths keep their natural checksum.
"""

from typing import Dict, Tuple

from compiler_plugins.compilation import Compilation

# path -> (checksum, algorithm)
ChecksumSnapshot = Dict[str, Tuple[str, str]]


def snapshot_checksums(compilation: Compilation) -> ChecksumSnapshot:
  """
  Records the checksum of every path in `compilation`.

  When several units share a path, the first one is recorded. A later unit
  at that path is then overwritten with this checksum by the retrofit, even
  when no plugin changed it.
  """
  snapshot: ChecksumSnapshot = {}
  for unit in compilation.units:
    snapshot.setdefault(unit.path, (unit.checksum, unit.checksum_algorithm))
  return snapshot


def retrofit_checksums(compilation: Compilation, original: ChecksumSnapshot) -> Compilation:
  """
  Forces the original checksum onto every unit whose path was recorded.

  Args:
      compilation: The compilation left by the hooks.
      original: Checksums taken before any hook ran.

  Returns:
      Compilation: `compilation` itself when nothing needed forcing, otherwise
      a new snapshot with the retrofitted units.
  """
  units = []
  changed = False
  for unit in compilation.units:
    recorded = original.get(unit.path)
    if recorded is not None and (unit.checksum, unit.checksum_algorithm) != recorded:
      unit = unit.force_checksum(*recorded)
      changed = True
    units.append(unit)
  return compilation.with_units(units) if changed else compilation
