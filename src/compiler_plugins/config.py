"""
Pipeline Configuration.

Settings for the reference host and CLI, read from the ``[tool.compiler_plugins]``
table of the nearest ``pyproject.toml`` and overridden by explicit arguments:

.. code-block:: toml

    [tool.compiler_plugins]
    assembly_name = "demo"
    sources = ["src/**/*.py"]
    references = ["plugins/acme_plugins.py", "acme.extra=plugins/extra.py"]
    checksum_algorithm = "sha256"
    output_dir = "build"

    [tool.compiler_plugins.plugin_settings]
    banner = "generated"
"""

import hashlib
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from compiler_plugins.compilation import Compilation, MetadataReference, SourceUnit
from compiler_plugins.compilation.source_unit import DEFAULT_CHECKSUM_ALGORITHM
from compiler_plugins.errors import ConfigError
from compiler_plugins.utils.console import log_warning

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

TOOL_SECTION = "compiler_plugins"


class PipelineConfig(BaseModel):
  """
  Configuration of one build driven through the plugin pipeline.
  """

  assembly_name: str = Field("compilation", description="Name of the compiling unit.")
  root: Path = Field(default_factory=Path.cwd, description="Directory sources and references resolve against.")
  sources: List[str] = Field(default_factory=lambda: ["**/*.py"], description="Glob patterns of source units.")
  references: List[str] = Field(
    default_factory=list,
    description="Referenced module files, as 'path' or 'module.name=path'.",
  )
  plugin_settings: Dict[str, Any] = Field(default_factory=dict, description="Settings passed to plugin hooks.")
  checksum_algorithm: str = Field(DEFAULT_CHECKSUM_ALGORITHM, description="hashlib algorithm for unit checksums.")
  output_dir: Optional[Path] = Field(None, description="Where the reference host writes its artifacts.")

  @field_validator("checksum_algorithm")
  @classmethod
  def validate_algorithm(cls, v: str) -> str:
    """
    Ensures the checksum algorithm is provided by hashlib.

    Raises:
        ValueError: If the algorithm is unknown.
    """
    v_clean = v.lower().strip()
    if v_clean not in hashlib.algorithms_available:
      raise ValueError(f"Unknown checksum algorithm: '{v_clean}'")
    return v_clean

  def metadata_references(self) -> List[MetadataReference]:
    """Parses `references` into `MetadataReference`s relative to `root`."""
    refs = []
    for entry in self.references:
      module_name, path_str = _split_reference(entry)
      path = Path(path_str)
      if not path.is_absolute():
        path = self.root / path
      refs.append(MetadataReference.from_path(path, module_name))
    return refs

  def source_paths(self) -> List[Path]:
    """Files matched by `sources`, sorted, without duplicates or referenced modules."""
    excluded = {ref.path for ref in self.metadata_references()}
    found = []
    seen = set()
    for pattern in self.sources:
      for path in sorted(self.root.glob(pattern)):
        resolved = path.resolve()
        if not path.is_file() or resolved in seen or resolved in excluded:
          continue
        seen.add(resolved)
        found.append(path)
    return found

  def build_compilation(self) -> Compilation:
    """
    Reads the configured sources and references into a `Compilation`.

    Unit paths are kept relative to `root` (POSIX separators).
    """
    units = []
    for path in self.source_paths():
      text = path.read_text(encoding="utf-8")
      rel = path.relative_to(self.root).as_posix()
      units.append(SourceUnit.from_text(rel, text, self.checksum_algorithm))
    return Compilation.create(self.assembly_name, units=units, references=self.metadata_references())

  @classmethod
  def load(
    cls,
    search_path: Optional[Path] = None,
    plugin_settings: Optional[Dict[str, Any]] = None,
    output_dir: Optional[Path] = None,
    checksum_algorithm: Optional[str] = None,
  ) -> "PipelineConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        search_path: Directory to start searching for TOML config. Becomes the
            root when no TOML is found.
        plugin_settings: Extra plugin settings, merged over the TOML ones.
        output_dir: Override for the output directory.
        checksum_algorithm: Override for the checksum algorithm.

    Returns:
        PipelineConfig: The fully resolved configuration.

    Raises:
        ConfigError: If the merged values do not validate.
    """
    start_dir = (search_path or Path.cwd()).resolve()
    toml_config, toml_dir = _load_toml_settings(start_dir)
    root = toml_dir or start_dir

    final_settings = {**toml_config.get("plugin_settings", {}), **(plugin_settings or {})}

    final_output = output_dir
    if final_output is None and "output_dir" in toml_config:
      final_output = root / toml_config["output_dir"]

    values: Dict[str, Any] = {
      "root": root,
      "plugin_settings": final_settings,
      "output_dir": final_output,
    }
    for key in ("assembly_name", "sources", "references"):
      if key in toml_config:
        values[key] = toml_config[key]
    if checksum_algorithm or "checksum_algorithm" in toml_config:
      values["checksum_algorithm"] = checksum_algorithm or toml_config["checksum_algorithm"]

    try:
      return cls(**values)
    except ValidationError as e:
      raise ConfigError(f"Invalid [tool.{TOOL_SECTION}] configuration: {e}") from e


def _split_reference(entry: str) -> Tuple[Optional[str], str]:
  """Splits 'module.name=path' into its parts. Plain paths have no module name."""
  if "=" in entry:
    name, path = entry.split("=", 1)
    return name.strip() or None, path.strip()
  return None, entry.strip()


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches `start_path` and its parents for 'pyproject.toml' and extracts config.

  Returns:
      Tuple[Dict, Optional[Path]]: The tool section and the directory it was found in.
      An empty dict and None when no pyproject.toml exists.

  Raises:
      ConfigError: If the nearest pyproject.toml is not valid TOML.
  """
  for parent in [start_path, *start_path.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Cannot parse {toml_path}: {e}") from e
      return data.get("tool", {}).get(TOOL_SECTION, {}), parent

  return {}, None


def parse_cli_key_values(items: Optional[List[str]]) -> Dict[str, Any]:
  """
  Parses a list of 'key=value' strings into a dictionary.

  Types are inferred (int, float, bool, or string).

  Args:
      items: Raw CLI strings directly from argparse.

  Returns:
      Dict[str, Any]: Parsed dictionary.
  """
  if not items:
    return {}

  config = {}
  for item in items:
    if "=" not in item:
      log_warning(f"Ignoring invalid config format: '{item}'. Expected 'key=value'.")
      continue

    key, val_str = item.split("=", 1)
    key = key.strip()
    val_str = val_str.strip()

    final_val: Any = val_str

    if val_str.lower() == "true":
      final_val = True
    elif val_str.lower() == "false":
      final_val = False
    else:
      try:
        if "." in val_str or "e" in val_str.lower():
          final_val = float(val_str)
        else:
          final_val = int(val_str)
      except ValueError:
        pass

    config[key] = final_val

  return config
