"""
Tests for hook request and response values.
"""

import io

import pytest
from pydantic import BaseModel, ValidationError

from compiler_plugins.compilation import Compilation
from compiler_plugins.context import (
  AfterCompileRequest,
  AfterCompileResponse,
  BeforeCompileRequest,
  BeforeCompileResponse,
)
from compiler_plugins.diagnostics import PLUGIN_EXCEPTION, Diagnostic


class BannerSettings(BaseModel):
  banner: str = "generated"
  width: int = 80


def test_setting_lookup():
  request = BeforeCompileRequest(compilation=Compilation.create(), settings={"banner": "hi"})
  assert request.setting("banner") == "hi"
  assert request.setting("missing", 7) == 7


def test_settings_are_read_only():
  source = {"banner": "hi"}
  request = BeforeCompileRequest(compilation=Compilation.create(), settings=source)

  with pytest.raises(TypeError):
    request.settings["banner"] = "changed"  # type: ignore[index]

  source["banner"] = "changed"
  assert request.setting("banner") == "hi"


def test_validate_settings_ignores_foreign_keys():
  request = BeforeCompileRequest(
    compilation=Compilation.create(),
    settings={"banner": "hello", "other_plugin_flag": True},
  )
  settings = request.validate_settings(BannerSettings)

  assert settings.banner == "hello"
  assert settings.width == 80


def test_validate_settings_rejects_bad_values():
  request = AfterCompileRequest(
    compilation=Compilation.create(),
    assembly_stream=io.BytesIO(),
    symbol_stream=io.BytesIO(),
    settings={"width": "wide"},
  )
  with pytest.raises(ValidationError):
    request.validate_settings(BannerSettings)


def test_request_diagnostics_are_a_snapshot():
  diagnostics = [Diagnostic.create(PLUGIN_EXCEPTION, None, "a", "b")]
  request = BeforeCompileRequest(compilation=Compilation.create(), diagnostics=diagnostics)
  diagnostics.clear()

  assert len(request.diagnostics) == 1


def test_responses():
  comp = Compilation.create("replaced")
  diag = Diagnostic.create(PLUGIN_EXCEPTION, None, "a", "b")

  response = BeforeCompileResponse.replace(comp, [diag])
  assert response.compilation is comp
  assert response.diagnostics == (diag,)

  assert BeforeCompileResponse().compilation is None
  assert AfterCompileResponse(diagnostics=[diag]).diagnostics == (diag,)
