"""Tests for clipmd.profiles - YAML conversion profiles."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from clipmd.profiles import load_profile, load_profile_settings

PROFILE_YAML = """\
default:
  unwrap_layout_tables: true
  strip_media: true
profiles:
  google-docs:
    class_bold_heuristics: true
  big-exports:
    mode: lightweight
    strip_media: false
"""


@pytest.fixture
def profile_path(tmp_path):
    path = tmp_path / "clipmd.yaml"
    path.write_text(PROFILE_YAML, encoding="utf-8")
    return path


class TestLoadProfileSettings:
    def test_default_only(self, profile_path):
        assert load_profile_settings(profile_path) == {"unwrap_layout_tables": True, "strip_media": True}

    def test_named_section_overrides_default(self, profile_path):
        settings = load_profile_settings(profile_path, "big-exports")
        assert settings == {"unwrap_layout_tables": True, "strip_media": False, "mode": "lightweight"}

    def test_unknown_name(self, profile_path):
        with pytest.raises(KeyError, match="nope"):
            load_profile_settings(profile_path, "nope")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_profile_settings(path) == {}


class TestLoadProfile:
    def test_options(self, profile_path):
        options = load_profile(profile_path, "google-docs")
        assert options.class_bold_heuristics
        assert options.strip_media
        assert options.mode == "auto"

    def test_unknown_option_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("default:\n  unwrap_tables: false\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_profile(path)

    def test_invalid_mode_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("default:\n  mode: fastest\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_profile(path)
