"""YAML-based conversion profiles.

A profile file holds a ``default`` mapping and named sections under
``profiles``::

    default:
      unwrap_layout_tables: true
    profiles:
      google-docs:
        class_bold_heuristics: true
      big-exports:
        mode: lightweight
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from clipmd.items import ConvertOptions


def load_profile_settings(path: str | Path, name: str | None = None) -> dict[str, Any]:
    """Load a YAML profile and return the merged settings for *name*."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    default = data.get("default", {}) if isinstance(data, dict) else {}
    sections = data.get("profiles", {}) if isinstance(data, dict) else {}

    merged: dict[str, Any] = {}
    if isinstance(default, dict):
        merged.update(default)
    if name:
        section = sections.get(name) if isinstance(sections, dict) else None
        if not isinstance(section, dict):
            raise KeyError(f"Profile {name!r} not found in {path}")
        merged.update(section)
    return merged


def load_profile(path: str | Path, name: str | None = None) -> ConvertOptions:
    """Load a YAML profile as validated :class:`ConvertOptions`."""
    return ConvertOptions(**load_profile_settings(path, name))
