# -*- coding: utf-8 -*-
"""siwe-lint version single source of truth."""

from __future__ import annotations

import json
from importlib import metadata
from pathlib import Path

_DEFAULT_VERSION = "0.0.0"


def _read_version() -> str:
    # source checkout first, installed distribution metadata second
    try:
        root = Path(__file__).resolve().parents[1]
        data = json.loads((root / "version.json").read_text(encoding="utf-8"))
        return str(data.get("semver") or data.get("version") or _DEFAULT_VERSION)
    except (OSError, ValueError):
        pass
    try:
        return metadata.version("siwe-lint")
    except metadata.PackageNotFoundError:
        return _DEFAULT_VERSION


__version__ = _read_version()
