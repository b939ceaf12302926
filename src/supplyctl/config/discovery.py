"""Locate and read ``supplyctl.toml``.

The file is found like git finds ``.git/``: the working directory, then
each parent. ``SUPPLYCTL_CONFIG`` names a file directly and disables the
walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

from supplyctl.config.models import SupplyConfig

CONFIG_FILENAME = "supplyctl.toml"
CONFIG_ENV_VAR = "SUPPLYCTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Path of the governing config file, or None."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*, reporting syntax errors as a :class:`click.ClickException`."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc


def load_config(path: Path | None = None, cwd: Path | None = None) -> SupplyConfig:
    """Validated file sections only, without env or CLI overrides."""
    source = path or find_config(cwd)
    if source is None:
        return SupplyConfig()
    return SupplyConfig.model_validate(read_toml(source))
