"""Config file discovery and loading.

Walk-up finder locates notegraph.toml, similar to how git finds .git/.
Supports the NOTEGRAPH_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

from notegraph.config.models import NotegraphConfig

CONFIG_FILENAME = "notegraph.toml"
CONFIG_ENV_VAR = "NOTEGRAPH_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for notegraph.toml.

    Returns the path to the config file, or None if not found.
    Checks NOTEGRAPH_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> NotegraphConfig:
    """Load and validate config from a TOML file.

    If *path* is None, uses find_config(*cwd*) to discover the file.
    Returns default NotegraphConfig if no file is found.
    """
    if path is None:
        path = find_config(cwd)

    if path is None:
        return NotegraphConfig()

    raw = path.read_text(encoding="utf-8")
    try:
        data: dict[str, Any] = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise click.ClickException(f"Invalid TOML in {path}: {exc}") from exc
    return NotegraphConfig.model_validate(data)


def workspace_root_for(config_path: Path | None) -> Path:
    """The directory a config file governs: its parent, or the CWD."""
    return config_path.parent.resolve() if config_path else Path.cwd()
