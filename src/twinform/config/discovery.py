"""Config file discovery and loading.

Walk-up finder locates twinform.toml, similar to how git finds .git/.
The TWINFORM_CONFIG env var overrides discovery.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from twinform.config.models import TwinformConfig
from twinform.domain.errors import ConfigurationError

CONFIG_FILENAME = "twinform.toml"
CONFIG_ENV_VAR = "TWINFORM_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for twinform.toml.

    Returns the path to the config file, or None if not found.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        ConfigurationError: If the file is not valid TOML.
    """
    raw = path.read_text(encoding="utf-8")
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigurationError(msg) from exc


def load_config(path: Path | None = None, cwd: Path | None = None) -> TwinformConfig:
    """Load and validate config from a TOML file.

    If *path* is None, uses find_config(*cwd*) to discover the file.
    Returns the default config if no file is found.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return TwinformConfig()
    return TwinformConfig.model_validate(read_toml(path))
