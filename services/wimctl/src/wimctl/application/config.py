from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import jsonschema
import yaml

from wimctl.domain.errors import WimError
from wimctl.domain.options import DEFAULT_IMAGEX_BIN

IMAGEX_BIN_ENV = "WIMCTL_IMAGEX_BIN"
CONFIG_ENV = "WIMCTL_CONFIG"
DEFAULT_CONFIG_NAME = ".wimctl.yaml"

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "schemas" / "config.schema.v1.json"

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ConfigError(WimError):
    pass


@dataclass(frozen=True)
class WimctlConfig:
    imagex_bin: str = DEFAULT_IMAGEX_BIN
    log_level: str = "warning"

    @property
    def logging_level(self) -> int:
        return _LOG_LEVELS.get(self.log_level, logging.WARNING)


def _config_path(explicit: Path | None, environ: Mapping[str, str]) -> Path | None:
    if explicit is not None:
        return explicit
    from_env = environ.get(CONFIG_ENV)
    if from_env:
        return Path(from_env)
    candidate = Path.cwd() / DEFAULT_CONFIG_NAME
    return candidate if candidate.is_file() else None


def load_config_file(path: Path) -> dict[str, str]:
    try:
        raw: object = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"Config file {path} not found", cause=e) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Config file {path} cannot be read: {e}", cause=e) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} is not valid YAML", cause=e) from e
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    try:
        jsonschema.validate(raw, schema)
    except jsonschema.ValidationError as e:
        raise ConfigError(
            f"Config file {path} is invalid: {e.message}",
            details={"path": str(path)},
            cause=e,
        ) from e
    assert isinstance(raw, dict)
    return {str(k): str(v) for k, v in raw.items()}


def resolve_config(
    imagex_bin: str | None = None,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> WimctlConfig:
    """Merge the explicit value, the environment and the config file, in that order."""
    env = os.environ if environ is None else environ
    path = _config_path(config_path, env)
    from_file = load_config_file(path) if path is not None else {}
    return WimctlConfig(
        imagex_bin=imagex_bin
        or env.get(IMAGEX_BIN_ENV)
        or from_file.get("imagex_bin")
        or DEFAULT_IMAGEX_BIN,
        log_level=from_file.get("log_level", "warning"),
    )
