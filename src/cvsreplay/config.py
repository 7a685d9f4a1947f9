"""Configuration for a replay run."""

from __future__ import annotations

from pathlib import PurePath
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from cvsreplay.errors import ConfigError


def _check_target(value: str) -> str:
    path = PurePath(value)
    if path.is_absolute():
        raise ValueError("target must be relative to the cvs checkout")
    if ".." in path.parts:
        raise ValueError("target must not leave the cvs checkout")
    return value


class ReplayConfig(BaseModel):
    """Everything a single replay needs."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    branch: str
    cvs: str = "cvs"
    cvsroot: str
    database: str
    git: str
    module: str = "."
    remote: bool = False
    target: str = "src"

    @field_validator("branch", "cvsroot", "database", "git", "cvs", "module", "target")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("target")
    @classmethod
    def _relative_target(cls, value: str) -> str:
        return _check_target(value)


class ConfigFile(BaseModel):
    """Contents of a YAML config file; every key is optional."""

    model_config = ConfigDict(extra="forbid")

    branch: Optional[str] = None
    cvs: Optional[str] = None
    cvsroot: Optional[str] = None
    database: Optional[str] = None
    git: Optional[str] = None
    module: Optional[str] = None
    remote: Optional[bool] = None
    target: Optional[str] = None


def load_config_file(path: str) -> ConfigFile:
    """Read and validate a YAML config file."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    try:
        return ConfigFile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {_describe(e)}") from e


def build_config(overrides: dict[str, Any], config_file: ConfigFile | None = None) -> ReplayConfig:
    """Merge explicit values over a config file and validate the result.

    ``None`` values in ``overrides`` mean "not given" and fall through to the
    config file, then to the model defaults.
    """
    merged: dict[str, Any] = {}
    if config_file is not None:
        merged.update(config_file.model_dump(exclude_none=True))
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ReplayConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(_describe(e)) from e


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "config"
        msg = "missing" if err["type"] == "missing" else err["msg"]
        parts.append(f"{loc}: {msg}")
    return "; ".join(parts)
