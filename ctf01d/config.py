"""Service configuration loaded from a YAML file with environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple

import yaml


class ConfigError(Exception):
    """Raised when the configuration cannot be read or is incomplete."""


@dataclass(frozen=True)
class HttpConfig:
    port: str = "4102"
    host: str = "localhost"


@dataclass(frozen=True)
class LogConfig:
    level: str = ""


@dataclass(frozen=True)
class DbConfig:
    driver: str = ""
    data_source: str = ""


@dataclass(frozen=True)
class Config:
    http: HttpConfig
    log: LogConfig
    db: DbConfig

    def log_level(self) -> int:
        """Return the logging level named by the ``logger.log_level`` setting."""
        return parse_log_level(self.log.level)


class _Field(NamedTuple):
    attr: str
    key: str
    env: str | None
    default: str | None
    required: bool


_SECTIONS: dict[str, tuple[_Field, ...]] = {
    "http": (
        _Field("port", "port", "HTTP_PORT", "4102", True),
        _Field("host", "host", "HTTP_HOST", "localhost", True),
    ),
    "logger": (_Field("level", "log_level", "LOG_LEVEL", None, True),),
    "db": (
        _Field("driver", "driver", None, None, False),
        _Field("data_source", "data_source", "data_source", None, True),
    ),
}

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def parse_log_level(level: str) -> int:
    """Map a level name to a logging level; unknown names give INFO."""
    return _LEVELS.get(level, logging.INFO)


def _read_section(name: str, raw: object) -> dict[str, str]:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"config section {name!r} must be a mapping")
    values: dict[str, str] = {}
    for field in _SECTIONS[name]:
        value = raw.get(field.key)
        text = "" if value is None else str(value)
        if field.env is not None and field.env in os.environ:
            text = os.environ[field.env]
        if not text and field.default is not None:
            text = field.default
        if field.required and not text:
            hint = f" (env {field.env})" if field.env else ""
            raise ConfigError(f"field {name}.{field.key} is required but not set{hint}")
        values[field.attr] = text
    return values


def load_config(path: str | os.PathLike[str]) -> Config:
    """Read the YAML file at *path*, then apply environment overrides."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse config file {path}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must hold a mapping")

    sections = {name: _read_section(name, data.get(name)) for name in _SECTIONS}
    return Config(
        http=HttpConfig(**sections["http"]),
        log=LogConfig(**sections["logger"]),
        db=DbConfig(**sections["db"]),
    )