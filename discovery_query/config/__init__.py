from __future__ import annotations

import os
import sys
import tomllib
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
DEFAULT_CONFIG_FILE = Path.home() / ".config" / "discovery_query" / "config.toml"
ENV_FILE_ENV_VAR = "DISCOVERY_QUERY_ENV_FILE"
CONFIG_FILE_ENV_VAR = "DISCOVERY_QUERY_CONFIG_FILE"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")
LOG_FORMATS = ("text", "json")
LOG_DESTINATIONS = ("auto", "stdout", "stderr")

_PATH_TO_ENV_KEY: dict[tuple[str, str], str] = {
    ("logging", "level"): "DISCOVERY_QUERY_LOG_LEVEL",
    ("logging", "format"): "DISCOVERY_QUERY_LOG_FORMAT",
    ("logging", "destination"): "DISCOVERY_QUERY_LOG_DESTINATION",
    ("query", "date_field"): "DISCOVERY_QUERY_DATE_FIELD",
}
_ENV_KEY_TO_PATH = {env_name: path for path, env_name in _PATH_TO_ENV_KEY.items()}

_DEFAULTS: dict[tuple[str, str], str] = {
    ("logging", "level"): "INFO",
    ("logging", "format"): "text",
    ("logging", "destination"): "auto",
    ("query", "date_field"): "item-date",
}

_SECTION_FIELDS: dict[str, set[str]] = {}
for section, field in _PATH_TO_ENV_KEY:
    _SECTION_FIELDS.setdefault(section, set()).add(field)


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be loaded."""


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    format: str
    destination: str


@dataclass(frozen=True)
class QueryConfig:
    date_field: str


@dataclass(frozen=True)
class AppConfig:
    logging: LoggingConfig
    query: QueryConfig


_CONFIG_CACHE: AppConfig | None = None


def get_config() -> AppConfig:
    """Return a cached configuration using the default sources."""
    global _CONFIG_CACHE
    if _CONFIG_CACHE is None:
        _CONFIG_CACHE = load_config()
    return _CONFIG_CACHE


def load_config(
    *,
    env_file: Path | str | None = None,
    config_file: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load a configuration from `.env`, the personal config file, and environment variables.

    Later sources win; keys absent from every source keep their defaults.
    """
    env_path = _resolve_file(env_file, ENV_FILE_ENV_VAR, DEFAULT_ENV_FILE)
    config_path = _resolve_file(config_file, CONFIG_FILE_ENV_VAR, DEFAULT_CONFIG_FILE)

    merged: dict[str, Any] = {}
    _deep_merge(merged, _env_mapping_to_nested(_parse_env_file(env_path)))
    _deep_merge(merged, _filter_known_sections(_read_config_file(config_path)))
    runtime_values = environ if environ is not None else os.environ
    _deep_merge(merged, _env_mapping_to_nested(runtime_values))
    return _build_app_config(merged)


def doctor(*, env_file: Path | str | None = None, config_file: Path | str | None = None) -> bool:
    """Validate configuration sources and print a diagnostic summary."""
    try:
        config = load_config(env_file=env_file, config_file=config_file)
    except ConfigError as exc:
        print("Configuration invalid:", file=sys.stderr)
        print(f"  {exc}", file=sys.stderr)
        return False

    print("Configuration looks good.", file=sys.stdout)
    print(f"  Log level: {config.logging.level}", file=sys.stdout)
    print(f"  Log format: {config.logging.format}", file=sys.stdout)
    print(f"  Log destination: {config.logging.destination}", file=sys.stdout)
    print(f"  Date field: {config.query.date_field}", file=sys.stdout)
    return True


def _build_app_config(data: Mapping[str, Any]) -> AppConfig:
    values: dict[tuple[str, str], str] = {}
    invalid: list[str] = []
    for path, env_name in _PATH_TO_ENV_KEY.items():
        section_name, key = path
        section = data.get(section_name)
        raw_value = section.get(key) if isinstance(section, Mapping) else None
        if raw_value is None or str(raw_value).strip() == "":
            values[path] = _DEFAULTS[path]
            continue
        normalized = _NORMALIZERS[path](str(raw_value).strip())
        if normalized is None:
            invalid.append(f"{env_name}={raw_value!r}")
            continue
        values[path] = normalized

    if invalid:
        invalid.sort()
        raise ConfigError("Invalid values for " + ", ".join(invalid))

    return AppConfig(
        logging=LoggingConfig(
            level=values[("logging", "level")],
            format=values[("logging", "format")],
            destination=values[("logging", "destination")],
        ),
        query=QueryConfig(date_field=values[("query", "date_field")]),
    )


def _choice(allowed: tuple[str, ...], *, upper: bool = False) -> Callable[[str], str | None]:
    def normalize(value: str) -> str | None:
        candidate = value.upper() if upper else value.lower()
        return candidate if candidate in allowed else None

    return normalize


def _field_name(value: str) -> str | None:
    if ":" in value or any(character.isspace() for character in value):
        return None
    return value


_NORMALIZERS: dict[tuple[str, str], Callable[[str], str | None]] = {
    ("logging", "level"): _choice(LOG_LEVELS, upper=True),
    ("logging", "format"): _choice(LOG_FORMATS),
    ("logging", "destination"): _choice(LOG_DESTINATIONS),
    ("query", "date_field"): _field_name,
}


def _resolve_file(explicit: Path | str | None, env_var: str, default: Path) -> Path:
    if explicit is not None:
        return Path(explicit)
    override = os.environ.get(env_var)
    if override:
        return Path(override)
    return default


def _parse_env_file(path: Path) -> dict[str, str]:
    try:
        contents = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise ConfigError(f"Failed to read env file {path}: {exc}") from exc

    values: dict[str, str] = {}
    for raw_line in contents.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :]
        if "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        values[key.strip()] = _strip_quotes(raw_value.strip())
    return values


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and ((value[0] == value[-1]) and value.startswith(("'", '"'))):
        return value[1:-1]
    return value


def _read_config_file(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError:
        return {}
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid TOML: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc


def _filter_known_sections(raw: Mapping[str, Any]) -> dict[str, Any]:
    filtered: dict[str, Any] = {}
    for section, allowed_fields in _SECTION_FIELDS.items():
        raw_section = raw.get(section)
        if not isinstance(raw_section, Mapping):
            continue
        kept = {name: str(raw_section[name]) for name in allowed_fields if name in raw_section}
        if kept:
            filtered[section] = kept
    return filtered


def _env_mapping_to_nested(mapping: Mapping[str, Any]) -> dict[str, Any]:
    nested: dict[str, Any] = {}
    for key, value in mapping.items():
        path = _ENV_KEY_TO_PATH.get(key)
        if path:
            section, name = path
            nested.setdefault(section, {})[name] = value
    return nested


def _deep_merge(target: MutableMapping[str, Any], data: Mapping[str, Any]) -> None:
    for key, value in data.items():
        if isinstance(value, Mapping):
            child = target.get(key)
            if not isinstance(child, MutableMapping):
                child = {}
                target[key] = child
            _deep_merge(child, value)
        elif value is not None:
            target[key] = value


__all__ = [
    "AppConfig",
    "ConfigError",
    "LOG_DESTINATIONS",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "LoggingConfig",
    "QueryConfig",
    "doctor",
    "get_config",
    "load_config",
]
