"""Runtime settings resolution for the search front end.

Settings are layered, lowest precedence first: built-in defaults, a YAML
config file, ``DOXYSEARCH_*`` environment variables (a ``.env`` file is
honored via python-dotenv) and explicit overrides from the command line.
Validation is strict or lenient: strict mode raises
``ConfigValidationError``, lenient mode logs a warning and keeps the
lower-precedence value.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".doxysearch.yml"
STRICT_ENV_VAR = "DOXYSEARCH_STRICT_CONFIG"

VALID_OUTPUT_FORMATS: tuple[str, ...] = ("text", "json")
VALID_ENGINES: tuple[str, ...] = ("simple", "fuzzy")
MIN_LIMIT = 1
MAX_LIMIT = 1000

# Environment variable -> settings field
ENV_FIELDS: dict[str, str] = {
    "DOXYSEARCH_PATH": "doxygen_path",
    "DOXYSEARCH_CASE_SENSITIVE": "case_sensitive",
    "DOXYSEARCH_EXACT": "exact_match",
    "DOXYSEARCH_LIMIT": "default_limit",
    "DOXYSEARCH_FORMAT": "output_format",
    "DOXYSEARCH_ENGINE": "engine",
    "DOXYSEARCH_FUZZY_THRESHOLD": "fuzzy_threshold",
    "DOXYSEARCH_INCLUDE_PRIVATE": "include_private",
    "DOXYSEARCH_VERBOSE": "verbose",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigValidationError(RuntimeError):
    """Raised when strict configuration validation fails."""


@dataclass
class Settings:
    """Resolved front-end settings."""

    doxygen_path: str = "./xml"
    case_sensitive: bool = False
    exact_match: bool = False
    default_limit: int = 50
    output_format: str = "text"
    engine: str = "simple"
    fuzzy_threshold: float = 0.4
    include_private: bool = False
    verbose: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_FIELD_TYPES: dict[str, type] = {
    "doxygen_path": str,
    "case_sensitive": bool,
    "exact_match": bool,
    "default_limit": int,
    "output_format": str,
    "engine": str,
    "fuzzy_threshold": float,
    "include_private": bool,
    "verbose": bool,
}


def _parse_flag(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"expected a boolean, got {raw!r}")


def _coerce(name: str, raw: Any) -> Any:
    expected = _FIELD_TYPES[name]
    if expected is bool:
        return _parse_flag(raw)
    if expected is int:
        if isinstance(raw, bool):
            raise ValueError(f"expected an integer, got {raw!r}")
        return int(str(raw).strip())
    if expected is float:
        if isinstance(raw, bool):
            raise ValueError(f"expected a number, got {raw!r}")
        return float(str(raw).strip())
    return str(raw)


def _check_range(name: str, value: Any) -> None:
    if name == "output_format" and value not in VALID_OUTPUT_FORMATS:
        raise ValueError(
            f"must be one of {', '.join(VALID_OUTPUT_FORMATS)}, got {value!r}"
        )
    if name == "engine" and value not in VALID_ENGINES:
        raise ValueError(f"must be one of {', '.join(VALID_ENGINES)}, got {value!r}")
    if name == "default_limit" and not MIN_LIMIT <= value <= MAX_LIMIT:
        raise ValueError(f"must be between {MIN_LIMIT} and {MAX_LIMIT}, got {value}")
    if name == "fuzzy_threshold" and not 0.0 <= value <= 1.0:
        raise ValueError(f"must be between 0 and 1, got {value}")


def resolve_strict_config_validation(default: bool = False) -> bool:
    """Resolve strict validation mode from ``DOXYSEARCH_STRICT_CONFIG``."""
    raw = os.getenv(STRICT_ENV_VAR)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def validate_settings_payload(
    payload: Mapping[str, Any],
    source: str,
    strict: bool = False,
) -> dict[str, Any]:
    """Validate and coerce a partial settings mapping.

    Args:
        payload: Raw key/value pairs from one settings source.
        source: Human-readable source name used in messages.
        strict: Raise instead of dropping invalid entries.

    Returns:
        Mapping of valid, coerced settings.

    Raises:
        ConfigValidationError: In strict mode, on the first invalid entry.
    """
    validated: dict[str, Any] = {}
    for name, raw in payload.items():
        if name not in _FIELD_TYPES:
            msg = f"Unknown setting '{name}' in {source}"
            if strict:
                raise ConfigValidationError(msg)
            logger.warning("%s; ignoring", msg)
            continue
        try:
            value = _coerce(name, raw)
            _check_range(name, value)
        except ValueError as exc:
            msg = f"Invalid value for '{name}' in {source}: {exc}"
            if strict:
                raise ConfigValidationError(msg) from exc
            logger.warning("%s; keeping previous value", msg)
            continue
        validated[name] = value
    return validated


def find_config_file(config_path: Optional[str] = None) -> Optional[str]:
    """Locate the config file to load.

    An explicit ``config_path`` must exist. Otherwise the current working
    directory and then the home directory are searched for
    ``.doxysearch.yml``.

    Raises:
        ConfigValidationError: If an explicit path does not exist.
    """
    if config_path:
        if not os.path.isfile(config_path):
            raise ConfigValidationError(f"Config file not found: {config_path}")
        return config_path

    for candidate in (Path.cwd() / CONFIG_FILE_NAME, Path.home() / CONFIG_FILE_NAME):
        if candidate.is_file():
            return str(candidate)
    return None


def load_config_file(config_path: str, strict: bool = False) -> dict[str, Any]:
    """Load a YAML config file.

    In non-strict mode read/parse failures produce an empty mapping.
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            payload = yaml.safe_load(f)
    except OSError as exc:
        msg = f"Cannot read config file {config_path}: {exc}"
        if strict:
            raise ConfigValidationError(msg) from exc
        logger.warning("%s; continuing with defaults", msg)
        return {}
    except yaml.YAMLError as exc:
        msg = f"Failed to parse config YAML at {config_path}: {exc}"
        if strict:
            raise ConfigValidationError(msg) from exc
        logger.warning("%s; continuing with defaults", msg)
        return {}

    if payload is None:
        return {}

    if not isinstance(payload, dict):
        msg = f"Config file {config_path} must contain a mapping, got {type(payload).__name__}"
        if strict:
            raise ConfigValidationError(msg)
        logger.warning("%s; continuing with defaults", msg)
        return {}

    return payload


def _environment_payload() -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for env_name, field_name in ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip():
            payload[field_name] = raw
    return payload


def resolve_settings(
    config_path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    strict: Optional[bool] = None,
) -> Settings:
    """Resolve settings from defaults, config file, environment and overrides.

    Overrides with a ``None`` value are treated as not given. Overrides are
    always validated strictly since they come straight from the caller.

    Raises:
        ConfigValidationError: On invalid overrides, a missing explicit config
            file, or (in strict mode) any invalid setting.
    """
    if strict is None:
        strict = resolve_strict_config_validation()

    load_dotenv()

    merged: dict[str, Any] = {}
    path = find_config_file(config_path)
    if path is not None:
        logger.debug("Loading config file %s", path)
        merged.update(
            validate_settings_payload(load_config_file(path, strict=strict), path, strict)
        )

    merged.update(validate_settings_payload(_environment_payload(), "environment", strict))

    if overrides:
        given = {k: v for k, v in overrides.items() if v is not None}
        merged.update(validate_settings_payload(given, "command line", strict=True))

    return Settings(**merged)
