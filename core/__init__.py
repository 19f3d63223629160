"""Core shared contracts and utilities."""

from core.scope import (
    SCOPE_SEPARATOR,
    is_within_scope,
    normalize_qualified_name,
    parent_scope,
    simple_name,
)
from core.structured_logging import (
    configure_structured_logging,
    get_phase,
    get_run_id,
    phase_scope,
    phase_timings,
    set_run_id,
)
from core.settings import (
    ConfigValidationError,
    Settings,
    find_config_file,
    load_config_file,
    resolve_settings,
    resolve_strict_config_validation,
    validate_settings_payload,
)
from core.run_artifacts import write_run_report

__all__ = [
    "SCOPE_SEPARATOR",
    "is_within_scope",
    "normalize_qualified_name",
    "parent_scope",
    "simple_name",
    "configure_structured_logging",
    "get_phase",
    "get_run_id",
    "phase_scope",
    "phase_timings",
    "set_run_id",
    "ConfigValidationError",
    "Settings",
    "find_config_file",
    "load_config_file",
    "resolve_settings",
    "resolve_strict_config_validation",
    "validate_settings_payload",
    "write_run_report",
]
