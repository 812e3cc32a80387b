"""Layered configuration: built-in defaults, then an optional YAML file,
then command line overrides. Files are checked against the packaged yamale
schema before they are merged."""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path

import yaml
import yamale # type: ignore

from typing import Any, Dict, List, Optional

from startupflame.errors import ConfigurationError, ConfigurationFileError

rootLogger = logging.getLogger()

SCHEMA_PATH = Path(__file__).parent / "schemas" / "config-schema.yaml"

DEFAULT_EVENT_TYPE = "startupflame.ComponentEvent"
DEFAULT_LABEL_FIELD = "Component-Name"

DEFAULTS: Dict[str, Any] = {
    "collector": {
        "event_type": DEFAULT_EVENT_TYPE,
        "label_field": DEFAULT_LABEL_FIELD,
    },
}


def setting(args: Dict[str, Any], name: str, default: str) -> str:
    value = args.get(name)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigurationError(f"collector.{name} must be a string, got {type(value).__name__}")
    return value


@dataclass
class CollectorConfig:
    event_type: str
    label_field: str

    def __init__(self, args: Dict[str, Any]) -> None:
        # a key left empty in YAML loads as None and means "use the default"
        self.event_type = setting(args, "event_type", DEFAULT_EVENT_TYPE)
        self.label_field = setting(args, "label_field", DEFAULT_LABEL_FIELD)
        if not self.label_field:
            raise ConfigurationError("collector.label_field must not be empty")


@dataclass
class FlameConfig:
    collector: CollectorConfig

    def __init__(self, args: Optional[Dict[str, Any]] = None) -> None:
        args = args if args is not None else DEFAULTS
        self.collector = CollectorConfig(args.get("collector") or {})


def deep_merge(a: dict, b: dict) -> dict:
    """Return a copy of ``a`` with ``b`` merged over it, recursing into nested dicts."""
    result = deepcopy(a)
    for key, value in b.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)
    return result


def validate_config(data: Dict[str, Any], source: str) -> List[str]:
    """Check parsed configuration against the packaged schema.

    Args:
        data: parsed YAML mapping
        source: where ``data`` came from, used in error messages

    Returns:
        All schema mismatches, empty if ``data`` is valid
    """
    schema = yamale.make_schema(str(SCHEMA_PATH))
    try:
        yamale.validate(schema, [(data, source)])
    except yamale.YamaleError as e:
        all_errors: List[str] = []
        for result in e.results:
            all_errors.extend(result.errors)
        return all_errors
    return []


def read_config_file(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        rootLogger.debug(f"Configuration file {path} is empty, using defaults")
        return {}
    if not isinstance(data, dict):
        raise ConfigurationFileError(path, [f"expected a mapping at the top level, got {type(data).__name__}"])

    errors = validate_config(data, path)
    if errors:
        raise ConfigurationFileError(path, errors)
    return data


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> FlameConfig:
    """Build the effective configuration.

    Args:
        path: optional YAML configuration file
        overrides: values that take precedence over the file, e.g. from the command line

    Returns:
        The merged FlameConfig

    Raises:
        ConfigurationFileError: the file is not valid YAML or does not match the schema
        OSError: the file could not be read
    """
    merged = DEFAULTS
    if path is not None:
        try:
            merged = deep_merge(merged, read_config_file(path))
        except yaml.YAMLError as e:
            raise ConfigurationFileError(path, [str(e)])
    if overrides:
        merged = deep_merge(merged, overrides)

    rootLogger.debug(f"Effective configuration: {merged}")
    return FlameConfig(merged)
