"""
Runtime settings, read from the environment and optional YAML files.
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "XSTATE_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"{name}: expected a boolean, got {value!r}")


def _parse_int(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name}: expected an integer, got {value!r}") from e
    if number < 0:
        raise ValueError(f"{name}: must not be negative, got {number}")
    return number


def _parse_level(name: str, value: Any) -> str:
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"{name}: unknown log level {value!r}")
    return level


_PARSERS = {
    "history_limit": _parse_int,
    "metrics_enabled": _parse_bool,
    "log_level": _parse_level,
}


@dataclass(frozen=True)
class Settings:
    """Interpreter and CLI settings"""
    history_limit: int = 20
    metrics_enabled: bool = True
    log_level: str = "INFO"

    def merged(self, values: Mapping[str, Any], source: str) -> "Settings":
        """Copy with ``values`` applied; unknown keys are ignored with a warning"""
        changes: Dict[str, Any] = {}
        known = {f.name for f in fields(self)}

        for key, value in values.items():
            if key not in known:
                logger.warning(f"Ignoring unknown setting {key!r} from {source}")
                continue
            changes[key] = _PARSERS[key](f"{source}:{key}", value)

        return replace(self, **changes)

    @classmethod
    def from_env(cls, base: Optional["Settings"] = None,
                 environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Apply XSTATE_* environment variables on top of ``base``"""
        environ = os.environ if environ is None else environ
        base = base or cls()

        values = {}
        for f in fields(cls):
            env_name = ENV_PREFIX + f.name.upper()
            if env_name in environ:
                values[f.name] = environ[env_name]

        return base.merged(values, "environment")

    @classmethod
    def from_file(cls, config_file: Union[str, Path],
                  base: Optional["Settings"] = None) -> "Settings":
        """Apply settings from a YAML mapping on top of ``base``"""
        config_file = Path(config_file)

        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValueError(f"{config_file}: settings file must contain a mapping")

        return (base or cls()).merged(data, str(config_file))

    @classmethod
    def load(cls, config_file: Optional[Union[str, Path]] = None,
             environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Defaults, then the YAML file if given, then the environment"""
        settings = cls()
        if config_file is not None:
            settings = cls.from_file(config_file, settings)
        return cls.from_env(settings, environ)
