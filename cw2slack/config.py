"""
Configuration for cw2slack.

Configuration is read once at startup from a file in the per-user
application directory:

    $HOME/.config/cw2slack/config.toml

The format is picked from the file suffix (TOML, YAML or JSON). Example:

    access_token = "..."
    webhook_endpoint = "https://hooks.slack.com/services/..."
    default_channel = "#general"

    [mappings.engineering]
    room = "123"
    channel = "#eng"

Environment variables:
    HOME: Locates the configuration directory
    CW2SLACK_LOG_LEVEL: Overrides log_level (DEBUG, INFO, WARNING, ERROR)
"""

import os
import json
import logging
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple

import yaml

from cw2slack.errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "cw2slack"
CONFIG_FILE_NAME = "config.toml"

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Key names used by earlier releases -> current key names
LEGACY_KEYS = {
    "chatwork_token": "access_token",
    "slack_endpoint": "webhook_endpoint",
    "slack_channel": "default_channel",
    "Mappings": "mappings",
}

# Mapping entry keys of earlier releases were matched case-insensitively
MAPPING_KEYS = {
    "Room": "room",
    "ROOM": "room",
    "Channel": "channel",
    "CHANNEL": "channel",
}


def _rename_keys(data: Dict[str, Any], aliases: Dict[str, str], where: str) -> Dict[str, Any]:
    """Rename alias keys, refusing data that sets a key under two names."""
    renamed: Dict[str, Any] = {}
    sources: Dict[str, str] = {}
    for key, value in data.items():
        target = aliases.get(key, key)
        if target in renamed:
            raise ValueError(
                f"{where} sets '{target}' twice (as '{sources[target]}' and '{key}')"
            )
        renamed[target] = value
        sources[target] = key
    return renamed


def default_config_path() -> Path:
    """Return the configuration file location derived from $HOME."""
    home = os.environ.get("HOME") or str(Path.home())
    return Path(home) / ".config" / APP_NAME / CONFIG_FILE_NAME


@dataclass(frozen=True)
class MappingEntry:
    """Routes messages of one ChatWork room to a Slack channel."""

    name: str
    room: str
    channel: str

    @property
    def room_id(self) -> Optional[int]:
        """Room identifier as an integer, or None if it is not numeric."""
        try:
            return int(self.room.strip())
        except (ValueError, AttributeError):
            return None


@dataclass(frozen=True)
class Config:
    """
    cw2slack configuration.

    Instances are immutable; build them with ``load`` or ``from_dict``.
    """

    access_token: str = ""
    webhook_endpoint: str = ""
    default_channel: str = ""
    mappings: Tuple[MappingEntry, ...] = field(default_factory=tuple)

    # Transport
    timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT

    @classmethod
    def from_file(cls, path: str) -> "Config":
        """Load configuration from a TOML, YAML or JSON file."""
        file_path = Path(path)

        if not file_path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            if file_path.suffix in [".yaml", ".yml"]:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            elif file_path.suffix == ".json":
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            else:
                with open(file_path, "rb") as f:
                    data = tomllib.load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {path}: {e}") from e
        except (tomllib.TOMLDecodeError, yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"Malformed configuration file {path}: {e}") from e

        try:
            return cls.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create configuration from a dictionary."""
        if not isinstance(data, dict):
            raise TypeError(f"Expected dict, got {type(data).__name__}")

        data = _rename_keys(data, LEGACY_KEYS, "config")

        _FIELD_TYPES: Dict[str, Any] = {
            "access_token": str,
            "webhook_endpoint": str,
            "default_channel": str,
            "timeout_seconds": (int, float),
            "log_level": str,
            "log_format": str,
        }

        kwargs: Dict[str, Any] = {}
        for field_name, expected_type in _FIELD_TYPES.items():
            if field_name in data:
                value = data[field_name]
                if value is not None and not isinstance(value, expected_type):
                    raise TypeError(
                        f"Config field '{field_name}' expected {expected_type}, "
                        f"got {type(value).__name__}"
                    )
                if value is not None:
                    kwargs[field_name] = value

        if "timeout_seconds" in kwargs:
            kwargs["timeout_seconds"] = float(kwargs["timeout_seconds"])

        mappings = data.get("mappings") or {}
        if not isinstance(mappings, dict):
            raise TypeError(
                f"Config field 'mappings' expected a table, got {type(mappings).__name__}"
            )

        entries = []
        for name, entry in mappings.items():
            if not isinstance(entry, dict):
                raise TypeError(f"Mapping '{name}' expected a table, got {type(entry).__name__}")
            entry = _rename_keys(entry, MAPPING_KEYS, f"mapping '{name}'")
            room = entry.get("room", "")
            channel = entry.get("channel", "")
            # YAML and JSON may carry the room id as a number
            if isinstance(room, int) and not isinstance(room, bool):
                room = str(room)
            if not isinstance(room, str) or not isinstance(channel, str):
                raise TypeError(f"Mapping '{name}' room and channel must be strings")
            entries.append(MappingEntry(name=str(name), room=room, channel=channel))

        kwargs["mappings"] = tuple(entries)
        return cls(**kwargs)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """
        Load and validate configuration.

        1. Read the file (default location when no path is given)
        2. Apply CW2SLACK_LOG_LEVEL from the environment
        3. Validate, raising ConfigError on any problem
        """
        path = config_path or str(default_config_path())
        config = cls.from_file(path)

        log_level = os.environ.get("CW2SLACK_LOG_LEVEL")
        if log_level:
            config = replace(config, log_level=log_level)

        errors = config.validate()
        if errors:
            raise ConfigError(
                f"Invalid configuration in {path}: " + "; ".join(errors)
            )

        logger.debug(f"Loaded configuration from {path}: {config.to_dict()}")
        return config

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.access_token:
            errors.append("access_token is required")

        if not self.webhook_endpoint:
            errors.append("webhook_endpoint is required")
        elif not self.webhook_endpoint.startswith(("http://", "https://")):
            errors.append("webhook_endpoint must be an http:// or https:// URL")

        if not self.default_channel:
            errors.append("default_channel is required")

        if self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")

        if self.log_level.upper() not in logging.getLevelNamesMapping():
            errors.append(
                f"log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL, "
                f"got '{self.log_level}'"
            )

        seen: Dict[int, str] = {}
        for entry in self.mappings:
            if not entry.room:
                errors.append(f"mapping '{entry.name}' is missing room")
                continue
            if not entry.channel:
                errors.append(f"mapping '{entry.name}' is missing channel")
            room_id = entry.room_id
            if room_id is None:
                errors.append(f"mapping '{entry.name}' room must be an integer, got '{entry.room}'")
                continue
            if room_id in seen:
                errors.append(
                    f"mapping '{entry.name}' duplicates room {room_id} "
                    f"already mapped by '{seen[room_id]}'"
                )
            else:
                seen[room_id] = entry.name

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary (excluding the access token)."""
        return {
            "has_webhook_endpoint": bool(self.webhook_endpoint),
            "default_channel": self.default_channel,
            "mappings": {
                entry.name: {"room": entry.room, "channel": entry.channel}
                for entry in self.mappings
            },
            "timeout_seconds": self.timeout_seconds,
            "log_level": self.log_level,
            "has_access_token": bool(self.access_token),
        }
