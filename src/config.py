"""
Configuration management for stack reconciliation.

Settings come from built-in defaults, an optional YAML file, the standard
AWS environment variables and explicit overrides, in increasing precedence.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema
import yaml

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "aws_region": {"type": "string", "minLength": 1},
        "aws_profile": {"type": ["string", "null"]},
        "endpoint_url": {"type": ["string", "null"]},
        "waiter_delay": {"type": ["integer", "null"], "minimum": 1},
        "waiter_max_attempts": {"type": ["integer", "null"], "minimum": 1},
        "dry_run": {"type": "boolean"},
        "dry_run_dir": {"type": ["string", "null"]},
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
    },
}


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded or is invalid."""

    pass


@dataclass
class ReconcilerConfig:
    """Settings shared by the stack and pipeline managers."""

    # AWS connection
    aws_region: str = "us-east-1"
    aws_profile: Optional[str] = None
    endpoint_url: Optional[str] = None

    # Waiter polling, None keeps the botocore defaults
    waiter_delay: Optional[int] = None
    waiter_max_attempts: Optional[int] = None

    # Dry run writes the template out instead of submitting it
    dry_run: bool = False
    dry_run_dir: Optional[str] = None

    log_level: str = "INFO"

    def waiter_config(self) -> Optional[Dict[str, int]]:
        """Build the botocore WaiterConfig, or None if nothing is set."""
        config = {}
        if self.waiter_delay is not None:
            config["Delay"] = self.waiter_delay
        if self.waiter_max_attempts is not None:
            config["MaxAttempts"] = self.waiter_max_attempts
        return config or None

    def get_dry_run_path(self, stack_name: str) -> Path:
        """Get the file a dry run writes the template for a stack to."""
        directory = self.dry_run_dir or tempfile.gettempdir()
        return Path(directory) / f"{stack_name}.yml"

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReconcilerConfig":
        """Create config from dictionary."""
        return cls(**data)


def validate_config(data: Dict[str, Any]) -> None:
    """Validate raw configuration data against the schema."""
    try:
        jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e.message}") from e


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    region = os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")
    if region:
        overrides["aws_region"] = region
    profile = os.environ.get("AWS_PROFILE")
    if profile:
        overrides["aws_profile"] = profile
    return overrides


def load_config(
    config_file: Optional[Union[str, Path]] = None, **overrides: Any
) -> ReconcilerConfig:
    """
    Load configuration.

    Args:
        config_file: Optional YAML file with ReconcilerConfig fields
        **overrides: Field values that win over the file and environment;
            None values are ignored

    Returns:
        The merged configuration
    """
    data: Dict[str, Any] = {}

    if config_file is not None:
        path = Path(config_file)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

    data.update(_env_overrides())
    data.update({k: v for k, v in overrides.items() if v is not None})

    validate_config(data)
    return ReconcilerConfig.from_dict(data)

