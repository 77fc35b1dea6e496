"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional
from .models import FleetCheckConfig
from .settings import Settings


class ConfigLoader:
    """Load and validate fleet health-check configuration."""

    @staticmethod
    def load_from_file(config_path: str) -> FleetCheckConfig:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            FleetCheckConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
        """
        return FleetCheckConfig(**ConfigLoader._read_file(config_path))

    @staticmethod
    def load(
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> FleetCheckConfig:
        """
        Build the run configuration from file, environment and CLI values.

        Later sources win: YAML file, then environment, then overrides.
        Override values of None are ignored so unset CLI flags keep the
        lower-precedence value.

        Args:
            config_path: Optional path to YAML configuration file
            overrides: Section -> key -> value mapping, usually from the CLI

        Returns:
            FleetCheckConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config_path is given but missing
            pydantic.ValidationError: If the merged configuration is invalid
        """
        raw_config: Dict[str, Any] = {}
        if config_path:
            raw_config = ConfigLoader._read_file(config_path)

        raw_config = ConfigLoader._merge(raw_config, Settings.overrides())
        raw_config = ConfigLoader._merge(raw_config, overrides or {})

        # The token is required, let validation report it when absent
        raw_config.setdefault("directory", {}).setdefault("token", "")

        return FleetCheckConfig(**raw_config)

    @staticmethod
    def _read_file(config_path: str) -> Dict[str, Any]:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration root must be a mapping: {config_path}")

        return ConfigLoader._substitute_env_vars(raw_config)

    @staticmethod
    def _merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge updates into a copy of base, skipping None values."""
        merged = dict(base)
        for key, value in updates.items():
            if value is None:
                continue
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = ConfigLoader._merge(merged[key], value)
            elif isinstance(value, dict):
                merged[key] = ConfigLoader._merge({}, value)
            else:
                merged[key] = value
        return merged

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            pattern = r'\$\{(\w+)\}'
            return re.sub(pattern, lambda m: os.getenv(m.group(1), ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj
