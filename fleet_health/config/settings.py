"""Environment settings."""

import os
from typing import Any, Dict, Optional


class Settings:
    """Application settings from environment variables."""

    # Environment variable -> (section, key) in the configuration tree
    ENV_OVERRIDES = {
        "FLEET_HEALTH_TOKEN": ("directory", "token"),
        "FLEET_HEALTH_CLIENT_ID": ("directory", "client_id"),
        "FLEET_HEALTH_JOLOKIA_URL": ("metrics_proxy", "url"),
        "LOG_LEVEL": ("logging", "level"),
    }

    @staticmethod
    def get(key: str, default: Optional[str] = None) -> str:
        """
        Get environment variable value.

        Required values such as the token are enforced by the configuration
        models, not here.

        Args:
            key: Environment variable name
            default: Default value if not set

        Returns:
            str: Environment variable value, empty when unset
        """
        return os.getenv(key, default) or ""

    @classmethod
    def overrides(cls) -> Dict[str, Dict[str, Any]]:
        """
        Collect configuration values supplied through the environment.

        Returns:
            dict: Nested section -> key -> value mapping of set variables
        """
        result: Dict[str, Dict[str, Any]] = {}
        for env_name, (section, key) in cls.ENV_OVERRIDES.items():
            value = cls.get(env_name)
            if value:
                result.setdefault(section, {})[key] = value
        return result
