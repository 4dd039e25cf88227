"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: get_config(), ConfigModule.get(), ConfigModule.get_config_schema()
Hidden: Config sources, validation logic, environment parsing

Timing policy (room lifetime, inactivity, grace period, sweep and keep-alive
intervals) lives here so deployments can tune it without code changes.
"""

import os
from typing import Any, Dict


# Configuration Contract: Required and Optional Keys
# This defines the black box interface - what the config module guarantees to provide

REQUIRED_CONFIG_KEYS = {
    "redis_host": "Redis server hostname",
    "redis_port": "Redis server port number",
    "redis_db": "Redis database number",
    "host": "API server bind address",
    "port": "API server port",
    "log_level": "Logging level (DEBUG, INFO, WARNING, ERROR)",
    "environment": "Deployment environment (development, production)",
    "room_ttl": "Room lifetime in seconds, set once at creation",
    "inactivity_timeout": "Seconds without activity before a member is evicted",
    "empty_room_grace_period": "Minimum age in seconds before an empty room is deleted",
    "cleanup_interval": "Seconds between reaper sweeps",
    "keepalive_interval": "Seconds between keep-alive pings on event streams",
    "session_cookie_name": "Name of the session cookie",
    "session_max_age": "Session cookie lifetime in seconds",
    "rate_limit_window": "Rate limit window in seconds",
    "rate_limit_max_requests": "Maximum requests per client per window",
    "max_body_size": "Maximum accepted request body in bytes",
}

OPTIONAL_CONFIG_KEYS = {
    "redis_password": {
        "description": "Redis authentication password",
        "default": None,
    },
    "redis_url": {
        "description": "Full Redis URL (overrides host, port and db)",
        "default": None,
    },
    "debug": {
        "description": "Enable debug mode (uvicorn reload)",
        "default": False,
    },
}


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


class ConfigModule:
    """Configuration management module."""

    def __init__(self):
        """Initialize with environment variables."""
        self._config = self._load_from_env()
        self._validate_required_keys()

    def _validate_required_keys(self) -> None:
        """
        Validate that all required configuration keys are present.

        Raises:
            ValueError: If required keys are missing
        """
        missing_keys = []
        for key in REQUIRED_CONFIG_KEYS:
            if key not in self._config or self._config[key] is None:
                missing_keys.append(key)

        if missing_keys:
            raise ValueError(
                f"Missing required configuration keys: {', '.join(missing_keys)}. "
                f"Check environment variables and deployment configuration."
            )

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment."""
        # Parse Redis port (might be in tcp://host:port format from K8s)
        redis_port_env = os.getenv("REDIS_PORT", "6379")
        if redis_port_env.startswith("tcp://"):
            redis_port = int(redis_port_env.split(":")[-1])
        else:
            redis_port = int(redis_port_env)

        return {
            # Redis settings
            "redis_host": os.getenv("REDIS_HOST", "localhost"),
            "redis_port": redis_port,
            "redis_db": _int_env("REDIS_DB", "0"),
            "redis_password": os.getenv("REDIS_PASSWORD"),
            "redis_url": os.getenv("REDIS_URL"),
            # API settings
            "host": os.getenv("API_HOST", "0.0.0.0"),
            "port": _int_env("API_PORT", "3001"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "debug": os.getenv("DEBUG", "false").lower() == "true",
            "environment": os.getenv("ENVIRONMENT", "development"),
            # Room lifecycle policy
            "room_ttl": _int_env("ROOM_TTL", "7200"),
            "inactivity_timeout": _int_env("INACTIVITY_TIMEOUT", "300"),
            "empty_room_grace_period": _int_env("EMPTY_ROOM_GRACE_PERIOD", "300"),
            "cleanup_interval": _int_env("CLEANUP_INTERVAL", "60"),
            "keepalive_interval": _int_env("KEEPALIVE_INTERVAL", "30"),
            # Session cookie
            "session_cookie_name": os.getenv("SESSION_COOKIE_NAME", "session_id"),
            "session_max_age": _int_env("SESSION_MAX_AGE", "7200"),
            # Request gate
            "rate_limit_window": _int_env("RATE_LIMIT_WINDOW", "60"),
            "rate_limit_max_requests": _int_env("RATE_LIMIT_MAX_REQUESTS", "60"),
            "max_body_size": _int_env("MAX_BODY_SIZE", "1024"),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self._config[key] = value

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return self._config.copy()

    @property
    def is_production(self) -> bool:
        return self._config["environment"] == "production"

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """
        Get the configuration schema (contract) for this module.

        Returns:
            Dictionary with 'required' and 'optional' key specifications

        Example:
            >>> schema = ConfigModule.get_config_schema()
            >>> print(schema['required']['room_ttl'])
            'Room lifetime in seconds, set once at creation'
        """
        return {
            "required": REQUIRED_CONFIG_KEYS.copy(),
            "optional": OPTIONAL_CONFIG_KEYS.copy(),
        }


# Singleton instance
_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["get_config", "ConfigModule", "REQUIRED_CONFIG_KEYS", "OPTIONAL_CONFIG_KEYS"]
