"""
Configuration module.

This module defines two layers of configuration:
- Config: process-wide settings loaded from environment variables (and a
  `.env` file when present), such as logging and default client options.
- ClientOptions: the per-client options accepted by WebSocketClient. Its
  defaults come from Config so deployments can tune clients through the
  environment without code changes.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import load_dotenv

from resilient_ws.exceptions import ConfigurationError

load_dotenv()


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}.", original_error=e
        ) from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}.")


class Config:
    """
    Centralized configuration settings for the package.

    Values are read once at import time. The WS_* settings are only defaults
    for ClientOptions; explicit options passed in code always win.
    """

    BASE_DIR: Path = Path(os.getenv("RESILIENT_WS_HOME", Path.cwd()))

    # --- Connection ---
    WS_SERVER_URL: Optional[str] = os.getenv("WS_SERVER_URL")
    DEFAULT_ORIGIN: str = os.getenv("WS_DEFAULT_ORIGIN", "https://web.whatsapp.com")

    # --- Reconnection ---
    MAX_RECONNECT_ATTEMPTS: int = _env_int("WS_MAX_RECONNECT_ATTEMPTS", 5)
    RECONNECT_DELAY_MS: int = _env_int("WS_RECONNECT_DELAY_MS", 1000)
    MAX_RECONNECT_DELAY_MS: int = _env_int("WS_MAX_RECONNECT_DELAY_MS", 30000)
    CONNECT_TIMEOUT_MS: Optional[int] = _env_int("WS_CONNECT_TIMEOUT_MS", None)

    # --- Outbound queue ---
    QUEUE_MESSAGES: bool = _env_bool("WS_QUEUE_MESSAGES", False)
    MAX_QUEUE_SIZE: int = _env_int("WS_MAX_QUEUE_SIZE", 100)

    # --- Heartbeat ---
    HEARTBEAT_INTERVAL_MS: Optional[int] = _env_int("WS_HEARTBEAT_INTERVAL_MS", None)
    HEARTBEAT_TIMEOUT_MS: int = _env_int("WS_HEARTBEAT_TIMEOUT_MS", 30000)
    HEALTHY_WINDOW_MS: int = 60000  # Stats report healthy within this window

    # --- Logging Configuration ---
    LOG_LEVEL: Union[int, str] = os.getenv("LOG_LEVEL", logging.INFO)
    LOG_DIR: Path = BASE_DIR / "logs"
    LOG_FILE_NAME: str = "resilient_ws.log"
    LOG_MAX_SIZE: int = 5 * 1024 * 1024  # Bytes before rotation
    LOG_BACKUP_COUNT: int = 3

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values.

        Called automatically when the module is imported.

        Raises:
            ConfigurationError: If a configuration value is invalid.
        """
        if isinstance(cls.LOG_LEVEL, str):
            if not isinstance(logging.getLevelName(cls.LOG_LEVEL.upper()), int):
                raise ConfigurationError(
                    f"Invalid log level string from Config: '{cls.LOG_LEVEL}'"
                )
        elif not isinstance(cls.LOG_LEVEL, int):
            raise ConfigurationError(
                f"LOG_LEVEL must be a str or int, but got {type(cls.LOG_LEVEL).__name__}."
            )

        if cls.MAX_RECONNECT_ATTEMPTS < 0:
            raise ConfigurationError("WS_MAX_RECONNECT_ATTEMPTS must be >= 0.")
        if cls.RECONNECT_DELAY_MS < 0 or cls.MAX_RECONNECT_DELAY_MS < 0:
            raise ConfigurationError("Reconnect delays must be >= 0.")
        if cls.MAX_QUEUE_SIZE < 0:
            raise ConfigurationError("WS_MAX_QUEUE_SIZE must be >= 0.")
        for name in ("CONNECT_TIMEOUT_MS", "HEARTBEAT_INTERVAL_MS"):
            value = getattr(cls, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be positive when set.")
        if cls.HEARTBEAT_TIMEOUT_MS <= 0:
            raise ConfigurationError("WS_HEARTBEAT_TIMEOUT_MS must be positive.")


Config.validate()  # Validate configuration on import


@dataclass
class ClientOptions:
    """
    Options recognized by WebSocketClient.

    All durations are in milliseconds. `headers` are merged over the default
    Origin header when a socket is created.
    """

    max_reconnect_attempts: int = Config.MAX_RECONNECT_ATTEMPTS
    reconnect_delay: int = Config.RECONNECT_DELAY_MS
    max_reconnect_delay: int = Config.MAX_RECONNECT_DELAY_MS
    max_queue_size: int = Config.MAX_QUEUE_SIZE
    queue_messages: bool = Config.QUEUE_MESSAGES
    connect_timeout_ms: Optional[int] = Config.CONNECT_TIMEOUT_MS
    heartbeat_interval: Optional[int] = Config.HEARTBEAT_INTERVAL_MS
    heartbeat_timeout: int = Config.HEARTBEAT_TIMEOUT_MS
    headers: Dict[str, str] = field(default_factory=dict)
    default_origin: str = Config.DEFAULT_ORIGIN

    def __post_init__(self) -> None:
        for name in (
            "max_reconnect_attempts",
            "reconnect_delay",
            "max_reconnect_delay",
            "max_queue_size",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigurationError(
                    f"{name} must be a non-negative int, got {value!r}."
                )
        for name in ("connect_timeout_ms", "heartbeat_interval"):
            value = getattr(self, name)
            if value is not None and (
                not isinstance(value, (int, float)) or value <= 0
            ):
                raise ConfigurationError(
                    f"{name} must be a positive number or None, got {value!r}."
                )
        if not isinstance(self.heartbeat_timeout, (int, float)) or self.heartbeat_timeout <= 0:
            raise ConfigurationError(
                f"heartbeat_timeout must be positive, got {self.heartbeat_timeout!r}."
            )
        if not isinstance(self.headers, dict):
            raise ConfigurationError("headers must be a dict of header names to values.")

    @classmethod
    def from_config(cls, **overrides) -> "ClientOptions":
        """Build options from Config, applying keyword overrides on top."""
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(f"Unknown client options: {sorted(unknown)}")
        return cls(**overrides)

    def merged_headers(self) -> Dict[str, str]:
        """Headers for a new socket: the default Origin overlaid by `headers`."""
        return {"Origin": self.default_origin, **self.headers}
