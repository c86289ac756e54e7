"""
PixelSocket Configuration
=========================

This module handles configuration loading for the PixelSocket client.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. pixel_socket.yaml / config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    PIXEL_SOCKET_URL                    -> client.url
    PIXEL_SOCKET_SAVE_DIR               -> client.save_directory
    PIXEL_SOCKET_SAVE_IMAGES            -> client.save_images
    PIXEL_SOCKET_AUTO_RECONNECT         -> client.auto_reconnect
    PIXEL_SOCKET_RECONNECT_DELAY_MS     -> client.reconnect_delay_ms
    PIXEL_SOCKET_MAX_RECONNECT_ATTEMPTS -> client.max_reconnect_attempts
    PIXEL_SOCKET_LOG_LEVEL              -> logging.level
    PIXEL_SOCKET_LOG_FORMAT             -> logging.format

Example:
    from pixel_socket.config import load_config, setup_logging

    settings = load_config()
    setup_logging(settings)
    print(settings.client.url)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from pixel_socket.models.state import ReconnectPolicy


logger = logging.getLogger(__name__)


DEFAULT_URL = "ws://localhost:8188/ws"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# =============================================================================
# Configuration Models
# =============================================================================

class ClientConfig(BaseModel):
    """Connection and delivery configuration for one client."""

    url: str = Field(
        ...,
        min_length=1,
        description="WebSocket URL of the image server",
    )
    save_directory: str = Field(
        default="./received_images",
        description="Directory received images are written to",
    )
    save_images: bool = Field(
        default=True,
        description="Write every received image to save_directory",
    )
    auto_reconnect: bool = Field(
        default=True,
        description="Reconnect automatically after connection loss",
    )
    reconnect_delay_ms: int = Field(
        default=5000,
        ge=0,
        description="Fixed delay in milliseconds before each reconnect attempt",
    )
    max_reconnect_attempts: int = Field(
        default=10,
        ge=0,
        description="Consecutive reconnect attempts before giving up",
    )
    ping_interval_seconds: Optional[float] = Field(
        default=20.0,
        gt=0,
        description="Keepalive ping interval (None disables pings)",
    )
    ping_timeout_seconds: Optional[float] = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for a pong",
    )
    open_timeout_seconds: Optional[float] = Field(
        default=10.0,
        gt=0,
        description="Seconds allowed for the opening handshake",
    )
    max_message_bytes: Optional[int] = Field(
        default=32 * 1024 * 1024,
        ge=1,
        description="Largest accepted message (None = unlimited)",
    )

    def reconnect_policy(self) -> ReconnectPolicy:
        """Build the immutable reconnect policy."""
        return ReconnectPolicy(
            enabled=self.auto_reconnect,
            delay_ms=self.reconnect_delay_ms,
            max_attempts=self.max_reconnect_attempts,
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for PixelSocket.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    client: ClientConfig = Field(
        default_factory=lambda: ClientConfig(url=DEFAULT_URL)
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to a YAML file. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("pixel_socket.yaml"),
            Path("pixel_socket.yml"),
            Path("config.yaml"),
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    elif config_path:
        logger.warning(f"Config file not found: {config_path}")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # A file that only tweaks reconnect settings still gets the default URL
    client_data = config_data.get("client")
    if isinstance(client_data, dict):
        client_data.setdefault("url", DEFAULT_URL)

    return Settings.model_validate(config_data)


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Client settings
    if env_url := os.environ.get("PIXEL_SOCKET_URL"):
        config_data.setdefault("client", {})["url"] = env_url
    if env_dir := os.environ.get("PIXEL_SOCKET_SAVE_DIR"):
        config_data.setdefault("client", {})["save_directory"] = env_dir
    if env_save := os.environ.get("PIXEL_SOCKET_SAVE_IMAGES"):
        config_data.setdefault("client", {})["save_images"] = _parse_bool(
            "PIXEL_SOCKET_SAVE_IMAGES", env_save
        )
    if env_auto := os.environ.get("PIXEL_SOCKET_AUTO_RECONNECT"):
        config_data.setdefault("client", {})["auto_reconnect"] = _parse_bool(
            "PIXEL_SOCKET_AUTO_RECONNECT", env_auto
        )
    if env_delay := os.environ.get("PIXEL_SOCKET_RECONNECT_DELAY_MS"):
        config_data.setdefault("client", {})["reconnect_delay_ms"] = int(env_delay)
    if env_max := os.environ.get("PIXEL_SOCKET_MAX_RECONNECT_ATTEMPTS"):
        config_data.setdefault("client", {})["max_reconnect_attempts"] = int(env_max)

    # Logging settings
    if env_log := os.environ.get("PIXEL_SOCKET_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_fmt := os.environ.get("PIXEL_SOCKET_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_fmt


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
