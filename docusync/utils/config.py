"""Configuration loader and validator for DocuSync.

Loads settings from configs/config.yaml and provides typed access
to all configuration sections via dataclasses.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "configs" / "config.yaml"

_DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class APIConfig:
    """Configuration for the Gemini generateContent endpoint."""

    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-2.5-flash-preview-05-20"
    api_key_env: str = "GEMINI_API_KEY"
    timeout: float = 60.0
    retry_max_attempts: int = 5
    retry_base_delay: float = 1.0

    @property
    def endpoint(self) -> str:
        """Full generateContent URL, without the credential."""
        return f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent"

    @property
    def api_key(self) -> str:
        """The credential, read from the configured environment variable."""
        return os.getenv(self.api_key_env, "")


@dataclass
class ServerConfig:
    """Configuration for the web UI server."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = _DEFAULT_LOG_FORMAT
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Top-level application configuration."""

    api: APIConfig = field(default_factory=APIConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_api_config(data: dict) -> APIConfig:
    """Build an APIConfig from a dictionary.

    Args:
        data: Dictionary with API settings.

    Returns:
        A configured APIConfig instance.

    Raises:
        ValueError: If the retry settings are out of range.
    """
    defaults = APIConfig()
    api_config = APIConfig(
        base_url=data.get("base_url", defaults.base_url),
        model=data.get("model", defaults.model),
        api_key_env=data.get("api_key_env", defaults.api_key_env),
        timeout=float(data.get("timeout", defaults.timeout)),
        retry_max_attempts=int(
            data.get("retry_max_attempts", defaults.retry_max_attempts)
        ),
        retry_base_delay=float(
            data.get("retry_base_delay", defaults.retry_base_delay)
        ),
    )
    if api_config.retry_max_attempts < 1:
        raise ValueError("api.retry_max_attempts must be at least 1")
    if api_config.retry_base_delay < 0:
        raise ValueError("api.retry_base_delay must not be negative")
    return api_config


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load application configuration from a YAML file.

    Reads the YAML config file and constructs a fully typed AppConfig
    object. Falls back to defaults for any missing values. The API key
    is read from the environment variable named by ``api.api_key_env``,
    never from the config file.

    Args:
        config_path: Path to the YAML config file. If None, uses the
            default path at configs/config.yaml.

    Returns:
        A fully populated AppConfig instance.

    Raises:
        yaml.YAMLError: If the config file contains invalid YAML.
        ValueError: If a value is out of range.
    """
    path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.warning("Config file not found at %s, using defaults", path)
        return AppConfig()

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    logger.info("Loaded configuration from %s", path)

    api_config = _build_api_config(raw.get("api", {}))
    if not api_config.api_key:
        logger.warning("%s not set in environment", api_config.api_key_env)

    server_data = raw.get("server", {})
    server_config = ServerConfig(
        host=server_data.get("host", "127.0.0.1"),
        port=int(server_data.get("port", 8000)),
    )

    logging_data = raw.get("logging", {})
    logging_config = LoggingConfig(
        level=logging_data.get("level", "INFO"),
        format=logging_data.get("format", _DEFAULT_LOG_FORMAT),
        file=logging_data.get("file"),
    )

    return AppConfig(
        api=api_config,
        server=server_config,
        logging=logging_config,
    )
