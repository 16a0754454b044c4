"""Configuration management for the Think Tool Server."""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

SUPPORTED_TRANSPORTS = ("stdio", "http", "sse", "streamable-http")
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_SERVER_NAME = "Think Tool Server"
DEFAULT_SERVER_VERSION = "1.0.0"


class ServerConfig(BaseModel):
    """Server identity and transport configuration."""

    name: str = Field(default=DEFAULT_SERVER_NAME, description="Server name announced to clients")
    version: str = Field(default=DEFAULT_SERVER_VERSION, description="Server version announced to clients")
    transport: str = Field(default="stdio", description="MCP transport")
    host: str = Field(default="localhost", description="Bind host for network transports")
    port: int = Field(default=8000, description="Bind port for network transports")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("name", "version")
    @classmethod
    def validate_identity(cls, v: str) -> str:
        """Validate that name and version are not blank."""
        if not v or not v.strip():
            raise ValueError("Server name and version cannot be empty")
        return v.strip()

    @field_validator("transport")
    @classmethod
    def validate_transport(cls, v: str) -> str:
        """Validate transport type."""
        v = v.strip().lower()
        if v not in SUPPORTED_TRANSPORTS:
            raise ValueError(f"Transport must be one of: {', '.join(SUPPORTED_TRANSPORTS)}")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {sorted(VALID_LOG_LEVELS)}")
        return v.upper()


class MiddlewareConfig(BaseModel):
    """Traffic logging and tool call statistics configuration."""

    include_payloads: bool = Field(
        default=False,
        description="Log tool arguments and results at debug level"
    )
    max_payload_length: int = Field(default=500, description="Maximum logged payload length")
    slow_call_threshold_ms: float = Field(
        default=2000,
        description="Tool calls slower than this are logged as warnings"
    )

    @field_validator("max_payload_length")
    @classmethod
    def validate_max_payload_length(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Max payload length must be positive")
        return v

    @field_validator("slow_call_threshold_ms")
    @classmethod
    def validate_slow_threshold(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Slow call threshold must be positive")
        return v


class Config(BaseModel):
    """Main configuration model."""

    model_config = ConfigDict(extra="forbid")

    server: ServerConfig = Field(default_factory=ServerConfig)
    middleware: MiddlewareConfig = Field(default_factory=MiddlewareConfig)


# (section, key, environment variable, converter)
_ENV_OVERRIDES = [
    ("server", "name", "THINK_SERVER_NAME", str),
    ("server", "version", "THINK_SERVER_VERSION", str),
    ("server", "transport", "MCP_TRANSPORT", str),
    ("server", "host", "SERVER_HOST", str),
    ("server", "port", "SERVER_PORT", int),
    ("server", "log_level", "LOG_LEVEL", str),
    ("middleware", "include_payloads", "MCP_LOG_PAYLOADS", "bool"),
    ("middleware", "slow_call_threshold_ms", "MCP_SLOW_CALL_MS", float),
]


def _parse_env_value(env_var: str, raw: str, converter):
    if converter == "bool":
        return raw.strip().lower() in ("1", "true", "yes", "on")
    try:
        return converter(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {env_var}: {raw!r}")


class ConfigManager:
    """Configuration manager for loading and validating configuration."""

    @staticmethod
    def load_from_file(config_path: Union[str, Path]) -> Config:
        """Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file: {e}")

        return Config(**config_data)

    @staticmethod
    def _env_overrides() -> dict:
        overrides = {"server": {}, "middleware": {}}
        for section, key, env_var, converter in _ENV_OVERRIDES:
            raw = os.getenv(env_var)
            if raw:
                overrides[section][key] = _parse_env_value(env_var, raw, converter)
        return overrides

    @staticmethod
    def load_from_env() -> Config:
        """Load configuration from environment variables.

        Every setting is optional; unset variables keep their defaults.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        return Config(**ConfigManager._env_overrides())

    @staticmethod
    def load_with_env_precedence(config_path: Optional[Union[str, Path]] = None) -> Config:
        """Load configuration with environment variable precedence.

        Environment variables take precedence over config file values.
        A missing or unreadable config file falls back to environment and defaults.

        Args:
            config_path: Optional path to configuration file

        Returns:
            Configuration object with environment precedence
        """
        config_data = {"server": {}, "middleware": {}}

        if config_path:
            config_path = Path(config_path)
            if config_path.exists():
                try:
                    with open(config_path, "r", encoding="utf-8") as f:
                        file_config = json.load(f)

                    for section in config_data:
                        if section in file_config:
                            config_data[section].update(file_config[section])

                except (json.JSONDecodeError, TypeError, ValueError) as e:
                    logger.warning(f"Failed to load config file {config_path}: {e}")

        for section, values in ConfigManager._env_overrides().items():
            config_data[section].update(values)

        return Config(**config_data)

    @staticmethod
    def create_example_config(output_path: Union[str, Path]) -> None:
        """Create an example configuration file.

        Args:
            output_path: Path where to save the example config
        """
        example_config = Config().model_dump()

        output_path = Path(output_path)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(example_config, f, indent=2)

    @staticmethod
    def validate_config(config: Config) -> List[str]:
        """Validate configuration and return any warnings.

        Args:
            config: Configuration to validate

        Returns:
            List of warning messages
        """
        warnings = []

        if config.middleware.include_payloads:
            warnings.append(
                "Payload logging is enabled. Thoughts will be written to the server log."
            )

        if config.server.transport != "stdio" and config.server.host in ("0.0.0.0", "::"):
            warnings.append(
                f"Transport '{config.server.transport}' is bound to all interfaces. "
                "The server has no authentication."
            )

        if config.server.transport == "stdio" and config.server.log_level == "DEBUG":
            warnings.append(
                "DEBUG logging on stdio is verbose. Logs go to stderr, protocol traffic to stdout."
            )

        return warnings
