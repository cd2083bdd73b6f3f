"""
Configuration handling for the search MCP server.

This module provides functionality to load, validate, and manage
configuration from JSON files, ``.env`` files and environment variables.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .errors import ConfigError
from .search.provider import DEFAULT_ENDPOINT, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, SearchProviderConfig


logger = logging.getLogger(__name__)


class Config:
    """Configuration manager for the search MCP server."""

    # Default configuration values
    DEFAULT_CONFIG = {
        "server": {
            "host": "0.0.0.0",
            "port": 3000,
            "logLevel": "info"
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None
        },
        "search": {
            "endpoint": DEFAULT_ENDPOINT,
            "timeout": DEFAULT_TIMEOUT,
            "userAgent": DEFAULT_USER_AGENT,
            "acceptLanguage": "en-US,en;q=0.9"
        },
        "cors": {
            "allowOrigins": ["*"]
        }
    }

    ENV_MAPPINGS = {
        "PORT": ("server.port", "int"),
        "SEARCH_MCP_HOST": ("server.host", "string"),
        "SEARCH_MCP_PORT": ("server.port", "int"),
        "SEARCH_MCP_LOG_LEVEL": ("server.logLevel", "string"),
        "SEARCH_MCP_LOGGING_LEVEL": ("logging.level", "string"),
        "SEARCH_MCP_LOG_FILE": ("logging.file", "string"),
        "SEARCH_MCP_SEARCH_ENDPOINT": ("search.endpoint", "string"),
        "SEARCH_MCP_SEARCH_TIMEOUT": ("search.timeout", "float"),
        "SEARCH_MCP_CORS_ORIGINS": ("cors.allowOrigins", "list"),
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        env_file: Optional[str] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to a JSON configuration file (optional)
            env_file: Path to a ``.env`` file loaded into the environment (optional)
            environ: Environment mapping to read overrides from (defaults to os.environ)
        """
        self.config: Dict[str, Any] = {}
        self.config_path = config_path
        self.env_file = env_file
        self._environ = environ
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from defaults, file and environment variables."""
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path:
            self._load_from_file(self.config_path)

        if self._environ is None:
            # Values already in the environment win over the .env file
            load_dotenv(self.env_file)
        self._load_from_env()

        self._validate_config()

        logger.info(f"Configuration loaded from {self.config_path or 'defaults'}")

    def _load_from_file(self, config_path: str) -> None:
        """
        Load configuration from JSON file.

        Args:
            config_path: Path to configuration file

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {config_path}, using defaults")
            return

        try:
            with open(path, "r") as f:
                file_config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load config file: {e}")

        if not isinstance(file_config, dict):
            raise ConfigError("Config file must contain a JSON object")

        self._merge_config(self.config, file_config)
        logger.info(f"Loaded configuration from {config_path}")

    def _load_from_env(self) -> None:
        """Load configuration overrides from environment variables."""
        environ = self._environ if self._environ is not None else os.environ

        for env_var, (config_path, value_type) in self.ENV_MAPPINGS.items():
            value = environ.get(env_var)
            if value is not None:
                try:
                    parsed_value = self._parse_env_value(value, value_type)
                    self._set_nested_value(self.config, config_path, parsed_value)
                    logger.debug(f"Loaded {env_var}={value}")
                except (ValueError, KeyError) as e:
                    logger.warning(f"Failed to parse {env_var}: {e}")

    def _parse_env_value(self, value: str, value_type: str) -> Any:
        """
        Parse environment variable value based on type.

        Args:
            value: String value from environment
            value_type: Type to parse to (string, int, float, list)

        Returns:
            Parsed value

        Raises:
            ValueError: If value cannot be parsed
        """
        if value_type == "string":
            return value
        elif value_type == "int":
            return int(value)
        elif value_type == "float":
            return float(value)
        elif value_type == "list":
            return [item.strip() for item in value.split(",") if item.strip()]
        else:
            raise ValueError(f"Unknown value type: {value_type}")

    def _merge_config(self, base: Dict, override: Dict) -> None:
        """
        Recursively merge override config into base config.

        Args:
            base: Base configuration dictionary (modified in place)
            override: Override configuration dictionary
        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def _set_nested_value(self, config: Dict, path: str, value: Any) -> None:
        """
        Set a nested configuration value using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path to the value
            value: Value to set
        """
        keys = path.split(".")
        current = config

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def _validate_config(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: If configuration is invalid
        """
        host = self.get_server_host()
        if not isinstance(host, str) or not host:
            raise ConfigError(f"Invalid server host: {host}", "server.host")

        port = self.get_server_port()
        if not isinstance(port, int) or isinstance(port, bool) or not (1 <= port <= 65535):
            raise ConfigError(f"Port must be between 1-65535, got: {port}", "server.port")

        valid_levels = ("debug", "info", "warning", "error", "critical")
        for key, level in (("server.logLevel", self.get_server_log_level()),
                           ("logging.level", self.get_log_level())):
            if not isinstance(level, str) or level.lower() not in valid_levels:
                raise ConfigError(f"Invalid log level: {level}", key)

        endpoint = self.get_search_endpoint()
        if not isinstance(endpoint, str) or not endpoint.startswith(("http://", "https://")):
            raise ConfigError(f"Invalid search endpoint: {endpoint}", "search.endpoint")

        timeout = self.get_search_timeout()
        # The outbound deadline may be shortened but never extended past the default
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or not (0 < timeout <= DEFAULT_TIMEOUT):
            raise ConfigError(
                f"Search timeout must be greater than 0 and at most {DEFAULT_TIMEOUT}s, got: {timeout}",
                "search.timeout"
            )

        origins = self.get_cors_origins()
        if not isinstance(origins, list) or not all(isinstance(o, str) for o in origins):
            raise ConfigError(f"CORS origins must be a list of strings, got: {origins}", "cors.allowOrigins")

    def apply_overrides(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        log_level: Optional[str] = None,
    ) -> None:
        """
        Apply command-line overrides and validate the result.

        Args:
            host: Server host address
            port: Server port
            log_level: Log level for both uvicorn and the application

        Raises:
            ConfigError: If an override is invalid
        """
        if host is not None:
            self.config["server"]["host"] = host
        if port is not None:
            self.config["server"]["port"] = port
        if log_level is not None:
            self.config["server"]["logLevel"] = log_level
            self.config["logging"]["level"] = log_level.upper()

        self._validate_config()

    def get_server_host(self) -> str:
        """Get server host address."""
        return self.config.get("server", {}).get("host", "0.0.0.0")

    def get_server_port(self) -> int:
        """Get server port."""
        return self.config.get("server", {}).get("port", 3000)

    def get_server_log_level(self) -> str:
        """Get uvicorn log level."""
        return self.config.get("server", {}).get("logLevel", "info")

    def get_log_level(self) -> str:
        """Get application log level."""
        return self.config.get("logging", {}).get("level", "INFO")

    def get_log_format(self) -> str:
        """Get log format string (or ``json``)."""
        return self.config.get("logging", {}).get(
            "format",
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    def get_log_file(self) -> Optional[str]:
        """Get log file path (None for console only)."""
        return self.config.get("logging", {}).get("file")

    def get_search_endpoint(self) -> str:
        return self.config.get("search", {}).get("endpoint", DEFAULT_ENDPOINT)

    def get_search_timeout(self) -> float:
        return self.config.get("search", {}).get("timeout", DEFAULT_TIMEOUT)

    def get_cors_origins(self) -> List[str]:
        return self.config.get("cors", {}).get("allowOrigins", ["*"])

    def get_search_provider_config(self) -> SearchProviderConfig:
        """Build the outbound search request configuration."""
        search = self.config.get("search", {})
        provider_config = SearchProviderConfig(
            endpoint=self.get_search_endpoint(),
            timeout=float(self.get_search_timeout()),
        )
        provider_config.headers["User-Agent"] = search.get("userAgent", DEFAULT_USER_AGENT)
        provider_config.headers["Accept-Language"] = search.get("acceptLanguage", "en-US,en;q=0.9")
        return provider_config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by key.

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        current = self.config

        for k in keys:
            if isinstance(current, dict) and k in current:
                current = current[k]
            else:
                return default

        return current

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return copy.deepcopy(self.config)
