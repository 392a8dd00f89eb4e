"""
Configuration management for the Desa chat formatter.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

logger = logging.getLogger(__name__)


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace environment variable placeholders with actual values.

    Args:
        match: A regex match object containing the environment variable name.

    Returns:
        str: The value of the environment variable or the original placeholder
             if the variable is not set.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute ``${VAR_NAME}`` placeholders in configuration values.

    Strings, dicts and lists are processed, other values are returned unchanged.
    """
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Manages configuration loading for the chat formatter."""

    def __init__(self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, required: bool = True):
        """Initialize ConfigManager with config file path and optional config directories.

        Args:
            configPath: Main TOML file
            configDirs: Directories scanned recursively for extra ``*.toml`` files
            required: Exit if the main file is missing and no config directories are given
        """
        self.config_path = configPath
        self.config_dirs = configDirs or []
        self.required = required
        self.config = substituteEnvVars(self._loadConfig())

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory, dood!"""
        dir_path = Path(directory)

        if not dir_path.exists():
            logger.warning(f"Config directory {directory} does not exist, skipping, dood!")
            return []

        if not dir_path.is_dir():
            logger.warning(f"Config path {directory} is not a directory, skipping, dood!")
            return []

        toml_files = [toml_file for toml_file in dir_path.rglob("*.toml") if toml_file.is_file()]
        for toml_file in toml_files:
            logger.debug(f"Found config file: {toml_file}")

        return sorted(toml_files)  # Sort for consistent ordering

    def _mergeConfigs(self, base_config: Dict[str, Any], new_config: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, dood!"""
        merged = base_config.copy()

        for key, value in new_config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def _loadConfig(self) -> Dict[str, Any]:
        """Load configuration from TOML file and optional config directories.

        Raises:
            SystemExit: If the main file is required but missing, or cannot be parsed
        """
        config_file = Path(self.config_path)
        hasConfigFile = config_file.is_file()
        if not hasConfigFile and not self.config_dirs:
            if self.required:
                logger.error(f"Configuration file {self.config_path} not found!")
                sys.exit(1)
            logger.info(f"Configuration file {self.config_path} not found, using defaults")
            return {}

        config: Dict[str, Any] = {}
        if hasConfigFile:
            try:
                with open(config_file, "rb") as f:
                    config = tomli.load(f)
            except (OSError, tomli.TOMLDecodeError) as e:
                logger.error(f"Failed to load configuration: {e}")
                sys.exit(1)
            logger.info(f"Loaded main config from {self.config_path}")

        for config_dir in self.config_dirs:
            toml_files = self._findTomlFilesRecursive(config_dir)
            logger.info(f"Found {len(toml_files)} .toml files in {config_dir}")

            for toml_file in toml_files:
                try:
                    with open(toml_file, "rb") as f:
                        dir_config = tomli.load(f)
                except (OSError, tomli.TOMLDecodeError) as e:
                    # Continue with other files instead of exiting
                    logger.error(f"Failed to load config file {toml_file}: {e}")
                    continue

                config = self._mergeConfigs(config, dir_config)
                logger.info(f"Merged config from {toml_file}")

        logger.info("Configuration loaded and merged successfully, dood!")
        return config

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getFormatterConfig(self) -> Dict[str, Any]:
        """Get formatter configuration (strict mode, message length limit, output format)."""
        return self.get("formatter", {})

    def getCacheConfig(self) -> Dict[str, Any]:
        """Get render cache configuration."""
        return self.get("cache", {})

    def getRendererConfig(self) -> Dict[str, Any]:
        """
        Get renderer configuration.

        Returns a dictionary with optional ``html`` and ``text`` sub-tables,
        passed as options to HTMLRenderer and PlainTextRenderer.
        """
        return self.get("renderer", {})

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})

    def getFormatterOptions(self) -> Dict[str, Any]:
        """Build MessageFormatter options from the formatter and renderer tables."""
        formatterConfig = self.getFormatterConfig()
        rendererConfig = self.getRendererConfig()
        return {
            "strict_mode": bool(formatterConfig.get("strict-mode", False)),
            "max_message_length": int(formatterConfig.get("max-message-length", 0)),
            "html_options": dict(rendererConfig.get("html", {})),
            "text_options": dict(rendererConfig.get("text", {})),
        }
