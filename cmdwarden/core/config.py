"""
config.py - Configuration management for cmdwarden

This module handles loading, validating, and managing configuration for the cmdwarden tool.
"""

import copy
import logging
import os
from typing import Any, Dict, List, Optional, cast

import yaml

from .fixer import DEFAULT_BASH_COMMANDS, DEFAULT_SAFE_WRITE_PATH, FIX_ORDER

logger = logging.getLogger(__name__)

CHECK_KEYS = (
    "check_description",
    "check_argument_hint",
    "check_bash_execution",
    "check_tool_permissions",
)

DEFAULT_CONFIG: Dict[str, Any] = {
    "check_description": True,
    "check_argument_hint": True,
    "check_bash_execution": True,
    "check_tool_permissions": True,
    "auto_fix": {
        "enabled": True,
        "rules": {
            "quote_variables": True,
            "restrict_bash": True,
            "argument_hint": True,
            "description": True,
            "restrict_write_edit": True,
        },
    },
    "default_bash_commands": list(DEFAULT_BASH_COMMANDS),
    "safe_write_path": DEFAULT_SAFE_WRITE_PATH,
    "report": {
        "include_recommendations": True,
        "verbose": False,
    },
}

REPORT_KEYS = ("include_recommendations", "verbose")


class ConfigurationError(Exception):
    """Exception raised for configuration errors"""

    pass


def get_config_paths() -> List[str]:
    """
    Get list of possible config file locations in priority order

    Returns:
        List of config file paths to check
    """
    paths = []

    paths.append(os.path.join(os.getcwd(), "cmdwarden.yml"))
    paths.append(os.path.join(os.getcwd(), ".cmdwarden.yml"))

    home_dir = os.path.expanduser("~")
    paths.append(os.path.join(home_dir, ".cmdwarden.yml"))
    paths.append(os.path.join(home_dir, ".config", "cmdwarden", "config.yml"))

    return paths


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two config dictionaries

    Args:
        base: Base configuration
        override: Configuration to override base

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, override_value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(override_value, dict):
            result[key] = merge_configs(result[key], override_value)
        else:
            result[key] = override_value

    return result


def _validate_auto_fix(config: Dict[str, Any]) -> None:
    """Validate auto-fix configuration"""

    if "auto_fix" in config:
        if not isinstance(config["auto_fix"], dict):
            raise ConfigurationError("'auto_fix' must be a dictionary")

        for key in config["auto_fix"]:
            if key not in ("enabled", "rules"):
                raise ConfigurationError(f"Unknown configuration option 'auto_fix.{key}'")

        if "enabled" in config["auto_fix"] and not isinstance(config["auto_fix"]["enabled"], bool):
            raise ConfigurationError("'auto_fix.enabled' must be a boolean")

        if "rules" in config["auto_fix"]:
            if not isinstance(config["auto_fix"]["rules"], dict):
                raise ConfigurationError("'auto_fix.rules' must be a dictionary")

            for rule, enabled in config["auto_fix"]["rules"].items():
                if rule not in FIX_ORDER:
                    valid = ", ".join(FIX_ORDER)
                    raise ConfigurationError(
                        f"Unknown fix '{rule}' in 'auto_fix.rules'. Must be one of: {valid}"
                    )
                if not isinstance(enabled, bool):
                    raise ConfigurationError(f"'auto_fix.rules.{rule}' must be a boolean")


def _validate_defaults(config: Dict[str, Any]) -> None:
    """Validate replacement values used by the fixer"""

    if "default_bash_commands" in config:
        commands = config["default_bash_commands"]
        if (
            not isinstance(commands, list)
            or not commands
            or not all(isinstance(command, str) and command.strip() for command in commands)
        ):
            raise ConfigurationError("'default_bash_commands' must be a non-empty list of strings")

    if "safe_write_path" in config:
        path = config["safe_write_path"]
        if not isinstance(path, str) or not path.strip():
            raise ConfigurationError("'safe_write_path' must be a non-empty string")


def _validate_report(config: Dict[str, Any]) -> None:
    """Validate report configuration"""

    if "report" in config:
        if not isinstance(config["report"], dict):
            raise ConfigurationError("'report' must be a dictionary")

        for key, value in config["report"].items():
            if key not in REPORT_KEYS:
                raise ConfigurationError(f"Unknown configuration option 'report.{key}'")
            if not isinstance(value, bool):
                raise ConfigurationError(f"'report.{key}' must be a boolean")


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration structure and values"""

    if not isinstance(config, dict):
        raise ConfigurationError("Configuration must be a mapping")

    for key in config.keys():
        if key not in DEFAULT_CONFIG:
            raise ConfigurationError(f"Unknown configuration option '{key}'")

    for check_key in CHECK_KEYS:
        if check_key in config and not isinstance(config[check_key], bool):
            raise ConfigurationError(f"Check '{check_key}' must be a boolean (true/false)")

    _validate_auto_fix(config)
    _validate_defaults(config)
    _validate_report(config)


def _read_config_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        user_config = yaml.safe_load(f)

    if not user_config:
        return {}

    validate_config(user_config)
    return cast(Dict[str, Any], user_config)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or use defaults

    Args:
        config_path: Path to configuration file, or None to auto-detect

    Returns:
        Loaded configuration dictionary

    Raises:
        ConfigurationError: If configuration file is invalid
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")
    else:
        config_path = next((path for path in get_config_paths() if os.path.exists(path)), None)
        if config_path is None:
            return config

    try:
        user_config = _read_config_file(config_path)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing YAML configuration in {config_path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error loading configuration from {config_path}: {e}")

    logger.debug("Loaded configuration from %s", config_path)

    return merge_configs(config, user_config)


def save_config(config: Dict[str, Any], config_path: str) -> None:
    """
    Save configuration to file

    Args:
        config: Configuration dictionary to save
        config_path: Path to save configuration to

    Raises:
        ConfigurationError: If configuration cannot be saved
    """
    try:
        os.makedirs(os.path.dirname(os.path.abspath(config_path)), exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error saving configuration: {e}")


def generate_default_config(output_path: Optional[str] = None) -> str:
    """
    Generate default configuration YAML

    Args:
        output_path: Path to save default configuration to, or None to return as string

    Returns:
        Default configuration YAML

    Raises:
        ConfigurationError: If configuration cannot be saved
    """
    default_config_yaml = cast(
        str, yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False)
    )

    if output_path:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)

            with open(output_path, "w", encoding="utf-8") as f:
                f.write(default_config_yaml)
        except OSError as e:
            raise ConfigurationError(f"Error saving default configuration: {e}")

    return default_config_yaml


def disable_rules(config: Dict[str, Any], rules: List[str]) -> Dict[str, Any]:
    """
    Disable specific checks in a configuration

    Args:
        config: Configuration dictionary
        rules: List of check IDs to disable

    Returns:
        Updated configuration dictionary
    """
    updated_config = config.copy()

    for rule in rules:
        if rule in CHECK_KEYS:
            updated_config[rule] = False

    return updated_config
