"""
Configuration Utilities

This module provides utilities for loading, validating, and managing the
configuration of a simulated call.
"""

import json
import copy
import argparse
from pathlib import Path
from typing import Dict, List, Any, Optional, Union, TypeVar, cast

import yaml
import jsonschema

from voip_sim.errors import ConfigurationError

# Type for configuration dictionaries
ConfigDict = Dict[str, Any]
T = TypeVar('T')

# Default configuration
DEFAULT_CONFIG = {
    # General settings
    'general': {
        'log_level': 'info',
        'log_file': None,
        'json_logs': False,
        'result_dir': './results',
    },

    # Codec settings
    'codec': {
        'type': 'g711',
        'rate': 32,  # kbit/s, G.726 only
        'frame_samples': 160,  # 20 ms @ 8 kHz
        'sample_rate': 8000,
    },

    # Call settings
    'call': {
        'num_users': 2,
        'start': 0.0,  # seconds
        'duration': 1.0,  # seconds
        'frequency': 0.0,  # call repetition period in seconds, 0 for a single call
        'packet_rate': 50,  # packets per second
        'tone_frequency': 440.0,  # Hz
        'tone_amplitude': 30000,
        'dump_path': None,
        'stop_time': None,  # seconds, defaults to the end of the first call
        'teardown_grace': 1.0,  # seconds between the last send and teardown
    },

    # Network settings
    'network': {
        'delay_ms': 20.0,
        'jitter_ms': 0.0,
        'packet_loss': 0.0,
        'reorder_rate': 0.0,
        'duplicate_rate': 0.0,
        'seed': None,
    },

    # Statistics settings
    'statistics': {
        'loss_basis': 'per_user',
    },
}


def load_config_file(config_path: Union[str, Path]) -> ConfigDict:
    """Load configuration from a file.

    Supports JSON and YAML files.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If the file is missing, unreadable or has an
            unsupported format
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    suffix = config_path.suffix.lower()

    try:
        with open(config_path, 'r') as f:
            if suffix == '.json':
                config = json.load(f)
            elif suffix in ('.yaml', '.yml'):
                config = yaml.safe_load(f)
            else:
                raise ConfigurationError(f"Unsupported configuration file format: {suffix}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not parse {config_path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration in {config_path} must be a mapping")
    return config


def merge_configs(base_config: ConfigDict, override_config: ConfigDict) -> ConfigDict:
    """Merge two configuration dictionaries.

    The override_config values take precedence over base_config values.

    Args:
        base_config: Base configuration dictionary
        override_config: Override configuration dictionary

    Returns:
        Merged configuration dictionary
    """
    result = copy.deepcopy(base_config)

    for key, value in override_config.items():
        if (
            key in result and
            isinstance(result[key], dict) and
            isinstance(value, dict)
        ):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result


def get_default_config() -> ConfigDict:
    """Get the default configuration.

    Returns:
        Default configuration dictionary
    """
    return copy.deepcopy(DEFAULT_CONFIG)


def validate_config(config: ConfigDict, schema: Optional[Dict[str, Any]] = None) -> List[str]:
    """Validate a configuration dictionary against a schema.

    Args:
        config: Configuration dictionary to validate
        schema: Schema dictionary (defaults to ``get_config_schema()``)

    Returns:
        List of validation error messages (empty if validation passed)
    """
    if schema is None:
        schema = get_config_schema()

    validator = jsonschema.Draft7Validator(schema)
    errors = []
    for error in sorted(validator.iter_errors(config), key=lambda e: list(e.path)):
        location = '.'.join(str(part) for part in error.path)
        errors.append(f"{location}: {error.message}" if location else error.message)
    return errors


def load_config(config_path: Optional[Union[str, Path]] = None) -> ConfigDict:
    """Load a configuration file over the defaults and validate the result.

    Args:
        config_path: Optional JSON or YAML file

    Returns:
        Complete configuration dictionary

    Raises:
        ConfigurationError: If the file cannot be loaded or fails validation
    """
    config = get_default_config()
    if config_path:
        config = merge_configs(config, load_config_file(config_path))

    errors = validate_config(config)
    if errors:
        raise ConfigurationError("Invalid configuration: " + "; ".join(errors))
    return config


def save_config(config: ConfigDict, file_path: Union[str, Path], format: str = 'json') -> None:
    """Save a configuration dictionary to a file.

    Args:
        config: Configuration dictionary
        file_path: Path to save the configuration file
        format: File format ('json' or 'yaml')

    Raises:
        ConfigurationError: If the format is not supported
    """
    file_path = Path(file_path)
    format = format.lower()
    if format not in ('json', 'yaml', 'yml'):
        raise ConfigurationError(f"Unsupported configuration format: {format}")

    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, 'w') as f:
        if format == 'json':
            json.dump(config, f, indent=2)
        else:
            yaml.safe_dump(config, f, default_flow_style=False)


def get_config_value(
    config: ConfigDict,
    path: str,
    default: Optional[T] = None
) -> Optional[T]:
    """Get a value from a configuration dictionary using a dot-notation path.

    Args:
        config: Configuration dictionary
        path: Dot-notation path (e.g., 'codec.type')
        default: Default value to return if the path is not found

    Returns:
        Configuration value or default if not found
    """
    current = config
    for part in path.split('.'):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return default

    return cast(T, current)


def set_config_value(config: ConfigDict, path: str, value: Any) -> None:
    """Set a value in a configuration dictionary using a dot-notation path.

    Creates intermediate dictionaries if they don't exist.

    Args:
        config: Configuration dictionary
        path: Dot-notation path (e.g., 'network.delay_ms')
        value: Value to set
    """
    parts = path.split('.')

    current = config
    for part in parts[:-1]:
        if part not in current or not isinstance(current[part], dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value


def add_common_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Add the configuration and logging options shared by all commands."""
    parser.add_argument(
        '-c', '--config',
        help="Path to configuration file (JSON or YAML)",
        type=str
    )
    parser.add_argument(
        '-v', '--verbose',
        help="Increase output verbosity",
        action='store_true'
    )
    parser.add_argument(
        '--log-level',
        help="Set log level",
        choices=['debug', 'info', 'warning', 'error', 'critical'],
        type=str
    )
    parser.add_argument(
        '--log-file',
        help="Write logs to this file as well",
        type=str
    )
    return parser


# Command-line option -> configuration path
CLI_OVERRIDES = {
    'log_level': 'general.log_level',
    'log_file': 'general.log_file',
    'codec': 'codec.type',
    'rate': 'codec.rate',
    'users': 'call.num_users',
    'duration': 'call.duration',
    'dump': 'call.dump_path',
    'delay': 'network.delay_ms',
    'jitter': 'network.jitter_ms',
    'loss': 'network.packet_loss',
    'reorder': 'network.reorder_rate',
    'duplicate': 'network.duplicate_rate',
    'seed': 'network.seed',
    'loss_basis': 'statistics.loss_basis',
}


def load_config_from_args(args: argparse.Namespace) -> ConfigDict:
    """Load configuration from command-line arguments.

    Args:
        args: Command-line arguments

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigurationError: If the resulting configuration is invalid
    """
    config = get_default_config()

    if getattr(args, 'config', None):
        config = merge_configs(config, load_config_file(args.config))

    cli_config: ConfigDict = {}
    if getattr(args, 'verbose', False):
        set_config_value(cli_config, 'general.log_level', 'debug')
    for option, path in CLI_OVERRIDES.items():
        value = getattr(args, option, None)
        if value is not None:
            set_config_value(cli_config, path, value)

    config = merge_configs(config, cli_config)

    errors = validate_config(config)
    if errors:
        raise ConfigurationError("Invalid configuration: " + "; ".join(errors))
    return config


def get_config_schema() -> Dict[str, Any]:
    """Get the JSON schema for configuration validation.

    Returns:
        JSON schema dictionary
    """
    probability = {"type": "number", "minimum": 0, "maximum": 1}
    return {
        "type": "object",
        "required": ["general", "codec", "call", "network", "statistics"],
        "properties": {
            "general": {
                "type": "object",
                "properties": {
                    "log_level": {"type": "string", "enum": ["debug", "info", "warning", "error", "critical"]},
                    "log_file": {"type": ["string", "null"]},
                    "json_logs": {"type": "boolean"},
                    "result_dir": {"type": "string"}
                }
            },
            "codec": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": ["g711", "g726"]},
                    "rate": {"type": "integer"},
                    "frame_samples": {"type": "integer", "minimum": 1},
                    "sample_rate": {"type": "integer", "minimum": 8000}
                }
            },
            "call": {
                "type": "object",
                "properties": {
                    "num_users": {"type": "integer", "minimum": 1},
                    "start": {"type": "number", "minimum": 0},
                    "duration": {"type": "number", "exclusiveMinimum": 0},
                    "frequency": {"type": "number", "minimum": 0},
                    "packet_rate": {"type": "number", "exclusiveMinimum": 0},
                    "tone_frequency": {"type": "number", "minimum": 0},
                    "tone_amplitude": {"type": "integer", "minimum": 0, "maximum": 32767},
                    "dump_path": {"type": ["string", "null"]},
                    "stop_time": {"type": ["number", "null"], "minimum": 0},
                    "teardown_grace": {"type": "number", "minimum": 0}
                }
            },
            "network": {
                "type": "object",
                "properties": {
                    "delay_ms": {"type": "number", "minimum": 0},
                    "jitter_ms": {"type": "number", "minimum": 0},
                    "packet_loss": probability,
                    "reorder_rate": probability,
                    "duplicate_rate": probability,
                    "seed": {"type": ["integer", "null"]}
                }
            },
            "statistics": {
                "type": "object",
                "properties": {
                    "loss_basis": {"type": "string", "enum": ["per_user", "session"]}
                }
            }
        }
    }
