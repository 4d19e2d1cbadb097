"""
Configuration management for smartseg.

This module provides functionality for managing configuration,
including loading from environment variables, files and default values.
"""

import os
import json
import logging
import threading
from typing import Dict, List, Optional, Any
from copy import deepcopy
import yaml

# Set up logging
logger = logging.getLogger(__name__)

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL
}


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_float(value: Any) -> Optional[float]:
    """
    Convert a value to a float.

    Args:
        value: Value to convert

    Returns:
        Float value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def to_list(value: Any, separator: str = ',') -> Optional[List[str]]:
    """
    Convert a value to a list.

    Args:
        value: Value to convert
        separator: Separator for string values

    Returns:
        List value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, list):
        return value

    if isinstance(value, str):
        return [item.strip() for item in value.split(separator) if item.strip()]

    return None


def _env_or(name: str, current: Any, convert) -> Any:
    """Read and convert an environment variable, keeping the current value if unset or invalid."""
    if name not in os.environ:
        return current

    converted = convert(os.environ[name])
    if converted is None:
        logger.warning(f"Ignoring invalid value for {name}: {os.environ[name]!r}")
        return current
    return converted


class Config:
    """
    Configuration manager for smartseg.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config = {}
        self._initialized = False

        # Load configuration
        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from all sources.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            # Start with default configuration
            config = self._get_defaults()

            # Apply environment variables
            config = self._apply_env_vars(config)

            # Apply overrides
            if overrides:
                config = self._apply_overrides(config, overrides)

            self._validate(config)

            # Store configuration
            self._config = config
            self._initialized = True

            logger.info("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        """
        Get default configuration values.

        Returns:
            Default configuration
        """
        return {
            # Clustering
            'segmentation': {
                'k': 3,
                'max-iters': 200,
                'features': [],              # empty means pick numeric columns
                'max-default-features': 4
            },

            # Projection
            'pca': {
                'iters': 200,
                'epsilon': 1e-9
            },

            # Profiling
            'profile': {
                'decimals': 3
            },

            # Synthetic data
            'sample': {
                'rows': 400
            },

            # Randomness (None seeds from the system)
            'random': {
                'seed': None
            },

            # Background runner
            'runner': {
                'max-workers': 2
            },

            # Logging
            'logging': {
                'level': 'warn'
            }
        }

    def _apply_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variables to configuration.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        # Make a copy
        config = deepcopy(config)

        # Clustering
        config['segmentation']['k'] = _env_or('SMARTSEG_K', config['segmentation']['k'], to_int)
        config['segmentation']['max-iters'] = _env_or('SMARTSEG_MAX_ITERS', config['segmentation']['max-iters'], to_int)
        config['segmentation']['features'] = _env_or('SMARTSEG_FEATURES', config['segmentation']['features'], to_list)

        # Projection
        config['pca']['iters'] = _env_or('SMARTSEG_PCA_ITERS', config['pca']['iters'], to_int)
        config['pca']['epsilon'] = _env_or('SMARTSEG_PCA_EPSILON', config['pca']['epsilon'], to_float)

        # Profiling
        config['profile']['decimals'] = _env_or('SMARTSEG_PROFILE_DECIMALS', config['profile']['decimals'], to_int)

        # Synthetic data
        config['sample']['rows'] = _env_or('SMARTSEG_SAMPLE_ROWS', config['sample']['rows'], to_int)

        # Randomness
        config['random']['seed'] = _env_or('SMARTSEG_SEED', config['random']['seed'], to_int)

        # Background runner
        config['runner']['max-workers'] = _env_or('SMARTSEG_MAX_WORKERS', config['runner']['max-workers'], to_int)

        # Logging
        config['logging']['level'] = os.environ.get('LOG_LEVEL', config['logging']['level']).lower()

        return config

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        # Make a copy
        config = deepcopy(config)

        # Helper function for deep update
        def deep_update(d, u):
            for k, v in u.items():
                if isinstance(v, dict) and k in d and isinstance(d[k], dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = v
            return d

        # Apply overrides
        return deep_update(config, deepcopy(overrides))

    def _validate(self, config: Dict[str, Any]) -> None:
        """
        Check configuration values.

        Args:
            config: Configuration to check

        Raises:
            ValueError: If a value is out of range
        """
        positive = [
            ('segmentation', 'k'),
            ('segmentation', 'max-iters'),
            ('segmentation', 'max-default-features'),
            ('pca', 'iters'),
            ('sample', 'rows'),
            ('runner', 'max-workers')
        ]
        for section, key in positive:
            value = config[section][key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"Configuration value {section}.{key} must be a positive integer, got {value!r}")

        if config['logging']['level'] not in LOG_LEVELS:
            raise ValueError(f"Unknown logging level: {config['logging']['level']}")

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        if not self._initialized:
            self.load_config()

        # Split path into components
        components = path.split('.')

        # Start with full configuration
        value = self._config

        # Traverse path
        for component in components:
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            if not self._initialized:
                self.load_config()

            # Split path into components
            components = path.split('.')

            # Start with full configuration
            config = self._config

            # Traverse path
            for component in components[:-1]:
                if component not in config:
                    config[component] = {}

                config = config[component]

            # Set value
            config[components[-1]] = value

    def log_level(self) -> int:
        """
        Get the configured logging level.

        Returns:
            A logging module level constant
        """
        return LOG_LEVELS[self.get('logging.level', 'warn')]

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Configuration dictionary
        """
        if not self._initialized:
            self.load_config()

        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a file.

        Args:
            filepath: Path to save configuration
        """
        if not self._initialized:
            self.load_config()

        # Determine file format from extension
        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Load configuration from a file.

        Args:
            filepath: Path to load configuration from
        """
        self.load_config(load_config_file(filepath))


def load_config_file(filepath: str) -> Dict[str, Any]:
    """
    Load configuration overrides from a JSON or YAML file.

    Args:
        filepath: Path to configuration file

    Returns:
        Configuration dictionary
    """
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            return json.load(f)
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    else:
        raise ValueError(f"Unsupported configuration file format: {filepath}")


class ConfigManager:
    """
    Singleton manager for configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the configuration instance.

        Args:
            overrides: Optional configuration overrides

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load_config(overrides)

            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared configuration instance."""
        with cls._lock:
            cls._instance = None
