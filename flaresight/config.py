"""
Configuration management for FlareSight
"""

import yaml
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional, Union, Tuple
import logging

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

def _expand_env_vars(obj: Union[Dict, Any]) -> Union[Dict, Any]:
    """
    Recursively expand environment variables in config values.
    Supports ${VAR_NAME} syntax.
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        pattern = r'\$\{([^}]+)\}'
        def replace_var(match):
            var_name = match.group(1)
            return os.getenv(var_name, match.group(0))  # Return original if not found
        return re.sub(pattern, replace_var, obj)
    else:
        return obj

def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged

def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file

    Values missing from the file are filled in from the defaults.

    Args:
        config_path: Path to config file. If None, uses default config.yaml

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}. Using defaults.")
        return get_default_config()

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        config = _expand_env_vars(config)
        return _deep_merge(get_default_config(), config)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return get_default_config()

def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration values

    Returns:
        Default configuration dictionary
    """
    return {
        'scene_detection': {
            'min_interval': 5.0,       # seconds between samples taken
            'initial_delay': 1.0,      # first attempt after activation
            'frame_width': 640,
            'frame_height': 480,
            'jpeg_quality': 60,
            'request_timeout': 10.0,
        },
        'suggestions': {
            'display_duration': 3.0,
            'suppress_dismissed': True,
            'min_confidence': 'medium',
        },
        'gateway': {
            'url': 'https://ai.gateway.lovable.dev/v1/chat/completions',
            'api_key': None,
            'model': 'google/gemini-2.5-flash',
            'timeout': 30.0,
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    }

def save_config(config: Dict[str, Any], config_path: Path) -> bool:
    """
    Save configuration to YAML file

    Args:
        config: Configuration dictionary to save
        config_path: Path where to save the config

    Returns:
        True if successful, False otherwise
    """
    try:
        with open(config_path, 'w') as f:
            yaml.dump(config, f, default_flow_style=False, indent=2)
        logger.info(f"Saved configuration to {config_path}")
        return True
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to save config to {config_path}: {e}")
        return False

def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation

    Args:
        config: Configuration dictionary
        key_path: Dot-separated key path (e.g., 'scene_detection.min_interval')
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    keys = key_path.split('.')
    value = config

    try:
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default

def update_config_value(config: Dict[str, Any], key_path: str, value: Any) -> None:
    """
    Update a nested configuration value using dot notation

    Args:
        config: Configuration dictionary to update
        key_path: Dot-separated key path (e.g., 'suggestions.display_duration')
        value: New value to set
    """
    keys = key_path.split('.')
    current = config

    # Navigate to the parent of the target key
    for key in keys[:-1]:
        if key not in current:
            current[key] = {}
        current = current[key]

    current[keys[-1]] = value


def _section(config: Optional[Dict[str, Any]], name: str) -> Dict[str, Any]:
    defaults = get_default_config()[name]
    if not config:
        return defaults
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")
    return {**defaults, **section}


@dataclass
class DetectionConfig:
    """Timing and frame settings for the scene classifier client."""
    min_interval: float = 5.0
    initial_delay: float = 1.0
    frame_width: int = 640
    frame_height: int = 480
    jpeg_quality: int = 60
    request_timeout: Optional[float] = 10.0

    @property
    def frame_size(self) -> Tuple[int, int]:
        return (self.frame_width, self.frame_height)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'DetectionConfig':
        section = _section(config, 'scene_detection')
        try:
            detection = cls(
                min_interval=float(section['min_interval']),
                initial_delay=float(section['initial_delay']),
                frame_width=int(section['frame_width']),
                frame_height=int(section['frame_height']),
                jpeg_quality=int(section['jpeg_quality']),
                request_timeout=(float(section['request_timeout'])
                                 if section['request_timeout'] is not None else None),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid scene_detection config: {e}") from e
        if detection.min_interval <= 0:
            raise ConfigurationError("scene_detection.min_interval must be positive")
        if detection.frame_width <= 0 or detection.frame_height <= 0:
            raise ConfigurationError("scene_detection frame size must be positive")
        return detection


@dataclass
class SuggestionConfig:
    """Display settings for scene suggestions."""
    display_duration: float = 3.0
    suppress_dismissed: bool = True
    min_confidence: str = 'medium'

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'SuggestionConfig':
        section = _section(config, 'suggestions')
        # Strings like 'false' would otherwise read as True
        if not isinstance(section['suppress_dismissed'], bool):
            raise ConfigurationError(
                f"suggestions.suppress_dismissed must be true or false, "
                f"got {section['suppress_dismissed']!r}"
            )
        try:
            return cls(
                display_duration=float(section['display_duration']),
                suppress_dismissed=section['suppress_dismissed'],
                min_confidence=str(section['min_confidence']).lower(),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid suggestions config: {e}") from e


@dataclass
class GatewayConfig:
    """Connection settings for the hosted LLM scene classifier."""
    url: str = 'https://ai.gateway.lovable.dev/v1/chat/completions'
    api_key: Optional[str] = None
    model: str = 'google/gemini-2.5-flash'
    timeout: float = 30.0

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> 'GatewayConfig':
        section = _section(config, 'gateway')
        api_key = section.get('api_key')
        # Unexpanded ${VAR} placeholders mean the variable is unset
        if isinstance(api_key, str) and api_key.startswith('${'):
            api_key = None
        return cls(
            url=section['url'],
            api_key=api_key or os.environ.get('FLARESIGHT_GATEWAY_API_KEY'),
            model=section['model'],
            timeout=float(section['timeout']),
        )
