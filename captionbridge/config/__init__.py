"""Simple YAML configuration loader for captionbridge."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
import logging

from ..models.session import PipelineSettings

logger = logging.getLogger(__name__)

DEFAULT_TRANSCRIPTION_ORDER = ["elevenlabs", "whisper"]

# Environment fallbacks for provider credentials
API_KEY_ENV_VARS = {
    "elevenlabs": "ELEVENLABS_API_KEY",
    "openai": "OPENAI_API_KEY",
}


class CaptionBridgeConfig:
    """captionbridge configuration loader."""

    def __init__(self, config_path: str):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file
        """
        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not config or not isinstance(config, dict):
            raise ValueError("Configuration file is empty")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        google = config.get('providers', {}).get('google', {})
        if google.get('credentials_path') and not os.path.isabs(google['credentials_path']):
            google['credentials_path'] = str(config_dir / google['credentials_path'])

        if 'logging' in config and 'file_path' in config['logging']:
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'pipeline.threshold').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'pipeline.target_lang')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def pipeline_settings(self) -> PipelineSettings:
        """Build validated pipeline settings from the 'pipeline' section."""
        return PipelineSettings.from_dict(self.get('pipeline', {}))

    def get_api_key(self, service: str) -> Optional[str]:
        """Get an API key from config, falling back to the service's environment variable."""
        key = self.get(f'providers.{service}.api_key')
        if key:
            return key
        env_var = API_KEY_ENV_VARS.get(service)
        return os.environ.get(env_var) if env_var else None

    def require_api_key(self, service: str) -> str:
        """Get an API key - CRASHES if not configured."""
        key = self.get_api_key(service)
        if not key:
            env_var = API_KEY_ENV_VARS.get(service, "")
            raise ValueError(f"No API key configured for {service} (set providers.{service}.api_key or {env_var})")
        return key

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - CRASHES if not found."""
        creds_path = self.get('providers.google.credentials_path')
        if not creds_path:
            raise ValueError("Google credentials path not configured (providers.google.credentials_path)")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def transcription_order(self) -> List[str]:
        """Provider names in fallback priority order."""
        return list(self.get('providers.transcription.order', DEFAULT_TRANSCRIPTION_ORDER))

    def provider_timeout(self, name: str, default: float = 8.0) -> float:
        return float(self.get(f'providers.{name}.timeout_seconds', default))
