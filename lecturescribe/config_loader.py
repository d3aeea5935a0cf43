"""Handles loading configuration from YAML files and the environment."""

import yaml
import os
import logging
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    'output_dir': 'data/transcripts',
    'progress_file': '_progress.json',
    'fallback_topic': 'כללי',
    'api_base_url': 'https://api.elevenlabs.io',
    'model_id': 'scribe_v2',
    'language_code': 'he',
    'tag_audio_events': False,
    'api_key_env': 'ELEVENLABS_API_KEY',
    'min_timeout_seconds': 1800,
    'seconds_per_mb': 15,
    'pause_seconds': 2.0,
    'html_file': 'index.html',
    'embed_anchor': 'loadSettings();\nloadFromStorage();',
    'log_dir': 'logs',
    'log_file': 'lecturescribe.log',
}

class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def load_config(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Keys missing from the file fall back to ``DEFAULT_CONFIG``.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            A dictionary containing the loaded configuration settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML or
                              if there are other reading errors.
        """
        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
             logger.error(f"Configuration path is not a file: {config_path}")
             raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except IOError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")

        config = dict(DEFAULT_CONFIG)
        config.update(loaded)
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config


def load_api_key(config: dict, env_file: Optional[str] = None) -> Optional[str]:
    """
    Reads the speech-to-text API key from the environment.

    A ``.env`` file is loaded first when present; variables already set in the
    process environment take precedence over it.

    Returns:
        The key, or None if it is not set. The transcriber reports a missing
        key when it is first needed.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    env_name = config.get('api_key_env', DEFAULT_CONFIG['api_key_env'])
    api_key = os.getenv(env_name)
    if not api_key:
        logger.debug(f"Environment variable {env_name} is not set.")
        return None
    return api_key
