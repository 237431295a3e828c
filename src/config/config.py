"""
Configuration Reader for EQ Raid Tools

A small JSON configuration system for the raid tools:
- Profile-based configuration (one JSON file per guild or machine)
- Secrets kept apart from the profile (raid server API key)
- Dot-notation access to nested values

Usage:
    from config import Config
    config = Config(profile='my_guild')
    timezone = config.get('eq.timezone')

Loading order (later overrides earlier):
1. Profile file (profiles/<profile>.json)
2. Profile secrets (secrets/<profile>_secrets.json)

The profile and secrets directories can be moved with the
EQ_RAID_TOOLS_CONFIG_DIR and EQ_RAID_TOOLS_SECRETS_DIR environment variables.
"""

import os
from typing import Dict, Any, List, Optional
from pathlib import Path

from eq_raid_tools.base import JSONTool, logger


class Config(JSONTool):
    """
    JSON configuration reader with profiles and secrets.

    Attributes:
        config_dir (str): Directory containing profile JSON files
        secrets_dir (str): Directory containing secrets JSON files
        profile (str): Active profile name
        data (dict): Loaded configuration data
    """

    DEFAULT_CONFIG_DIR = str(Path(__file__).parent / 'profiles')
    DEFAULT_SECRETS_DIR = str(Path(__file__).parent / 'secrets')
    DEFAULT_PROFILE = "default"

    CONFIG_DIR_ENV = "EQ_RAID_TOOLS_CONFIG_DIR"
    SECRETS_DIR_ENV = "EQ_RAID_TOOLS_SECRETS_DIR"

    def __init__(self, config_dir: str = None, secrets_dir: str = None, profile: str = None,
                 config: Optional[Dict[str, Any]] = None):
        """
        Initialize the Config instance and load the profile.

        Args:
            config_dir (str, optional): Directory for profiles. Defaults to
                $EQ_RAID_TOOLS_CONFIG_DIR or the 'profiles' directory next to this file.
            secrets_dir (str, optional): Directory for secrets. Defaults to
                $EQ_RAID_TOOLS_SECRETS_DIR or the 'secrets' directory next to this file.
            profile (str, optional): Profile name. Defaults to 'default'.
            config (dict, optional): Base configuration for the JSONTool base class.
        """
        super().__init__(config)

        self.config_dir = config_dir or os.environ.get(self.CONFIG_DIR_ENV) or self.DEFAULT_CONFIG_DIR
        self.secrets_dir = secrets_dir or os.environ.get(self.SECRETS_DIR_ENV) or self.DEFAULT_SECRETS_DIR
        self.profile = profile or self.DEFAULT_PROFILE
        self.data = {}

        Path(self.config_dir).mkdir(parents=True, exist_ok=True)
        Path(self.secrets_dir).mkdir(parents=True, exist_ok=True)

        self._load()

    def run(self) -> Dict[str, Any]:
        """Return the loaded configuration."""
        return self.data

    def _load(self):
        """
        Load the profile JSON and merge its secrets.

        A missing default profile is created empty; a missing named profile
        or an unreadable file leaves the configuration empty.
        """
        profile_path = Path(self.config_dir) / f"{self.profile}.json"

        if not profile_path.exists():
            if self.profile == self.DEFAULT_PROFILE:
                self._create_default_profile(str(profile_path))
            else:
                logger.warning(f"Profile '{self.profile}' not found. Using empty configuration.")
                self.data = {}
            return

        try:
            self.data = self.read_json(str(profile_path))
            logger.info(f"Loaded configuration from '{self.profile}'")
            self._load_secrets()
        except Exception as e:
            logger.error(f"Error loading configuration: {e}")
            self.data = {}

    def _create_default_profile(self, profile_path: str):
        # Defaults are documented in profiles/default.json.example
        try:
            self.write_json({}, profile_path)
            logger.info(f"Created empty default profile at '{profile_path}'")
        except OSError as e:
            logger.error(f"Error creating default configuration: {e}")
        self.data = {}

    def _load_secrets(self):
        """Deep-merge secrets/<profile>_secrets.json over the profile, if present."""
        secrets_path = Path(self.secrets_dir) / f"{self.profile}_secrets.json"
        if not secrets_path.exists():
            logger.debug(f"No secrets file found for profile '{self.profile}'")
            return

        try:
            secrets = self.read_json(str(secrets_path))
        except Exception as e:
            logger.error(f"Error loading secrets for profile '{self.profile}': {e}")
            return

        if isinstance(secrets, dict):
            self._deep_merge(self.data, secrets)
            logger.info(f"Merged secrets from '{secrets_path}'")

    def _deep_merge(self, target: Dict[str, Any], source: Dict[str, Any]):
        """Recursively merge source into target; non-dict values replace."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._deep_merge(target[key], value)
            else:
                target[key] = value

    def get(self, path: str = None, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation path.

        Args:
            path (str, optional): e.g. "eq.timezone" or "raid_server.api_key".
                None returns the whole configuration.
            default (Any, optional): Value returned when the path is missing.

        Examples:
            >>> config.get('eq.raid_start_utc', 13)
            13
            >>> config.get()
            {'general': {...}, 'eq': {...}, 'raid_server': {...}}
        """
        if path is None:
            return self.data

        current = self.data
        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def list_profiles(self) -> List[str]:
        """Names of the profiles in the config directory."""
        return sorted(f.stem for f in Path(self.config_dir).glob("*.json"))

    def switch_profile(self, profile: str) -> bool:
        """
        Switch to another profile and reload.

        Returns:
            bool: True if the profile exists, False otherwise.
        """
        profile_path = Path(self.config_dir) / f"{profile}.json"
        if not profile_path.exists():
            logger.warning(f"Profile '{profile}' not found.")
            return False
        self.profile = profile
        self._load()
        return True
