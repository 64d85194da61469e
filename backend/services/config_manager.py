"""
Configuration Manager - Handle backend settings persistence
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# (section, key) <- environment variable; applied on read, never persisted
ENV_OVERRIDES = {
    ("openai", "apiKey"): "OPENAI_API_KEY",
    ("openai", "model"): "OPENAI_MODEL",
    ("openai", "baseUrl"): "OPENAI_BASE_URL",
    ("jira", "baseUrl"): "JIRA_BASE_URL",
    ("jira", "projectKey"): "JIRA_PROJECT_KEY",
    ("jira", "email"): "JIRA_EMAIL",
    ("jira", "apiToken"): "JIRA_API_TOKEN",
}


class ConfigManager:
    """Manage configuration persistence"""

    _instance = None
    _config_file = None

    def __init__(self):
        config_dir = os.environ.get("WORKFLOW_STUDIO_CONFIG_DIR") or os.path.expanduser("~/.workflow_studio")

        try:
            config_path = Path(config_dir)
            config_path.mkdir(parents=True, exist_ok=True)
            self._config_file = config_path / "config.json"
        except OSError as e:
            logger.warning("Cannot write to %s: %s", config_dir, e)
            self._config_file = None

        # Unwritable home: fall back to the temp dir
        if not self._config_file:
            tmp_dir = Path(tempfile.gettempdir()) / "workflow_studio"
            tmp_dir.mkdir(parents=True, exist_ok=True)
            self._config_file = tmp_dir / "config.json"
            logger.info("Using temporary config path: %s", self._config_file)

        self._config = self._load_config()

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = ConfigManager()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Drop the singleton so the next access re-reads the environment"""
        cls._instance = None

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from file, filling missing keys from defaults"""
        config = self._default_config()
        if not self._config_file.exists():
            return config

        try:
            with open(self._config_file) as f:
                stored = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Error loading config: %s", e)
            return config

        for section, values in stored.items():
            if isinstance(values, dict) and isinstance(config.get(section), dict):
                config[section].update(values)
            else:
                config[section] = values
        return config

    def _default_config(self) -> dict[str, Any]:
        """Get default configuration"""
        return {
            "openai": {
                "apiKey": "",
                "model": "gpt-4o-mini",
                "baseUrl": "https://api.openai.com/v1",
                "temperature": 0.7,
            },
            "relay": {
                "fallbackIntervalMs": 40,
                "connectTimeoutSeconds": 15,
                "readTimeoutSeconds": 60,
                "pingSeconds": 15,
            },
            "jira": {"baseUrl": "", "projectKey": "", "email": "", "apiToken": ""},
            "server": {"host": "0.0.0.0", "port": 4000},
        }

    def _apply_env(self, config: dict[str, Any]) -> dict[str, Any]:
        for (section, key), env_name in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                config.setdefault(section, {})[key] = value
        return config

    def get_config(self) -> dict[str, Any]:
        """Get current configuration with environment overrides applied"""
        # Reload config from file to ensure we have the latest
        self._config = self._load_config()
        return self._apply_env(copy.deepcopy(self._config))

    def get_stored_config(self) -> dict[str, Any]:
        """Get the persisted configuration without environment overrides"""
        self._config = self._load_config()
        return copy.deepcopy(self._config)

    def save_config(self, config: dict[str, Any]):
        """Save configuration to file"""
        self._config.update(config)
        self._config_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self._config_file, "w") as f:
                json.dump(self._config, f, indent=2)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}")
