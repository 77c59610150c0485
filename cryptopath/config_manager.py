"""
Global ConfigManager singleton.

Services read configuration through get_config() so that the API server, the
seed script and tests all resolve the same merged view of config.yaml and the
environment.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional, Union

logger = logging.getLogger(__name__)

_global_config_manager: Optional['ConfigManager'] = None


class ConfigManager:
    """Holds the loaded configuration and applies environment overrides."""

    def __init__(self, config_path: Union[str, Path, None] = None):
        from .utils import load_config as _load_config, DEFAULT_CONFIG_PATH
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self.config = _load_config(self.config_path, use_global_manager=False)
        self._apply_env_overrides()
        logger.info("[CONFIG MANAGER] Loaded configuration from %s", self.config_path)

    def _apply_env_overrides(self) -> None:
        api_cfg = self.config.setdefault("api", {}) or {}
        origins_env = os.getenv("API_ALLOWED_ORIGINS")
        if origins_env:
            api_cfg["allowed_origins"] = [
                origin.strip() for origin in origins_env.split(",") if origin.strip()
            ]
        self.config["api"] = api_cfg

        explorer_cfg = self.config.setdefault("explorer", {}) or {}
        api_key = os.getenv("ETHERSCAN_API_KEY")
        if api_key:
            explorer_cfg["api_key"] = api_key
        self.config["explorer"] = explorer_cfg

    def get_config(self) -> Dict[str, Any]:
        """Get current configuration."""
        return self.config.copy()

    def update_config(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep-merge ``updates`` into the in-memory configuration.

        Returns:
            Updated configuration
        """
        def deep_merge(base: Dict, changes: Dict) -> Dict:
            result = base.copy()
            for key, value in changes.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value
            return result

        self.config = deep_merge(self.config, updates)
        logger.info("[CONFIG MANAGER] Configuration updated (%s)", ", ".join(sorted(updates)))
        return self.get_config()


def get_global_config_manager(config_path: Union[str, Path, None] = None) -> ConfigManager:
    """Return the process-wide ConfigManager, creating it on first use."""
    global _global_config_manager
    if _global_config_manager is None:
        _global_config_manager = ConfigManager(config_path)
    return _global_config_manager


def peek_global_config_manager() -> Optional[ConfigManager]:
    return _global_config_manager


def set_global_config_manager(manager: Optional[ConfigManager]) -> None:
    global _global_config_manager
    _global_config_manager = manager


def get_config() -> Dict[str, Any]:
    """Shortcut for get_global_config_manager().get_config()."""
    return get_global_config_manager().get_config()
