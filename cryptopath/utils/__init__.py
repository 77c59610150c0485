"""
Utility functions for configuration and logging.
"""

import os
import logging
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dotenv import load_dotenv, find_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config.yaml"


def load_config(
    config_path: Union[str, Path, None] = None,
    use_global_manager: bool = True,
) -> Dict[str, Any]:
    """
    Load configuration from YAML file or global ConfigManager.

    Args:
        config_path: Path to config file (defaults to config.yaml at the project root)
        use_global_manager: If True, try to use global ConfigManager first

    Returns:
        Configuration dictionary
    """
    if use_global_manager:
        from ..config_manager import peek_global_config_manager
        manager = peek_global_config_manager()
        if manager is not None:
            return manager.get_config()

    # Always prioritize the project-local .env so the value the developer edits wins.
    explicit_env = PROJECT_ROOT / ".env"
    dotenv_loaded = False

    if explicit_env.exists():
        load_dotenv(explicit_env, override=True)
        dotenv_loaded = True

    if not dotenv_loaded:
        env_path = find_dotenv(usecwd=True)
        if env_path:
            load_dotenv(env_path, override=True)
            dotenv_loaded = True

    if not dotenv_loaded:
        load_dotenv(override=False)

    config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    return _expand_env_vars(config)


def _expand_env_vars(config: Any) -> Any:
    """
    Recursively expand environment variables in config.

    Only whole-value placeholders (``${VAR}``) are expanded. Unset variables
    keep the placeholder so callers can detect them with ``is_unset``.
    """
    if isinstance(config, dict):
        return {k: _expand_env_vars(v) for k, v in config.items()}
    elif isinstance(config, list):
        return [_expand_env_vars(item) for item in config]
    elif isinstance(config, str):
        if config.startswith('${') and config.endswith('}'):
            var_name = config[2:-1]
            return os.getenv(var_name, config)
        return config
    else:
        return config


def is_unset(value: Any) -> bool:
    """True for None, empty strings and unexpanded ``${VAR}`` placeholders."""
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return not stripped or stripped.startswith("${")
    return False


def config_value(value: Any, default: Optional[Any] = None) -> Any:
    return default if is_unset(value) else value


def setup_logging(config: Dict[str, Any]):
    """
    Setup logging configuration.

    Args:
        config: Configuration dictionary
    """
    log_level = config.get('logging', {}).get('level', 'INFO')
    log_file = config.get('logging', {}).get('file', 'data/cryptopath.log')

    log_path = Path(log_file)
    if not log_path.is_absolute():
        log_path = PROJECT_ROOT / log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
        force=True,
    )

    # Reduce noise from some libraries
    logging.getLogger('neo4j').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
