"""
Configuration for the conversion tools.

Loaded from a YAML file and environment variables with precedence
env > config file > defaults. Command line flags override the result.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Default config file locations (checked in order)
DEFAULT_CONFIG_PATHS = [
    Path("exim2sieve.yaml"),
    Path("~/.config/exim2sieve/config.yaml").expanduser(),
    Path("/etc/exim2sieve.yaml"),
]


@dataclass
class Config:
    log_level: str = "INFO"
    output_dir: str = "./backup"
    encoding: str = "utf-8"
    verify: bool = True


def load_yaml_config(path: Path) -> Dict[str, Any]:
    """Load configuration from a YAML file; problems are logged, not raised."""
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config {path}: top level is not a mapping")
        return {}

    logger.info(f"Loaded config from {path}")
    return data


def find_config_file() -> Optional[Path]:
    env_path = os.getenv("EXIM2SIEVE_CONFIG")
    if env_path:
        path = Path(env_path).expanduser()
        if path.exists():
            return path

    for path in DEFAULT_CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _truthy(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _apply_yaml_config(config: Config, data: Dict[str, Any]) -> None:
    if "log_level" in data:
        config.log_level = str(data["log_level"]).upper()
    if "output_dir" in data:
        config.output_dir = str(data["output_dir"])
    if "encoding" in data:
        config.encoding = str(data["encoding"])
    if "verify" in data:
        config.verify = _truthy(data["verify"])


def _apply_env_config(config: Config, prefix: str) -> None:
    if os.getenv(f"{prefix}LOG_LEVEL"):
        config.log_level = os.getenv(f"{prefix}LOG_LEVEL").upper()
    if os.getenv(f"{prefix}OUTPUT_DIR"):
        config.output_dir = os.getenv(f"{prefix}OUTPUT_DIR")
    if os.getenv(f"{prefix}ENCODING"):
        config.encoding = os.getenv(f"{prefix}ENCODING")
    if os.getenv(f"{prefix}VERIFY"):
        config.verify = _truthy(os.getenv(f"{prefix}VERIFY"))


def load_config(config_path: Optional[Path] = None, env_prefix: str = "EXIM2SIEVE_") -> Config:
    """
    Load configuration with proper precedence.

    Args:
        config_path: Explicit config file path (optional)
        env_prefix: Prefix for environment variables

    Returns:
        Populated Config object
    """
    config = Config()

    if config_path is None:
        config_path = find_config_file()

    if config_path:
        _apply_yaml_config(config, load_yaml_config(Path(config_path)))

    _apply_env_config(config, env_prefix)

    return config
