"""
Centralized filesystem paths for logs and runtime configuration.
"""
import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent


def _dir_from_env(var_name: str, default: Path) -> Path:
    raw = os.getenv(var_name, "").strip()
    if raw:
        return Path(raw).expanduser()
    return default


def get_config_dir() -> Path:
    """
    Return the runtime configuration directory.

    Priority:
    1. GOALSCAPE_CONFIG_DIR env var
    2. <project_root>/config
    """
    return _dir_from_env("GOALSCAPE_CONFIG_DIR", PROJECT_ROOT / "config")


def get_logs_dir() -> Path:
    """
    Return the log directory.

    Priority:
    1. GOALSCAPE_LOGS_DIR env var
    2. <project_root>/logs
    """
    return _dir_from_env("GOALSCAPE_LOGS_DIR", PROJECT_ROOT / "logs")


CONFIG_DIR = get_config_dir()
LOGS_DIR = get_logs_dir()
