"""
Configuration Manager for Goalscape.

Central place for the constants the goal core depends on. Every tunable
value is declared here and can be overridden from config/runtime.yaml.

Usage:
    from goalscape.config_manager import config
    duration = config.TRANSITION_DURATION_MS
"""
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from goalscape.logger import get_logger
from goalscape.paths import CONFIG_DIR

RUNTIME_CONFIG_PATH = CONFIG_DIR / "runtime.yaml"

logger = get_logger("config")


@dataclass
class SystemConfig:
    """
    Runtime constants for the goal core.

    IMPORTANCE_TOTAL is part of the sibling-sum invariant and is not meant to
    be tuned; the rest are presentation or policy knobs.
    """

    # === Importance ===

    # Every sibling set with children sums to this value
    IMPORTANCE_TOTAL: int = 100

    # Clamp importance/weight into range instead of raising OutOfRangeError
    CLAMP_OUT_OF_RANGE: bool = True

    # === Tasks ===

    # Weight given to a new leaf when the caller does not pass one
    DEFAULT_TASK_WEIGHT: int = 1

    # Title used when a node is created without one
    DEFAULT_NODE_TITLE: str = "New Goal"

    # === Focus ===

    # Frozen milestones are advisory by default and stay eligible for focus.
    # Set to true to treat frozen like skipped.
    FROZEN_BLOCKS_FOCUS: bool = False

    # === Importance animation ===

    # Length of one importance transition
    TRANSITION_DURATION_MS: int = 500

    # Step between frames when a transition is iterated without a clock
    TRANSITION_FRAME_MS: int = 16

    # === Logging ===

    # Level names as understood by the logging module ("DEBUG", "info", ...)
    LOG_LEVEL: str = "INFO"
    CONSOLE_LOG_LEVEL: str = "WARNING"

    # Rotation of system.log / error.log
    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 3


def _load_runtime_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load runtime overrides if the file exists."""
    target = path if path is not None else RUNTIME_CONFIG_PATH
    if not target.exists():
        return {}

    try:
        with open(target, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        logger.warning(f"Ignoring unreadable runtime config {target}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring runtime config {target}: top level is not a mapping")
        return {}
    return data


def get_config(path: Optional[Path] = None) -> SystemConfig:
    """
    Build a SystemConfig instance.

    Priority: runtime.yaml > defaults. Unknown keys are ignored.
    """
    base = SystemConfig()
    overrides = _load_runtime_config(path)
    known = {f.name for f in fields(SystemConfig)}

    for key, value in overrides.items():
        if key in known:
            setattr(base, key, value)
        else:
            logger.debug(f"Unknown config key ignored: {key}")

    return base


# Module-level instance
config = get_config()
