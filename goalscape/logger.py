"""
Goalscape logging setup.

The "goalscape" logger gets three handlers:
- system.log: regular operation, from LOG_LEVEL up
- error.log: failures only (ERROR+)
- stderr: what a caller should notice, from CONSOLE_LOG_LEVEL up

Both files rotate at LOG_MAX_BYTES and keep LOG_BACKUP_COUNT old copies.
Importing the package configures nothing; an application calls
setup_logging() once at startup.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from goalscape.exceptions import InvalidOperationError
from goalscape.paths import LOGS_DIR

if TYPE_CHECKING:
    from goalscape.config_manager import SystemConfig

ROOT_LOGGER_NAME = "goalscape"

FILE_FORMAT = logging.Formatter(
    "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
CONSOLE_FORMAT = logging.Formatter("[%(levelname)s] %(name)s: %(message)s")


def resolve_level(level: Union[int, str]) -> int:
    """Accept a numeric level or a case-insensitive level name."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise InvalidOperationError(
            f"Unknown log level: {level!r}",
            hint="Use DEBUG, INFO, WARNING, ERROR or CRITICAL",
        )
    return resolved


def _rotating_handler(path: Path, level: int, cfg: "SystemConfig") -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=cfg.LOG_MAX_BYTES,
        backupCount=cfg.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(FILE_FORMAT)
    return handler


def setup_logging(
    cfg: Optional["SystemConfig"] = None,
    logs_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    (Re)configure the goalscape logger hierarchy.

    Args:
        cfg: source of levels and rotation limits (default: module config)
        logs_dir: where the log files go (default: LOGS_DIR)

    Returns:
        The configured "goalscape" logger.
    """
    if cfg is None:
        # config_manager logs through this module, so it is imported late
        from goalscape.config_manager import config as cfg

    file_level = resolve_level(cfg.LOG_LEVEL)
    console_level = resolve_level(cfg.CONSOLE_LOG_LEVEL)

    target_dir = logs_dir if logs_dir is not None else LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(min(file_level, console_level, logging.ERROR))

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    logger.addHandler(_rotating_handler(target_dir / "system.log", file_level, cfg))
    logger.addHandler(_rotating_handler(target_dir / "error.log", logging.ERROR, cfg))

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(CONSOLE_FORMAT)
    logger.addHandler(console)

    logger.debug(f"Logging to {target_dir} (file {logging.getLevelName(file_level)})")
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for one component, e.g. get_logger("store") -> goalscape.store."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logging.getLogger(ROOT_LOGGER_NAME)
