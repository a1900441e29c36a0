#!/usr/bin/env python3
"""
CENTRALIZED LOGGING CONFIGURATION
==================================

Purpose:
- Setup per-component loggers with rotating file handlers
- Isolate logs by service: execution_service, command_service, orchestrator, broker, telegram
- Each component has its own rotating log file (20MB, 5 backups)
- All logs also go to console with clean formatting

USAGE:
    from binance_platform.logging.logger_config import setup_application_logging, get_component_logger

    # Setup once in main
    setup_application_logging(log_dir="logs", level="INFO")

    # Get logger in each module
    logger = get_component_logger("orchestrator")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict

# Standard format: [TIMESTAMP] [LEVEL] [COMPONENT] [MESSAGE]
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'
LOG_DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'

# Key -> logger name. Modules using __name__ (e.g. 'binance_platform.brokers.binance.client')
# propagate to the parent logger registered here.
COMPONENT_NAMES = {
    # ---- Core execution ----
    'execution_service': 'EXECUTION_SERVICE',
    'command_service':   'COMMAND_SERVICE',
    'orchestrator':      'ORCHESTRATOR',

    # ---- Broker ----
    'broker':            'binance_platform.brokers',

    # ---- Chat transport ----
    'telegram':          'TELEGRAM',
    'forum_watcher':     'FORUM_WATCHER',
    'notifications':     'notifications',

    # ---- Core / Config ----
    'core':              'binance_platform.core',
}

# Global configuration
_log_dir: Optional[Path] = None
_log_level: str = 'INFO'
_console_handler: Optional[logging.StreamHandler] = None
_component_handlers: Dict[str, logging.handlers.RotatingFileHandler] = {}


def setup_application_logging(
    log_dir: str = 'logs',
    level: str = 'INFO',
    max_bytes: int = 20 * 1024 * 1024,  # 20 MB per file
    backup_count: int = 5,
    quiet_waitress: bool = True
) -> None:
    """
    Initialize application-wide logging with per-component rotating handlers.

    This MUST be called once at application startup (in main()).

    Args:
        log_dir: Directory to store log files
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        max_bytes: Max size of a log file before rotation
        backup_count: Number of backup files to keep
        quiet_waitress: Keep waitress queue chatter at WARNING
    """
    global _log_dir, _log_level, _console_handler

    _log_dir = Path(log_dir)
    _log_level = level.upper()

    _log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, _log_level))

    # Remove any existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATETIME_FORMAT)

    _console_handler = logging.StreamHandler(sys.stdout)
    _console_handler.setLevel(getattr(logging, _log_level))
    _console_handler.setFormatter(formatter)
    root_logger.addHandler(_console_handler)

    if quiet_waitress:
        logging.getLogger('waitress.queue').setLevel(logging.WARNING)

    _setup_component_handlers(max_bytes, backup_count, formatter)

    # Catch-all file so nothing outside a component is lost
    root_fh = logging.handlers.RotatingFileHandler(
        _log_dir / "application.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8',
    )
    root_fh.setLevel(getattr(logging, _log_level))
    root_fh.setFormatter(formatter)
    root_logger.addHandler(root_fh)


def _setup_component_handlers(max_bytes: int, backup_count: int, formatter: logging.Formatter) -> None:
    """
    Create a rotating file handler for each component and attach it immediately,
    so loggers obtained via logging.getLogger(__name__) also reach their file.
    """
    for key, component_name in COMPONENT_NAMES.items():
        handler = logging.handlers.RotatingFileHandler(
            _log_dir / f"{key}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        handler.setLevel(getattr(logging, _log_level))
        handler.setFormatter(formatter)

        _component_handlers[component_name] = handler

        logger = logging.getLogger(component_name)
        if not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers):
            logger.addHandler(handler)


def get_component_logger(component_key: str) -> logging.Logger:
    """
    Get or create a logger for a specific component.

    Example:
        logger = get_component_logger('orchestrator')
        logger.info("Placing entry order")
    """
    if component_key not in COMPONENT_NAMES:
        raise ValueError(f"Unknown component: {component_key}. Must be one of {list(COMPONENT_NAMES.keys())}")

    component_name = COMPONENT_NAMES[component_key]
    logger = logging.getLogger(component_name)

    if not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers):
        if component_name in _component_handlers:
            logger.addHandler(_component_handlers[component_name])

    return logger


def get_log_files() -> Dict[str, Path]:
    """Paths of all active component log files."""
    return {
        component_name: Path(handler.baseFilename)
        for component_name, handler in _component_handlers.items()
    }
