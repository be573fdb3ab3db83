from __future__ import annotations

"""Central logging configuration for Text Sectioner.

Import and call :func:`setup_logging` at application start-up.
"""

import logging
import os
import logging.config
from text_sectioner.config import ConfigManager

__all__ = ["setup_logging"]

EDITING_LOGGER = "text_sectioner.core.services.section_editing_service"


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("SECTIONER_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    try:
        logging_config = ConfigManager().get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # Update the filename dynamically
            if "handlers" in logging_config and "file" in logging_config["handlers"]:
                logging_config["handlers"]["file"]["filename"] = log_file

            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        # dictConfig reports bad configurations as one of these
        _setup_minimal_logging()
        logging.getLogger(__name__).error("Error loading logging config: %s", exc)

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
        # Module logger entry so it can be flipped via env even in minimal mode
        'loggers': {
            EDITING_LOGGER: {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False,
            }
        }
    }

    logging.config.dictConfig(minimal_config)
    logging.warning("===== Logging initialised with minimal fallback =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - SECTIONER_DEBUG_EDITING=true  -> DEBUG for the editing service
    - SECTIONER_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_editing = os.environ.get('SECTIONER_DEBUG_EDITING', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('SECTIONER_DEBUG_MODULES', '').strip()
    targets = []
    if debug_editing:
        targets.append(EDITING_LOGGER)
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])

    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            handler = logging.StreamHandler()
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(handler)
        logger.info("Debug override active for logger '%s'", name)
