"""Centralized logging configuration.

The library itself never configures logging; command-line entry points call
:func:`setup_logging_from_args` after parsing their arguments.

.. code-block:: python

    import argparse
    from sns_endpoint.logging.config import add_logging_arguments, setup_logging_from_args

    parser = add_logging_arguments(argparse.ArgumentParser())
    setup_logging_from_args(parser.parse_args(["--log-level", "DEBUG"]))
"""

from __future__ import annotations

import argparse
import logging
import logging.config
import pathlib
from typing import Any, Dict, Final, Optional

from sns_endpoint.settings import LogLevel

__all__: list[str] = [
    "DEFAULT_LOG_FORMAT",
    "build_logging_config",
    "setup_logging",
    "add_logging_arguments",
    "setup_logging_from_args",
]

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)8s] %(name)s: %(message)s"


def build_logging_config(
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    log_format: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a :func:`logging.config.dictConfig` mapping.

    Args:
        level: Level for the ``sns_endpoint`` logger and the root logger.
        log_file: File name for an additional file handler. Relative names are
            placed under ``log_dir`` when it is given.
        log_dir: Directory for ``log_file``; created if missing.
        log_format: Format string for all handlers.

    Returns:
        Dict[str, Any]: The configuration mapping.
    """
    level = level.upper()
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stderr",
            "level": level,
        }
    }

    if log_file:
        path = pathlib.Path(log_file)
        if log_dir and not path.is_absolute():
            path = pathlib.Path(log_dir) / path
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "filename": str(path),
            "encoding": "utf-8",
            "level": level,
        }

    handler_names = list(handlers)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": log_format or DEFAULT_LOG_FORMAT},
        },
        "handlers": handlers,
        "loggers": {
            "": {"handlers": handler_names, "level": level},
            "sns_endpoint": {"handlers": handler_names, "level": level, "propagate": False},
            # uvicorn access lines duplicate our own per-delivery logging
            "uvicorn.access": {"handlers": handler_names, "level": "WARNING", "propagate": False},
            "httpx": {"handlers": handler_names, "level": "WARNING", "propagate": False},
        },
    }


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """Apply :func:`build_logging_config` to the logging system."""
    logging.config.dictConfig(
        build_logging_config(level=level, log_file=log_file, log_dir=log_dir, log_format=log_format)
    )


def add_logging_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Add the shared ``--log-*`` options to ``parser`` and return it."""
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=[lvl.value for lvl in LogLevel],
        help="Logging level (default: LOG_LEVEL setting or INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for --log-file when it is a relative name",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        help="Log message format (logging module %% style)",
    )
    return parser


def setup_logging_from_args(args: Any) -> None:
    """Configure logging from a parsed namespace or options model."""
    setup_logging(
        level=getattr(args, "log_level", None) or "INFO",
        log_file=getattr(args, "log_file", None),
        log_dir=getattr(args, "log_dir", None),
        log_format=getattr(args, "log_format", None),
    )
