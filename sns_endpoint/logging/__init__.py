"""Logging configuration helpers for the SNS endpoint command-line tools."""

from .config import add_logging_arguments, setup_logging, setup_logging_from_args

__all__ = ["setup_logging", "add_logging_arguments", "setup_logging_from_args"]
