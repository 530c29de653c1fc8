"""Pydantic models for the SNS endpoint CLI options.

Defines a typed configuration model used by the example program entrypoint.

Examples
--------
.. code-block:: python

    from sns_endpoint.webhook.cli.options import _parse_args

    opts = _parse_args(["arn:aws:sns:us-east-1:123456789012:orders", "/orders", "--port", "9000"])
    assert opts.port == 9000
"""

from __future__ import annotations

import argparse

from pydantic import BaseModel, ConfigDict, Field


class EndpointServerCliOptions(BaseModel):
    """Validated CLI options for the SNS endpoint example program.

    Fields
    ------
    topic_arn : str | None
        Topic to subscribe (falls back to ``SNS_TOPIC_ARN``)
    endpoint : str | None
        URL path to serve it on (falls back to ``SNS_ENDPOINT``)
    host : str | None
        Host to bind (falls back to ``HOST``, then 0.0.0.0)
    port : int | None
        Port to listen on (falls back to ``PORT``, then 8080)
    log_level : str | None
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL), falls back to ``LOG_LEVEL``
    log_file : str | None
        Path to log file (optional)
    log_dir : str | None
        Directory for log files (optional)
    log_format : str | None
        Log message format (optional)
    env_file : str
        Path to .env file for environment variable loading
    no_env_file : bool
        Disable loading .env file when True
    """

    topic_arn: str | None = None
    endpoint: str | None = None

    host: str | None = None
    port: int | None = Field(None, ge=1, le=65535)

    log_level: str | None = None
    log_file: str | None = None
    log_dir: str | None = None
    log_format: str | None = None

    env_file: str = ".env"
    no_env_file: bool = False

    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def deserialize(cls, ns: argparse.Namespace) -> "EndpointServerCliOptions":
        """Build a validated options object from argparse namespace."""
        data = {name: getattr(ns, name) for name in cls.model_fields.keys() if hasattr(ns, name)}
        return cls(**data)
