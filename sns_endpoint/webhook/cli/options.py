"""Command-line argument parsing for the SNS endpoint example program.

Returns a validated `EndpointServerCliOptions` instance.

Examples
--------
.. code-block:: python

    from sns_endpoint.webhook.cli.options import _parse_args

    opts = _parse_args(["arn:aws:sns:us-east-1:123456789012:orders", "/orders"])
    print(opts.topic_arn, opts.endpoint)
"""

from __future__ import annotations

import argparse

from sns_endpoint.logging.config import add_logging_arguments

from .models import EndpointServerCliOptions


def _parse_args(argv: list[str] | None = None) -> EndpointServerCliOptions:
    """Parse CLI args and build `EndpointServerCliOptions`.

    Parameters
    ----------
    argv : list[str] | None, optional
        Argument list to parse. If None, uses sys.argv.

    Returns
    -------
    EndpointServerCliOptions
        Validated immutable options for starting the example server.
    """
    parser = argparse.ArgumentParser(
        description="Subscribe an HTTP endpoint to an SNS topic and print every notification"
    )
    parser.add_argument(
        "topic_arn",
        nargs="?",
        default=None,
        help="SNS topic ARN (default: SNS_TOPIC_ARN from .env or environment)",
    )
    parser.add_argument(
        "endpoint",
        nargs="?",
        default=None,
        help="URL path of the endpoint, e.g. /sns/orders (default: SNS_ENDPOINT)",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: HOST setting or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: PORT setting or 8080)",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env in current directory)",
    )
    parser.add_argument(
        "--no-env-file",
        action="store_true",
        help="Disable loading from .env file",
    )

    # Add centralized logging arguments
    parser = add_logging_arguments(parser)

    return EndpointServerCliOptions.deserialize(parser.parse_args(argv))
