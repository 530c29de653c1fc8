"""SNS endpoint example program.

Subscribes one HTTP endpoint to one SNS topic and logs every notification it
receives. Useful to verify a subscription end to end before wiring in real
application code.

Quick Start Examples
====================

**1. Run with positional arguments:**

    .. code-block:: bash

        python -m sns_endpoint.webhook arn:aws:sns:us-east-1:123456789012:orders /sns/orders

**2. Run from a .env file:**

    .. code-block:: bash

        cat > .env <<EOF
        SNS_TOPIC_ARN=arn:aws:sns:us-east-1:123456789012:orders
        SNS_ENDPOINT=/sns/orders
        PORT=9000
        EOF
        python -m sns_endpoint.webhook

**3. Using Python:**

    .. code-block:: python

        import asyncio
        from sns_endpoint.webhook.entry import run_endpoint_server

        asyncio.run(run_endpoint_server("arn:aws:sns:us-east-1:123456789012:orders", "/sns/orders", port=9000))

Environment Variables
=====================
- **SNS_TOPIC_ARN** / **SNS_ENDPOINT**: used when the positional arguments are omitted
- **HOST** / **PORT**: listener address (default 0.0.0.0:8080)
- **READ_TIMEOUT** / **CONFIRM_TIMEOUT**: seconds (default 15)
- **LOG_LEVEL**, **LOG_FILE**, **LOG_DIR**, **LOG_FORMAT**: logging
"""

import asyncio
import logging
import pathlib
from typing import Final, Optional

from dotenv import load_dotenv

from sns_endpoint.handler import CallbackFunc
from sns_endpoint.logging.config import setup_logging
from sns_endpoint.model import SNSMessage
from sns_endpoint.settings import SettingModel, get_settings

from .cli.options import _parse_args
from .server import SNSServer

__all__: list[str] = [
    "print_message",
    "run_endpoint_server",
    "main",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

USAGE: Final[str] = "USAGE: python -m sns_endpoint.webhook topic:arn /web/endpoint"


def print_message(msg: Optional[SNSMessage]) -> None:
    """Log a confirmation or the fields of one notification."""
    if msg is None:
        _LOG.info("Topic Subscription Confirmed.")
        return
    _LOG.info("-----")
    _LOG.info(f"timestamp:  {msg.timestamp.isoformat()}")
    _LOG.info(f"message-id: {msg.message_id}")
    _LOG.info(f"subject:    '{msg.subject}'")
    _LOG.info(msg.message)
    _LOG.info("-----")


async def run_endpoint_server(
    topic_arn: str,
    endpoint: str,
    host: str = "0.0.0.0",
    port: int = 8080,
    callback: CallbackFunc = print_message,
    settings: Optional[SettingModel] = None,
) -> None:
    """Serve one topic subscription until the listener stops.

    Parameters
    ----------
    topic_arn : str
        Topic ARN expected in the ``x-amz-sns-topic-arn`` header
    endpoint : str
        URL path the subscription points at
    host : str, optional
        Interface to bind. Default is "0.0.0.0" (all interfaces).
    port : int, optional
        Port to listen on. Default is 8080.
    callback : CallbackFunc, optional
        Receives ``None`` once confirmed, then each message. Defaults to
        :func:`print_message`.
    settings : SettingModel | None, optional
        Source of the listener timeouts; defaults to :func:`get_settings`.
    """
    server = SNSServer.from_settings(settings or get_settings())
    server.add_topic(topic_arn, endpoint, callback)

    _LOG.info(f"Starting SNS endpoint server on {host}:{port}")
    await server.serve(host=host, port=port)


def main(argv: Optional[list[str]] = None) -> None:
    """Run the example program.

    Command-line values win over settings; settings come from the .env file
    (which overrides the process environment) and then the environment.

    Parameters
    ----------
    argv : Optional[list[str]], optional
        Command-line arguments to parse. If None, uses sys.argv.

    Raises
    ------
    SystemExit
        If no topic ARN or endpoint is configured.
    """
    args = _parse_args(argv)

    env_path: Optional[pathlib.Path] = None
    if not args.no_env_file:
        env_path = pathlib.Path(args.env_file)
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=True)

    settings = get_settings(env_file=args.env_file, no_env_file=args.no_env_file, force_reload=True)

    setup_logging(
        level=args.log_level or settings.log_level.value,
        log_file=args.log_file or settings.log_file,
        log_dir=args.log_dir or settings.log_dir,
        log_format=args.log_format or settings.log_format,
    )
    if env_path is not None:
        if env_path.exists():
            _LOG.info(f"Loaded environment variables from {env_path.resolve()}")
        else:
            _LOG.warning(f"Environment file not found: {env_path.resolve()}")

    topic_arn = args.topic_arn or settings.sns_topic_arn
    endpoint = args.endpoint or settings.sns_endpoint
    if not topic_arn or not endpoint:
        raise SystemExit(USAGE)

    asyncio.run(
        run_endpoint_server(
            topic_arn,
            endpoint,
            host=args.host or settings.host,
            port=args.port or settings.port,
            settings=settings,
        )
    )


if __name__ == "__main__":
    main()
