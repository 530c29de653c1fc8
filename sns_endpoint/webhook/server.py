"""Amazon SNS HTTP endpoint server implementation (FastAPI).

This module defines :class:`SNSServer`, which maps URL paths to subscribed SNS
topics, validates and decodes inbound deliveries, confirms subscriptions and
hands messages to application callbacks.

Features
========
- Topic check against the ``x-amz-sns-topic-arn`` header
- Automatic subscription confirmation (GET to ``SubscribeURL``)
- JSON envelope and raw message delivery decoding
- Fire-and-forget callbacks: the HTTP acknowledgment never waits for user code

Request handling
================
1. Unknown path: ``404 not found``
2. Topic ARN header mismatch: ``400 bad request``
3. ``x-amz-sns-message-type``:

   - ``SubscriptionConfirmation``: confirm, then ``200 ok``
   - ``Notification``: decode and dispatch, then ``200 ok``
   - anything else: ``501 not implemented``

Malformed bodies are acknowledged with ``200 ok`` but never reach a callback,
so SNS does not keep redelivering a message that can never be decoded.

.. note::
    The topic ARN header is the only authenticity check. It is a trusted
    header, not a signature; put the endpoint behind TLS and a network
    boundary you control.

Quick Examples
==============

.. code-block:: bash

    # Notification
    curl -X POST http://localhost:8080/sns/orders \
         -H "x-amz-sns-message-type: Notification" \
         -H "x-amz-sns-topic-arn: arn:aws:sns:us-east-1:123456789012:orders" \
         -d '{"MessageId": "abc", "Message": "hello", "Timestamp": "2024-01-01T00:00:00.000Z"}'

    # Raw delivery
    curl -X POST http://localhost:8080/sns/orders \
         -H "x-amz-sns-message-type: Notification" \
         -H "x-amz-sns-topic-arn: arn:aws:sns:us-east-1:123456789012:orders" \
         -H "x-amz-sns-rawdelivery: true" \
         -H "x-amz-sns-message-id: abc" \
         -d 'hello'
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from types import MappingProxyType
from typing import AsyncIterator, Dict, Final, Mapping, Optional, Set

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from starlette.requests import ClientDisconnect

from sns_endpoint.handler import CallbackFunc, DeliveryHandler, as_handler
from sns_endpoint.model import (
    Delivery,
    MessageReceived,
    NotificationModel,
    SubscriptionConfirmationModel,
    SubscriptionConfirmed,
    TopicRegistration,
    format_timestamp,
)
from sns_endpoint.settings import SettingModel
from sns_endpoint.types import (
    HEADER_CONTENT_LENGTH,
    HEADER_MESSAGE_ID,
    HEADER_MESSAGE_TYPE,
    HEADER_RAW_DELIVERY,
    HEADER_TOPIC_ARN,
    RESPONSE_BAD_REQUEST,
    RESPONSE_NOT_FOUND,
    RESPONSE_NOT_IMPLEMENTED,
    RESPONSE_OK,
    DeliveryType,
    JSONDict,
)

from .app import create_web_app

__all__: list[str] = [
    "SNSServer",
    "parse_address",
    "simple_response",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final[float] = 15.0
DEFAULT_MAX_HEADER_BYTES: Final[int] = 1 << 20


def simple_response(status_code: int, msg: str) -> PlainTextResponse:
    """Plain-text, newline-terminated response."""
    return PlainTextResponse(content=msg + "\n", status_code=status_code)


def parse_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``:port``) into its parts.

    Parameters
    ----------
    address : str
        Listen address. An empty host means all interfaces; IPv6 hosts may be
        bracketed (``[::1]:8080``).

    Returns
    -------
    tuple[str, int]
        Host and port

    Raises
    ------
    ValueError
        If the address has no port or the port is not a valid number.
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ValueError(f"Missing port in address '{address}'")
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"Invalid port in address '{address}'") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range in address '{address}'")
    host = host.strip("[]") or "0.0.0.0"
    return host, port


class SNSServer:
    """HTTP endpoint for one or more SNS topic subscriptions.

    Register topics with :py:meth:`add_topic`, then serve with
    :py:meth:`listen_and_serve` (blocking), :py:meth:`serve` (async) or mount
    the ASGI app returned by :py:meth:`create_app` yourself.

    Topics must all be added before serving starts. Building the app freezes
    the routing table; later :py:meth:`add_topic` calls raise ``RuntimeError``.

    Parameters
    ----------
    logger : logging.Logger | None
        Receives registration, confirmation and message lines. Defaults to
        this module's logger, which is silent unless logging is configured.
    http_client : httpx.AsyncClient | None
        Client used for the subscription confirmation GET. When omitted a
        short-lived client is created per confirmation.
    read_timeout : float
        Seconds to wait for a request body.
    confirm_timeout : float
        Timeout for the confirmation GET when no client is injected.
    keep_alive_timeout : int
        Idle keep-alive timeout for the listener.
    max_header_bytes : int
        Upper bound for the request head size accepted by the listener.

    Examples
    --------
    .. code-block:: python

        from sns_endpoint import SNSServer

        async def on_message(msg):
            if msg is not None:
                print(msg.subject, msg.message)

        server = SNSServer()
        server.add_topic("arn:aws:sns:us-east-1:123456789012:orders", "sns/orders", on_message)
        server.listen_and_serve(":8080")
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        read_timeout: float = DEFAULT_TIMEOUT,
        confirm_timeout: float = DEFAULT_TIMEOUT,
        keep_alive_timeout: int = int(DEFAULT_TIMEOUT),
        max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES,
    ) -> None:
        self.logger = logger
        self.read_timeout = read_timeout
        self.confirm_timeout = confirm_timeout
        self.keep_alive_timeout = keep_alive_timeout
        self.max_header_bytes = max_header_bytes

        self._http_client = http_client
        self._topics: Dict[str, TopicRegistration] = {}
        self._routes: Optional[Mapping[str, TopicRegistration]] = None
        self._app: Optional[FastAPI] = None
        self._tasks: Set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(cls, settings: SettingModel, logger: Optional[logging.Logger] = None) -> "SNSServer":
        """Build a server using the listener limits from ``settings``."""
        return cls(
            logger=logger,
            read_timeout=settings.read_timeout,
            confirm_timeout=settings.confirm_timeout,
            keep_alive_timeout=settings.keep_alive_timeout,
            max_header_bytes=settings.max_header_bytes,
        )

    @property
    def _log(self) -> logging.Logger:
        return self.logger if self.logger is not None else _LOG

    @property
    def topics(self) -> Mapping[str, TopicRegistration]:
        """Read-only view of the registered endpoints."""
        return self._routes if self._routes is not None else MappingProxyType(self._topics)

    @property
    def pending_callbacks(self) -> int:
        """Number of callbacks spawned and not finished yet."""
        return len(self._tasks)

    def add_topic(self, topic_arn: str, endpoint: str, callback: DeliveryHandler | CallbackFunc) -> TopicRegistration:
        """Add an HTTP endpoint for ``topic_arn``.

        Subscription confirmation is handled automatically; every notification
        delivered to ``endpoint`` is passed to ``callback`` in its own task.
        Adding the same endpoint twice replaces the earlier registration.

        Parameters
        ----------
        topic_arn : str
            Expected value of the ``x-amz-sns-topic-arn`` header
        endpoint : str
            URL path; a leading ``/`` is added when missing
        callback : DeliveryHandler | CallbackFunc
            A handler object, or a function taking ``SNSMessage | None``

        Returns
        -------
        TopicRegistration
            The stored registration

        Raises
        ------
        RuntimeError
            If called after the app was built
        """
        if self._routes is not None:
            raise RuntimeError("Topics must be added before the server starts serving")

        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint

        registration = TopicRegistration(topic_arn=topic_arn, endpoint=endpoint, handler=as_handler(callback))
        self._topics[endpoint] = registration
        self._log.info(f"Adding endpoint '{endpoint}' for topic '{topic_arn}'")
        return registration

    def create_app(self) -> FastAPI:
        """Build (once) the ASGI app serving every registered endpoint.

        Returns
        -------
        FastAPI
            App with a single catch-all route handled by :py:meth:`handle`
        """
        if self._app is None:
            self._routes = MappingProxyType(dict(self._topics))
            app = create_web_app(lifespan=self._lifespan)
            # methods=None: every verb, standard or not, reaches the classifier
            app.router.add_route("/{path:path}", self.handle, methods=None, include_in_schema=False)
            self._app = app
        return self._app

    async def handle(self, request: Request) -> PlainTextResponse:
        """Classify one delivery and write its acknowledgment."""
        registration = self.topics.get(request.url.path)
        if registration is None:
            return simple_response(404, RESPONSE_NOT_FOUND)

        if request.headers.get(HEADER_TOPIC_ARN, "") != registration.topic_arn:
            return simple_response(400, RESPONSE_BAD_REQUEST)

        match DeliveryType.from_header(request.headers.get(HEADER_MESSAGE_TYPE)):
            case DeliveryType.SUBSCRIPTION_CONFIRMATION:
                await self._confirm_subscription(registration, request)
            case DeliveryType.NOTIFICATION:
                await self._process_message(registration, request)
            case _:
                return simple_response(501, RESPONSE_NOT_IMPLEMENTED)

        return simple_response(200, RESPONSE_OK)

    async def extract_body(self, request: Request) -> Optional[JSONDict]:
        """Read the delivery body into a generic key/value mapping.

        Exactly ``Content-Length`` bytes are used. Raw deliveries are not
        parsed: their fields are synthesized from the body text, the message
        id header and the current time.

        Returns
        -------
        Optional[JSONDict]
            The fields, or ``None`` when the body is missing or malformed
        """
        try:
            nbytes = int(request.headers.get(HEADER_CONTENT_LENGTH, ""))
        except ValueError:
            self._log.debug(f"Missing or invalid Content-Length on {request.url.path}")
            return None
        if nbytes < 0:
            self._log.debug(f"Negative Content-Length on {request.url.path}")
            return None

        try:
            body = await asyncio.wait_for(request.body(), timeout=self.read_timeout)
        except (asyncio.TimeoutError, ClientDisconnect) as e:
            self._log.warning(f"Error reading body on {request.url.path}: {e!r}")
            return None
        if len(body) < nbytes:
            self._log.debug(f"Short body on {request.url.path} ({len(body)} of {nbytes} bytes)")
            return None
        body = body[:nbytes]

        if request.headers.get(HEADER_RAW_DELIVERY) == "true":
            return {
                "Subject": "",
                "Message": body.decode("utf-8", errors="replace"),
                "MessageId": request.headers.get(HEADER_MESSAGE_ID, ""),
                "Timestamp": format_timestamp(datetime.now(timezone.utc)),
            }

        try:
            data = json.loads(body)
        except (ValueError, RecursionError) as e:
            self._log.debug(f"Error parsing JSON body on {request.url.path}: {e}")
            return None
        if not isinstance(data, dict):
            self._log.debug(f"JSON body on {request.url.path} is not an object")
            return None
        return data

    async def _confirm_subscription(self, registration: TopicRegistration, request: Request) -> None:
        data = await self.extract_body(request)
        if data is None:
            return

        try:
            envelope = SubscriptionConfirmationModel.model_validate(data)
        except ValidationError as e:
            self._log.warning(f"Invalid subscription confirmation for topic '{registration.topic_arn}': {e}")
            return

        try:
            response = await self._visit(envelope.subscribe_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._log.error(f"Error confirming subscription for topic '{registration.topic_arn}': {e}")
            return
        if response.is_error:
            self._log.warning(
                f"Subscription URL for topic '{registration.topic_arn}' answered HTTP {response.status_code}"
            )

        self._log.info(
            f"Endpoint '{registration.endpoint}' confirmed subscription for topic '{registration.topic_arn}'"
        )
        # lets the application run one-time initialization
        self._spawn(
            registration,
            SubscriptionConfirmed(topic_arn=registration.topic_arn, endpoint=registration.endpoint),
        )

    async def _process_message(self, registration: TopicRegistration, request: Request) -> None:
        data = await self.extract_body(request)
        if data is None:
            return

        try:
            envelope = NotificationModel.model_validate(data)
        except ValidationError as e:
            self._log.warning(f"Invalid notification for topic '{registration.topic_arn}': {e}")
            return
        message = envelope.to_message()

        self._log.info(f"Endpoint '{registration.endpoint}' got message for topic '{registration.topic_arn}'")
        self._log.info(f"    MessageId: {message.message_id}")
        self._spawn(
            registration,
            MessageReceived(topic_arn=registration.topic_arn, endpoint=registration.endpoint, message=message),
        )

    async def _visit(self, url: str) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(url, follow_redirects=True)
        async with httpx.AsyncClient(timeout=self.confirm_timeout, follow_redirects=True) as client:
            return await client.get(url)

    def _spawn(self, registration: TopicRegistration, delivery: Delivery) -> None:
        task = asyncio.create_task(
            self._run_callback(registration, delivery),
            name=f"sns-callback:{registration.endpoint}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_callback(self, registration: TopicRegistration, delivery: Delivery) -> None:
        try:
            await registration.handler.handle_delivery(delivery)
        except Exception as e:
            self._log.exception(f"Error in callback for topic '{registration.topic_arn}': {e}")

    async def drain_callbacks(self, timeout: Optional[float] = None) -> bool:
        """Wait for callbacks that are currently running.

        Parameters
        ----------
        timeout : float | None
            Seconds to wait; ``None`` waits until all of them finish

        Returns
        -------
        bool
            True when nothing is left running
        """
        pending = set(self._tasks)
        if not pending:
            return True
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        return not still_running

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        yield
        if self._tasks:
            self._log.info(f"Waiting for {len(self._tasks)} outstanding callback(s)")
        await self.drain_callbacks(timeout=self.read_timeout)

    async def serve(self, host: str = "0.0.0.0", port: int = 8080) -> None:
        """Serve the registered endpoints until the listener stops.

        Parameters
        ----------
        host : str, optional
            Interface to bind, all interfaces by default
        port : int, optional
            Port to listen on, 8080 by default
        """
        # Using uvicorn for ASGI support with FastAPI
        import uvicorn

        config = uvicorn.Config(
            app=self.create_app(),
            host=host,
            port=port,
            timeout_keep_alive=self.keep_alive_timeout,
            h11_max_incomplete_event_size=self.max_header_bytes,
            log_config=None,
        )
        server = uvicorn.Server(config=config)
        self._log.info(f"Listening on {host}:{port}")
        await server.serve()

    def listen_and_serve(self, address: str) -> None:
        """Blocking variant of :py:meth:`serve` taking a ``host:port`` address."""
        host, port = parse_address(address)
        asyncio.run(self.serve(host=host, port=port))
