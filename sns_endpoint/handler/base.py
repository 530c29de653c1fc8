"""Delivery handlers.

Application code receives SNS deliveries through an object implementing the
:class:`DeliveryHandler` protocol. Two ready-made shapes are provided:

- :class:`BaseDeliveryHandler`: subclass and override
  :py:meth:`~BaseDeliveryHandler.on_subscription_confirmed` and/or
  :py:meth:`~BaseDeliveryHandler.on_message`.
- :class:`FunctionHandler`: wraps a bare function that takes one argument,
  ``None`` once the subscription is confirmed and an
  :class:`~sns_endpoint.model.SNSMessage` for every notification.

Quick Example
=============
.. code-block:: python

    from sns_endpoint import BaseDeliveryHandler, SNSServer

    class OrderHandler(BaseDeliveryHandler):
        async def on_subscription_confirmed(self, delivery):
            print("listening on", delivery.endpoint)

        async def on_message(self, delivery):
            print(delivery.message.message)

    server = SNSServer()
    server.add_topic("arn:aws:sns:us-east-1:123456789012:orders", "/orders", OrderHandler())

Both sync and async functions are accepted by :class:`FunctionHandler`. Each
call of a sync function gets a thread of its own, so it never blocks the event
loop and a hung call never holds up the next one.
"""

from __future__ import annotations

import asyncio
import contextvars
import inspect
import logging
import threading
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from sns_endpoint.model import Delivery, MessageReceived, SNSMessage, SubscriptionConfirmed

__all__ = ["DeliveryHandler", "BaseDeliveryHandler", "FunctionHandler", "CallbackFunc", "as_handler", "run_in_thread"]

_LOG = logging.getLogger(__name__)

CallbackFunc = Callable[[Optional[SNSMessage]], Awaitable[Any] | Any]


@runtime_checkable
class DeliveryHandler(Protocol):
    """Protocol for objects that accept SNS deliveries.

    Example
    -------
    .. code-block:: python

        class MyHandler:
            async def handle_delivery(self, delivery) -> None:
                print(delivery)
    """

    async def handle_delivery(self, delivery: Delivery) -> None:
        """Handle one accepted delivery.

        Parameters
        ----------
        delivery : Delivery
            Either :class:`SubscriptionConfirmed` or :class:`MessageReceived`
        """
        ...


class BaseDeliveryHandler(DeliveryHandler):
    """OO-style handler dispatching on the delivery variant.

    Override only what you need; the defaults are no-ops.
    """

    async def handle_delivery(self, delivery: Delivery) -> None:
        """Route ``delivery`` to the matching ``on_*`` method. Do not override."""
        if isinstance(delivery, SubscriptionConfirmed):
            await self.on_subscription_confirmed(delivery)
        elif isinstance(delivery, MessageReceived):
            await self.on_message(delivery)
        else:
            await self.on_unknown(delivery)

    async def on_subscription_confirmed(self, delivery: SubscriptionConfirmed) -> None:
        """Called once the subscription URL was visited successfully."""

    async def on_message(self, delivery: MessageReceived) -> None:
        """Called for every decoded notification."""

    async def on_unknown(self, delivery: Any) -> None:
        _LOG.debug(f"Unhandled delivery: {delivery!r}")


class FunctionHandler(BaseDeliveryHandler):
    """Adapt a single-argument function to the :class:`DeliveryHandler` protocol.

    The function receives ``None`` for a confirmation and the
    :class:`SNSMessage` for a notification.
    """

    def __init__(self, func: CallbackFunc) -> None:
        if not callable(func):
            raise TypeError(f"Callback must be callable, got {type(func).__name__}")
        self._func = func

    @property
    def func(self) -> CallbackFunc:
        return self._func

    async def on_subscription_confirmed(self, delivery: SubscriptionConfirmed) -> None:
        await self._call(None)

    async def on_message(self, delivery: MessageReceived) -> None:
        await self._call(delivery.message)

    async def _call(self, arg: Optional[SNSMessage]) -> None:
        if inspect.iscoroutinefunction(self._func):
            await self._func(arg)
            return
        result = await run_in_thread(self._func, arg)
        # sync wrappers around coroutine functions
        if inspect.isawaitable(result):
            await result


async def run_in_thread(func: Callable[..., Any], *args: Any) -> Any:
    """Run ``func(*args)`` in a dedicated daemon thread and await its result.

    Unlike :func:`asyncio.to_thread` there is no shared pool, so the number of
    calls running at once is not capped. A call that never returns keeps its
    thread alive but does not delay any other call.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()
    context = contextvars.copy_context()

    def _resolve(outcome: Any, failed: bool) -> None:
        if future.done():
            return
        if failed:
            future.set_exception(outcome)
        else:
            future.set_result(outcome)

    def _target() -> None:
        try:
            outcome, failed = context.run(func, *args), False
        except BaseException as e:
            outcome, failed = e, True
        try:
            loop.call_soon_threadsafe(_resolve, outcome, failed)
        except RuntimeError:
            _LOG.debug(f"Event loop closed before {threading.current_thread().name} finished")

    name = getattr(func, "__name__", type(func).__name__)
    threading.Thread(target=_target, name=f"sns-callback:{name}", daemon=True).start()
    return await future


def as_handler(callback: DeliveryHandler | CallbackFunc) -> DeliveryHandler:
    """Return ``callback`` as a :class:`DeliveryHandler`, wrapping bare functions."""
    if isinstance(callback, DeliveryHandler):
        return callback
    return FunctionHandler(callback)
