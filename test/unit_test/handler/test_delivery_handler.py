"""Unit tests for delivery handlers."""

import asyncio
import threading
from datetime import datetime, timezone
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from sns_endpoint.handler import BaseDeliveryHandler, DeliveryHandler, FunctionHandler, as_handler, run_in_thread
from sns_endpoint.model import MessageReceived, SNSMessage, SubscriptionConfirmed

MESSAGE = SNSMessage(
    message="hello",
    message_id="abc",
    timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
)
CONFIRMED = SubscriptionConfirmed(topic_arn="arn:topic", endpoint="/topic")
RECEIVED = MessageReceived(topic_arn="arn:topic", endpoint="/topic", message=MESSAGE)


class RecordingHandler(BaseDeliveryHandler):
    def __init__(self) -> None:
        self.confirmed: List[SubscriptionConfirmed] = []
        self.messages: List[MessageReceived] = []
        self.unknown: list = []

    async def on_subscription_confirmed(self, delivery: SubscriptionConfirmed) -> None:
        self.confirmed.append(delivery)

    async def on_message(self, delivery: MessageReceived) -> None:
        self.messages.append(delivery)

    async def on_unknown(self, delivery) -> None:
        self.unknown.append(delivery)


@pytest.mark.asyncio
async def test_base_handler_dispatch() -> None:
    handler = RecordingHandler()

    await handler.handle_delivery(CONFIRMED)
    await handler.handle_delivery(RECEIVED)
    await handler.handle_delivery("something else")  # type: ignore[arg-type]

    assert handler.confirmed == [CONFIRMED]
    assert handler.messages == [RECEIVED]
    assert handler.unknown == ["something else"]


@pytest.mark.asyncio
async def test_base_handler_defaults_are_noops() -> None:
    handler = BaseDeliveryHandler()

    await handler.handle_delivery(CONFIRMED)
    await handler.handle_delivery(RECEIVED)


@pytest.mark.asyncio
async def test_function_handler_sync_callable() -> None:
    received: List[Optional[SNSMessage]] = []
    handler = FunctionHandler(received.append)

    await handler.handle_delivery(CONFIRMED)
    await handler.handle_delivery(RECEIVED)

    assert received == [None, MESSAGE]


@pytest.mark.asyncio
async def test_function_handler_async_callable() -> None:
    callback = AsyncMock()
    handler = FunctionHandler(callback)

    await handler.handle_delivery(RECEIVED)
    await handler.handle_delivery(CONFIRMED)

    assert callback.await_count == 2
    callback.assert_any_await(MESSAGE)
    callback.assert_any_await(None)


@pytest.mark.asyncio
async def test_function_handler_sync_wrapper_returning_coroutine() -> None:
    seen: List[Optional[SNSMessage]] = []

    async def record(msg: Optional[SNSMessage]) -> None:
        seen.append(msg)

    handler = FunctionHandler(lambda msg: record(msg))

    await handler.handle_delivery(RECEIVED)

    assert seen == [MESSAGE]


@pytest.mark.asyncio
async def test_function_handler_propagates_errors() -> None:
    handler = FunctionHandler(MagicMock(side_effect=RuntimeError("boom")))

    with pytest.raises(RuntimeError, match="boom"):
        await handler.handle_delivery(RECEIVED)


def test_function_handler_rejects_non_callable() -> None:
    with pytest.raises(TypeError):
        FunctionHandler("not callable")  # type: ignore[arg-type]


def test_as_handler() -> None:
    handler = RecordingHandler()
    assert as_handler(handler) is handler

    def callback(msg: Optional[SNSMessage]) -> None:
        pass

    wrapped = as_handler(callback)
    assert isinstance(wrapped, FunctionHandler)
    assert isinstance(wrapped, DeliveryHandler)
    assert wrapped.func is callback


async def _wait_until(predicate, timeout: float = 5.0) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            return False
        await asyncio.sleep(0.01)
    return True


@pytest.mark.asyncio
async def test_function_handler_blocked_sync_calls_do_not_queue() -> None:
    # more calls than the default thread pool could run at once
    count = 40
    release = threading.Event()
    started: List[Optional[SNSMessage]] = []
    lock = threading.Lock()

    def blocking(msg: Optional[SNSMessage]) -> None:
        with lock:
            started.append(msg)
        release.wait(timeout=10)

    handler = FunctionHandler(blocking)
    tasks = [asyncio.create_task(handler.handle_delivery(RECEIVED)) for _ in range(count)]

    try:
        assert await _wait_until(lambda: len(started) == count)
    finally:
        release.set()
    await asyncio.gather(*tasks)

    assert started == [MESSAGE] * count


@pytest.mark.asyncio
async def test_run_in_thread_returns_result_and_raises() -> None:
    assert await run_in_thread(lambda a, b: a + b, 2, 3) == 5

    def fail() -> None:
        raise KeyError("missing")

    with pytest.raises(KeyError, match="missing"):
        await run_in_thread(fail)
