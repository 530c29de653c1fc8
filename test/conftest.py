"""
Shared pytest fixtures.

Provides builders for SNS delivery requests (both as raw Starlette requests
and as header sets for HTTP clients) and keeps the cached settings from
leaking between tests.
"""

import json
from typing import Any, Callable, Dict, Generator, Optional

import pytest
from starlette.requests import Request

from sns_endpoint import settings as settings_module

TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:orders"
ENDPOINT = "/sns/orders"


@pytest.fixture(autouse=True)
def reset_settings() -> Generator[None, None, None]:
    """Drop the cached settings instance around each test."""
    settings_module._settings = None
    yield
    settings_module._settings = None


@pytest.fixture
def topic_arn() -> str:
    return TOPIC_ARN


@pytest.fixture
def endpoint() -> str:
    return ENDPOINT


@pytest.fixture
def sns_headers() -> Callable[..., Dict[str, str]]:
    """Build the headers SNS sends with a delivery."""

    def _build(message_type: Optional[str] = "Notification", topic: Optional[str] = TOPIC_ARN, **extra: str) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if message_type is not None:
            headers["x-amz-sns-message-type"] = message_type
        if topic is not None:
            headers["x-amz-sns-topic-arn"] = topic
        headers.update({k.replace("_", "-"): v for k, v in extra.items()})
        return headers

    return _build


@pytest.fixture
def notification_body() -> Dict[str, Any]:
    return {
        "Type": "Notification",
        "MessageId": "22b80b92-fdea-4c2c-8f9d-bdfb0c7bf324",
        "TopicArn": TOPIC_ARN,
        "Subject": "Order created",
        "Message": '{"order_id": 42}',
        "Timestamp": "2012-05-02T00:54:06.655Z",
        "SignatureVersion": "1",
    }


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Build a Starlette request whose body is ``body`` and whose headers are exactly ``headers``."""

    def _build(body: bytes | str | Dict[str, Any] = b"", headers: Optional[Dict[str, str]] = None, path: str = ENDPOINT) -> Request:
        if isinstance(body, dict):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": "POST",
            "scheme": "http",
            "server": ("testserver", 80),
            "path": path,
            "root_path": "",
            "query_string": b"",
            "headers": [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()],
        }

        async def receive() -> Dict[str, Any]:
            return {"type": "http.request", "body": body, "more_body": False}

        return Request(scope, receive)

    return _build
