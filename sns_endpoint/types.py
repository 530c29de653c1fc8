"""
Wire-level constants for the SNS HTTP(S) delivery protocol.

Header names are the lower-case forms Amazon SNS sends with every delivery.
Starlette header lookups are case-insensitive, so they can be used directly
against ``request.headers``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Final, TypeAlias

__all__ = [
    "DeliveryType",
    "JSONDict",
    "HEADER_TOPIC_ARN",
    "HEADER_MESSAGE_TYPE",
    "HEADER_RAW_DELIVERY",
    "HEADER_MESSAGE_ID",
    "HEADER_CONTENT_LENGTH",
    "SNS_TIME_FORMAT",
    "RESPONSE_OK",
    "RESPONSE_NOT_FOUND",
    "RESPONSE_BAD_REQUEST",
    "RESPONSE_NOT_IMPLEMENTED",
]

JSONDict: TypeAlias = Dict[str, Any]
"""Schema-less key/value view of a delivery body."""

HEADER_TOPIC_ARN: Final[str] = "x-amz-sns-topic-arn"
HEADER_MESSAGE_TYPE: Final[str] = "x-amz-sns-message-type"
HEADER_RAW_DELIVERY: Final[str] = "x-amz-sns-rawdelivery"
HEADER_MESSAGE_ID: Final[str] = "x-amz-sns-message-id"
HEADER_CONTENT_LENGTH: Final[str] = "content-length"

# strftime pattern for the seconds part; fractional seconds are handled in model.py
SNS_TIME_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S"

RESPONSE_OK: Final[str] = "ok"
RESPONSE_NOT_FOUND: Final[str] = "not found"
RESPONSE_BAD_REQUEST: Final[str] = "bad request"
RESPONSE_NOT_IMPLEMENTED: Final[str] = "not implemented"


class DeliveryType(str, Enum):
    """Values of the ``x-amz-sns-message-type`` header this endpoint understands."""

    SUBSCRIPTION_CONFIRMATION = "SubscriptionConfirmation"
    NOTIFICATION = "Notification"

    @classmethod
    def from_header(cls, value: str | None) -> "DeliveryType | None":
        """Map a header value to a member, ``None`` when absent or unsupported."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None
