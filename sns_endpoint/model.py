"""Data models for SNS deliveries.

Two layers live here:

- pydantic envelope models (:class:`SubscriptionConfirmationModel`,
  :class:`NotificationModel`) that pull typed fields out of the generic
  key/value view produced by body extraction, and
- plain dataclasses handed to application code (:class:`SNSMessage` and the
  delivery variants :class:`SubscriptionConfirmed` / :class:`MessageReceived`).

Timestamps
==========
SNS stamps notifications as ``2006-01-02T15:04:05.999999999Z`` style UTC
strings. :func:`parse_timestamp` accepts up to nine fractional digits and
truncates anything beyond microseconds; :func:`format_timestamp` writes
microsecond precision with trailing zeros trimmed.

.. code-block:: python

    ts = parse_timestamp("2012-04-25T21:49:25.719Z")
    assert format_timestamp(ts) == "2012-04-25T21:49:25.719Z"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Final, Optional, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from .types import SNS_TIME_FORMAT

if TYPE_CHECKING:
    from .handler.base import DeliveryHandler

__all__: list[str] = [
    "SNSMessage",
    "SubscriptionConfirmed",
    "MessageReceived",
    "Delivery",
    "TopicRegistration",
    "SubscriptionConfirmationModel",
    "NotificationModel",
    "ZERO_TIMESTAMP",
    "parse_timestamp",
    "format_timestamp",
]

ZERO_TIMESTAMP: Final[datetime] = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?P<seconds>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<fraction>\d{1,9}))?Z$"
)


def parse_timestamp(value: str) -> datetime:
    """Parse an SNS timestamp into an aware UTC datetime.

    Malformed input yields :data:`ZERO_TIMESTAMP` instead of raising, so a bad
    clock string never drops an otherwise valid notification.
    """
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        return ZERO_TIMESTAMP
    try:
        parsed = datetime.strptime(match.group("seconds"), SNS_TIME_FORMAT)
    except ValueError:
        return ZERO_TIMESTAMP
    fraction = match.group("fraction") or ""
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0
    return parsed.replace(microsecond=microsecond, tzinfo=timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime in the SNS timestamp layout (converted to UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    text = value.strftime(SNS_TIME_FORMAT)
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    return text + "Z"


@dataclass(slots=True, kw_only=True, frozen=True)
class SNSMessage:
    """
    A decoded SNS notification.

    :param message: the notification payload; for raw deliveries the request body decoded as
        UTF-8, with invalid byte sequences replaced by U+FFFD
    :param message_id: SNS message identifier
    :param timestamp: publish time in UTC, :data:`ZERO_TIMESTAMP` when unparseable
    :param subject: optional subject line, empty when the publisher set none
    """

    message: str
    message_id: str
    timestamp: datetime
    subject: str = ""


@dataclass(slots=True, kw_only=True, frozen=True)
class SubscriptionConfirmed:
    """The subscription for ``topic_arn`` at ``endpoint`` is now active."""

    topic_arn: str
    endpoint: str


@dataclass(slots=True, kw_only=True, frozen=True)
class MessageReceived:
    """A notification arrived for ``topic_arn`` at ``endpoint``."""

    topic_arn: str
    endpoint: str
    message: SNSMessage


Delivery: TypeAlias = Union[SubscriptionConfirmed, MessageReceived]


@dataclass(slots=True, kw_only=True, frozen=True)
class TopicRegistration:
    """One subscribed topic: the expected ARN, its URL path and its handler."""

    topic_arn: str
    endpoint: str
    handler: "DeliveryHandler"


class SubscriptionConfirmationModel(BaseModel):
    """Fields needed from a ``SubscriptionConfirmation`` body."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    subscribe_url: StrictStr = Field(alias="SubscribeURL")


class NotificationModel(BaseModel):
    """Fields needed from a ``Notification`` body."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    timestamp: StrictStr = Field(alias="Timestamp")
    message: StrictStr = Field(alias="Message")
    message_id: StrictStr = Field(alias="MessageId")
    subject: Optional[StrictStr] = Field(default=None, alias="Subject")

    def to_message(self) -> SNSMessage:
        return SNSMessage(
            subject=self.subject or "",
            message=self.message,
            message_id=self.message_id,
            timestamp=parse_timestamp(self.timestamp),
        )
