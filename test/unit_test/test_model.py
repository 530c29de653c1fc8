"""Unit tests for SNS delivery models and timestamp handling."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from sns_endpoint.model import (
    ZERO_TIMESTAMP,
    NotificationModel,
    SNSMessage,
    SubscriptionConfirmationModel,
    format_timestamp,
    parse_timestamp,
)


class TestTimestamp:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2012-05-02T00:54:06.655Z", datetime(2012, 5, 2, 0, 54, 6, 655000, tzinfo=timezone.utc)),
            ("2012-05-02T00:54:06Z", datetime(2012, 5, 2, 0, 54, 6, tzinfo=timezone.utc)),
            ("2024-02-29T23:59:59.123456789Z", datetime(2024, 2, 29, 23, 59, 59, 123456, tzinfo=timezone.utc)),
            ("2024-01-01T00:00:00.5Z", datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)),
        ],
    )
    def test_parse(self, value: str, expected: datetime) -> None:
        assert parse_timestamp(value) == expected

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "yesterday",
            "2012-05-02 00:54:06.655Z",
            "2012-05-02T00:54:06.655",
            "2012-13-02T00:54:06.655Z",
            "2012-05-02T00:54:06.1234567890Z",
        ],
    )
    def test_parse_invalid_yields_zero(self, value: str) -> None:
        assert parse_timestamp(value) == ZERO_TIMESTAMP

    def test_round_trip_keeps_microseconds(self) -> None:
        now = datetime.now(timezone.utc)
        assert parse_timestamp(format_timestamp(now)) == now

    def test_format_trims_fraction(self) -> None:
        assert format_timestamp(datetime(2012, 5, 2, 0, 54, 6, 655000, tzinfo=timezone.utc)) == "2012-05-02T00:54:06.655Z"
        assert format_timestamp(datetime(2012, 5, 2, 0, 54, 6, tzinfo=timezone.utc)) == "2012-05-02T00:54:06Z"

    def test_format_converts_to_utc(self) -> None:
        local = datetime(2012, 5, 2, 2, 54, 6, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(local) == "2012-05-02T00:54:06Z"


class TestNotificationModel:
    def test_to_message(self, notification_body) -> None:
        msg = NotificationModel.model_validate(notification_body).to_message()

        assert msg == SNSMessage(
            subject="Order created",
            message='{"order_id": 42}',
            message_id="22b80b92-fdea-4c2c-8f9d-bdfb0c7bf324",
            timestamp=datetime(2012, 5, 2, 0, 54, 6, 655000, tzinfo=timezone.utc),
        )

    @pytest.mark.parametrize("subject", [None, "absent"])
    def test_subject_optional(self, notification_body, subject) -> None:
        if subject == "absent":
            del notification_body["Subject"]
        else:
            notification_body["Subject"] = subject

        msg = NotificationModel.model_validate(notification_body).to_message()

        assert msg.subject == ""

    def test_bad_timestamp_is_lenient(self, notification_body) -> None:
        notification_body["Timestamp"] = "not a time"

        msg = NotificationModel.model_validate(notification_body).to_message()

        assert msg.timestamp == ZERO_TIMESTAMP

    @pytest.mark.parametrize("field", ["Timestamp", "Message", "MessageId"])
    def test_required_fields(self, notification_body, field) -> None:
        del notification_body[field]

        with pytest.raises(ValidationError):
            NotificationModel.model_validate(notification_body)

    def test_fields_must_be_strings(self, notification_body) -> None:
        notification_body["MessageId"] = 123

        with pytest.raises(ValidationError):
            NotificationModel.model_validate(notification_body)


class TestSubscriptionConfirmationModel:
    def test_subscribe_url(self) -> None:
        model = SubscriptionConfirmationModel.model_validate(
            {"Type": "SubscriptionConfirmation", "SubscribeURL": "http://example.test/confirm", "Token": "t"}
        )
        assert model.subscribe_url == "http://example.test/confirm"

    @pytest.mark.parametrize("data", [{}, {"SubscribeURL": None}, {"SubscribeURL": ["http://example.test"]}])
    def test_subscribe_url_must_be_string(self, data) -> None:
        with pytest.raises(ValidationError):
            SubscriptionConfirmationModel.model_validate(data)
