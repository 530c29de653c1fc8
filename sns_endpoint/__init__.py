"""Amazon SNS HTTP notification endpoint.

Receives SNS push deliveries over HTTP, confirms topic subscriptions and hands
decoded notifications to application callbacks.

.. code-block:: python

    from sns_endpoint import SNSServer

    def on_message(msg):
        if msg is None:
            print("subscription confirmed")
            return
        print(msg.message_id, msg.message)

    server = SNSServer()
    server.add_topic("arn:aws:sns:us-east-1:123456789012:orders", "/sns/orders", on_message)
    server.listen_and_serve(":8080")
"""

import logging

from .handler import BaseDeliveryHandler, DeliveryHandler, FunctionHandler
from .model import MessageReceived, SNSMessage, SubscriptionConfirmed, TopicRegistration
from .webhook.server import SNSServer

__all__ = [
    "SNSServer",
    "SNSMessage",
    "SubscriptionConfirmed",
    "MessageReceived",
    "TopicRegistration",
    "DeliveryHandler",
    "BaseDeliveryHandler",
    "FunctionHandler",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
