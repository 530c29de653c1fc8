"""
SNS delivery handler package.

Provides the handler protocol plus OO-style and function-style handlers.
"""

from .base import BaseDeliveryHandler, CallbackFunc, DeliveryHandler, FunctionHandler, as_handler, run_in_thread

__all__ = ["DeliveryHandler", "BaseDeliveryHandler", "FunctionHandler", "CallbackFunc", "as_handler", "run_in_thread"]
