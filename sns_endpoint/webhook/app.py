"""
FastAPI application construction for the SNS endpoint.

Every :class:`~sns_endpoint.webhook.server.SNSServer` owns its own
application, so several servers can live in one process (and in one test
session) without a shared singleton.
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, Final, Optional

from fastapi import FastAPI

__all__: list[str] = ["create_web_app", "APP_TITLE", "APP_VERSION"]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

APP_TITLE: Final[str] = "SNS Notification Endpoint"
APP_VERSION: Final[str] = "0.1.0"

Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[Any]]


def create_web_app(lifespan: Optional[Lifespan] = None) -> FastAPI:
    """
    Create the bare web application that endpoint routes are added to.

    Args:
        lifespan: Optional lifespan context factory run around serving

    Returns:
        A FastAPI instance without interactive docs or OpenAPI routes, so
        that every path stays available for topic endpoints.
    """
    _LOG.debug("Creating SNS endpoint web application")
    return FastAPI(
        title=APP_TITLE,
        description="Receives Amazon SNS HTTP deliveries and forwards them to registered callbacks",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
