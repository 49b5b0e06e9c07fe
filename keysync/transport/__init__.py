# keysync/transport/__init__.py
import os
from typing import Optional
from keysync.transport.transport_base import (
    BaseTransport,
    FetchFailure,
    TransportError,
    TransportPermanentError,
    TransportTransientError,
)
from keysync.transport.transport_requests import RequestsTransport
from keysync.transport.transport_httpx import HttpxTransport


def transport_factory(mode: Optional[str] = None) -> BaseTransport:
    """
    mode:
      - "requests" (default) → RequestsTransport
      - "httpx"              → HttpxTransport
    Falls back to KEYSYNC_TRANSPORT when no mode is given.
    """
    mode = (mode or os.getenv("KEYSYNC_TRANSPORT", "requests")).lower()

    if mode == "requests":
        return RequestsTransport()

    if mode == "httpx":
        return HttpxTransport()

    raise ValueError(f"Unknown transport: {mode}")


__all__ = [
    "BaseTransport",
    "FetchFailure",
    "HttpxTransport",
    "RequestsTransport",
    "TransportError",
    "TransportPermanentError",
    "TransportTransientError",
    "transport_factory",
]
