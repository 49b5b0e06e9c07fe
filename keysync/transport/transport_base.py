from __future__ import annotations
from typing import Dict, Iterable, Optional
import logging
import time

from keysync.config import USER_AGENT

Headers = Dict[str, str]

log = logging.getLogger("keysync.transport")

RETRYABLE_STATUS = frozenset({408, 425, 429})


class TransportError(Exception):
    pass


class TransportTransientError(TransportError):
    pass


class TransportPermanentError(TransportError):
    pass


class FetchFailure(TransportError):
    """Key material could not be obtained: retries exhausted or a permanent error."""

    def __init__(self, url: str, attempts: int, reason: str = ""):
        self.url = url
        self.attempts = attempts
        self.reason = reason
        msg = f"failed to fetch {url} after {attempts} attempt(s)"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class BaseTransport:
    """
    Best-effort HTTP leaf used for the key fetch and the notification post.

    Adapters implement ``_get`` and ``_post`` for a single attempt and raise
    ``TransportTransientError`` or ``TransportPermanentError``; retry policy
    lives here so every adapter behaves the same.
    """
    name: str = "base"

    def __init__(self, user_agent: str = USER_AGENT):
        self.user_agent = user_agent
        self._sleep = time.sleep
        self._clock = time.monotonic

    def fetch(
        self,
        url: str,
        connect_timeout: float,
        max_time: float,
        retry_count: int,
        retry_delay: float,
    ) -> bytes:
        attempts = max(1, int(retry_count))
        last_error: Optional[TransportError] = None

        for attempt in range(1, attempts + 1):
            if attempt > 1:
                log.info(f"[FETCH] retry attempt {attempt} of {attempts}")
                self._sleep(retry_delay)
            try:
                body = self._get(url, connect_timeout, max_time)
            except TransportPermanentError as e:
                log.error(f"[FETCH] permanent error from {url}: {e}")
                raise FetchFailure(url, attempt, str(e)) from e
            except TransportTransientError as e:
                log.warning(f"[FETCH] attempt {attempt} failed: {e}")
                last_error = e
                continue
            if body:
                log.debug(f"[FETCH] {url} -> {len(body)} bytes")
                return body
            log.warning(f"[FETCH] attempt {attempt} returned an empty body")
            last_error = TransportTransientError("empty response body")

        raise FetchFailure(url, attempts, str(last_error) if last_error else "")

    def post(
        self,
        url: str,
        body: bytes,
        headers: Optional[Headers] = None,
        connect_timeout: float = 5,
        max_time: float = 10,
    ) -> int:
        return self._post(url, body, dict(headers or {}), connect_timeout, max_time)

    def close(self) -> None:
        return

    # ---------------------------
    # Adapter hooks
    # ---------------------------
    def _get(self, url: str, connect_timeout: float, max_time: float) -> bytes:
        raise NotImplementedError

    def _post(self, url: str, body: bytes, headers: Headers, connect_timeout: float, max_time: float) -> int:
        raise NotImplementedError

    def _read_body(self, chunks: Iterable[bytes], max_time: float, started: float) -> bytes:
        """
        Collect a streamed body, failing once ``max_time`` has elapsed since
        ``started``. The deadline is checked between chunks; one stalled read
        is bounded by the adapter's read timeout.
        """
        deadline = started + max_time
        buf = bytearray()
        for chunk in chunks:
            buf += chunk
            if self._clock() > deadline:
                raise TransportTransientError(f"max time of {max_time}s exceeded after {len(buf)} bytes")
        return bytes(buf)

    def _headers(self, extra: Optional[Headers] = None) -> Headers:
        headers = {"User-Agent": self.user_agent}
        if extra:
            headers.update(extra)
        return headers

    @staticmethod
    def classify_status(status: int, reason: str = "") -> None:
        """Raise the matching transport error for a non-2xx status."""
        if 200 <= status < 300:
            return
        msg = f"HTTP {status} {reason}".strip()
        if status >= 500 or status in RETRYABLE_STATUS:
            raise TransportTransientError(msg)
        raise TransportPermanentError(msg)
