# keysync/transport/transport_httpx.py
import logging
import httpx

from keysync.transport.transport_base import (
    BaseTransport,
    Headers,
    TransportPermanentError,
    TransportTransientError,
)

log = logging.getLogger("keysync.transport.httpx")

# not subclasses of httpx.HTTPError
INVALID_REQUEST = (httpx.InvalidURL, httpx.UnsupportedProtocol)


class HttpxTransport(BaseTransport):
    """HTTP transport backed by httpx. Interchangeable with RequestsTransport."""

    name = "httpx"

    def __init__(self, client: httpx.Client = None, **kwargs):
        super().__init__(**kwargs)
        self.client = client or httpx.Client(follow_redirects=True)

    def _get(self, url: str, connect_timeout: float, max_time: float) -> bytes:
        log.debug(f"[HTTP GET] -> {url}")
        started = self._clock()
        try:
            with self.client.stream(
                "GET",
                url,
                headers=self._headers(),
                timeout=httpx.Timeout(max_time, connect=connect_timeout),
            ) as res:
                log.debug(f"[HTTP GET] {res.status_code} {res.reason_phrase}")
                self.classify_status(res.status_code, res.reason_phrase or "")
                return self._read_body(res.iter_bytes(), max_time, started)
        except INVALID_REQUEST as e:
            raise TransportPermanentError(str(e)) from e
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise TransportTransientError(str(e)) from e

    def _post(self, url: str, body: bytes, headers: Headers, connect_timeout: float, max_time: float) -> int:
        log.debug(f"[HTTP POST] -> {url} | bytes={len(body)}")
        try:
            res = self.client.post(
                url,
                content=body,
                headers=self._headers(headers),
                timeout=httpx.Timeout(max_time, connect=connect_timeout),
            )
        except INVALID_REQUEST as e:
            raise TransportPermanentError(str(e)) from e
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise TransportTransientError(str(e)) from e
        self.classify_status(res.status_code, res.reason_phrase or "")
        return res.status_code

    def close(self) -> None:
        self.client.close()
