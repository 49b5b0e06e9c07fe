# keysync/transport/transport_requests.py
import logging
import requests

from keysync.transport.transport_base import (
    BaseTransport,
    Headers,
    TransportPermanentError,
    TransportTransientError,
)

log = logging.getLogger("keysync.transport.requests")

# retrying cannot fix a malformed URL
INVALID_REQUEST = (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema)


class RequestsTransport(BaseTransport):
    """
    HTTP transport backed by requests.

    ``connect_timeout`` is the connect timeout. ``max_time`` is both the read
    timeout and the deadline for the whole body, which is streamed.
    """

    name = "requests"

    def __init__(self, session: requests.Session = None, **kwargs):
        super().__init__(**kwargs)
        self.session = session or requests.Session()

    def _get(self, url: str, connect_timeout: float, max_time: float) -> bytes:
        log.debug(f"[HTTP GET] -> {url}")
        started = self._clock()
        try:
            res = self.session.get(url, headers=self._headers(), timeout=(connect_timeout, max_time), stream=True)
        except INVALID_REQUEST as e:
            raise TransportPermanentError(str(e)) from e
        except requests.RequestException as e:
            raise TransportTransientError(str(e)) from e
        try:
            log.debug(f"[HTTP GET] {res.status_code} {res.reason}")
            self.classify_status(res.status_code, res.reason or "")
            return self._read_body(res.iter_content(chunk_size=65536), max_time, started)
        except requests.RequestException as e:
            raise TransportTransientError(str(e)) from e
        finally:
            res.close()

    def _post(self, url: str, body: bytes, headers: Headers, connect_timeout: float, max_time: float) -> int:
        log.debug(f"[HTTP POST] -> {url} | bytes={len(body)}")
        try:
            res = self.session.post(
                url,
                data=body,
                headers=self._headers(headers),
                timeout=(connect_timeout, max_time),
            )
        except INVALID_REQUEST as e:
            raise TransportPermanentError(str(e)) from e
        except requests.RequestException as e:
            raise TransportTransientError(str(e)) from e
        self.classify_status(res.status_code, res.reason or "")
        return res.status_code

    def close(self) -> None:
        self.session.close()
