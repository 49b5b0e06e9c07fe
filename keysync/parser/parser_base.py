from __future__ import annotations
from typing import Iterable, List, Optional, Tuple
import logging

from keysync.keys import is_public_key
from keysync.models import KeyRecord

log = logging.getLogger("keysync.parser")

RawKey = Tuple[str, Optional[int]]


class ParseFailure(ValueError):
    """The response held no usable key material."""


class UndecodableResponse(ParseFailure):
    """The response could not be decoded by a structured parser at all."""


class BaseParser:
    """
    Turns a key-hosting API response body into KeyRecords, in received order.

    Subclasses only extract candidate strings; trimming, blank removal and
    key-type validation are shared so both variants accept the same keys.
    """
    name: str = "base"

    def parse(self, body: bytes) -> List[KeyRecord]:
        if not body or not body.strip():
            raise ParseFailure("empty response")
        text = body.decode("utf-8", errors="replace")
        return self.validate(self.extract(text))

    def extract(self, text: str) -> Iterable[RawKey]:
        raise NotImplementedError

    def validate(self, raw: Iterable[RawKey]) -> List[KeyRecord]:
        records: List[KeyRecord] = []
        rejected = 0
        for key, key_id in raw:
            key = key.strip()
            if not key:
                continue
            if not is_public_key(key):
                rejected += 1
                log.warning(f"[PARSE] {self.name}: dropping unrecognised key material: {key[:40]!r}")
                continue
            records.append(KeyRecord(key=key, key_id=key_id))

        if not records:
            if rejected:
                raise ParseFailure(f"no valid keys found ({rejected} rejected)")
            raise ParseFailure("no keys found")
        log.info(f"[PARSE] {self.name}: {len(records)} key(s), {rejected} rejected")
        return records
