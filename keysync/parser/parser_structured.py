# keysync/parser/parser_structured.py
import json
from typing import Iterable

from keysync.parser.parser_base import BaseParser, ParseFailure, RawKey, UndecodableResponse


class StructuredParser(BaseParser):
    """Decodes the body as JSON: a list of objects, each with a string ``key``."""

    name = "json"

    def extract(self, text: str) -> Iterable[RawKey]:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise UndecodableResponse(f"response is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise ParseFailure(f"expected a list of key records, got {type(data).__name__}")

        raw = []
        for i, item in enumerate(data):
            if not isinstance(item, dict) or not isinstance(item.get("key"), str):
                raise ParseFailure(f"record {i} has no string 'key' field")
            key_id = item.get("id")
            raw.append((item["key"], key_id if isinstance(key_id, int) else None))
        return raw
