# keysync/parser/parser_pattern.py
import re
from typing import Iterable

from keysync.parser.parser_base import BaseParser, RawKey

# "key": "<value>" anywhere in the text, one or many per line
KEY_FIELD = re.compile(r'"key"\s*:\s*"([^"]*)"')


class PatternParser(BaseParser):
    """
    Degraded-mode parser: scans the text for ``"key": "..."`` markers.

    Makes no attempt to understand the surrounding document, so the shared
    key-type validation is what keeps garbage out of the store.
    """

    name = "pattern"

    def extract(self, text: str) -> Iterable[RawKey]:
        return [(m.group(1).replace("\\/", "/"), None) for m in KEY_FIELD.finditer(text)]
