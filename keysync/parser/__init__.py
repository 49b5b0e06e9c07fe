# keysync/parser/__init__.py
import logging
import os
from typing import List, Optional

from keysync.models import KeyRecord
from keysync.parser.parser_base import BaseParser, ParseFailure, UndecodableResponse
from keysync.parser.parser_structured import StructuredParser
from keysync.parser.parser_pattern import PatternParser

log = logging.getLogger("keysync.parser")


class FallbackParser(BaseParser):
    """Structured parsing first; the pattern scan only when the body cannot be decoded."""

    name = "auto"

    def __init__(self, primary: BaseParser = None, fallback: BaseParser = None):
        self.primary = primary or StructuredParser()
        self.fallback = fallback or PatternParser()

    def parse(self, body: bytes) -> List[KeyRecord]:
        try:
            return self.primary.parse(body)
        except UndecodableResponse as e:
            log.warning(f"[PARSE] {e}; using {self.fallback.name} fallback")
        return self.fallback.parse(body)


def parser_factory(mode: Optional[str] = None) -> BaseParser:
    """
    mode:
      - "auto" (default) → StructuredParser, PatternParser on undecodable input
      - "json"           → StructuredParser only
      - "pattern"        → PatternParser only
    """
    mode = (mode or os.getenv("KEYSYNC_PARSER", "auto")).lower()

    if mode == "auto":
        return FallbackParser()

    if mode == "json":
        return StructuredParser()

    if mode == "pattern":
        return PatternParser()

    raise ValueError(f"Unknown parser: {mode}")


__all__ = [
    "BaseParser",
    "FallbackParser",
    "ParseFailure",
    "PatternParser",
    "StructuredParser",
    "UndecodableResponse",
    "parser_factory",
]
