"""
keysync.utils
-------------
Small helpers for UTC timestamps, base64 decoding and hashing.
Backup names and notification times are always rendered in UTC.
"""

from __future__ import annotations
import base64, hashlib
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def backup_stamp(now: Optional[datetime] = None) -> str:
    # YYYYMMDD_HHMMSS, second granularity
    return (now or utcnow()).astimezone(timezone.utc).strftime("%Y%m%d_%H%M%S")


def human_ts(now: Optional[datetime] = None) -> str:
    return (now or utcnow()).astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"), validate=True)


def b64e_nopad(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii").rstrip("=")


def sha256_digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()
