# keysync/models.py
from __future__ import annotations
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import List, Dict, Any, Optional


@dataclass(frozen=True)
class KeyRecord:
    """
    One public key as delivered by the key-hosting API.

    Carries no identity beyond its exact text; ``key_id`` is whatever the
    API reported alongside it and is only used in log output.
    """
    key: str
    key_id: Optional[int] = None


class RunState(str, Enum):
    INIT = "init"
    DIRECTORY_READY = "directory_ready"
    BACKED_UP = "backed_up"
    FETCHED = "fetched"
    PARSED = "parsed"
    MERGED = "merged"
    NOTIFIED = "notified"
    DONE = "done"
    FAILED = "failed"


@dataclass
class MergeResult:
    """Outcome of one merge: what was added, what was already there."""
    account_id: str
    added: int = 0
    skipped: int = 0
    total: int = 0
    added_keys: List[str] = field(default_factory=list)
    backup_path: Optional[str] = None
    notified: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary(self) -> str:
        return f"added={self.added} skipped={self.skipped} total={self.total}"
