"""
keysync
=======
Provision SSH access on a host from a key-hosting account.

Provides:
- Pluggable HTTP transport (requests default, httpx alternative)
- Structured and pattern-scan parsers for key-hosting API responses
- An authorized_keys store with permission, backup and locking guarantees
- The merge engine that reconciles the two, plus an ntfy completion notice
"""

from .config import VERSION as __version__, KeySyncConfig
from .engine import MergeEngine
from .models import KeyRecord, MergeResult, RunState
from .notifier import NotifyFailure, NotifyResult, NtfyNotifier
from .parser import ParseFailure
from .transport import FetchFailure

__all__ = [
    "FetchFailure",
    "KeyRecord",
    "KeySyncConfig",
    "MergeEngine",
    "MergeResult",
    "NotifyFailure",
    "NotifyResult",
    "NtfyNotifier",
    "ParseFailure",
    "RunState",
    "__version__",
]
