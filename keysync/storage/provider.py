# keysync/storage/provider.py
from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from keysync.keys import has_key_prefix

DIR_MODE = 0o700
FILE_MODE = 0o600


class StoreError(OSError):
    """The authorized-keys location could not be prepared."""


class StoreProvider:
    """
    Interface for the authorized-keys store.

    The store is the only component that touches key state on disk. Setup
    operations are idempotent; ``append`` never reorders or rewrites lines.
    """

    def ensure_directory(self) -> None:
        raise NotImplementedError

    def ensure_file(self) -> None:
        raise NotImplementedError

    def backup(self, now: Optional[datetime] = None) -> Optional[str]:
        raise NotImplementedError

    def read_all(self) -> List[str]:
        raise NotImplementedError

    def append(self, key: str) -> None:
        raise NotImplementedError

    def contains(self, key: str) -> bool:
        # exact line match; trailing whitespace in the store is not significant
        key = key.strip()
        return any(line.rstrip() == key for line in self.read_all())

    def count_keys_by_prefix(self) -> int:
        return sum(1 for line in self.read_all() if has_key_prefix(line))

    @contextmanager
    def lock(self) -> Iterator[None]:
        yield

    @staticmethod
    def check_key_line(key: str) -> str:
        key = key.strip()
        if not key:
            raise ValueError("refusing to append an empty key")
        if "\n" in key or "\r" in key:
            raise ValueError("key must be a single line")
        return key
