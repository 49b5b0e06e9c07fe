"""
keysync.engine
--------------
The merge engine: fetch the desired key set, diff it against the store,
append what is missing.

    INIT -> DIRECTORY_READY -> BACKED_UP -> FETCHED -> PARSED -> MERGED
         -> NOTIFIED -> DONE

Any fetch or parse failure moves the run to FAILED and is re-raised to the
caller. Both happen before the first append, so a failed run leaves the
store as it found it apart from permission normalisation and the backup.
"""

from __future__ import annotations
from typing import Iterable, Optional
import logging

from .config import KeySyncConfig
from .keys import compute_key_fingerprint, key_type
from .models import KeyRecord, MergeResult, RunState
from .notifier import NtfyNotifier
from .parser import BaseParser, ParseFailure
from .storage import StoreProvider
from .transport import BaseTransport, FetchFailure

log = logging.getLogger("keysync.engine")


class MergeEngine:
    def __init__(
        self,
        config: KeySyncConfig,
        store: StoreProvider,
        transport: BaseTransport,
        parser: BaseParser,
        notifier: Optional[NtfyNotifier] = None,
    ):
        self.config = config
        self.store = store
        self.transport = transport
        self.parser = parser
        self.notifier = notifier
        self.state = RunState.INIT

    def _advance(self, state: RunState) -> None:
        log.debug(f"[MERGE] {self.state.value} -> {state.value}")
        self.state = state

    def run(self) -> MergeResult:
        log.info(f"[MERGE] starting key sync for account {self.config.account_id}")

        self.store.ensure_directory()
        self.store.ensure_file()
        self._advance(RunState.DIRECTORY_READY)

        with self.store.lock():
            backup_path = self.store.backup()
            self._advance(RunState.BACKED_UP)

            try:
                body = self.fetch()
                self._advance(RunState.FETCHED)
                records = self.parser.parse(body)
                self._advance(RunState.PARSED)
                result = self.merge(records)
            except (FetchFailure, ParseFailure):
                self._advance(RunState.FAILED)
                raise

            result.backup_path = backup_path
            self._advance(RunState.MERGED)

        self.notify(result)
        self._advance(RunState.DONE)
        log.info(f"[MERGE] key sync completed: {result.summary()}")
        log.debug({"event": "merge_result", **result.to_dict()})
        return result

    def fetch(self) -> bytes:
        url = self.config.keys_url
        log.info(f"[FETCH] fetching keys from {url}")
        return self.transport.fetch(
            url,
            connect_timeout=self.config.connect_timeout,
            max_time=self.config.max_time,
            retry_count=self.config.retry_count,
            retry_delay=self.config.retry_delay,
        )

    def merge(self, records: Iterable[KeyRecord | str]) -> MergeResult:
        """
        Append every key not yet in the store, in input order.

        Each membership check sees the appends already made in this batch,
        so a key repeated within one response is added once. The whole batch
        is checked for multi-line entries before the first append.
        """
        result = MergeResult(account_id=self.config.account_id)
        batch = [rec if isinstance(rec, KeyRecord) else KeyRecord(key=rec) for rec in records]
        for rec in batch:
            if "\n" in rec.key.strip() or "\r" in rec.key.strip():
                raise ParseFailure(f"multi-line key material in batch: {rec.key[:40]!r}")

        for rec in batch:
            key = rec.key.strip()
            if not key:
                continue
            if self.store.contains(key):
                result.skipped += 1
                continue
            self.store.append(key)
            result.added += 1
            result.added_keys.append(key)
            log.info(f"[MERGE] added {key_type(key)} key {compute_key_fingerprint(key)} (id={rec.key_id})")

        result.total = self.store.count_keys_by_prefix()
        log.info(f"[MERGE] added {result.added} new key(s)")
        if result.skipped:
            log.info(f"[MERGE] skipped {result.skipped} duplicate key(s)")
        log.info(f"[MERGE] total keys in store: {result.total}")
        return result

    def notify(self, result: MergeResult) -> None:
        if self.notifier is None or not self.config.notify:
            log.info("[NOTIFY] notifications disabled")
            return
        outcome = self.notifier.send(result)
        result.notified = outcome.ok
        if outcome.ok:
            log.info(f"[NOTIFY] notification sent (HTTP {outcome.status})")
        else:
            log.warning(f"[NOTIFY] failed to send notification (non-critical): {outcome.error}")
        self._advance(RunState.NOTIFIED)
