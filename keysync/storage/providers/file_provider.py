from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional
import fcntl, logging, os, shutil

from keysync.config import AUTHORIZED_KEYS
from keysync.storage.provider import DIR_MODE, FILE_MODE, StoreError, StoreProvider
from keysync.utils import backup_stamp

log = logging.getLogger("keysync.storage")


class AuthorizedKeysFile(StoreProvider):
    """
    authorized_keys on disk.

    Layout::

        <ssh_dir>/                                   0700
        <ssh_dir>/authorized_keys                    0600
        <ssh_dir>/authorized_keys.backup_<UTC ts>    0600
    """

    def __init__(self, ssh_dir: str, filename: str = AUTHORIZED_KEYS):
        self.directory = Path(ssh_dir).expanduser()
        self.path = self.directory / filename

    def ensure_directory(self) -> None:
        if self.directory.exists() and not self.directory.is_dir():
            raise StoreError(f"{self.directory} exists and is not a directory")
        if not self.directory.exists():
            log.info(f"[STORE] creating directory {self.directory}")
            self.directory.mkdir(parents=True, exist_ok=True)
        os.chmod(self.directory, DIR_MODE)
        log.info(f"[STORE] set permissions on {self.directory} to {DIR_MODE:o}")

    def ensure_file(self) -> None:
        if self.path.exists() and not self.path.is_file():
            raise StoreError(f"{self.path} exists and is not a regular file")
        if not self.path.exists():
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT, FILE_MODE)
            os.close(fd)
            log.info(f"[STORE] created {self.path}")
        os.chmod(self.path, FILE_MODE)
        log.info(f"[STORE] set permissions on {self.path} to {FILE_MODE:o}")

    def backup(self, now: Optional[datetime] = None) -> Optional[str]:
        if not self.path.is_file() or self.path.stat().st_size == 0:
            log.debug("[STORE] nothing to back up")
            return None

        target = self.path.with_name(f"{self.path.name}.backup_{backup_stamp(now)}")
        try:
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_EXCL, FILE_MODE)
        except FileExistsError:
            log.warning(f"[STORE] backup {target} already exists; not overwriting")
            return None

        with open(self.path, "rb") as src, os.fdopen(fd, "wb") as dst:
            shutil.copyfileobj(src, dst)
        os.chmod(target, FILE_MODE)
        log.info(f"[STORE] created backup {target}")
        return str(target)

    def read_all(self) -> List[str]:
        if not self.path.exists():
            return []
        return self.path.read_text(encoding="utf-8", errors="replace").splitlines()

    def append(self, key: str) -> None:
        key = self.check_key_line(key)
        data = key.encode("utf-8") + b"\n"
        with open(self.path, "ab") as fh:
            if fh.tell() > 0 and not self._ends_with_newline():
                data = b"\n" + data
            # one write per key so an interrupted run never leaves half a line
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())

    def _ends_with_newline(self) -> bool:
        with open(self.path, "rb") as fh:
            fh.seek(-1, os.SEEK_END)
            return fh.read(1) == b"\n"

    @contextmanager
    def lock(self) -> Iterator[None]:
        with open(self.path, "ab") as fh:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
            log.debug(f"[STORE] locked {self.path}")
            try:
                yield
            finally:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
