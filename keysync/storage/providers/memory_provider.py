from datetime import datetime
from typing import Dict, List, Optional

from keysync.storage.provider import DIR_MODE, FILE_MODE, StoreProvider
from keysync.utils import backup_stamp


class InMemoryStore(StoreProvider):
    def __init__(self, lines: Optional[List[str]] = None):
        self.lines = list(lines or [])
        self.backups: Dict[str, List[str]] = {}
        self.dir_mode: Optional[int] = None
        self.file_mode: Optional[int] = None

    def ensure_directory(self):
        self.dir_mode = DIR_MODE

    def ensure_file(self):
        self.file_mode = FILE_MODE

    def backup(self, now: Optional[datetime] = None):
        if not self.lines:
            return None
        name = f"authorized_keys.backup_{backup_stamp(now)}"
        if name in self.backups:
            return None
        self.backups[name] = list(self.lines)
        return name

    def read_all(self):
        return list(self.lines)

    def append(self, key: str):
        self.lines.append(self.check_key_line(key))
