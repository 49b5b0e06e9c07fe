# keysync/config.py
"""
Run configuration.

Every component receives a ``KeySyncConfig`` at construction; nothing reads
module-level settings at call time. ``KeySyncConfig.from_env`` layers
``KEYSYNC_*`` environment variables over the defaults, and explicit keyword
overrides (CLI arguments) over both.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional
import os

VERSION = "0.1.0"
USER_AGENT = f"keysync/{VERSION}"

DEFAULT_ACCOUNT = "mounta11n"
DEFAULT_NOTIFY_TOPIC = "inbox"
AUTHORIZED_KEYS = "authorized_keys"


def _default_ssh_dir() -> str:
    return str(Path.home() / ".ssh")


@dataclass(frozen=True)
class KeySyncConfig:
    account_id: str = DEFAULT_ACCOUNT
    notify_topic: str = DEFAULT_NOTIFY_TOPIC

    # key fetch
    retry_count: int = 3
    retry_delay: float = 2
    connect_timeout: float = 10
    max_time: float = 30

    # notification
    notify_connect_timeout: float = 5
    notify_timeout: float = 10

    key_host: str = "https://api.github.com"
    notify_host: str = "https://ntfy.sh"
    ip_lookup_url: str = "https://api.ipify.org"

    ssh_dir: str = field(default_factory=_default_ssh_dir)
    transport: str = "requests"
    parser: str = "auto"
    notify: bool = True
    reveal_public_ip: bool = False

    def __post_init__(self):
        if not self.account_id:
            raise ValueError("account_id must not be empty")
        if not self.notify_topic:
            raise ValueError("notify_topic must not be empty")
        if self.retry_count < 1:
            raise ValueError(f"retry_count must be >= 1, got {self.retry_count}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.connect_timeout <= 0 or self.max_time <= 0:
            raise ValueError("timeouts must be positive")

    @property
    def keys_url(self) -> str:
        return f"{self.key_host.rstrip('/')}/users/{self.account_id}/keys"

    @property
    def notify_url(self) -> str:
        return f"{self.notify_host.rstrip('/')}/{self.notify_topic}"

    @property
    def authorized_keys_path(self) -> Path:
        return Path(self.ssh_dir).expanduser() / AUTHORIZED_KEYS

    def with_overrides(self, **overrides) -> "KeySyncConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_env(cls, env: Optional[dict] = None, **overrides) -> "KeySyncConfig":
        """
        Build a config from ``KEYSYNC_<FIELD>`` variables.

        Overrides whose value is None are ignored, so argparse namespaces
        can be passed straight through.
        """
        env = os.environ if env is None else env
        values = {}
        for f in fields(cls):
            raw = env.get(f"KEYSYNC_{f.name.upper()}")
            if raw is None or raw == "":
                continue
            values[f.name] = _coerce(f.name, f.type, raw)
        # short aliases
        if "KEYSYNC_ACCOUNT" in env and "account_id" not in values:
            values["account_id"] = env["KEYSYNC_ACCOUNT"]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _coerce(name: str, type_name, raw: str):
    type_name = getattr(type_name, "__name__", type_name)
    try:
        if type_name == "bool":
            return raw.strip().lower() in ("1", "true", "yes", "on")
        if type_name == "int":
            return int(raw)
        if type_name == "float":
            return float(raw)
    except ValueError as e:
        raise ValueError(f"invalid value for KEYSYNC_{name.upper()}: {raw!r}") from e
    return raw
