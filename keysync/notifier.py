"""
keysync.notifier
----------------
Completion notice posted to an ntfy topic once keys have been merged.

Sending is best effort: ``NtfyNotifier.send`` never raises. It returns a
``NotifyResult`` that the caller logs and otherwise ignores, so a broken
notification endpoint can never turn a successful run into a failed one.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence
import logging, platform, random, socket

from .config import KeySyncConfig
from .models import MergeResult
from .transport.transport_base import BaseTransport, FetchFailure, TransportError
from .utils import human_ts

log = logging.getLogger("keysync.notifier")

REDACTED_IP = "[redacted]"
UNKNOWN = "unknown"

GOODBYES: Sequence[str] = (
    "May your deploys be swift and your bugs be few! 🚀",
    "SSH-ing into the future, one key at a time! 🔑",
    "Your keys are now in place. Time for some coffee! ☕",
    "Access granted! Now go build something awesome! 💪",
    "Keys deployed successfully. You're all set, legend! 🎉",
    "Connection established. Welcome to the party! 🎊",
)

HEADERS: Dict[str, str] = {
    "Title": "SSH Keys Deployed",
    "Priority": "default",
    "Tags": "white_check_mark,key",
}


class NotifyFailure(TransportError):
    pass


@dataclass
class NotifyResult:
    ok: bool
    status: Optional[int] = None
    error: Optional[NotifyFailure] = None


def system_info() -> str:
    u = platform.uname()
    return " ".join(p for p in (u.system, u.node, u.release, u.version, u.machine) if p) or UNKNOWN


def hostname() -> str:
    return socket.gethostname() or UNKNOWN


class NtfyNotifier:
    def __init__(
        self,
        config: KeySyncConfig,
        transport: BaseTransport,
        choice: Callable[[Sequence[str]], str] = random.choice,
    ):
        self.config = config
        self.transport = transport
        self._choice = choice

    def public_ip(self) -> str:
        if not self.config.reveal_public_ip:
            return REDACTED_IP
        try:
            body = self.transport.fetch(
                self.config.ip_lookup_url,
                connect_timeout=self.config.notify_connect_timeout,
                max_time=self.config.notify_timeout,
                retry_count=1,
                retry_delay=0,
            )
        except FetchFailure as e:
            log.warning(f"[NOTIFY] public IP lookup failed: {e}")
            return UNKNOWN
        return body.decode("utf-8", errors="replace").strip() or UNKNOWN

    def build_message(self, result: MergeResult) -> str:
        return (
            "SSH Keys Deployed Successfully! 🎉\n"
            "\n"
            f"GitHub User: {result.account_id}\n"
            f"New Keys Added: {result.added}\n"
            f"Server: {hostname()}\n"
            f"Public IP: {self.public_ip()}\n"
            f"System: {system_info()}\n"
            f"Time: {human_ts()}\n"
            "\n"
            f"{self._choice(GOODBYES)}"
        )

    def send(self, result: MergeResult) -> NotifyResult:
        url = self.config.notify_url
        log.info(f"[NOTIFY] sending notification to topic {self.config.notify_topic}")
        try:
            message = self.build_message(result)
            status = self.transport.post(
                url,
                message.encode("utf-8"),
                headers=HEADERS,
                connect_timeout=self.config.notify_connect_timeout,
                max_time=self.config.notify_timeout,
            )
        except (TransportError, OSError) as e:
            return NotifyResult(ok=False, error=NotifyFailure(f"{url}: {e}"))
        return NotifyResult(ok=True, status=status)
