# keysync/storage/__init__.py

from .provider import StoreError, StoreProvider
from .providers.file_provider import AuthorizedKeysFile
from .providers.memory_provider import InMemoryStore
from keysync.config import KeySyncConfig


def load_store(config: KeySyncConfig, provider: str = "file") -> StoreProvider:
    """
    Factory resolver for the authorized-keys store.

        - file (default): <ssh_dir>/authorized_keys
        - memory
    """
    if provider == "memory":
        return InMemoryStore()

    if provider == "file":
        return AuthorizedKeysFile(config.ssh_dir)

    raise ValueError(f"Unknown store provider: {provider}")


__all__ = [
    "AuthorizedKeysFile",
    "InMemoryStore",
    "StoreError",
    "StoreProvider",
    "load_store",
]
