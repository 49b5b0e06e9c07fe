"""
keysync.keys
------------
Recognised OpenSSH public-key types and the structural checks applied to
key material before it may reach the authorized-keys store:

- the first token must be a recognised key type
- the second token must be a base64 blob

No cryptographic validation is performed. Fingerprints are computed only for
log output, in the same ``SHA256:<b64>`` form ``ssh-keygen -l`` prints.
"""

from __future__ import annotations
import binascii, re
from typing import Optional, Tuple
from .utils import b64d, b64e_nopad, sha256_digest

KEY_TYPES: Tuple[str, ...] = (
    "ssh-rsa",
    "ssh-dss",
    "ssh-ed25519",
    "ecdsa-sha2-nistp256",
    "ecdsa-sha2-nistp384",
    "ecdsa-sha2-nistp521",
    "sk-ecdsa-sha2-nistp256@openssh.com",
    "sk-ssh-ed25519@openssh.com",
)

# Line prefixes used when counting keys already in a store. The sk- types
# are matched without their @openssh.com suffix.
KEY_PREFIXES: Tuple[str, ...] = (
    "ssh-rsa",
    "ssh-dss",
    "ssh-ed25519",
    "ecdsa-sha2-nistp256",
    "ecdsa-sha2-nistp384",
    "ecdsa-sha2-nistp521",
    "sk-ecdsa-sha2-nistp256",
    "sk-ssh-ed25519",
)

_B64_BLOB = re.compile(r"^[A-Za-z0-9+/]+={0,3}$")
# anything below 0x20 except tab, plus DEL; a key must fit on one line
_CONTROL = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


def split_key(key: str) -> Optional[Tuple[str, str, str]]:
    """Return (type, blob, comment) or None if the line is not a bare public key."""
    parts = key.strip().split(None, 2)
    if len(parts) < 2:
        return None
    comment = parts[2] if len(parts) == 3 else ""
    return parts[0], parts[1], comment


def key_type(key: str) -> Optional[str]:
    parts = split_key(key)
    return parts[0] if parts else None


def is_public_key(key: str) -> bool:
    if _CONTROL.search(key.strip()):
        return False
    parts = split_key(key)
    if parts is None:
        return False
    ktype, blob, _ = parts
    return ktype in KEY_TYPES and bool(_B64_BLOB.match(blob))


def has_key_prefix(line: str) -> bool:
    return line.startswith(KEY_PREFIXES)


def compute_key_fingerprint(key: str) -> Optional[str]:
    """
    Compute the OpenSSH SHA256 fingerprint of a public key line.

    Returns None when the blob is not valid base64, so callers can log
    the key without failing on it.
    """
    parts = split_key(key)
    if parts is None:
        return None
    try:
        raw = b64d(parts[1])
    except (binascii.Error, ValueError):
        return None
    return "SHA256:" + b64e_nopad(sha256_digest(raw))
