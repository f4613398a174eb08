"""
Content fingerprinting.

The fingerprint is the SHA-256 of the exact uploaded bytes. It doubles as the
lookup key for /api/verify/{hash} and as the on-chain content identifier.
"""

import hashlib
import logging
import re

logger = logging.getLogger(__name__)

_HEX64 = re.compile(r"^[0-9a-f]{64}$")


def get_safe_hash(data: bytes) -> str:
    """Securely hash raw bytes using SHA-256."""
    return hashlib.sha256(data).hexdigest()


def normalize_hash(hash_str: str) -> str:
    """Lowercase and strip an optional 0x prefix. Non-hex input is returned trimmed."""
    normalized = hash_str.strip().lower()
    if normalized.startswith("0x") and _HEX64.match(normalized[2:]):
        normalized = normalized[2:]
    return normalized
