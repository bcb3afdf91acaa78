"""
Canonical JSON and SHA-256 helpers for outcome digests.

Sorted keys, no whitespace, UTF-8. Two outcomes with the same canonical
dict always produce the same digest.
"""

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Serialize to canonical JSON as UTF-8 bytes."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def sha256_digest(data: bytes) -> str:
    """Compute SHA256 hex digest of bytes."""
    return hashlib.sha256(data).hexdigest()


def content_digest(obj: Any) -> str:
    """Prefixed digest ("sha256:...") of an object's canonical JSON."""
    return f"sha256:{sha256_digest(canonical_json_bytes(obj))}"
