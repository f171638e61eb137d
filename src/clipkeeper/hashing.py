#!/usr/bin/env python3
"""
SHA-256 digests of clipboard entries.

Digests name the payload files written by the persistence layer, so two
entries with the same content type and bytes always map to the same file.
The content type is part of the digest: the same bytes offered as
image/png and image/webp are different entries.
"""
import hashlib

__all__ = ["compute_hash"]


def compute_hash(content_type: str, payload: bytes) -> str:
    """
    Compute SHA-256 digest of an entry's content type and payload.

    Args:
        content_type: MIME-like content type identifier.
        payload: Raw clipboard content bytes.

    Returns:
        Hexadecimal string representation of the SHA-256 digest.
    """
    digest = hashlib.sha256()
    digest.update(content_type.encode("utf-8"))
    digest.update(b"\0")
    digest.update(payload)
    return digest.hexdigest()
