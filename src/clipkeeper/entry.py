#!/usr/bin/env python3
"""Clipboard history entries.

An Entry is one captured clipboard payload together with the content type it
was read as. Entries are immutable; toggling the favorite flag produces a
replaced Entry held by the store. Equality (and hashing) only looks at the
content type and the payload bytes, so a favorite and a non-favorite capture
of the same data compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from clipkeeper.hashing import compute_hash

TEXT_CONTENT_TYPE = "text/plain"

# Tried in this order; the first type with non-empty data wins.
DEFAULT_CONTENT_TYPES: tuple[str, ...] = (
    TEXT_CONTENT_TYPE,
    "image/gif",
    "image/png",
    "image/jpg",
    "image/jpeg",
    "image/webp",
    "image/svg+xml",
    "text/html",
)


def is_text_type(content_type: str) -> bool:
    """Return True for text/plain, with or without parameters."""
    return content_type.split(";", 1)[0].strip().lower() == TEXT_CONTENT_TYPE


@dataclass(frozen=True)
class Entry:
    """One captured clipboard payload.

    Attributes:
        content_type: Content type the payload was read as.
        payload: The captured bytes.
        favorite: True if the user pinned this entry. Not part of equality.
    """

    content_type: str
    payload: bytes
    favorite: bool = field(default=False, compare=False)

    def is_text(self) -> bool:
        return is_text_type(self.content_type)

    def string_value(self) -> str:
        """Return the decoded text for text entries, '' for anything else."""
        if not self.is_text():
            return ""
        return self.payload.decode("utf-8", errors="replace")

    def digest(self) -> str:
        return compute_hash(self.content_type, self.payload)

    def preview(self, max_length: int) -> str:
        """Return a single-line label for menus and listings.

        Whitespace runs are collapsed to single spaces. Text longer than
        max_length is cut to max_length - 1 characters followed by '...'.

        Args:
            max_length: Maximum number of characters kept from the text.

        Returns:
            The label. Binary entries are described by type and size.
        """
        if not self.is_text():
            return f"[{self.content_type}, {len(self.payload)} bytes]"
        shortened = " ".join(self.string_value().split())
        if len(shortened) > max_length:
            shortened = shortened[: max(0, max_length - 1)] + "..."
        return shortened

    def with_favorite(self, favorite: bool) -> Entry:
        return replace(self, favorite=favorite)
