#!/usr/bin/env python3
"""Clipboard content negotiation.

The ContentResolver asks the clipboard for each configured content type in
priority order, one at a time, and builds an Entry from the first type that
yields non-empty data. A type that fails or returns nothing is simply
skipped; if every type comes back empty the resolver yields None.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clipkeeper.entry import Entry, is_text_type
from clipkeeper.errors import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from clipkeeper.config import EngineConfig
    from clipkeeper.interfaces import ClipboardBackend, PersistenceGateway

logger = logging.getLogger(__name__)


class ContentResolver:
    """Reads at most one Entry from the clipboard per call.

    Args:
        backend: The external clipboard.
        gateway: Persistence collaborator receiving binary payloads.
        config: Supplies content_types, strip_text and max_payload_size.
        on_persistence_error: Called when a binary payload cannot be stored.
    """

    def __init__(
        self,
        backend: ClipboardBackend,
        gateway: PersistenceGateway,
        config: EngineConfig,
        on_persistence_error: Callable[[PersistenceError], None] | None = None,
    ) -> None:
        self._backend = backend
        self._gateway = gateway
        self.config = config
        self._on_persistence_error = on_persistence_error

    async def resolve(self) -> Entry | None:
        """Read the clipboard as the first content type with data.

        Returns:
            A new non-favorite Entry, or None if no content type yielded data.
        """
        for content_type in self.config.content_types:
            payload = await self._read_type(content_type)
            if payload is None:
                continue
            entry = Entry(content_type, payload)
            if not entry.is_text():
                self._store_payload(entry)
            logger.debug("Resolved clipboard as %s (%d bytes)", content_type, len(payload))
            return entry
        logger.debug("No content type yielded clipboard data")
        return None

    async def _read_type(self, content_type: str) -> bytes | None:
        try:
            payload = await self._backend.read_content(content_type)
        except Exception as e:
            logger.debug("Reading %s failed: %s", content_type, e)
            return None
        if not payload:
            return None
        if len(payload) > self.config.max_payload_size:
            logger.warning(
                "Clipboard %s content exceeds %d bytes, skipping",
                content_type, self.config.max_payload_size,
            )
            return None
        if self.config.strip_text and is_text_type(content_type):
            payload = payload.strip()
            if not payload:
                return None
        return bytes(payload)

    def _store_payload(self, entry: Entry) -> None:
        try:
            self._gateway.store_binary_payload(entry)
        except PersistenceError as e:
            if self._on_persistence_error is None:
                raise
            self._on_persistence_error(e)
