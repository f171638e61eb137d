#!/usr/bin/env python3
"""JSON file persistence for the clipboard history.

The registry is a JSON list of entries, oldest first:

    [{"mimetype": "text/plain", "favorite": false, "contents": "hello"},
     {"mimetype": "image/png", "favorite": true, "file": "<sha256>"}]

UTF-8 text is stored inline. Every other payload lives in its own file
under payloads/, named by the entry digest, so the snapshot stays small and
rewriting it after each mutation is cheap.

Writes go to a temporary file that replaces the target, and are retried
with exponential backoff using tenacity. A write that still fails raises
PersistenceError.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from clipkeeper.entry import Entry
from clipkeeper.errors import PersistenceError
from clipkeeper.persistence_constants import (
    INITIAL_WAIT,
    MAX_WAIT,
    PAYLOAD_DIRNAME,
    REGISTRY_FILENAME,
    WAIT_MULTIPLIER,
    WRITE_ATTEMPTS,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@retry(
    wait=wait_exponential(
        multiplier=WAIT_MULTIPLIER,
        min=INITIAL_WAIT,
        max=MAX_WAIT,
    ),
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(WRITE_ATTEMPTS),
    reraise=True,
)
def write_atomic(path: Path, data: bytes) -> None:
    """Write data to path through a temporary file in the same directory.

    Args:
        path: Destination file.
        data: Bytes to write.

    Raises:
        OSError: If the write still fails after all retry attempts.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except OSError:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class JsonRegistry:
    """PersistenceGateway backed by a JSON registry and payload files.

    Args:
        data_dir: Directory holding registry.json and payloads/.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.registry_path = self.data_dir / REGISTRY_FILENAME
        self.payload_dir = self.data_dir / PAYLOAD_DIRNAME

    def payload_path(self, entry: Entry) -> Path:
        return self.payload_dir / entry.digest()

    def load_history(self) -> list[Entry]:
        """Read the registry.

        A missing registry is an empty history. A malformed one is logged
        and also treated as empty; individual malformed items or items
        whose payload file is gone are skipped.

        Returns:
            Entries oldest first.
        """
        try:
            raw = json.loads(self.registry_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable registry %s: %s", self.registry_path, e)
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring registry %s: expected a list", self.registry_path)
            return []

        entries = []
        for item in raw:
            entry = self._deserialize(item)
            if entry is not None:
                entries.append(entry)
        return entries

    def save_history(self, entries: Sequence[Entry]) -> None:
        """Replace the registry with entries (oldest first).

        Payload files the new registry no longer references are removed
        afterwards, including files of entries that were never persisted.

        Raises:
            PersistenceError: If the registry cannot be written.
        """
        items = [self._serialize(entry) for entry in entries]
        data = json.dumps(items, ensure_ascii=False).encode("utf-8")
        try:
            write_atomic(self.registry_path, data)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.registry_path}: {e}") from e
        self.prune_payloads({item["file"] for item in items if "file" in item})

    def prune_payloads(self, keep: set[str]) -> int:
        """Delete payload files whose name is not in keep.

        Args:
            keep: Digests still referenced by the registry.

        Returns:
            Number of deleted files.
        """
        try:
            paths = [p for p in self.payload_dir.iterdir() if p.is_file()]
        except FileNotFoundError:
            return 0
        except OSError as e:
            logger.warning("Cannot list payload directory %s: %s", self.payload_dir, e)
            return 0
        removed = 0
        for path in paths:
            # Temporary files of in-flight writes start with a dot
            if path.name in keep or path.name.startswith("."):
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Cannot delete unreferenced payload %s: %s", path, e)
                continue
            removed += 1
        if removed:
            logger.debug("Removed %d unreferenced payload files", removed)
        return removed

    def store_binary_payload(self, entry: Entry) -> None:
        """Write the entry's payload file unless it already exists.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        path = self.payload_path(entry)
        if path.exists():
            return
        try:
            write_atomic(path, entry.payload)
        except OSError as e:
            raise PersistenceError(f"Cannot write payload {path}: {e}") from e

    def delete_binary_payload(self, entry: Entry) -> None:
        """Remove the entry's payload file if present.

        Raises:
            PersistenceError: If the file exists but cannot be removed.
        """
        path = self.payload_path(entry)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot delete payload {path}: {e}") from e

    def _serialize(self, entry: Entry) -> dict[str, Any]:
        item: dict[str, Any] = {"mimetype": entry.content_type, "favorite": entry.favorite}
        if entry.is_text():
            try:
                item["contents"] = entry.payload.decode("utf-8")
                return item
            except UnicodeDecodeError:
                pass
        # Also covers text that is not valid UTF-8
        self.store_binary_payload(entry)
        item["file"] = entry.digest()
        return item

    def _deserialize(self, item: Any) -> Entry | None:
        if not isinstance(item, dict) or not isinstance(item.get("mimetype"), str):
            logger.warning("Skipping malformed registry item: %r", item)
            return None
        content_type = item["mimetype"]
        favorite = bool(item.get("favorite", False))

        if isinstance(item.get("contents"), str):
            return Entry(content_type, item["contents"].encode("utf-8"), favorite)

        digest = item.get("file")
        if not isinstance(digest, str) or "/" in digest or not digest:
            logger.warning("Skipping malformed registry item: %r", item)
            return None
        try:
            payload = (self.payload_dir / digest).read_bytes()
        except OSError as e:
            logger.warning("Skipping %s entry, payload unavailable: %s", content_type, e)
            return None
        return Entry(content_type, payload, favorite)
