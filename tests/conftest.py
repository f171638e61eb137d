#!/usr/bin/env python3
"""Pytest fixtures for clipkeeper tests.

Provides an in-memory clipboard, an in-memory persistence gateway and a
recording listener, so the engine can be driven without X11 or disk.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

import pytest

from clipkeeper.config import EngineConfig
from clipkeeper.engine import ClipboardHistory
from clipkeeper.entry import Entry
from clipkeeper.errors import PersistenceError


def has_display() -> bool:
    """Return True if an X server is configured for integration tests."""
    return bool(os.environ.get("DISPLAY"))


class FakeClipboard:
    """ClipboardBackend holding one (content type, payload) pair."""

    def __init__(self) -> None:
        self.content_type: str | None = None
        self.payload: bytes = b""
        self.reads: list[str] = []
        self.writes: list[tuple[str, bytes]] = []
        self.clears = 0
        self.failing_types: set[str] = set()

    def set(self, content_type: str, payload: bytes) -> None:
        """Simulate another application copying payload."""
        self.content_type = content_type
        self.payload = payload

    def set_text(self, text: str) -> None:
        self.set("text/plain", text.encode("utf-8"))

    async def read_content(self, content_type: str) -> bytes | None:
        self.reads.append(content_type)
        if content_type in self.failing_types:
            raise RuntimeError(f"cannot read {content_type}")
        if content_type == self.content_type:
            return self.payload
        return None

    def write_content(self, content_type: str, payload: bytes) -> None:
        self.writes.append((content_type, payload))
        self.set(content_type, payload)

    def clear(self) -> None:
        self.clears += 1
        self.content_type = None
        self.payload = b""


class FakeGateway:
    """PersistenceGateway keeping everything in memory."""

    def __init__(self, entries: Sequence[Entry] = ()) -> None:
        self.saved: list[Entry] = list(entries)
        self.save_count = 0
        self.payloads: dict[str, bytes] = {}
        self.deleted: list[Entry] = []
        self.fail_saves = False
        self.fail_load = False

    def load_history(self) -> list[Entry]:
        if self.fail_load:
            raise PersistenceError("registry unreadable")
        return list(self.saved)

    def save_history(self, entries: Sequence[Entry]) -> None:
        if self.fail_saves:
            raise PersistenceError("disk full")
        self.save_count += 1
        self.saved = list(entries)

    def store_binary_payload(self, entry: Entry) -> None:
        self.payloads[entry.digest()] = entry.payload

    def delete_binary_payload(self, entry: Entry) -> None:
        self.deleted.append(entry)
        self.payloads.pop(entry.digest(), None)


class RecordingListener:
    """HistoryListener recording every notification as a tuple."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def names(self) -> list[str]:
        return [event[0] for event in self.events]

    def of(self, name: str) -> list[tuple]:
        return [event for event in self.events if event[0] == name]

    def entry_added(self, handle, entry):
        self.events.append(("entry_added", handle, entry))

    def entry_removed(self, handle, entry):
        self.events.append(("entry_removed", handle, entry))

    def entry_moved(self, handle):
        self.events.append(("entry_moved", handle))

    def selection_changed(self, handle):
        self.events.append(("selection_changed", handle))

    def favorite_toggled(self, handle, entry):
        self.events.append(("favorite_toggled", handle, entry))

    def empty_state_changed(self, empty):
        self.events.append(("empty_state_changed", empty))

    def privacy_changed(self, active):
        self.events.append(("privacy_changed", active))

    def entries_relabelled(self):
        self.events.append(("entries_relabelled",))

    def persistence_failed(self, error):
        self.events.append(("persistence_failed", error))


def text(value: str, favorite: bool = False) -> Entry:
    """Build a text/plain entry."""
    return Entry("text/plain", value.encode("utf-8"), favorite)


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def make_engine(clipboard, gateway, listener):
    """Factory building a ClipboardHistory over the fakes."""
    def factory(**settings) -> ClipboardHistory:
        return ClipboardHistory(EngineConfig(**settings), clipboard, gateway, listener)

    return factory


async def capture(engine: ClipboardHistory, clipboard: FakeClipboard, value: str) -> int | None:
    """Copy value to the fake clipboard and run one capture cycle."""
    clipboard.set_text(value)
    return await engine.refresh()


def payloads(engine: ClipboardHistory, handles: list[int]) -> list[str]:
    """Decode the text payloads of handles."""
    return [engine.store.get(h).payload.decode("utf-8") for h in handles]


@pytest.fixture
def temp_socket_path(tmp_path: Path) -> Path:
    """Provide a temporary path for Unix domain socket testing."""
    return tmp_path / "test.sock"
