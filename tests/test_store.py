#!/usr/bin/env python3
"""Tests for EntryStore ordering, uniqueness and eviction."""

import pytest

from clipkeeper.entry import Entry
from clipkeeper.store import EntryStore

from conftest import text


@pytest.fixture
def store() -> EntryStore:
    return EntryStore(history_size=3)


def values(store: EntryStore, handles: list[int]) -> list[bytes]:
    return [store.get(h).payload for h in handles]


class TestInsert:
    def test_insert_puts_entry_first(self, store: EntryStore) -> None:
        store.insert(text("a"))
        store.insert(text("b"))
        assert values(store, store.history) == [b"b", b"a"]

    def test_duplicate_returns_existing_handle(self, store: EntryStore) -> None:
        first = store.insert(text("a"))
        store.insert(text("b"))
        assert store.insert(text("a")) == first
        assert len(store) == 2
        assert values(store, store.history) == [b"b", b"a"]

    def test_duplicate_of_favorite_detected(self, store: EntryStore) -> None:
        handle = store.insert(text("a", favorite=True))
        assert store.insert(text("a")) == handle
        assert store.history == []

    def test_handles_never_reused(self, store: EntryStore) -> None:
        first = store.insert(text("a"))
        store.remove(first)
        assert store.insert(text("a")) != first

    def test_find_equal(self, store: EntryStore) -> None:
        handle = store.insert(Entry("image/png", b"\x89"))
        assert store.find_equal(Entry("image/png", b"\x89")) == handle
        assert store.find_equal(Entry("image/gif", b"\x89")) is None


class TestEviction:
    def test_evicts_oldest_non_favorites(self, store: EntryStore) -> None:
        for value in "abcde":
            store.insert(text(value))
        evicted = store.evict_oldest()
        assert [e.payload for _, e in evicted] == [b"a", b"b"]
        assert values(store, store.history) == [b"e", b"d", b"c"]

    def test_favorites_not_counted(self, store: EntryStore) -> None:
        store.insert(text("f1", favorite=True))
        store.insert(text("f2", favorite=True))
        for value in "abc":
            store.insert(text(value))
        assert store.evict_oldest() == []
        assert len(store) == 5

    def test_keep_spares_selected(self, store: EntryStore) -> None:
        oldest = store.insert(text("a"))
        for value in "bcd":
            store.insert(text(value))
        evicted = store.evict_oldest(keep=oldest)
        assert [e.payload for _, e in evicted] == [b"b"]
        assert oldest in store
        assert store.non_favorite_count() == 3


class TestFavorites:
    def test_toggle_moves_between_orderings(self, store: EntryStore) -> None:
        a = store.insert(text("a"))
        store.insert(text("b"))
        assert store.toggle_favorite(a) is True
        assert store.favorites == [a]
        assert a not in store.history
        assert store.get(a).favorite

    def test_toggle_twice_restores_flag(self, store: EntryStore) -> None:
        a = store.insert(text("a"))
        store.toggle_favorite(a)
        assert store.toggle_favorite(a) is False
        assert not store.get(a).favorite
        assert store.history[0] == a

    def test_unknown_handle(self, store: EntryStore) -> None:
        assert store.toggle_favorite(99) is None


class TestRemoveAndClear:
    def test_remove_favorite(self, store: EntryStore) -> None:
        a = store.insert(text("a", favorite=True))
        assert store.remove(a) == text("a")
        assert store.favorites == []

    def test_remove_unknown(self, store: EntryStore) -> None:
        assert store.remove(42) is None

    def test_clear_spares_keep_and_favorites(self, store: EntryStore) -> None:
        fav = store.insert(text("f", favorite=True))
        a = store.insert(text("a"))
        store.insert(text("b"))
        removed = store.clear(keep=a)
        assert [e.payload for _, e in removed] == [b"b"]
        assert store.history == [a]
        assert store.favorites == [fav]

    def test_clear_without_keep_removes_all_history(self, store: EntryStore) -> None:
        store.insert(text("a"))
        store.insert(text("b"))
        store.clear()
        assert store.history == []


class TestOrdering:
    def test_move_to_front(self, store: EntryStore) -> None:
        x = store.insert(text("z"))
        y = store.insert(text("y"))
        store.insert(text("x"))
        assert store.move_to_front(y) is True
        assert store.history[0] == y
        assert store.history[-1] == x

    def test_move_to_front_noop_when_first(self, store: EntryStore) -> None:
        a = store.insert(text("a"))
        assert store.move_to_front(a) is False
        assert store.move_to_front(77) is False

    def test_display_order_history_then_favorites(self, store: EntryStore) -> None:
        fav = store.insert(text("f", favorite=True))
        a = store.insert(text("a"))
        assert store.display_order() == [a, fav]

    def test_snapshot_replays_through_load(self, store: EntryStore) -> None:
        store.insert(text("f", favorite=True))
        store.insert(text("a"))
        store.insert(text("b"))
        replay = EntryStore(history_size=3)
        replay.load(store.snapshot())
        assert values(replay, replay.display_order()) == values(store, store.display_order())
        assert replay.get(replay.favorites[0]).favorite
        assert replay.last_inserted is None

    def test_search_case_insensitive(self, store: EntryStore) -> None:
        hello = store.insert(text("Hello World"))
        store.insert(text("other"))
        store.insert(Entry("image/png", b"hello"))
        assert store.search("WORLD") == [hello]
        assert len(store.search("")) == 3
