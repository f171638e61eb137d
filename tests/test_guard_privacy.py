#!/usr/bin/env python3
"""Tests for RefreshGuard and PrivacyGate."""

import pytest

from clipkeeper.guard import RefreshGuard
from clipkeeper.privacy import PrivacyGate


class TestRefreshGuard:
    def test_second_enter_fails(self) -> None:
        guard = RefreshGuard()
        assert guard.try_enter() is True
        assert guard.try_enter() is False
        guard.release()
        assert guard.try_enter() is True

    def test_held_releases_on_error(self) -> None:
        guard = RefreshGuard()
        with pytest.raises(ValueError):
            with guard.held() as entered:
                assert entered
                raise ValueError("capture failed")
        assert not guard.busy

    def test_held_does_not_release_foreign_marker(self) -> None:
        guard = RefreshGuard()
        guard.try_enter()
        with guard.held() as entered:
            assert not entered
        assert guard.busy


class TestPrivacyGate:
    def test_set_reports_change(self) -> None:
        gate = PrivacyGate()
        assert gate.set(True) is True
        assert gate.active
        assert gate.set(True) is False
        assert gate.set(False) is True
        assert not gate.active
