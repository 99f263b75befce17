"""Tests for the in-memory session store."""

from __future__ import annotations

from conftest import FakeClient
from sessions import SessionStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_one_controller_per_feature_and_session() -> None:
    store = SessionStore(FakeClient)
    a, b = SessionStore.new_id(), SessionStore.new_id()

    passport = store.controller(a, "passport")

    assert store.controller(a, "passport") is passport
    assert store.controller(a, "portrait") is not passport
    assert store.controller(b, "passport") is not passport
    assert len(store) == 2


def test_idle_sessions_expire() -> None:
    clock = FakeClock()
    store = SessionStore(FakeClient, ttl_seconds=60, clock=clock)
    stale = store.controller("old", "passport")

    clock.now = 30
    store.controller("busy", "passport")
    clock.now = 61
    store.controller("busy", "portrait")

    assert len(store) == 1
    assert store.controller("old", "passport") is not stale


def test_activity_refreshes_ttl() -> None:
    clock = FakeClock()
    store = SessionStore(FakeClient, ttl_seconds=60, clock=clock)
    first = store.controller("sid", "passport")

    for t in (50, 100, 150):
        clock.now = t
        assert store.controller("sid", "passport") is first


def test_drop_forgets_session() -> None:
    store = SessionStore(FakeClient)
    store.controller("sid", "portrait")

    store.drop("sid")
    store.drop("sid")

    assert len(store) == 0
