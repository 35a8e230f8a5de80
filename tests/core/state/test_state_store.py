"""
Tests for StateStore rollback semantics.
"""

import pytest

from wallet_auth.core.errors import AuthorizationAbort
from wallet_auth.core.state import StateStore


@pytest.fixture
def store() -> StateStore:
    store = StateStore()
    store.set(("a", "wallet-1", "x"), 1)
    store.set(("a", "wallet-1", "y"), 2)
    store.set(("a", "wallet-2", "x"), 3)
    return store


def test_prefix_operations(store: StateStore):
    assert sorted(store.keys_with_prefix(("a", "wallet-1"))) == [("a", "wallet-1", "x"), ("a", "wallet-1", "y")]
    assert store.delete_prefix(("a", "wallet-1")) == 2
    assert len(store) == 1
    assert store.get(("a", "wallet-2", "x")) == 3


def test_abort_undoes_writes(store: StateStore):
    with pytest.raises(AuthorizationAbort):
        with store.atomic():
            store.set(("a", "wallet-1", "x"), 100)
            store.delete(("a", "wallet-2", "x"))
            raise AuthorizationAbort("boom")

    assert store.get(("a", "wallet-1", "x")) == 1
    assert store.contains(("a", "wallet-2", "x"))


def test_success_keeps_writes(store: StateStore):
    with store.atomic():
        assert store.in_transaction
        store.set(("b",), "kept")
    assert not store.in_transaction
    assert store.get(("b",)) == "kept"


def test_nested_failure_rolls_back_inner_only(store: StateStore):
    with store.atomic():
        store.set(("outer",), True)
        try:
            with store.atomic():
                store.set(("inner",), True)
                raise RuntimeError("inner hook failed")
        except RuntimeError:
            pass
        assert store.get(("outer",)) is True
        assert not store.contains(("inner",))

    assert store.get(("outer",)) is True


def test_rollback_restores_deleted_prefix(store: StateStore):
    with pytest.raises(AuthorizationAbort):
        with store.atomic():
            store.delete_prefix(("a", "wallet-1"))
            store.set(("a", "wallet-1", "z"), 9)
            raise AuthorizationAbort("boom")

    assert sorted(store.keys_with_prefix(("a", "wallet-1"))) == [("a", "wallet-1", "x"), ("a", "wallet-1", "y")]
    assert store.get(("a", "wallet-1", "y")) == 2


def test_outer_failure_undoes_committed_inner_block(store: StateStore):
    with pytest.raises(AuthorizationAbort):
        with store.atomic():
            with store.atomic():
                store.set(("a", "wallet-1", "x"), 50)
                store.set(("inner",), True)
            store.set(("a", "wallet-1", "x"), 60)
            raise AuthorizationAbort("boom")

    assert store.get(("a", "wallet-1", "x")) == 1
    assert not store.contains(("inner",))
    assert not store.in_transaction


def test_journal_tracks_only_written_keys(store: StateStore):
    with store.atomic():
        store.set(("a", "wallet-1", "x"), 10)
        store.set(("a", "wallet-1", "x"), 11)
        store.delete(("missing",))
        assert store._journals[-1] == {("a", "wallet-1", "x"): 1}
