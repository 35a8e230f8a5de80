"""
Tests for OrderedIdentifierSet.
"""

import pytest
from eth_utils import to_checksum_address

from wallet_auth.core.registry import (
    AlreadyExistsError,
    IdentifierNotFoundError,
    InvalidPageError,
    OrderedIdentifierSet,
    StalePredecessorError,
)
from wallet_auth.core.state import StateStore
from wallet_auth.core.types import SENTINEL, ZERO_ADDRESS, InvalidIdentifierError


A = to_checksum_address("0x000000000000000000000000000000000000000a")
B = to_checksum_address("0x000000000000000000000000000000000000000b")
C = to_checksum_address("0x000000000000000000000000000000000000000c")
D = to_checksum_address("0x000000000000000000000000000000000000000d")


@pytest.fixture
def store() -> StateStore:
    return StateStore()


@pytest.fixture
def abc(store: StateStore) -> OrderedIdentifierSet:
    """Set with A, B, C added in that order."""
    entries = OrderedIdentifierSet(store, ("test", "wallet"))
    for identifier in (A, B, C):
        entries.add(identifier)
    return entries


class TestAdd:

    def test_empty_set(self, store: StateStore):
        entries = OrderedIdentifierSet(store, ("test", "wallet"))
        assert entries.is_empty()
        assert entries.size() == 0
        assert entries.list(SENTINEL, 10).items == []

    def test_inserts_at_head(self, abc: OrderedIdentifierSet):
        assert list(abc.iter_all()) == [C, B, A]
        assert abc.size() == 3
        assert not abc.is_empty()

    def test_rejects_duplicate(self, abc: OrderedIdentifierSet):
        with pytest.raises(AlreadyExistsError):
            abc.add(B)

    @pytest.mark.parametrize("identifier", [SENTINEL, ZERO_ADDRESS])
    def test_rejects_reserved(self, abc: OrderedIdentifierSet, identifier: str):
        with pytest.raises(InvalidIdentifierError):
            abc.add(identifier)

    def test_rejects_malformed_address(self, abc: OrderedIdentifierSet):
        with pytest.raises(InvalidIdentifierError):
            abc.add("0x1234")

    def test_contains(self, abc: OrderedIdentifierSet):
        assert abc.contains(A)
        assert abc.contains(A.lower())
        assert not abc.contains(D)
        assert not abc.contains(SENTINEL)


class TestRemove:

    def test_remove_with_predecessor(self, abc: OrderedIdentifierSet):
        abc.remove(C, B)

        assert abc.size() == 2
        assert list(abc.iter_all()) == [C, A]
        assert not abc.contains(B)

    def test_remove_head_uses_sentinel(self, abc: OrderedIdentifierSet):
        abc.remove(SENTINEL, C)
        assert list(abc.iter_all()) == [B, A]

    def test_stale_predecessor(self, abc: OrderedIdentifierSet):
        with pytest.raises(StalePredecessorError):
            abc.remove(A, B)
        assert abc.size() == 3

    def test_missing_identifier(self, abc: OrderedIdentifierSet):
        with pytest.raises(IdentifierNotFoundError):
            abc.remove(SENTINEL, D)

    def test_remove_all_empties_set(self, abc: OrderedIdentifierSet):
        abc.remove(SENTINEL, C)
        abc.remove(SENTINEL, B)
        abc.remove(SENTINEL, A)
        assert abc.is_empty()

        abc.add(D)
        assert list(abc.iter_all()) == [D]

    def test_find_predecessor(self, abc: OrderedIdentifierSet):
        assert abc.find_predecessor(C) == SENTINEL
        assert abc.find_predecessor(B) == C
        assert abc.find_predecessor(A) == B

        with pytest.raises(IdentifierNotFoundError):
            abc.find_predecessor(D)


class TestReplace:

    def test_keeps_position(self, abc: OrderedIdentifierSet):
        abc.replace(B, D)
        assert list(abc.iter_all()) == [C, D, A]

    def test_replace_head(self, abc: OrderedIdentifierSet):
        abc.replace(C, D)
        assert list(abc.iter_all()) == [D, B, A]

    def test_old_must_exist(self, abc: OrderedIdentifierSet):
        with pytest.raises(IdentifierNotFoundError):
            abc.replace(D, "0x000000000000000000000000000000000000000e")

    def test_new_must_be_absent(self, abc: OrderedIdentifierSet):
        with pytest.raises(AlreadyExistsError):
            abc.replace(B, A)


class TestList:

    def test_first_page(self, abc: OrderedIdentifierSet):
        page = abc.list(SENTINEL, 2)
        assert page.items == [C, B]
        assert page.next == B
        assert not page.exhausted

    def test_follow_cursor(self, abc: OrderedIdentifierSet):
        page = abc.list(SENTINEL, 2)
        rest = abc.list(page.next, 2)
        assert rest.items == [A]
        assert rest.exhausted

    def test_exact_fit_is_exhausted(self, abc: OrderedIdentifierSet):
        page = abc.list(SENTINEL, 3)
        assert page.items == [C, B, A]
        assert page.next == SENTINEL

    def test_invalid_limit(self, abc: OrderedIdentifierSet):
        with pytest.raises(InvalidPageError):
            abc.list(SENTINEL, 0)

    def test_unknown_cursor(self, abc: OrderedIdentifierSet):
        with pytest.raises(IdentifierNotFoundError):
            abc.list(D, 2)

    def test_iter_all_pages_through_everything(self, store: StateStore):
        entries = OrderedIdentifierSet(store, ("test", "many"))
        added = [f"0x{i:040x}" for i in range(2, 30)]
        for identifier in added:
            entries.add(identifier)

        assert [x.lower() for x in entries.iter_all(page_size=4)] == list(reversed(added))


def test_namespaces_do_not_alias(store: StateStore):
    first = OrderedIdentifierSet(store, ("test", "wallet-1"))
    second = OrderedIdentifierSet(store, ("test", "wallet-2"))
    first.add(A)

    assert first.contains(A)
    assert not second.contains(A)
    assert second.is_empty()
