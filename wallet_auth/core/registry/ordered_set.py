"""
Position-aware set of 20-byte identifiers.

Entries are linked through successor pointers kept in the state store:
``SENTINEL -> newest -> ... -> oldest -> SENTINEL``. Insertion is at the
head; removal needs the caller to name the predecessor so it stays O(1).
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from ..errors import AuthorizationAbort, ErrorCode
from ..state.store import Key, StateStore
from ..types import SENTINEL, InvalidIdentifierError, is_reserved, normalize_address

logger = logging.getLogger(__name__)


class AlreadyExistsError(AuthorizationAbort):
    code = ErrorCode.ALREADY_EXISTS
    default_message = "identifier already present"


class IdentifierNotFoundError(AuthorizationAbort):
    code = ErrorCode.NOT_FOUND
    default_message = "identifier not present"


class StalePredecessorError(AuthorizationAbort):
    code = ErrorCode.STALE_PREDECESSOR
    default_message = "predecessor hint does not point at the identifier"


class InvalidPageError(AuthorizationAbort):
    code = ErrorCode.INVALID_PAGE
    default_message = "invalid page request"


@dataclass
class Page:
    """One bounded slice of an enumeration."""
    items: List[str] = field(default_factory=list)
    next: str = SENTINEL

    @property
    def exhausted(self) -> bool:
        return self.next == SENTINEL


class OrderedIdentifierSet:
    """Ordered set stored under ``namespace`` in a ``StateStore``."""

    def __init__(self, store: StateStore, namespace: Key):
        self._store = store
        self._namespace = tuple(namespace)

    def _key(self, identifier: str) -> Key:
        return self._namespace + (identifier,)

    def _successor(self, identifier: str) -> Optional[str]:
        return self._store.get(self._key(identifier))

    def _link(self, identifier: str, successor: str) -> None:
        self._store.set(self._key(identifier), successor)

    def _head(self) -> str:
        return self._successor(SENTINEL) or SENTINEL

    def _check_identifier(self, identifier: str) -> str:
        identifier = normalize_address(identifier)
        if is_reserved(identifier):
            raise InvalidIdentifierError(f"Reserved identifier: {identifier}", identifier=identifier)
        return identifier

    def contains(self, identifier: str) -> bool:
        identifier = normalize_address(identifier)
        if is_reserved(identifier):
            return False
        return self._successor(identifier) is not None

    def is_empty(self) -> bool:
        return self._head() == SENTINEL

    def size(self) -> int:
        count = 0
        current = self._head()
        while current != SENTINEL:
            count += 1
            current = self._successor(current)
        return count

    def add(self, identifier: str) -> None:
        identifier = self._check_identifier(identifier)
        if self._successor(identifier) is not None:
            raise AlreadyExistsError(f"{identifier} already present", identifier=identifier)

        self._link(identifier, self._head())
        self._link(SENTINEL, identifier)

    def remove(self, prev: str, identifier: str) -> None:
        identifier = normalize_address(identifier)
        prev = normalize_address(prev)
        if not self.contains(identifier):
            raise IdentifierNotFoundError(f"{identifier} not present", identifier=identifier)
        if self._successor(prev) != identifier:
            raise StalePredecessorError(
                f"{prev} does not precede {identifier}",
                identifier=identifier,
                prev=prev,
            )

        self._link(prev, self._successor(identifier))
        self._store.delete(self._key(identifier))
        if self._successor(SENTINEL) == SENTINEL:
            self._store.delete(self._key(SENTINEL))

    def replace(self, old: str, new: str) -> None:
        """Swap ``old`` for ``new`` keeping its position in the order."""
        old = normalize_address(old)
        new = self._check_identifier(new)
        if not self.contains(old):
            raise IdentifierNotFoundError(f"{old} not present", identifier=old)
        if self.contains(new):
            raise AlreadyExistsError(f"{new} already present", identifier=new)

        prev = self.find_predecessor(old)
        self._link(new, self._successor(old))
        self._link(prev, new)
        self._store.delete(self._key(old))

    def find_predecessor(self, identifier: str) -> str:
        """Derive the removal hint for ``identifier`` by walking the whole set."""
        identifier = normalize_address(identifier)
        if not self.contains(identifier):
            raise IdentifierNotFoundError(f"{identifier} not present", identifier=identifier)

        prev = SENTINEL
        current = self._head()
        while current != identifier:
            prev = current
            current = self._successor(current)
        return prev

    def list(self, start: str = SENTINEL, limit: int = 10) -> Page:
        """Return up to ``limit`` identifiers following ``start``.

        ``Page.next`` is the cursor for the following call, or the sentinel
        once the enumeration is complete.
        """
        if limit < 1:
            raise InvalidPageError(f"Page limit must be positive, got {limit}", limit=limit)
        start = normalize_address(start)
        if start != SENTINEL and not self.contains(start):
            raise IdentifierNotFoundError(f"Cursor {start} not present", identifier=start)

        items: List[str] = []
        current = self._successor(start) or SENTINEL
        while current != SENTINEL and len(items) < limit:
            items.append(current)
            current = self._successor(current)

        next_cursor = items[-1] if items and current != SENTINEL else SENTINEL
        return Page(items=items, next=next_cursor)

    def iter_all(self, page_size: int = 50) -> Iterator[str]:
        """Full enumeration, paging through ``list``."""
        cursor = SENTINEL
        while True:
            page = self.list(cursor, page_size)
            yield from page.items
            if page.exhausted:
                return
            cursor = page.next
