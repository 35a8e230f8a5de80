"""
Namespaced key-value state with request-scoped rollback.

Every component keeps its persistent state here under tuple keys of the form
``(component, wallet, ...)`` so no record can alias across wallets. A hard
abort raised inside ``atomic()`` undoes every write made since entry.

Stored values are treated as immutable: components replace a value with
``set`` rather than mutating what ``get`` returned, which is what lets the
undo journal record only the keys a request actually writes.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

Key = Tuple[Any, ...]

_MISSING = object()


class StateStore:
    """In-memory persistent state for one or more wallets."""

    def __init__(self) -> None:
        self._data: Dict[Key, Any] = {}
        # One journal per open atomic() block: key -> value before the block's first write
        self._journals: List[Dict[Key, Any]] = []

    def _remember(self, key: Key) -> None:
        if self._journals:
            journal = self._journals[-1]
            if key not in journal:
                journal[key] = self._data.get(key, _MISSING)

    def get(self, key: Key, default: Optional[Any] = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: Key, value: Any) -> None:
        self._remember(key)
        self._data[key] = value

    def delete(self, key: Key) -> None:
        if key in self._data:
            self._remember(key)
            del self._data[key]

    def contains(self, key: Key) -> bool:
        return key in self._data

    def keys_with_prefix(self, prefix: Key) -> List[Key]:
        width = len(prefix)
        return [key for key in self._data if key[:width] == prefix]

    def delete_prefix(self, prefix: Key) -> int:
        keys = self.keys_with_prefix(prefix)
        for key in keys:
            self.delete(key)
        return len(keys)

    @property
    def in_transaction(self) -> bool:
        return bool(self._journals)

    def _undo(self, journal: Dict[Key, Any]) -> None:
        for key, previous in journal.items():
            if previous is _MISSING:
                self._data.pop(key, None)
            else:
                self._data[key] = previous

    @contextmanager
    def atomic(self) -> Iterator["StateStore"]:
        """
        Run a block as a unit: any exception undoes the block's writes.

        Blocks nest; an inner block that fails rolls back only its own writes,
        which is how a caught plugin hook failure leaves the outer request
        intact. A successful inner block hands its journal to the enclosing
        one so the outer block can still undo everything.
        """
        journal: Dict[Key, Any] = {}
        self._journals.append(journal)
        try:
            yield self
        except BaseException:
            self._journals.pop()
            self._undo(journal)
            logger.debug("State rolled back %d keys at depth %d", len(journal), len(self._journals) + 1)
            raise
        else:
            self._journals.pop()
            if self._journals:
                parent = self._journals[-1]
                for key, previous in journal.items():
                    parent.setdefault(key, previous)

    def __len__(self) -> int:
        return len(self._data)
