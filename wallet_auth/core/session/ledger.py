"""
Per-operator usage ledger.

Remaining gas and remaining call count only ever go down through
validation, and a charge is checked in full before anything is written.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from ..state.store import StateStore
from .errors import ExceedUsageError, GasFeeExceedsRemainingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Usage:
    gas_remaining: int = 0
    times_remaining: int = 0


class UsageLedger:
    def __init__(self, store: StateStore, key_for: Callable[[str, str], tuple]):
        self._store = store
        self._key_for = key_for

    def get(self, wallet: str, operator: str) -> Usage:
        return self._store.get(self._key_for(wallet, operator), Usage())

    def reset(self, wallet: str, operator: str, usage: Usage) -> None:
        self._store.set(self._key_for(wallet, operator), usage)

    def delete(self, wallet: str, operator: str) -> None:
        self._store.delete(self._key_for(wallet, operator))

    def check(self, wallet: str, operator: str, gas_cost: int, times_cost: int) -> Usage:
        """Balance after the charge, without writing it."""
        usage = self.get(wallet, operator)
        if gas_cost > usage.gas_remaining:
            raise GasFeeExceedsRemainingError(
                gas_cost=gas_cost,
                gas_remaining=usage.gas_remaining,
                operator=operator,
            )
        if times_cost > usage.times_remaining:
            raise ExceedUsageError(
                times_cost=times_cost,
                times_remaining=usage.times_remaining,
                operator=operator,
            )
        return Usage(
            gas_remaining=usage.gas_remaining - gas_cost,
            times_remaining=usage.times_remaining - times_cost,
        )

    def charge(self, wallet: str, operator: str, gas_cost: int, times_cost: int) -> Usage:
        remaining = self.check(wallet, operator, gas_cost, times_cost)
        self._store.set(self._key_for(wallet, operator), remaining)
        logger.info(
            f"Charged operator {operator} of {wallet}: gas={gas_cost} times={times_cost}",
            extra={"gas_remaining": remaining.gas_remaining, "times_remaining": remaining.times_remaining},
        )
        return remaining
