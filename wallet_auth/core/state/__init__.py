"""Persistent, wallet-partitioned state used by every authorization component."""

from .store import StateStore

__all__ = ["StateStore"]
