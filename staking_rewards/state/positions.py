"""
Per-(pool, depositor) stake and reward-debt records.
"""

from __future__ import annotations

from ..core.types import Position
from .store import KeyValueStore

# Type alias
Depositor = str

_EMPTY = Position()


def _position_key(pool_id: int, depositor: Depositor) -> tuple:
    return ("position", pool_id, depositor)


class PositionLedger:
    """
    Position table mapping (pool_id, depositor) -> Position.

    Notes:
    - A depositor with no record reads as ``Position(0, 0)``.
    - Records are created on first write and never deleted, even when the
      stake returns to zero.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self, pool_id: int, depositor: Depositor) -> Position:
        return self._store.get(_position_key(pool_id, depositor), _EMPTY)

    def put(self, pool_id: int, depositor: Depositor, position: Position) -> None:
        if not isinstance(depositor, str) or not depositor:
            raise ValueError(f"depositor must be a non-empty string: {depositor!r}")
        self._store.put(_position_key(pool_id, depositor), position)

    def has_record(self, pool_id: int, depositor: Depositor) -> bool:
        return self._store.contains(_position_key(pool_id, depositor))
