"""
Key-value persistence with snapshot transactions.

Every persisted record (pools, positions, schedule, balances held by the
in-memory gateways) lives in one ``KeyValueStore`` so that a single
transaction covers the whole operation, including its external interactions.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Hashable, Iterator, Optional, Tuple

Key = Tuple[Hashable, ...]


class KeyValueStore:
    """
    In-memory store keyed by tuples.

    Notes:
    - Values must be immutable (frozen dataclasses, ints, strings); a snapshot
      is a shallow copy of the mapping.
    - Transactions nest: each level restores its own snapshot on error and
      re-raises, so the outermost caller still sees the failure.
    """

    def __init__(self) -> None:
        self._data: Dict[Key, Any] = {}
        self._depth = 0

    def get(self, key: Key, default: Optional[Any] = None) -> Any:
        return self._data.get(key, default)

    def put(self, key: Key, value: Any) -> None:
        if value is None:
            raise ValueError(f"cannot store None under {key!r}; use delete()")
        self._data[key] = value

    def delete(self, key: Key) -> None:
        self._data.pop(key, None)

    def contains(self, key: Key) -> bool:
        return key in self._data

    def snapshot(self) -> Dict[Key, Any]:
        return dict(self._data)

    def restore(self, snapshot: Dict[Key, Any]) -> None:
        self._data = dict(snapshot)

    @property
    def depth(self) -> int:
        """Current transaction nesting level (0 = none open)."""
        return self._depth

    @contextmanager
    def transaction(self) -> Iterator["KeyValueStore"]:
        saved = self.snapshot()
        self._depth += 1
        try:
            yield self
        except BaseException:
            self.restore(saved)
            raise
        finally:
            self._depth -= 1

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"KeyValueStore({len(self._data)} entries)"
