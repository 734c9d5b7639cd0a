"""
Access-control capability for configuration changes.

The controller only depends on ``AccessControl.require``; ``OwnerAccessControl``
is the single-owner implementation used by default. The owner is kept in the
shared store so ownership changes roll back with a failed operation.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Tuple

from ..core.errors import InvalidArgument, Unauthorized
from ..state.store import KeyValueStore

logger = logging.getLogger(__name__)

_OWNER = ("owner",)


class AccessControl(Protocol):
    def require(self, caller: str) -> None:
        """Raise ``Unauthorized`` unless ``caller`` may configure the system."""
        ...


class OwnerAccessControl:
    """Single-owner authority. An empty owner means ownership was renounced."""

    def __init__(self, store: KeyValueStore, owner: str) -> None:
        if not isinstance(owner, str) or not owner:
            raise InvalidArgument(f"invalid owner: {owner!r}")
        self._store = store
        if not store.contains(_OWNER):
            store.put(_OWNER, owner)

    @property
    def owner(self) -> Optional[str]:
        return self._store.get(_OWNER) or None

    def require(self, caller: str) -> None:
        owner = self.owner
        if owner is None or caller != owner:
            raise Unauthorized("Ownable: caller is not the owner")

    def transfer_ownership(self, caller: str, new_owner: str) -> Tuple[str, str]:
        """Return ``(old_owner, new_owner)``."""
        self.require(caller)
        if not isinstance(new_owner, str) or not new_owner:
            raise InvalidArgument("Ownable: new owner is invalid")
        old = self._store.get(_OWNER)
        self._store.put(_OWNER, new_owner)
        logger.info("ownership transferred from %s to %s", old, new_owner)
        return old, new_owner

    def renounce_ownership(self, caller: str) -> Tuple[str, str]:
        """Leave the system without an owner; owner-only operations stop working."""
        self.require(caller)
        old = self._store.get(_OWNER)
        self._store.put(_OWNER, "")
        logger.info("ownership renounced by %s", old)
        return old, ""
