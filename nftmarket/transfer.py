"""
Dual-standard asset transfer.

Callers never know which token standard a collection implements, so
every operation walks a fallback chain of asset handles: single-owner
semantics first, multi-owner semantics second. A handle fails by raising;
calling a method a contract does not implement fails the same way.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

from nftmarket.errors import Revert
from nftmarket.world import World

logger = logging.getLogger(__name__)

# A handle attempt fails on a revert or on a missing/mismatched method.
HANDLE_FAILURES = (Revert, AttributeError, TypeError)


class AssetHandle(ABC):
    """One token standard's view of transfer and ownership."""

    name: str = "asset"

    @abstractmethod
    def transfer(
        self, token: Any, operator: str, token_id: int, from_: str, to: str, quantity: int
    ) -> None:
        """Move ``quantity`` units or raise."""

    @abstractmethod
    def owned_quantity(self, token: Any, owner: str, token_id: int) -> int:
        """Return how many units ``owner`` holds or raise."""


class SingleOwnerHandle(AssetHandle):
    name = "single-owner"

    def transfer(self, token, operator, token_id, from_, to, quantity):
        token.transfer_from(operator, from_, to, token_id)

    def owned_quantity(self, token, owner, token_id):
        return 1 if token.owner_of(token_id) == owner else 0


class MultiOwnerHandle(AssetHandle):
    name = "multi-owner"

    def transfer(self, token, operator, token_id, from_, to, quantity):
        token.safe_transfer_from(operator, from_, to, token_id, quantity, b"")

    def owned_quantity(self, token, owner, token_id):
        return int(token.balance_of(owner, token_id))


class TransferAdapter:
    """
    Best-effort transfer and ownership queries across token standards.

    Args:
        world: World the token contracts live in
        operator: Address the adapter acts as (the marketplace)
        handles: Fallback chain, tried in order
    """

    def __init__(
        self,
        world: World,
        operator: str,
        handles: Sequence[AssetHandle] | None = None,
    ) -> None:
        self.world = world
        self.operator = operator
        self.handles = list(handles) if handles else [SingleOwnerHandle(), MultiOwnerHandle()]

    def _token(self, collection: str) -> Any | None:
        return self.world.contracts.get(collection)

    def transfer(
        self, collection: str, token_id: int, from_: str, to: str, quantity: int
    ) -> bool:
        """
        Move an asset, trying each handle in turn.

        Returns:
            True if any handle succeeded, False if all failed
        """
        token = self._token(collection)
        if token is None:
            return False
        for handle in self.handles:
            try:
                handle.transfer(token, self.operator, token_id, from_, to, quantity)
                return True
            except HANDLE_FAILURES as exc:
                logger.debug(
                    f"{handle.name} transfer of {collection}#{token_id} failed: {exc}"
                )
        return False

    def owned_quantity(self, collection: str, owner: str, token_id: int) -> int:
        """Units of ``token_id`` held by ``owner``; 0 when every handle fails."""
        token = self._token(collection)
        if token is None:
            return 0
        for handle in self.handles:
            try:
                return handle.owned_quantity(token, owner, token_id)
            except HANDLE_FAILURES as exc:
                logger.debug(
                    f"{handle.name} ownership query on {collection}#{token_id} failed: {exc}"
                )
        return 0

    def is_approved(self, collection: str, owner: str) -> bool:
        """Whether the adapter's operator may move ``owner``'s assets."""
        token = self._token(collection)
        if token is None:
            return False
        try:
            return bool(token.is_approved_for_all(owner, self.operator))
        except HANDLE_FAILURES:
            return False

    def supply(self, collection: str) -> int:
        """Number of token ids minted so far, 0 if unknown."""
        token = self._token(collection)
        try:
            return int(token.total_supply)
        except HANDLE_FAILURES:
            return 0
