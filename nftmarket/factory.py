"""
Collection factory.

Deploys a fresh token contract for a new collection and registers it
with the marketplace through the privileged registry boundary.
"""

import logging
from typing import Sequence

from nftmarket.errors import AuthorizationError, ValidationError
from nftmarket.tokens import MultiOwnerToken, SingleOwnerToken
from nftmarket.world import ZERO_ADDRESS, Stateful, World

logger = logging.getLogger(__name__)


class CollectionFactory(Stateful):
    """
    Creates platform-minted collections.

    Attributes:
        owner: Address allowed to relink the factory
        marketplace: Marketplace new collections are registered with
        created: Addresses of every collection this factory deployed
    """

    def __init__(self, world: World, owner: str) -> None:
        self.world = world
        self.address = ZERO_ADDRESS
        self.owner = owner
        self.marketplace: str | None = None
        self.created: list[str] = []

    def set_marketplace(self, sender: str, marketplace: str) -> None:
        if sender != self.owner:
            raise AuthorizationError(f"{sender} is not the factory owner")
        with self.world.atomic():
            self._save_attrs(self, "marketplace")
            self.marketplace = marketplace

    def create_collection(
        self,
        sender: str,
        name: str,
        symbol: str,
        description: str,
        is_fractional: bool,
        royalty_bps: int,
        creators: Sequence[str],
        shares: Sequence[int],
    ) -> str:
        """
        Deploy and register a collection created by ``sender``.

        Returns:
            Address of the new token contract
        """
        if self.marketplace is None:
            raise ValidationError("factory is not linked to a marketplace")
        token_cls = MultiOwnerToken if is_fractional else SingleOwnerToken
        with self.world.atomic():
            token = token_cls(self.world, name, symbol, marketplace=self.marketplace, owner=sender)
            address = self.world.deploy(token)
            market = self.world.contract_at(self.marketplace)
            market.register_collection(
                self.address,
                address,
                name,
                symbol,
                description,
                is_fractional,
                royalty_bps,
                creators,
                shares,
                created_by=sender,
            )
            self._append(self.created, address)
        logger.info(f"{sender} created {'fractional ' if is_fractional else ''}collection {name} at {address}")
        return address
