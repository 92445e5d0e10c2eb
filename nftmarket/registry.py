"""
Collection registry and creator royalty table.

Maps a token-contract address to its collection metadata and to the
ordered list of creators that share the collection's royalty.
"""

import logging
import re
from typing import Sequence

from nftmarket.errors import OrderNotFoundError, ValidationError
from nftmarket.royalty import BPS_DENOMINATOR, validate_creator_shares
from nftmarket.types import Collection, Creator, CreatorRequest
from nftmarket.world import Stateful

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "collection"


class CollectionRegistry(Stateful):
    """
    Registered collections, their creators, and pending creator requests.

    Attributes:
        collections: Collection records by token-contract address
        collection_list: Addresses in registration order
        creators: Creator tables by token-contract address
        requests: Creator-fee requests awaiting owner approval
    """

    def __init__(self) -> None:
        self.collections: dict[str, Collection] = {}
        self.collection_list: list[str] = []
        self.creators: dict[str, list[Creator]] = {}
        self.requests: list[CreatorRequest] = []

    def exists(self, address: str) -> bool:
        collection = self.collections.get(address)
        return collection is not None and collection.listed_at > 0

    def get(self, address: str) -> Collection:
        """
        Raises:
            ValidationError: If ``address`` is not a registered collection
        """
        if not self.exists(address):
            raise ValidationError(f"collection {address} is not registered")
        return self.collections[address]

    def register(
        self,
        address: str,
        *,
        name: str,
        symbol: str,
        description: str,
        is_fractional: bool,
        royalty_rate_bps: int,
        creators: Sequence[str],
        shares: Sequence[int],
        created_by: str,
        listed_at: int,
        minted_by_platform: bool = True,
        total_supply: int = 0,
        slug: str | None = None,
    ) -> Collection:
        """Add a collection; re-registering an address is rejected."""
        if self.exists(address):
            raise ValidationError(f"collection {address} is already registered")
        if not 0 <= royalty_rate_bps < BPS_DENOMINATOR:
            raise ValidationError(f"royalty rate must be in [0, {BPS_DENOMINATOR}), got {royalty_rate_bps}")
        if listed_at <= 0:
            raise ValidationError("listed_at must be positive")
        table = validate_creator_shares(creators, shares)

        collection = Collection(
            address=address,
            name=name,
            symbol=symbol,
            description=description,
            slug=slug or slugify(name),
            is_fractional=is_fractional,
            minted_by_platform=minted_by_platform,
            created_by=created_by,
            royalty_rate_bps=royalty_rate_bps,
            total_supply=total_supply,
            listed_at=listed_at,
        )
        self._set_item(self.collections, address, collection)
        self._append(self.collection_list, address)
        self._set_item(self.creators, address, table)
        logger.info(f"Registered collection {name} ({symbol}) at {address}")
        return collection

    def remove(self, address: str) -> Collection:
        collection = self.get(address)
        self._pop_item(self.collections, address)
        self._save_attrs(self, "collection_list")
        self.collection_list = [a for a in self.collection_list if a != address]
        if address in self.creators:
            self._pop_item(self.creators, address)
        return collection

    def creators_of(self, address: str) -> list[Creator]:
        return list(self.creators.get(address, []))

    def set_creators(self, address: str, creators: Sequence[str], shares: Sequence[int]) -> list[Creator]:
        """Install a creator table on a collection that has none yet."""
        self.get(address)
        if self.creators.get(address):
            raise ValidationError(f"creators for {address} are already set")
        table = validate_creator_shares(creators, shares)
        self._set_item(self.creators, address, table)
        return list(table)

    def add_request(self, request: CreatorRequest) -> int:
        validate_creator_shares(request.creators, request.shares)
        self._append(self.requests, request)
        return len(self.requests) - 1

    def request_at(self, index: int) -> CreatorRequest:
        if not 0 <= index < len(self.requests):
            raise OrderNotFoundError(f"no creator request at index {index}")
        return self.requests[index]

    def approve_request(self, index: int) -> None:
        request = self.request_at(index)
        self._save_attrs(request, "approved")
        request.approved = True

    def update(self, address: str, **fields) -> Collection:
        """Change fields of a registered collection record."""
        collection = self.get(address)
        self._save_attrs(collection, *fields)
        for name, value in fields.items():
            setattr(collection, name, value)
        return collection

    def record_trade(self, address: str, total: int) -> None:
        collection = self.collections[address]
        self._save_attrs(collection, "volume_traded")
        collection.volume_traded += total
