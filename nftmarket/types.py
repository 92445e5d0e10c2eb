"""
Records held by the marketplace.

Orders are stored in per-(collection, token) arenas and are never
removed: cancelling or completely filling an order tombstones it in
place so that every index handed out stays valid.
"""

from dataclasses import asdict, dataclass, field

from nftmarket.world import ZERO_ADDRESS


@dataclass
class Collection:
    """Registry entry for one token contract. ``listed_at == 0`` means absent."""

    address: str
    name: str
    symbol: str
    description: str
    slug: str
    is_fractional: bool
    minted_by_platform: bool
    created_by: str
    royalty_rate_bps: int
    total_supply: int = 0
    listed_at: int = 0
    volume_traded: int = 0


@dataclass(frozen=True)
class Creator:
    recipient: str
    share_bps: int


@dataclass
class CreatorRequest:
    """Creator list proposed by a non-owner, waiting for owner approval."""

    collection: str
    creators: tuple[str, ...]
    shares: tuple[int, ...]
    requested_by: str
    approved: bool = False


@dataclass
class Order:
    """
    Standing offer in an order book.

    Attributes:
        maker: Seller for asks, buyer for bids
        price: Unit price in native value
        quantity: Units remaining (always > 0 while active)
        created_at: World timestamp at creation
        active: False once cancelled or fully filled
    """

    maker: str
    price: int
    quantity: int
    created_at: int
    active: bool = True

    @property
    def total(self) -> int:
        return self.price * self.quantity

    def fill(self, quantity: int) -> None:
        """Consume ``quantity`` units, tombstoning when nothing is left."""
        self.quantity -= quantity
        if self.quantity == 0:
            self.tombstone()

    def tombstone(self) -> None:
        self.maker = ZERO_ADDRESS
        self.price = 0
        self.quantity = 0
        self.created_at = 0
        self.active = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Ask(Order):
    @property
    def seller(self) -> str:
        return self.maker


@dataclass
class Bid(Order):
    @property
    def buyer(self) -> str:
        return self.maker


@dataclass(frozen=True)
class SaleLog:
    seller: str
    buyer: str
    price: int
    timestamp: int


@dataclass(frozen=True)
class PriceLevel:
    """Best price on one side of a book with the quantity resting there."""

    price: int = 0
    quantity: int = 0


@dataclass
class OrderBookView:
    asks: list[Ask] = field(default_factory=list)
    bids: list[Bid] = field(default_factory=list)
