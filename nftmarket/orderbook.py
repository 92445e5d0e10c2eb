"""
Order book for every (collection, token id) pair.

Each pair has two independent arenas, asks and bids. Orders are only ever
appended; cancelling or filling an order tombstones it where it sits, so
positions returned to callers remain stable forever.

Also tracks, per collection, every token id that has ever carried an
order (used for floor prices and collection scans).
"""

from typing import Iterable

from nftmarket.errors import OrderNotFoundError
from nftmarket.types import Ask, Bid, Order, PriceLevel
from nftmarket.world import Stateful

BookKey = tuple[str, int]


class OrderBook(Stateful):
    """
    Append-only ask/bid arenas with tombstones.

    Attributes:
        asks: Ask arenas keyed by (collection, token_id)
        bids: Bid arenas keyed by (collection, token_id)
        known_token_ids: Token ids with any order, per collection, as insertion-ordered dict keys
    """

    def __init__(self) -> None:
        self.asks: dict[BookKey, list[Ask]] = {}
        self.bids: dict[BookKey, list[Bid]] = {}
        self.known_token_ids: dict[str, dict[int, None]] = {}

    # =========================================================================
    # Mutation
    # =========================================================================

    def _add(self, arenas: dict[BookKey, list], collection: str, token_id: int, order: Order) -> int:
        key = (collection, token_id)
        arena = arenas.get(key)
        if arena is None:
            arena = []
            self._set_item(arenas, key, arena)
        self._append(arena, order)
        self.remember_token_id(collection, token_id)
        return len(arena) - 1

    def add_ask(self, collection: str, token_id: int, ask: Ask) -> int:
        """Append an ask and return its index."""
        return self._add(self.asks, collection, token_id, ask)

    def add_bid(self, collection: str, token_id: int, bid: Bid) -> int:
        """Append a bid and return its index."""
        return self._add(self.bids, collection, token_id, bid)

    def remember_token_id(self, collection: str, token_id: int) -> None:
        known = self.known_token_ids.get(collection)
        if known is None:
            known = {}
            self._set_item(self.known_token_ids, collection, known)
        if token_id not in known:
            self._set_item(known, token_id, None)

    def _save_order(self, order: Order) -> None:
        self._save_attrs(order, "maker", "price", "quantity", "created_at", "active")

    def fill(self, order: Order, quantity: int) -> None:
        """Consume units of a stored order."""
        self._save_order(order)
        order.fill(quantity)

    def cancel(self, order: Order) -> None:
        """Tombstone a stored order in place."""
        self._save_order(order)
        order.tombstone()

    def tombstone_asks_by(
        self, collection: str, token_id: int, seller: str
    ) -> list[tuple[int, dict]]:
        """
        Invalidate every active ask ``seller`` has on a token.

        Returns:
            (index, entry before tombstoning) for each cleared ask
        """
        cleared = []
        for index, ask in enumerate(self.asks.get((collection, token_id), [])):
            if ask.active and ask.seller == seller:
                cleared.append((index, ask.to_dict()))
                self.cancel(ask)
        return cleared

    def has_active_orders(self, collection: str) -> bool:
        """Whether any ask or bid on ``collection`` is still open."""
        for token_id in self.known_token_ids.get(collection, {}):
            key = (collection, token_id)
            for arena in (self.asks.get(key, []), self.bids.get(key, [])):
                if any(order.active for order in arena):
                    return True
        return False

    # =========================================================================
    # Lookup
    # =========================================================================

    @staticmethod
    def _at(arena: list[Order], kind: str, collection: str, token_id: int, index: int) -> Order:
        if not 0 <= index < len(arena):
            raise OrderNotFoundError(
                f"no {kind} at index {index} for {collection}#{token_id} "
                f"({len(arena)} recorded)"
            )
        return arena[index]

    def ask_at(self, collection: str, token_id: int, index: int) -> Ask:
        return self._at(self.asks.get((collection, token_id), []), "ask", collection, token_id, index)

    def bid_at(self, collection: str, token_id: int, index: int) -> Bid:
        return self._at(self.bids.get((collection, token_id), []), "bid", collection, token_id, index)

    def asks_for(self, collection: str, token_id: int) -> list[Ask]:
        return list(self.asks.get((collection, token_id), []))

    def bids_for(self, collection: str, token_id: int) -> list[Bid]:
        return list(self.bids.get((collection, token_id), []))

    def token_ids(self, collection: str) -> list[int]:
        return list(self.known_token_ids.get(collection, {}))

    # =========================================================================
    # Best prices
    # =========================================================================

    @staticmethod
    def _best(orders: Iterable[Order], lowest: bool) -> PriceLevel:
        best_price = 0
        quantity = 0
        for order in orders:
            if not order.active:
                continue
            better = order.price < best_price if lowest else order.price > best_price
            if best_price == 0 or better:
                best_price = order.price
                quantity = order.quantity
            elif order.price == best_price:
                quantity += order.quantity
        return PriceLevel(best_price, quantity)

    def lowest_ask(self, collection: str, token_id: int) -> PriceLevel:
        """Cheapest active ask and total quantity at that price (zeros if none)."""
        return self._best(self.asks.get((collection, token_id), []), lowest=True)

    def highest_bid(self, collection: str, token_id: int) -> PriceLevel:
        """Richest active bid and total quantity at that price (zeros if none)."""
        return self._best(self.bids.get((collection, token_id), []), lowest=False)

    def floor_price(self, collection: str) -> int:
        """Minimum active ask price across the collection's known tokens, 0 if none."""
        floor = 0
        for token_id in self.known_token_ids.get(collection, {}):
            price = self.lowest_ask(collection, token_id).price
            if price and (floor == 0 or price < floor):
                floor = price
        return floor
