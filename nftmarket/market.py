"""
NFT marketplace engine: order book, escrow and settlement.

Sellers post asks (the asset moves into the marketplace's custody) and
buyers post bids (the value moves into escrow). A counterparty accepts an
entry by index; settlement then splits the gross amount between the
protocol fee, the collection's creators and the seller, moves the asset
and records the sale.

Execution model:
    Every public mutating call runs inside ``World.atomic()``: it either
    completes or leaves no trace. The order-book entry points are also
    guarded against re-entry, and all ledger debits and tombstoning happen
    before value leaves the marketplace within a call.
"""

import copy
import functools
import logging
from typing import Any, Callable, Sequence, TypeVar

from nftmarket.errors import (
    AssetTransferError,
    AuthorizationError,
    InsufficientFundsError,
    ReentrancyError,
    ValidationError,
)
from nftmarket.events import (
    AskAccepted,
    AskCancelled,
    AskCreated,
    BidAccepted,
    BidCancelled,
    BidCreated,
    CollectionCreated,
    CollectionRemoved,
    CreatorFeesRequested,
    EventLogger,
    FeeCredited,
    RoyaltyPaid,
    Withdrawal,
)
from nftmarket.fees import FeePolicy
from nftmarket.ledger import EscrowLedger, WithdrawableLedger
from nftmarket.orderbook import OrderBook
from nftmarket.registry import CollectionRegistry
from nftmarket.royalty import BPS_DENOMINATOR, royalty_split
from nftmarket.tokens import MULTI_OWNER_INTERFACE, SINGLE_OWNER_INTERFACE
from nftmarket.transfer import TransferAdapter
from nftmarket.types import (
    Ask,
    Bid,
    Collection,
    Creator,
    CreatorRequest,
    OrderBookView,
    PriceLevel,
    SaleLog,
)
from nftmarket.world import ZERO_ADDRESS, Stateful, World

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def entry_point(func: F) -> F:
    """Run a public call with all-or-nothing semantics."""

    @functools.wraps(func)
    def wrapper(self: "NFTMarket", *args, **kwargs):
        with self.world.atomic():
            return func(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def non_reentrant(func: F) -> F:
    """
    Atomic entry point that rejects nested entry into any guarded call.

    The flag is only read once the world lock is held, so callers on other
    threads wait for the running call instead of being rejected.
    """

    @functools.wraps(func)
    def wrapper(self: "NFTMarket", *args, **kwargs):
        with self.world.atomic():
            if self._entered:
                raise ReentrancyError(f"{func.__name__} called while another market call is running")
            self._entered = True
            try:
                return func(self, *args, **kwargs)
            finally:
                self._entered = False

    return wrapper  # type: ignore[return-value]


def query(func: F) -> F:
    """Read-only view that waits for any running call to finish."""

    @functools.wraps(func)
    def wrapper(self: "NFTMarket", *args, **kwargs):
        with self.world.lock:
            return func(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class NFTMarket(Stateful):
    """
    Marketplace for single-owner and fractional token collections.

    Attributes:
        world: World the marketplace is deployed in
        owner: Administrator address
        beneficiary: Address credited with protocol fees
        fee_policy: Address of the FeePolicy contract
        factory: Address allowed to register collections besides the owner
        registry: Collections and creator tables
        book: Ask/bid arenas
        escrow: Buyer pre-payments backing open bids
        withdrawable: Fees and royalties owed to payees
        events: Event log
    """

    def __init__(
        self,
        world: World,
        fee_policy: str,
        factory: str,
        beneficiary: str,
        owner: str,
        events: EventLogger | None = None,
    ) -> None:
        self.world = world
        self.address = ZERO_ADDRESS
        self.owner = owner
        self.beneficiary = beneficiary
        self.fee_policy = fee_policy
        self.factory = factory

        self.registry = CollectionRegistry()
        self.book = OrderBook()
        self.escrow = EscrowLedger()
        self.withdrawable = WithdrawableLedger()
        self.events = events if events is not None else EventLogger()
        for member in (self.registry, self.book, self.escrow, self.withdrawable, self.events):
            world.track(member)

        # (collection, token_id) -> per-unit sale history / last unit price
        self.sales: dict[tuple[str, int], list[SaleLog]] = {}
        self.last_prices: dict[tuple[str, int], int] = {}

        self._entered = False

    @property
    def adapter(self) -> TransferAdapter:
        return TransferAdapter(self.world, self.address)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _only_owner(self, sender: str) -> None:
        if sender != self.owner:
            raise AuthorizationError(f"{sender} is not the marketplace owner")

    @staticmethod
    def _check_lengths(*arrays: Sequence) -> None:
        if len({len(a) for a in arrays}) > 1:
            raise ValidationError(
                f"batch arrays have mismatched lengths: {[len(a) for a in arrays]}"
            )

    @staticmethod
    def _check_order(collection: Collection, price: int, quantity: int) -> None:
        if price <= 0:
            raise ValidationError(f"price must be > 0, got {price}")
        if quantity <= 0:
            raise ValidationError(f"quantity must be > 0, got {quantity}")
        if not collection.is_fractional and quantity != 1:
            raise ValidationError(
                f"{collection.symbol} is single-owner; quantity must be 1, got {quantity}"
            )

    def _receive(self, sender: str, value: int) -> None:
        """Take the value attached to a call."""
        if value < 0:
            raise ValidationError(f"attached value must be >= 0, got {value}")
        self.world.send_value(sender, self.address, value)

    def _pay(self, recipient: str, amount: int) -> None:
        self.world.send_value(self.address, recipient, amount)

    def _move_asset(
        self, collection: str, token_id: int, from_: str, to: str, quantity: int
    ) -> None:
        if not self.adapter.transfer(collection, token_id, from_, to, quantity):
            raise AssetTransferError(
                f"could not move {quantity} of {collection}#{token_id} from {from_} to {to}"
            )

    def _market_fee(self, seller: str, total: int) -> int:
        policy: FeePolicy = self.world.contract_at(self.fee_policy)
        return policy.collect_fee(seller, total)

    def _pay_royalty(self, collection: str, price: int, quantity: int, token_id: int) -> int:
        """
        Credit each creator's royalty share on ``price * quantity``.

        Returns:
            Sum of all shares, to be deducted from the seller's payout
        """
        record = self.registry.get(collection)
        if record.royalty_rate_bps == 0:
            return 0
        paid = 0
        split = royalty_split(
            price * quantity, record.royalty_rate_bps, self.registry.creators_of(collection)
        )
        for recipient, share in split:
            self.withdrawable.credit(recipient, share)
            self.events.emit(RoyaltyPaid(collection, token_id, recipient, share))
            paid += share
        return paid

    def _settle(
        self, collection: str, token_id: int, seller: str, buyer: str, price: int, quantity: int
    ) -> int:
        """
        Book fee, royalties and the sale for ``quantity`` units.

        Fee and royalty are always taken on the gross amount of this item.
        The fee collaborator is consulted once for the deduction and once
        for the beneficiary's credit.

        Returns:
            Amount owed directly to the seller
        """
        total = price * quantity
        royalty = self._pay_royalty(collection, price, quantity, token_id)
        fee = self._market_fee(seller, total)
        credited = self._market_fee(seller, total)
        self.withdrawable.credit(self.beneficiary, credited)
        self.events.emit(FeeCredited(collection, token_id, self.beneficiary, credited))

        payout = total - fee - royalty
        if payout < 0:
            raise ValidationError(
                f"fee ({fee}) and royalty ({royalty}) exceed the sale total ({total})"
            )

        key = (collection, token_id)
        now = self.world.now()
        history = self.sales.get(key)
        if history is None:
            history = []
            self._set_item(self.sales, key, history)
        for _ in range(quantity):
            self._append(history, SaleLog(seller, buyer, price, now))
        self._set_item(self.last_prices, key, price)
        self.registry.record_trade(collection, total)
        return payout

    # =========================================================================
    # Order book entry points
    # =========================================================================

    @non_reentrant
    def ask(
        self,
        sender: str,
        nft_contracts: Sequence[str],
        token_ids: Sequence[int],
        prices: Sequence[int],
        quantities: Sequence[int],
    ) -> list[int]:
        """
        Post asks and take the assets into custody.

        Returns:
            Index of each new ask in its (collection, token) arena
        """
        self._check_lengths(nft_contracts, token_ids, prices, quantities)
        return [
            self._create_ask(sender, *item)
            for item in zip(nft_contracts, token_ids, prices, quantities)
        ]

    def _create_ask(
        self, seller: str, nft_contract: str, token_id: int, price: int, quantity: int
    ) -> int:
        record = self.registry.get(nft_contract)
        self._check_order(record, price, quantity)

        held = self.adapter.owned_quantity(nft_contract, seller, token_id)
        if held < 1:
            raise AuthorizationError(f"{seller} does not hold {nft_contract}#{token_id}")
        if held < quantity:
            raise ValidationError(f"{seller} holds {held} of {nft_contract}#{token_id}, asked {quantity}")
        if not self.adapter.is_approved(nft_contract, seller):
            raise AuthorizationError(f"marketplace is not approved to move {seller}'s assets")

        ask = Ask(seller, price, quantity, self.world.now())
        index = self.book.add_ask(nft_contract, token_id, ask)
        self._move_asset(nft_contract, token_id, seller, self.address, quantity)
        self.events.emit(AskCreated(nft_contract, token_id, index, ask.to_dict()))
        logger.info(f"Ask {nft_contract}#{token_id}[{index}]: {quantity} @ {price} by {seller}")
        return index

    @non_reentrant
    def bid(
        self,
        sender: str,
        nft_contracts: Sequence[str],
        token_ids: Sequence[int],
        prices: Sequence[int],
        quantities: Sequence[int],
        *,
        value: int = 0,
    ) -> list[int]:
        """
        Post bids backed by the attached value.

        The batch total (sum of price * quantity) moves into the sender's
        escrow; anything attached beyond it is refunded at once.

        Raises:
            InsufficientFundsError: If ``value`` is below the batch total
        """
        self._check_lengths(nft_contracts, token_ids, prices, quantities)
        self._receive(sender, value)

        indices = []
        batch_total = 0
        for nft_contract, token_id, price, quantity in zip(
            nft_contracts, token_ids, prices, quantities
        ):
            self._check_order(self.registry.get(nft_contract), price, quantity)
            bid = Bid(sender, price, quantity, self.world.now())
            index = self.book.add_bid(nft_contract, token_id, bid)
            self.events.emit(BidCreated(nft_contract, token_id, index, bid.to_dict()))
            indices.append(index)
            batch_total += bid.total

        if value < batch_total:
            raise InsufficientFundsError(f"bids total {batch_total}, attached {value}")
        self.escrow.credit(sender, batch_total)
        logger.info(f"{sender} placed {len(indices)} bid(s) escrowing {batch_total}")
        self._pay(sender, value - batch_total)
        return indices

    @non_reentrant
    def cancel_ask(
        self,
        sender: str,
        nft_contracts: Sequence[str],
        token_ids: Sequence[int],
        indices: Sequence[int],
    ) -> None:
        """Withdraw the sender's asks and return the custodied assets."""
        self._check_lengths(nft_contracts, token_ids, indices)
        for nft_contract, token_id, index in zip(nft_contracts, token_ids, indices):
            ask = self.book.ask_at(nft_contract, token_id, index)
            if not ask.active or ask.seller != sender:
                raise AuthorizationError(f"only the seller may cancel ask {index} on {nft_contract}#{token_id}")
            entry = ask.to_dict()
            quantity = ask.quantity
            self.book.cancel(ask)
            self._move_asset(nft_contract, token_id, self.address, sender, quantity)
            self.events.emit(AskCancelled(nft_contract, token_id, index, entry))

    @non_reentrant
    def cancel_bid(
        self,
        sender: str,
        nft_contracts: Sequence[str],
        token_ids: Sequence[int],
        indices: Sequence[int],
    ) -> None:
        """Withdraw the sender's bids and refund their escrow."""
        self._check_lengths(nft_contracts, token_ids, indices)
        refunds = 0
        for nft_contract, token_id, index in zip(nft_contracts, token_ids, indices):
            bid = self.book.bid_at(nft_contract, token_id, index)
            if not bid.active or bid.buyer != sender:
                raise AuthorizationError(f"only the buyer may cancel bid {index} on {nft_contract}#{token_id}")
            amount = bid.total
            self.escrow.debit(sender, amount)
            entry = bid.to_dict()
            self.book.cancel(bid)
            self.events.emit(BidCancelled(nft_contract, token_id, index, entry))
            refunds += amount
        self._pay(sender, refunds)

    # =========================================================================
    # Settlement entry points
    # =========================================================================

    @non_reentrant
    def accept_ask(
        self,
        sender: str,
        nft_contracts: Sequence[str],
        token_ids: Sequence[int],
        quantities: Sequence[int],
        ask_indices: Sequence[int],
        *,
        value: int = 0,
    ) -> int:
        """
        Buy from standing asks.

        Returns:
            Total paid across the batch

        Raises:
            InsufficientFundsError: If ``value`` is below the batch total
        """
        self._check_lengths(nft_contracts, token_ids, quantities, ask_indices)
        self._receive(sender, value)

        required = 0
        for item in zip(nft_contracts, token_ids, quantities, ask_indices):
            required += self._accept_ask(sender, *item)

        if value < required:
            raise InsufficientFundsError(f"asks total {required}, attached {value}")
        self._pay(sender, value - required)
        return required

    def _accept_ask(
        self, buyer: str, nft_contract: str, token_id: int, quantity: int, index: int
    ) -> int:
        self.registry.get(nft_contract)
        ask = self.book.ask_at(nft_contract, token_id, index)
        if not ask.active:
            raise ValidationError(f"ask {index} on {nft_contract}#{token_id} is not active")
        if ask.seller == buyer:
            raise AuthorizationError("cannot accept your own ask")
        if not 0 < quantity <= ask.quantity:
            raise ValidationError(f"quantity {quantity} exceeds the {ask.quantity} remaining")

        seller, price = ask.seller, ask.price
        payout = self._settle(nft_contract, token_id, seller, buyer, price, quantity)
        self.book.fill(ask, quantity)
        self.events.emit(
            AskAccepted(nft_contract, token_id, index, buyer, seller, price, quantity, ask.to_dict())
        )
        self._move_asset(nft_contract, token_id, self.address, buyer, quantity)
        self._pay(seller, payout)
        logger.info(f"Ask {nft_contract}#{token_id}[{index}] filled: {quantity} @ {price} to {buyer}")
        return price * quantity

    @non_reentrant
    def accept_bid(
        self,
        sender: str,
        nft_contracts: Sequence[str],
        token_ids: Sequence[int],
        quantities: Sequence[int],
        bid_indices: Sequence[int],
    ) -> int:
        """
        Sell into standing bids, paid out of each buyer's escrow.

        Returns:
            Total gross value settled across the batch
        """
        self._check_lengths(nft_contracts, token_ids, quantities, bid_indices)
        return sum(
            self._accept_bid(sender, *item)
            for item in zip(nft_contracts, token_ids, quantities, bid_indices)
        )

    def _accept_bid(
        self, seller: str, nft_contract: str, token_id: int, quantity: int, index: int
    ) -> int:
        record = self.registry.get(nft_contract)
        bid = self.book.bid_at(nft_contract, token_id, index)
        if not bid.active:
            raise ValidationError(f"bid {index} on {nft_contract}#{token_id} is not active")
        if bid.buyer == seller:
            raise AuthorizationError("cannot accept your own bid")
        if not 0 < quantity <= bid.quantity:
            raise ValidationError(f"quantity {quantity} exceeds the {bid.quantity} remaining")

        held = self.adapter.owned_quantity(nft_contract, seller, token_id)
        if held < quantity:
            raise AuthorizationError(f"{seller} holds {held} of {nft_contract}#{token_id}, needs {quantity}")
        if not self.adapter.is_approved(nft_contract, seller):
            raise AuthorizationError(f"marketplace is not approved to move {seller}'s assets")

        buyer, price = bid.buyer, bid.price
        self.escrow.debit(buyer, price * quantity)

        if not record.is_fractional:
            # the seller's only unit is leaving, so their asks on it are void
            for stale, entry in self.book.tombstone_asks_by(nft_contract, token_id, seller):
                self.events.emit(AskCancelled(nft_contract, token_id, stale, entry))

        payout = self._settle(nft_contract, token_id, seller, buyer, price, quantity)
        self.book.fill(bid, quantity)
        self.events.emit(
            BidAccepted(nft_contract, token_id, index, buyer, seller, price, quantity, bid.to_dict())
        )
        self._move_asset(nft_contract, token_id, seller, buyer, quantity)
        self._pay(seller, payout)
        logger.info(f"Bid {nft_contract}#{token_id}[{index}] filled: {quantity} @ {price} from {seller}")
        return price * quantity

    @non_reentrant
    def withdraw(self, sender: str, amount: int | str | None = "max") -> int:
        """
        Pull fees or royalties owed to the sender.

        Args:
            sender: Payee
            amount: Amount to withdraw; ``"max"`` or ``None`` for everything

        Returns:
            Amount transferred
        """
        if amount is None or amount == "max":
            amount = self.withdrawable.balance_of(sender)
        if not isinstance(amount, int) or amount < 0:
            raise ValidationError(f"invalid withdrawal amount {amount!r}")
        self.withdrawable.debit(sender, amount)
        self.events.emit(Withdrawal(sender, amount))
        self._pay(sender, amount)
        logger.info(f"{sender} withdrew {amount}")
        return amount

    # =========================================================================
    # Collection registry boundary
    # =========================================================================

    @entry_point
    def register_collection(
        self,
        sender: str,
        address: str,
        name: str,
        symbol: str,
        description: str,
        is_fractional: bool,
        royalty_bps: int,
        creators: Sequence[str],
        shares: Sequence[int],
        *,
        created_by: str | None = None,
        minted_by_platform: bool = True,
        slug: str | None = None,
    ) -> Collection:
        """
        Register a collection. Only the owner or the factory may call this.

        Raises:
            AuthorizationError: For any other caller
            ValidationError: On re-registration, bad royalty rate or bad shares
        """
        if sender not in (self.owner, self.factory):
            raise AuthorizationError(f"{sender} may not register collections")
        if not self.registry.exists(address) and self.book.has_active_orders(address):
            raise ValidationError(
                f"{address} still has open orders from an earlier listing; "
                "they must be cancelled before it is registered again"
            )
        record = self.registry.register(
            address,
            name=name,
            symbol=symbol,
            description=description,
            is_fractional=is_fractional,
            royalty_rate_bps=royalty_bps,
            creators=creators,
            shares=shares,
            created_by=created_by or sender,
            listed_at=self.world.now(),
            minted_by_platform=minted_by_platform,
            total_supply=self.adapter.supply(address),
            slug=slug,
        )
        self.events.emit(
            CollectionCreated(
                address,
                name,
                symbol,
                is_fractional,
                royalty_bps,
                record.created_by,
                [{"recipient": c.recipient, "share_bps": c.share_bps} for c in self.registry.creators_of(address)],
            )
        )
        return copy.deepcopy(record)

    @entry_point
    def import_collection(
        self, sender: str, address: str, description: str, royalty_bps: int = 0
    ) -> Collection:
        """Register an externally deployed token contract (owner only)."""
        self._only_owner(sender)
        token = self.world.contracts.get(address)
        if token is None:
            raise ValidationError(f"no token contract at {address}")
        try:
            if token.supports_interface(MULTI_OWNER_INTERFACE):
                is_fractional = True
            elif token.supports_interface(SINGLE_OWNER_INTERFACE):
                is_fractional = False
            else:
                raise ValidationError(f"{address} implements no supported token standard")
            name, symbol = token.name, token.symbol
        except AttributeError as exc:
            raise ValidationError(f"{address} is not a token contract") from exc

        return self.register_collection(
            sender,
            address,
            name,
            symbol,
            description,
            is_fractional,
            royalty_bps,
            [],
            [],
            minted_by_platform=False,
        )

    @entry_point
    def request_creator_fees(
        self, sender: str, collection: str, creators: Sequence[str], shares: Sequence[int]
    ) -> int | None:
        """
        Propose the creator table for a collection that has none.

        From the owner the table is applied immediately and ``None`` is
        returned; from anyone else it is queued and its request index
        returned.
        """
        self.registry.get(collection)
        if sender == self.owner:
            self.registry.set_creators(collection, creators, shares)
            index = None
        else:
            index = self.registry.add_request(
                CreatorRequest(collection, tuple(creators), tuple(shares), sender)
            )
        self.events.emit(
            CreatorFeesRequested(collection, sender, list(creators), list(shares), index is None)
        )
        return index

    @entry_point
    def approve_creator_request(self, sender: str, index: int) -> None:
        self._only_owner(sender)
        request = self.registry.request_at(index)
        if request.approved:
            raise ValidationError(f"creator request {index} was already approved")
        self.registry.set_creators(request.collection, request.creators, request.shares)
        self.registry.approve_request(index)

    @entry_point
    def set_royalty_rate(self, sender: str, collection: str, royalty_bps: int) -> None:
        """Set the rate of an imported collection that has none yet (owner only)."""
        self._only_owner(sender)
        record = self.registry.get(collection)
        if record.minted_by_platform or record.royalty_rate_bps != 0:
            raise ValidationError(f"royalty rate of {collection} is fixed")
        if not 0 <= royalty_bps < BPS_DENOMINATOR:
            raise ValidationError(f"royalty rate must be in [0, 10000), got {royalty_bps}")
        self.registry.update(collection, royalty_rate_bps=royalty_bps)

    @entry_point
    def record_mint(self, sender: str, token_id: int, quantity: int) -> None:
        """Token-contract callback keeping ``total_supply`` current."""
        if self.registry.exists(sender):
            self.registry.update(sender, total_supply=self.adapter.supply(sender))

    # =========================================================================
    # Administration
    # =========================================================================

    @entry_point
    def set_beneficiary(self, sender: str, beneficiary: str) -> None:
        self._only_owner(sender)
        self._save_attrs(self, "beneficiary")
        self.beneficiary = beneficiary

    @entry_point
    def set_fee_policy(self, sender: str, fee_policy: str) -> None:
        self._only_owner(sender)
        self.world.contract_at(fee_policy)
        self._save_attrs(self, "fee_policy")
        self.fee_policy = fee_policy

    @entry_point
    def set_factory(self, sender: str, factory: str) -> None:
        self._only_owner(sender)
        self._save_attrs(self, "factory")
        self.factory = factory

    @entry_point
    def transfer_ownership(self, sender: str, new_owner: str) -> None:
        self._only_owner(sender)
        if new_owner == ZERO_ADDRESS:
            raise ValidationError("new owner is the zero address")
        self._save_attrs(self, "owner")
        self.owner = new_owner

    @entry_point
    def change_collection_owner(self, sender: str, collection: str, new_owner: str) -> None:
        self._only_owner(sender)
        self.registry.update(collection, created_by=new_owner)

    @entry_point
    def remove_collection(self, sender: str, collection: str) -> None:
        """
        Delist a collection.

        Its order-book arenas are kept so open orders can still be
        cancelled, but nothing new can be posted or accepted. The address
        cannot be registered again until those orders are cancelled.
        """
        self._only_owner(sender)
        record = self.registry.remove(collection)
        self.events.emit(CollectionRemoved(collection, record.name))
        logger.info(f"Removed collection {record.name} at {collection}")

    # =========================================================================
    # Read-only queries
    # =========================================================================

    @query
    def collections(self) -> list[Collection]:
        return [copy.deepcopy(self.registry.collections[a]) for a in self.registry.collection_list]

    @query
    def collection(self, address: str) -> Collection:
        return copy.deepcopy(self.registry.get(address))

    @query
    def creators(self, collection: str) -> list[Creator]:
        return self.registry.creators_of(collection)

    @query
    def creator_requests(self) -> list[CreatorRequest]:
        return copy.deepcopy(self.registry.requests)

    @query
    def ask_at(self, collection: str, token_id: int, index: int) -> Ask:
        return copy.deepcopy(self.book.ask_at(collection, token_id, index))

    @query
    def bid_at(self, collection: str, token_id: int, index: int) -> Bid:
        return copy.deepcopy(self.book.bid_at(collection, token_id, index))

    @query
    def order_book(self, collection: str, token_id: int) -> OrderBookView:
        return OrderBookView(
            asks=copy.deepcopy(self.book.asks_for(collection, token_id)),
            bids=copy.deepcopy(self.book.bids_for(collection, token_id)),
        )

    @query
    def lowest_ask(self, collection: str, token_id: int) -> PriceLevel:
        return self.book.lowest_ask(collection, token_id)

    @query
    def highest_bid(self, collection: str, token_id: int) -> PriceLevel:
        return self.book.highest_bid(collection, token_id)

    @query
    def floor_price(self, collection: str) -> int:
        return self.book.floor_price(collection)

    @query
    def known_token_ids(self, collection: str) -> list[int]:
        return self.book.token_ids(collection)

    @query
    def price_history(self, collection: str, token_id: int) -> list[SaleLog]:
        return list(self.sales.get((collection, token_id), []))

    @query
    def last_price(self, collection: str, token_id: int) -> int:
        return self.last_prices.get((collection, token_id), 0)

    @query
    def escrow_balance(self, address: str) -> int:
        return self.escrow.balance_of(address)

    @query
    def withdrawable_balance(self, address: str) -> int:
        return self.withdrawable.balance_of(address)

    @query
    def holdings(self, owner: str) -> dict[str, dict[int, int]]:
        """
        Scan every registered collection for tokens held by ``owner``.

        Returns:
            {collection: {token_id: quantity}} for non-zero holdings only
        """
        adapter = self.adapter
        found: dict[str, dict[int, int]] = {}
        for address in self.registry.collection_list:
            for token_id in range(1, adapter.supply(address) + 1):
                quantity = adapter.owned_quantity(address, owner, token_id)
                if quantity:
                    found.setdefault(address, {})[token_id] = quantity
        return found
