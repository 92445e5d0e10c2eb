"""
Token contracts traded on the marketplace.

Two standards are modelled:
    SingleOwnerToken: one owner per token id (ERC-721 shape)
    MultiOwnerToken: per-owner balances per token id (ERC-1155 shape)

The marketplace never inspects which standard a contract implements;
it goes through ``nftmarket.transfer.TransferAdapter``. The standards
expose different method names, so calling the wrong one fails.
"""

import logging

from nftmarket.errors import TokenError
from nftmarket.world import ZERO_ADDRESS, Stateful, World

logger = logging.getLogger(__name__)

SINGLE_OWNER_INTERFACE = "0x80ac58cd"
MULTI_OWNER_INTERFACE = "0xd9b67a26"


class _TokenContract(Stateful):
    """Shared metadata, approvals and URI storage."""

    INTERFACES: frozenset[str] = frozenset()

    def __init__(
        self,
        world: World,
        name: str,
        symbol: str,
        marketplace: str | None = None,
        owner: str | None = None,
    ) -> None:
        self.world = world
        self.name = name
        self.symbol = symbol
        self.marketplace = marketplace
        self.owner = owner
        self.address = ZERO_ADDRESS
        self.operator_approvals: dict[str, set[str]] = {}
        self.token_uris: dict[int, str] = {}
        self.total_supply = 0

    def supports_interface(self, interface_id: str) -> bool:
        return interface_id in self.INTERFACES

    def set_approval_for_all(self, sender: str, operator: str, approved: bool) -> None:
        if operator == sender:
            raise TokenError("cannot approve self as operator")
        with self.world.atomic():
            operators = set(self.operator_approvals.get(sender, set()))
            if approved:
                operators.add(operator)
            else:
                operators.discard(operator)
            self._set_item(self.operator_approvals, sender, operators)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return operator in self.operator_approvals.get(owner, set())

    def token_uri(self, token_id: int) -> str:
        if token_id not in self.token_uris:
            raise TokenError(f"token {token_id} does not exist")
        return self.token_uris[token_id]

    def _next_token_id(self, sender: str, uri: str) -> int:
        token_id = self.total_supply + 1
        self._save_attrs(self, "total_supply")
        self.total_supply = token_id
        self._set_item(self.token_uris, token_id, uri)
        if self.marketplace is not None and not self.is_approved_for_all(sender, self.marketplace):
            operators = self.operator_approvals.get(sender, set()) | {self.marketplace}
            self._set_item(self.operator_approvals, sender, operators)
        return token_id

    def _notify_marketplace(self, token_id: int, quantity: int) -> None:
        if self.marketplace is None:
            return
        market = self.world.contracts.get(self.marketplace)
        if market is not None:
            market.record_mint(self.address, token_id, quantity)


class SingleOwnerToken(_TokenContract):
    """Non-fungible token contract with exactly one owner per id."""

    INTERFACES = frozenset({SINGLE_OWNER_INTERFACE})

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.owners: dict[int, str] = {}

    def mint(self, sender: str, uri: str) -> int:
        """Mint the next token id to ``sender`` and return it."""
        with self.world.atomic():
            token_id = self._next_token_id(sender, uri)
            self._set_item(self.owners, token_id, sender)
            self._notify_marketplace(token_id, 1)
        logger.debug(f"{self.symbol}: minted #{token_id} to {sender}")
        return token_id

    def owner_of(self, token_id: int) -> str:
        owner = self.owners.get(token_id)
        if owner is None:
            raise TokenError(f"token {token_id} does not exist")
        return owner

    def balance_of(self, owner: str) -> int:
        return sum(1 for holder in self.owners.values() if holder == owner)

    def transfer_from(self, sender: str, from_: str, to: str, token_id: int) -> None:
        """
        Move ``token_id`` from ``from_`` to ``to``.

        Raises:
            TokenError: If ``from_`` is not the owner, ``sender`` is neither
                the owner nor an approved operator, or ``to`` is empty
        """
        if to == ZERO_ADDRESS:
            raise TokenError("transfer to the zero address")
        with self.world.atomic():
            owner = self.owner_of(token_id)
            if owner != from_:
                raise TokenError(f"{from_} does not own token {token_id}")
            if sender != owner and not self.is_approved_for_all(owner, sender):
                raise TokenError(f"{sender} is not approved for {owner}")
            self._set_item(self.owners, token_id, to)


class MultiOwnerToken(_TokenContract):
    """Semi-fungible token contract with per-owner quantities."""

    INTERFACES = frozenset({MULTI_OWNER_INTERFACE})

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.balances: dict[int, dict[str, int]] = {}

    def mint(self, sender: str, amount: int, uri: str) -> int:
        if amount <= 0:
            raise TokenError(f"mint amount must be > 0, got {amount}")
        with self.world.atomic():
            token_id = self._next_token_id(sender, uri)
            self._set_item(self.balances, token_id, {sender: amount})
            self._notify_marketplace(token_id, amount)
        logger.debug(f"{self.symbol}: minted {amount} of #{token_id} to {sender}")
        return token_id

    def balance_of(self, owner: str, token_id: int) -> int:
        return self.balances.get(token_id, {}).get(owner, 0)

    def safe_transfer_from(
        self,
        sender: str,
        from_: str,
        to: str,
        token_id: int,
        amount: int,
        data: bytes = b"",
    ) -> None:
        if sender != from_ and not self.is_approved_for_all(from_, sender):
            raise TokenError(f"{sender} is not approved for {from_}")
        if to == ZERO_ADDRESS:
            raise TokenError("transfer to the zero address")
        if amount <= 0:
            raise TokenError(f"transfer amount must be > 0, got {amount}")
        with self.world.atomic():
            held = self.balance_of(from_, token_id)
            if held < amount:
                raise TokenError(f"{from_} holds {held} of token {token_id}, needs {amount}")
            holders = self.balances[token_id]
            self._set_item(holders, from_, held - amount)
            self._set_item(holders, to, holders.get(to, 0) + amount)
