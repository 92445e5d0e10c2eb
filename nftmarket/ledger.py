"""
Value ledgers kept by the marketplace.

EscrowLedger: value a buyer has pre-paid against their own open bids.
WithdrawableLedger: fees and royalties owed to payees, pulled on demand.

Both are plain per-address running balances that can never go negative.
"""

import logging

from nftmarket.errors import InsufficientFundsError
from nftmarket.world import Stateful

logger = logging.getLogger(__name__)


class BalanceLedger(Stateful):
    """Per-address non-negative balances."""

    label = "balance"

    def __init__(self) -> None:
        self.balances: dict[str, int] = {}

    def balance_of(self, address: str) -> int:
        return self.balances.get(address, 0)

    def credit(self, address: str, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"cannot credit a negative amount ({amount})")
        balance = self.balance_of(address) + amount
        self._set_item(self.balances, address, balance)
        return balance

    def debit(self, address: str, amount: int) -> int:
        """
        Subtract ``amount`` from ``address``.

        Raises:
            InsufficientFundsError: If the balance would go negative
        """
        if amount < 0:
            raise ValueError(f"cannot debit a negative amount ({amount})")
        balance = self.balance_of(address)
        if balance < amount:
            raise InsufficientFundsError(
                f"{self.label} of {address} is {balance}, cannot debit {amount}"
            )
        self._set_item(self.balances, address, balance - amount)
        return balance - amount

    def total(self) -> int:
        return sum(self.balances.values())


class EscrowLedger(BalanceLedger):
    label = "escrow"


class WithdrawableLedger(BalanceLedger):
    label = "withdrawable balance"
