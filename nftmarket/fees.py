"""
Marketplace fee policy.

A pure basis-point fee: ``fee = amount * rate // 10000`` with the rate
strictly below 10000. The owner may override the rate for individual
payers.
"""

import logging

from nftmarket.errors import AuthorizationError, ValidationError
from nftmarket.world import ZERO_ADDRESS, Stateful

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000


def check_rate(rate_bps: int) -> int:
    if not 0 <= rate_bps < BPS_DENOMINATOR:
        raise ValidationError(f"fee rate must be in [0, {BPS_DENOMINATOR}), got {rate_bps}")
    return rate_bps


class FeePolicy(Stateful):
    """
    Fee collaborator consulted by the settlement engine.

    Attributes:
        owner: Address allowed to change rates
        rate_bps: Default rate in basis points
        payer_rates: Per-payer overrides
    """

    def __init__(self, rate_bps: int, owner: str = ZERO_ADDRESS) -> None:
        self.address = ZERO_ADDRESS
        self.owner = owner
        self.rate_bps = check_rate(rate_bps)
        self.payer_rates: dict[str, int] = {}

    def current_rate(self, payer: str) -> int:
        return self.payer_rates.get(payer, self.rate_bps)

    def collect_fee(self, payer: str, amount: int) -> int:
        """Fee owed by ``payer`` on a gross ``amount``."""
        return amount * self.current_rate(payer) // BPS_DENOMINATOR

    def _only_owner(self, sender: str) -> None:
        if sender != self.owner:
            raise AuthorizationError(f"{sender} is not the fee policy owner")

    def set_rate(self, sender: str, rate_bps: int) -> None:
        self._only_owner(sender)
        check_rate(rate_bps)
        self._save_attrs(self, "rate_bps")
        self.rate_bps = rate_bps
        logger.info(f"Fee rate set to {rate_bps} bps")

    def set_payer_rate(self, sender: str, payer: str, rate_bps: int | None) -> None:
        """Override (or with ``None`` clear) the rate for one payer."""
        self._only_owner(sender)
        if rate_bps is None:
            if payer in self.payer_rates:
                self._pop_item(self.payer_rates, payer)
        else:
            self._set_item(self.payer_rates, payer, check_rate(rate_bps))
