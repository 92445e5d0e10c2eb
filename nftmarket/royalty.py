"""
Royalty arithmetic.

Each creator's share is computed with two sequential basis-point
divisions, each truncating:

    share = total * royalty_rate_bps // 10000 * share_bps // 10000

Collapsing this into one fraction pays out more at the margins
(199 at 300 bps with a 7000 share gives 3, not 4).
"""

from typing import Sequence

from nftmarket.errors import ValidationError
from nftmarket.types import Creator

BPS_DENOMINATOR = 10_000


def validate_creator_shares(creators: Sequence[str], shares: Sequence[int]) -> list[Creator]:
    """
    Build a creator table, enforcing that shares sum to 0 or 10000.

    Raises:
        ValidationError: On length mismatch, negative shares or a bad sum
    """
    if len(creators) != len(shares):
        raise ValidationError(
            f"creators ({len(creators)}) and shares ({len(shares)}) lengths differ"
        )
    if any(share < 0 or share > BPS_DENOMINATOR for share in shares):
        raise ValidationError(f"creator shares must be within [0, {BPS_DENOMINATOR}]")
    total = sum(shares)
    if total not in (0, BPS_DENOMINATOR):
        raise ValidationError(f"creator shares must sum to 0 or {BPS_DENOMINATOR}, got {total}")
    return [Creator(recipient, share) for recipient, share in zip(creators, shares)]


def creator_share(total: int, royalty_rate_bps: int, share_bps: int) -> int:
    return total * royalty_rate_bps // BPS_DENOMINATOR * share_bps // BPS_DENOMINATOR


def royalty_split(
    total: int, royalty_rate_bps: int, creators: Sequence[Creator]
) -> list[tuple[str, int]]:
    """
    Split the royalty on a gross ``total`` among ``creators``.

    Returns:
        (recipient, amount) pairs in creator order; empty when the rate is 0
    """
    if royalty_rate_bps == 0:
        return []
    return [
        (creator.recipient, creator_share(total, royalty_rate_bps, creator.share_bps))
        for creator in creators
    ]
