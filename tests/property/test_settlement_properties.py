# tests/property/test_settlement_properties.py
"""
Property-based tests for settlement and escrow invariants using Hypothesis.

Each example deploys its own marketplace, so nothing here uses
function-scoped fixtures.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from nftmarket.config import load_config
from nftmarket.deploy import deploy_marketplace
from nftmarket.errors import ValidationError
from nftmarket.royalty import creator_share, royalty_split, validate_creator_shares
from nftmarket.types import Creator
from nftmarket.world import World

FUNDS = 10**30

# =============================================================================
# Strategies for generating test data
# =============================================================================


@st.composite
def share_table(draw):
    """Creator shares summing to exactly 10000."""
    n = draw(st.integers(min_value=1, max_value=5))
    cuts = sorted(draw(st.lists(st.integers(0, 10_000), min_size=n - 1, max_size=n - 1)))
    bounds = [0, *cuts, 10_000]
    return [hi - lo for lo, hi in zip(bounds, bounds[1:])]


@st.composite
def market_params(draw):
    return {
        "fee_bps": draw(st.integers(min_value=0, max_value=9_999)),
        "royalty_bps": draw(st.integers(min_value=0, max_value=9_999)),
        "shares": draw(share_table()),
        "price": draw(st.integers(min_value=1, max_value=10**21)),
        "supply": draw(st.integers(min_value=1, max_value=50)),
    }


def build(fee_bps, royalty_bps, shares, supply):
    """Deploy a market with one fractional collection and a funded seller and buyer."""
    world = World(timestamp=1_000)
    deployment = deploy_marketplace(
        world, load_config(overrides=[f"market.fee_rate_bps={fee_bps}"])
    )
    creators = [world.new_address() for _ in shares]
    seller, buyer = world.new_address(), world.new_address()
    world.fund(seller, FUNDS)
    world.fund(buyer, FUNDS)
    collection = deployment.factory.create_collection(
        deployment.owner, "Prop", "PROP", "", True, royalty_bps, creators, shares
    )
    world.contract_at(collection).mint(seller, supply, "u")
    return world, deployment, collection, creators, seller, buyer


# =============================================================================
# Property Tests: settlement
# =============================================================================


class TestSettlementProperties:
    @given(market_params(), st.data())
    @settings(max_examples=60, deadline=None)
    def test_sale_conserves_value(self, params, data):
        """Seller payout + fee + royalties equals exactly what the buyer paid."""
        world, deployment, collection, creators, seller, buyer = build(
            params["fee_bps"], params["royalty_bps"], params["shares"], params["supply"]
        )
        market = deployment.market
        quantity = data.draw(st.integers(min_value=1, max_value=params["supply"]))
        price = params["price"]
        total = price * quantity

        market.ask(seller, [collection], [1], [price], [quantity])
        fee = total * params["fee_bps"] // 10_000
        royalty = sum(creator_share(total, params["royalty_bps"], s) for s in params["shares"])

        if fee + royalty > total:
            with pytest.raises(ValidationError):
                market.accept_ask(buyer, [collection], [1], [quantity], [0], value=total)
            assert world.balance_of(buyer) == FUNDS
            return

        market.accept_ask(buyer, [collection], [1], [quantity], [0], value=total)

        seller_gain = world.balance_of(seller) - FUNDS
        assert seller_gain == total - fee - royalty
        assert FUNDS - world.balance_of(buyer) == total
        assert market.withdrawable_balance(deployment.beneficiary) == fee
        assert sum(market.withdrawable_balance(c) for c in creators) == royalty
        assert world.balance_of(market.address) == market.withdrawable.total()

    @given(market_params(), st.data())
    @settings(max_examples=40, deadline=None)
    def test_partial_fill_leaves_remainder(self, params, data):
        world, deployment, collection, _, seller, buyer = build(
            0, 0, params["shares"], params["supply"]
        )
        market = deployment.market
        listed = data.draw(st.integers(min_value=1, max_value=params["supply"]))
        taken = data.draw(st.integers(min_value=1, max_value=listed))

        market.ask(seller, [collection], [1], [params["price"]], [listed])
        market.accept_ask(
            buyer, [collection], [1], [taken], [0], value=params["price"] * taken
        )

        ask = market.ask_at(collection, 1, 0)
        if taken == listed:
            assert not ask.active and ask.quantity == 0 and ask.price == 0
        else:
            assert ask.active and ask.quantity == listed - taken
            assert ask.price == params["price"]
        assert world.contract_at(collection).balance_of(buyer, 1) == taken
        assert len(market.price_history(collection, 1)) == taken


# =============================================================================
# Property Tests: escrow
# =============================================================================


class TestEscrowProperties:
    @given(
        st.lists(
            st.tuples(st.integers(1, 10**6), st.integers(1, 20)), min_size=1, max_size=8
        ),
        st.data(),
    )
    @settings(max_examples=50, deadline=None)
    def test_escrow_matches_open_bids(self, bids, data):
        """Escrow always equals the value of the buyer's active bids."""
        world, deployment, collection, _, seller, buyer = build(300, 0, [10_000], 20)
        market = deployment.market
        for price, quantity in bids:
            market.bid(buyer, [collection], [1], [price], [quantity], value=price * quantity)

        to_cancel = data.draw(st.sets(st.integers(0, len(bids) - 1)))
        for index in sorted(to_cancel):
            market.cancel_bid(buyer, [collection], [1], [index])

        fill_index = data.draw(st.integers(0, len(bids) - 1))
        if fill_index not in to_cancel:
            bid = market.bid_at(collection, 1, fill_index)
            market.accept_bid(seller, [collection], [1], [bid.quantity], [fill_index])

        open_value = sum(b.total for b in market.order_book(collection, 1).bids if b.active)
        assert market.escrow_balance(buyer) == open_value
        assert world.balance_of(market.address) == (
            market.escrow.total() + market.withdrawable.total()
        )


# =============================================================================
# Property Tests: royalty tables
# =============================================================================


class TestRoyaltyProperties:
    @given(share_table(), st.integers(0, 10**24), st.integers(0, 9_999))
    @settings(max_examples=100)
    def test_split_bounded_by_royalty(self, shares, total, rate):
        creators = validate_creator_shares([f"c{i}" for i in range(len(shares))], shares)
        paid = sum(amount for _, amount in royalty_split(total, rate, creators))
        royalty = total * rate // 10_000
        assert paid <= royalty
        # each creator loses less than one unit to the second truncation
        assert royalty - paid < len(shares)

    @given(st.lists(st.integers(0, 10_000), min_size=1, max_size=5))
    @settings(max_examples=100)
    def test_only_full_or_empty_tables_accepted(self, shares):
        names = [f"c{i}" for i in range(len(shares))]
        if sum(shares) in (0, 10_000):
            assert [c.share_bps for c in validate_creator_shares(names, shares)] == shares
        else:
            with pytest.raises(ValidationError):
                validate_creator_shares(names, shares)

    @given(st.integers(1, 10**24))
    def test_zero_rate_pays_nothing(self, total):
        assert royalty_split(total, 0, [Creator("c", 10_000)]) == []
