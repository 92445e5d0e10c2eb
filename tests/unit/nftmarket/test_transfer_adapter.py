# tests/unit/nftmarket/test_transfer_adapter.py
"""
Tests for the dual-standard transfer adapter fallback chain.
"""

import pytest

from nftmarket.errors import TokenError
from nftmarket.tokens import MultiOwnerToken, SingleOwnerToken
from nftmarket.transfer import AssetHandle, MultiOwnerHandle, SingleOwnerHandle, TransferAdapter
from nftmarket.world import World, make_address


class RecordingHandle(AssetHandle):
    """Handle that records calls and optionally fails."""

    name = "recording"

    def __init__(self, fail: bool):
        self.fail = fail
        self.calls = []

    def transfer(self, token, operator, token_id, from_, to, quantity):
        self.calls.append(("transfer", token_id, quantity))
        if self.fail:
            raise TokenError("nope")

    def owned_quantity(self, token, owner, token_id):
        self.calls.append(("owned", token_id))
        if self.fail:
            raise AttributeError("nope")
        return 7


@pytest.fixture
def setup():
    world = World(timestamp=1)
    operator, alice, bob = (world.new_address() for _ in range(3))
    single = SingleOwnerToken(world, "Solo", "SOLO", marketplace=operator)
    multi = MultiOwnerToken(world, "Multi", "MULT", marketplace=operator)
    world.deploy(single)
    world.deploy(multi)
    adapter = TransferAdapter(world, operator)
    return world, adapter, single, multi, alice, bob


class TestTransfer:
    def test_single_owner_path(self, setup):
        _, adapter, single, _, alice, bob = setup
        single.mint(alice, "u")
        assert adapter.transfer(single.address, 1, alice, bob, 1) is True
        assert single.owner_of(1) == bob

    def test_falls_back_to_multi_owner(self, setup):
        _, adapter, _, multi, alice, bob = setup
        multi.mint(alice, 5, "u")
        assert adapter.transfer(multi.address, 1, alice, bob, 3) is True
        assert multi.balance_of(bob, 1) == 3

    def test_all_handles_failing_returns_false(self, setup):
        _, adapter, single, _, alice, bob = setup
        single.mint(bob, "u")
        assert adapter.transfer(single.address, 1, alice, bob, 1) is False
        assert single.owner_of(1) == bob

    def test_unknown_contract_returns_false(self, setup):
        _, adapter, _, _, alice, bob = setup
        assert adapter.transfer(make_address(9999), 1, alice, bob, 1) is False

    def test_second_handle_only_tried_after_first_fails(self, setup):
        world, _, single, _, alice, bob = setup
        first, second = RecordingHandle(fail=False), RecordingHandle(fail=False)
        adapter = TransferAdapter(world, alice, handles=[first, second])
        assert adapter.transfer(single.address, 1, alice, bob, 1)
        assert first.calls and not second.calls

    def test_custom_chain_order(self, setup):
        world, _, single, _, alice, bob = setup
        first, second = RecordingHandle(fail=True), RecordingHandle(fail=False)
        adapter = TransferAdapter(world, alice, handles=[first, second])
        assert adapter.transfer(single.address, 1, alice, bob, 1)
        assert first.calls == second.calls == [("transfer", 1, 1)]


class TestOwnership:
    def test_single_owner_quantity(self, setup):
        _, adapter, single, _, alice, bob = setup
        single.mint(alice, "u")
        assert adapter.owned_quantity(single.address, alice, 1) == 1
        assert adapter.owned_quantity(single.address, bob, 1) == 0

    def test_multi_owner_quantity(self, setup):
        _, adapter, _, multi, alice, _ = setup
        multi.mint(alice, 12, "u")
        assert adapter.owned_quantity(multi.address, alice, 1) == 12

    def test_missing_single_owner_token_is_zero(self, setup):
        _, adapter, single, _, alice, _ = setup
        assert adapter.owned_quantity(single.address, alice, 5) == 0

    def test_approval_and_supply(self, setup):
        _, adapter, single, _, alice, bob = setup
        single.mint(alice, "u")
        assert adapter.is_approved(single.address, alice)
        assert not adapter.is_approved(single.address, bob)
        assert adapter.supply(single.address) == 1
        assert adapter.supply(make_address(9999)) == 0


class TestHandles:
    def test_single_handle_rejects_multi_token(self, setup):
        _, _, _, multi, alice, _ = setup
        with pytest.raises(AttributeError):
            SingleOwnerHandle().owned_quantity(multi, alice, 1)

    def test_multi_handle_rejects_single_token(self, setup):
        _, _, single, _, alice, _ = setup
        single.mint(alice, "u")
        with pytest.raises(TypeError):
            MultiOwnerHandle().owned_quantity(single, alice, 1)
