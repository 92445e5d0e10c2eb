# tests/conftest.py
"""Shared fixtures: a deployed marketplace, funded accounts, two collections."""

from dataclasses import dataclass

import pytest

from nftmarket.config import load_config
from nftmarket.deploy import Deployment, deploy_marketplace
from nftmarket.world import World

START_TIME = 1_700_000_000
STARTING_BALANCE = 10_000


@dataclass
class Accounts:
    seller: str
    buyer: str
    other: str
    creator_a: str
    creator_b: str


@pytest.fixture
def world():
    """World with a fixed clock."""
    return World(timestamp=START_TIME)


@pytest.fixture
def deployment(world) -> Deployment:
    """Marketplace with the default 300 bps fee."""
    return deploy_marketplace(world, load_config())


@pytest.fixture
def market(deployment):
    return deployment.market


@pytest.fixture
def accounts(world) -> Accounts:
    accts = Accounts(*(world.new_address() for _ in range(5)))
    for address in (accts.seller, accts.buyer, accts.other):
        world.fund(address, STARTING_BALANCE)
    return accts


@pytest.fixture
def art(deployment, accounts) -> str:
    """Single-owner collection, 300 bps royalty split 60/40."""
    return deployment.factory.create_collection(
        deployment.owner, "Sample Art", "ART", "single-owner sample", False,
        300, [accounts.creator_a, accounts.creator_b], [6000, 4000],
    )


@pytest.fixture
def editions(deployment, accounts) -> str:
    """Fractional collection, 300 bps royalty split 60/40."""
    return deployment.factory.create_collection(
        deployment.owner, "Sample Editions", "EDN", "fractional sample", True,
        300, [accounts.creator_a, accounts.creator_b], [6000, 4000],
    )


@pytest.fixture
def art_token(world, art):
    return world.contract_at(art)


@pytest.fixture
def edition_token(world, editions):
    return world.contract_at(editions)
