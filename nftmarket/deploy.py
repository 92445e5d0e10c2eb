"""
Marketplace deployment.

Deploys the fee policy, the collection factory and the marketplace into
a world and links them together.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from omegaconf import DictConfig

from nftmarket.config import load_config
from nftmarket.events import EventLogger
from nftmarket.factory import CollectionFactory
from nftmarket.fees import FeePolicy
from nftmarket.market import NFTMarket
from nftmarket.world import World

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    """
    Handles to a deployed marketplace.

    Usage:
        with deploy_marketplace(world, cfg) as deployment:
            ...

    Leaving the block (or calling ``close()``) closes the JSONL event log.
    """

    world: World
    market: NFTMarket
    fee_policy: FeePolicy
    factory: CollectionFactory
    owner: str
    beneficiary: str

    def close(self) -> None:
        self.market.events.close()

    def __enter__(self) -> "Deployment":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def deploy_marketplace(world: World | None = None, cfg: DictConfig | None = None) -> Deployment:
    """
    Deploy a fully linked marketplace.

    Args:
        world: World to deploy into (a new one if omitted)
        cfg: Configuration (defaults if omitted). ``market.owner`` and
            ``market.beneficiary`` are allocated when unset.

    Returns:
        Deployment with handles to every contract
    """
    world = world if world is not None else World()
    cfg = cfg if cfg is not None else load_config()

    owner = cfg.market.owner or world.new_address()
    beneficiary = cfg.market.beneficiary or owner

    events = None
    if cfg.events.log_events:
        log_path = Path(cfg.events.log_dir) / f"{cfg.events.experiment_id}_events.jsonl"
        events = EventLogger(log_path)
        logger.info(f"Event logging enabled: {log_path}")

    fee_policy = FeePolicy(int(cfg.market.fee_rate_bps), owner=owner)
    world.deploy(fee_policy)
    factory = CollectionFactory(world, owner=owner)
    world.deploy(factory)
    market = NFTMarket(
        world,
        fee_policy=fee_policy.address,
        factory=factory.address,
        beneficiary=beneficiary,
        owner=owner,
        events=events,
    )
    world.deploy(market)
    factory.set_marketplace(owner, market.address)

    logger.info(
        f"Marketplace deployed at {market.address} "
        f"(fee {fee_policy.rate_bps} bps, beneficiary {beneficiary})"
    )
    return Deployment(world, market, fee_policy, factory, owner, beneficiary)
