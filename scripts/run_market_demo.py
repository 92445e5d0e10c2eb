#!/usr/bin/env python3
"""
Marketplace walkthrough with rich terminal output.

Deploys a marketplace, creates a single-owner and a fractional
collection, then runs an ask-side and a bid-side settlement and prints
the resulting books and balances.

Usage:
    python scripts/run_market_demo.py
    python scripts/run_market_demo.py market.fee_rate_bps=250 demo.ask_price=1000
"""

import logging

import hydra
from omegaconf import DictConfig, OmegaConf
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nftmarket.analytics import collection_stats
from nftmarket.config import DEFAULTS, configure_logging
from nftmarket.deploy import Deployment, deploy_marketplace
from nftmarket.world import World

logger = logging.getLogger(__name__)
console = Console()


# =============================================================================
# Display
# =============================================================================

def book_table(deployment: Deployment, collection: str, token_id: int) -> Table:
    view = deployment.market.order_book(collection, token_id)
    table = Table(title=f"Order book {collection[-6:]}#{token_id}", box=box.SIMPLE)
    table.add_column("Side")
    table.add_column("Index", justify="right")
    table.add_column("Maker")
    table.add_column("Price", justify="right")
    table.add_column("Qty", justify="right")
    table.add_column("Active")
    for side, orders in (("ask", view.asks), ("bid", view.bids)):
        for index, order in enumerate(orders):
            style = None if order.active else "dim"
            table.add_row(
                side, str(index), order.maker[-6:], str(order.price),
                str(order.quantity), "yes" if order.active else "no", style=style,
            )
    return table


def balance_table(deployment: Deployment, accounts: dict[str, str]) -> Table:
    market = deployment.market
    table = Table(title="Balances", box=box.SIMPLE)
    table.add_column("Account")
    table.add_column("Wallet", justify="right")
    table.add_column("Escrow", justify="right")
    table.add_column("Withdrawable", justify="right")
    for label, address in accounts.items():
        table.add_row(
            label,
            str(deployment.world.balance_of(address)),
            str(market.escrow_balance(address)),
            str(market.withdrawable_balance(address)),
        )
    return table


# =============================================================================
# Scenario
# =============================================================================

def run_scenario(deployment: Deployment, cfg: DictConfig) -> None:
    world = deployment.world
    market, factory, owner = deployment.market, deployment.factory, deployment.owner

    creator_a, creator_b = world.new_address(), world.new_address()
    seller, buyer = world.new_address(), world.new_address()
    for account in (seller, buyer):
        world.fund(account, 1_000_000)

    shares = list(cfg.demo.creator_shares)
    art = factory.create_collection(
        owner, "Demo Art", "ART", "single-owner demo", False,
        cfg.demo.royalty_bps, [creator_a, creator_b], shares,
    )
    editions = factory.create_collection(
        owner, "Demo Editions", "EDN", "fractional demo", True,
        cfg.demo.royalty_bps, [creator_a, creator_b], shares,
    )
    art_token = world.contract_at(art)
    edition_token = world.contract_at(editions)

    # Ask side: seller lists, buyer accepts
    art_id = art_token.mint(seller, "ipfs://demo/art/1")
    market.ask(seller, [art], [art_id], [cfg.demo.ask_price], [1])
    market.accept_ask(buyer, [art], [art_id], [1], [0], value=cfg.demo.ask_price)

    # Bid side: buyer bids on editions, seller fills part of it
    edition_id = edition_token.mint(seller, 10, "ipfs://demo/editions/1")
    prices = list(cfg.demo.bid_prices)
    market.bid(buyer, [editions] * len(prices), [edition_id] * len(prices), prices, [2] * len(prices),
               value=sum(prices) * 2)
    market.accept_bid(seller, [editions], [edition_id], [1], [0])

    console.print(Panel.fit(OmegaConf.to_yaml(cfg.market), title="Market config"))
    console.print(book_table(deployment, art, art_id))
    console.print(book_table(deployment, editions, edition_id))
    console.print(balance_table(deployment, {
        "seller": seller,
        "buyer": buyer,
        "creator A": creator_a,
        "creator B": creator_b,
        "beneficiary": deployment.beneficiary,
    }))
    for label, address in (("ART", art), ("EDN", editions)):
        stats = collection_stats(market, address)
        console.print(f"[bold]{label}[/bold] trades={stats['trades']} volume={stats['volume']} "
                      f"floor={stats['floor_price']}")


def run_demo(cfg: DictConfig) -> Deployment:
    """Deploy into a fresh world, run the scenario and close the event log."""
    with deploy_marketplace(World(), cfg) as deployment:
        run_scenario(deployment, cfg)
    return deployment


@hydra.main(version_base=None, config_path="../conf", config_name="config")
def main(cfg: DictConfig) -> None:
    cfg = OmegaConf.merge(OmegaConf.create(DEFAULTS), cfg)
    configure_logging(cfg)
    run_demo(cfg)


if __name__ == "__main__":
    main()
