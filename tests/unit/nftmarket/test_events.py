# tests/unit/nftmarket/test_events.py
"""
Tests for market events and the JSONL event log.
"""

import pytest

from nftmarket.config import load_config
from nftmarket.deploy import deploy_marketplace
from nftmarket.errors import ValidationError
from nftmarket.events import AskCreated, EventLogger, Withdrawal, load_events
from nftmarket.world import World


class TestEventPayloads:
    def test_ask_lifecycle_events_carry_entries(self, market, accounts, art, art_token):
        art_token.mint(accounts.seller, "u")
        market.ask(accounts.seller, [art], [1], [100], [1])
        market.accept_ask(accounts.buyer, [art], [1], [1], [0], value=100)

        created = market.events.of_type("ask_created")[0]
        assert created["collection"] == art and created["index"] == 0
        assert created["ask"]["maker"] == accounts.seller
        assert created["ask"]["price"] == 100

        accepted = market.events.of_type("ask_accepted")[0]
        assert accepted["buyer"] == accounts.buyer and accepted["seller"] == accounts.seller
        assert accepted["ask"]["active"] is False

        royalties = market.events.of_type("royalty_paid")
        assert [(e["recipient"], e["amount"]) for e in royalties] == [
            (accounts.creator_a, 1), (accounts.creator_b, 1)
        ]
        assert market.events.of_type("fee_credited")[0]["amount"] == 3

    def test_bid_events(self, market, accounts, art):
        market.bid(accounts.buyer, [art], [1], [50], [1], value=50)
        market.cancel_bid(accounts.buyer, [art], [1], [0])
        cancelled = market.events.of_type("bid_cancelled")[0]
        assert cancelled["bid"]["price"] == 50
        assert cancelled["bid"]["active"] is True

    def test_collection_created_event(self, market, accounts, art):
        event = market.events.of_type("collection_created")[0]
        assert event["symbol"] == "ART"
        assert event["creators"] == [
            {"recipient": accounts.creator_a, "share_bps": 6000},
            {"recipient": accounts.creator_b, "share_bps": 4000},
        ]

    def test_failed_call_emits_nothing(self, market, accounts, art):
        before = len(market.events.events)
        with pytest.raises(ValidationError):
            market.bid(accounts.buyer, [art, art], [1, 1], [50, 0], [1, 1], value=100)
        assert len(market.events.events) == before


class TestEventLog:
    def test_committed_events_written_as_jsonl(self, tmp_path):
        cfg = load_config(
            overrides=[
                "events.log_events=true",
                f"events.log_dir={tmp_path}",
                "events.experiment_id=unit",
            ]
        )
        with deploy_marketplace(World(timestamp=1_000), cfg) as deployment:
            market = deployment.market
            buyer = deployment.world.new_address()
            deployment.world.fund(buyer, 1_000)
            collection = deployment.factory.create_collection(
                deployment.owner, "Logged", "LOG", "", False, 0, [], []
            )

            market.bid(buyer, [collection], [1], [10], [1], value=10)
            with pytest.raises(ValidationError):
                market.bid(buyer, [collection], [1], [0], [1], value=10)
        assert market.events.closed

        events = load_events(tmp_path / "unit_events.jsonl")
        assert [e["event_type"] for e in events] == ["collection_created", "bid_created"]
        assert events[1]["bid"]["maker"] == buyer

    def test_logger_without_file(self):
        with EventLogger() as events:
            events.emit(Withdrawal("0xabc", 5))
            events.emit(AskCreated("0xc", 1, 0, {"price": 1}))
            events.commit()
        assert [e["event_type"] for e in events.events] == ["withdrawal", "ask_created"]

    def test_deployment_close_is_idempotent(self, tmp_path):
        cfg = load_config(
            overrides=["events.log_events=true", f"events.log_dir={tmp_path}", "events.experiment_id=twice"]
        )
        deployment = deploy_marketplace(World(timestamp=1_000), cfg)
        assert not deployment.market.events.closed
        deployment.close()
        deployment.close()
        assert deployment.market.events.closed
        assert load_events(tmp_path / "twice_events.jsonl") == []
