"""
Event log for off-chain indexers.

Every state change the marketplace makes is announced with an event that
carries the full entry involved, so an indexer never needs a follow-up
read. Events emitted during a call that later fails are rolled back with
the call; committed events can also be appended to a JSONL file.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TextIO

from nftmarket.world import Stateful

logger = logging.getLogger(__name__)


@dataclass
class CollectionCreated:
    collection: str
    name: str
    symbol: str
    is_fractional: bool
    royalty_rate_bps: int
    created_by: str
    creators: list[dict] = field(default_factory=list)


@dataclass
class CollectionRemoved:
    collection: str
    name: str


@dataclass
class CreatorFeesRequested:
    collection: str
    requested_by: str
    creators: list[str]
    shares: list[int]
    applied: bool


@dataclass
class AskCreated:
    collection: str
    token_id: int
    index: int
    ask: dict


@dataclass
class AskCancelled:
    collection: str
    token_id: int
    index: int
    ask: dict


@dataclass
class AskAccepted:
    collection: str
    token_id: int
    index: int
    buyer: str
    seller: str
    price: int
    quantity: int
    ask: dict


@dataclass
class BidCreated:
    collection: str
    token_id: int
    index: int
    bid: dict


@dataclass
class BidCancelled:
    collection: str
    token_id: int
    index: int
    bid: dict


@dataclass
class BidAccepted:
    collection: str
    token_id: int
    index: int
    buyer: str
    seller: str
    price: int
    quantity: int
    bid: dict


@dataclass
class RoyaltyPaid:
    collection: str
    token_id: int
    recipient: str
    amount: int


@dataclass
class FeeCredited:
    collection: str
    token_id: int
    beneficiary: str
    amount: int


@dataclass
class Withdrawal:
    payee: str
    amount: int


EVENT_TYPES = {
    CollectionCreated: "collection_created",
    CollectionRemoved: "collection_removed",
    CreatorFeesRequested: "creator_fees_requested",
    AskCreated: "ask_created",
    AskCancelled: "ask_cancelled",
    AskAccepted: "ask_accepted",
    BidCreated: "bid_created",
    BidCancelled: "bid_cancelled",
    BidAccepted: "bid_accepted",
    RoyaltyPaid: "royalty_paid",
    FeeCredited: "fee_credited",
    Withdrawal: "withdrawal",
}


class EventLogger(Stateful):
    """
    Collects marketplace events, optionally mirroring them to JSONL.

    Usage:
        events = EventLogger(Path("logs/market_events.jsonl"))
        world.track(events)
        ...
        events.close()
    """

    def __init__(self, output_path: Path | None = None):
        self.output_path = output_path
        self.events: list[dict] = []
        self._unflushed: list[dict] = []
        self._file: TextIO | None = None
        if output_path is not None:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(output_path, "w")

    def emit(self, event: object) -> None:
        data = asdict(event)
        data["event_type"] = EVENT_TYPES[type(event)]
        self._append(self.events, data)
        self._append(self._unflushed, data)

    def of_type(self, event_type: str) -> list[dict]:
        return [e for e in self.events if e["event_type"] == event_type]

    def commit(self) -> None:
        """Write events from the finished call to the JSONL file."""
        if self._file is not None:
            for data in self._unflushed:
                self._file.write(json.dumps(data) + "\n")
        self._unflushed = []

    def flush(self) -> None:
        if self._file:
            self._file.flush()

    @property
    def closed(self) -> bool:
        return self._file is None

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def __enter__(self) -> "EventLogger":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def load_events(log_path: Path) -> list[dict[str, object]]:
    """
    Load events from a JSONL file.

    Args:
        log_path: Path to the JSONL file

    Returns:
        List of event dictionaries
    """
    events = []
    with open(log_path) as f:
        for line in f:
            if line.strip():
                events.append(json.loads(line))
    return events
