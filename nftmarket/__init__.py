"""
nftmarket - Order book and settlement engine for NFT collections

Supports single-owner and fractional token collections through one code
path. Sellers post asks, buyers post escrow-backed bids, and accepting
either side settles fee, royalties and payout atomically.

Modules:
    market: The marketplace engine (order entry, settlement, queries)
    orderbook: Tombstoned ask/bid arenas per (collection, token)
    ledger: Escrow and withdrawable balances
    registry: Collections and creator royalty tables
    royalty: Two-stage basis-point royalty arithmetic
    fees: Fee policy collaborator
    transfer: Dual-standard transfer adapter
    tokens: Single-owner and multi-owner token contracts
    factory: Collection factory
    world: In-process world state with atomic calls
    events: Event log for indexers
    analytics: Sale-history frames and statistics
"""

__version__ = "1.0.0"
