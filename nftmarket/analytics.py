"""
Sale-history analytics.

Turns the marketplace's per-unit sale logs into pandas frames and
summary statistics for a collection.
"""

import numpy as np
import pandas as pd

from nftmarket.market import NFTMarket

HISTORY_COLUMNS = ["token_id", "seller", "buyer", "price", "timestamp"]


def price_history_frame(
    market: NFTMarket, collection: str, token_id: int | None = None
) -> pd.DataFrame:
    """
    One row per unit sold.

    Args:
        market: Marketplace to read from
        collection: Collection address
        token_id: Restrict to one token (all known tokens if None)

    Returns:
        DataFrame with HISTORY_COLUMNS, ordered by timestamp
    """
    token_ids = [token_id] if token_id is not None else market.known_token_ids(collection)
    rows = [
        {
            "token_id": tid,
            "seller": log.seller,
            "buyer": log.buyer,
            "price": log.price,
            "timestamp": log.timestamp,
        }
        for tid in token_ids
        for log in market.price_history(collection, tid)
    ]
    frame = pd.DataFrame(rows, columns=HISTORY_COLUMNS)
    return frame.sort_values("timestamp", kind="stable").reset_index(drop=True)


def collection_stats(market: NFTMarket, collection: str) -> dict:
    """
    Summary of a collection's trading.

    Returns:
        Dictionary with:
        - trades: Units sold
        - volume: Sum of unit prices (matches Collection.volume_traded)
        - mean_price / median_price / price_std: Unit-price statistics
        - last_price: Price of the most recent unit sold (0 if none)
        - floor_price: Current floor
    """
    frame = price_history_frame(market, collection)
    prices = frame["price"].to_numpy(dtype=object)

    if len(prices) == 0:
        return {
            "trades": 0,
            "volume": 0,
            "mean_price": 0.0,
            "median_price": 0.0,
            "price_std": 0.0,
            "last_price": 0,
            "floor_price": market.floor_price(collection),
        }

    # Python ints keep the volume exact; floats are fine for the moments
    as_float = np.array([float(p) for p in prices])
    return {
        "trades": int(len(prices)),
        "volume": int(sum(prices)),
        "mean_price": float(np.mean(as_float)),
        "median_price": float(np.median(as_float)),
        "price_std": float(np.std(as_float)),
        "last_price": int(prices[-1]),
        "floor_price": market.floor_price(collection),
    }
