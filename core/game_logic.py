# core/game_logic.py

from __future__ import annotations

import math
import random
from typing import Dict, List, Optional, Sequence, Tuple

from core.errors import ConfigurationError, DomainError, InsufficientBiddersError
from core.models import AuctionMechanism, AuctionOutcome, Bidder
from core.value_sampler import centered_uniform, sample_round_valuations

# English auctions move in increments of 1% of market value.
ENGLISH_STEP_FRACTION = 0.01
# Vickrey strategic bid noise spans +/- 2.5% of market value at full risk aversion.
VICKREY_NOISE_SCALE = 0.05


def rank_by_value(amounts: Dict[str, float]) -> List[Tuple[str, float]]:
    """
    Sort (bidder_id, amount) pairs highest first.

    Ties on amount go to the lowest bidder_id, so the ranking never depends
    on dict insertion order. Ids compare lexicographically, not numerically:
    "10" sorts before "2".
    """
    return sorted(amounts.items(), key=lambda item: (-item[1], item[0]))


def run_second_price_auction(bids: Dict[str, float]) -> Tuple[str, float]:
    # returns (winner_id, clearing_price)
    if len(bids) < 2:
        raise InsufficientBiddersError(
            f"a second-price auction needs at least 2 bids, got {len(bids)}"
        )

    ranked = rank_by_value(bids)
    winner_id, _ = ranked[0]
    second_price = ranked[1][1]
    return winner_id, second_price


def _efficiency(clearing_price: float, top_valuation: float) -> float:
    if top_valuation == 0:
        return 0.0
    return clearing_price / top_valuation


def run_english_auction(
    values: Dict[str, float],
    item_market_value: float,
    round_index: int = 0,
) -> AuctionOutcome:
    """
    Ascending auction: the price climbs until only the top bidder is left,
    so it clears one increment above the second valuation, capped at the
    top valuation.
    """
    ranked = rank_by_value(values)
    top_id, top_value = ranked[0]
    second_value = ranked[1][1]

    step = item_market_value * ENGLISH_STEP_FRACTION
    clearing_price = min(top_value, second_value + step)

    observed = {bidder_id: min(v, clearing_price) for bidder_id, v in values.items()}

    return AuctionOutcome(
        round_index=round_index,
        mechanism=AuctionMechanism.ENGLISH,
        winner_id=top_id,
        winning_value=top_value,
        clearing_price=clearing_price,
        second_value=second_value,
        efficiency=_efficiency(clearing_price, top_value),
        total_bids_approx=math.floor(clearing_price / step),  # increment count, not a bid tally
        bids=observed,
        values=dict(values),
    )


def run_vickrey_auction(
    values: Dict[str, float],
    bidders: Sequence[Bidder],
    item_market_value: float,
    rng: Optional[random.Random] = None,
    round_index: int = 0,
) -> AuctionOutcome:
    """
    Sealed-bid second-price auction with strategic noise.

    Each bidder shades away from their valuation by
    U(-0.5, 0.5) * risk_aversion * item_market_value * 0.05. Efficiency is
    measured against the highest private valuation in the room, which is
    not always the bid winner's.
    """
    bids: Dict[str, float] = {}
    for bidder in bidders:
        noise = centered_uniform(rng) * bidder.risk_aversion * item_market_value * VICKREY_NOISE_SCALE
        bids[bidder.id] = values[bidder.id] + noise

    winner_id, clearing_price = run_second_price_auction(bids)
    top_valuation = rank_by_value(values)[0][1]

    return AuctionOutcome(
        round_index=round_index,
        mechanism=AuctionMechanism.VICKREY,
        winner_id=winner_id,
        winning_value=bids[winner_id],
        clearing_price=clearing_price,
        second_value=clearing_price,
        efficiency=_efficiency(clearing_price, top_valuation),
        total_bids_approx=len(bids),
        bids=bids,
        values=dict(values),
    )


def resolve_auction(
    mechanism: AuctionMechanism,
    bidders: Sequence[Bidder],
    item_market_value: float,
    rng: Optional[random.Random] = None,
    round_index: int = 0,
) -> AuctionOutcome:
    """Sample fresh valuations and resolve one trial under `mechanism`."""
    if len(bidders) < 2:
        raise InsufficientBiddersError(f"need at least 2 bidders, got {len(bidders)}")
    if item_market_value <= 0:
        raise DomainError(f"item_market_value must be > 0, got {item_market_value}")

    try:
        mechanism = AuctionMechanism(mechanism)
    except ValueError:
        raise ConfigurationError(f"unknown auction mechanism: {mechanism!r}") from None

    # 1) Private valuations for this trial only
    values = {
        rv.bidder_id: rv.valuation
        for rv in sample_round_valuations(bidders, item_market_value, rng)
    }
    if len(values) < len(bidders):
        raise ConfigurationError("bidder ids must be unique")

    # 2) Clear the auction
    if mechanism is AuctionMechanism.ENGLISH:
        return run_english_auction(values, item_market_value, round_index=round_index)
    return run_vickrey_auction(values, bidders, item_market_value, rng=rng, round_index=round_index)
