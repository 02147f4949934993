# core/value_sampler.py

from __future__ import annotations

import random
from typing import List, Optional, Sequence

from core.errors import DomainError
from core.models import Bidder, RoundValuation

# Valuation noise spans +/- 10% of the item's market value.
VALUATION_NOISE_SCALE = 0.2


def centered_uniform(rng: Optional[random.Random] = None) -> float:
    """Draw from U(-0.5, 0.5)."""
    rng = rng or random
    return rng.random() - 0.5


def sample_valuation(
    bidder: Bidder,
    item_market_value: float,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Draw one bidder's private valuation for a single trial:

        base_valuation + U(-0.5, 0.5) * item_market_value * 0.2
    """
    if item_market_value <= 0:
        raise DomainError(f"item_market_value must be > 0, got {item_market_value}")

    noise = centered_uniform(rng) * item_market_value * VALUATION_NOISE_SCALE
    return bidder.base_valuation + noise


def sample_round_valuations(
    bidders: Sequence[Bidder],
    item_market_value: float,
    rng: Optional[random.Random] = None,
) -> List[RoundValuation]:
    """Fresh valuations for every bidder, in bidder order."""
    return [
        RoundValuation(
            bidder_id=bidder.id,
            valuation=sample_valuation(bidder, item_market_value, rng),
        )
        for bidder in bidders
    ]
