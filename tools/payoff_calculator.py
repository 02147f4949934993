# tools/payoff_calculator.py

from __future__ import annotations

from typing import List

from core.errors import DomainError
from core.models import ProfitabilityPoint

# Test prices from 50% to 150% of market value, in 10% steps.
FRONTIER_MULTIPLIERS = [k / 10 for k in range(5, 16)]


def compute_profitability_frontier(
    item_market_value: float,
    personal_ceiling: float,
) -> List[ProfitabilityPoint]:
    """
    Margin and winner's-curse exposure at a grid of hypothetical prices.

    For each multiplier p:
    - test_price = item_market_value * p
    - margin     = max(0, personal_ceiling - test_price)
    - risk       = max(0, test_price - item_market_value)
    """
    if item_market_value <= 0:
        raise DomainError(f"item_market_value must be > 0, got {item_market_value}")

    frontier: List[ProfitabilityPoint] = []
    for p in FRONTIER_MULTIPLIERS:
        test_price = item_market_value * p
        frontier.append(
            ProfitabilityPoint(
                label=f"{round(p * 100)}%",
                multiplier=p,
                test_price=test_price,
                margin=max(0.0, personal_ceiling - test_price),
                risk=max(0.0, test_price - item_market_value),
            )
        )
    return frontier
