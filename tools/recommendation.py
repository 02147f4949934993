# tools/recommendation.py

from __future__ import annotations

from core.errors import DomainError
from core.models import Recommendation, StatusTier


def classify(win_rate: float, avg_win_price: float, personal_ceiling: float) -> Recommendation:
    """
    Map run statistics to a verdict. Rules are checked in order:

    1. win_rate > 0.7 and avg_win_price < 90% of ceiling -> Strong Buy
    2. win_rate < 0.2 or avg_win_price > ceiling          -> Avoid
    3. otherwise                                          -> Caution

    The score is the win rate as a rounded percentage, whatever the tier.
    """
    if not 0.0 <= win_rate <= 1.0:
        raise DomainError(f"win_rate must be within [0, 1], got {win_rate}")

    if win_rate > 0.7 and avg_win_price < personal_ceiling * 0.9:
        tier = StatusTier.STRONG_BUY
    elif win_rate < 0.2 or avg_win_price > personal_ceiling:
        tier = StatusTier.AVOID
    else:
        tier = StatusTier.CAUTION

    return Recommendation(status_tier=tier, score=round(win_rate * 100))


def market_sentiment(score: int) -> str:
    """Gauge label for a score: Bullish above 70, Neutral above 40, else Bearish."""
    if score > 70:
        return "Bullish"
    if score > 40:
        return "Neutral"
    return "Bearish"
