# agents/strategist_agent.py

from __future__ import annotations

import logging
from typing import Any, Optional

from core.models import StrategyReport, StrategyRequest
from .base_agent import BaseAgent

logger = logging.getLogger(__name__)

EMPTY_REPORT_TEXT = "Strategy analysis unavailable. Proceed with caution."

# Opening bid hints as a fraction of market value.
OPENING_BID_FRACTION = 0.7
FALLBACK_OPENING_BID_FRACTION = 0.6


class StrategistAgent(BaseAgent):
    """
    Turns the statistical record of a run into a free-text bidding plan.

    The text is passed through unvalidated; when the model call fails the
    agent returns a conservative fallback so callers always get a report.
    """

    def __init__(self, client: Optional[Any] = None, model: Optional[str] = None):
        super().__init__(name="Strategist", client=client, model=model)
        self._template = self.load_prompt_template("strategist_prompt.txt")

    def build_prompt(self, request: StrategyRequest) -> str:
        return self._template.format(
            item_name=request.item_name,
            market_value=request.market_value,
            personal_value=request.personal_value,
            competition_level=request.competition_level,
            avg_win_price=request.avg_win_price,
            win_rate_pct=request.win_rate * 100,
            max_competitor_price=request.max_competitor_price,
        ).strip()

    def fallback_report(self, request: StrategyRequest) -> StrategyReport:
        text = (
            "**ANALYSIS FAILURE**\n\n"
            "Strategy generator unavailable. Fallback protocol engaged.\n\n"
            "* **Recommendation:** Bid conservatively.\n"
            f"* **Limit:** Do not exceed ${request.personal_value:,.0f}.\n"
            "* **Strategy:** Wait for market stabilization."
        )
        return StrategyReport(
            text=text,
            sources=[],
            is_fallback=True,
            opening_bid=round(request.market_value * FALLBACK_OPENING_BID_FRACTION),
            timing="Immediate Entry",
        )

    def generate(self, request: StrategyRequest) -> StrategyReport:
        prompt = self.build_prompt(request)

        try:
            text, sources = self.call_llm(prompt)
        except Exception as e:
            logger.warning("Strategy generation failed for %r: %s", request.item_name, e)
            return self.fallback_report(request)

        return StrategyReport(
            text=text or EMPTY_REPORT_TEXT,
            sources=sources,
            opening_bid=round(request.market_value * OPENING_BID_FRACTION),
            timing="Strategic Sniping",
        )
