# config/settings.py

from __future__ import annotations

import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from core.errors import ConfigurationError
from core.models import Bidder

# Load .env once (safe to call multiple times)
load_dotenv()

DEFAULT_ITEM_NAME = "Rare 1st Edition Charizard"
DEFAULT_MARKET_VALUE = 1500.0
DEFAULT_PERSONAL_CEILING = 1800.0
DEFAULT_COMPETITION = 3
DEFAULT_TRIAL_COUNT = 1000
DEFAULT_MODEL = "gpt-4o-mini"

# Competing personas; competition_density N activates the first N + 1.
INITIAL_BIDDERS: List[Bidder] = [
    Bidder(
        id="1",
        name="Venture Victor",
        personality="Aggressive Growth",
        description="Bids high and fast, looking for dominance at any cost.",
        base_valuation=1200,
        risk_aversion=0.1,
    ),
    Bidder(
        id="2",
        name="Cautious Clara",
        personality="Conservative Investor",
        description="Strictly adheres to budget. Rarely overbids.",
        base_valuation=950,
        risk_aversion=0.9,
    ),
    Bidder(
        id="3",
        name="Mathematical Max",
        personality="Rational Optimizer",
        description="Attempts to find the Nash Equilibrium in every round.",
        base_valuation=1100,
        risk_aversion=0.5,
    ),
    Bidder(
        id="4",
        name="Speculative Sam",
        personality="Wildcard Gambler",
        description="Value fluctuates wildly. Prone to irrational bidding.",
        base_valuation=1050,
        risk_aversion=0.3,
    ),
    Bidder(
        id="5",
        name="Hedge Fund Harry",
        personality="Deep Pockets",
        description="Aims to price out competitors through sheer volume.",
        base_valuation=1300,
        risk_aversion=0.2,
    ),
]


class Settings(BaseModel):
    """Environment-derived defaults for the CLI and the strategist agent."""

    model_config = ConfigDict(frozen=True)

    trial_count: int = DEFAULT_TRIAL_COUNT
    seed: Optional[int] = None
    log_level: str = "INFO"
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_MODEL


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def load_settings() -> Settings:
    """Read AUCTION_* and OPENAI_* overrides from the environment / .env file."""
    trial_count = _env_int("AUCTION_TRIAL_COUNT", DEFAULT_TRIAL_COUNT)
    if trial_count is not None and trial_count <= 0:
        raise ConfigurationError(f"AUCTION_TRIAL_COUNT must be > 0, got {trial_count}")

    return Settings(
        trial_count=trial_count,
        seed=_env_int("AUCTION_SEED", None),
        log_level=os.getenv("AUCTION_LOG_LEVEL", "INFO").upper(),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
    )
