# core/models.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from core.errors import ConfigurationError, DomainError, InsufficientBiddersError


class AuctionMechanism(str, Enum):
    ENGLISH = "ENGLISH"  # ascending, clears one increment above second valuation
    VICKREY = "VICKREY"  # sealed bid, winner pays second-highest bid


class StatusTier(str, Enum):
    STRONG_BUY = "Strong Buy"
    CAUTION = "Caution"
    AVOID = "Avoid"


class Bidder(BaseModel):
    """A competing bidder persona. Read-only for the lifetime of a run."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    personality: str = ""
    description: str = ""
    base_valuation: float = Field(gt=0)
    risk_aversion: float = Field(ge=0.0, le=1.0)


class RoundValuation(BaseModel):
    """Private valuation drawn for one bidder in one trial."""

    model_config = ConfigDict(frozen=True)

    bidder_id: str
    valuation: float


class AuctionOutcome(BaseModel):
    """Result of resolving one simulated auction."""

    model_config = ConfigDict(frozen=True)

    round_index: int
    mechanism: AuctionMechanism
    winner_id: str
    winning_value: float  # English: top valuation, Vickrey: winning bid
    clearing_price: float
    second_value: float
    efficiency: float  # clearing_price / highest private valuation
    total_bids_approx: int

    # Per-bidder data
    bids: Dict[str, float]    # bidder_id -> observed / submitted bid
    values: Dict[str, float]  # bidder_id -> private valuation


class TrialSummary(BaseModel):
    """
    Aggregate statistics folded over many independent trials.

    The histogram is kept sorted by bucket lower bound so iteration order
    is deterministic.
    """

    model_config = ConfigDict(frozen=True)

    trial_count: int
    win_count: int = 0
    sum_winning_clearing_price: float = 0.0
    max_clearing_price: float = 0.0
    histogram: Dict[float, int] = Field(default_factory=dict)  # bucket lower bound -> count
    sample_trials: List[AuctionOutcome] = Field(default_factory=list)

    @field_validator("histogram")
    @classmethod
    def _sort_histogram(cls, value: Dict[float, int]) -> Dict[float, int]:
        return {bucket: value[bucket] for bucket in sorted(value)}

    @model_validator(mode="after")
    def _check_counts(self) -> "TrialSummary":
        if sum(self.histogram.values()) != self.trial_count:
            raise ValueError("histogram counts must add up to trial_count")
        if not 0 <= self.win_count <= self.trial_count:
            raise ValueError("win_count must be between 0 and trial_count")
        return self

    @property
    def avg_win_price(self) -> float:
        if self.win_count == 0:
            return 0.0
        return self.sum_winning_clearing_price / self.win_count

    @property
    def win_rate(self) -> float:
        if self.trial_count == 0:
            return 0.0
        return self.win_count / self.trial_count


class ProgressUpdate(BaseModel):
    """Snapshot emitted to progress callbacks while trials run."""

    model_config = ConfigDict(frozen=True)

    completed: int
    total: int
    running_avg_win_price: float


class ProfitabilityPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str  # e.g. "90%"
    multiplier: float
    test_price: float
    margin: float  # max(0, ceiling - test_price)
    risk: float    # max(0, test_price - market value)


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    status_tier: StatusTier
    score: int = Field(ge=0, le=100)


# Fields whose validation failures are reported as DomainError by AuctionConfig.build.
_DOMAIN_FIELDS = {"item_market_value", "bidders"}


class AuctionConfig(BaseModel):
    """Configuration for a single analysis run."""

    model_config = ConfigDict(frozen=True)

    mechanism: AuctionMechanism = AuctionMechanism.ENGLISH
    bidders: List[Bidder]  # full pool; competition_density picks the active ones
    item_name: str = "Unnamed lot"
    item_market_value: float
    personal_ceiling: float
    trial_count: int = 1000
    competition_density: int = 3
    seed: Optional[int] = None
    workers: int = 1

    @classmethod
    def build(cls, **kwargs: Any) -> "AuctionConfig":
        """
        Construct and check a config, raising engine errors instead of
        pydantic's ValidationError.

        Bad market values and bidder fields are DomainError, every other
        field is ConfigurationError. A pool that cannot seat two bidders is
        InsufficientBiddersError.
        """
        try:
            config = cls(**kwargs)
        except ValidationError as e:
            first = e.errors()[0]
            field = first["loc"][0] if first["loc"] else "config"
            location = ".".join(str(part) for part in first["loc"]) or "config"
            message = f"{location}: {first['msg']}"
            if field in _DOMAIN_FIELDS:
                raise DomainError(message) from None
            raise ConfigurationError(message) from None

        config.validate_run()
        if len(config.active_bidders) < 2:
            raise InsufficientBiddersError(
                f"competition_density={config.competition_density} selects "
                f"{len(config.active_bidders)} bidder(s); need at least 2"
            )
        return config

    @property
    def active_bidders(self) -> List[Bidder]:
        return list(self.bidders[: self.competition_density + 1])

    def validate_run(self) -> None:
        """Raise the matching engine error if this config cannot be run."""
        if self.item_market_value <= 0:
            raise DomainError(f"item_market_value must be > 0, got {self.item_market_value}")
        if self.personal_ceiling <= 0:
            raise ConfigurationError(f"personal_ceiling must be > 0, got {self.personal_ceiling}")
        if self.trial_count <= 0:
            raise ConfigurationError(f"trial_count must be > 0, got {self.trial_count}")
        if self.competition_density < 1:
            raise ConfigurationError(
                f"competition_density must be >= 1, got {self.competition_density}"
            )
        if self.workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {self.workers}")


class AnalysisResult(BaseModel):
    """Output record handed to the renderer and the strategy generator."""

    model_config = ConfigDict(frozen=True)

    mechanism: AuctionMechanism
    item_name: str
    item_market_value: float
    personal_ceiling: float
    trial_count: int
    active_bidder_ids: List[str]

    win_rate: float
    avg_win_price: float
    max_competitor_price: float
    histogram: Dict[float, int]
    profitability_frontier: List[ProfitabilityPoint]
    sample_trials: List[AuctionOutcome]
    recommendation: Recommendation

    def to_record(self) -> Dict[str, Any]:
        """JSON-friendly dict; the histogram becomes an ordered list of buckets."""
        record = self.model_dump(mode="json", exclude={"histogram"})
        record["histogram"] = [
            {"bucket": bucket, "count": count} for bucket, count in self.histogram.items()
        ]
        return record


class StrategyRequest(BaseModel):
    """Narrow projection of an AnalysisResult sent to the strategy generator."""

    item_name: str
    market_value: float
    personal_value: float
    competition_level: str  # "Aggressive" | "Moderate"
    avg_win_price: float
    win_rate: float
    max_competitor_price: float


class GroundingSource(BaseModel):
    title: Optional[str] = None
    uri: Optional[str] = None


class StrategyReport(BaseModel):
    """Opaque strategy text plus any sources the generator cited."""

    text: str
    sources: List[GroundingSource] = Field(default_factory=list)
    is_fallback: bool = False
    opening_bid: Optional[float] = None  # suggested first bid
    timing: Optional[str] = None        # e.g. "Strategic Sniping"
