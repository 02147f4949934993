# tools/auction_sim.py
from __future__ import annotations

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence

from core.errors import ConfigurationError, DomainError, InsufficientBiddersError
from core.game_logic import resolve_auction
from core.models import (
    AnalysisResult,
    AuctionConfig,
    AuctionMechanism,
    AuctionOutcome,
    Bidder,
    ProgressUpdate,
    StrategyRequest,
    TrialSummary,
)
from tools.payoff_calculator import compute_profitability_frontier
from tools.recommendation import classify

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 100
DEFAULT_PROGRESS_EVERY = 200
HISTOGRAM_BUCKETS = 10

ProgressCallback = Callable[[ProgressUpdate], None]


def _validate_trial_inputs(
    bidders: Sequence[Bidder],
    item_market_value: float,
    personal_ceiling: float,
    trial_count: int,
) -> None:
    if isinstance(trial_count, bool) or not isinstance(trial_count, int) or trial_count <= 0:
        raise ConfigurationError(f"trial_count must be a positive integer, got {trial_count!r}")
    if item_market_value <= 0:
        raise DomainError(f"item_market_value must be > 0, got {item_market_value}")
    if personal_ceiling <= 0:
        raise ConfigurationError(f"personal_ceiling must be > 0, got {personal_ceiling}")
    if len(bidders) < 2:
        raise InsufficientBiddersError(f"need at least 2 bidders, got {len(bidders)}")


def bucket_for(price: float, bucket_width: float) -> float:
    """Lower bound of the histogram bucket holding `price`."""
    return math.floor(price / bucket_width) * bucket_width


def _run_chunk(
    mechanism: AuctionMechanism,
    bidders: Sequence[Bidder],
    item_market_value: float,
    personal_ceiling: float,
    start_index: int,
    trial_count: int,
    rng,
    sample_size: int,
    on_progress: Optional[ProgressCallback] = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
    total: Optional[int] = None,
) -> TrialSummary:
    """Fold `trial_count` consecutive trials into one TrialSummary."""
    bucket_width = item_market_value / HISTOGRAM_BUCKETS
    total = total or trial_count

    win_count = 0
    sum_winning_price = 0.0
    max_price = 0.0
    histogram: Dict[float, int] = {}
    samples: List[AuctionOutcome] = []
    last_reported = 0

    for offset in range(trial_count):
        round_idx = start_index + offset

        # 1) Resolve one independent auction
        outcome = resolve_auction(
            mechanism, bidders, item_market_value, rng=rng, round_index=round_idx
        )
        price = outcome.clearing_price

        # 2) Did our ceiling beat the clearing price?
        if personal_ceiling > price:
            win_count += 1
            sum_winning_price += price

        # 3) Aggregate stats
        max_price = max(max_price, price)
        bucket = bucket_for(price, bucket_width)
        histogram[bucket] = histogram.get(bucket, 0) + 1

        if len(samples) < sample_size:
            samples.append(outcome)

        if on_progress is not None and offset % progress_every == 0:
            last_reported = offset + 1
            _report(on_progress, last_reported, total, win_count, sum_winning_price)

    if on_progress is not None and last_reported != trial_count:
        _report(on_progress, trial_count, total, win_count, sum_winning_price)

    return TrialSummary(
        trial_count=trial_count,
        win_count=win_count,
        sum_winning_clearing_price=sum_winning_price,
        max_clearing_price=max_price,
        histogram=histogram,
        sample_trials=samples,
    )


def _report(
    on_progress: ProgressCallback,
    completed: int,
    total: int,
    win_count: int,
    sum_winning_price: float,
) -> None:
    running_avg = sum_winning_price / (win_count or 1)
    logger.info("Processed %d/%d trials, current avg win price: $%.2f", completed, total, running_avg)
    on_progress(ProgressUpdate(completed=completed, total=total, running_avg_win_price=running_avg))


def merge_summaries(
    parts: Sequence[TrialSummary],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> TrialSummary:
    """
    Combine summaries of consecutive trial chunks.

    `parts` must be in trial order so the merged sample still holds the
    earliest trials.
    """
    if not parts:
        raise ConfigurationError("merge_summaries needs at least one summary")

    histogram: Dict[float, int] = {}
    samples: List[AuctionOutcome] = []
    for part in parts:
        for bucket, count in part.histogram.items():
            histogram[bucket] = histogram.get(bucket, 0) + count
        samples.extend(part.sample_trials)

    return TrialSummary(
        trial_count=sum(p.trial_count for p in parts),
        win_count=sum(p.win_count for p in parts),
        sum_winning_clearing_price=sum(p.sum_winning_clearing_price for p in parts),
        max_clearing_price=max(p.max_clearing_price for p in parts),
        histogram=histogram,
        sample_trials=samples[:sample_size],
    )


def _chunk_sizes(trial_count: int, workers: int) -> List[int]:
    base, extra = divmod(trial_count, workers)
    sizes = [base + (1 if i < extra else 0) for i in range(workers)]
    return [s for s in sizes if s > 0]


def run_trials(
    mechanism: AuctionMechanism,
    bidders: Sequence[Bidder],
    item_market_value: float,
    personal_ceiling: float,
    trial_count: int,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    workers: int = 1,
    on_progress: Optional[ProgressCallback] = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> TrialSummary:
    """
    Run `trial_count` independent auctions and fold them into a TrialSummary.

    A trial counts as a win for us when `personal_ceiling` is strictly above
    its clearing price. With workers > 1 the trials are split into
    contiguous chunks, each with its own rng seeded from the parent, and
    merged in trial order afterwards.
    """
    _validate_trial_inputs(bidders, item_market_value, personal_ceiling, trial_count)
    if workers < 1:
        raise ConfigurationError(f"workers must be >= 1, got {workers}")
    if progress_every < 1:
        raise ConfigurationError(f"progress_every must be >= 1, got {progress_every}")

    # RNG (use fixed seed if provided for reproducibility)
    if rng is None:
        rng = random.Random(seed) if seed is not None else random

    if workers == 1:
        return _run_chunk(
            mechanism,
            bidders,
            item_market_value,
            personal_ceiling,
            start_index=0,
            trial_count=trial_count,
            rng=rng,
            sample_size=sample_size,
            on_progress=on_progress,
            progress_every=progress_every,
        )

    sizes = _chunk_sizes(trial_count, workers)
    chunk_rngs = [random.Random(rng.getrandbits(64)) for _ in sizes]
    starts = [sum(sizes[:i]) for i in range(len(sizes))]

    with ThreadPoolExecutor(max_workers=len(sizes)) as pool:
        futures = [
            pool.submit(
                _run_chunk,
                mechanism,
                bidders,
                item_market_value,
                personal_ceiling,
                start,
                size,
                chunk_rng,
                sample_size,
            )
            for start, size, chunk_rng in zip(starts, sizes, chunk_rngs)
        ]

        parts: List[TrialSummary] = []
        completed = 0
        for future in futures:
            part = future.result()
            parts.append(part)
            completed += part.trial_count
            if on_progress is not None:
                _report(
                    on_progress,
                    completed,
                    trial_count,
                    sum(p.win_count for p in parts),
                    sum(p.sum_winning_clearing_price for p in parts),
                )

    return merge_summaries(parts, sample_size=sample_size)


def run_analysis(
    config: AuctionConfig,
    rng: Optional[random.Random] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> AnalysisResult:
    """
    Full pipeline: pick active bidders, run trials, then build the
    profitability frontier and the recommendation.
    """
    config.validate_run()

    bidders = config.active_bidders
    if len(bidders) < 2:
        raise InsufficientBiddersError(
            f"competition_density={config.competition_density} selects {len(bidders)} "
            f"bidder(s) from a pool of {len(config.bidders)}; need at least 2"
        )

    logger.info(
        "Running %d %s trials for %r with %d bidders",
        config.trial_count,
        config.mechanism.value,
        config.item_name,
        len(bidders),
    )

    summary = run_trials(
        config.mechanism,
        bidders,
        config.item_market_value,
        config.personal_ceiling,
        config.trial_count,
        rng=rng,
        seed=config.seed,
        workers=config.workers,
        on_progress=on_progress,
    )

    frontier = compute_profitability_frontier(config.item_market_value, config.personal_ceiling)
    recommendation = classify(summary.win_rate, summary.avg_win_price, config.personal_ceiling)

    logger.info(
        "Verdict: %s (score %d, win rate %.1f%%, avg win price $%.2f)",
        recommendation.status_tier.value,
        recommendation.score,
        summary.win_rate * 100,
        summary.avg_win_price,
    )

    return AnalysisResult(
        mechanism=config.mechanism,
        item_name=config.item_name,
        item_market_value=config.item_market_value,
        personal_ceiling=config.personal_ceiling,
        trial_count=summary.trial_count,
        active_bidder_ids=[b.id for b in bidders],
        win_rate=summary.win_rate,
        avg_win_price=summary.avg_win_price,
        max_competitor_price=summary.max_clearing_price,
        histogram=summary.histogram,
        profitability_frontier=frontier,
        sample_trials=summary.sample_trials,
        recommendation=recommendation,
    )


def build_strategy_request(config: AuctionConfig, result: AnalysisResult) -> StrategyRequest:
    """Projection of a finished run handed to the strategy-text generator."""
    return StrategyRequest(
        item_name=config.item_name,
        market_value=config.item_market_value,
        personal_value=config.personal_ceiling,
        competition_level="Aggressive" if config.competition_density > 3 else "Moderate",
        avg_win_price=result.avg_win_price,
        win_rate=result.win_rate,
        max_competitor_price=result.max_competitor_price,
    )
