from __future__ import annotations

import random

import pytest

from core.errors import ConfigurationError, DomainError, InsufficientBiddersError
from core.models import AuctionConfig, AuctionMechanism, Bidder, StatusTier
from tools.auction_sim import (
    build_strategy_request,
    bucket_for,
    merge_summaries,
    run_analysis,
    run_trials,
)


def _two_bidders() -> list[Bidder]:
    return [
        Bidder(id="1", name="High", base_valuation=1200.0, risk_aversion=0.1),
        Bidder(id="2", name="Low", base_valuation=950.0, risk_aversion=0.9),
    ]


def test_run_trials_fixed_draws_aggregate_exactly(fixed_random) -> None:
    # Every trial clears at 950 + 15 = 965
    summary = run_trials(
        AuctionMechanism.ENGLISH,
        _two_bidders(),
        item_market_value=1500.0,
        personal_ceiling=1000.0,
        trial_count=10,
        rng=fixed_random(0.5),
    )

    assert summary.trial_count == 10
    assert summary.win_count == 10
    assert summary.win_rate == 1.0
    assert summary.avg_win_price == pytest.approx(965.0)
    assert summary.max_clearing_price == pytest.approx(965.0)
    # bucket width 150 -> 965 lands in [900, 1050)
    assert summary.histogram == {900.0: 10}
    assert len(summary.sample_trials) == 10


def test_run_trials_ceiling_equal_to_price_is_not_a_win(fixed_random) -> None:
    summary = run_trials(
        AuctionMechanism.ENGLISH,
        _two_bidders(),
        item_market_value=1500.0,
        personal_ceiling=965.0,
        trial_count=5,
        rng=fixed_random(0.5),
    )
    assert summary.win_count == 0
    assert summary.avg_win_price == 0.0
    assert summary.win_rate == 0.0
    assert summary.max_clearing_price == pytest.approx(965.0)


@pytest.mark.parametrize("mechanism", list(AuctionMechanism))
def test_histogram_counts_sum_to_trial_count(bidder_pool, mechanism) -> None:
    summary = run_trials(mechanism, bidder_pool, 1500.0, 1800.0, 777, rng=random.Random(3))

    assert sum(summary.histogram.values()) == 777
    assert list(summary.histogram) == sorted(summary.histogram)
    assert 0.0 <= summary.win_rate <= 1.0


def test_sample_trials_keep_first_hundred_in_order(bidder_pool) -> None:
    summary = run_trials(AuctionMechanism.ENGLISH, bidder_pool, 1500.0, 1800.0, 250, rng=random.Random(5))

    assert [o.round_index for o in summary.sample_trials] == list(range(100))


def test_max_clearing_price_covers_every_trial(bidder_pool) -> None:
    summary = run_trials(AuctionMechanism.VICKREY, bidder_pool, 1500.0, 1800.0, 300, rng=random.Random(11))

    highest_bucket = max(summary.histogram)
    assert highest_bucket <= summary.max_clearing_price < highest_bucket + 150.0


def test_run_trials_same_seed_same_summary(bidder_pool) -> None:
    a = run_trials(AuctionMechanism.VICKREY, bidder_pool, 1500.0, 1300.0, 200, seed=21)
    b = run_trials(AuctionMechanism.VICKREY, bidder_pool, 1500.0, 1300.0, 200, seed=21)
    assert a == b


def test_progress_callback_reports_batches_then_completion(bidder_pool) -> None:
    updates = []
    run_trials(
        AuctionMechanism.ENGLISH,
        bidder_pool,
        1500.0,
        1800.0,
        450,
        rng=random.Random(2),
        on_progress=updates.append,
    )

    assert [u.completed for u in updates] == [1, 201, 401, 450]
    assert all(u.total == 450 for u in updates)


def test_parallel_run_merges_chunks(bidder_pool) -> None:
    updates = []
    summary = run_trials(
        AuctionMechanism.ENGLISH,
        bidder_pool,
        1500.0,
        1800.0,
        301,
        seed=7,
        workers=3,
        on_progress=updates.append,
    )

    assert summary.trial_count == 301
    assert sum(summary.histogram.values()) == 301
    assert [o.round_index for o in summary.sample_trials] == list(range(100))
    assert updates[-1].completed == 301

    again = run_trials(AuctionMechanism.ENGLISH, bidder_pool, 1500.0, 1800.0, 301, seed=7, workers=3)
    assert again == summary


def test_merge_summaries_adds_counts(bidder_pool) -> None:
    first = run_trials(AuctionMechanism.ENGLISH, bidder_pool, 1500.0, 1250.0, 60, rng=random.Random(1))
    second = run_trials(AuctionMechanism.ENGLISH, bidder_pool, 1500.0, 1250.0, 70, rng=random.Random(2))

    merged = merge_summaries([first, second])

    assert merged.trial_count == 130
    assert merged.win_count == first.win_count + second.win_count
    assert merged.max_clearing_price == max(first.max_clearing_price, second.max_clearing_price)
    assert sum(merged.histogram.values()) == 130
    assert len(merged.sample_trials) == 100


def test_merge_summaries_requires_parts() -> None:
    with pytest.raises(ConfigurationError):
        merge_summaries([])


def test_bucket_for_floors_to_bucket_width() -> None:
    assert bucket_for(965.0, 150.0) == 900.0
    assert bucket_for(1050.0, 150.0) == 1050.0
    assert bucket_for(149.9, 150.0) == 0.0


@pytest.mark.parametrize(
    "kwargs, error",
    [
        ({"trial_count": 0}, ConfigurationError),
        ({"trial_count": -5}, ConfigurationError),
        ({"trial_count": 2.5}, ConfigurationError),
        ({"personal_ceiling": 0.0}, ConfigurationError),
        ({"item_market_value": 0.0}, DomainError),
        ({"workers": 0}, ConfigurationError),
    ],
)
def test_run_trials_validates_before_running(bidder_pool, kwargs, error) -> None:
    params = dict(
        mechanism=AuctionMechanism.ENGLISH,
        bidders=bidder_pool,
        item_market_value=1500.0,
        personal_ceiling=1800.0,
        trial_count=10,
    )
    params.update(kwargs)
    with pytest.raises(error):
        run_trials(**params)


def test_run_trials_rejects_single_bidder(bidder_pool) -> None:
    with pytest.raises(InsufficientBiddersError):
        run_trials(AuctionMechanism.ENGLISH, bidder_pool[:1], 1500.0, 1800.0, 10)


def _config(bidder_pool, **overrides) -> AuctionConfig:
    params = dict(
        bidders=bidder_pool,
        item_name="Test Lot",
        item_market_value=1500.0,
        personal_ceiling=1800.0,
        trial_count=400,
        competition_density=3,
        seed=123,
    )
    params.update(overrides)
    return AuctionConfig(**params)


def test_run_analysis_uses_density_plus_one_bidders(bidder_pool) -> None:
    result = run_analysis(_config(bidder_pool, competition_density=2))
    assert result.active_bidder_ids == ["1", "2", "3"]
    for outcome in result.sample_trials:
        assert set(outcome.bids) == {"1", "2", "3"}


def test_run_analysis_builds_full_record(bidder_pool) -> None:
    result = run_analysis(_config(bidder_pool))

    assert result.trial_count == 400
    assert sum(result.histogram.values()) == 400
    assert len(result.profitability_frontier) == 11
    assert len(result.sample_trials) == 100
    assert result.recommendation.score == round(result.win_rate * 100)
    assert result.max_competitor_price >= result.avg_win_price


def test_run_analysis_high_ceiling_is_strong_buy(bidder_pool) -> None:
    # Pool valuations top out near 1300 + 150, so a 5000 ceiling always wins cheaply
    result = run_analysis(_config(bidder_pool, personal_ceiling=5000.0))
    assert result.win_rate == 1.0
    assert result.recommendation.status_tier is StatusTier.STRONG_BUY


def test_run_analysis_low_ceiling_is_avoid(bidder_pool) -> None:
    result = run_analysis(_config(bidder_pool, personal_ceiling=100.0))
    assert result.win_rate == 0.0
    assert result.recommendation.status_tier is StatusTier.AVOID
    assert result.recommendation.score == 0


def test_run_analysis_rejects_pool_too_small(bidder_pool) -> None:
    with pytest.raises(InsufficientBiddersError):
        run_analysis(_config(bidder_pool[:1], competition_density=1))


def test_run_analysis_rejects_zero_density(bidder_pool) -> None:
    with pytest.raises(ConfigurationError):
        run_analysis(_config(bidder_pool, competition_density=0))


def test_run_analysis_record_is_json_friendly(bidder_pool) -> None:
    record = run_analysis(_config(bidder_pool, trial_count=50)).to_record()

    buckets = [entry["bucket"] for entry in record["histogram"]]
    assert buckets == sorted(buckets)
    assert sum(entry["count"] for entry in record["histogram"]) == 50
    assert record["recommendation"]["status_tier"] in {t.value for t in StatusTier}
    assert record["mechanism"] == "ENGLISH"


def test_build_strategy_request_projection(bidder_pool) -> None:
    config = _config(bidder_pool, competition_density=4)
    result = run_analysis(config)

    request = build_strategy_request(config, result)

    assert request.item_name == "Test Lot"
    assert request.market_value == 1500.0
    assert request.personal_value == 1800.0
    assert request.competition_level == "Aggressive"
    assert request.win_rate == result.win_rate
    assert request.max_competitor_price == result.max_competitor_price

    moderate = build_strategy_request(_config(bidder_pool), result)
    assert moderate.competition_level == "Moderate"
