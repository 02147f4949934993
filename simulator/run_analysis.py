# simulator/run_analysis.py

"""
Command-line entry point: run a Monte Carlo analysis for one lot and print
the verdict.

Example
-------
python -m simulator.run_analysis --market-value 1500 --personal-value 1800 --competition 3
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from config.settings import (
    DEFAULT_COMPETITION,
    DEFAULT_ITEM_NAME,
    DEFAULT_MARKET_VALUE,
    DEFAULT_PERSONAL_CEILING,
    INITIAL_BIDDERS,
    load_settings,
)
from core.errors import AuctionEngineError
from core.logger import setup_logger
from core.models import AnalysisResult, AuctionConfig, AuctionMechanism
from tools.auction_sim import build_strategy_request, run_analysis
from tools.recommendation import market_sentiment


def _build_parser(settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="auction-advisor")
    parser.add_argument("--item-name", default=DEFAULT_ITEM_NAME, help="Name of the lot being analysed")
    parser.add_argument("--market-value", type=float, default=DEFAULT_MARKET_VALUE, help="Estimated market value")
    parser.add_argument(
        "--personal-value",
        type=float,
        default=DEFAULT_PERSONAL_CEILING,
        help="Your maximum price (personal ceiling)",
    )
    parser.add_argument(
        "--competition",
        type=int,
        default=DEFAULT_COMPETITION,
        help=f"Number of competing bidders from the pool of {len(INITIAL_BIDDERS)} (default: {DEFAULT_COMPETITION})",
    )
    parser.add_argument(
        "--mechanism",
        choices=[m.value for m in AuctionMechanism],
        default=AuctionMechanism.ENGLISH.value,
        help="Auction mechanism to simulate (default: ENGLISH)",
    )
    parser.add_argument("--trials", type=int, default=settings.trial_count, help="Number of Monte Carlo trials")
    parser.add_argument("--seed", type=int, default=settings.seed, help="Random seed (optional)")
    parser.add_argument("--workers", type=int, default=1, help="Threads used to run trial chunks (default: 1)")
    parser.add_argument("--plots-dir", type=Path, default=None, help="Write chart PNGs to this directory (optional)")
    parser.add_argument(
        "--with-strategy",
        action="store_true",
        help="Ask the strategy generator for a written bidding plan (needs OPENAI_API_KEY)",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: INFO)")
    return parser


def print_summary(result: AnalysisResult) -> None:
    # Header
    print(f"=== Auction Analysis: {result.item_name} ({result.mechanism.value}) ===\n")

    print(f"Market Value: ${result.item_market_value:,.2f}")
    print(f"Personal Ceiling: ${result.personal_ceiling:,.2f}")
    print(f"Active Bidders: {', '.join(result.active_bidder_ids)}")
    print(f"Trials: {result.trial_count}\n")

    print(f"Win Rate: {result.win_rate * 100:.1f}%")
    print(f"Avg Win Price: ${result.avg_win_price:,.2f}")
    print(f"Max Competitor Price: ${result.max_competitor_price:,.2f}\n")

    print("Clearing Price Distribution:")
    for bucket, count in result.histogram.items():
        print(f"  • ${bucket:,.0f}+: {count}")
    print()

    rec = result.recommendation
    print(f"Verdict: {rec.status_tier.value} (score {rec.score}/100)")
    print(f"Market Sentiment: {market_sentiment(rec.score)}")
    print("\n======================================\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        settings = load_settings()
    except AuctionEngineError as e:
        print(f"error: {e}")
        return 2

    parser = _build_parser(settings)
    args = parser.parse_args(list(argv) if argv is not None else None)

    level = getattr(logging, str(args.log_level).upper(), logging.INFO)
    for name in ("tools", "agents"):
        setup_logger(name, level=level)

    try:
        config = AuctionConfig.build(
            mechanism=AuctionMechanism(args.mechanism),
            bidders=INITIAL_BIDDERS,
            item_name=args.item_name,
            item_market_value=args.market_value,
            personal_ceiling=args.personal_value,
            trial_count=args.trials,
            competition_density=args.competition,
            seed=args.seed,
            workers=args.workers,
        )
        result = run_analysis(config)
    except AuctionEngineError as e:
        print(f"error: {e}")
        return 2

    print_summary(result)

    if args.plots_dir is not None:
        from viz.plots import run_all_plots

        run_all_plots(result, output_dir=args.plots_dir)
        print(f"Wrote charts to {args.plots_dir}\n")

    if args.with_strategy:
        from agents.strategist_agent import StrategistAgent

        report = StrategistAgent().generate(build_strategy_request(config, result))
        print("=== Strategy Report ===\n")
        print(report.text)
        if report.opening_bid is not None:
            print(f"\nOpening Bid: ${report.opening_bid:,.0f} ({report.timing})")
        for source in report.sources:
            print(f"  - {source.title or source.uri}: {source.uri}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
