from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from core.models import AnalysisResult


def run_all_plots(result: AnalysisResult, output_dir: Optional[Path] = None, show: bool = False) -> Dict[str, plt.Figure]:
    """
    Generate all charts for one analysis run.

    Parameters
    ----------
    result : AnalysisResult
        Output record of tools.auction_sim.run_analysis.
    output_dir : Path, optional
        If given, each figure is saved there as <name>.png.
    show : bool
        Call plt.show() after drawing (interactive use only).
    """
    figures = {
        "sample_trials": plot_sample_trials(result),
        "price_distribution": plot_price_distribution(result),
        "profitability_frontier": plot_profitability_frontier(result),
    }

    if output_dir is not None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        for name, fig in figures.items():
            fig.savefig(output_dir / f"{name}.png", bbox_inches="tight")

    if show:
        plt.show()
    return figures


def plot_sample_trials(result: AnalysisResult) -> plt.Figure:
    """
    Scatter of clearing price per sampled trial, colored by whether our
    ceiling would have won it. The ceiling is drawn as a dashed line.
    """
    df = pd.DataFrame(
        {
            "round": [o.round_index for o in result.sample_trials],
            "price": [o.clearing_price for o in result.sample_trials],
        }
    )
    if df.empty:
        raise ValueError("No sample trials to plot.")
    df["outcome"] = np.where(df["price"] < result.personal_ceiling, "Won", "Lost")

    fig, ax = plt.subplots(figsize=(12, 6))
    sns.scatterplot(
        data=df,
        x="round",
        y="price",
        hue="outcome",
        palette={"Won": "green", "Lost": "red"},
        ax=ax,
    )
    ax.axhline(result.personal_ceiling, color="black", linestyle="--", label="Personal ceiling")

    ax.set_title(f"Simulated Clearing Prices ({result.mechanism.value.title()})")
    ax.set_xlabel("Trial")
    ax.set_ylabel("Clearing Price")
    ax.grid(True, linestyle="--", alpha=0.6)
    ax.legend(bbox_to_anchor=(1.05, 1), loc="upper left")
    fig.tight_layout()
    return fig


def plot_price_distribution(result: AnalysisResult) -> plt.Figure:
    """Bar chart of the clearing-price histogram, one bar per bucket."""
    if not result.histogram:
        raise ValueError("Histogram is empty.")

    labels = [f"${bucket:,.0f}" for bucket in result.histogram]
    counts = list(result.histogram.values())

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.bar(labels, counts, color="blue", edgecolor="black")

    ax.set_title("Distribution of Clearing Prices")
    ax.set_xlabel("Price Bucket (lower bound)")
    ax.set_ylabel("Number of Trials")
    ax.tick_params(axis="x", rotation=45)
    ax.grid(True, linestyle="--", alpha=0.5)
    fig.tight_layout()
    return fig


def plot_profitability_frontier(result: AnalysisResult) -> plt.Figure:
    """Margin vs. winner's-curse risk across test prices."""
    df = pd.DataFrame([p.model_dump() for p in result.profitability_frontier])
    if df.empty:
        raise ValueError("Profitability frontier is empty.")

    long_df = df.melt(id_vars=["label", "multiplier"], value_vars=["margin", "risk"], var_name="series")

    fig, ax = plt.subplots(figsize=(10, 6))
    sns.lineplot(
        data=long_df,
        x="multiplier",
        y="value",
        hue="series",
        palette={"margin": "green", "risk": "red"},
        marker="o",
        ax=ax,
    )
    ax.set_xticks(df["multiplier"])
    ax.set_xticklabels(df["label"], rotation=45)

    ax.set_title("Profitability Frontier")
    ax.set_xlabel("Test Price (% of market value)")
    ax.set_ylabel("Amount")
    ax.grid(True, linestyle="--", alpha=0.5)
    fig.tight_layout()
    return fig
