from __future__ import annotations

import random
import sys
from pathlib import Path

import matplotlib
import pytest

matplotlib.use("Agg")

# Ensure repo root is importable (core/, tools/, agents/ ... are top-level).
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from config.settings import INITIAL_BIDDERS  # noqa: E402
from core.models import Bidder  # noqa: E402


@pytest.fixture
def bidder_pool() -> list[Bidder]:
    return list(INITIAL_BIDDERS)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


class ScriptedRandom(random.Random):
    """Random whose random() replays scripted draws (the last one repeats forever)."""

    def set_draws(self, draws) -> "ScriptedRandom":
        self._draws = list(draws)
        return self

    def random(self) -> float:  # type: ignore[override]
        if len(self._draws) > 1:
            return self._draws.pop(0)
        return self._draws[0]


@pytest.fixture
def fixed_random():
    """Factory: fixed_random(0.5) always draws 0.5."""
    return lambda value: ScriptedRandom(0).set_draws([value])


@pytest.fixture
def sequence_random():
    """Factory: sequence_random([a, b, c]) draws a, b, then c from then on."""
    return lambda values: ScriptedRandom(0).set_draws(values)
