# tests/conftest.py

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Headless pygame for overlay/screenshot tests.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

from mapper.sim.determinism import set_sim_seed  # noqa: E402
from mapper.systems import perf_stats  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_globals():
    """Every test starts from the same seed and zeroed hull counters."""
    set_sim_seed(1)
    perf_stats.reset_hull()
    yield
