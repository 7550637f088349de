"""
Configuration settings for the Mapper hull sim.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw.strip() else default
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


PROTOTYPE_VERSION = "0.3.0"
TITLE = f"Mapper Hull (Prototype v{PROTOTYPE_VERSION})"

# Determinism
SIM_SEED = _env_int("SIM_SEED", 3)

# Hull quantization (world units). Observations closer than this collapse to one point.
HULL_QUANTUM = _env_float("HULL_QUANTUM", 1.0)

# Frontier / coverage bookkeeping uses half-tile quantization.
MAPPED_POSITION_QUANTUM = 0.5

# Concave hull job parameters
HULL_K0 = _env_int("HULL_K0", 8)
HULL_MAX_K = _env_int("HULL_MAX_K", 120)
HULL_STEPS_PER_TICK = _env_int("HULL_STEPS_PER_TICK", 25)

# Scheduling cadence (ticks). Slow variants evaluate every 1000 ticks; fast ones every tick.
HULL_UPDATE_INTERVAL = _env_int("HULL_UPDATE_INTERVAL", 60)
# Minimum ticks between hull rebuilds (debounces bursts of small changes).
HULL_STALE_TICKS = _env_int("HULL_STALE_TICKS", 60 * 2)

# Debug logging (set DEBUG_HULL=1 to see scheduler/job decisions)
DEBUG_HULL = _env_bool("DEBUG_HULL", False)

# Survey world (headless driver)
WORLD_WIDTH = 256.0
WORLD_HEIGHT = 256.0
FEATURE_COUNT = _env_int("FEATURE_COUNT", 400)
SURVEY_RADIUS = 6.0
SURVEY_STEP_DISTANCE = 0.18

# Overlay colors
COLOR_BG = (20, 24, 28)
COLOR_FEATURE = (110, 110, 120)
COLOR_DISCOVERED = (240, 200, 60)
COLOR_HULL = (230, 40, 40)
COLOR_HULL_CENTER = (255, 255, 255)
COLOR_SURVEYOR = (70, 130, 180)
