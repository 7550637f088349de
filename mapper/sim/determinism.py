"""
Seeded RNG streams for the survey simulation.

Hull systems use no randomness at all; only the survey world does (feature clusters
and feature placement). Each consumer gets its own stream derived from the run seed
and a tag, so adding draws in one place never shifts the sequence seen by another.
"""

from __future__ import annotations

import random
import zlib

_BASE_SEED: int = 1


def set_sim_seed(seed: int) -> None:
    """Set the run seed every stream is derived from (masked to 32 bits)."""
    global _BASE_SEED
    _BASE_SEED = int(seed) & 0xFFFFFFFF


def get_sim_seed() -> int:
    return _BASE_SEED


def stream_seed(tag: str) -> int:
    # crc32, not hash(): str hashes are salted per process.
    crc = zlib.crc32(str(tag).encode("utf-8")) & 0xFFFFFFFF
    return (_BASE_SEED ^ crc) & 0xFFFFFFFF


def get_rng(tag: str) -> random.Random:
    """A fresh RNG for `tag`; same seed + same tag always yields the same sequence."""
    return random.Random(stream_seed(tag))


def survey_rng(part: str) -> random.Random:
    """Stream for one part of survey world generation ("clusters", "features", ...)."""
    return get_rng(f"survey_world/{part}")
