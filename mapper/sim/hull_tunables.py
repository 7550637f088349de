"""
Hull job tunables (locked).

Purpose:
- Provide a single, cycle-free place for systems/tools/tests to import the *same* constants.
- Keep units explicit and determinism-friendly (no wall-clock; values are plain numbers).

Runtime knobs that are expected to vary per deployment (cadence, budgets) live in `config.py`.
"""

from __future__ import annotations

import math

# -----------------------------
# k-nearest neighbour trace
# -----------------------------

# Smallest neighbour count the trace may use.
MIN_K: int = 3

# Default escalation ceiling when a caller does not pass one (further capped by point count).
DEFAULT_MAX_K: int = 25

# Build micro-steps allowed per attempt before it is treated as failed.
GUARD_LIMIT: int = 10000

# Reference direction for the first edge out of the lowest point ("west").
INITIAL_DIRECTION: tuple[float, float] = (-1.0, 0.0)


# -----------------------------
# Numerics
# -----------------------------

# Substituted for zero denominators on horizontal edges during ray casting.
RAY_EPSILON: float = 1e-12

TWO_PI: float = 2.0 * math.pi


# -----------------------------
# Fingerprint hashing
# -----------------------------

HASH_PRIME_X: int = 73856093
HASH_PRIME_Y: int = 19349663
HASH_GOLDEN: int = 0x9E3779B1
HASH_MASK: int = 0xFFFFFFFF
