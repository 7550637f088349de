"""
Determinism-friendly simulation helpers.

This package intentionally contains *small* primitives (seeded RNG, data contracts,
locked tunables) so hull systems never reach for wall-clock time or the global `random`.
"""
