"""
Render-only helpers (never affect simulation outcomes).
"""
