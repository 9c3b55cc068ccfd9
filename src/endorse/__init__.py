"""
Value-alignment ranking engine.

The package provides utilities for:
    * scoring brands against per-value rank lists,
    * scoring local businesses by stance agreement with a user's causes,
    * normalising both populations onto one comparable 1-99 scale,
    * filtering businesses by distance and assembling sorted result sets.

Everything runs against an in-memory catalog snapshot loaded from CSVs or
Supabase; the engine itself performs no I/O.
"""

from __future__ import annotations

from typing import Any

__all__ = ["run_pipeline"]


def run_pipeline(*args: Any, **kwargs: Any):
    """Lazy wrapper so importing endorse doesn't pull heavy deps immediately."""

    from .pipeline import run_pipeline as _run_pipeline

    return _run_pipeline(*args, **kwargs)
