"""
Score normalisation onto the shared 1-99 presentation band.

Brands are spread across the band by rank. Businesses are projected into the
empirical brand distribution so both populations land on one comparable axis
even though their raw formulas have nothing in common.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from .config import ScoringConfig

LOGGER = logging.getLogger(__name__)


def _as_array(raw_scores: Sequence[Optional[float]]) -> np.ndarray:
    arr = np.asarray([np.nan if score is None else score for score in raw_scores], dtype=float)
    # Unscorable entries sort below everything else.
    return np.where(np.isnan(arr), -np.inf, arr)


def _to_band(fraction: np.ndarray, config: ScoringConfig) -> List[int]:
    """Map ``fraction`` in [0, 1] linearly onto [band_min, band_max]."""
    span = config.band_max - config.band_min
    scaled = config.band_min + np.clip(fraction, 0.0, 1.0) * span
    return [int(v) for v in np.floor(scaled + 0.5)]


def self_normalize(raw_scores: Sequence[Optional[float]], config: Optional[ScoringConfig] = None) -> List[int]:
    """
    Spread a population across the band by rank.

    The highest raw score maps to ``band_max`` and the lowest to ``band_min``,
    linearly in rank position. Equal raw scores keep catalog order, so the
    earlier entry takes the better position. Output is returned in input order.

    Args:
        raw_scores: Raw scores in catalog order
        config: Scoring coefficients (band limits)

    Returns:
        List of integer alignment scores, same length and order as the input
    """
    config = config or ScoringConfig()
    n = len(raw_scores)
    if n == 0:
        return []
    if n == 1:
        return _to_band(np.array([0.5]), config)

    arr = _as_array(raw_scores)
    order = np.argsort(-arr, kind="stable")
    positions = np.empty(n, dtype=float)
    positions[order] = np.arange(n)
    return _to_band(1.0 - positions / (n - 1), config)


def reference_percentiles(raw_scores: Sequence[Optional[float]], reference: Sequence[float]) -> np.ndarray:
    """
    Percentile of each score inside the sorted reference distribution.

    This is the fraction of reference values a score would exceed if inserted
    into the sorted reference; equal reference values are not exceeded.
    """
    ref = np.sort(np.asarray(reference, dtype=float))
    values = _as_array(raw_scores)
    return np.searchsorted(ref, values, side="left") / len(ref)


def project_onto_reference(
    raw_scores: Sequence[Optional[float]],
    reference: Sequence[Optional[float]],
    config: Optional[ScoringConfig] = None,
) -> List[int]:
    """
    Normalise one population against another population's distribution.

    Args:
        raw_scores: Raw scores to normalise (e.g. business similarity scores)
        reference: Raw scores defining the distribution (e.g. brand scores)
        config: Scoring coefficients (band limits)

    Returns:
        Integer alignment scores in input order. Falls back to
        :func:`self_normalize` on ``raw_scores`` when the reference holds no
        usable scores.
    """
    config = config or ScoringConfig()
    if not raw_scores:
        return []
    usable = [score for score in reference if score is not None and np.isfinite(score)]
    if not usable:
        LOGGER.debug("Empty reference distribution; self-normalizing %d scores", len(raw_scores))
        return self_normalize(raw_scores, config)
    return _to_band(reference_percentiles(raw_scores, usable), config)
