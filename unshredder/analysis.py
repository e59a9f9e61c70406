"""
Column dissimilarity and strip width detection.

A shredded image shows strong discontinuities at every strip edge, and those
edges sit at multiples of the strip width.  The detector ranks every column
boundary by dissimilarity and recovers the width as the greatest common divisor
of the strongest boundary positions.
"""

from __future__ import annotations

import logging
import math
from functools import reduce
from typing import List, Optional

import numpy as np

from .config import DEFAULT_PROBE_DEPTH
from .errors import DivisionUndefined, WidthDetectionFailed
from .pixels import PixelBuffer

logger = logging.getLogger(__name__)


class ColumnDifferenceAnalyzer:
    """Brightness-normalised dissimilarity between image columns."""

    def __init__(self, buffer: PixelBuffer):
        self.buffer = buffer

    def diff(self, column_a: int, column_b: int) -> float:
        """
        Sum of per-channel absolute differences over all rows, divided by half
        the summed channel values of both columns.

        Raises:
            DivisionUndefined: both columns are completely black.
        """
        col_a = self.buffer.column(column_a)
        col_b = self.buffer.column(column_b)
        difference = np.abs(col_a - col_b).sum()
        normaliser = 0.5 * (col_a.sum() + col_b.sum())
        if normaliser == 0:
            raise DivisionUndefined(column_a, column_b)
        return float(difference / normaliser)

    def boundary_profile(self) -> np.ndarray:
        """
        Score every interior boundary in one pass.

        Element ``i - 1`` holds ``diff(i - 1, i)`` for ``i`` in ``1..width-1``.
        """
        channels = self.buffer.channels()
        if channels.shape[1] < 2:
            return np.zeros(0, dtype=np.float64)
        difference = np.abs(channels[:, 1:, :] - channels[:, :-1, :]).sum(axis=(0, 2))
        column_sums = channels.sum(axis=(0, 2))
        normaliser = 0.5 * (column_sums[:-1] + column_sums[1:])
        black = np.flatnonzero(normaliser == 0)
        if black.size:
            boundary = int(black[0]) + 1
            raise DivisionUndefined(boundary - 1, boundary)
        return difference / normaliser


def probe_boundaries(profile: np.ndarray, probe_depth: int = DEFAULT_PROBE_DEPTH) -> List[int]:
    """Boundary column indices of the ``probe_depth + 1`` strongest discontinuities."""
    # stable: equal scores keep ascending column order
    order = np.argsort(-profile, kind="stable")
    return [int(idx) + 1 for idx in order[: probe_depth + 1]]


def detect_strip_width(
    buffer: PixelBuffer,
    probe_depth: int = DEFAULT_PROBE_DEPTH,
    analyzer: Optional[ColumnDifferenceAnalyzer] = None,
) -> int:
    """
    Estimate the strip width with the GCD heuristic.

    Args:
        buffer: Shredded image
        probe_depth: Boundaries folded into the GCD after the strongest one

    Returns:
        Estimated strip width in columns

    Raises:
        WidthDetectionFailed: not enough boundaries, or the GCD is 0 or 1
        DivisionUndefined: a pair of adjacent columns is fully black
    """
    if probe_depth < 0:
        raise WidthDetectionFailed(f"probe_depth must be non-negative, got {probe_depth}")

    available = buffer.width - 1
    if available < probe_depth + 1:
        raise WidthDetectionFailed(
            f"Image is {buffer.width} columns wide; probe depth {probe_depth} "
            f"needs at least {probe_depth + 2} columns."
        )

    analyzer = analyzer or ColumnDifferenceAnalyzer(buffer)
    profile = analyzer.boundary_profile()
    probed = probe_boundaries(profile, probe_depth)
    width = reduce(math.gcd, probed)

    logger.debug(
        "Strongest boundaries: %s",
        ", ".join(f"{col} ({profile[col - 1]:.4f})" for col in probed),
    )

    if width <= 1:
        raise WidthDetectionFailed(
            f"Could not determine strip width: boundaries {probed} share no common "
            "period (gcd <= 1)."
        )

    logger.info("Detected strip width %d from boundaries %s", width, probed)
    return width
