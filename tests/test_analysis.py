"""Tests for column dissimilarity and strip width detection."""

from __future__ import annotations

import numpy as np
import pytest

from unshredder.analysis import ColumnDifferenceAnalyzer, detect_strip_width, probe_boundaries
from unshredder.errors import DivisionUndefined, WidthDetectionFailed
from unshredder.pixels import PixelBuffer
from unshredder.shredder import shred_image


# ---------------------------------------------------------------------------
# Synthetic image helpers
# ---------------------------------------------------------------------------


def _make_gradient(width: int, height: int = 24) -> np.ndarray:
    """Smooth horizontal gradient whose per-row channel sum is the same in every column.

    The column difference between any two columns is then proportional to their
    horizontal distance, which makes strip edges easy to reason about.
    """
    x = np.arange(width)
    y = np.arange(height)
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :, 0] = 40 + 2 * x
    img[:, :, 1] = 220 - 2 * x
    img[:, :, 2] = (60 + y)[:, None]
    return img


def _make_noise(width: int = 40, height: int = 16, seed: int = 42) -> np.ndarray:
    rng = np.random.RandomState(seed)
    return rng.randint(1, 256, (height, width, 3)).astype(np.uint8)


# ---------------------------------------------------------------------------
# Tests: column difference
# ---------------------------------------------------------------------------


class TestColumnDifference:
    def test_symmetric(self):
        analyzer = ColumnDifferenceAnalyzer(PixelBuffer(_make_noise()))
        for a, b in [(0, 1), (3, 17), (39, 5), (12, 12)]:
            assert analyzer.diff(a, b) == analyzer.diff(b, a)

    def test_identical_columns_score_zero(self):
        analyzer = ColumnDifferenceAnalyzer(PixelBuffer(_make_noise()))
        assert analyzer.diff(7, 7) == 0.0

    def test_known_value(self):
        img = np.zeros((5, 2, 3), dtype=np.uint8)
        img[:, 0] = (10, 20, 30)
        img[:, 1] = (20, 20, 10)
        analyzer = ColumnDifferenceAnalyzer(PixelBuffer(img))
        # |10-20| + 0 + |30-10| = 30 per row; normaliser 0.5 * (60 + 50) per row
        assert analyzer.diff(0, 1) == pytest.approx(30 / 55)

    def test_scale_invariant(self):
        img = _make_noise()
        doubled = img.astype(np.uint16) * 2
        plain = ColumnDifferenceAnalyzer(PixelBuffer(img))
        scaled = ColumnDifferenceAnalyzer(PixelBuffer(doubled))
        assert scaled.diff(2, 9) == pytest.approx(plain.diff(2, 9))

    def test_black_columns_undefined(self):
        analyzer = ColumnDifferenceAnalyzer(PixelBuffer(np.zeros((8, 8, 3), dtype=np.uint8)))
        with pytest.raises(DivisionUndefined) as excinfo:
            analyzer.diff(1, 2)
        assert isinstance(excinfo.value, ZeroDivisionError)
        assert (excinfo.value.column_a, excinfo.value.column_b) == (1, 2)

    def test_one_black_column_is_defined(self):
        img = _make_noise()
        img[:, 4] = 0
        analyzer = ColumnDifferenceAnalyzer(PixelBuffer(img))
        assert analyzer.diff(4, 5) > 0

    def test_boundary_profile_matches_pairwise_diff(self):
        analyzer = ColumnDifferenceAnalyzer(PixelBuffer(_make_noise(width=12)))
        profile = analyzer.boundary_profile()
        assert profile.shape == (11,)
        for i in range(1, 12):
            assert profile[i - 1] == pytest.approx(analyzer.diff(i - 1, i))

    def test_boundary_profile_reports_black_boundary(self):
        img = _make_noise(width=10)
        img[:, 5:7] = 0
        with pytest.raises(DivisionUndefined) as excinfo:
            ColumnDifferenceAnalyzer(PixelBuffer(img)).boundary_profile()
        assert (excinfo.value.column_a, excinfo.value.column_b) == (5, 6)


# ---------------------------------------------------------------------------
# Tests: strip width detection
# ---------------------------------------------------------------------------


class TestStripWidthDetection:
    @pytest.mark.parametrize("strip_width", [5, 6])
    def test_recovers_width_of_shuffled_strips(self, strip_width):
        original = _make_gradient(8 * strip_width)
        shredded, _ = shred_image(original, strip_width, permutation=[3, 7, 1, 5, 0, 6, 2, 4])
        assert detect_strip_width(PixelBuffer(shredded)) == strip_width

    def test_deterministic(self):
        shredded, _ = shred_image(_make_gradient(48), 6, permutation=[3, 7, 1, 5, 0, 6, 2, 4])
        buffer = PixelBuffer(shredded)
        assert detect_strip_width(buffer) == detect_strip_width(buffer)

    def test_probe_boundaries_strongest_first(self):
        profile = np.array([0.1, 0.9, 0.1, 0.5, 0.9, 0.2])
        # ties keep ascending column order
        assert probe_boundaries(profile, probe_depth=2) == [2, 5, 4]

    def test_unshredded_image_has_no_period(self):
        """A smooth, intact image has no dominant edges: gcd collapses to 1."""
        with pytest.raises(WidthDetectionFailed):
            detect_strip_width(PixelBuffer(_make_gradient(48)))

    def test_flat_image_fails(self):
        img = np.full((10, 30, 3), (90, 140, 30), dtype=np.uint8)
        with pytest.raises(WidthDetectionFailed):
            detect_strip_width(PixelBuffer(img))

    def test_black_image_fails(self):
        with pytest.raises(DivisionUndefined):
            detect_strip_width(PixelBuffer(np.zeros((10, 30, 3), dtype=np.uint8)))

    def test_too_few_columns(self):
        with pytest.raises(WidthDetectionFailed):
            detect_strip_width(PixelBuffer(_make_noise(width=4)), probe_depth=3)

    def test_zero_depth_returns_strongest_boundary(self):
        img = np.full((4, 24, 3), 100, dtype=np.uint8)
        img[:, 12:] = 200
        assert detect_strip_width(PixelBuffer(img), probe_depth=0) == 12

    def test_negative_depth_rejected(self):
        with pytest.raises(WidthDetectionFailed):
            detect_strip_width(PixelBuffer(_make_noise()), probe_depth=-1)

    def test_strips_left_in_pairs_report_double_width(self):
        """Adversarial: when originally adjacent strips stay together, every strong
        edge sits on a multiple of twice the true width and the heuristic returns a
        plausible but wrong width."""
        original = _make_gradient(60)
        shredded, _ = shred_image(original, 6, permutation=[4, 5, 0, 1, 8, 9, 2, 3, 6, 7])
        assert detect_strip_width(PixelBuffer(shredded)) == 12
