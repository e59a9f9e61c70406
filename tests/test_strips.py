"""Tests for the pixel buffer, strip partitioning and neighbour ranking."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from unshredder.analysis import ColumnDifferenceAnalyzer
from unshredder.errors import InvalidStripCount
from unshredder.pixels import PixelBuffer
from unshredder.strips import Candidate, Strip, partition_strips, rank_all, rank_left_neighbors


def _make_gradient(width: int, height: int = 24) -> np.ndarray:
    x = np.arange(width)
    y = np.arange(height)
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :, 0] = 40 + 2 * x
    img[:, :, 1] = 220 - 2 * x
    img[:, :, 2] = (60 + y)[:, None]
    return img


# ---------------------------------------------------------------------------
# Tests: pixel buffer
# ---------------------------------------------------------------------------


class TestPixelBuffer:
    def test_dimensions_and_pixel_access(self):
        buffer = PixelBuffer(_make_gradient(10, height=4))
        assert (buffer.width, buffer.height) == (10, 4)
        assert buffer.pixel_at(3, 2) == (46, 214, 62)

    def test_grayscale_expanded_to_rgb(self):
        gray = np.arange(12, dtype=np.uint8).reshape(3, 4)
        buffer = PixelBuffer(gray)
        assert buffer.array.shape == (3, 4, 3)
        assert buffer.pixel_at(1, 2) == (9, 9, 9)

    def test_alpha_dropped(self):
        rgba = np.full((2, 3, 4), (10, 20, 30, 0), dtype=np.uint8)
        assert PixelBuffer(rgba).pixel_at(0, 0) == (10, 20, 30)

    def test_buffer_is_read_only(self):
        source = _make_gradient(6)
        buffer = PixelBuffer(source)
        source[:] = 0
        assert buffer.pixel_at(0, 0) != (0, 0, 0)
        with pytest.raises(ValueError):
            buffer.array[0, 0] = (1, 2, 3)

    def test_column_bounds(self):
        buffer = PixelBuffer(_make_gradient(6))
        assert buffer.column(5).shape == (24, 3)
        with pytest.raises(IndexError):
            buffer.column(6)

    def test_open_converts_to_rgb(self, tmp_path):
        path = tmp_path / "palette.png"
        Image.fromarray(_make_gradient(8)).convert("P").save(path)
        buffer = PixelBuffer.open(path)
        assert buffer.array.shape == (24, 8, 3)
        assert buffer.source == str(path)

    def test_open_rejects_non_images(self, tmp_path):
        path = tmp_path / "notes.png"
        path.write_text("not an image")
        with pytest.raises(ValueError):
            PixelBuffer.open(path)


# ---------------------------------------------------------------------------
# Tests: partitioning
# ---------------------------------------------------------------------------


class TestPartition:
    def test_contiguous_strips(self):
        strips = partition_strips(PixelBuffer(_make_gradient(48)), 6)
        assert len(strips) == 8
        assert strips[0] == Strip(0, 5)
        assert strips[-1] == Strip(42, 47)
        for left, right in zip(strips, strips[1:]):
            assert right.left == left.right + 1
        assert all(strip.width == 6 for strip in strips)

    def test_remainder_columns_dropped(self):
        strips = partition_strips(PixelBuffer(_make_gradient(50)), 6)
        assert len(strips) == 8
        assert strips[-1].right == 47

    def test_single_strip_rejected(self):
        with pytest.raises(InvalidStripCount):
            partition_strips(PixelBuffer(_make_gradient(11)), 6)

    def test_non_positive_width_rejected(self):
        with pytest.raises(InvalidStripCount):
            partition_strips(PixelBuffer(_make_gradient(12)), 0)


# ---------------------------------------------------------------------------
# Tests: ranking
# ---------------------------------------------------------------------------


class TestRanking:
    def test_true_left_neighbour_ranks_first(self):
        buffer = PixelBuffer(_make_gradient(48))
        strips = partition_strips(buffer, 6)
        ranked = rank_all(strips, ColumnDifferenceAnalyzer(buffer))

        assert len(ranked) == 8
        for index, candidates in enumerate(ranked):
            assert len(candidates) == 7
            assert index not in [c.index for c in candidates]
            scores = [c.score for c in candidates]
            assert scores == sorted(scores)
        for index in range(1, 8):
            assert ranked[index][0].index == index - 1
        # the leftmost strip has no true neighbour; the closest colour wins
        assert ranked[0][0].index == 1

    def test_score_compares_left_edge_with_candidate_right_edge(self):
        buffer = PixelBuffer(_make_gradient(24))
        strips = partition_strips(buffer, 6)
        analyzer = ColumnDifferenceAnalyzer(buffer)
        ranked = rank_left_neighbors(2, strips, analyzer)
        by_index = {c.index: c.score for c in ranked}
        assert by_index[1] == analyzer.diff(strips[2].left, strips[1].right)
        assert by_index[3] == analyzer.diff(strips[2].left, strips[3].right)

    def test_ties_keep_arena_order(self):
        buffer = PixelBuffer(np.full((4, 20, 3), 128, dtype=np.uint8))
        strips = partition_strips(buffer, 4)
        ranked = rank_left_neighbors(2, strips, ColumnDifferenceAnalyzer(buffer))
        assert ranked == (
            Candidate(0, 0.0),
            Candidate(1, 0.0),
            Candidate(3, 0.0),
            Candidate(4, 0.0),
        )
