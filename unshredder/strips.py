"""Strip partitioning and left-neighbour ranking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Sequence, Tuple

from .analysis import ColumnDifferenceAnalyzer
from .errors import InvalidStripCount
from .pixels import PixelBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Strip:
    """One vertical slice; ``left`` and ``right`` are inclusive column bounds."""

    left: int
    right: int

    @property
    def width(self) -> int:
        return self.right - self.left + 1

    def as_tuple(self) -> Tuple[int, int]:
        return (self.left, self.right)


class Candidate(NamedTuple):
    """A possible left neighbour: arena index of the strip and its edge score."""

    index: int
    score: float


RankedCandidates = Tuple[Candidate, ...]


def partition_strips(buffer: PixelBuffer, width: int) -> List[Strip]:
    """Cut the image into contiguous strips of ``width`` columns, left to right."""
    if width < 1:
        raise InvalidStripCount(f"Strip width must be positive, got {width}")

    num_strips = buffer.width // width
    if num_strips < 2:
        raise InvalidStripCount(
            f"Strip width {width} leaves {num_strips} strip(s) in a "
            f"{buffer.width}-column image; need at least 2."
        )

    remainder = buffer.width - num_strips * width
    if remainder:
        logger.info("Dropping %d trailing column(s) that do not fill a strip", remainder)

    return [Strip(i * width, (i + 1) * width - 1) for i in range(num_strips)]


def rank_left_neighbors(
    index: int, strips: Sequence[Strip], analyzer: ColumnDifferenceAnalyzer
) -> RankedCandidates:
    """
    Rank every other strip by how well its right edge meets this strip's left edge.

    Sorted ascending by score; ties keep arena order.
    """
    strip = strips[index]
    candidates = [
        Candidate(other_index, analyzer.diff(strip.left, other.right))
        for other_index, other in enumerate(strips)
        if other_index != index
    ]
    candidates.sort(key=lambda candidate: candidate.score)
    return tuple(candidates)


def rank_all(strips: Sequence[Strip], analyzer: ColumnDifferenceAnalyzer) -> List[RankedCandidates]:
    ranked = [rank_left_neighbors(i, strips, analyzer) for i in range(len(strips))]
    logger.debug("Ranked %d strips against %d candidates each", len(strips), max(len(strips) - 1, 0))
    return ranked
