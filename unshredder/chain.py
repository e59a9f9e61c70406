"""
Greedy chain reconstruction.

Turns per-strip ranked left-neighbour guesses into a single left-to-right order
in two phases:

1. Matching: over ``rank_depth`` rounds, every strip still lacking a right
   neighbour takes the strongest bidder among the strips that rank it r-th.
2. Linearization: follow the right-neighbour links from every unplaced strip
   and splice each walked section into the global order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .config import DEFAULT_RANK_DEPTH
from .errors import DegradedReconstruction
from .strips import Candidate

logger = logging.getLogger(__name__)


@dataclass
class ChainResult:
    """Outcome of one reconstruction: the order plus the links it came from."""

    order: List[int]
    right_neighbor_of: List[Optional[int]]
    cycles: List[List[int]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def section_breaks(self) -> List[int]:
        """Output positions ``i`` where ``order[i] -> order[i + 1]`` is not a matched link."""
        return [
            i
            for i in range(len(self.order) - 1)
            if self.right_neighbor_of[self.order[i]] != self.order[i + 1]
        ]

    @property
    def sections(self) -> List[List[int]]:
        """Maximal runs of the output that are joined by matched links."""
        runs: List[List[int]] = []
        start = 0
        for brk in self.section_breaks:
            runs.append(self.order[start : brk + 1])
            start = brk + 1
        if self.order:
            runs.append(self.order[start:])
        return runs

    @property
    def degraded(self) -> bool:
        return bool(self.cycles)


class ChainReconstructor:
    """Assign right neighbours from ranked candidates and linearize the result."""

    def __init__(
        self,
        ranked: Sequence[Sequence[Candidate]],
        rank_depth: int = DEFAULT_RANK_DEPTH,
        strict: bool = False,
    ):
        if rank_depth < 0:
            raise ValueError(f"rank_depth must be >= 0, got {rank_depth}")
        self.ranked = [tuple(candidates) for candidates in ranked]
        self.rank_depth = rank_depth
        self.strict = strict
        count = len(self.ranked)
        self.right_neighbor_of: List[Optional[int]] = [None] * count
        # True once some strip has taken this one as its right neighbour
        self._claimed: List[bool] = [False] * count
        self.cycles: List[List[int]] = []
        self.warnings: List[str] = []
        self._matched = False

    # ------------------------------ matching ------------------------------

    def _best_bidder(self, strip: int, rank: int) -> Optional[int]:
        """Unclaimed strip whose ``rank``-th left-neighbour guess is ``strip``, lowest score wins."""
        best: Optional[int] = None
        best_score = 0.0
        for bidder, candidates in enumerate(self.ranked):
            if bidder == strip or self._claimed[bidder] or rank >= len(candidates):
                continue
            candidate = candidates[rank]
            if candidate.index != strip:
                continue
            # strict comparison: first bidder found wins ties
            if best is None or candidate.score < best_score:
                best = bidder
                best_score = candidate.score
        return best

    def match(self) -> List[Optional[int]]:
        """Run the matching rounds; returns the right-neighbour link array."""
        if self._matched:
            return self.right_neighbor_of
        self._matched = True

        unassigned = list(range(len(self.ranked)))
        for rank in range(self.rank_depth):
            if len(unassigned) <= 1:
                break
            remaining = len(unassigned)
            still_unassigned: List[int] = []
            for strip in unassigned:
                # the last unmatched strip is the image's right edge
                bidder = self._best_bidder(strip, rank) if remaining > 1 else None
                if bidder is None:
                    still_unassigned.append(strip)
                    continue
                self.right_neighbor_of[strip] = bidder
                self._claimed[bidder] = True
                remaining -= 1
            logger.debug(
                "Rank %d: matched %d strip(s), %d left without a right neighbour",
                rank,
                len(unassigned) - len(still_unassigned),
                len(still_unassigned),
            )
            unassigned = still_unassigned

        if len(unassigned) > 1:
            logger.info(
                "%d strips have no right neighbour after %d round(s): %s",
                len(unassigned),
                self.rank_depth,
                unassigned,
            )
        return self.right_neighbor_of

    # ---------------------------- linearization ----------------------------

    def _report_cycle(self, cycle: List[int]) -> None:
        self.cycles.append(cycle)
        error = DegradedReconstruction(cycle)
        if self.strict:
            raise error
        logger.warning("%s", error)
        self.warnings.append(str(error))

    def linearize(self) -> List[int]:
        """Walk the links from every unplaced strip and splice the sections together."""
        placed = [False] * len(self.ranked)
        order: List[int] = []
        self.cycles = []
        self.warnings = []

        for start in range(len(self.ranked)):
            if placed[start]:
                continue
            section = [start]
            in_section = {start}
            current = start
            while True:
                neighbor = self.right_neighbor_of[current]
                if neighbor is None:
                    order.extend(section)
                    break
                if neighbor in in_section:
                    self._report_cycle(section[section.index(neighbor) :])
                    order.extend(section)
                    break
                if placed[neighbor]:
                    # links are injective, so a placed neighbour heads its section
                    at = order.index(neighbor)
                    order[at:at] = section
                    break
                section.append(neighbor)
                in_section.add(neighbor)
                current = neighbor
            for strip in section:
                placed[strip] = True

        return order

    def reconstruct(self) -> ChainResult:
        self.match()
        order = self.linearize()
        result = ChainResult(
            order=order,
            right_neighbor_of=list(self.right_neighbor_of),
            cycles=[list(cycle) for cycle in self.cycles],
            warnings=list(self.warnings),
        )
        logger.info(
            "Reassembled %d strips into %d section(s)", len(order), len(result.sections)
        )
        return result
