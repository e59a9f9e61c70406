"""Exception taxonomy for strip width detection and reassembly."""

from __future__ import annotations


class UnshredError(Exception):
    """Base class for every failure raised by the unshredder core."""


class DivisionUndefined(UnshredError, ZeroDivisionError):
    """A column pair has a zero brightness normaliser (fully black columns)."""

    def __init__(self, column_a: int, column_b: int):
        super().__init__(
            f"Column difference undefined for columns {column_a} and {column_b}: "
            "both columns are black, no edge signal."
        )
        self.column_a = column_a
        self.column_b = column_b


class WidthDetectionFailed(UnshredError):
    """The GCD heuristic found no periodic edge signal."""


class InvalidStripCount(UnshredError):
    """Partitioning produced fewer than two strips."""


class DegradedReconstruction(UnshredError):
    """A link cycle was cut during linearization; the order is a best guess."""

    def __init__(self, cycle):
        cycle = list(cycle)
        super().__init__(
            "Cyclic right-neighbour links among strips "
            f"{cycle}; order inside the cycle is not guaranteed."
        )
        self.cycle = cycle
