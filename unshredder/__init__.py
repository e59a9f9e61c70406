"""Public interface for the unshredder: reassemble images cut into shuffled vertical strips."""

from __future__ import annotations

from .analysis import ColumnDifferenceAnalyzer, detect_strip_width
from .chain import ChainReconstructor, ChainResult
from .config import UnshredConfig
from .errors import (
    DegradedReconstruction,
    DivisionUndefined,
    InvalidStripCount,
    UnshredError,
    WidthDetectionFailed,
)
from .pixels import PixelBuffer
from .reconstructor import (
    ShredReconstructor,
    build_seam_diagnostics,
    compose_strips,
    create_seam_overlay,
    unshred_file,
)
from .shredder import shred_image
from .strips import Candidate, Strip, partition_strips, rank_all, rank_left_neighbors

__all__ = [
    "Candidate",
    "ChainReconstructor",
    "ChainResult",
    "ColumnDifferenceAnalyzer",
    "DegradedReconstruction",
    "DivisionUndefined",
    "InvalidStripCount",
    "PixelBuffer",
    "ShredReconstructor",
    "Strip",
    "UnshredConfig",
    "UnshredError",
    "WidthDetectionFailed",
    "build_seam_diagnostics",
    "compose_strips",
    "create_seam_overlay",
    "detect_strip_width",
    "partition_strips",
    "rank_all",
    "rank_left_neighbors",
    "shred_image",
    "unshred_file",
]
