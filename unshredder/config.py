"""Defaults and runtime configuration for the unshredder."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# ---------------------------------------------------------------------------
# Heuristic defaults
# ---------------------------------------------------------------------------
# Number of extra boundaries folded into the GCD after the strongest one.
DEFAULT_PROBE_DEPTH = 3

# Matching rounds; round r uses every strip's r-th best left-neighbour guess.
DEFAULT_RANK_DEPTH = 3

# Seams scoring above this multiple of the median seam are flagged.
WEAK_SEAM_RATIO = 4.0


# ---------------------------------------------------------------------------
# File handling
# ---------------------------------------------------------------------------
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp"}

OUTPUT_SUFFIX = "_unshredded"
OVERLAY_SUFFIX = "_seams"


@dataclass
class UnshredConfig:
    """Knobs for a single reconstruction run."""

    probe_depth: int = DEFAULT_PROBE_DEPTH
    rank_depth: int = DEFAULT_RANK_DEPTH
    # Raise DegradedReconstruction instead of accepting cyclic links.
    strict: bool = False
    # Known strip width; skips detection when set.
    strip_width: Optional[int] = None

    def __post_init__(self):
        if self.probe_depth < 0:
            raise ValueError(f"probe_depth must be >= 0, got {self.probe_depth}")
        if self.rank_depth < 0:
            raise ValueError(f"rank_depth must be >= 0, got {self.rank_depth}")
        if self.strip_width is not None and self.strip_width < 1:
            raise ValueError(f"strip_width must be >= 1, got {self.strip_width}")


def default_output_path(source: Path, output_dir: Optional[Path] = None) -> Path:
    """``photo.png`` -> ``photo_unshredded.png`` beside the source or in ``output_dir``."""
    source = Path(source)
    parent = output_dir if output_dir is not None else source.parent
    return parent / f"{source.stem}{OUTPUT_SUFFIX}{source.suffix}"


def default_overlay_path(source: Path, output_dir: Optional[Path] = None) -> Path:
    source = Path(source)
    parent = output_dir if output_dir is not None else source.parent
    return parent / f"{source.stem}{OVERLAY_SUFFIX}{source.suffix}"
