"""
Shredded Image Reconstruction Pipeline

Ties width detection, partitioning, neighbour ranking and chain reconstruction
together, then composes the reordered strips into an output canvas.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from .analysis import ColumnDifferenceAnalyzer, detect_strip_width, probe_boundaries
from .chain import ChainReconstructor, ChainResult
from .config import WEAK_SEAM_RATIO, UnshredConfig, default_output_path
from .pixels import PixelBuffer
from .strips import RankedCandidates, Strip, partition_strips, rank_all

logger = logging.getLogger(__name__)

LINKED_SEAM_COLOR = (0, 255, 0)
BROKEN_SEAM_COLOR = (255, 0, 0)


class ShredReconstructor:
    """
    Reassemble an image whose equal-width vertical strips were shuffled.

    Pipeline:
    1. Strip width detection (GCD of the strongest column discontinuities)
    2. Partitioning into strips and all-pairs left-neighbour ranking
    3. Greedy multi-round matching and linearization into one order
    """

    def __init__(
        self,
        image_path: Optional[str] = None,
        image: Optional[np.ndarray] = None,
        config: Optional[UnshredConfig] = None,
    ):
        if image_path is None and image is None:
            raise ValueError("Either image_path or image must be provided.")
        self.image_path = image_path
        self.buffer: Optional[PixelBuffer] = PixelBuffer(image) if image is not None else None
        self.config = config or UnshredConfig()
        self.analyzer: Optional[ColumnDifferenceAnalyzer] = None
        self.strip_width: Optional[int] = None
        self.strips: List[Strip] = []
        self.ranked: List[RankedCandidates] = []
        self.chain: Optional[ChainResult] = None
        self.last_metrics: Optional[dict] = None

    def _ensure_image_loaded(self) -> PixelBuffer:
        if self.buffer is None:
            self.buffer = PixelBuffer.open(self.image_path)
        return self.buffer

    def run(self) -> np.ndarray:
        """Execute the pipeline and return the reassembled image."""
        buffer = self._ensure_image_loaded()
        label = self.image_path or "<in-memory image>"
        logger.info("Processing %s (%dx%d)", label, buffer.width, buffer.height)

        self.analyzer = ColumnDifferenceAnalyzer(buffer)
        if self.config.strip_width:
            self.strip_width = self.config.strip_width
            logger.info("Using configured strip width %d", self.strip_width)
        else:
            self.strip_width = detect_strip_width(
                buffer, probe_depth=self.config.probe_depth, analyzer=self.analyzer
            )

        self.strips = partition_strips(buffer, self.strip_width)
        logger.info("Strip width %d, %d strips", self.strip_width, len(self.strips))

        self.ranked = rank_all(self.strips, self.analyzer)
        chain = ChainReconstructor(
            self.ranked, rank_depth=self.config.rank_depth, strict=self.config.strict
        )
        self.chain = chain.reconstruct()

        diagnostics = build_seam_diagnostics(self.analyzer, self.strips, self.chain)
        self.last_metrics = diagnostics["metrics"]
        return compose_strips(buffer.array, self.strips, self.chain.order)

    @property
    def ordered_strips(self) -> List[Strip]:
        if self.chain is None:
            return []
        return [self.strips[i] for i in self.chain.order]

    def column_ranges(self) -> List[Tuple[int, int]]:
        """Inferred order as inclusive ``(left, right)`` source column ranges."""
        return [strip.as_tuple() for strip in self.ordered_strips]

    def debug_width_detection(self, save_dir=None):
        """
        Save a plot of the boundary dissimilarity profile for this image.

        Probed boundaries are marked, and multiples of the detected width are
        drawn as a light grid.
        """
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        buffer = self._ensure_image_loaded()
        analyzer = self.analyzer or ColumnDifferenceAnalyzer(buffer)
        profile = analyzer.boundary_profile()
        probed = probe_boundaries(profile, self.config.probe_depth)
        columns = np.arange(1, buffer.width)

        fig, ax = plt.subplots(figsize=(10, 4))
        ax.plot(columns, profile, linewidth=0.8)
        ax.scatter(probed, [profile[col - 1] for col in probed], color="red", zorder=3,
                   label="probed boundaries")
        if self.strip_width:
            for x in range(self.strip_width, buffer.width, self.strip_width):
                ax.axvline(x, color="gray", alpha=0.3, linewidth=0.6)
        ax.set_xlabel("Boundary column")
        ax.set_ylabel("Column difference")
        name = os.path.basename(self.image_path) if self.image_path else "in_memory"
        ax.set_title(f"Width debug: {name} (width={self.strip_width})")
        ax.legend(loc="upper right")
        fig.tight_layout()
        if save_dir:
            os.makedirs(save_dir, exist_ok=True)
            plot_path = os.path.join(save_dir, f"{Path(name).stem}_width_debug.png")
            fig.savefig(plot_path)
            plt.close(fig)
            return plot_path
        plt.show()
        return None


def compose_strips(image: np.ndarray, strips: Sequence[Strip], order: Sequence[int]) -> np.ndarray:
    """Copy strips side by side in ``order``; trailing remainder columns are not included."""
    return np.concatenate([image[:, strips[i].left : strips[i].right + 1] for i in order], axis=1)


def build_seam_diagnostics(
    analyzer: ColumnDifferenceAnalyzer, strips: Sequence[Strip], chain: ChainResult
) -> Dict[str, object]:
    """Score every seam of the output order and summarise how trustworthy it is."""
    order = chain.order
    seams: List[dict] = []
    for position in range(len(order) - 1):
        left, right = order[position], order[position + 1]
        seams.append(
            {
                "position": position,
                "left_strip": left,
                "right_strip": right,
                "score": analyzer.diff(strips[left].right, strips[right].left),
                "linked": chain.right_neighbor_of[left] == right,
            }
        )

    scores = np.array([seam["score"] for seam in seams], dtype=np.float64)
    mean_score = float(scores.mean()) if scores.size else 0.0
    weakest = float(scores.max()) if scores.size else 0.0
    median = float(np.median(scores)) if scores.size else 0.0

    warnings: List[str] = list(chain.warnings)
    broken = [seam["position"] for seam in seams if not seam["linked"]]
    if broken:
        warnings.append(f"{len(broken)} seam(s) not backed by a matched link at {broken}.")
    if median > 0:
        weak = [seam["position"] for seam in seams if seam["score"] > WEAK_SEAM_RATIO * median]
        if weak:
            warnings.append(f"Weak seams at positions {weak}.")

    metrics = {
        "strip_width": strips[0].width if strips else 0,
        "strip_count": len(strips),
        "sections": len(chain.sections),
        "cycles": len(chain.cycles),
        "mean_seam_score": mean_score,
        "weakest_seam_score": weakest,
        "warnings": warnings,
    }
    return {"seams": seams, "metrics": metrics}


def create_seam_overlay(
    image: np.ndarray, strips: Sequence[Strip], chain: ChainResult
) -> np.ndarray:
    """Reassembled image with seams drawn green (matched link) or red (section break)."""
    composed = compose_strips(image, strips, chain.order)
    overlay = np.ascontiguousarray(np.clip(composed, 0, 255).astype(np.uint8))
    height = overlay.shape[0]
    x = 0
    for position in range(len(chain.order) - 1):
        left = chain.order[position]
        x += strips[left].width
        linked = chain.right_neighbor_of[left] == chain.order[position + 1]
        color = LINKED_SEAM_COLOR if linked else BROKEN_SEAM_COLOR
        cv2.line(overlay, (x, 0), (x, height - 1), color, 1)
    return overlay


def unshred_file(
    source: Union[str, Path],
    destination: Optional[Union[str, Path]] = None,
    config: Optional[UnshredConfig] = None,
) -> Path:
    """Reassemble ``source`` and write it to ``destination`` (default ``<stem>_unshredded``)."""
    source = Path(source)
    destination = Path(destination) if destination else default_output_path(source)
    reconstructor = ShredReconstructor(str(source), config=config)
    result = reconstructor.run()
    Image.fromarray(result).save(destination)
    logger.info("Saved %s", destination)
    return destination
