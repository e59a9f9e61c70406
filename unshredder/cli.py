"""
Batch command line interface for the unshredder.

Usage examples
--------------

Reassemble one image next to the source (``photo_unshredded.png``)::

    python -m unshredder.cli photo.png

Reassemble a single file to an explicit path::

    python -m unshredder.cli photo.png -o restored.png

Process a directory with a known strip width and no seam overlays::

    python -m unshredder.cli shredded/ --output-dir restored --strip-width 32 --skip-overlays
"""

from __future__ import annotations

import argparse
import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from PIL import Image

from .config import (
    DEFAULT_PROBE_DEPTH,
    DEFAULT_RANK_DEPTH,
    IMAGE_EXTENSIONS,
    UnshredConfig,
    default_output_path,
    default_overlay_path,
)
from .errors import UnshredError
from .reconstructor import ShredReconstructor, create_seam_overlay

logger = logging.getLogger("unshredder")


@dataclass
class BatchConfig:
    """Runtime configuration derived from CLI arguments."""

    inputs: Sequence[Path]
    output: Optional[Path]
    output_dir: Optional[Path]
    unshred: UnshredConfig
    save_overlays: bool
    width_debug_dir: Optional[Path]
    metrics_path: Optional[Path]


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _gather_images(sources: Sequence[Path], recursive: bool) -> List[Path]:
    """Collect candidate image files from the provided locations."""
    seen: set = set()
    images: List[Path] = []

    for source in sources:
        if source.is_dir():
            iterator: Iterable[Path]
            iterator = source.rglob("*") if recursive else source.iterdir()
            for candidate in iterator:
                if not candidate.is_file():
                    continue
                if candidate.suffix.lower() not in IMAGE_EXTENSIONS:
                    continue
                resolved = candidate.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                images.append(resolved)
        elif source.is_file():
            if source.suffix.lower() not in IMAGE_EXTENSIONS:
                logger.warning("Skipping unsupported file: %s", source)
                continue
            resolved = source.resolve()
            if resolved not in seen:
                seen.add(resolved)
                images.append(resolved)
        else:
            logger.warning("%s does not exist.", source)

    images.sort()
    return images


def _ensure_dir(path: Optional[Path]) -> Optional[Path]:
    if path is None:
        return None
    path.mkdir(parents=True, exist_ok=True)
    return path


def _process_single_image(image_path: Path, cfg: BatchConfig) -> Optional[dict]:
    """Reassemble one image and persist its artefacts."""
    reconstructor = ShredReconstructor(str(image_path), config=cfg.unshred)
    try:
        result = reconstructor.run()
    except (UnshredError, ValueError) as exc:
        logger.error("Failed to unshred %s: %s", image_path.name, exc)
        return None

    output_path = cfg.output or default_output_path(image_path, cfg.output_dir)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(result).save(output_path)

    overlay_path: Optional[Path] = None
    if cfg.save_overlays:
        overlay = create_seam_overlay(reconstructor.buffer.array, reconstructor.strips, reconstructor.chain)
        overlay_path = default_overlay_path(image_path, cfg.output_dir or output_path.parent)
        Image.fromarray(overlay).save(overlay_path)

    if cfg.width_debug_dir:
        reconstructor.debug_width_detection(save_dir=str(cfg.width_debug_dir))

    metrics = reconstructor.last_metrics or {}
    warnings = metrics.get("warnings", []) or []
    if warnings:
        logger.warning("%s: %s", image_path.name, " | ".join(warnings))
    else:
        logger.info(
            "%s: width=%d strips=%d -> %s",
            image_path.name,
            reconstructor.strip_width,
            len(reconstructor.strips),
            output_path,
        )

    dropped = reconstructor.buffer.width - reconstructor.strip_width * len(reconstructor.strips)
    return {
        "image": image_path.name,
        "strip_width": reconstructor.strip_width,
        "strip_count": len(reconstructor.strips),
        "dropped_columns": dropped,
        "sections": metrics.get("sections", 0),
        "cycles": metrics.get("cycles", 0),
        "mean_seam_score": round(metrics.get("mean_seam_score", 0.0), 4),
        "weakest_seam_score": round(metrics.get("weakest_seam_score", 0.0), 4),
        "warnings": " | ".join(warnings),
        "output_path": str(output_path),
        "overlay_path": str(overlay_path) if overlay_path else "",
    }


def _write_metrics_csv(metrics: List[dict], path: Path) -> None:
    fieldnames = [
        "image",
        "strip_width",
        "strip_count",
        "dropped_columns",
        "sections",
        "cycles",
        "mean_seam_score",
        "weakest_seam_score",
        "warnings",
        "output_path",
        "overlay_path",
    ]
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(metrics)
    logger.info("Metrics written to %s", path)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reassemble images cut into shuffled vertical strips.")
    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="Image files or directories to process.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file (single input only; default: <name>_unshredded<ext>).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for reassembled images (default: next to each source).",
    )
    parser.add_argument(
        "--probe-depth",
        type=int,
        default=DEFAULT_PROBE_DEPTH,
        help=f"Extra boundaries folded into the width GCD (default: {DEFAULT_PROBE_DEPTH}).",
    )
    parser.add_argument(
        "--rank-depth",
        type=int,
        default=DEFAULT_RANK_DEPTH,
        help=f"Neighbour matching rounds (default: {DEFAULT_RANK_DEPTH}).",
    )
    parser.add_argument(
        "--strip-width",
        type=int,
        help="Skip width detection and use this strip width.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail instead of accepting cyclic neighbour links.",
    )
    parser.add_argument(
        "--skip-overlays",
        action="store_true",
        help="Do not export seam overlay images.",
    )
    parser.add_argument(
        "--width-debug",
        action="store_true",
        help="Export boundary profile plots to <output>/width_debug/.",
    )
    parser.add_argument(
        "--width-debug-dir",
        type=Path,
        help="Custom directory for boundary profile plots.",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="When inputs include directories, walk them recursively.",
    )
    parser.add_argument(
        "--metrics-path",
        type=Path,
        help="Write a CSV summary to the provided path (defaults to <output>/metrics.csv).",
    )
    parser.add_argument(
        "--no-metrics",
        action="store_true",
        help="Do not emit the metrics CSV.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.debug)

    try:
        unshred_cfg = UnshredConfig(
            probe_depth=args.probe_depth,
            rank_depth=args.rank_depth,
            strict=args.strict,
            strip_width=args.strip_width,
        )
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    images = _gather_images(args.inputs, recursive=args.recursive)
    if not images:
        logger.error("No matching images found.")
        return 1
    if args.output and len(images) > 1:
        logger.error("--output accepts a single input; use --output-dir for %d images.", len(images))
        return 1

    output_dir = _ensure_dir(args.output_dir.resolve()) if args.output_dir else None
    report_dir = output_dir or (args.output.resolve().parent if args.output else images[0].parent)

    width_debug_dir: Optional[Path]
    if args.width_debug_dir:
        width_debug_dir = _ensure_dir(args.width_debug_dir.resolve())
    elif args.width_debug:
        width_debug_dir = _ensure_dir(report_dir / "width_debug")
    else:
        width_debug_dir = None

    metrics_path: Optional[Path]
    if args.no_metrics:
        metrics_path = None
    else:
        metrics_path = args.metrics_path.resolve() if args.metrics_path else report_dir / "metrics.csv"

    cfg = BatchConfig(
        inputs=images,
        output=args.output.resolve() if args.output else None,
        output_dir=output_dir,
        unshred=unshred_cfg,
        save_overlays=not args.skip_overlays,
        width_debug_dir=width_debug_dir,
        metrics_path=metrics_path,
    )

    logger.info("Found %d image(s) to process", len(images))
    records: List[dict] = []
    failures = 0
    for image_path in images:
        record = _process_single_image(image_path, cfg)
        if record is None:
            failures += 1
        else:
            records.append(record)

    if records and cfg.metrics_path:
        _write_metrics_csv(records, cfg.metrics_path)

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
