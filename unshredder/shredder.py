"""Synthetic shredding for tests and demos."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np


def shred_image(
    image: np.ndarray,
    strip_width: int,
    seed: Optional[int] = None,
    permutation: Optional[Sequence[int]] = None,
) -> Tuple[np.ndarray, List[int]]:
    """
    Cut ``image`` into vertical strips and shuffle them.

    Args:
        image: (H, W, C) array; trailing columns that do not fill a strip are dropped
        strip_width: Width of every strip in columns
        seed: Seed for the shuffle (ignored when ``permutation`` is given)
        permutation: Explicit order; ``permutation[p]`` is the source strip placed at ``p``

    Returns:
        (shredded image, permutation)
    """
    if strip_width < 1:
        raise ValueError(f"strip_width must be positive, got {strip_width}")
    num_strips = image.shape[1] // strip_width
    if num_strips < 2:
        raise ValueError(f"Image of width {image.shape[1]} holds fewer than 2 strips of {strip_width}")

    if permutation is None:
        rng = np.random.RandomState(seed)
        order = [int(i) for i in rng.permutation(num_strips)]
    else:
        order = [int(i) for i in permutation]
        if sorted(order) != list(range(num_strips)):
            raise ValueError(f"permutation must reorder range({num_strips}), got {order}")

    pieces = [image[:, i * strip_width : (i + 1) * strip_width] for i in order]
    return np.concatenate(pieces, axis=1), order


def restore_order(order: Sequence[int], permutation: Sequence[int]) -> List[int]:
    """Map an inferred order over shredded positions back to source strip ids."""
    return [permutation[position] for position in order]
