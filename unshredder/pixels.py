"""Read-only RGB pixel buffer consumed by the reassembly core."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple, Union

import cv2
import numpy as np
from PIL import Image

# dtypes cv2.cvtColor accepts without conversion
_CV_DTYPES = (np.uint8, np.uint16, np.float32)


def _to_rgb(array: np.ndarray) -> np.ndarray:
    """Normalise grayscale / RGBA input to an (H, W, 3) array."""
    if array.ndim == 2:
        if array.dtype.type not in _CV_DTYPES:
            array = array.astype(np.float32)
        return cv2.cvtColor(array, cv2.COLOR_GRAY2RGB)
    if array.ndim == 3 and array.shape[2] == 4:
        return array[:, :, :3]
    if array.ndim == 3 and array.shape[2] == 3:
        return array
    raise ValueError(f"Unsupported image shape: {array.shape}")


class PixelBuffer:
    """
    Immutable view over an RGB image.

    Channel values may use any numeric scale as long as every column uses the
    same one; the column difference is normalised by brightness.
    """

    def __init__(self, array: np.ndarray, source: Optional[str] = None):
        rgb = np.array(_to_rgb(np.asarray(array)), copy=True)
        if rgb.shape[0] == 0 or rgb.shape[1] == 0:
            raise ValueError(f"Empty image: {rgb.shape}")
        rgb.setflags(write=False)
        self.array = rgb
        self.source = source
        self._channels: Optional[np.ndarray] = None

    @classmethod
    def open(cls, path: Union[str, Path]) -> "PixelBuffer":
        """Decode an image file into an RGB buffer."""
        try:
            with Image.open(path) as img:
                if img.mode != "RGB":
                    img = img.convert("RGB")
                array = np.array(img)
        except (OSError, ValueError) as exc:
            raise ValueError(f"Could not load image: {path}") from exc
        return cls(array, source=str(path))

    @property
    def width(self) -> int:
        return int(self.array.shape[1])

    @property
    def height(self) -> int:
        return int(self.array.shape[0])

    def pixel_at(self, x: int, y: int) -> Tuple:
        r, g, b = self.array[y, x]
        return (r.item(), g.item(), b.item())

    def column(self, x: int) -> np.ndarray:
        """(height, 3) float64 channel values of column ``x``."""
        if not 0 <= x < self.width:
            raise IndexError(f"Column {x} outside image of width {self.width}")
        return self.channels()[:, x, :]

    def channels(self) -> np.ndarray:
        """Whole image as float64, computed once."""
        if self._channels is None:
            channels = self.array.astype(np.float64)
            channels.setflags(write=False)
            self._channels = channels
        return self._channels

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height}, source={self.source!r})"
