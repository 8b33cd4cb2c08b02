# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Typed containers passed between pipeline stages."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from .common import ShapeError

Array = np.ndarray
RGBA = Tuple[int, int, int, int]

OPAQUE_GREEN: RGBA = (0, 255, 0, 255)
TRANSPARENT: RGBA = (0, 0, 0, 0)


@dataclass(frozen=True)
class InputTensor:
    """Flat channel-planar float32 buffer with logical shape [1, 3, H, W]."""

    data: Array
    height: int
    width: int

    @property
    def shape(self) -> Tuple[int, int, int, int]:
        return (1, 3, self.height, self.width)

    def __len__(self) -> int:
        return int(self.data.size)

    def as_nchw(self) -> Array:
        return self.data.reshape(self.shape)

    def plane(self, index: int) -> Array:
        """Return one channel plane as an (H, W) view (0=R, 1=G, 2=B)."""
        size = self.height * self.width
        return self.data[index * size : (index + 1) * size].reshape(self.height, self.width)


@dataclass(frozen=True)
class InferenceResult:
    array: Array
    output_name: Optional[str] = None
    backend: str = "unknown"

    @property
    def channels(self) -> Array:
        """The raw output interpreted as [C, H, W]; a leading batch of 1 is dropped."""
        arr = np.asarray(self.array)
        if arr.ndim == 4 and arr.shape[0] == 1:
            arr = arr[0]
        return arr


@dataclass(frozen=True)
class Mask:
    scores: Array

    def __post_init__(self):
        if np.ndim(self.scores) != 2:
            raise ShapeError(f"Mask scores must be 2D, got shape {np.shape(self.scores)}")

    @property
    def height(self) -> int:
        return int(self.scores.shape[0])

    @property
    def width(self) -> int:
        return int(self.scores.shape[1])


@dataclass(frozen=True)
class DisplayRaster:
    """RGBA pixels (H, W, 4) uint8, one color per mask element."""

    pixels: Array

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.pixels, dtype=np.uint8))


__all__ = [
    "Array",
    "RGBA",
    "OPAQUE_GREEN",
    "TRANSPARENT",
    "InputTensor",
    "InferenceResult",
    "Mask",
    "DisplayRaster",
]
