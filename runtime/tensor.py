# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Raster to model-input tensor conversion."""
from __future__ import annotations

import math
import operator
from typing import Tuple

import numpy as np

from raster_utils import ensure_rgb

from .common import InvalidArgument
from .types import Array, InputTensor

DEFAULT_INPUT_SIZE = 416
DEFAULT_MEAN = 127.5
DEFAULT_STD = 127.5


def _sample_grid(src: int, dst: int) -> Tuple[Array, Array, Array]:
    # Pixel-centre mapping, clamped to the source edge.
    coords = (np.arange(dst, dtype=np.float64) + 0.5) * (src / dst) - 0.5
    coords = np.clip(coords, 0.0, src - 1)
    lo = np.floor(coords).astype(int)
    hi = np.minimum(lo + 1, src - 1)
    return lo, hi, coords - lo


def _bilinear_resize(x: Array, size: Tuple[int, int]) -> Array:
    # x: [C,H,W]
    c, h, w = x.shape
    out_h, out_w = size
    if h == out_h and w == out_w:
        return x.astype(np.float32, copy=False)
    y0, y1, y_alpha = _sample_grid(h, out_h)
    x0, x1, x_alpha = _sample_grid(w, out_w)
    y_alpha = y_alpha.reshape(-1, 1)
    x_alpha = x_alpha.reshape(1, -1)
    top = (1 - x_alpha) * x[:, y0][:, :, x0] + x_alpha * x[:, y0][:, :, x1]
    bottom = (1 - x_alpha) * x[:, y1][:, :, x0] + x_alpha * x[:, y1][:, :, x1]
    out = (1 - y_alpha) * top + y_alpha * bottom
    return out.astype(np.float32)


def _as_dim(value) -> int:
    if isinstance(value, (bool, np.bool_)):
        raise TypeError(value)
    if isinstance(value, (float, np.floating)):
        if not float(value).is_integer():
            raise ValueError(value)
        return int(value)
    return operator.index(value)


def _validate_dims(target_width, target_height) -> Tuple[int, int]:
    try:
        width = _as_dim(target_width)
        height = _as_dim(target_height)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Target dimensions must be integers, got {target_width!r}x{target_height!r}") from exc
    if width <= 0 or height <= 0:
        raise InvalidArgument(f"Target dimensions must be positive, got {width}x{height}")
    return width, height


def build_tensor(
    raster,
    target_width: int = DEFAULT_INPUT_SIZE,
    target_height: int = DEFAULT_INPUT_SIZE,
    mean: float = DEFAULT_MEAN,
    std: float = DEFAULT_STD,
) -> InputTensor:
    """Resize ``raster`` and pack it as a normalized channel-planar float32 buffer.

    Args:
        raster: (H, W), (H, W, 1), (H, W, 3) or (H, W, 4) array of 8-bit samples.
        target_width: model input width in pixels.
        target_height: model input height in pixels.
        mean: value subtracted from every sample.
        std: divisor applied after mean subtraction.

    Returns:
        InputTensor whose buffer holds every R value, then every G value, then
        every B value, each plane in row-major order.
    """
    width, height = _validate_dims(target_width, target_height)
    std = float(std)
    mean = float(mean)
    if not math.isfinite(std) or std == 0.0:
        raise InvalidArgument(f"std must be finite and non-zero, got {std}")
    if not math.isfinite(mean):
        raise InvalidArgument(f"mean must be finite, got {mean}")

    arr = np.asarray(raster)
    if arr.size == 0:
        raise InvalidArgument("Raster is empty")
    try:
        rgb = ensure_rgb(arr)
    except ValueError as exc:
        raise InvalidArgument(str(exc)) from exc

    planes = rgb.transpose(2, 0, 1).astype(np.float32)
    resized = _bilinear_resize(planes, (height, width))
    normalized = (resized - np.float32(mean)) / np.float32(std)
    data = np.ascontiguousarray(normalized, dtype=np.float32).reshape(-1)
    return InputTensor(data=data, height=height, width=width)


__all__ = ["build_tensor", "DEFAULT_INPUT_SIZE", "DEFAULT_MEAN", "DEFAULT_STD"]
