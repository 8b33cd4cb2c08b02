# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Mask extraction from raw model output and thresholded rendering."""
from __future__ import annotations

import numbers
import operator
from typing import Sequence, Union

import numpy as np
from PIL import Image

from raster_utils import ensure_rgb

from .common import InvalidArgument, ShapeError
from .types import OPAQUE_GREEN, RGBA, TRANSPARENT, Array, DisplayRaster, InferenceResult, Mask


def extract_mask(result: Union[InferenceResult, Array], channel: int = 0) -> Mask:
    """Select one output channel as a 2D score grid.

    The selected slice is returned verbatim; no normalization or rescaling.
    """
    if isinstance(result, InferenceResult):
        arr = result.channels
    else:
        arr = np.asarray(result)
        if arr.ndim == 4 and arr.shape[0] == 1:
            arr = arr[0]
    if arr.ndim < 3:
        raise ShapeError(f"Expected [channels, height, width] output, got shape {arr.shape}")
    if arr.size == 0:
        raise ShapeError(f"Inference output is empty (shape {arr.shape})")
    num_channels = arr.shape[0]
    if isinstance(channel, bool):
        raise InvalidArgument(f"Channel must be an integer, got {channel!r}")
    try:
        index = operator.index(channel)
    except TypeError as exc:
        raise InvalidArgument(f"Channel must be an integer, got {channel!r}") from exc
    if not 0 <= index < num_channels:
        raise ShapeError(f"Channel {index} out of range for output with {num_channels} channel(s)")
    scores = arr[index]
    if scores.ndim != 2:
        raise ShapeError(f"Selected channel must be 2D, got shape {scores.shape}")
    return Mask(scores=scores)


def _coerce_color(color: Sequence[int], label: str) -> Array:
    try:
        values = [int(v) for v in color]
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"{label} must be an RGBA tuple, got {color!r}") from exc
    if len(values) != 4 or any(v < 0 or v > 255 for v in values):
        raise InvalidArgument(f"{label} must be four integers in 0..255, got {color!r}")
    return np.array(values, dtype=np.uint8)


def render(
    mask: Mask,
    threshold: float = 0.5,
    positive_color: RGBA = OPAQUE_GREEN,
    negative_color: RGBA = TRANSPARENT,
) -> DisplayRaster:
    """Paint ``positive_color`` where ``score > threshold`` and ``negative_color`` elsewhere.

    The comparison is strict; a score equal to the threshold, or NaN, is negative.
    """
    if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real):
        raise InvalidArgument(f"Threshold must be a real number, got {threshold!r}")
    positive = _coerce_color(positive_color, "positive_color")
    negative = _coerce_color(negative_color, "negative_color")
    scores = np.asarray(mask.scores if isinstance(mask, Mask) else mask)
    with np.errstate(invalid="ignore"):
        hits = scores > threshold
    pixels = np.where(hits[:, :, np.newaxis], positive, negative).astype(np.uint8)
    return DisplayRaster(pixels=pixels)


def overlay(raster, display: DisplayRaster) -> Image.Image:
    """Composite ``display`` over the source raster at the raster's resolution."""
    rgb = ensure_rgb(raster)
    if rgb.dtype != np.uint8:
        rgb = np.clip(rgb, 0, 255).astype(np.uint8)
    base = Image.fromarray(rgb).convert("RGBA")
    layer = display.to_image()
    if layer.size != base.size:
        layer = layer.resize(base.size, resample=Image.NEAREST)
    return Image.alpha_composite(base, layer)


__all__ = ["extract_mask", "render", "overlay"]
