# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Raster/model materialization helpers."""
from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .common import InvalidArgument
from .types import DisplayRaster

_LOGGER = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def load_raster(path: PathLike) -> np.ndarray:
    """Decode an image file into an (H, W, 3) uint8 RGB array."""
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Image not found: {source}")
    try:
        with Image.open(source) as img:
            rgb = img.convert("RGB")
    except UnidentifiedImageError as exc:
        raise InvalidArgument(f"Unable to decode image: {source}") from exc
    return np.asarray(rgb)


def _materialize_raster(raster_input):
    if isinstance(raster_input, np.ndarray):
        return raster_input
    if isinstance(raster_input, Image.Image):
        return np.asarray(raster_input.convert("RGB"))
    if isinstance(raster_input, (str, os.PathLike)):
        return load_raster(raster_input)
    if callable(raster_input):
        materialized = raster_input()
        if not isinstance(materialized, np.ndarray):
            raise TypeError("Raster loader must return a numpy.ndarray")
        return materialized
    raise TypeError(f"Unsupported raster input type: {type(raster_input)!r}")


def _materialize_runtime(runtime_or_loader: Any):
    if callable(runtime_or_loader) and not hasattr(runtime_or_loader, "run"):
        runtime: Any = runtime_or_loader()
    else:
        runtime = runtime_or_loader
    if runtime is None:
        raise RuntimeError("Runtime provider returned no runtime instance.")
    return runtime


def stage_model(source: PathLike, cache_dir: Optional[PathLike] = None) -> str:
    """Copy ``source`` into ``cache_dir`` once and return the local absolute path.

    An existing file with the same name in ``cache_dir`` is reused as-is. With
    no ``cache_dir`` the source path itself is returned.
    """
    src = Path(source)
    if not src.exists():
        raise FileNotFoundError(f"Model not found: {src}")
    if cache_dir is None:
        return str(src.resolve())
    target_dir = Path(cache_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / src.name
    if not target.exists():
        _LOGGER.info("Staging model %s -> %s", src, target)
        tmp = target.with_name(target.name + ".partial")
        try:
            shutil.copyfile(src, tmp)
            os.replace(tmp, target)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
    return str(target.resolve())


def save_display_raster(display: Union[DisplayRaster, Image.Image], path: PathLike) -> str:
    """Write a rendered raster (or composited overlay) as a PNG."""
    out = Path(path)
    if out.parent and not out.parent.exists():
        out.parent.mkdir(parents=True, exist_ok=True)
    image = display.to_image() if isinstance(display, DisplayRaster) else display
    image.save(out, format="PNG")
    return str(out)


__all__ = ["load_raster", "stage_model", "save_display_raster"]
