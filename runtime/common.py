# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Common runtime helpers: error taxonomy and status emitters."""
from __future__ import annotations

import logging

_LOGGER = logging.getLogger(__name__)


class SegmentationError(Exception):
    """Base class for every failure raised by the segmentation pipeline."""


class InvalidArgument(SegmentationError, ValueError):
    """Raised for malformed preprocessing/render parameters or an empty raster."""


class ModelExecutionError(SegmentationError, RuntimeError):
    """Raised when the execution engine rejects the input or fails internally."""


class ShapeError(SegmentationError, ValueError):
    """Raised when inference output does not match the assumed rank/shape."""


def _emit_status(callback, message) -> None:
    _LOGGER.debug(message)
    if not callback:
        return
    try:
        callback(message)
    except Exception:
        _LOGGER.warning("Status callback failed for message: %s", message, exc_info=True)


__all__ = [
    "SegmentationError",
    "InvalidArgument",
    "ModelExecutionError",
    "ShapeError",
    "_emit_status",
]
