# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""High-level segmentation pipeline: raster -> tensor -> inference -> mask -> display."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np

from model.runtime_backend import load_runtime

from .common import _emit_status
from .config import PipelineConfig, default_config
from .io import _materialize_raster, _materialize_runtime, stage_model
from .mask import extract_mask, render
from .tensor import build_tensor
from .types import DisplayRaster, InferenceResult, InputTensor, Mask


@dataclass
class SegmentationContext:
    """Everything a pipeline run needs: the loaded runtime plus its configuration.

    ``runtime`` is any object exposing ``run(tensor) -> InferenceResult`` (or a
    zero-argument loader returning one). It is only read during a run.
    """

    runtime: Any
    config: PipelineConfig = field(default_factory=default_config)
    status_callback: Optional[Callable[[str], None]] = None


@dataclass(frozen=True)
class SegmentationResult:
    tensor: InputTensor
    inference: InferenceResult
    mask: Mask
    display: DisplayRaster
    positive_fraction: float


def create_context(
    model_path: str,
    config: Optional[PipelineConfig] = None,
    status_callback: Optional[Callable[[str], None]] = None,
) -> SegmentationContext:
    """Stage the model locally, load its runtime and bundle it with ``config``."""
    cfg = config or default_config()
    runtime_cfg = cfg.runtime
    local_path = stage_model(model_path, runtime_cfg.model_cache_dir)
    runtime = load_runtime(
        local_path,
        prefer=runtime_cfg.backend,
        input_name=runtime_cfg.input_name,
        output_name=runtime_cfg.output_name,
        intra_op_threads=runtime_cfg.intra_op_threads,
        serialize_runs=runtime_cfg.serialize_runs,
        status_callback=status_callback,
    )
    return SegmentationContext(runtime=runtime, config=cfg, status_callback=status_callback)


def run_segmentation(context: SegmentationContext, raster) -> SegmentationResult:
    """Run one full pass over ``raster`` (array, PIL image, path or loader).

    Each stage either completes or raises; failures propagate to the caller.
    """
    cfg = context.config
    callback = context.status_callback

    array = _materialize_raster(raster)
    runtime = _materialize_runtime(context.runtime)

    _emit_status(
        callback,
        f"Building {cfg.tensor.width}x{cfg.tensor.height} input tensor from raster {tuple(array.shape)}.",
    )
    tensor = build_tensor(
        array,
        target_width=cfg.tensor.width,
        target_height=cfg.tensor.height,
        mean=cfg.tensor.mean,
        std=cfg.tensor.std,
    )

    _emit_status(callback, f"Running inference on {getattr(runtime, 'backend', 'custom')} runtime.")
    inference = runtime.run(tensor)
    if not isinstance(inference, InferenceResult):
        inference = InferenceResult(array=np.asarray(inference), backend=getattr(runtime, "backend", "custom"))

    mask = extract_mask(inference, channel=cfg.mask.channel)
    display = render(
        mask,
        threshold=cfg.mask.threshold,
        positive_color=cfg.mask.positive_color,
        negative_color=cfg.mask.negative_color,
    )
    with np.errstate(invalid="ignore"):
        positive_fraction = float(np.mean(mask.scores > cfg.mask.threshold))
    _emit_status(
        callback,
        f"Segmentation rendered ({mask.width}x{mask.height}, {positive_fraction:.1%} above threshold).",
    )
    return SegmentationResult(
        tensor=tensor,
        inference=inference,
        mask=mask,
        display=display,
        positive_fraction=positive_fraction,
    )


__all__ = [
    "SegmentationContext",
    "SegmentationResult",
    "create_context",
    "run_segmentation",
]
