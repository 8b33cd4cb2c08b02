# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Configuration dataclasses for the segmentation pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .tensor import DEFAULT_INPUT_SIZE, DEFAULT_MEAN, DEFAULT_STD
from .types import OPAQUE_GREEN, TRANSPARENT


@dataclass
class TensorConfig:
    width: int = DEFAULT_INPUT_SIZE
    height: int = DEFAULT_INPUT_SIZE
    mean: float = DEFAULT_MEAN
    std: float = DEFAULT_STD


@dataclass
class MaskConfig:
    channel: int = 0  # output ordering is model-specific; 0 matches the bundled export
    threshold: float = 0.5
    positive_color: Tuple[int, int, int, int] = OPAQUE_GREEN
    negative_color: Tuple[int, int, int, int] = TRANSPARENT


@dataclass
class RuntimeConfig:
    backend: str = "auto"  # auto | onnx | torch
    input_name: Optional[str] = "images"  # None binds the model's first declared input
    output_name: Optional[str] = None  # None reads the first output
    intra_op_threads: int = 0  # 0 lets the engine decide
    serialize_runs: bool = False
    model_cache_dir: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


@dataclass
class PipelineConfig:
    tensor: TensorConfig = field(default_factory=TensorConfig)
    mask: MaskConfig = field(default_factory=MaskConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def default_config() -> PipelineConfig:
    return PipelineConfig()


__all__ = [
    "TensorConfig",
    "MaskConfig",
    "RuntimeConfig",
    "LoggingConfig",
    "PipelineConfig",
    "default_config",
]
