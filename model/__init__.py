# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Inference runtimes for exported segmentation models."""

from .runtime_onnx import OnnxSegmenter, load_runtime_model
from .runtime_backend import load_runtime, resolve_backend

__all__ = ["OnnxSegmenter", "load_runtime_model", "load_runtime", "resolve_backend"]
