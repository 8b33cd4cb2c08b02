# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Torch-backed inference runtime for TorchScript segmentation exports.

This backend mirrors the ONNX runtime contract (``run(tensor) -> InferenceResult``)
for models saved with ``torch.jit.save``. Execution is pinned to the CPU device.
"""
from __future__ import annotations

import contextlib
import logging
import os
import threading
from typing import Callable, Optional, Union

import numpy as np
import torch

from runtime.common import ModelExecutionError, _emit_status
from runtime.types import Array, InferenceResult, InputTensor

from .runtime_onnx import _as_batch

_LOGGER = logging.getLogger(__name__)


def _first_output(outputs, output_name: Optional[str]) -> torch.Tensor:
    if isinstance(outputs, dict):
        if output_name is not None:
            if output_name not in outputs:
                raise ModelExecutionError(f"Model has no output named {output_name!r}; available: {sorted(outputs)}")
            return outputs[output_name]
        return next(iter(outputs.values()))
    if isinstance(outputs, (list, tuple)):
        if not outputs:
            raise ModelExecutionError("TorchScript model returned no outputs")
        return outputs[0]
    return outputs


class TorchScriptSegmenter:
    def __init__(
        self,
        module,
        *,
        output_name: Optional[str] = None,
        serialize_runs: bool = False,
        model_path: Optional[str] = None,
    ):
        self.module = module
        self.model_path = model_path
        self.output_name = output_name
        self.device = torch.device("cpu")
        self.device_label = str(self.device)
        self.backend = "torch"
        self._lock = threading.Lock() if serialize_runs else None

    @property
    def is_loaded(self) -> bool:
        return self.module is not None

    def close(self) -> None:
        self.module = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def run(self, tensor: Union[InputTensor, Array]) -> InferenceResult:
        if self.module is None:
            raise ModelExecutionError("TorchScript module is closed or was never loaded")
        batch = _as_batch(tensor)
        x = torch.as_tensor(batch, dtype=torch.float32, device=self.device)
        guard = self._lock if self._lock is not None else contextlib.nullcontext()
        try:
            with guard, torch.inference_mode():
                outputs = self.module(x)
        except Exception as exc:
            raise ModelExecutionError(f"TorchScript inference failed: {exc}") from exc
        out = _first_output(outputs, self.output_name)
        if not isinstance(out, torch.Tensor):
            raise ModelExecutionError(f"TorchScript model returned {type(out).__name__}, expected a tensor")
        array = out.detach().to(torch.float32).cpu().numpy()
        _LOGGER.debug("Output dimensions: %s", list(array.shape))
        return InferenceResult(array=np.asarray(array), output_name=self.output_name, backend=self.backend)


def load_runtime_model_torch(
    model_path: str,
    *,
    output_name: Optional[str] = None,
    intra_op_threads: int = 0,
    serialize_runs: bool = False,
    status_callback: Optional[Callable[[str], None]] = None,
) -> TorchScriptSegmenter:
    path = os.fspath(model_path)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Missing TorchScript model: {path}")
    if intra_op_threads and int(intra_op_threads) > 0:
        torch.set_num_threads(int(intra_op_threads))
    _emit_status(status_callback, f"Loading torch runtime (torch {torch.__version__}) on cpu...")
    try:
        module = torch.jit.load(path, map_location="cpu")
    except Exception as exc:
        raise ModelExecutionError(f"Unable to load TorchScript model {path}: {exc}") from exc
    module.eval()
    runtime = TorchScriptSegmenter(
        module,
        output_name=output_name,
        serialize_runs=serialize_runs,
        model_path=path,
    )
    _emit_status(status_callback, f"Model loaded successfully ({os.path.basename(path)}).")
    return runtime


__all__ = ["TorchScriptSegmenter", "load_runtime_model_torch"]
