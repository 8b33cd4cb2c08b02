# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""onnxruntime-backed inference runtime for exported segmentation models.

The session is created once per model file and treated as a read-only handle
afterwards. Only the CPU execution provider is used. Every engine failure is
re-raised as ``ModelExecutionError`` with the original exception chained.
"""
from __future__ import annotations

import contextlib
import logging
import os
import threading
from typing import Callable, List, Optional, Union

import numpy as np
import onnxruntime as ort

from runtime.common import ModelExecutionError, _emit_status
from runtime.types import Array, InferenceResult, InputTensor

_LOGGER = logging.getLogger(__name__)

CPU_PROVIDERS = ["CPUExecutionProvider"]
DEFAULT_INPUT_NAME = "images"


def _as_batch(tensor: Union[InputTensor, Array]) -> Array:
    try:
        if isinstance(tensor, InputTensor):
            batch = tensor.as_nchw()
        else:
            batch = np.asarray(tensor, dtype=np.float32)
    except ValueError as exc:
        raise ModelExecutionError(f"Input buffer cannot be shaped for inference: {exc}") from exc
    if batch.ndim != 4 or batch.shape[0] != 1 or batch.shape[1] != 3:
        raise ModelExecutionError(f"Expected input shape [1, 3, H, W], got {list(batch.shape)}")
    return np.ascontiguousarray(batch, dtype=np.float32)


class OnnxSegmenter:
    def __init__(
        self,
        session,
        *,
        input_name: Optional[str] = DEFAULT_INPUT_NAME,
        output_name: Optional[str] = None,
        serialize_runs: bool = False,
        model_path: Optional[str] = None,
    ):
        self.session = session
        self.model_path = model_path
        self.backend = "onnx"
        self.device_label = "cpu"
        self._input_names: List[str] = [node.name for node in session.get_inputs()]
        self._output_names: List[str] = [node.name for node in session.get_outputs()]
        if not self._input_names or not self._output_names:
            raise ModelExecutionError("ONNX model declares no inputs or no outputs")
        if input_name is None:
            input_name = self._input_names[0]
        if input_name not in self._input_names:
            raise ModelExecutionError(
                f"Model has no input named {input_name!r}; available: {self._input_names}"
            )
        if output_name is not None and output_name not in self._output_names:
            raise ModelExecutionError(
                f"Model has no output named {output_name!r}; available: {self._output_names}"
            )
        self.input_name = input_name
        self.output_name = output_name
        self._lock = threading.Lock() if serialize_runs else None

    @property
    def is_loaded(self) -> bool:
        return self.session is not None

    def close(self) -> None:
        self.session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def run(self, tensor: Union[InputTensor, Array]) -> InferenceResult:
        if self.session is None:
            raise ModelExecutionError("ONNX session is closed or was never loaded")
        batch = _as_batch(tensor)
        fetch = [self.output_name] if self.output_name else None
        guard = self._lock if self._lock is not None else contextlib.nullcontext()
        try:
            with guard:
                outputs = self.session.run(fetch, {self.input_name: batch})
        except Exception as exc:
            raise ModelExecutionError(f"ONNX inference failed: {exc}") from exc
        array = np.asarray(outputs[0], dtype=np.float32)
        _LOGGER.debug("Output dimensions: %s", list(array.shape))
        return InferenceResult(
            array=array,
            output_name=self.output_name or self._output_names[0],
            backend=self.backend,
        )


def load_runtime_model(
    model_path: str,
    *,
    input_name: Optional[str] = DEFAULT_INPUT_NAME,
    output_name: Optional[str] = None,
    intra_op_threads: int = 0,
    serialize_runs: bool = False,
    status_callback: Optional[Callable[[str], None]] = None,
) -> OnnxSegmenter:
    path = os.fspath(model_path)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Missing ONNX model: {path}")
    options = ort.SessionOptions()
    if intra_op_threads and int(intra_op_threads) > 0:
        options.intra_op_num_threads = int(intra_op_threads)
    _emit_status(status_callback, f"Loading ONNX runtime (onnxruntime {ort.__version__})...")
    try:
        session = ort.InferenceSession(path, sess_options=options, providers=CPU_PROVIDERS)
    except Exception as exc:
        raise ModelExecutionError(f"Unable to load ONNX model {path}: {exc}") from exc
    runtime = OnnxSegmenter(
        session,
        input_name=input_name,
        output_name=output_name,
        serialize_runs=serialize_runs,
        model_path=path,
    )
    _emit_status(status_callback, f"Model loaded successfully ({os.path.basename(path)}).")
    return runtime


__all__ = ["OnnxSegmenter", "load_runtime_model", "CPU_PROVIDERS", "DEFAULT_INPUT_NAME"]
