# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Backend selector for runtime inference.

Routes ``.onnx`` files to onnxruntime and TorchScript exports to torch. This
module avoids importing torch unless a TorchScript model is requested so the
ONNX path stays lightweight.
"""
from __future__ import annotations

import importlib
import os
from typing import Callable, Optional

from runtime.common import InvalidArgument, ModelExecutionError, _emit_status

from .runtime_onnx import DEFAULT_INPUT_NAME, load_runtime_model

ONNX_SUFFIXES = frozenset({".onnx", ".ort"})
TORCH_SUFFIXES = frozenset({".pt", ".pth", ".torchscript"})
BACKENDS = ("auto", "onnx", "torch")


def _import_torch():
    try:
        return importlib.import_module("torch")
    except ImportError:
        return None


def _load_torch_runtime(model_path: str, **kwargs):
    runtime_torch = importlib.import_module("model.runtime_torch")
    return runtime_torch.load_runtime_model_torch(model_path, **kwargs)


def resolve_backend(model_path: str, prefer: str = "auto") -> str:
    preference = (prefer or "auto").lower()
    if preference not in BACKENDS:
        raise InvalidArgument(f"Unknown backend {prefer!r}; expected one of {', '.join(BACKENDS)}")
    if preference != "auto":
        return preference
    suffix = os.path.splitext(os.fspath(model_path))[1].lower()
    if suffix in TORCH_SUFFIXES:
        return "torch"
    return "onnx"


def load_runtime(
    model_path: str,
    *,
    prefer: str = "auto",
    input_name: Optional[str] = DEFAULT_INPUT_NAME,
    output_name: Optional[str] = None,
    intra_op_threads: int = 0,
    serialize_runs: bool = False,
    status_callback: Optional[Callable[[str], None]] = None,
):
    """Load the runtime backend matching ``model_path``.

    Args:
        model_path: path to a ``.onnx`` model or a TorchScript export.
        prefer: "auto" (default, routes by file suffix), "onnx", or "torch".
        input_name: engine input to bind; ``None`` selects the first declared input.
        output_name: engine output to read; ``None`` selects the first output.
        intra_op_threads: CPU thread count hint, 0 leaves the engine default.
        serialize_runs: hold a lock across each engine call.
        status_callback: optional logger for user-visible messages.
    """

    backend = resolve_backend(model_path, prefer)
    _emit_status(status_callback, f"Using {backend} runtime for {os.path.basename(os.fspath(model_path))}.")

    if backend == "torch":
        if _import_torch() is None:
            raise ModelExecutionError("torch is not installed; cannot load TorchScript model")
        return _load_torch_runtime(
            model_path,
            output_name=output_name,
            intra_op_threads=intra_op_threads,
            serialize_runs=serialize_runs,
            status_callback=status_callback,
        )

    return load_runtime_model(
        model_path,
        input_name=input_name,
        output_name=output_name,
        intra_op_threads=intra_op_threads,
        serialize_runs=serialize_runs,
        status_callback=status_callback,
    )


__all__ = ["load_runtime", "resolve_backend", "BACKENDS"]
