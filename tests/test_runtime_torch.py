# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

from typing import Dict

import numpy as np
import pytest

torch = pytest.importorskip("torch")

from model import runtime_backend
from model.runtime_torch import TorchScriptSegmenter, load_runtime_model_torch
from runtime.common import ModelExecutionError
from runtime.tensor import build_tensor


class _DropBatch(torch.nn.Module):
    def forward(self, x):
        return x[0]


class _TupleOutput(torch.nn.Module):
    def forward(self, x):
        return x[0], x.mean()


class _DictOutput(torch.nn.Module):
    def forward(self, x) -> Dict[str, torch.Tensor]:
        return {"boxes": x.mean(dim=1), "masks": x[0] * 2.0}


class _Reshape(torch.nn.Module):
    def forward(self, x):
        return x.view(5)


def _save(module, path):
    torch.jit.script(module).save(str(path))
    return path


def _tensor(red=255, size=4):
    raster = np.zeros((size, size, 3), dtype=np.uint8)
    raster[..., 0] = red
    return build_tensor(raster, target_width=size, target_height=size)


def test_run_returns_channels_first_output(tmp_path):
    path = _save(_DropBatch(), tmp_path / "model.pt")
    runtime = load_runtime_model_torch(str(path))

    result = runtime.run(_tensor())

    assert isinstance(runtime, TorchScriptSegmenter)
    assert runtime.device_label == "cpu"
    assert result.backend == "torch"
    assert result.array.shape == (3, 4, 4)
    np.testing.assert_allclose(result.array[0], 1.0, atol=1e-6)


def test_tuple_output_takes_first(tmp_path):
    runtime = load_runtime_model_torch(str(_save(_TupleOutput(), tmp_path / "tuple.pt")))
    assert runtime.run(_tensor()).array.shape == (3, 4, 4)


def test_dict_output_by_name(tmp_path):
    path = _save(_DictOutput(), tmp_path / "dict.pt")
    runtime = load_runtime_model_torch(str(path), output_name="masks")
    result = runtime.run(_tensor())
    np.testing.assert_allclose(result.array[0], 2.0, atol=1e-5)


def test_dict_output_unknown_name(tmp_path):
    path = _save(_DictOutput(), tmp_path / "dict.pt")
    runtime = load_runtime_model_torch(str(path), output_name="logits")
    with pytest.raises(ModelExecutionError):
        runtime.run(_tensor())


def test_forward_failure_is_wrapped(tmp_path):
    runtime = load_runtime_model_torch(str(_save(_Reshape(), tmp_path / "bad.pt")))
    with pytest.raises(ModelExecutionError) as excinfo:
        runtime.run(_tensor())
    assert excinfo.value.__cause__ is not None


def test_closed_module_raises(tmp_path):
    runtime = load_runtime_model_torch(str(_save(_DropBatch(), tmp_path / "model.pt")))
    runtime.close()
    with pytest.raises(ModelExecutionError):
        runtime.run(_tensor())


def test_backend_selector_loads_torchscript(tmp_path):
    path = _save(_DropBatch(), tmp_path / "model.pt")
    runtime = runtime_backend.load_runtime(str(path), serialize_runs=True)
    assert runtime.backend == "torch"
    assert runtime.run(_tensor(red=0)).array.shape == (3, 4, 4)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_runtime_model_torch(str(tmp_path / "missing.pt"))


def test_corrupt_file(tmp_path):
    path = tmp_path / "corrupt.pt"
    path.write_bytes(b"not a zip archive")
    with pytest.raises(ModelExecutionError):
        load_runtime_model_torch(str(path))
