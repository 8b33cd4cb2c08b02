# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Shared fixtures: tiny ONNX graphs and stub runtimes."""

import numpy as np
import pytest

from runtime.types import InferenceResult

ONNX_IR_VERSION = 8
ONNX_OPSET = 13


def build_squeeze_model(path, height=4, width=4, input_name="images", output_name="masks"):
    """Write an ONNX graph mapping [1, 3, H, W] -> [3, H, W] by dropping the batch axis."""
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper

    axes = helper.make_tensor("axes", TensorProto.INT64, [1], [0])
    node = helper.make_node("Squeeze", [input_name, "axes"], [output_name])
    graph = helper.make_graph(
        [node],
        "squeeze_batch",
        [helper.make_tensor_value_info(input_name, TensorProto.FLOAT, [1, 3, height, width])],
        [helper.make_tensor_value_info(output_name, TensorProto.FLOAT, [3, height, width])],
        initializer=[axes],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", ONNX_OPSET)])
    model.ir_version = ONNX_IR_VERSION
    onnx.save(model, str(path))
    return path


@pytest.fixture
def onnx_model_builder():
    return build_squeeze_model


@pytest.fixture
def squeeze_model_path(tmp_path):
    return build_squeeze_model(tmp_path / "model.onnx")


class StubRuntime:
    """Runtime double returning a fixed [C, H, W] output and recording inputs."""

    backend = "stub"

    def __init__(self, output):
        self.output = np.asarray(output, dtype=np.float32)
        self.calls = []

    def run(self, tensor):
        self.calls.append(tensor)
        return InferenceResult(array=self.output, output_name="masks", backend=self.backend)


@pytest.fixture
def stub_runtime_factory():
    return StubRuntime
