# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Quick smoke test for the segmentation runtime on a synthetic raster."""
from __future__ import annotations

import argparse
import numpy as np

from model import load_runtime
from runtime.pipeline import SegmentationContext, run_segmentation


def main():
    parser = argparse.ArgumentParser(description="Smoke test for the segmentation runtime")
    parser.add_argument("--model", type=str, default="model.onnx", help="Path to the exported model")
    parser.add_argument("--backend", type=str, default="auto", help="auto, onnx or torch")
    parser.add_argument("--size", type=int, default=640, help="Square image size for synthetic input")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    runtime = load_runtime(args.model, prefer=args.backend, status_callback=print)
    rng = np.random.default_rng(args.seed)
    rgb = rng.integers(0, 256, size=(args.size, args.size, 3), dtype=np.uint8)
    result = run_segmentation(SegmentationContext(runtime=runtime, status_callback=print), rgb)
    print({
        "tensor_len": len(result.tensor),
        "output_shape": tuple(result.inference.array.shape),
        "mask_shape": (result.mask.height, result.mask.width),
        "positive_fraction": round(result.positive_fraction, 4),
    })


if __name__ == "__main__":
    main()
