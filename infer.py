# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

"""Segment one image with an exported model and write the rendered mask as PNG."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from model.runtime_backend import BACKENDS
from runtime.common import SegmentationError
from runtime.config import LoggingConfig, PipelineConfig
from runtime.config_loader import load_config
from runtime.io import load_raster, save_display_raster
from runtime.mask import overlay
from runtime.pipeline import create_context, run_segmentation

_LOGGER = logging.getLogger("infer")


def configure_logging(settings: LoggingConfig, level_override: Optional[str] = None) -> None:
    level_name = (level_override or settings.level or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=settings.format)
    logging.getLogger().setLevel(level)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run single-image segmentation and render the mask.")
    parser.add_argument("--model", required=True, help="Path to the .onnx model (or TorchScript export).")
    parser.add_argument("--image", required=True, help="Path to the input image (JPEG/PNG/...).")
    parser.add_argument("--out", default="mask.png", help="Output PNG path.")
    parser.add_argument("--config", default=None, help="YAML or python config file.")
    parser.add_argument("--threshold", type=float, default=None, help="Score threshold (strict greater-than).")
    parser.add_argument("--channel", type=int, default=None, help="Output channel used as the mask.")
    parser.add_argument("--backend", choices=BACKENDS, default=None)
    parser.add_argument("--input-name", default=None, help="Model input name; 'auto' binds the first input.")
    parser.add_argument("--cache-dir", default=None, help="Copy the model here once before loading.")
    parser.add_argument("--overlay", action="store_true", help="Composite the mask over the input image.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    return parser


def _apply_overrides(cfg: PipelineConfig, args: argparse.Namespace) -> PipelineConfig:
    if args.threshold is not None:
        cfg.mask.threshold = args.threshold
    if args.channel is not None:
        cfg.mask.channel = args.channel
    if args.backend is not None:
        cfg.runtime.backend = args.backend
    if args.input_name is not None:
        cfg.runtime.input_name = None if args.input_name == "auto" else args.input_name
    if args.cache_dir is not None:
        cfg.runtime.model_cache_dir = args.cache_dir
    return cfg


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config)
    except (SegmentationError, OSError) as exc:
        configure_logging(LoggingConfig(), args.log_level)
        _LOGGER.error("Unable to load config %s: %s", args.config, exc)
        return 1
    cfg = _apply_overrides(cfg, args)
    configure_logging(cfg.logging, args.log_level)

    try:
        context = create_context(args.model, cfg, status_callback=_LOGGER.info)
        raster = load_raster(args.image)
        result = run_segmentation(context, raster)
        output = overlay(raster, result.display) if args.overlay else result.display
        save_display_raster(output, args.out)
    except (SegmentationError, OSError) as exc:
        _LOGGER.error("Error in segmentation run: %s", exc)
        return 1

    _LOGGER.info(
        "Wrote %s (%dx%d mask, %.1f%% above threshold)",
        args.out,
        result.mask.width,
        result.mask.height,
        result.positive_fraction * 100.0,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
