# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil
"""Runtime helpers for the single-shot segmentation pipeline.

This package houses the preprocessing, mask post-processing and pipeline
orchestration split across cohesive modules. Inference backends live in the
sibling ``model`` package.
"""
