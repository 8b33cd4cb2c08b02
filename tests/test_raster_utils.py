# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Quant Civil

import numpy as np
import pytest

from raster_utils import ensure_rgb


def test_rgb_passthrough_values():
    arr = np.arange(2 * 3 * 3, dtype=np.uint8).reshape(2, 3, 3)
    np.testing.assert_array_equal(ensure_rgb(arr), arr)


def test_grayscale_is_replicated():
    gray = np.array([[1, 2], [3, 4]], dtype=np.uint8)
    rgb = ensure_rgb(gray)
    assert rgb.shape == (2, 2, 3)
    np.testing.assert_array_equal(rgb[..., 2], gray)


def test_single_band_is_replicated():
    assert ensure_rgb(np.zeros((3, 3, 1), dtype=np.uint8)).shape == (3, 3, 3)


def test_alpha_is_dropped():
    rgba = np.zeros((2, 2, 4), dtype=np.uint8)
    rgba[..., 3] = 9
    rgb = ensure_rgb(rgba)
    assert rgb.shape == (2, 2, 3)
    assert rgb.flags["C_CONTIGUOUS"]
    assert rgb.max() == 0


@pytest.mark.parametrize("shape", [(4,), (2, 2, 2), (2, 2, 5), (1, 2, 2, 3)])
def test_rejects_unsupported_shapes(shape):
    with pytest.raises(ValueError):
        ensure_rgb(np.zeros(shape, dtype=np.uint8))
