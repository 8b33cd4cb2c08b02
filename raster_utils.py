from __future__ import annotations

import numpy as np


def ensure_rgb(array: np.ndarray) -> np.ndarray:
    """Ensure raster data is channel-last RGB (H, W, 3).

    Accepts 2D grayscale arrays (H, W), single-band (H, W, 1), RGB (H, W, 3)
    or RGBA (H, W, 4) rasters. Gray planes are replicated across the three
    colour channels and alpha is dropped. Returns a contiguous array in the
    input dtype.
    """

    arr = np.asarray(array)
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, np.newaxis], 3, axis=2)
    elif arr.ndim == 3:
        channels = arr.shape[2]
        if channels == 1:
            arr = np.repeat(arr, 3, axis=2)
        elif channels == 4:
            arr = arr[:, :, :3]
        elif channels != 3:
            raise ValueError(f"Expected 1, 3 or 4 channels, got {channels}")
    else:
        raise ValueError(f"Expected 2D or 3D array, got {arr.ndim}D input")
    return np.ascontiguousarray(arr)
