"""Edge-truncated Gaussian smoothing along a curve axis."""

from __future__ import annotations

import numpy as np

from .kernels import CUTOFF_SIGMAS, gaussian_kernel


def smooth_truncated(values: np.ndarray, sigma: float, *, cutoff: float = CUTOFF_SIGMAS) -> np.ndarray:
    """Smooth along axis 0 of a 1D or 2D array without wraparound.

    Near the edges the kernel is cut off and the remaining weights are
    renormalized, so a constant curve stays constant.
    """
    data = np.asarray(values, dtype=np.float64)
    if data.size == 0 or sigma <= 0:
        return data.copy()
    squeeze = data.ndim == 1
    if squeeze:
        data = data[:, None]
    kernel = gaussian_kernel(sigma, cutoff)
    n = data.shape[0]
    weight_total = np.convolve(np.ones(n, dtype=np.float64), kernel, mode="full")
    radius = kernel.size // 2
    weight_total = weight_total[radius : radius + n]
    out = np.empty_like(data)
    for col in range(data.shape[1]):
        full = np.convolve(data[:, col], kernel, mode="full")
        out[:, col] = full[radius : radius + n] / weight_total
    return out[:, 0] if squeeze else out
