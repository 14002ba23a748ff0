"""Gaussian kernel helpers."""

from __future__ import annotations

import math

import numpy as np

CUTOFF_SIGMAS = 3.0


def gaussian(dist: np.ndarray, sigma: float) -> np.ndarray:
    """exp(-d^2 / 2 sigma^2), elementwise."""
    dist = np.asarray(dist, dtype=np.float64)
    return np.exp(-(dist * dist) / (2.0 * sigma * sigma))


def gaussian_kernel(sigma: float, cutoff: float = CUTOFF_SIGMAS) -> np.ndarray:
    """Discrete kernel over offsets -R..R with R = ceil(cutoff * sigma)."""
    if sigma <= 0:
        return np.ones(1, dtype=np.float64)
    radius = int(math.ceil(cutoff * sigma))
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    return gaussian(offsets, sigma)


def interval_distance(t: np.ndarray, start: float, end: float) -> np.ndarray:
    """Distance from each sample time to [start, end]; zero inside the interval."""
    t = np.asarray(t, dtype=np.float64)
    return np.maximum(start - t, 0.0) + np.maximum(t - end, 0.0)
