"""
Weighted cell density over a 2-D embedding.

Each cell contributes its value (expression, activity, score) as a weight.
The weighted 2-D histogram is smoothed with a Gaussian kernel and read back
at every cell's coordinates, giving a per-cell density in [0, 1].
"""

from __future__ import annotations

import numpy as np
from scipy import ndimage
from scipy.interpolate import RegularGridInterpolator


def _axis_range(values: np.ndarray) -> tuple[float, float]:
    lo, hi = float(values.min()), float(values.max())
    if hi - lo == 0:
        lo, hi = lo - 0.5, hi + 0.5
    return lo, hi


def weighted_embedding_density(
    coords: np.ndarray,
    weights: np.ndarray,
    grid_size: int = 200,
    bandwidth: float = 2.0,
) -> np.ndarray:
    """
    Kernel-smoothed weighted density evaluated at each cell.

    Args:
        coords: (n_cells, 2) embedding coordinates.
        weights: Per-cell values; negative values count as zero.
        grid_size: Bins per axis.
        bandwidth: Gaussian sigma in bins.

    Returns:
        Density per cell scaled to a maximum of 1 (all zeros when every
        weight is zero).
    """
    coords = np.asarray(coords, dtype=float)
    weights = np.asarray(weights, dtype=float)
    if coords.ndim != 2 or coords.shape[1] != 2:
        raise ValueError(f"coords must have shape (n_cells, 2), got {coords.shape}")
    if len(coords) != len(weights):
        raise ValueError(f"Length mismatch: {len(coords)} coords vs {len(weights)} weights")
    if grid_size < 2:
        raise ValueError(f"grid_size must be >= 2, got {grid_size}")

    weights = np.clip(np.nan_to_num(weights, nan=0.0), 0.0, None)
    if len(weights) == 0 or weights.sum() == 0:
        return np.zeros(len(weights))

    x_range = _axis_range(coords[:, 0])
    y_range = _axis_range(coords[:, 1])
    hist, x_edges, y_edges = np.histogram2d(
        coords[:, 0], coords[:, 1],
        bins=grid_size,
        range=[x_range, y_range],
        weights=weights,
    )
    smoothed = ndimage.gaussian_filter(hist, sigma=bandwidth, mode="constant")

    x_centers = (x_edges[:-1] + x_edges[1:]) / 2
    y_centers = (y_edges[:-1] + y_edges[1:]) / 2
    interpolator = RegularGridInterpolator(
        (x_centers, y_centers), smoothed, bounds_error=False, fill_value=None
    )
    density = np.clip(interpolator(coords), 0.0, None)

    peak = density.max()
    if peak == 0:
        return density
    return density / peak
