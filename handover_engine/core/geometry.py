"""
Cartesian geometry functions for handover decisions.

Terminal and cell positions are 3D points in the simulator's local
Cartesian frame (meters). Distances are plain Euclidean distances.
"""
import math
from typing import Sequence, Tuple

import numpy as np

from handover_engine.utils.exceptions import DataValidationError


Position = Tuple[float, float, float]


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Calculate the Euclidean distance between two 3D points.

    Args:
        a: First point (x, y, z) in meters
        b: Second point (x, y, z) in meters

    Returns:
        Distance in meters

    Example:
        >>> euclidean_distance((0.0, 0.0, 0.0), (3.0, 4.0, 0.0))
        5.0
    """
    if len(a) != 3 or len(b) != 3:
        raise DataValidationError(f"Positions must have 3 coordinates, got {len(a)} and {len(b)}")

    return math.sqrt(
        (a[0] - b[0]) ** 2 +
        (a[1] - b[1]) ** 2 +
        (a[2] - b[2]) ** 2
    )


def _as_points(points: Sequence[Sequence[float]], name: str) -> np.ndarray:
    """Convert a sequence of positions into an (N, 3) float array."""
    array = np.asarray(points, dtype=float)
    if array.size == 0:
        return array.reshape(0, 3)
    if array.ndim != 2 or array.shape[1] != 3:
        raise DataValidationError(f"{name} must be an (N, 3) array of positions, got shape {array.shape}")
    return array


def distance_matrix(
    origins: Sequence[Sequence[float]],
    targets: Sequence[Sequence[float]],
) -> np.ndarray:
    """
    Calculate distances from every origin to every target.

    Args:
        origins: N positions (e.g. terminals)
        targets: M positions (e.g. cells)

    Returns:
        (N, M) array where entry [i, j] is the distance from origin i to target j

    Example:
        >>> distance_matrix([(0, 0, 0)], [(100, 0, 0), (1, 0, 0)])
        array([[100.,   1.]])
    """
    origin_array = _as_points(origins, "origins")
    target_array = _as_points(targets, "targets")

    deltas = origin_array[:, np.newaxis, :] - target_array[np.newaxis, :, :]
    return np.sqrt(np.sum(deltas ** 2, axis=2))


def inter_site_distances(positions: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Calculate the distance between every unordered pair of sites.

    Pairs (i, j) with i < j are listed row by row, i.e. the upper triangle
    of the site distance matrix without its diagonal. N sites give
    N * (N - 1) / 2 values; a single site gives an empty array.

    Args:
        positions: Site positions in a fixed order

    Returns:
        1D array of pair distances

    Example:
        >>> inter_site_distances([(0, 0, 0), (50, 0, 0), (0, 30, 0)])
        array([50.        , 30.        , 58.30951895])
    """
    site_array = _as_points(positions, "positions")
    full = distance_matrix(site_array, site_array)
    rows, cols = np.triu_indices(len(site_array), k=1)
    return full[rows, cols]
