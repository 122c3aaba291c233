"""
Core algorithm modules for handover decisions.

Contains the geometry used by both decision strategies.
"""
from handover_engine.core.geometry import (
    Position,
    euclidean_distance,
    distance_matrix,
    inter_site_distances,
)

__all__ = [
    'Position',
    'euclidean_distance',
    'distance_matrix',
    'inter_site_distances',
]
