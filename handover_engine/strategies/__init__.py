"""
Handover decision strategies.

Both strategies share the DecisionStrategy interface:
    - Distance: hand over to the geometrically nearest cell
    - Learned: hand over to the cell recommended by a trained scoring model
"""
from handover_engine.strategies.base import DecisionStrategy, HandoverDecision
from handover_engine.strategies.distance import DistanceHandoverStrategy
from handover_engine.strategies.learned import (
    LearnedHandoverStrategy,
    OutputDecoder,
    build_site_features,
    build_feature_vector,
)

__all__ = [
    'DecisionStrategy',
    'HandoverDecision',
    'DistanceHandoverStrategy',
    'LearnedHandoverStrategy',
    'OutputDecoder',
    'build_site_features',
    'build_feature_vector',
]
