"""Scoring model adapters for the learned handover strategy."""
from handover_engine.models.scoring import (
    ScoringModel,
    CallableScoringModel,
    TorchScriptScoringModel,
    OnnxScoringModel,
    JoblibScoringModel,
    load_scoring_model,
)

__all__ = [
    'ScoringModel',
    'CallableScoringModel',
    'TorchScriptScoringModel',
    'OnnxScoringModel',
    'JoblibScoringModel',
    'load_scoring_model',
]
