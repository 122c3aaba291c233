"""Scoring functions used by the learned handover strategy.

The engine treats a trained model as an opaque function from a feature
vector to an output vector. ``ScoringModel`` is that capability; the
concrete classes adapt the supported artifact formats to it:

    - TorchScript modules (``.pt``, ``.pth``)
    - ONNX graphs (``.onnx``)
    - joblib-pickled estimators or callables (``.joblib``, ``.pkl``)

Usage:
    from handover_engine.models.scoring import load_scoring_model

    model = load_scoring_model(Path("models/handover.pt"))
    scores = model.score([50.0, 30.0])

The ML runtimes are optional dependencies and are imported only when an
artifact of their format is loaded.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, List, Sequence

import numpy as np

from handover_engine.utils.exceptions import ConfigurationError
from handover_engine.utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy imports for optional dependencies
_torch = None
_onnx_runtime = None
_joblib = None


def _get_torch():
    """Lazy import of torch for TorchScript artifacts."""
    global _torch
    if _torch is None:
        try:
            import torch
            _torch = torch
        except ImportError:
            raise ImportError(
                "torch is required for TorchScript models. "
                "Install with: pip install ran-handover-engine[torch]"
            )
    return _torch


def _get_onnx_runtime():
    """Lazy import of onnxruntime for ONNX artifacts."""
    global _onnx_runtime
    if _onnx_runtime is None:
        try:
            import onnxruntime as ort
            _onnx_runtime = ort
        except ImportError:
            raise ImportError(
                "onnxruntime is required for ONNX models. "
                "Install with: pip install ran-handover-engine[onnx]"
            )
    return _onnx_runtime


def _get_joblib():
    """Lazy import of joblib for pickled estimators."""
    global _joblib
    if _joblib is None:
        try:
            import joblib
            _joblib = joblib
        except ImportError:
            raise ImportError(
                "joblib is required for pickled models. "
                "Install with: pip install ran-handover-engine[joblib]"
            )
    return _joblib


def _flatten(output: Any) -> List[float]:
    """Flatten a model output (array, tensor, list or scalar) to a list of floats."""
    return [float(v) for v in np.asarray(output, dtype=float).reshape(-1)]


class ScoringModel(ABC):
    """Opaque mapping from a feature vector to an output vector."""

    source: str = "<in-memory>"

    @abstractmethod
    def score(self, features: Sequence[float]) -> List[float]:
        """Score one feature vector."""
        pass

    def close(self) -> None:
        """Release runtime resources held by the model."""
        return None


class CallableScoringModel(ScoringModel):
    """Wraps a plain Python function ``features -> outputs``."""

    def __init__(self, func: Callable[[List[float]], Any], source: str = "<callable>"):
        self._func = func
        self.source = source

    def score(self, features: Sequence[float]) -> List[float]:
        return _flatten(self._func(list(features)))


class TorchScriptScoringModel(ScoringModel):
    """TorchScript module evaluated on CPU with a batch of one."""

    def __init__(self, path: Path):
        torch = _get_torch()
        self.source = str(path)
        self._module = torch.jit.load(str(path), map_location="cpu")
        self._module.eval()

    def score(self, features: Sequence[float]) -> List[float]:
        torch = _get_torch()
        inputs = torch.tensor([list(features)], dtype=torch.float32)
        with torch.no_grad():
            output = self._module(inputs)
        return _flatten(output.detach().cpu().numpy())

    def close(self) -> None:
        self._module = None


class OnnxScoringModel(ScoringModel):
    """ONNX Runtime session with a single float input."""

    def __init__(self, path: Path):
        ort = _get_onnx_runtime()
        self.source = str(path)

        sess_options = ort.SessionOptions()
        sess_options.intra_op_num_threads = 1
        sess_options.inter_op_num_threads = 1
        self._session = ort.InferenceSession(
            str(path),
            sess_options=sess_options,
            providers=['CPUExecutionProvider'],
        )
        self._input_name = self._session.get_inputs()[0].name

    def score(self, features: Sequence[float]) -> List[float]:
        inputs = np.asarray([list(features)], dtype=np.float32)
        outputs = self._session.run(None, {self._input_name: inputs})
        return _flatten(outputs[0])

    def close(self) -> None:
        self._session = None


class JoblibScoringModel(ScoringModel):
    """Pickled estimator: class probabilities if available, else predictions."""

    def __init__(self, path: Path):
        joblib = _get_joblib()
        self.source = str(path)
        self._estimator = joblib.load(path)
        if not (
            hasattr(self._estimator, "predict_proba")
            or hasattr(self._estimator, "predict")
            or callable(self._estimator)
        ):
            raise TypeError(f"{type(self._estimator).__name__} is not a usable estimator")

    def score(self, features: Sequence[float]) -> List[float]:
        batch = np.asarray([list(features)], dtype=float)
        if hasattr(self._estimator, "predict_proba"):
            return _flatten(self._estimator.predict_proba(batch)[0])
        if hasattr(self._estimator, "predict"):
            return _flatten(self._estimator.predict(batch)[0])
        return _flatten(self._estimator(list(features)))

    def close(self) -> None:
        self._estimator = None


MODEL_LOADERS = {
    '.pt': TorchScriptScoringModel,
    '.pth': TorchScriptScoringModel,
    '.onnx': OnnxScoringModel,
    '.joblib': JoblibScoringModel,
    '.pkl': JoblibScoringModel,
}


def load_scoring_model(path: Path) -> ScoringModel:
    """
    Load a trained scoring artifact.

    Args:
        path: Artifact path; the suffix selects the runtime

    Returns:
        Loaded ScoringModel

    Raises:
        ConfigurationError: If the path is unset, missing, of an unknown
            format, or the artifact cannot be loaded

    Example:
        >>> model = load_scoring_model(Path("models/handover.onnx"))
        >>> model.score([50.0, 30.0])
        [0.1, 0.9]
    """
    if path is None:
        raise ConfigurationError("No scoring model path configured")

    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Scoring model not found: {path}")

    loader = MODEL_LOADERS.get(path.suffix.lower())
    if loader is None:
        raise ConfigurationError(
            f"Unsupported scoring model format '{path.suffix}'. "
            f"Supported: {sorted(MODEL_LOADERS)}"
        )

    try:
        model = loader(path)
    except Exception as e:
        raise ConfigurationError(f"Failed to load scoring model from {path}: {e}") from e

    logger.info("scoring_model_loaded", path=str(path), runtime=loader.__name__)
    return model
