"""
Learned Handover Strategy - asks a trained scoring model for each terminal's target cell.

Feature layout (one vector per terminal):

    [d(c0, c1), d(c0, c2), ..., d(c1, c2), ..., d(cN-2, cN-1), loss]

where c0..cN-1 are the snapshot's cells in ascending cell id order and
d() is the Euclidean inter-site distance. The site block is identical for
every terminal of a cycle and is computed once; only the trailing loss
value (dB) is terminal specific. Two cells 50 m apart and a 30 dB loss
give ``[50.0, 30.0]``.

Output decoding is policy driven (``LearnedParams.decode_policy``):

    argmax            one score per cell (ascending cell id order); the
                      highest score wins, ties go to the lowest index
    argmax_with_hold  index 0 is "no handover", index k >= 1 is cell k-1
    cell_id           a single value holding the target cell id itself

With ``min_score`` set, an argmax winner scoring below it means no
handover. Outputs of the wrong length or with non-finite values are
treated as inference failures.
"""
import math
from typing import List, Optional, Sequence

import numpy as np

from handover_engine.core.geometry import inter_site_distances
from handover_engine.data.loaders import Snapshot
from handover_engine.data.schemas import CellRecord
from handover_engine.models.scoring import ScoringModel, load_scoring_model
from handover_engine.strategies.base import DecisionStrategy, HandoverDecision
from handover_engine.utils.config import LearnedParams, DECODE_POLICIES
from handover_engine.utils.error_handling import call_with_timeout
from handover_engine.utils.exceptions import ConfigurationError, InferenceError
from handover_engine.utils.logging_config import get_logger

logger = get_logger(__name__)


def build_site_features(cells: Sequence[CellRecord]) -> List[float]:
    """
    Inter-site distance block shared by every terminal of a cycle.

    Args:
        cells: Cells already sorted by cell id

    Returns:
        Pair distances for every (i, j) with i < j
    """
    return [float(d) for d in inter_site_distances([c.position for c in cells])]


def build_feature_vector(site_features: Sequence[float], loss: float) -> List[float]:
    """Append a terminal's loss to the shared site block."""
    return list(site_features) + [float(loss)]


class OutputDecoder:
    """Maps a scoring model output vector to a target cell (or None for no handover)."""

    def __init__(
        self,
        policy: str = "argmax",
        min_score: Optional[float] = None,
        hold_value: Optional[int] = None,
    ):
        if policy not in DECODE_POLICIES:
            raise ConfigurationError(f"Unknown decode policy '{policy}'. Supported: {list(DECODE_POLICIES)}")
        self.policy = policy
        self.min_score = min_score
        self.hold_value = hold_value

    def expected_length(self, n_cells: int) -> int:
        if self.policy == "argmax":
            return n_cells
        if self.policy == "argmax_with_hold":
            return n_cells + 1
        return 1

    def decode(self, outputs: Sequence[float], cells: Sequence[CellRecord]) -> Optional[CellRecord]:
        """
        Decode one output vector.

        Args:
            outputs: Model output for one terminal
            cells: Cells sorted by cell id (the order used for the features)

        Returns:
            Target cell, or None when the model asks for no handover

        Raises:
            ValueError: If the output does not match the policy's layout
        """
        values = np.asarray(outputs, dtype=float).reshape(-1)
        expected = self.expected_length(len(cells))
        if len(values) != expected:
            raise ValueError(
                f"{self.policy} decoding expects {expected} output values for "
                f"{len(cells)} cells, got {len(values)}"
            )
        if not np.all(np.isfinite(values)):
            raise ValueError("model output contains non-finite values")

        if self.policy == "cell_id":
            return self._decode_cell_id(values[0], cells)

        best = int(np.argmax(values))
        if self.min_score is not None and values[best] < self.min_score:
            return None
        if self.policy == "argmax_with_hold":
            if best == 0:
                return None
            best -= 1
        return cells[best]

    def _decode_cell_id(self, value: float, cells: Sequence[CellRecord]) -> Optional[CellRecord]:
        cell_id = int(math.floor(value + 0.5))
        if self.hold_value is not None and cell_id == self.hold_value:
            return None
        for cell in cells:
            if cell.cell_id == cell_id:
                return cell
        logger.debug("decoded_cell_not_loaded", cell_id=cell_id)
        return None


class LearnedHandoverStrategy(DecisionStrategy):
    """Model-driven handover decisions.

    The scoring model must be bound (``load_model`` or ``bind_model``)
    before ``decide`` is called. Each scoring call runs on its own daemon
    thread and is bounded by ``inference_timeout_seconds``.
    """

    requirement = "loss"

    def __init__(self, params: LearnedParams = None, model: ScoringModel = None):
        self.params = params or LearnedParams()
        self.decoder = OutputDecoder(
            policy=self.params.decode_policy,
            min_score=self.params.min_score,
            hold_value=self.params.hold_value,
        )
        self._model: Optional[ScoringModel] = None
        if model is not None:
            self.bind_model(model)

    @property
    def is_bound(self) -> bool:
        return self._model is not None

    @property
    def model(self) -> Optional[ScoringModel]:
        return self._model

    def load_model(self, path=None) -> None:
        """
        Load a scoring artifact and bind it.

        Args:
            path: Artifact path (defaults to ``params.model_path``)

        Raises:
            ConfigurationError: If no path is configured or loading fails
        """
        path = path or self.params.model_path
        if path is None:
            raise ConfigurationError("No scoring model path configured for the learned strategy")
        self.bind_model(load_scoring_model(path))

    def bind_model(self, model: ScoringModel) -> None:
        """Bind an already loaded scoring model, replacing any previous one."""
        if model is None:
            raise ConfigurationError("Cannot bind an empty scoring model")
        if self._model is not None and self._model is not model:
            self._model.close()
        self._model = model
        logger.info("scoring_model_bound", source=getattr(model, "source", "<unknown>"))

    def unbind_model(self) -> None:
        """Release the scoring model. A scoring call still running is abandoned."""
        if self._model is not None:
            self._model.close()
            logger.info("scoring_model_unbound", source=getattr(self._model, "source", "<unknown>"))
        self._model = None

    close = unbind_model

    def check_ready(self) -> None:
        if self._model is None:
            raise ConfigurationError(
                "Learned handover strategy has no scoring model bound; "
                "call load_model() or bind_model() first"
            )

    def _score(self, features: List[float], terminal_node_id: int, decisions: List[HandoverDecision]) -> List[float]:
        try:
            return call_with_timeout(
                self._model.score,
                features,
                timeout=self.params.inference_timeout_seconds,
                thread_name="handover-inference",
            )
        except TimeoutError as e:
            raise InferenceError(
                f"Scoring timed out after {self.params.inference_timeout_seconds}s",
                terminal_node_id=terminal_node_id,
                partial_decisions=decisions,
            ) from e
        except Exception as e:
            raise InferenceError(
                f"Scoring failed: {e}",
                terminal_node_id=terminal_node_id,
                partial_decisions=decisions,
            ) from e

    def decide(self, snapshot: Snapshot) -> List[HandoverDecision]:
        """
        Score every terminal with a loss value and decode its target cell.

        Terminals are processed one at a time; a terminal's decision is only
        recorded once its scoring and decoding have both completed.

        Args:
            snapshot: Terminal and cell tables for this cycle

        Returns:
            Decisions for terminals whose decoded target is not their serving cell

        Raises:
            ConfigurationError: If no scoring model is bound
            InferenceError: If a scoring call fails, times out or returns
                output that cannot be decoded
        """
        self.check_ready()

        terminals = [t for t in snapshot.terminals if t.loss is not None]
        if not terminals:
            logger.debug("no_terminals_with_loss")
            return []
        if not snapshot.cells:
            logger.warning("no_cells_in_snapshot", terminals=len(terminals))
            return []

        cells = sorted(snapshot.cells, key=lambda c: c.cell_id)
        site_features = build_site_features(cells)

        decisions: List[HandoverDecision] = []
        for terminal in terminals:
            features = build_feature_vector(site_features, terminal.loss)
            outputs = self._score(features, terminal.node_id, decisions)

            try:
                target = self.decoder.decode(outputs, cells)
            except ValueError as e:
                raise InferenceError(
                    f"Unusable model output: {e}",
                    terminal_node_id=terminal.node_id,
                    partial_decisions=decisions,
                ) from e

            if target is None or target.cell_id == terminal.cell_id:
                continue

            decisions.append(HandoverDecision(
                terminal_node_id=terminal.node_id,
                terminal_rnti=terminal.rnti,
                source_cell_id=terminal.cell_id,
                target_cell_id=target.cell_id,
            ))
            logger.debug(
                "handover_decision",
                terminal_node_id=terminal.node_id,
                source_cell_id=terminal.cell_id,
                target_cell_id=target.cell_id,
                loss_db=terminal.loss,
            )

        logger.info(
            "learned_decisions_computed",
            terminals=len(terminals),
            cells=len(cells),
            features=len(site_features) + 1,
            decisions=len(decisions),
        )
        return decisions
