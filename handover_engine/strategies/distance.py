"""
Distance Handover Strategy - hands each terminal over to its nearest cell.

For every terminal with a known position the Euclidean distance to every
cell is computed and the closest cell is selected. Cells are evaluated in
ascending cell id order and the first minimum wins, so exact ties always
resolve to the lowest cell id. No tolerance is applied: only bit-identical
distances are ties.

A terminal already served by its nearest cell produces no decision, so
running the strategy twice on the same snapshot is idempotent.
"""
from typing import List

import numpy as np

from handover_engine.core.geometry import distance_matrix
from handover_engine.data.loaders import Snapshot
from handover_engine.strategies.base import DecisionStrategy, HandoverDecision
from handover_engine.utils.config import DistanceParams
from handover_engine.utils.logging_config import get_logger

logger = get_logger(__name__)


class DistanceHandoverStrategy(DecisionStrategy):
    """Nearest-cell handover decisions."""

    requirement = "position"

    def __init__(self, params: DistanceParams = None):
        self.params = params or DistanceParams()

    def decide(self, snapshot: Snapshot) -> List[HandoverDecision]:
        """
        Select the nearest cell for every positioned terminal.

        Args:
            snapshot: Terminal and cell tables for this cycle

        Returns:
            Decisions for terminals whose nearest cell is not their serving cell
        """
        terminals = [t for t in snapshot.terminals if t.position is not None]

        if not terminals:
            logger.debug("no_positioned_terminals")
            return []
        if not snapshot.cells:
            logger.warning("no_cells_in_snapshot", terminals=len(terminals))
            return []

        cells = sorted(snapshot.cells, key=lambda c: c.cell_id)
        distances = distance_matrix(
            [t.position for t in terminals],
            [c.position for c in cells],
        )
        # argmin returns the first minimum, i.e. the lowest cell id on ties
        nearest_idx = np.argmin(distances, axis=1)

        decisions = []
        for terminal, idx, row in zip(terminals, nearest_idx, distances):
            nearest = cells[int(idx)]
            if nearest.cell_id == terminal.cell_id:
                continue

            decision = HandoverDecision(
                terminal_node_id=terminal.node_id,
                terminal_rnti=terminal.rnti,
                source_cell_id=terminal.cell_id,
                target_cell_id=nearest.cell_id,
            )
            logger.debug(
                "handover_decision",
                terminal_node_id=terminal.node_id,
                source_cell_id=terminal.cell_id,
                target_cell_id=nearest.cell_id,
                distance_m=round(float(row[idx]), 3),
            )
            decisions.append(decision)

        logger.info(
            "distance_decisions_computed",
            terminals=len(terminals),
            cells=len(cells),
            decisions=len(decisions),
        )
        return decisions
