"""
Handover commands for the control plane.

The emitter wraps each HandoverDecision into the command understood by
the radio stack's dispatcher. The target cell's node id is recovered from
the snapshot's cell table, which is the only table strategies select from.
"""
from dataclasses import dataclass, asdict
from typing import List, Iterable, Dict, Any

from handover_engine.data.loaders import Snapshot
from handover_engine.strategies.base import HandoverDecision
from handover_engine.utils.exceptions import InvariantViolation
from handover_engine.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class HandoverCommand:
    """LTE-to-LTE handover instruction."""
    terminal_node_id: int
    terminal_rnti: int
    target_cell_id: int
    target_node_id: int
    source_cell_id: int
    issued_by: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CommandEmitter:
    """Turns decisions taken on one snapshot into control-plane commands."""

    def __init__(self, snapshot: Snapshot, issued_by: str):
        self.issued_by = issued_by
        self._cells = {cell.cell_id: cell for cell in snapshot.cells}

    def emit_one(self, decision: HandoverDecision) -> HandoverCommand:
        """
        Wrap a single decision.

        Raises:
            InvariantViolation: If the target cell is not in the snapshot's cell table
        """
        target = self._cells.get(decision.target_cell_id)
        if target is None:
            raise InvariantViolation(
                f"Decision for terminal {decision.terminal_node_id} targets cell "
                f"{decision.target_cell_id}, which is not in the loaded cell table"
            )
        return HandoverCommand(
            terminal_node_id=decision.terminal_node_id,
            terminal_rnti=decision.terminal_rnti,
            target_cell_id=target.cell_id,
            target_node_id=target.node_id,
            source_cell_id=decision.source_cell_id,
            issued_by=self.issued_by,
        )

    def emit(self, decisions: Iterable[HandoverDecision]) -> List[HandoverCommand]:
        """Wrap every decision; all targets are checked before anything is returned."""
        return [self.emit_one(decision) for decision in decisions]
