"""
Tests for handover command emission.
"""
import pytest
from handover_engine.commands import CommandEmitter, HandoverCommand
from handover_engine.data.loaders import Snapshot
from handover_engine.data.schemas import CellRecord
from handover_engine.strategies.base import HandoverDecision
from handover_engine.utils.exceptions import InvariantViolation


@pytest.fixture
def snapshot():
    return Snapshot(
        terminals=(),
        cells=(
            CellRecord(node_id=100, cell_id=1, position=(0.0, 0.0, 0.0)),
            CellRecord(node_id=101, cell_id=2, position=(50.0, 0.0, 0.0)),
        ),
    )


def test_emit_resolves_target_node(snapshot):
    emitter = CommandEmitter(snapshot, issued_by="distance-handover")
    decision = HandoverDecision(terminal_node_id=7, terminal_rnti=3, source_cell_id=1, target_cell_id=2)

    command = emitter.emit_one(decision)

    assert command == HandoverCommand(
        terminal_node_id=7,
        terminal_rnti=3,
        target_cell_id=2,
        target_node_id=101,
        source_cell_id=1,
        issued_by="distance-handover",
    )


def test_emit_preserves_order(snapshot):
    emitter = CommandEmitter(snapshot, issued_by="lm")
    decisions = [
        HandoverDecision(terminal_node_id=9, terminal_rnti=1, source_cell_id=2, target_cell_id=1),
        HandoverDecision(terminal_node_id=4, terminal_rnti=2, source_cell_id=1, target_cell_id=2),
    ]

    assert [c.terminal_node_id for c in emitter.emit(decisions)] == [9, 4]


def test_unknown_target_is_invariant_violation(snapshot):
    emitter = CommandEmitter(snapshot, issued_by="lm")
    decisions = [
        HandoverDecision(terminal_node_id=9, terminal_rnti=1, source_cell_id=2, target_cell_id=1),
        HandoverDecision(terminal_node_id=4, terminal_rnti=2, source_cell_id=1, target_cell_id=3),
    ]

    with pytest.raises(InvariantViolation):
        emitter.emit(decisions)


def test_empty(snapshot):
    assert CommandEmitter(snapshot, issued_by="lm").emit([]) == []


def test_to_dict(snapshot):
    command = CommandEmitter(snapshot, issued_by="lm").emit_one(
        HandoverDecision(terminal_node_id=7, terminal_rnti=3, source_cell_id=1, target_cell_id=2)
    )

    assert command.to_dict() == {
        'terminal_node_id': 7,
        'terminal_rnti': 3,
        'target_cell_id': 2,
        'target_node_id': 101,
        'source_cell_id': 1,
        'issued_by': 'lm',
    }
