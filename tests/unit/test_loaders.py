"""
Tests for snapshot loading.
"""
import pytest
from handover_engine.data.loaders import load_snapshot, get_snapshot_summary, Snapshot
from handover_engine.data.repository import InMemoryRepository
from handover_engine.data.schemas import TerminalState, CellState, CellRecord


class CountingRepository(InMemoryRepository):
    """In-memory repository that counts reads."""

    def __init__(self):
        super().__init__()
        self.reads = 0

    def get_terminal_state(self, node_id):
        self.reads += 1
        return super().get_terminal_state(node_id)

    def get_cell_state(self, node_id):
        self.reads += 1
        return super().get_cell_state(node_id)


@pytest.fixture
def repo():
    repo = CountingRepository()
    repo.put_cell(CellState(node_id=1, cell_id=1, position=(0.0, 0.0, 0.0), timestamp=100.0))
    repo.put_cell(CellState(node_id=2, cell_id=2, position=(50.0, 0.0, 0.0), timestamp=100.0))
    repo.put_terminal(TerminalState(node_id=10, cell_id=1, rnti=1, position=(10.0, 0.0, 0.0), loss=30.0, timestamp=100.0))
    repo.put_terminal(TerminalState(node_id=11, cell_id=2, rnti=2, position=(40.0, 0.0, 0.0), timestamp=100.0))
    repo.put_terminal(TerminalState(node_id=12, cell_id=1, rnti=3, loss=20.0, timestamp=100.0))
    return repo


def test_position_snapshot(repo):
    snapshot = load_snapshot(repo, "position", now=100.0)

    assert [t.node_id for t in snapshot.terminals] == [10, 11]
    assert snapshot.cell_ids == [1, 2]
    assert all(t.loss is None for t in snapshot.terminals)


def test_loss_snapshot(repo):
    snapshot = load_snapshot(repo, "loss", now=100.0)

    assert [t.node_id for t in snapshot.terminals] == [10, 12]
    assert [t.loss for t in snapshot.terminals] == [30.0, 20.0]
    assert all(t.position is None for t in snapshot.terminals)


def test_unknown_requirement(repo):
    with pytest.raises(ValueError):
        load_snapshot(repo, "rsrp")


def test_not_found_entities_are_excluded(repo):
    repo.register_terminal(13)
    repo.register_cell(3)

    snapshot = load_snapshot(repo, "position", now=100.0)

    assert 13 not in [t.node_id for t in snapshot.terminals]
    assert snapshot.cell_ids == [1, 2]


def test_cell_without_position_is_excluded(repo):
    repo.put_cell(CellState(node_id=3, cell_id=3, position=None))

    snapshot = load_snapshot(repo, "position", now=100.0)
    assert snapshot.cell_ids == [1, 2]


def test_terminal_without_serving_cell_is_excluded(repo):
    repo.put_terminal(TerminalState(node_id=14, cell_id=None, rnti=4, position=(0.0, 0.0, 0.0)))

    snapshot = load_snapshot(repo, "position", now=100.0)
    assert 14 not in [t.node_id for t in snapshot.terminals]


def test_origin_position_is_kept(repo):
    repo.put_terminal(TerminalState(node_id=15, cell_id=2, rnti=5, position=(0.0, 0.0, 0.0)))

    snapshot = load_snapshot(repo, "position", now=100.0)
    assert 15 in [t.node_id for t in snapshot.terminals]


def test_duplicate_cell_id_first_wins(repo):
    repo.put_cell(CellState(node_id=7, cell_id=2, position=(999.0, 0.0, 0.0)))

    snapshot = load_snapshot(repo, "position", now=100.0)

    assert snapshot.cell_ids == [1, 2]
    assert snapshot.cell_by_id(2).node_id == 2


def test_stale_records_are_excluded(repo):
    repo.put_terminal(TerminalState(node_id=16, cell_id=1, rnti=6, position=(1.0, 0.0, 0.0), timestamp=10.0))
    repo.put_cell(CellState(node_id=8, cell_id=8, position=(5.0, 0.0, 0.0), timestamp=10.0))

    snapshot = load_snapshot(repo, "position", now=100.0, max_record_age=30.0)

    assert 16 not in [t.node_id for t in snapshot.terminals]
    assert 8 not in snapshot.cell_ids

    # Without a bound nothing is stale
    snapshot = load_snapshot(repo, "position", now=100.0)
    assert 16 in [t.node_id for t in snapshot.terminals]
    assert 8 in snapshot.cell_ids


def test_each_entity_read_once(repo):
    load_snapshot(repo, "position", now=100.0)
    assert repo.reads == 5


def test_empty_repository():
    snapshot = load_snapshot(InMemoryRepository(), "position")

    assert snapshot.terminals == ()
    assert snapshot.cells == ()


def test_snapshot_frames(repo):
    snapshot = load_snapshot(repo, "position", now=100.0)

    terminals_df = snapshot.terminals_frame()
    cells_df = snapshot.cells_frame()

    assert len(terminals_df) == 2
    assert terminals_df.iloc[0]['x'] == 10.0
    assert list(cells_df['cell_id']) == [1, 2]


def test_cell_by_id_missing():
    snapshot = Snapshot(terminals=(), cells=(CellRecord(node_id=1, cell_id=1, position=(0.0, 0.0, 0.0)),))
    assert snapshot.cell_by_id(5) is None


def test_snapshot_summary(repo):
    repo.put_terminal(TerminalState(node_id=17, cell_id=9, rnti=7, loss=50.0))
    summary = get_snapshot_summary(load_snapshot(repo, "loss", now=100.0))

    assert summary['terminals'] == 3
    assert summary['cells'] == 2
    assert summary['terminals_per_cell'] == {1: 2, 9: 1}
    assert summary['unknown_serving_cells'] == [9]
    assert summary['loss_max'] == 50.0
    assert summary['loss_mean'] == pytest.approx(100.0 / 3)
