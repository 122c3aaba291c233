"""
Snapshot loading with validation.

Builds the per-invocation terminal and cell tables from repository reads.
Incomplete, stale or missing entities are excluded rather than failing the
whole snapshot; the exclusions are counted and logged.
"""
import time
from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict, List, Literal

import pandas as pd
from pydantic import ValidationError

from handover_engine.data.repository import Repository
from handover_engine.data.schemas import (
    TerminalRecord,
    CellRecord,
    TerminalState,
    CellState,
)
from handover_engine.utils.exceptions import RepositoryError
from handover_engine.utils.logging_config import get_logger

logger = get_logger(__name__)

Requirement = Literal["position", "loss"]

TERMINAL_COLUMNS = ['node_id', 'cell_id', 'rnti', 'x', 'y', 'z', 'loss']
CELL_COLUMNS = ['node_id', 'cell_id', 'x', 'y', 'z']


@dataclass(frozen=True)
class Snapshot:
    """Immutable terminal and cell tables for one decision cycle."""
    terminals: Tuple[TerminalRecord, ...]
    cells: Tuple[CellRecord, ...]
    captured_at: float = field(default_factory=time.time)

    @property
    def cell_ids(self) -> List[int]:
        return [cell.cell_id for cell in self.cells]

    def cell_by_id(self, cell_id: int) -> Optional[CellRecord]:
        """Look up a cell by its cell identity."""
        for cell in self.cells:
            if cell.cell_id == cell_id:
                return cell
        return None

    def terminals_frame(self) -> pd.DataFrame:
        """Terminal table as a DataFrame (one row per terminal)."""
        rows = []
        for terminal in self.terminals:
            x, y, z = terminal.position if terminal.position is not None else (None, None, None)
            rows.append({
                'node_id': terminal.node_id,
                'cell_id': terminal.cell_id,
                'rnti': terminal.rnti,
                'x': x,
                'y': y,
                'z': z,
                'loss': terminal.loss,
            })
        return pd.DataFrame(rows, columns=TERMINAL_COLUMNS)

    def cells_frame(self) -> pd.DataFrame:
        """Cell table as a DataFrame (one row per cell)."""
        rows = [
            {
                'node_id': cell.node_id,
                'cell_id': cell.cell_id,
                'x': cell.position[0],
                'y': cell.position[1],
                'z': cell.position[2],
            }
            for cell in self.cells
        ]
        return pd.DataFrame(rows, columns=CELL_COLUMNS)


def _is_stale(timestamp: Optional[float], now: float, max_record_age: Optional[float]) -> bool:
    if max_record_age is None or timestamp is None:
        return False
    return timestamp < now - max_record_age


def _terminal_record(state: TerminalState, requirement: Requirement) -> TerminalRecord:
    """Validate a terminal state into a record carrying only the required measurement."""
    if requirement == "position":
        if state.position is None:
            raise ValueError("position missing")
        return TerminalRecord(
            node_id=state.node_id,
            cell_id=state.cell_id,
            rnti=state.rnti,
            position=state.position,
        )
    if state.loss is None:
        raise ValueError("loss missing")
    return TerminalRecord(
        node_id=state.node_id,
        cell_id=state.cell_id,
        rnti=state.rnti,
        loss=state.loss,
    )


def load_snapshot(
    repository: Repository,
    requirement: Requirement = "position",
    *,
    now: Optional[float] = None,
    max_record_age: Optional[float] = None,
) -> Snapshot:
    """
    Load the terminal and cell tables for the current decision cycle.

    Args:
        repository: Repository to read from (borrowed for this call only)
        requirement: Terminal measurement the active strategy needs,
            'position' or 'loss'
        now: Reference time in seconds (defaults to time.time())
        max_record_age: If set, states with a timestamp older than
            ``now - max_record_age`` are excluded

    Returns:
        Snapshot with terminals and cells in repository enumeration order

    Example:
        >>> snapshot = load_snapshot(repo, "position")
        >>> print(f"{len(snapshot.terminals)} terminals, {len(snapshot.cells)} cells")
    """
    if requirement not in ("position", "loss"):
        raise ValueError(f"Unknown terminal requirement: {requirement}")

    now = time.time() if now is None else now
    excluded: Dict[str, int] = {'not_found': 0, 'incomplete': 0, 'stale': 0, 'duplicate': 0}

    cells: List[CellRecord] = []
    seen_cell_ids = set()
    for node_id in repository.list_cells():
        try:
            state = repository.get_cell_state(node_id)
        except RepositoryError as e:
            excluded['not_found'] += 1
            logger.debug("cell_excluded", node_id=node_id, reason="not_found", error=str(e))
            continue

        if _is_stale(state.timestamp, now, max_record_age):
            excluded['stale'] += 1
            logger.debug("cell_excluded", node_id=node_id, reason="stale", timestamp=state.timestamp)
            continue

        try:
            record = CellRecord(node_id=state.node_id, cell_id=state.cell_id, position=state.position)
        except ValidationError as e:
            excluded['incomplete'] += 1
            logger.debug("cell_excluded", node_id=node_id, reason="incomplete", errors=e.error_count())
            continue

        if record.cell_id in seen_cell_ids:
            excluded['duplicate'] += 1
            logger.warning("duplicate_cell_id", node_id=node_id, cell_id=record.cell_id)
            continue

        seen_cell_ids.add(record.cell_id)
        cells.append(record)

    terminals: List[TerminalRecord] = []
    seen_terminals = set()
    for node_id in repository.list_active_terminals():
        if node_id in seen_terminals:
            excluded['duplicate'] += 1
            continue
        seen_terminals.add(node_id)

        try:
            state = repository.get_terminal_state(node_id)
        except RepositoryError as e:
            excluded['not_found'] += 1
            logger.debug("terminal_excluded", node_id=node_id, reason="not_found", error=str(e))
            continue

        if _is_stale(state.timestamp, now, max_record_age):
            excluded['stale'] += 1
            logger.debug("terminal_excluded", node_id=node_id, reason="stale", timestamp=state.timestamp)
            continue

        try:
            terminals.append(_terminal_record(state, requirement))
        except (ValidationError, ValueError) as e:
            excluded['incomplete'] += 1
            logger.debug("terminal_excluded", node_id=node_id, reason="incomplete", error=str(e))

    snapshot = Snapshot(terminals=tuple(terminals), cells=tuple(cells), captured_at=now)

    logger.info(
        "snapshot_loaded",
        requirement=requirement,
        terminals=len(snapshot.terminals),
        cells=len(snapshot.cells),
        **{f"excluded_{reason}": count for reason, count in excluded.items() if count},
    )

    return snapshot


def get_snapshot_summary(snapshot: Snapshot) -> dict:
    """
    Generate summary statistics for a loaded snapshot.

    Args:
        snapshot: Snapshot to summarize

    Returns:
        Dictionary with summary statistics

    Example:
        >>> summary = get_snapshot_summary(snapshot)
        >>> print(summary['terminals'], summary['serving_cells'])
    """
    terminals_df = snapshot.terminals_frame()
    cells_df = snapshot.cells_frame()

    summary = {
        'terminals': len(terminals_df),
        'cells': len(cells_df),
        'serving_cells': sorted(int(c) for c in terminals_df['cell_id'].unique()),
        'terminals_per_cell': {
            int(cell_id): int(count)
            for cell_id, count in terminals_df['cell_id'].value_counts().sort_index().items()
        },
        'unknown_serving_cells': sorted(
            int(c) for c in set(terminals_df['cell_id']) - set(cells_df['cell_id'])
        ),
    }

    if terminals_df['loss'].notna().any():
        summary['loss_mean'] = float(terminals_df['loss'].mean())
        summary['loss_max'] = float(terminals_df['loss'].max())

    return summary
