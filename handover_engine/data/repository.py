"""
Repository abstraction layer.

The data repository is the controller's store of terminal and cell state.
The decision engine only reads from it, through the narrow contract of
``Repository``:

- ``list_active_terminals()`` / ``list_cells()`` enumerate node ids
- ``get_terminal_state(node_id)`` / ``get_cell_state(node_id)`` return the
  latest known state or raise ``EntityNotFoundError``

Two implementations are provided:
- In-memory (populated by a harness or by tests)
- CSV files (state exports, one row per report)
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple

import pandas as pd

from handover_engine.data.schemas import TerminalState, CellState
from handover_engine.utils.config import RepositoryConfig
from handover_engine.utils.error_handling import (
    validate_columns_exist,
    finite_or_none,
    int_or_none,
)
from handover_engine.utils.exceptions import (
    ConfigurationError,
    DataLoadError,
    EntityNotFoundError,
)
from handover_engine.utils.logging_config import get_logger

logger = get_logger(__name__)


class Repository(ABC):
    """Read contract of the terminal/cell state repository."""

    @abstractmethod
    def list_active_terminals(self) -> List[int]:
        """Node ids of the currently active terminals, in enumeration order."""
        pass

    @abstractmethod
    def list_cells(self) -> List[int]:
        """Node ids of the known cells, in enumeration order."""
        pass

    @abstractmethod
    def get_terminal_state(self, node_id: int) -> TerminalState:
        """Latest known state of a terminal; raises EntityNotFoundError."""
        pass

    @abstractmethod
    def get_cell_state(self, node_id: int) -> CellState:
        """Latest known state of a cell; raises EntityNotFoundError."""
        pass


class InMemoryRepository(Repository):
    """Dictionary-backed repository.

    Node ids can be registered without any state, which models a node the
    repository knows about but has not recorded a report for yet.
    """

    def __init__(self):
        self._terminals: Dict[int, Optional[TerminalState]] = {}
        self._cells: Dict[int, Optional[CellState]] = {}

    def put_terminal(self, state: TerminalState) -> None:
        self._terminals[state.node_id] = state

    def put_cell(self, state: CellState) -> None:
        self._cells[state.node_id] = state

    def register_terminal(self, node_id: int) -> None:
        self._terminals.setdefault(node_id, None)

    def register_cell(self, node_id: int) -> None:
        self._cells.setdefault(node_id, None)

    def remove_terminal(self, node_id: int) -> None:
        self._terminals.pop(node_id, None)

    def remove_cell(self, node_id: int) -> None:
        self._cells.pop(node_id, None)

    def list_active_terminals(self) -> List[int]:
        return list(self._terminals)

    def list_cells(self) -> List[int]:
        return list(self._cells)

    def get_terminal_state(self, node_id: int) -> TerminalState:
        state = self._terminals.get(node_id)
        if state is None:
            raise EntityNotFoundError(node_id, kind="terminal")
        return state

    def get_cell_state(self, node_id: int) -> CellState:
        state = self._cells.get(node_id)
        if state is None:
            raise EntityNotFoundError(node_id, kind="cell")
        return state


class CSVRepository(Repository):
    """Repository backed by terminal and cell state CSV exports.

    Each file may hold several reports per node; the row with the highest
    ``timestamp`` (last row on ties, or when there is no timestamp column)
    is the node's latest known state. Files are re-read when they change
    on disk.
    """

    # Column mappings for standardization
    TERMINAL_COLUMNS = {
        'imsi': 'node_id',
        'ue_id': 'node_id',
        'ue_node_id': 'node_id',
        'cellid': 'cell_id',
        'serving_cell_id': 'cell_id',
        'pos_x': 'x',
        'pos_y': 'y',
        'pos_z': 'z',
        'path_loss': 'loss',
        'app_loss': 'loss',
        'time': 'timestamp',
    }

    CELL_COLUMNS = {
        'enb_id': 'node_id',
        'enb_node_id': 'node_id',
        'cellid': 'cell_id',
        'pos_x': 'x',
        'pos_y': 'y',
        'pos_z': 'z',
        'time': 'timestamp',
    }

    def __init__(self, config: RepositoryConfig):
        """
        Initialize CSV repository.

        Args:
            config: Repository configuration with base path and file names
        """
        if config.base_path is None:
            raise ConfigurationError("CSV repository requires repository.base_path")

        self.config = config
        self._cache: Dict[str, Tuple[int, List[int], Dict[int, Dict[str, Any]]]] = {}

        logger.info(
            "csv_repository_initialized",
            base_path=str(self.config.base_path),
            files=dict(self.config.files),
        )

    def _standardize_columns(self, df: pd.DataFrame, mapping: Dict[str, str]) -> pd.DataFrame:
        """Rename columns to standard names."""
        rename_map = {}
        for old, new in mapping.items():
            # First alias present wins
            if old in df.columns and new not in df.columns and new not in rename_map.values():
                rename_map[old] = new
        if rename_map:
            df = df.rename(columns=rename_map)
        return df

    def _load_latest(self, file_key: str, mapping: Dict[str, str]) -> Tuple[List[int], Dict[int, Dict[str, Any]]]:
        """
        Load a state file and reduce it to the latest row per node.

        Returns:
            Tuple of (node ids in first-appearance order, node id -> latest row)
        """
        file_path: Path = self.config.get_file_path(file_key)
        if not file_path.exists():
            raise DataLoadError(f"{file_key.capitalize()} file not found: {file_path}")

        mtime = file_path.stat().st_mtime_ns
        cached = self._cache.get(file_key)
        if cached is not None and cached[0] == mtime:
            return cached[1], cached[2]

        logger.info(f"loading_{file_key}_csv", path=str(file_path))
        try:
            df = pd.read_csv(file_path)
        except Exception as e:
            raise DataLoadError(f"Failed to read {file_key} CSV: {e}") from e

        df = self._standardize_columns(df, mapping)
        validate_columns_exist(df, {'node_id'}, df_name=f"{file_key} table")

        df['node_id'] = df['node_id'].map(int_or_none)
        invalid_ids = df['node_id'].isna()
        if invalid_ids.any():
            logger.warning(f"{file_key}_rows_without_node_id", dropped=int(invalid_ids.sum()))
            df = df[~invalid_ids].copy()

        df['node_id'] = df['node_id'].astype(int)
        node_order = list(dict.fromkeys(df['node_id'].tolist()))

        if 'timestamp' in df.columns:
            df = df.assign(_sort_ts=pd.to_numeric(df['timestamp'], errors='coerce'))
            df = df.sort_values('_sort_ts', kind='stable', na_position='first').drop(columns='_sort_ts')
        latest = df.groupby('node_id', sort=False).tail(1)
        latest_rows = {
            int(row['node_id']): row
            for row in latest.to_dict(orient='records')
        }

        logger.info(
            f"{file_key}_loaded",
            rows=len(df),
            nodes=len(node_order),
        )

        self._cache[file_key] = (mtime, node_order, latest_rows)
        return node_order, latest_rows

    @staticmethod
    def _position(row: Dict[str, Any]) -> Optional[Tuple[float, float, float]]:
        coords = tuple(finite_or_none(row.get(axis)) for axis in ('x', 'y', 'z'))
        if any(c is None for c in coords):
            return None
        return coords

    def list_active_terminals(self) -> List[int]:
        node_order, _ = self._load_latest('terminals', self.TERMINAL_COLUMNS)
        return list(node_order)

    def list_cells(self) -> List[int]:
        node_order, _ = self._load_latest('cells', self.CELL_COLUMNS)
        return list(node_order)

    def get_terminal_state(self, node_id: int) -> TerminalState:
        _, rows = self._load_latest('terminals', self.TERMINAL_COLUMNS)
        row = rows.get(node_id)
        if row is None:
            raise EntityNotFoundError(node_id, kind="terminal")
        return TerminalState(
            node_id=node_id,
            cell_id=int_or_none(row.get('cell_id')),
            rnti=int_or_none(row.get('rnti')),
            position=self._position(row),
            loss=finite_or_none(row.get('loss')),
            timestamp=finite_or_none(row.get('timestamp')),
        )

    def get_cell_state(self, node_id: int) -> CellState:
        _, rows = self._load_latest('cells', self.CELL_COLUMNS)
        row = rows.get(node_id)
        if row is None:
            raise EntityNotFoundError(node_id, kind="cell")
        return CellState(
            node_id=node_id,
            cell_id=int_or_none(row.get('cell_id')),
            position=self._position(row),
            timestamp=finite_or_none(row.get('timestamp')),
        )

    def clear_cache(self):
        """Forget all loaded files."""
        self._cache.clear()
        logger.info("cache_cleared")


def create_repository(config: RepositoryConfig) -> Repository:
    """
    Factory function to create the repository described by config.

    Args:
        config: Repository configuration

    Returns:
        Repository implementation (CSV or in-memory)

    Example:
        >>> repo = create_repository(RepositoryConfig(source_type="csv", base_path="data/run1"))
        >>> repo.list_cells()
        [1, 2]
    """
    if config.source_type == "csv":
        return CSVRepository(config)
    elif config.source_type == "memory":
        return InMemoryRepository()
    else:
        raise ConfigurationError(f"Unknown repository source type: {config.source_type}")
