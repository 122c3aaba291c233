"""
Data access and snapshot module.

Provides the repository read contract, the record schemas and the loader
that builds the per-invocation snapshot.
"""
from handover_engine.data.schemas import (
    TerminalState,
    CellState,
    TerminalRecord,
    CellRecord,
)
from handover_engine.data.repository import (
    Repository,
    InMemoryRepository,
    CSVRepository,
    create_repository,
)
from handover_engine.data.loaders import Snapshot, load_snapshot, get_snapshot_summary

__all__ = [
    'TerminalState',
    'CellState',
    'TerminalRecord',
    'CellRecord',
    'Repository',
    'InMemoryRepository',
    'CSVRepository',
    'create_repository',
    'Snapshot',
    'load_snapshot',
    'get_snapshot_summary',
]
