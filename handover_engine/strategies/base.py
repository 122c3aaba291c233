"""
Decision strategy interface.

A strategy turns a snapshot into handover decisions. It never reads the
repository itself and never emits a decision for a terminal that is
already served by the selected cell.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from handover_engine.data.loaders import Snapshot, Requirement


@dataclass(frozen=True)
class HandoverDecision:
    """Move ``terminal_node_id`` from ``source_cell_id`` to ``target_cell_id``."""
    terminal_node_id: int
    terminal_rnti: int
    source_cell_id: int
    target_cell_id: int


class DecisionStrategy(ABC):
    """Capability shared by the distance-based and model-based strategies."""

    #: Terminal measurement the loader must resolve for this strategy
    requirement: Requirement = "position"

    @property
    def name(self) -> str:
        return type(self).__name__

    def check_ready(self) -> None:
        """Raise ConfigurationError if the strategy cannot run yet."""
        return None

    @abstractmethod
    def decide(self, snapshot: Snapshot) -> List[HandoverDecision]:
        """Return the handover decisions for one snapshot."""
        pass
