"""
Data types for terminal and cell state.

Repositories return raw ``TerminalState`` / ``CellState`` values whose
fields may be missing. The snapshot loader turns them into validated
Pydantic ``TerminalRecord`` / ``CellRecord`` rows.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from pydantic import BaseModel, Field, FiniteFloat, model_validator


Vector3 = Tuple[FiniteFloat, FiniteFloat, FiniteFloat]


@dataclass(frozen=True)
class TerminalState:
    """Latest known state of a terminal as stored in the repository."""
    node_id: int
    cell_id: Optional[int] = None
    rnti: Optional[int] = None
    position: Optional[Tuple[float, float, float]] = None
    loss: Optional[float] = None  # dB
    timestamp: Optional[float] = None  # seconds


@dataclass(frozen=True)
class CellState:
    """Latest known state of a cell (base station) as stored in the repository."""
    node_id: int
    cell_id: Optional[int] = None
    position: Optional[Tuple[float, float, float]] = None
    timestamp: Optional[float] = None


class TerminalRecord(BaseModel):
    """
    Schema for one active terminal in a snapshot.

    Exactly one of the measurement fields is required, depending on the
    strategy: ``position`` for nearest-cell decisions, ``loss`` for
    model-driven decisions. The loader enforces which.

    Example:
        >>> terminal = TerminalRecord(node_id=7, cell_id=1, rnti=3, position=(0.0, 0.0, 1.5))
    """
    node_id: int = Field(..., ge=0, description="Simulator node identifier")
    cell_id: int = Field(..., ge=0, description="Serving cell identifier")
    rnti: int = Field(..., ge=0, le=65535, description="RNTI within the serving cell")
    position: Optional[Vector3] = Field(None, description="Position (x, y, z) in meters")
    loss: Optional[FiniteFloat] = Field(None, description="Measured path/application loss (dB)")

    @model_validator(mode='after')
    def require_measurement(self):
        """A terminal is only useful with a position or a loss measurement."""
        if self.position is None and self.loss is None:
            raise ValueError("terminal record needs a position or a loss value")
        return self

    model_config = {
        "frozen": True,
    }


class CellRecord(BaseModel):
    """
    Schema for one cell in a snapshot.

    Example:
        >>> cell = CellRecord(node_id=1, cell_id=1, position=(100.0, 0.0, 30.0))
    """
    node_id: int = Field(..., ge=0, description="Simulator node identifier of the base station")
    cell_id: int = Field(..., ge=0, description="Unique cell identifier")
    position: Vector3 = Field(..., description="Position (x, y, z) in meters")

    model_config = {
        "frozen": True,
    }
