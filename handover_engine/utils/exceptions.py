"""
Custom exception hierarchy for the handover decision engine.

All custom exceptions inherit from HandoverEngineError for easy catching.
"""


class HandoverEngineError(Exception):
    """Base exception for all handover engine errors."""
    pass


class ConfigurationError(HandoverEngineError):
    """Configuration-related errors.

    Raised when configuration loading or validation fails, when a scoring
    artifact cannot be loaded, or when a strategy is run before its model
    has been bound.

    Example:
        >>> raise ConfigurationError("learned strategy requires 'model_path'")
    """
    pass


class RepositoryError(HandoverEngineError):
    """Errors raised by a repository read for a single entity."""
    pass


class EntityNotFoundError(RepositoryError):
    """The repository has no recorded state for a node.

    Attributes:
        node_id: Node that was queried
        kind: 'terminal' or 'cell'
    """

    def __init__(self, node_id: int, kind: str = "terminal"):
        super().__init__(f"No recorded state for {kind} node {node_id}")
        self.node_id = node_id
        self.kind = kind


class DataLoadError(HandoverEngineError):
    """Data loading errors.

    Raised when a repository's backing store cannot be read at all.

    Example:
        >>> raise DataLoadError("Terminals file not found: data/terminals.csv")
    """
    pass


class DataValidationError(HandoverEngineError):
    """Data validation errors.

    Raised when a state table fails structural checks.

    Attributes:
        invalid_rows: Number of rows that failed validation
        details: Dictionary with validation error details
    """

    def __init__(self, message: str, invalid_rows: int = 0, details: dict = None):
        super().__init__(message)
        self.invalid_rows = invalid_rows
        self.details = details or {}

    def __str__(self):
        base = super().__str__()
        if self.invalid_rows > 0:
            return f"{base} (invalid_rows={self.invalid_rows})"
        return base


class InferenceError(HandoverEngineError):
    """Scoring function failed, timed out or returned unusable output.

    Recoverable per invocation: the decisions completed before the failure
    are attached so the caller can still act on them.

    Attributes:
        terminal_node_id: Terminal being scored when the failure happened
        partial_decisions: Decisions produced before the failure
        partial_commands: Commands built from partial_decisions by the logic module
    """

    def __init__(self, message: str, terminal_node_id: int = None, partial_decisions: list = None):
        super().__init__(message)
        self.terminal_node_id = terminal_node_id
        self.partial_decisions = list(partial_decisions or [])
        self.partial_commands = []

    def __str__(self):
        base = super().__str__()
        if self.terminal_node_id is not None:
            return f"{base} (terminal_node_id={self.terminal_node_id})"
        return base


class InvariantViolation(HandoverEngineError, AssertionError):
    """A decision references a cell that is not in the loaded cell table.

    Indicates a logic bug; never caught inside the engine.
    """
    pass
