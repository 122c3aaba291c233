"""
Handover logic module: the invocation entry point of the decision engine.

One ``run()`` is one decision cycle:

1. check the strategy can run (a learned strategy needs a bound model)
2. load a fresh snapshot from the repository
3. let the strategy decide
4. wrap the decisions into control-plane commands

Nothing is kept between cycles. Delivering the commands and recording
them in the repository is the caller's job.
"""
from typing import List, Optional

from handover_engine.commands import CommandEmitter, HandoverCommand
from handover_engine.data.loaders import load_snapshot
from handover_engine.data.repository import Repository, create_repository
from handover_engine.strategies.base import DecisionStrategy
from handover_engine.strategies.distance import DistanceHandoverStrategy
from handover_engine.strategies.learned import LearnedHandoverStrategy
from handover_engine.utils.config import EngineConfig
from handover_engine.utils.exceptions import InferenceError
from handover_engine.utils.logging_config import get_logger

logger = get_logger(__name__)


class HandoverLogicModule:
    """Runs a decision strategy against a repository on demand."""

    def __init__(
        self,
        name: str,
        strategy: DecisionStrategy,
        repository: Repository,
        *,
        verbose: bool = False,
        active: bool = True,
        max_record_age: Optional[float] = None,
    ):
        """
        Initialize the logic module.

        Args:
            name: Module name, stamped on every command it issues
            strategy: Decision strategy selected for this module
            repository: Repository read at every run (borrowed, never written)
            verbose: Log every issued command at info level
            active: Inactive modules return no commands
            max_record_age: Staleness bound (seconds) passed to the loader
        """
        self.name = name
        self.strategy = strategy
        self.repository = repository
        self.verbose = verbose
        self.max_record_age = max_record_age
        self._active = active

        logger.info(
            "logic_module_initialized",
            name=self.name,
            strategy=self.strategy.name,
            active=self._active,
        )

    @property
    def is_active(self) -> bool:
        return self._active

    def activate(self) -> None:
        self._active = True
        logger.info("logic_module_activated", name=self.name)

    def deactivate(self) -> None:
        self._active = False
        logger.info("logic_module_deactivated", name=self.name)

    def run(self) -> List[HandoverCommand]:
        """
        Run one decision cycle.

        Returns:
            Handover commands, possibly empty

        Raises:
            ConfigurationError: If the strategy is not ready; raised before
                the repository is read
            InferenceError: If scoring failed; ``partial_commands`` holds the
                commands for terminals completed before the failure
            InvariantViolation: If a decision targets a cell outside the snapshot
        """
        if not self._active:
            logger.debug("logic_module_inactive", name=self.name)
            return []

        self.strategy.check_ready()

        snapshot = load_snapshot(
            self.repository,
            self.strategy.requirement,
            max_record_age=self.max_record_age,
        )
        emitter = CommandEmitter(snapshot, issued_by=self.name)

        try:
            decisions = self.strategy.decide(snapshot)
        except InferenceError as e:
            e.partial_commands = emitter.emit(e.partial_decisions)
            logger.error(
                "inference_failed",
                name=self.name,
                terminal_node_id=e.terminal_node_id,
                partial_commands=len(e.partial_commands),
                error=str(e),
            )
            raise

        commands = emitter.emit(decisions)

        if self.verbose:
            for command in commands:
                logger.info("handover_command", **command.to_dict())

        logger.info(
            "logic_module_run_complete",
            name=self.name,
            terminals=len(snapshot.terminals),
            cells=len(snapshot.cells),
            commands=len(commands),
        )
        return commands

    def close(self) -> None:
        """Release strategy resources (the learned strategy's model and worker)."""
        close = getattr(self.strategy, "close", None)
        if close is not None:
            close()


def create_strategy(config: EngineConfig) -> DecisionStrategy:
    """
    Build the strategy selected by config.

    A learned strategy loads its scoring model here, so a missing or broken
    artifact is reported before the first run.

    Raises:
        ConfigurationError: If the scoring model cannot be loaded
    """
    if config.strategy == "learned":
        strategy = LearnedHandoverStrategy(config.learned)
        strategy.load_model(config.learned.model_path)
        return strategy
    return DistanceHandoverStrategy(config.distance)


def create_logic_module(
    config: EngineConfig,
    repository: Optional[Repository] = None,
) -> HandoverLogicModule:
    """
    Factory function to create a logic module from configuration.

    Args:
        config: Engine configuration
        repository: Repository to use instead of the configured one

    Returns:
        Ready-to-run HandoverLogicModule

    Example:
        >>> config = load_config(Path("config/distance_handover.yaml"))
        >>> module = create_logic_module(config)
        >>> commands = module.run()
    """
    strategy = create_strategy(config)
    if repository is None:
        repository = create_repository(config.repository)

    return HandoverLogicModule(
        name=config.name,
        strategy=strategy,
        repository=repository,
        verbose=config.verbose,
        active=config.active,
        max_record_age=config.loader.max_record_age_seconds,
    )
