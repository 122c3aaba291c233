"""
Basic Usage Example for the handover decision engine

Demonstrates:
- Setting up logging
- Populating an in-memory repository
- Running the distance and learned logic modules
- Handling inference failures
"""
from handover_engine.data.repository import InMemoryRepository
from handover_engine.data.schemas import TerminalState, CellState
from handover_engine.engine import HandoverLogicModule
from handover_engine.models.scoring import CallableScoringModel
from handover_engine.strategies.distance import DistanceHandoverStrategy
from handover_engine.strategies.learned import LearnedHandoverStrategy
from handover_engine.utils.config import LearnedParams
from handover_engine.utils.exceptions import ConfigurationError, InferenceError
from handover_engine.utils.logging_config import configure_logging, get_logger


def build_repository() -> InMemoryRepository:
    """Two cells 200 m apart and three terminals."""
    repo = InMemoryRepository()
    repo.put_cell(CellState(node_id=1, cell_id=1, position=(0.0, 0.0, 30.0)))
    repo.put_cell(CellState(node_id=2, cell_id=2, position=(200.0, 0.0, 30.0)))

    repo.put_terminal(TerminalState(node_id=10, cell_id=1, rnti=1, position=(180.0, 0.0, 1.5), loss=42.0))
    repo.put_terminal(TerminalState(node_id=11, cell_id=1, rnti=2, position=(20.0, 0.0, 1.5), loss=12.0))
    repo.put_terminal(TerminalState(node_id=12, cell_id=2, rnti=1, position=(90.0, 0.0, 1.5), loss=35.0))
    return repo


def main():
    """Main example function."""

    # 1. Configure logging (console output for development)
    configure_logging(log_level="INFO", json_output=False)
    logger = get_logger(__name__)

    repo = build_repository()

    # 2. Nearest-cell decisions
    distance_lm = HandoverLogicModule("distance-handover", DistanceHandoverStrategy(), repo, verbose=True)
    print(f"\n{'='*60}")
    print("Distance strategy")
    print(f"{'='*60}")
    for command in distance_lm.run():
        print(f"  terminal {command.terminal_node_id}: cell {command.source_cell_id} -> {command.target_cell_id}")

    # 3. Model-driven decisions with a toy scoring function:
    #    high loss prefers cell 2, low loss prefers cell 1
    def toy_model(features):
        loss = features[-1]
        return [1.0, 0.0] if loss < 30.0 else [0.0, 1.0]

    learned = LearnedHandoverStrategy(LearnedParams(inference_timeout_seconds=1.0))
    learned_lm = HandoverLogicModule("learned-handover", learned, repo)

    try:
        learned_lm.run()
    except ConfigurationError as e:
        # No model bound yet
        logger.info("expected_configuration_error", error=str(e))

    learned.bind_model(CallableScoringModel(toy_model, source="toy_model"))

    print(f"\n{'='*60}")
    print("Learned strategy")
    print(f"{'='*60}")
    try:
        for command in learned_lm.run():
            print(f"  terminal {command.terminal_node_id}: cell {command.source_cell_id} -> {command.target_cell_id}")
    except InferenceError as e:
        logger.error("inference_error_caught", error=str(e), kept=len(e.partial_commands))
        for command in e.partial_commands:
            print(f"  (partial) terminal {command.terminal_node_id} -> {command.target_cell_id}")
    finally:
        learned_lm.close()
        logger.info("example_finished")


if __name__ == "__main__":
    main()
