"""
Runner for handover logic modules.

Plays the role of the controller's scheduler: builds a logic module from a
YAML configuration, invokes it on a fixed interval, and hands the issued
commands on (stdout or files in an output directory).

Usage:
    python -m handover_engine.runner --config config/distance_handover.yaml

    # Five cycles, one second apart, commands written to files
    python -m handover_engine.runner --config config/learned_handover.yaml \\
        --iterations 5 --interval 1.0 --output-dir output/

    # JSON logs for the controller's log shipper
    python -m handover_engine.runner --config config/distance_handover.yaml --json-logs
"""
import argparse
import json
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, List, Dict, Any

import pandas as pd
from pydantic import ValidationError

from handover_engine.engine import HandoverLogicModule, create_logic_module
from handover_engine.utils.config import load_config
from handover_engine.utils.error_handling import log_dataframe_summary
from handover_engine.utils.exceptions import (
    ConfigurationError,
    DataLoadError,
    InferenceError,
)
from handover_engine.utils.logging_config import configure_logging, cycle_context, get_logger

logger = get_logger(__name__)

COMMAND_COLUMNS = [
    'iteration', 'terminal_node_id', 'terminal_rnti', 'source_cell_id',
    'target_cell_id', 'target_node_id', 'issued_by',
]


def run_cycles(
    module: HandoverLogicModule,
    iterations: int = 1,
    interval: float = 0.0,
) -> List[Dict[str, Any]]:
    """
    Invoke a logic module repeatedly.

    An inference failure only ends its own cycle: the commands completed
    before it are kept and the next cycle runs as scheduled.

    Args:
        module: Logic module to invoke
        iterations: Number of cycles
        interval: Seconds to sleep between cycles

    Returns:
        One record per cycle with 'iteration', 'commands' and 'error'
    """
    cycles = []
    for iteration in range(iterations):
        started = time.monotonic()
        error = None
        with cycle_context(module.name, iteration):
            try:
                commands = module.run()
            except InferenceError as e:
                commands = e.partial_commands
                error = str(e)
                logger.warning(
                    "cycle_inference_failed",
                    kept_commands=len(commands),
                    error=error,
                )

        cycles.append({
            'iteration': iteration,
            'commands': commands,
            'error': error,
        })
        logger.info(
            "cycle_complete",
            iteration=iteration,
            commands=len(commands),
            duration_s=round(time.monotonic() - started, 4),
        )

        if interval > 0 and iteration < iterations - 1:
            time.sleep(interval)

    return cycles


def commands_frame(cycles: List[Dict[str, Any]]) -> pd.DataFrame:
    """Flatten cycle records into one row per command."""
    rows = [
        {'iteration': cycle['iteration'], **command.to_dict()}
        for cycle in cycles
        for command in cycle['commands']
    ]
    return pd.DataFrame(rows, columns=COMMAND_COLUMNS)


def write_outputs(cycles: List[Dict[str, Any]], output_dir: Path, module_name: str) -> None:
    """
    Write commands.csv, commands.json and run_summary.json to output_dir.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    df = commands_frame(cycles)
    log_dataframe_summary(df, "commands")

    csv_path = output_dir / 'commands.csv'
    df.to_csv(csv_path, index=False)

    json_path = output_dir / 'commands.json'
    with open(json_path, 'w') as f:
        json.dump(df.to_dict(orient='records'), f, indent=2)

    summary = {
        'module': module_name,
        'generated_at': datetime.now().isoformat(),
        'iterations': len(cycles),
        'total_commands': len(df),
        'failed_iterations': [c['iteration'] for c in cycles if c['error']],
        'errors': {str(c['iteration']): c['error'] for c in cycles if c['error']},
    }
    with open(output_dir / 'run_summary.json', 'w') as f:
        json.dump(summary, f, indent=2)

    logger.info("outputs_written", output_dir=str(output_dir), commands=len(df))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description='Handover decision engine - runs a handover logic module',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One decision cycle, commands printed as JSON
  python -m handover_engine.runner --config config/distance_handover.yaml

  # Ten cycles every 0.5 s with outputs on disk
  python -m handover_engine.runner --config config/learned_handover.yaml --iterations 10 --interval 0.5 --output-dir out/
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='YAML engine configuration'
    )

    parser.add_argument(
        '--iterations',
        type=int,
        default=1,
        help='Number of decision cycles to run (default: 1)'
    )

    parser.add_argument(
        '--interval',
        type=float,
        default=0.0,
        help='Seconds between decision cycles (default: 0)'
    )

    parser.add_argument(
        '--output-dir',
        type=Path,
        default=None,
        help='Directory for commands.csv / commands.json (default: print to stdout)'
    )

    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Log level (default: INFO)'
    )

    parser.add_argument(
        '--log-file',
        type=Path,
        default=None,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit JSON logs instead of console output'
    )

    args = parser.parse_args(argv)

    if args.iterations < 1:
        parser.error("--iterations must be at least 1")
    if args.interval < 0:
        parser.error("--interval must not be negative")

    configure_logging(log_level=args.log_level, log_file=args.log_file, json_output=args.json_logs)

    try:
        config = load_config(args.config)
        module = create_logic_module(config)
    except (FileNotFoundError, ValidationError, ConfigurationError) as e:
        logger.error("configuration_failed", config=str(args.config), error=str(e))
        return 2

    try:
        cycles = run_cycles(module, iterations=args.iterations, interval=args.interval)
    except ConfigurationError as e:
        logger.error("configuration_failed", module=module.name, error=str(e))
        return 2
    except DataLoadError as e:
        logger.error("repository_unavailable", module=module.name, error=str(e))
        return 1
    except Exception as e:
        logger.error("execution_failed", module=module.name, error=str(e), exc_info=True)
        return 1
    finally:
        module.close()

    if args.output_dir is not None:
        write_outputs(cycles, args.output_dir, module.name)
    else:
        print(json.dumps(commands_frame(cycles).to_dict(orient='records'), indent=2))

    return 0


if __name__ == '__main__':
    sys.exit(main())
