"""
Parlay simulation engine - terminal entry point.

Reads candidate parlays from a JSON file, simulates and ranks them.
"""

import argparse
import json
import logging
import sys
import uuid
from typing import Any, List, Optional

from .config import ITERATION_PRESETS, SimulationConfig, UpsetFactors, load_config
from .display import console, display_comparison, display_error
from .errors import InvalidRecordError, ParlaySimError
from .logger import log_simulation
from .models import ParlaySimulation
from .ranker import ComparativeRanker


def load_parlays(path: str) -> List[ParlaySimulation]:
    """
    Load parlays from a JSON file.

    Accepts either a list of parlay records or {"parlays": [...]}.
    """
    with open(path, "r") as f:
        data: Any = json.load(f)
    if isinstance(data, dict):
        data = data.get("parlays", [data])
    if not isinstance(data, list):
        raise InvalidRecordError(f"{path} must hold a list of parlays, got {type(data).__name__}")
    return [ParlaySimulation.from_dict(record, i) for i, record in enumerate(data)]


def build_config(args: argparse.Namespace) -> SimulationConfig:
    """Defaults <- config file <- command line."""
    values = load_config(args.config)
    if args.preset:
        values["iterations"] = ITERATION_PRESETS[args.preset]
    if args.iterations is not None:
        values["iterations"] = args.iterations
    if args.seed is not None:
        values["seed"] = args.seed
    config = SimulationConfig.from_dict(values)
    if args.no_upsets:
        config = SimulationConfig(
            iterations=config.iterations,
            batch_size=config.batch_size,
            upset_factors=UpsetFactors.disabled(),
            seed=config.seed,
        )
    return config


def run(
    parlays: List[ParlaySimulation],
    config: SimulationConfig,
    workers: Optional[int] = None,
    log: bool = True,
    log_dir: str = "logs",
) -> int:
    """Simulate, display and optionally log a comparison."""
    with console.status(f"Simulating {len(parlays)} parlay(s) x {config.iterations:,} trials..."):
        comparison = ComparativeRanker().compare(parlays, config, max_workers=workers)

    display_comparison(comparison)

    if log:
        comparison_id = uuid.uuid4().hex[:12]
        for sim, res in zip(comparison.simulations, comparison.results):
            log_simulation(res, sim, config, comparison_id=comparison_id, log_dir=log_dir)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Parlay Monte Carlo simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Simulate every parlay in a file with default settings
  python -m parlaysim parlays.json

  # Quick preset, fixed seed, no run log
  python -m parlaysim parlays.json --preset quick --seed 7 --no-log

  # Pure odds only (upset model off)
  python -m parlaysim parlays.json --no-upsets
"""
    )

    parser.add_argument("parlays", help="JSON file with parlay records")
    parser.add_argument(
        "--iterations", "-n",
        type=int,
        default=None,
        help="Trials per parlay (overrides preset and config file)"
    )
    parser.add_argument(
        "--preset", "-p",
        choices=sorted(ITERATION_PRESETS),
        default=None,
        help="Iteration preset"
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed for reproducible runs"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Simulate parlays on this many threads"
    )
    parser.add_argument(
        "--config", "-c",
        default="parlaysim.json",
        help="Config file merged over defaults"
    )
    parser.add_argument(
        "--no-upsets",
        action="store_true",
        help="Disable the upset adjustment model"
    )
    parser.add_argument(
        "--no-log",
        action="store_true",
        help="Disable simulation logging"
    )
    parser.add_argument(
        "--log-dir",
        default="logs",
        help="Directory for JSON-lines run logs"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        parlays = load_parlays(args.parlays)
        config = build_config(args)
        return run(parlays, config, workers=args.workers, log=not args.no_log, log_dir=args.log_dir)
    except ParlaySimError as e:
        display_error(str(e))
        return 1
    except (OSError, json.JSONDecodeError) as e:
        display_error(f"Could not read {args.parlays}: {e}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
