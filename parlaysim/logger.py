"""
Simulation run logging for the parlay simulation engine.

JSON-lines format with daily log rotation.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .config import SimulationConfig, get_config_hash
from .models import MonteCarloResult, ParlaySimulation


log = logging.getLogger(__name__)

MODEL_VERSION = "1.0.0"


def get_log_path(base_dir: str = "logs") -> str:
    """Get log file path for today."""
    os.makedirs(base_dir, exist_ok=True)
    date_str = datetime.now().strftime("%Y-%m-%d")
    return os.path.join(base_dir, f"simulations_{date_str}.jsonl")


def format_simulation_log(
    result: MonteCarloResult,
    parlay: ParlaySimulation,
    config: Optional[SimulationConfig] = None,
    comparison_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Format a simulation result for logging."""
    config = config or SimulationConfig()
    upset = result.upset_stats
    pct = result.percentiles

    return {
        "model_version": MODEL_VERSION,
        "config_hash": get_config_hash(config),
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "comparison_id": comparison_id,
        "parlay_index": result.parlay_index,
        "parlay": {
            "name": parlay.name,
            "stake": parlay.stake,
            "total_odds": parlay.total_odds,
            "combined_probability": round(parlay.combined_probability, 6),
            "legs": [
                {"description": leg.description, "odds": leg.odds}
                for leg in parlay.legs
            ],
        },
        "seed": config.seed,
        "iterations": result.iterations,
        "wins": result.wins,
        "losses": result.losses,
        "win_rate": round(result.win_rate, 6),
        "expected_win_probability": round(result.expected_win_probability, 6),
        "expected_profit": round(result.expected_profit, 4),
        "profit_stddev": round(result.profit_stddev, 4),
        "percentiles": {
            "p5": pct.p5,
            "p25": pct.p25,
            "p50": pct.p50,
            "p75": pct.p75,
            "p95": pct.p95,
        },
        "upset": {
            "pure_odds_win_rate": round(upset.pure_odds_win_rate, 6),
            "adjusted_win_rate": round(upset.adjusted_win_rate, 6),
            "upset_impact": round(upset.upset_impact, 6),
            "total_upsets": upset.total_upsets,
            "upset_wins": upset.upset_wins,
            "chaos_days": upset.total_chaos_days,
            "chaos_day_wins": upset.chaos_day_wins,
        },
    }


def log_simulation(
    result: MonteCarloResult,
    parlay: ParlaySimulation,
    config: Optional[SimulationConfig] = None,
    comparison_id: Optional[str] = None,
    log_dir: str = "logs",
) -> str:
    """
    Append a simulation result to the JSON-lines log file.

    Creates new file for each day (daily rotation). Returns the path written.
    """
    log_entry = format_simulation_log(
        result=result,
        parlay=parlay,
        config=config,
        comparison_id=comparison_id,
    )

    log_path = get_log_path(log_dir)

    with open(log_path, "a") as f:
        f.write(json.dumps(log_entry) + "\n")

    log.debug("Logged simulation of parlay %d to %s", result.parlay_index, log_path)
    return log_path


def read_simulations(log_path: str) -> List[Dict]:
    """Read all simulation entries from a log file."""
    entries = []

    if not os.path.exists(log_path):
        return entries

    with open(log_path, "r") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if line:
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    log.warning("Skipping malformed line %d in %s", line_no, log_path)
                    continue

    return entries


def get_recent_simulations(
    comparison_id: Optional[str] = None,
    limit: int = 100,
    log_dir: str = "logs",
) -> List[Dict]:
    """
    Get recent simulations, optionally filtered by comparison_id.

    Returns most recent entries first.
    """
    log_path = get_log_path(log_dir)
    entries = read_simulations(log_path)

    if comparison_id:
        entries = [e for e in entries if e.get("comparison_id") == comparison_id]

    # Sort by timestamp descending
    entries.sort(key=lambda e: e.get("timestamp", ""), reverse=True)

    return entries[:limit]
