"""
Terminal display for the parlay simulation engine.

Uses Rich library for terminal output.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ComparisonResult, MonteCarloResult, ParlaySimulation


console = Console()

METRIC_LABELS = {
    "win_rate": "Win Rate",
    "expected_profit": "Expected Profit",
    "payout": "Payout",
    "probability": "Implied Prob",
    "overall": "Overall",
}


def format_odds(odds: int) -> str:
    """American odds with explicit sign."""
    return f"+{odds}" if odds > 0 else str(odds)


def format_money(amount: float) -> str:
    sign = "-" if amount < 0 else "+"
    return f"{sign}${abs(amount):,.2f}"


def get_profit_color(amount: float) -> str:
    if amount > 0:
        return "green"
    if amount < 0:
        return "red"
    return "white"


def create_probability_bar(prob: float, width: int = 20) -> str:
    """Create a simple probability bar."""
    filled = int(round(min(1.0, max(0.0, prob)) * width))
    return "█" * filled + "░" * (width - filled)


def display_parlay(parlay: ParlaySimulation, index: int = 0) -> None:
    """Show the legs of a parlay."""
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("LEG", style="dim")
    table.add_column("Odds", justify="right")
    table.add_column("Implied", justify="right")

    for leg in parlay.legs:
        table.add_row(
            leg.description,
            format_odds(leg.odds),
            f"{leg.implied_probability * 100:.1f}%",
        )

    title = (
        f"{parlay.label(index)}  |  Stake ${parlay.stake:,.2f}  |  "
        f"{format_odds(parlay.total_odds)}  |  Pays ${parlay.potential_payout:,.2f}"
    )
    console.print(Panel(table, title=title, border_style="blue"))


def display_result(result: MonteCarloResult, parlay: ParlaySimulation) -> None:
    """Show the simulation summary, percentile breakdown and upset stats."""
    upset = result.upset_stats
    pct = result.percentiles

    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column(style="dim")
    summary.add_column(justify="right")
    summary.add_row("Simulations", f"{result.iterations:,}")
    summary.add_row(
        "Win rate",
        f"{create_probability_bar(result.win_rate)} {result.win_rate * 100:.2f}%",
    )
    summary.add_row("Implied probability", f"{parlay.combined_probability * 100:.2f}%")
    summary.add_row(
        "Expected profit",
        Text(format_money(result.expected_profit), style=get_profit_color(result.expected_profit)),
    )
    summary.add_row("Wins / Losses", f"{result.wins:,} / {result.losses:,}")

    percentiles = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    for label in ("P5", "P25", "P50", "P75", "P95"):
        percentiles.add_column(label, justify="right")
    percentiles.add_row(*[
        Text(format_money(v), style=get_profit_color(v)) for v in pct.as_tuple()
    ])

    upset_table = Table(show_header=False, box=None, padding=(0, 2))
    upset_table.add_column(style="dim")
    upset_table.add_column(justify="right")
    upset_table.add_row("Pure odds win rate", f"{upset.pure_odds_win_rate * 100:.2f}%")
    upset_table.add_row("Adjusted win rate", f"{upset.adjusted_win_rate * 100:.2f}%")
    upset_table.add_row("Upset impact", f"{upset.upset_impact * 100:+.2f} pts")
    upset_table.add_row("Upset trials / wins", f"{upset.total_upsets:,} / {upset.upset_wins:,}")
    upset_table.add_row(
        "Chaos days / wins", f"{upset.total_chaos_days:,} / {upset.chaos_day_wins:,}"
    )

    console.print(summary)
    console.print("[bold]PERCENTILE BREAKDOWN[/bold]")
    console.print(percentiles)
    console.print("[bold]UPSET FACTORS[/bold]")
    console.print(upset_table)


def display_comparison(comparison: ComparisonResult) -> None:
    """Show every parlay, a side-by-side table and the recommendation."""
    for i, (sim, res) in enumerate(zip(comparison.simulations, comparison.results)):
        display_parlay(sim, i)
        display_result(res, sim)
        console.print()

    if len(comparison.simulations) > 1:
        table = Table(title="COMPARISON", show_header=True, header_style="bold")
        table.add_column("Parlay")
        table.add_column("Win Rate", justify="right")
        table.add_column("EV", justify="right")
        table.add_column("Payout", justify="right")
        table.add_column("Best At")

        for i, (sim, res) in enumerate(zip(comparison.simulations, comparison.results)):
            best_at = [
                METRIC_LABELS.get(m, m)
                for m, idx in comparison.best_by_metric.items()
                if idx == i
            ]
            table.add_row(
                sim.label(i),
                f"{res.win_rate * 100:.2f}%",
                Text(format_money(res.expected_profit), style=get_profit_color(res.expected_profit)),
                f"${sim.potential_payout:,.2f}",
                ", ".join(best_at) or "-",
            )
        console.print(table)

    console.print(Panel(comparison.recommendation, title="RECOMMENDATION", border_style="green"))


def display_error(message: str, hint: Optional[str] = None) -> None:
    """Display error message."""
    console.print(f"[red]Error: {escape(message)}[/red]")
    if hint:
        console.print(f"[dim]{hint}[/dim]")
