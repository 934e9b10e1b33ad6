"""
Command-line interface for the Chess LLM Arena.

This module provides the main entry point and argument parsing: playing a
single match between two models, inspecting a stored match, and showing
standings.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .core.engine import PositionEvaluator, get_friendly_stockfish_hint
from .core.models import Config, Outcome
from .core.match import start_match
from .core.storage import SQLiteMatchStore, StorageError
from .llm.client import LLMProviderError, parse_model_spec

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Route log records to the console only when verbose output is requested."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if verbose:
        root_logger.addHandler(RichHandler(console=console, show_path=False))
        root_logger.setLevel(logging.DEBUG)
    else:
        root_logger.addHandler(logging.NullHandler())
        root_logger.setLevel(logging.INFO)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the command-line argument parser."""
    defaults = Config()
    parser = argparse.ArgumentParser(
        prog="chess-llm-arena",
        description="Chess LLM Arena - automated chess matches between language models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Model specification: "provider/model" or "Display Name=provider/model"
  • anthropic/*, openai/*, google/*, opencode/*  → native CLI (claude, codex, gemini, opencode)
  • anything else                                → OpenRouter API (needs OPENROUTER_API_KEY)

Examples:
  %(prog)s play --white "Claude=anthropic/claude-sonnet-4.5" --black deepseek/deepseek-chat
  %(prog)s show 12
  %(prog)s standings
        """
    )
    parser.add_argument(
        "--db",
        type=str,
        default=defaults.db_path,
        help="SQLite database path (default: %(default)s)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show log output"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    play = subparsers.add_parser("play", help="Play one match between two models")
    play.add_argument("--white", required=True, help="Model playing White")
    play.add_argument("--black", required=True, help="Model playing Black")
    play.add_argument(
        "--max-moves",
        type=int,
        default=defaults.max_moves,
        help="Full moves before the game is drawn (default: %(default)s)"
    )
    play.add_argument(
        "--retries",
        type=int,
        default=defaults.max_retries,
        help="Extra attempts after an unusable answer (default: %(default)s)"
    )
    play.add_argument(
        "--timeout",
        type=float,
        help=f"Seconds per move for every provider (default: CLI {defaults.cli_timeout:.0f}, "
             f"API {defaults.api_timeout:.0f})"
    )
    play.add_argument(
        "--temperature",
        type=float,
        default=defaults.llm_temperature,
        help="Sampling temperature for API models (default: %(default)s)"
    )
    play.add_argument("--stockfish", type=str, help="Path to Stockfish for forfeit evaluation")
    play.add_argument(
        "--resignation-by-eval",
        action="store_true",
        help="Settle resignations by evaluation instead of awarding the opponent"
    )

    show = subparsers.add_parser("show", help="Show a stored match and its moves")
    show.add_argument("match_id", type=int)

    subparsers.add_parser("standings", help="Show results per model")

    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """Build the configuration for a play command."""
    config = Config(
        max_moves=args.max_moves,
        max_retries=args.retries,
        llm_temperature=args.temperature,
        stockfish_path=args.stockfish,
        resignation_concedes=not args.resignation_by_eval,
        db_path=args.db,
    )
    if args.timeout:
        config.cli_timeout = args.timeout
        config.api_timeout = args.timeout
    return config


async def run_play(args: argparse.Namespace) -> int:
    """Register both models, play the match and print the result."""
    config = config_from_args(args)
    store = SQLiteMatchStore(config.db_path)

    white_spec = parse_model_spec(args.white)
    black_spec = parse_model_spec(args.black)
    white = store.add_model(white_spec.name, white_spec.provider_id)
    black = store.add_model(black_spec.name, black_spec.provider_id)

    evaluator = PositionEvaluator.from_config(config)
    if not evaluator.engine_path:
        console.print(f"[yellow]{get_friendly_stockfish_hint()}[/yellow]")

    match_id, task = start_match(store, white, black, config=config, evaluator=evaluator)
    console.print(f"[green]Match {match_id}:[/green] {white} vs {black}")

    with console.status(f"Playing match {match_id}..."):
        outcome = await task

    console.print(render_outcome(match_id, white.name, black.name, outcome))
    return 0


def render_outcome(match_id: int, white_name: str, black_name: str, outcome: Outcome) -> Panel:
    """Panel summarizing a finished match."""
    if outcome.is_draw:
        headline = "Draw"
    else:
        headline = f"{white_name if outcome.winner.value == 'white' else black_name} wins"

    lines = [
        f"[bold]{headline}[/bold] ({outcome.result_string})",
        f"Reason: {outcome.reason.value}",
        f"Half-moves: {outcome.total_half_moves}",
    ]
    if outcome.forfeit_eval is not None:
        lines.append(f"Forfeit evaluation: {outcome.forfeit_eval:+d}cp")
    lines.append(f"Final FEN: {outcome.fen}")
    return Panel("\n".join(lines), title=f"Match {match_id}: {white_name} vs {black_name}")


def run_show(args: argparse.Namespace) -> int:
    """Print a stored match and its moves."""
    store = SQLiteMatchStore(args.db)
    match = store.get_match(args.match_id)
    if match is None:
        console.print(f"[red]Match {args.match_id} not found[/red]")
        return 1

    white = store.get_model(match.white_model_id)
    black = store.get_model(match.black_model_id)
    console.print(
        f"[bold]Match {match.id}[/bold]: {white.name if white else '?'} vs {black.name if black else '?'} "
        f"- {match.status}"
        + (f", {match.result} ({match.result_reason})" if match.result else "")
    )

    table = Table(title="Moves")
    table.add_column("#", justify="right")
    table.add_column("Color")
    table.add_column("SAN")
    table.add_column("UCI")
    table.add_column("FEN after", overflow="fold")
    for record in store.get_moves(match.id):
        table.add_row(str(record.move_number), record.color, record.san, record.uci, record.fen_after)
    console.print(table)
    return 0


def run_standings(args: argparse.Namespace) -> int:
    """Print per-model results."""
    store = SQLiteMatchStore(args.db)
    table = Table(title="Standings")
    table.add_column("Rank", justify="right")
    table.add_column("Model")
    table.add_column("Provider id")
    table.add_column("Games", justify="right")
    table.add_column("W", justify="right")
    table.add_column("D", justify="right")
    table.add_column("L", justify="right")
    table.add_column("Score", justify="right")

    for rank, stats in enumerate(store.list_models(), start=1):
        table.add_row(
            str(rank),
            stats.model.name,
            stats.model.provider_id,
            str(stats.games_played),
            str(stats.wins),
            str(stats.draws),
            str(stats.losses),
            f"{stats.score:g}",
        )
    console.print(table)
    return 0


async def main_async(args: argparse.Namespace) -> int:
    """Main async entry point."""
    try:
        if args.command == "play":
            return await run_play(args)
        if args.command == "show":
            return run_show(args)
        if args.command == "standings":
            return run_standings(args)
    except (ValueError, LLMProviderError) as e:
        console.print(f"[bold red]Configuration error: {e}[/bold red]")
        return 1
    except StorageError as e:
        console.print(f"[bold red]Storage error: {e}[/bold red]")
        logger.exception("Storage failure")
        return 1
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        console.print("\n[bold yellow]Interrupted by user[/bold yellow]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
