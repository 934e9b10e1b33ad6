"""
Match launching for the Chess LLM Arena.

A match is created in the store, then played as its own asyncio task. When the
game delivers an outcome, a completion callback runs (by default it updates
the win/draw/loss counters of both models). Infrastructure failures mark the
match as failed.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Awaitable, Callable, Optional, Tuple, Union

from .engine import PositionEvaluator
from .game import ProviderFactory, run_game
from .models import Config, GameConfig, ModelSpec, Outcome, Winner
from .storage import SQLiteMatchStore
from ..llm.client import create_provider

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[SQLiteMatchStore, GameConfig, Outcome], Union[None, Awaitable[None]]]


def record_model_results(store: SQLiteMatchStore, game_config: GameConfig, outcome: Outcome) -> None:
    """
    Add one game to both models' counters.

    Counters are read, incremented and written back; concurrent matches of the
    same model may overwrite each other's update (last write wins).
    """
    for color, model in (("white", game_config.white), ("black", game_config.black)):
        if model.id is None:
            continue
        stats = store.get_model_stats(model.id)
        if stats is None:
            logger.warning(f"Model {model} not found, stats not updated")
            continue

        wins, draws, losses = stats.wins, stats.draws, stats.losses
        if outcome.winner == Winner.DRAW:
            draws += 1
        elif outcome.winner.value == color:
            wins += 1
        else:
            losses += 1

        store.update_model_stats(
            model.id,
            games_played=stats.games_played + 1,
            wins=wins,
            draws=draws,
            losses=losses,
        )


async def play_match(
    store: SQLiteMatchStore,
    game_config: GameConfig,
    evaluator: Optional[PositionEvaluator] = None,
    provider_factory: Optional[ProviderFactory] = None,
    on_complete: Optional[CompletionCallback] = record_model_results,
) -> Outcome:
    """
    Play a created match and run the completion callback.

    Raises:
        Exception: Any infrastructure error, after the match is marked failed
    """
    match_id = game_config.match_id
    try:
        outcome = await run_game(
            game_config,
            store,
            evaluator=evaluator,
            provider_factory=provider_factory,
        )
    except Exception as e:
        logger.error(f"[Match {match_id}] failed: {e}")
        try:
            store.mark_failed(match_id)
        except Exception as mark_error:
            logger.error(f"[Match {match_id}] could not be marked failed: {mark_error}")
        raise

    if on_complete is not None:
        result = on_complete(store, game_config, outcome)
        if asyncio.iscoroutine(result):
            await result

    logger.info(
        f"[Match {match_id}] {game_config.white.name} vs {game_config.black.name}: "
        f"{outcome.winner.value} ({outcome.reason.value})"
    )
    return outcome


def start_match(
    store: SQLiteMatchStore,
    white: ModelSpec,
    black: ModelSpec,
    config: Optional[Config] = None,
    evaluator: Optional[PositionEvaluator] = None,
    provider_factory: Optional[ProviderFactory] = None,
    tournament_id: Optional[int] = None,
    on_complete: Optional[CompletionCallback] = record_model_results,
) -> Tuple[int, asyncio.Task]:
    """
    Create a match and start playing it in the background.

    Must be called from a running event loop.

    Args:
        store: Match store
        white: White model (must be registered in the store)
        black: Black model (must be registered in the store)
        config: Global configuration (defaults if None)
        evaluator: Position evaluator for forfeits
        provider_factory: Builds a provider from a provider id
        tournament_id: Optional tournament the match belongs to
        on_complete: Callback run after the outcome is known

    Returns:
        Tuple of (match_id, task resolving to the Outcome)
    """
    if white.id is None or black.id is None:
        raise ValueError("Both models must be registered before starting a match")

    config = config or Config()
    match_id = store.create_match(white.id, black.id, tournament_id=tournament_id)
    game_config = GameConfig.from_config(match_id, white, black, config)

    if provider_factory is None:
        provider_factory = partial(create_provider, config=config)

    task = asyncio.create_task(
        play_match(
            store,
            game_config,
            evaluator=evaluator or PositionEvaluator.from_config(config),
            provider_factory=provider_factory,
            on_complete=on_complete,
        ),
        name=f"match-{match_id}",
    )
    logger.info(f"[Match {match_id}] Scheduled {white.name} vs {black.name}")
    return match_id, task
