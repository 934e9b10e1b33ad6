"""
Game runner module for managing chess games between two LLMs.

This module handles the orchestration of individual chess games: soliciting
moves from each side's provider with a bounded number of attempts, applying
accepted moves, persisting them in order, and settling forfeits by evaluating
the position.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable, List, Optional

from .engine import PositionEvaluator
from .models import (
    FailureKind,
    GameConfig,
    ModelSpec,
    MoveRecord,
    Outcome,
    OutcomeReason,
    TurnAttempt,
    TurnResult,
    Winner,
)
from .rules import ChessGame
from .storage import MatchStore
from ..llm.client import BaseMoveProvider, LLMProviderError, ProviderTimeout, create_provider
from ..llm.parsing import RESIGN, extract_move
from ..llm.prompts import build_prompt_for_game

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], BaseMoveProvider]


class TurnExecutor:
    """
    Runs one ply for one side.

    Each attempt builds a prompt, calls the provider, extracts a move and applies
    it to the game. Provider failures, unreadable answers and illegal moves are
    retried; a timeout or a resignation ends the ply at once.
    """

    def __init__(
        self,
        provider: BaseMoveProvider,
        max_retries: int = 1,
        timeout_s: Optional[float] = None,
    ):
        """
        Initialize the turn executor.

        Args:
            provider: Provider answering for this side
            max_retries: Attempts allowed after the first one
            timeout_s: Budget per provider call (provider default if None)
        """
        self.provider = provider
        self.max_retries = max_retries
        self.timeout_s = timeout_s

    @property
    def effective_timeout(self) -> float:
        return self.timeout_s or self.provider.default_timeout_s

    async def execute(self, game: ChessGame, color: str, opponent_name: str) -> TurnResult:
        """
        Obtain and apply one legal move for the side to move.

        Args:
            game: Game to move in; modified only when a move is accepted
            color: Side to move
            opponent_name: Display name of the opponent, shown in the prompt

        Returns:
            TurnResult with reason "ok", "timeout", "resignation" or "invalid_move"
        """
        attempts: List[TurnAttempt] = []
        rejected_move: Optional[str] = None
        timeout_s = self.effective_timeout
        total_attempts = self.max_retries + 1

        for index in range(total_attempts):
            prompt = build_prompt_for_game(
                game,
                color,
                opponent_name,
                previous_invalid_move=rejected_move,
                retry=index > 0,
                timeout_s=timeout_s,
                attempts_left=total_attempts - index,
            )
            attempt = TurnAttempt(index=index, prompt=prompt)
            attempts.append(attempt)
            rejected_move = None

            start_time = time.time()
            try:
                attempt.raw_output = await self.provider.invoke(prompt, timeout_s)
            except ProviderTimeout as e:
                attempt.failure = FailureKind.TIMEOUT
                attempt.raw_output = str(e)
                attempt.duration = time.time() - start_time
                logger.warning(f"{self.provider.provider_id} ({color}) timed out: {e}")
                return self._failed(OutcomeReason.TIMEOUT, attempts)
            except LLMProviderError as e:
                attempt.failure = FailureKind.PROVIDER_FAILURE
                attempt.raw_output = str(e)
                attempt.duration = time.time() - start_time
                logger.warning(
                    f"{self.provider.provider_id} ({color}) attempt {index + 1} failed: {e}"
                )
                continue
            attempt.duration = time.time() - start_time

            move = extract_move(attempt.raw_output, game.legal_moves())
            attempt.move = move

            if move is None:
                attempt.failure = FailureKind.NO_MOVE
                logger.warning(
                    f"{self.provider.provider_id} ({color}) attempt {index + 1}: no move in output"
                )
                continue

            if move == RESIGN:
                attempt.failure = FailureKind.RESIGNATION
                logger.info(f"{self.provider.provider_id} ({color}) resigned")
                return self._failed(OutcomeReason.RESIGNATION, attempts)

            result = game.make_move(move)
            if not result.success:
                attempt.failure = FailureKind.ILLEGAL_MOVE
                rejected_move = move
                logger.warning(
                    f"{self.provider.provider_id} ({color}) attempt {index + 1}: "
                    f"engine rejected move {move}"
                )
                continue

            attempt.accepted = True
            logger.debug(
                f"{self.provider.provider_id} ({color}) played {result.san} "
                f"after {len(attempts)} attempt(s), {attempt.duration:.1f}s"
            )
            return TurnResult(
                success=True,
                reason="ok",
                san=result.san,
                uci=result.uci,
                thinking=_transcript(attempts),
                attempts=attempts,
            )

        logger.warning(
            f"{self.provider.provider_id} ({color}) exhausted {len(attempts)} attempt(s) without a legal move"
        )
        return self._failed(OutcomeReason.INVALID_MOVE, attempts)

    @staticmethod
    def _failed(reason: OutcomeReason, attempts: List[TurnAttempt]) -> TurnResult:
        return TurnResult(
            success=False,
            reason=reason.value,
            thinking=_transcript(attempts),
            attempts=attempts,
        )


def _transcript(attempts: List[TurnAttempt]) -> str:
    return json.dumps([attempt.transcript_entry() for attempt in attempts])


def winner_from_eval(centipawns: int) -> Winner:
    """Side ahead in the evaluation; an exactly level position is a draw."""
    if centipawns > 0:
        return Winner.WHITE
    if centipawns < 0:
        return Winner.BLACK
    return Winner.DRAW


class GameRunner:
    """
    Manages one chess game between two models.

    The runner owns the game position for its whole lifetime and persists each
    accepted move before asking for the next one. Errors raised by the store
    are not handled here and propagate to the caller.
    """

    def __init__(
        self,
        config: GameConfig,
        store: MatchStore,
        evaluator: Optional[PositionEvaluator] = None,
        provider_factory: Optional[ProviderFactory] = None,
        start_fen: Optional[str] = None,
    ):
        """
        Initialize the game runner.

        Args:
            config: Game parameters
            store: Persistence for match status and moves
            evaluator: Position evaluator used to settle forfeits
            provider_factory: Builds a provider from a provider id
            start_fen: Starting position (standard start if None)
        """
        self.config = config
        self.store = store
        self.evaluator = evaluator or PositionEvaluator()
        self.provider_factory = provider_factory or create_provider
        self.start_fen = start_fen

    async def play(self) -> Outcome:
        """
        Play the game to completion.

        Returns:
            Outcome with winner, reason and the full move list

        Raises:
            StorageError: If persistence fails; the game is abandoned
        """
        config = self.config
        executors = {
            "white": TurnExecutor(
                self.provider_factory(config.white.provider_id),
                max_retries=config.max_retries,
                timeout_s=config.turn_timeout_s,
            ),
            "black": TurnExecutor(
                self.provider_factory(config.black.provider_id),
                max_retries=config.max_retries,
                timeout_s=config.turn_timeout_s,
            ),
        }

        game = ChessGame(self.start_fen)
        moves: List[MoveRecord] = []
        half_moves = 0
        game_start_time = time.time()

        self.store.mark_running(config.match_id)
        logger.info(
            f"[Match {config.match_id}] Starting: {config.white} vs {config.black}, "
            f"max {config.max_moves} moves, {config.max_retries} retries"
        )

        while not game.is_game_over() and half_moves < config.max_half_moves:
            color = game.turn()
            opponent = self._model(_opponent(color))

            turn = await executors[color].execute(game, color, opponent.name)

            if not turn.success:
                return await self._finish_forfeit(game, color, turn, half_moves, moves)

            record = MoveRecord(
                move_number=(half_moves + 2) // 2,
                color=color,
                san=turn.san,
                uci=turn.uci,
                fen_after=game.fen(),
                thinking=turn.thinking,
            )
            self.store.append_move(config.match_id, record)
            moves.append(record)
            half_moves += 1

            if half_moves % 10 == 0:
                logger.info(f"[Match {config.match_id}] {half_moves} half-moves played. FEN: {game.fen()}")

        if game.is_game_over():
            reason = game.game_over_reason()
            winner = game.result_winner()
        else:
            reason = OutcomeReason.MAX_MOVES
            winner = Winner.DRAW

        outcome = self._finish(game, winner, reason, half_moves, moves)
        logger.info(
            f"[Match {config.match_id}] Completed: {outcome.winner.value} ({outcome.reason.value}) "
            f"in {half_moves} half-moves, {time.time() - game_start_time:.1f}s"
        )
        return outcome

    async def _finish_forfeit(
        self,
        game: ChessGame,
        color: str,
        turn: TurnResult,
        half_moves: int,
        moves: List[MoveRecord],
    ) -> Outcome:
        reason = OutcomeReason(turn.reason)

        if reason == OutcomeReason.RESIGNATION and self.config.resignation_concedes:
            winner = Winner.for_color(_opponent(color))
            logger.info(f"[Match {self.config.match_id}] {color} resigned → {winner.value} wins")
            return self._finish(game, winner, reason, half_moves, moves)

        # The position decides, even in favour of the side that failed to move
        centipawns = await self.evaluator.evaluate(game.fen())
        winner = winner_from_eval(centipawns)
        logger.info(
            f"[Match {self.config.match_id}] Forfeit by {color} ({reason.value}). "
            f"Eval: {centipawns}cp → {winner.value}"
        )
        return self._finish(game, winner, reason, half_moves, moves, forfeit_eval=centipawns)

    def _finish(
        self,
        game: ChessGame,
        winner: Winner,
        reason: OutcomeReason,
        half_moves: int,
        moves: List[MoveRecord],
        forfeit_eval: Optional[int] = None,
    ) -> Outcome:
        outcome = Outcome(
            winner=winner,
            reason=reason,
            total_half_moves=half_moves,
            fen=game.fen(),
            moves=moves,
            forfeit_eval=forfeit_eval,
        )
        outcome.pgn = game.pgn({
            "Round": str(self.config.match_id),
            "White": self.config.white.name,
            "Black": self.config.black.name,
            "WhiteModel": self.config.white.provider_id,
            "BlackModel": self.config.black.provider_id,
            "Result": outcome.result_string,
            "Termination": reason.value,
        })
        self.store.complete_match(self.config.match_id, winner, reason, outcome.pgn, half_moves)
        return outcome

    def _model(self, color: str) -> ModelSpec:
        return self.config.white if color == "white" else self.config.black


def _opponent(color: str) -> str:
    return "black" if color == "white" else "white"


async def run_game(
    config: GameConfig,
    store: MatchStore,
    evaluator: Optional[PositionEvaluator] = None,
    provider_factory: Optional[ProviderFactory] = None,
) -> Outcome:
    """Run a single chess game between two models and return its outcome."""
    runner = GameRunner(config, store, evaluator=evaluator, provider_factory=provider_factory)
    return await runner.play()
