"""
Rules engine adapter for the Chess LLM Arena.

Legal move generation, move application and game-end detection are delegated
to python-chess. This module only exposes the narrow, SAN-based view of a game
that the orchestrator needs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

import chess
import chess.pgn as chess_pgn

from .models import OutcomeReason, Winner

logger = logging.getLogger(__name__)

_TERMINATION_REASONS = {
    chess.Termination.CHECKMATE: OutcomeReason.CHECKMATE,
    chess.Termination.STALEMATE: OutcomeReason.STALEMATE,
    chess.Termination.INSUFFICIENT_MATERIAL: OutcomeReason.INSUFFICIENT_MATERIAL,
    chess.Termination.SEVENTYFIVE_MOVES: OutcomeReason.FIFTY_MOVE,
    chess.Termination.FIVEFOLD_REPETITION: OutcomeReason.REPETITION,
}


@dataclass
class MoveResult:
    """Result of applying a SAN token to the board."""

    success: bool
    san: Optional[str] = None
    uci: Optional[str] = None
    error: Optional[str] = None


class ChessGame:
    """
    A single chess game as seen by the orchestrator.

    Draws that would normally have to be claimed end the game automatically once
    the current position has occurred three times or fifty moves have passed
    without a capture or pawn move.
    """

    def __init__(self, fen: Optional[str] = None):
        self._board = chess.Board(fen) if fen else chess.Board()
        self._history: List[str] = []

    @property
    def board(self) -> chess.Board:
        """Copy of the underlying board."""
        return self._board.copy()

    def fen(self) -> str:
        return self._board.fen()

    def turn(self) -> str:
        """Side to move, "white" or "black"."""
        return "white" if self._board.turn == chess.WHITE else "black"

    def legal_moves(self) -> List[str]:
        """Legal moves in SAN, in generation order."""
        return [self._board.san(move) for move in self._board.legal_moves]

    def is_check(self) -> bool:
        return self._board.is_check()

    def is_game_over(self) -> bool:
        return self.game_over_reason() is not None

    def move_number(self) -> int:
        return self._board.fullmove_number

    def history(self) -> List[str]:
        """SAN moves played since the game was created."""
        return list(self._history)

    def make_move(self, san: str) -> MoveResult:
        """Apply a SAN move; illegal or malformed moves leave the board untouched."""
        try:
            move = self._board.parse_san(san)
        except ValueError as e:
            logger.debug(f"Rejected move {san!r}: {e}")
            return MoveResult(success=False, error=f"Invalid move: {san}")

        normalized = self._board.san(move)
        self._board.push(move)
        self._history.append(normalized)
        return MoveResult(success=True, san=normalized, uci=move.uci())

    def game_over_reason(self) -> Optional[OutcomeReason]:
        """Reason the game is over, or None while it is still running."""
        outcome = self._board.outcome()
        if outcome is not None:
            return _TERMINATION_REASONS.get(outcome.termination, OutcomeReason.STALEMATE)
        if self._board.is_repetition(3):
            return OutcomeReason.REPETITION
        if self._board.is_fifty_moves():
            return OutcomeReason.FIFTY_MOVE
        return None

    def result_winner(self) -> Optional[Winner]:
        """Winner of a finished game; the side to move is the one checkmated."""
        reason = self.game_over_reason()
        if reason is None:
            return None
        if reason == OutcomeReason.CHECKMATE:
            return Winner.BLACK if self._board.turn == chess.WHITE else Winner.WHITE
        return Winner.DRAW

    def pgn(self, headers: Optional[Dict[str, str]] = None) -> str:
        """Full game serialization in PGN."""
        game = chess_pgn.Game.from_board(self._board)
        game.headers["Event"] = "Chess LLM Arena"
        game.headers["Site"] = "Chess LLM Arena"
        game.headers["Date"] = datetime.now(timezone.utc).strftime("%Y.%m.%d")
        for key, value in (headers or {}).items():
            game.headers[key] = value
        return str(game)
