"""
Position evaluation for the Chess LLM Arena.

This module scores positions in centipawns from White's perspective using a UCI
engine (typically Stockfish) through python-chess. When no engine is available,
or the engine fails, a material count is used instead.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

import chess
import chess.engine as chess_engine

from .models import Config

logger = logging.getLogger(__name__)

MATE_SCORE = 99999

PIECE_VALUES = {
    chess.PAWN: 100,
    chess.KNIGHT: 300,
    chess.BISHOP: 300,
    chess.ROOK: 500,
    chess.QUEEN: 900,
    chess.KING: 0,
}


class EngineError(Exception):
    """Custom exception for engine-related errors."""
    pass


class PositionEvaluator:
    """
    Scores chess positions for forfeit resolution.

    A fresh engine process is started for each evaluation and always shut down
    afterwards; evaluations are rare (at most one per game), so nothing is kept
    running between them.
    """

    # Seconds allowed on top of the search limit for engine startup and shutdown
    GRACE_PERIOD = 5.0

    def __init__(
        self,
        engine_path: Optional[str] = None,
        depth: int = 12,
        timeout: float = 10.0,
    ):
        """
        Initialize the evaluator.

        Args:
            engine_path: Path to the UCI engine executable (autodetected if None)
            depth: Search depth
            timeout: Hard time cap for one evaluation in seconds
        """
        self.engine_path = engine_path if engine_path is not None else autodetect_stockfish()
        self.depth = depth
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Config) -> PositionEvaluator:
        return cls(
            engine_path=autodetect_stockfish(config.stockfish_path),
            depth=config.eval_depth,
            timeout=config.eval_timeout,
        )

    async def evaluate(self, fen: str) -> int:
        """
        Evaluate a position, falling back to material count on engine failure.

        Args:
            fen: Position to evaluate

        Returns:
            Centipawns from White's perspective (positive favors White)
        """
        try:
            return await self.evaluate_with_engine(fen)
        except EngineError as e:
            logger.warning(f"Engine evaluation failed, falling back to material count: {e}")
            return evaluate_material(fen)

    async def evaluate_with_engine(self, fen: str) -> int:
        """Evaluate a position with the UCI engine only."""
        if not self.engine_path:
            raise EngineError("No engine available")

        board = chess.Board(fen)
        engines: List[chess_engine.SimpleEngine] = []
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._analyse, board, engines),
                timeout=self.timeout + self.GRACE_PERIOD,
            )
        except asyncio.TimeoutError:
            # The worker thread cannot be cancelled; closing the engine unblocks it
            for engine in engines:
                engine.close()
            raise EngineError(f"Evaluation timed out after {self.timeout}s")
        except EngineError:
            raise
        except Exception as e:
            raise EngineError(f"Position analysis failed: {e}") from e

    def _analyse(self, board: chess.Board, engines: List[chess_engine.SimpleEngine]) -> int:
        with chess_engine.SimpleEngine.popen_uci(self.engine_path, timeout=self.timeout) as engine:
            engines.append(engine)
            info = engine.analyse(board, chess_engine.Limit(depth=self.depth, time=self.timeout))

        score = info.get("score")
        if score is None:
            raise EngineError("Engine returned no score")

        centipawns = score.white().score(mate_score=MATE_SCORE)
        logger.debug(f"Engine evaluation at depth {info.get('depth')}: {centipawns}cp")
        return centipawns


def evaluate_material(fen: str) -> int:
    """
    Simple material count from White's perspective.

    Args:
        fen: Position to evaluate

    Returns:
        Material balance in centipawns
    """
    board = chess.Board(fen)
    score = 0
    for piece in board.piece_map().values():
        value = PIECE_VALUES[piece.piece_type]
        score += value if piece.color == chess.WHITE else -value
    return score


def autodetect_stockfish(cli_path: Optional[str] = None) -> Optional[str]:
    """
    Auto-detect Stockfish installation path.

    Search order:
    1. Explicit CLI path argument
    2. STOCKFISH_PATH environment variable
    3. System PATH lookup
    4. Common installation directories

    Args:
        cli_path: Explicitly provided path (highest priority)

    Returns:
        Path to Stockfish executable if found, None otherwise
    """
    if cli_path and Path(cli_path).exists():
        return cli_path

    env_path = os.getenv("STOCKFISH_PATH")
    if env_path and Path(env_path).exists():
        return env_path

    which_path = shutil.which("stockfish")
    if which_path:
        return which_path

    common_paths = [
        "/usr/local/bin/stockfish",
        "/usr/bin/stockfish",
        "/usr/games/stockfish",
        "/opt/homebrew/bin/stockfish",
        "C:/Program Files/Stockfish/stockfish.exe",
    ]

    for path in common_paths:
        if Path(path).exists():
            return path

    return None


def get_friendly_stockfish_hint() -> str:
    """
    Get a user-friendly message about how to install Stockfish.

    Returns:
        Formatted installation instructions
    """
    return (
        "Stockfish not found; forfeits will be settled by material count.\n"
        "• macOS:    brew install stockfish\n"
        "• Ubuntu:   sudo apt-get install stockfish\n"
        "• Windows:  choco install stockfish\n"
        "\nOr set environment variable: export STOCKFISH_PATH=/path/to/stockfish"
    )
