"""
Unit tests for position evaluation.

Tests the engine-backed evaluator with a mocked UCI engine, the material
fallback, and Stockfish autodetection.
"""

import asyncio
import os
import tempfile
import threading
import unittest
from unittest.mock import MagicMock, patch

import chess
import chess.engine

from chess_llm_arena.core.engine import (
    MATE_SCORE,
    EngineError,
    PositionEvaluator,
    autodetect_stockfish,
    evaluate_material,
    get_friendly_stockfish_hint,
)
from chess_llm_arena.core.models import Config


def async_test(coro):
    """Decorator to run async tests."""
    def wrapper(*args, **kwargs):
        return asyncio.run(coro(*args, **kwargs))
    return wrapper


def mock_engine_returning(score):
    """Patchable popen_uci replacement whose engine reports a fixed score."""
    engine = MagicMock()
    engine.__enter__.return_value = engine
    engine.analyse.return_value = {"score": score, "depth": 12}
    return MagicMock(return_value=engine), engine


class MaterialTests(unittest.TestCase):
    """Test material counting."""

    def test_start_position_is_level(self):
        self.assertEqual(evaluate_material(chess.STARTING_FEN), 0)

    def test_white_up_a_queen(self):
        fen = "rnb1kbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
        self.assertEqual(evaluate_material(fen), 900)

    def test_black_up_a_rook(self):
        fen = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/1NBQKBNR w Kkq - 0 1"
        self.assertEqual(evaluate_material(fen), -500)


class PositionEvaluatorTests(unittest.TestCase):
    """Test PositionEvaluator class functionality."""

    @async_test
    async def test_no_engine_falls_back_to_material(self):
        """Test that an empty engine path means material count."""
        evaluator = PositionEvaluator(engine_path="")
        fen = "rnb1kbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
        self.assertEqual(await evaluator.evaluate(fen), 900)

    @async_test
    async def test_evaluate_with_engine_requires_engine(self):
        evaluator = PositionEvaluator(engine_path="")
        with self.assertRaises(EngineError):
            await evaluator.evaluate_with_engine(chess.STARTING_FEN)

    @async_test
    async def test_engine_score_from_white_perspective(self):
        """Test that a black-relative score is converted to White's view."""
        popen, engine = mock_engine_returning(
            chess.engine.PovScore(chess.engine.Cp(-150), chess.BLACK)
        )
        with patch("chess_llm_arena.core.engine.chess_engine.SimpleEngine.popen_uci", popen):
            evaluator = PositionEvaluator(engine_path="/fake/stockfish", depth=8, timeout=1.0)
            score = await evaluator.evaluate(chess.STARTING_FEN)

        self.assertEqual(score, 150)
        popen.assert_called_once_with("/fake/stockfish", timeout=1.0)
        limit = engine.analyse.call_args[0][1]
        self.assertEqual(limit.depth, 8)

    @async_test
    async def test_mate_score(self):
        """Test that a forced mate maps to the mate score."""
        popen, _ = mock_engine_returning(
            chess.engine.PovScore(chess.engine.Mate(1), chess.WHITE)
        )
        with patch("chess_llm_arena.core.engine.chess_engine.SimpleEngine.popen_uci", popen):
            evaluator = PositionEvaluator(engine_path="/fake/stockfish")
            score = await evaluator.evaluate(chess.STARTING_FEN)
        self.assertEqual(score, MATE_SCORE - 1)

    @async_test
    async def test_engine_crash_falls_back(self):
        """Test fallback when the engine cannot be started."""
        popen = MagicMock(side_effect=FileNotFoundError("no such engine"))
        with patch("chess_llm_arena.core.engine.chess_engine.SimpleEngine.popen_uci", popen):
            evaluator = PositionEvaluator(engine_path="/fake/stockfish")
            fen = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/1NBQKBNR w Kkq - 0 1"
            self.assertEqual(await evaluator.evaluate(fen), -500)

    @async_test
    async def test_missing_score_falls_back(self):
        popen, engine = mock_engine_returning(None)
        engine.analyse.return_value = {}
        with patch("chess_llm_arena.core.engine.chess_engine.SimpleEngine.popen_uci", popen):
            evaluator = PositionEvaluator(engine_path="/fake/stockfish")
            self.assertEqual(await evaluator.evaluate(chess.STARTING_FEN), 0)

    @async_test
    async def test_hung_engine_is_closed_on_timeout(self):
        """Test that an engine still searching at the deadline is shut down."""
        closed = threading.Event()
        popen, engine = mock_engine_returning(None)
        engine.analyse.side_effect = lambda *args, **kwargs: closed.wait(5) and {}
        engine.close.side_effect = closed.set

        with patch("chess_llm_arena.core.engine.chess_engine.SimpleEngine.popen_uci", popen):
            with patch.object(PositionEvaluator, "GRACE_PERIOD", 0.0):
                evaluator = PositionEvaluator(engine_path="/fake/stockfish", timeout=0.2)
                with self.assertRaises(EngineError):
                    await evaluator.evaluate_with_engine(chess.STARTING_FEN)

        self.assertTrue(closed.is_set())
        engine.close.assert_called()

    def test_from_config(self):
        config = Config(stockfish_path=None, eval_depth=5, eval_timeout=2.0)
        with patch("chess_llm_arena.core.engine.autodetect_stockfish", return_value="/x/stockfish"):
            evaluator = PositionEvaluator.from_config(config)
        self.assertEqual(evaluator.engine_path, "/x/stockfish")
        self.assertEqual(evaluator.depth, 5)
        self.assertEqual(evaluator.timeout, 2.0)


class AutodetectTests(unittest.TestCase):
    """Test Stockfish autodetection."""

    def test_explicit_path_wins(self):
        with tempfile.NamedTemporaryFile() as f:
            self.assertEqual(autodetect_stockfish(f.name), f.name)

    def test_environment_variable(self):
        with tempfile.NamedTemporaryFile() as f:
            with patch.dict(os.environ, {"STOCKFISH_PATH": f.name}):
                self.assertEqual(autodetect_stockfish("/does/not/exist"), f.name)

    @patch("chess_llm_arena.core.engine.Path.exists", return_value=False)
    @patch("chess_llm_arena.core.engine.shutil.which", return_value=None)
    def test_not_found(self, mock_which, mock_exists):
        with patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(autodetect_stockfish())

    def test_hint_mentions_install(self):
        hint = get_friendly_stockfish_hint()
        self.assertIn("stockfish", hint.lower())
        self.assertIn("STOCKFISH_PATH", hint)


if __name__ == "__main__":
    unittest.main()
