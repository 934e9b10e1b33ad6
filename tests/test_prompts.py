"""
Unit tests for chess prompt construction.
"""

import unittest

from chess_llm_arena.core.rules import ChessGame
from chess_llm_arena.llm.prompts import build_prompt, build_prompt_for_game, format_move_history

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


class MoveHistoryTests(unittest.TestCase):
    """Test move history formatting."""

    def test_pairs(self):
        self.assertEqual(format_move_history(["e4", "e5", "Nf3", "Nc6"]), "1. e4 e5 2. Nf3 Nc6")

    def test_odd_length(self):
        self.assertEqual(format_move_history(["e4", "e5", "Nf3"]), "1. e4 e5 2. Nf3")

    def test_empty(self):
        self.assertEqual(format_move_history([]), "")


class BuildPromptTests(unittest.TestCase):
    """Test prompt contents."""

    def setUp(self):
        self.kwargs = dict(
            color="white",
            opponent_name="Gemini",
            fen=START_FEN,
            move_number=1,
            is_check=False,
            legal_moves=["e4", "d4", "Nf3"],
            move_history=[],
        )

    def test_first_attempt(self):
        """Test the prompt for a first attempt."""
        prompt = build_prompt(**self.kwargs)
        self.assertIn("playing chess as white against Gemini", prompt)
        self.assertIn(f"CURRENT POSITION (FEN): {START_FEN}", prompt)
        self.assertIn("MOVE HISTORY: (game start)", prompt)
        self.assertIn("LEGAL MOVES: e4, d4, Nf3", prompt)
        self.assertIn("MOVE: <your move>", prompt)
        self.assertIn("MOVE: RESIGN", prompt)
        self.assertNotIn("WARNING", prompt)
        self.assertNotIn("CHECK", prompt)

    def test_history_included(self):
        """Test that the move history is numbered."""
        self.kwargs.update(move_history=["e4", "e5"], move_number=2)
        prompt = build_prompt(**self.kwargs)
        self.assertIn("MOVE HISTORY: 1. e4 e5", prompt)
        self.assertIn("It is move 2.", prompt)

    def test_check_warning(self):
        """Test the check warning."""
        self.kwargs.update(is_check=True)
        self.assertIn("YOUR KING IS IN CHECK", build_prompt(**self.kwargs))

    def test_retry_names_rejected_move(self):
        """Test that a retry prompt quotes the rejected token."""
        prompt = build_prompt(previous_invalid_move="Ke2", retry=True, **self.kwargs)
        self.assertIn('"Ke2" is NOT a legal move', prompt)
        self.assertIn("LAST chance", prompt)
        self.assertIn("FORFEIT", prompt)

    def test_retry_with_attempts_remaining(self):
        """Test that the final-attempt wording is kept for the final attempt."""
        prompt = build_prompt(previous_invalid_move="Ke2", retry=True, attempts_left=3, **self.kwargs)
        self.assertIn("You have 3 attempts left", prompt)
        self.assertNotIn("LAST chance", prompt)

        prompt = build_prompt(previous_invalid_move="Ke2", retry=True, attempts_left=1, **self.kwargs)
        self.assertIn("LAST chance", prompt)

    def test_retry_without_rejected_move(self):
        """Test the retry warning when nothing could be read."""
        prompt = build_prompt(retry=True, **self.kwargs)
        self.assertIn("No legal move could be read", prompt)
        self.assertIn("FORFEIT", prompt)

    def test_timeout_mentioned(self):
        """Test that the time budget is stated."""
        self.assertIn("You have 8 minutes to respond", build_prompt(timeout_s=480, **self.kwargs))
        self.assertIn("You have 45 seconds to respond", build_prompt(timeout_s=45, **self.kwargs))


class GamePromptTests(unittest.TestCase):
    """Test prompts built from a running game."""

    def test_prompt_for_game(self):
        game = ChessGame()
        game.make_move("e4")
        prompt = build_prompt_for_game(game, "black", "Claude")

        self.assertIn("playing chess as black against Claude", prompt)
        self.assertIn(game.fen(), prompt)
        self.assertIn("MOVE HISTORY: 1. e4", prompt)
        for move in game.legal_moves():
            self.assertIn(move, prompt)

    def test_prompt_in_check(self):
        game = ChessGame()
        for move in ("e4", "f5", "Qh5+"):
            self.assertTrue(game.make_move(move).success)
        prompt = build_prompt_for_game(game, "black", "Claude")
        self.assertIn("YOUR KING IS IN CHECK", prompt)
        self.assertIn("LEGAL MOVES: g6", prompt)


if __name__ == "__main__":
    unittest.main()
