"""
Unit tests for the command-line interface.
"""

import os
import tempfile
import unittest
from unittest.mock import patch

from chess_llm_arena.cli import config_from_args, create_argument_parser, main, render_outcome
from chess_llm_arena.core.models import Outcome, OutcomeReason, Winner
from chess_llm_arena.core.storage import SQLiteMatchStore


class ArgumentParsingTests(unittest.TestCase):
    """Test command-line parsing."""

    def setUp(self):
        self.parser = create_argument_parser()

    def test_play_defaults(self):
        args = self.parser.parse_args(["play", "--white", "anthropic/claude-sonnet-4.5", "--black", "x-ai/grok-4"])
        config = config_from_args(args)
        self.assertEqual(config.max_moves, 150)
        self.assertEqual(config.max_retries, 1)
        self.assertEqual(config.cli_timeout, 480)
        self.assertEqual(config.api_timeout, 300)
        self.assertTrue(config.resignation_concedes)
        self.assertEqual(config.db_path, "arena.db")

    def test_play_options(self):
        args = self.parser.parse_args([
            "--db", "other.db",
            "play", "--white", "a/b", "--black", "c/d",
            "--max-moves", "40", "--retries", "0", "--timeout", "60",
            "--resignation-by-eval",
        ])
        config = config_from_args(args)
        self.assertEqual(config.max_moves, 40)
        self.assertEqual(config.max_retries, 0)
        self.assertEqual(config.cli_timeout, 60)
        self.assertEqual(config.api_timeout, 60)
        self.assertFalse(config.resignation_concedes)
        self.assertEqual(config.db_path, "other.db")

    def test_command_required(self):
        with patch("sys.stderr"):
            with self.assertRaises(SystemExit):
                self.parser.parse_args([])


class CommandTests(unittest.TestCase):
    """Test the show and standings commands against a temporary database."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmpdir.name, "arena.db")
        store = SQLiteMatchStore(self.db_path)
        white = store.add_model("Alpha", "test/alpha")
        black = store.add_model("Beta", "test/beta")
        self.match_id = store.create_match(white.id, black.id)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_standings(self):
        self.assertEqual(main(["--db", self.db_path, "standings"]), 0)

    def test_show(self):
        self.assertEqual(main(["--db", self.db_path, "show", str(self.match_id)]), 0)

    def test_show_missing_match(self):
        self.assertEqual(main(["--db", self.db_path, "show", "999"]), 1)

    def test_play_rejects_bad_model(self):
        """Test that a malformed model specification is reported, not raised."""
        code = main(["--db", self.db_path, "play", "--white", "nonamespace", "--black", "x-ai/grok-4"])
        self.assertEqual(code, 1)


class RenderOutcomeTests(unittest.TestCase):

    def test_forfeit_panel(self):
        outcome = Outcome(
            winner=Winner.BLACK,
            reason=OutcomeReason.TIMEOUT,
            total_half_moves=12,
            fen="8/8/8/8/8/8/8/8 w - - 0 1",
            forfeit_eval=-85,
        )
        panel = render_outcome(3, "Alpha", "Beta", outcome)
        self.assertIn("Beta wins", panel.renderable)
        self.assertIn("timeout", panel.renderable)
        self.assertIn("-85cp", panel.renderable)


if __name__ == "__main__":
    unittest.main()
