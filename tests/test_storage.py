"""
Unit tests for the SQLite match store.
"""

import os
import tempfile
import unittest

from chess_llm_arena.core.models import MoveRecord, OutcomeReason, Winner
from chess_llm_arena.core.storage import SQLiteMatchStore, StorageError


class StoreTestCase(unittest.TestCase):
    """Base class providing a fresh database per test."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmpdir.name, "arena.db")
        self.store = SQLiteMatchStore(self.db_path)
        self.white = self.store.add_model("Claude", "anthropic/claude-sonnet-4.5")
        self.black = self.store.add_model("Grok", "x-ai/grok-4")

    def tearDown(self):
        self.tmpdir.cleanup()


class ModelRegistryTests(StoreTestCase):
    """Test model registration and standings."""

    def test_add_model_assigns_id(self):
        self.assertIsNotNone(self.white.id)
        self.assertNotEqual(self.white.id, self.black.id)

    def test_add_model_is_idempotent(self):
        again = self.store.add_model("Other name", "anthropic/claude-sonnet-4.5")
        self.assertEqual(again.id, self.white.id)
        self.assertEqual(again.name, "Claude")

    def test_lookup(self):
        self.assertEqual(self.store.get_model(self.black.id).provider_id, "x-ai/grok-4")
        self.assertEqual(self.store.get_model_by_provider_id("x-ai/grok-4").id, self.black.id)
        self.assertIsNone(self.store.get_model(9999))
        self.assertIsNone(self.store.get_model_by_provider_id("nobody/none"))

    def test_stats_and_standings(self):
        self.store.update_model_stats(self.black.id, games_played=3, wins=2, draws=1, losses=0)
        self.store.update_model_stats(self.white.id, games_played=3, wins=0, draws=1, losses=2)

        stats = self.store.get_model_stats(self.black.id)
        self.assertEqual(stats.score, 2.5)
        self.assertAlmostEqual(stats.win_rate, 2 / 3)

        standings = self.store.list_models()
        self.assertEqual([s.model.name for s in standings], ["Grok", "Claude"])

    def test_new_model_has_no_games(self):
        stats = self.store.get_model_stats(self.white.id)
        self.assertEqual(stats.games_played, 0)
        self.assertEqual(stats.win_rate, 0.0)


class MatchLifecycleTests(StoreTestCase):
    """Test match status transitions and move storage."""

    def test_create_match(self):
        match_id = self.store.create_match(self.white.id, self.black.id, tournament_id=7)
        match = self.store.get_match(match_id)
        self.assertEqual(match.status, "pending")
        self.assertEqual(match.tournament_id, 7)
        self.assertEqual(match.white_model_id, self.white.id)
        self.assertIsNone(match.result)

    def test_full_lifecycle(self):
        match_id = self.store.create_match(self.white.id, self.black.id)
        self.store.mark_running(match_id)
        self.assertEqual(self.store.get_match(match_id).status, "running")

        self.store.append_move(match_id, MoveRecord(1, "white", "e4", "e2e4", "fen1", "thinking"))
        self.store.append_move(match_id, MoveRecord(1, "black", "e5", "e7e5", "fen2"))
        self.store.complete_match(match_id, Winner.DRAW, OutcomeReason.MAX_MOVES, "[pgn]", 2)

        match = self.store.get_match(match_id)
        self.assertEqual(match.status, "completed")
        self.assertEqual(match.result, "draw")
        self.assertEqual(match.result_reason, "max_moves")
        self.assertEqual(match.pgn, "[pgn]")
        self.assertEqual(match.total_moves, 2)
        self.assertTrue(match.completed_at.endswith("+00:00"))
        self.assertTrue(match.created_at.endswith("+00:00"))

        moves = self.store.get_moves(match_id)
        self.assertEqual([m.san for m in moves], ["e4", "e5"])
        self.assertEqual(moves[0].thinking, "thinking")
        self.assertIsNone(moves[1].thinking)
        self.assertIsNone(moves[0].engine_eval)

    def test_mark_failed(self):
        match_id = self.store.create_match(self.white.id, self.black.id)
        self.store.mark_failed(match_id)
        self.assertEqual(self.store.get_match(match_id).status, "failed")

    def test_unknown_match(self):
        self.assertIsNone(self.store.get_match(12345))
        self.assertEqual(self.store.get_moves(12345), [])

    def test_database_persists_between_stores(self):
        match_id = self.store.create_match(self.white.id, self.black.id)
        reopened = SQLiteMatchStore(self.db_path)
        self.assertEqual(reopened.get_match(match_id).id, match_id)


class StorageErrorTests(unittest.TestCase):
    """Test that database errors surface as StorageError."""

    def test_unopenable_database(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            # A directory cannot be opened as a database file
            with self.assertRaises(StorageError):
                SQLiteMatchStore(tmpdir)


if __name__ == "__main__":
    unittest.main()
