"""
Match persistence for the Chess LLM Arena.

This module defines the storage contract the game loop writes through and a
SQLite implementation of it, which also keeps the model registry and the
win/draw/loss counters used for standings.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Union

from .models import ModelSpec, MoveRecord, OutcomeReason, Winner

logger = logging.getLogger(__name__)

MATCH_STATUSES = ("pending", "running", "completed", "failed")


class StorageError(Exception):
    """Raised when the persistence layer cannot be reached or written."""
    pass


@dataclass
class MatchRow:
    """A stored match."""

    id: int
    white_model_id: int
    black_model_id: int
    status: str
    tournament_id: Optional[int] = None
    result: Optional[str] = None
    result_reason: Optional[str] = None
    pgn: Optional[str] = None
    total_moves: int = 0
    created_at: Optional[str] = None
    completed_at: Optional[str] = None


@dataclass
class ModelStats:
    """Aggregate results of one model."""

    model: ModelSpec
    games_played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0

    @property
    def win_rate(self) -> float:
        """Win percentage (0.0 to 1.0)."""
        if self.games_played == 0:
            return 0.0
        return self.wins / self.games_played

    @property
    def score(self) -> float:
        """Tournament score: one point per win, half per draw."""
        return self.wins + 0.5 * self.draws


class MatchStore(ABC):
    """Persistence operations required by the game loop."""

    @abstractmethod
    def mark_running(self, match_id: int) -> None:
        pass

    @abstractmethod
    def append_move(self, match_id: int, record: MoveRecord) -> None:
        pass

    @abstractmethod
    def complete_match(
        self,
        match_id: int,
        winner: Winner,
        reason: OutcomeReason,
        pgn: str,
        total_half_moves: int,
    ) -> None:
        pass

    @abstractmethod
    def mark_failed(self, match_id: int) -> None:
        pass


class SQLiteMatchStore(MatchStore):
    """SQLite database for models, matches and moves."""

    def __init__(self, db_path: Union[str, Path]):
        """Initialize the database, creating the schema if needed."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Database operation failed: {e}") from e
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._connect() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS models (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    provider_id TEXT NOT NULL UNIQUE,
                    games_played INTEGER NOT NULL DEFAULT 0,
                    wins INTEGER NOT NULL DEFAULT 0,
                    draws INTEGER NOT NULL DEFAULT 0,
                    losses INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT
                );

                CREATE TABLE IF NOT EXISTS matches (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    tournament_id INTEGER,
                    white_model_id INTEGER NOT NULL REFERENCES models(id),
                    black_model_id INTEGER NOT NULL REFERENCES models(id),
                    result TEXT,
                    result_reason TEXT,
                    pgn TEXT,
                    status TEXT NOT NULL DEFAULT 'pending',
                    total_moves INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT,
                    completed_at TEXT
                );

                CREATE TABLE IF NOT EXISTS moves (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    match_id INTEGER NOT NULL REFERENCES matches(id),
                    move_number INTEGER NOT NULL,
                    color TEXT NOT NULL,
                    san TEXT NOT NULL,
                    uci TEXT NOT NULL,
                    fen_after TEXT NOT NULL,
                    thinking TEXT,
                    engine_eval REAL,
                    created_at TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_moves_match ON moves(match_id);
                CREATE INDEX IF NOT EXISTS idx_matches_status ON matches(status);
            """)

    # Models

    def add_model(self, name: str, provider_id: str) -> ModelSpec:
        """Register a model, returning the existing row if the provider id is known."""
        existing = self.get_model_by_provider_id(provider_id)
        if existing:
            return existing

        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO models (name, provider_id, created_at) VALUES (?, ?, ?)",
                (name, provider_id, _now()),
            )
            model_id = cursor.lastrowid
        logger.debug(f"Registered model {name} ({provider_id}) as {model_id}")
        return ModelSpec(name=name, provider_id=provider_id, id=model_id)

    def get_model(self, model_id: int) -> Optional[ModelSpec]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM models WHERE id = ?", (model_id,)).fetchone()
        return _model_from_row(row) if row else None

    def get_model_by_provider_id(self, provider_id: str) -> Optional[ModelSpec]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM models WHERE provider_id = ?", (provider_id,)
            ).fetchone()
        return _model_from_row(row) if row else None

    def get_model_stats(self, model_id: int) -> Optional[ModelStats]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM models WHERE id = ?", (model_id,)).fetchone()
        return _stats_from_row(row) if row else None

    def list_models(self) -> List[ModelStats]:
        """All models ordered by score, then by games played."""
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM models").fetchall()
        stats = [_stats_from_row(row) for row in rows]
        return sorted(stats, key=lambda s: (-s.score, -s.games_played, s.model.name))

    def update_model_stats(
        self,
        model_id: int,
        games_played: int,
        wins: int,
        draws: int,
        losses: int,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE models SET games_played = ?, wins = ?, draws = ?, losses = ? WHERE id = ?",
                (games_played, wins, draws, losses, model_id),
            )

    # Matches

    def create_match(
        self,
        white_model_id: int,
        black_model_id: int,
        tournament_id: Optional[int] = None,
    ) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO matches (tournament_id, white_model_id, black_model_id, status, created_at) "
                "VALUES (?, ?, ?, 'pending', ?)",
                (tournament_id, white_model_id, black_model_id, _now()),
            )
            return cursor.lastrowid

    def get_match(self, match_id: int) -> Optional[MatchRow]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM matches WHERE id = ?", (match_id,)).fetchone()
        if not row:
            return None
        return MatchRow(
            id=row["id"],
            tournament_id=row["tournament_id"],
            white_model_id=row["white_model_id"],
            black_model_id=row["black_model_id"],
            status=row["status"],
            result=row["result"],
            result_reason=row["result_reason"],
            pgn=row["pgn"],
            total_moves=row["total_moves"],
            created_at=row["created_at"],
            completed_at=row["completed_at"],
        )

    def get_moves(self, match_id: int) -> List[MoveRecord]:
        """Moves of a match in the order they were played."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM moves WHERE match_id = ? ORDER BY id", (match_id,)
            ).fetchall()
        return [
            MoveRecord(
                move_number=row["move_number"],
                color=row["color"],
                san=row["san"],
                uci=row["uci"],
                fen_after=row["fen_after"],
                thinking=row["thinking"],
                engine_eval=row["engine_eval"],
            )
            for row in rows
        ]

    def _set_status(self, match_id: int, status: str) -> None:
        if status not in MATCH_STATUSES:
            raise ValueError(f"Unknown match status '{status}'")
        with self._connect() as conn:
            conn.execute("UPDATE matches SET status = ? WHERE id = ?", (status, match_id))

    def mark_running(self, match_id: int) -> None:
        self._set_status(match_id, "running")

    def mark_failed(self, match_id: int) -> None:
        self._set_status(match_id, "failed")

    def append_move(self, match_id: int, record: MoveRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO moves (match_id, move_number, color, san, uci, fen_after, thinking, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    match_id,
                    record.move_number,
                    record.color,
                    record.san,
                    record.uci,
                    record.fen_after,
                    record.thinking,
                    _now(),
                ),
            )

    def complete_match(
        self,
        match_id: int,
        winner: Winner,
        reason: OutcomeReason,
        pgn: str,
        total_half_moves: int,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE matches SET result = ?, result_reason = ?, pgn = ?, total_moves = ?, "
                "status = 'completed', completed_at = ? WHERE id = ?",
                (Winner(winner).value, OutcomeReason(reason).value, pgn, total_half_moves, _now(), match_id),
            )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _model_from_row(row: sqlite3.Row) -> ModelSpec:
    return ModelSpec(name=row["name"], provider_id=row["provider_id"], id=row["id"])


def _stats_from_row(row: sqlite3.Row) -> ModelStats:
    return ModelStats(
        model=_model_from_row(row),
        games_played=row["games_played"],
        wins=row["wins"],
        draws=row["draws"],
        losses=row["losses"],
    )
