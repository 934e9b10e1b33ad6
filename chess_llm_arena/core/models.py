"""
Core data models for the Chess LLM Arena.

This module defines the fundamental data structures used throughout the application
for representing competitors, game configuration, turn attempts, moves and outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any


class Winner(str, Enum):
    """Side credited with the result of a game."""

    WHITE = "white"
    BLACK = "black"
    DRAW = "draw"

    @classmethod
    def for_color(cls, color: str) -> "Winner":
        return cls.WHITE if color == "white" else cls.BLACK


class OutcomeReason(str, Enum):
    """Why a game ended."""

    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    REPETITION = "repetition"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    FIFTY_MOVE = "fifty_move"
    MAX_MOVES = "max_moves"

    # Forfeits
    TIMEOUT = "timeout"
    RESIGNATION = "resignation"
    INVALID_MOVE = "invalid_move"

    @property
    def is_forfeit(self) -> bool:
        return self in (OutcomeReason.TIMEOUT, OutcomeReason.RESIGNATION, OutcomeReason.INVALID_MOVE)

    @property
    def is_draw_only(self) -> bool:
        """True for endings that can only be scored as a draw."""
        return self in (
            OutcomeReason.STALEMATE,
            OutcomeReason.REPETITION,
            OutcomeReason.INSUFFICIENT_MATERIAL,
            OutcomeReason.FIFTY_MOVE,
            OutcomeReason.MAX_MOVES,
        )


class FailureKind(str, Enum):
    """Classification of a single failed turn attempt."""

    TIMEOUT = "timeout"
    PROVIDER_FAILURE = "provider_failure"
    NO_MOVE = "no_move"
    ILLEGAL_MOVE = "illegal_move"
    RESIGNATION = "resignation"


@dataclass
class ModelSpec:
    """Identity of one competitor in a match."""

    name: str          # Display name, also shown to the opponent
    provider_id: str   # Namespaced identifier, e.g. "anthropic/claude-sonnet-4.5"
    id: Optional[int] = None  # Persistence key

    def __post_init__(self):
        """Validate model specification after initialization."""
        if not self.provider_id:
            raise ValueError("Provider id cannot be empty")
        if not self.name:
            raise ValueError("Model name cannot be empty")
        self.provider_id = self.provider_id.strip()

    @property
    def namespace(self) -> str:
        """Provider namespace, the part before the first slash."""
        return self.provider_id.split("/", 1)[0].lower()

    def __str__(self) -> str:
        return f"{self.name} ({self.provider_id})"


@dataclass
class Config:
    """Configuration settings for the chess LLM arena."""

    # Game settings
    max_moves: int = 150            # Full moves; the half-move cap is twice this
    max_retries: int = 1            # Extra attempts after the first one
    resignation_concedes: bool = True

    # Provider settings
    cli_timeout: float = 480.0
    api_timeout: float = 300.0
    llm_temperature: float = 0.3
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_referer: str = "https://chess-llm-arena.local"
    openrouter_title: str = "Chess LLM Arena"

    # Evaluation settings
    stockfish_path: Optional[str] = None
    eval_depth: int = 12
    eval_timeout: float = 10.0

    # Output settings
    db_path: str = "arena.db"

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            field.name: getattr(self, field.name)
            for field in self.__dataclass_fields__.values()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Config:
        """Create config from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class GameConfig:
    """Parameters for a single game between two models."""

    match_id: int
    white: ModelSpec
    black: ModelSpec
    max_moves: int = 150
    turn_timeout_s: Optional[float] = None  # None: each provider's own default
    max_retries: int = 1
    resignation_concedes: bool = True  # False: resignations are settled by evaluation too

    def __post_init__(self):
        if self.max_moves <= 0:
            raise ValueError("max_moves must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.turn_timeout_s is not None and self.turn_timeout_s <= 0:
            raise ValueError("turn_timeout_s must be positive")

    @property
    def max_half_moves(self) -> int:
        return self.max_moves * 2

    @classmethod
    def from_config(cls, match_id: int, white: ModelSpec, black: ModelSpec, config: Config) -> GameConfig:
        """Build a game configuration from global settings."""
        return cls(
            match_id=match_id,
            white=white,
            black=black,
            max_moves=config.max_moves,
            max_retries=config.max_retries,
            resignation_concedes=config.resignation_concedes,
        )


@dataclass
class TurnAttempt:
    """One request/response cycle within a ply."""

    index: int
    prompt: str
    raw_output: str = ""
    move: Optional[str] = None
    accepted: bool = False
    failure: Optional[FailureKind] = None
    duration: float = 0.0

    def transcript_entry(self) -> str:
        """Text kept in the move rationale for this attempt."""
        if self.failure in (FailureKind.TIMEOUT, FailureKind.PROVIDER_FAILURE):
            return f"[Attempt {self.index + 1}] Error: {self.raw_output}"
        if self.failure == FailureKind.NO_MOVE:
            return f"[Attempt {self.index + 1}] No parseable move from output:\n{self.raw_output}"
        if self.failure == FailureKind.ILLEGAL_MOVE:
            return f"[Attempt {self.index + 1}] Engine rejected move: {self.move}\n{self.raw_output}"
        return self.raw_output


@dataclass
class TurnResult:
    """Result of running the turn executor for one ply."""

    success: bool
    reason: str   # "ok", or one of the forfeit reasons
    san: Optional[str] = None
    uci: Optional[str] = None
    thinking: Optional[str] = None
    attempts: List[TurnAttempt] = field(default_factory=list)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


@dataclass
class MoveRecord:
    """A move as handed to persistence."""

    move_number: int   # 1-based full move number
    color: str         # "white" or "black"
    san: str
    uci: str
    fen_after: str
    thinking: Optional[str] = None
    engine_eval: Optional[float] = None  # Attached later by external analysis


@dataclass
class Outcome:
    """Terminal result of a game session."""

    winner: Winner
    reason: OutcomeReason
    total_half_moves: int
    fen: str = ""
    pgn: str = ""
    moves: List[MoveRecord] = field(default_factory=list)
    forfeit_eval: Optional[int] = None  # Centipawns used to settle a forfeit

    def __post_init__(self):
        if self.reason == OutcomeReason.CHECKMATE and self.winner == Winner.DRAW:
            raise ValueError("Checkmate cannot be scored as a draw")
        if self.reason.is_draw_only and self.winner != Winner.DRAW:
            raise ValueError(f"{self.reason.value} must be scored as a draw")

    @property
    def is_draw(self) -> bool:
        return self.winner == Winner.DRAW

    @property
    def result_string(self) -> str:
        """PGN-style result: "1-0", "0-1" or "1/2-1/2"."""
        if self.winner == Winner.WHITE:
            return "1-0"
        if self.winner == Winner.BLACK:
            return "0-1"
        return "1/2-1/2"
