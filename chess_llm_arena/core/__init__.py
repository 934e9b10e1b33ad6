"""
Core package for Chess LLM Arena.

This package contains the fundamental components for running chess games
between LLMs, including data models, the rules adapter, position evaluation,
persistence and game orchestration.
"""

from .models import (
    ModelSpec,
    Config,
    GameConfig,
    TurnAttempt,
    TurnResult,
    MoveRecord,
    Outcome,
    OutcomeReason,
    FailureKind,
    Winner,
)

from .rules import ChessGame, MoveResult

from .engine import (
    PositionEvaluator,
    EngineError,
    autodetect_stockfish,
    evaluate_material,
    get_friendly_stockfish_hint,
)

from .storage import (
    MatchStore,
    SQLiteMatchStore,
    StorageError,
    MatchRow,
    ModelStats,
)

from .game import (
    GameRunner,
    TurnExecutor,
    run_game,
    winner_from_eval,
)

from .match import (
    start_match,
    play_match,
    record_model_results,
)

__all__ = [
    # Data models
    "ModelSpec",
    "Config",
    "GameConfig",
    "TurnAttempt",
    "TurnResult",
    "MoveRecord",
    "Outcome",
    "OutcomeReason",
    "FailureKind",
    "Winner",

    # Rules
    "ChessGame",
    "MoveResult",

    # Evaluation
    "PositionEvaluator",
    "EngineError",
    "autodetect_stockfish",
    "evaluate_material",
    "get_friendly_stockfish_hint",

    # Persistence
    "MatchStore",
    "SQLiteMatchStore",
    "StorageError",
    "MatchRow",
    "ModelStats",

    # Game components
    "GameRunner",
    "TurnExecutor",
    "run_game",
    "winner_from_eval",
    "start_match",
    "play_match",
    "record_model_results",
]
