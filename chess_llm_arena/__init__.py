"""
Chess LLM Arena - Automated chess matches between Large Language Models.

This package drives games between two language models, each answering through
its vendor CLI or the OpenRouter API, validates every move with python-chess,
settles forfeits with an engine evaluation and keeps match records and
standings in SQLite.
"""

__version__ = "0.3.0"
__author__ = "Chess LLM Arena Team"
__license__ = "MIT"

# Core imports
from .core.models import ModelSpec, Config, GameConfig, Outcome, OutcomeReason, Winner
from .core.game import GameRunner, TurnExecutor, run_game
from .core.match import start_match
from .llm.client import create_provider
from .cli import main

__all__ = [
    "ModelSpec",
    "Config",
    "GameConfig",
    "Outcome",
    "OutcomeReason",
    "Winner",
    "GameRunner",
    "TurnExecutor",
    "run_game",
    "start_match",
    "create_provider",
    "main",
]
