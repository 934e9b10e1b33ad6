"""
Test package for Chess LLM Arena.

This package contains unit tests for all components of the arena, including
move extraction, prompts, providers, the game loop, evaluation and storage.
"""

# Import test modules for easier discovery
from . import test_parsing
from . import test_game

__all__ = [
    "test_parsing",
    "test_game",
]
