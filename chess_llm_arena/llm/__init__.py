"""
LLM package for Chess LLM Arena.

This package contains the components that talk to language models: move
providers (vendor CLIs and the OpenRouter API), prompt construction and move
extraction from free-text answers.
"""

from .client import (
    BaseMoveProvider,
    CLIProvider,
    OpenRouterProvider,
    LLMProviderError,
    ProviderTimeout,
    ProviderFailure,
    ProviderConfigError,
    create_provider,
    get_cli_command,
    is_cli_model,
    parse_model_spec,
)

from .parsing import RESIGN, extract_move
from .prompts import build_prompt, build_prompt_for_game, format_move_history

__all__ = [
    # Providers
    "BaseMoveProvider",
    "CLIProvider",
    "OpenRouterProvider",

    # Exceptions
    "LLMProviderError",
    "ProviderTimeout",
    "ProviderFailure",
    "ProviderConfigError",

    # Routing
    "create_provider",
    "get_cli_command",
    "is_cli_model",
    "parse_model_spec",

    # Prompting and parsing
    "RESIGN",
    "extract_move",
    "build_prompt",
    "build_prompt_for_game",
    "format_move_history",
]
