#!/usr/bin/env python3
"""
Example configuration file for Chess LLM Arena.

This file shows the settings the arena reads, the environment variables it
expects and a few model lineups. Copy it to config.py and adjust, or use it as
a reference for the command-line options.
"""

import os
from chess_llm_arena.core.models import Config

# =============================================================================
# API Keys Configuration
# =============================================================================

# OpenRouter API key (required for every model outside the CLI namespaces)
# Get your key from: https://openrouter.ai/keys
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")

# =============================================================================
# Engine Configuration
# =============================================================================

# Stockfish path - auto-detected if not specified
STOCKFISH_PATH = os.getenv("STOCKFISH_PATH", None)

# =============================================================================
# Model Lineups
# =============================================================================

# Served by native CLIs: claude, codex, gemini, opencode
CLI_MODELS = [
    "Claude Sonnet=anthropic/claude-sonnet-4.5",
    "GPT-5=openai/gpt-5",
    "Gemini Pro=google/gemini-2.5-pro",
]

# Served by the OpenRouter API
OPENROUTER_MODELS = [
    "DeepSeek=deepseek/deepseek-chat",
    "Grok=x-ai/grok-4",
    "Kimi=moonshotai/kimi-k2",
]

# =============================================================================
# Configurations
# =============================================================================

# Defaults
DEFAULT_CONFIG = Config()

# Short games with tight budgets, for trying out a new model
QUICK_CONFIG = Config(
    max_moves=40,
    max_retries=1,
    cli_timeout=120.0,
    api_timeout=60.0,
    eval_depth=10,
)

# Generous budgets and more retries
PATIENT_CONFIG = Config(
    max_moves=150,
    max_retries=3,
    cli_timeout=600.0,
    api_timeout=300.0,
    stockfish_path=STOCKFISH_PATH,
)

# Resignations are settled by evaluation like any other forfeit
STRICT_FORFEIT_CONFIG = Config(
    resignation_concedes=False,
)
