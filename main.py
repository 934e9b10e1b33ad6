#!/usr/bin/env python3
"""
Chess LLM Arena - Main Entry Point

Runs automated chess matches between Large Language Models. Each side answers
through its vendor CLI (claude, codex, gemini, opencode) or the OpenRouter API;
forfeits are settled by a Stockfish evaluation of the position.

Quick Examples:
    # Two CLI models
    python main.py play --white anthropic/claude-sonnet-4.5 --black openai/gpt-5

    # An OpenRouter model (requires OPENROUTER_API_KEY)
    export OPENROUTER_API_KEY=your-api-key
    python main.py play --white "DeepSeek=deepseek/deepseek-chat" --black google/gemini-2.5-pro

    # Results
    python main.py standings

Requirements:
    - Python 3.9+
    - The vendor CLIs for the models you use, installed and logged in
    - Stockfish (optional; material count is used without it)
"""

import sys
from pathlib import Path

# Load environment variables from .env file
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    # dotenv is optional
    pass

# Add the project root to the Python path so we can import our package
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

try:
    from chess_llm_arena.cli import main
except ImportError as e:
    print(f"Error importing chess_llm_arena package: {e}", file=sys.stderr)
    print("\nInstall the package in development mode:", file=sys.stderr)
    print("  pip install -e .", file=sys.stderr)
    sys.exit(1)

if __name__ == "__main__":
    sys.exit(main())
