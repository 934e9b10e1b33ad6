#!/usr/bin/env python3
"""
Setup script for Chess LLM Arena.

Automated chess matches between Large Language Models, with engine-settled
forfeits and SQLite match records.
"""

from pathlib import Path
from setuptools import setup, find_packages

# Read the contents of README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8') if (this_directory / "README.md").exists() else ""

# Read version from package
version_file = this_directory / "chess_llm_arena" / "__init__.py"
version = "0.3.0"  # Default version
if version_file.exists():
    with open(version_file, encoding='utf-8') as f:
        for line in f:
            if line.startswith('__version__'):
                version = line.split('=')[1].strip().strip('"').strip("'")
                break

setup(
    name="chess-llm-arena",
    version=version,
    description="Automated chess matches between LLMs with engine-settled forfeits",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Chess LLM Arena Team",
    author_email="chess-llm-arena@example.com",

    # Package discovery
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",

    # Dependencies
    install_requires=[
        "python-chess[engine]>=1.999",
        "rich>=13.0.0",
        "openai>=1.0.0",
    ],

    # Optional dependencies
    extras_require={
        "dotenv": ["python-dotenv>=1.0.0"],
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.23.0",
            "mypy>=1.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "isort>=5.0.0",
        ],
    },

    # Entry points for CLI
    entry_points={
        "console_scripts": [
            "chess-llm-arena=chess_llm_arena.cli:main",
        ],
    },

    # Classifiers
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Topic :: Games/Entertainment :: Board Games",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
        "Environment :: Console",
        "Framework :: AsyncIO",
    ],

    # Keywords
    keywords=[
        "chess",
        "llm",
        "arena",
        "tournament",
        "stockfish",
        "openrouter",
        "artificial-intelligence",
        "game-playing",
    ],

    zip_safe=False,

    # Test configuration
    test_suite="tests",
    tests_require=[
        "pytest>=7.0.0",
        "pytest-asyncio>=0.21.0",
    ],
)
