#!/usr/bin/env python3
"""
AI Chess - Main Entry Point

Play chess in the terminal against an LLM agent, or watch two agents play,
while each agent keeps a working memory of its strategic assessment.

Quick Examples:
    # Play White against Claude Haiku
    python main.py play

    # Watch Sonnet play Gemini
    python main.py play --mode agent-vs-agent --white-model sonnet --black-model gemini-3

    # List and review saved games
    python main.py list
    python main.py load chess-game-2025-01-01T12-00-00.pgn

Requirements:
    - Python 3.9+
    - An API key for the chosen provider (ANTHROPIC_API_KEY, OPENAI_API_KEY
      or GEMINI_API_KEY), in the environment or a .env file

Installation:
    pip install -e ".[anthropic]"
"""

import sys

from ai_chess.cli import main

if __name__ == "__main__":
    sys.exit(main())
