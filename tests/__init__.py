"""
Test package for AI Chess.

This package contains unit tests for all components of the game, including
move resolution, the rules adapter, working-memory stores, PGN persistence,
players and the game orchestrator.
"""
