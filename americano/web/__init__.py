"""
Web interface for Americano tournaments.

Provides a FastAPI REST API for players, leaderboards and tournament sessions.
"""
