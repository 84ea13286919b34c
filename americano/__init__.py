"""
Americano doubles tournament scheduler with Elo ratings.
"""

__version__ = "1.0.0"
