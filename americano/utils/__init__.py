"""
Utilities module for the Americano scheduler.
"""
from americano.utils.constants import (
    STARTING_ELO, PROVISIONAL_MATCHES,
    K_FACTOR_NEW, K_FACTOR_ESTABLISHED, K_FACTOR_MASTER,
    PLAYERS_PER_MATCH, PLAYERS_PER_TEAM, PAIRINGS_PER_GROUP,
    TIER_BANDS, TIER_DISPLAY_NAMES, TIER_COLORS,
    BEST_PARTNER_MIN_MATCHES, RECENT_MATCHES,
)

__all__ = [
    'STARTING_ELO', 'PROVISIONAL_MATCHES',
    'K_FACTOR_NEW', 'K_FACTOR_ESTABLISHED', 'K_FACTOR_MASTER',
    'PLAYERS_PER_MATCH', 'PLAYERS_PER_TEAM', 'PAIRINGS_PER_GROUP',
    'TIER_BANDS', 'TIER_DISPLAY_NAMES', 'TIER_COLORS',
    'BEST_PARTNER_MIN_MATCHES', 'RECENT_MATCHES',
]
