"""
Tournament module for Americano doubles sessions.

Provides:
- PairingScheduler: Sit-out rotation and team assignment per round
- Rating engine (elo): Expected score, K-factor, margin multiplier, tiers
- TournamentStorage: Persists players, matches and tournaments
- PlayerService: Player profiles, match recording, stats, partners and head-to-head
- Badges: Achievement badges derived from player stats
- TournamentSession: Drives one tournament from start to end
"""

from americano.tournament.models import (
    EloHistoryEntry,
    EloState,
    Match,
    MatchDeltas,
    Player,
    Round,
)
from americano.tournament.elo import (
    Tier,
    apply_rating_update,
    compute_match_deltas,
    expected_score,
    k_factor,
    score_multiplier,
    tier,
    trend,
)
from americano.tournament.scheduler import PairingScheduler, RoundDraw
from americano.tournament.storage import TournamentStorage
from americano.tournament.players import HeadToHead, PartnerStats, PlayerService, PlayerStats
from americano.tournament.badges import BADGES, Badge, check_all_badges, check_badge_earned
from americano.tournament.session import SessionConfig, TierChange, TournamentSession
from americano.tournament.display import format_leaderboard, format_round

__all__ = [
    'EloHistoryEntry',
    'EloState',
    'Match',
    'MatchDeltas',
    'Player',
    'Round',
    'Tier',
    'apply_rating_update',
    'compute_match_deltas',
    'expected_score',
    'k_factor',
    'score_multiplier',
    'tier',
    'trend',
    'PairingScheduler',
    'RoundDraw',
    'TournamentStorage',
    'PlayerService',
    'PlayerStats',
    'PartnerStats',
    'HeadToHead',
    'BADGES',
    'Badge',
    'check_all_badges',
    'check_badge_earned',
    'SessionConfig',
    'TierChange',
    'TournamentSession',
    'format_leaderboard',
    'format_round',
]
