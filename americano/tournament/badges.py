"""
Achievement badges.

A badge is earned when its condition holds for a player's stats, optionally
together with the match just played. Badges are derived on demand and
never stored.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from americano.tournament.elo import Tier
from americano.tournament.models import Match
from americano.tournament.players import PlayerStats


RARITY_COLORS = {
    "common": "#94a3b8",
    "rare": "#60a5fa",
    "epic": "#a78bfa",
    "legendary": "#fbbf24",
}

TIER_ORDER = list(Tier)


@dataclass(frozen=True)
class Badge:
    """A badge definition."""
    id: str
    name: str
    description: str
    icon: str
    rarity: str
    condition: Callable[[PlayerStats, Optional[Match]], bool]

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "rarity": self.rarity,
            "color": RARITY_COLORS[self.rarity],
        }


def _reached(minimum: Tier) -> Callable[[PlayerStats, Optional[Match]], bool]:
    return lambda stats, match: TIER_ORDER.index(stats.tier) >= TIER_ORDER.index(minimum)


def _perfect_victory(stats: PlayerStats, match: Optional[Match]) -> bool:
    if match is None or stats.player_id not in match.players:
        return False
    team = match.team_index(stats.player_id)
    return match.score[team] == 4 and match.score[1 - team] == 0


BADGES: List[Badge] = [
    Badge("first_blood", "First Blood", "Win your first ever match", "🎯", "common",
          lambda stats, match: stats.matches_won == 1),
    Badge("hot_streak", "Hot Streak", "Win 5 consecutive matches", "🔥", "rare",
          lambda stats, match: stats.current_streak >= 5),
    Badge("unstoppable", "Unstoppable", "Win 10 consecutive matches", "⚡", "epic",
          lambda stats, match: stats.current_streak >= 10),
    Badge("bronze_league", "Bronze League", "Reach Bronze tier", "🥉", "common", _reached(Tier.BRONZE)),
    Badge("silver_league", "Silver League", "Reach Silver tier", "🥈", "common", _reached(Tier.SILVER)),
    Badge("golden_touch", "Golden Touch", "Reach Gold tier", "🥇", "rare", _reached(Tier.GOLD)),
    Badge("platinum_elite", "Platinum Elite", "Reach Platinum tier", "💎", "epic", _reached(Tier.PLATINUM)),
    Badge("master_class", "Master Class", "Reach Master tier", "👑", "epic", _reached(Tier.MASTER)),
    Badge("grandmaster", "Grandmaster", "Reach Grandmaster tier", "⭐", "legendary",
          _reached(Tier.GRANDMASTER)),
    Badge("perfect_victory", "Perfect Victory", "Win a match 4-0", "💯", "rare", _perfect_victory),
    Badge("century_club", "Century Club", "Play 100 total matches", "💯", "epic",
          lambda stats, match: stats.matches_played >= 100),
    Badge("tournament_regular", "Tournament Regular", "Complete 10 tournaments", "🏆", "rare",
          lambda stats, match: stats.tournaments_played >= 10),
    Badge("century_maker", "Century Maker", "Gain 100+ ELO points from starting rating", "📈", "rare",
          lambda stats, match: stats.rating >= 1600),
    Badge("rising_star", "Rising Star", "Reach 1700 ELO", "🌟", "epic",
          lambda stats, match: stats.rating >= 1700),
]

BADGES_BY_ID = {badge.id: badge for badge in BADGES}


def check_badge_earned(badge_id: str, stats: PlayerStats, match: Optional[Match] = None) -> bool:
    """
    Raises:
        KeyError: If the badge id is unknown
    """
    return BADGES_BY_ID[badge_id].condition(stats, match)


def check_all_badges(
    stats: PlayerStats,
    match: Optional[Match] = None,
    already_earned: Iterable[str] = ()
) -> List[Badge]:
    """
    Badges whose condition holds now, skipping ones already earned.

    Args:
        stats: The player's current stats
        match: The match just played, for match-based badges
        already_earned: Badge ids to leave out

    Returns:
        Newly earned badges, in definition order
    """
    skip = set(already_earned)
    return [
        badge for badge in BADGES
        if badge.id not in skip and badge.condition(stats, match)
    ]
