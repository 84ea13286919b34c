"""
Player profiles, match recording and per-player statistics.

Wraps TournamentStorage with the read-modify-write cycles the controller
needs: registering players, recording a finished match (which moves the
four players' ratings) and computing stats for display.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from americano.tournament.elo import (
    Tier,
    apply_rating_update,
    compute_match_deltas,
    rating_rank,
    tier,
    trend,
)
from americano.tournament.models import Match, Player
from americano.tournament.storage import TournamentStorage
from americano.utils.constants import BEST_PARTNER_MIN_MATCHES, RECENT_MATCHES

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass
class PlayerStats:
    """Aggregate stats for a player across all recorded matches."""
    player_id: str
    name: str
    rating: int
    peak: int
    peak_date: Optional[int]
    rank: int
    trend: int
    tier: Tier
    provisional: bool
    matches_for_rating: int
    tournaments_played: int = 0
    matches_played: int = 0
    matches_won: int = 0
    matches_lost: int = 0
    games_won: int = 0
    games_lost: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    first_match_date: Optional[int] = None
    last_match_date: Optional[int] = None

    @property
    def win_rate(self) -> float:
        if self.matches_played == 0:
            return 0.0
        return self.matches_won / self.matches_played

    @property
    def points_differential(self) -> int:
        return self.games_won - self.games_lost

    def to_dict(self) -> Dict[str, object]:
        return {
            "playerId": self.player_id,
            "name": self.name,
            "rating": self.rating,
            "peak": self.peak,
            "peakDate": self.peak_date,
            "rank": self.rank,
            "trend": self.trend,
            "tier": self.tier.value,
            "provisional": self.provisional,
            "matchesForRating": self.matches_for_rating,
            "tournamentsPlayed": self.tournaments_played,
            "matchesPlayed": self.matches_played,
            "matchesWon": self.matches_won,
            "matchesLost": self.matches_lost,
            "gamesWon": self.games_won,
            "gamesLost": self.games_lost,
            "winRate": self.win_rate,
            "pointsDifferential": self.points_differential,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "firstMatchDate": self.first_match_date,
            "lastMatchDate": self.last_match_date,
        }


@dataclass
class PartnerStats:
    """Results of one player alongside one partner."""
    partner_id: str
    matches_played: int = 0
    wins: int = 0
    games_won: int = 0
    games_lost: int = 0

    @property
    def losses(self) -> int:
        return self.matches_played - self.wins

    @property
    def win_rate(self) -> float:
        if self.matches_played == 0:
            return 0.0
        return self.wins / self.matches_played

    def add(self, my_score: int, opponent_score: int):
        self.matches_played += 1
        self.games_won += my_score
        self.games_lost += opponent_score
        if my_score > opponent_score:
            self.wins += 1

    def to_dict(self) -> Dict[str, object]:
        return {
            "partnerId": self.partner_id,
            "matchesPlayed": self.matches_played,
            "wins": self.wins,
            "losses": self.losses,
            "gamesWon": self.games_won,
            "gamesLost": self.games_lost,
            "winRate": self.win_rate,
        }


@dataclass
class HeadToHead:
    """
    Record between two players.

    Versus figures count matches with the players on opposite teams; the
    partnership counts matches with them on the same team, from player1's
    side.
    """
    player1_id: str
    player2_id: str
    versus_matches: int = 0
    player1_wins: int = 0
    player2_wins: int = 0
    player1_games_won: int = 0
    player2_games_won: int = 0
    closest_match: Optional[Match] = None
    biggest_match: Optional[Match] = None
    recent_matches: List[Match] = field(default_factory=list)
    partnership: Optional[PartnerStats] = None

    @property
    def average_margin(self) -> float:
        if self.versus_matches == 0:
            return 0.0
        return abs(self.player1_games_won - self.player2_games_won) / self.versus_matches

    def to_dict(self) -> Dict[str, object]:
        return {
            "player1Id": self.player1_id,
            "player2Id": self.player2_id,
            "versusMatches": self.versus_matches,
            "player1Wins": self.player1_wins,
            "player2Wins": self.player2_wins,
            "player1GamesWon": self.player1_games_won,
            "player2GamesWon": self.player2_games_won,
            "averageMargin": self.average_margin,
            "closestMatch": self.closest_match.to_dict() if self.closest_match else None,
            "biggestMatch": self.biggest_match.to_dict() if self.biggest_match else None,
            "recentMatches": [m.to_dict() for m in self.recent_matches],
            "partnership": self.partnership.to_dict() if self.partnership else None,
        }


class PlayerService:
    """
    Manages player profiles and the rated match history.

    Usage:
        service = PlayerService(TournamentStorage("data"))
        alice = service.create_player("Alice")
        service.record_match(match, tournament_id="t1")
    """

    def __init__(self, storage: TournamentStorage, clock: Optional[Callable[[], int]] = None):
        """
        Args:
            storage: Persistence gateway
            clock: Returns the current time in ms (injectable for tests)
        """
        self.storage = storage
        self.clock = clock or now_ms

    def list_players(self) -> List[Player]:
        return self.storage.load_players()

    def get_player(self, player_id: str) -> Player:
        """
        Raises:
            KeyError: If no player has this id
        """
        for player in self.storage.load_players():
            if player.id == player_id:
                return player
        raise KeyError(f"Player not found: {player_id}")

    def create_player(self, name: str) -> Player:
        """Register a new player with a starting rating."""
        name = name.strip()
        if not name:
            raise ValueError("Player name must not be empty")

        players = self.storage.load_players()
        player = Player(id=uuid.uuid4().hex[:12], name=name, created_at=self.clock())
        players.append(player)
        self.storage.save_players(players)
        logger.info("Created player %s (%s)", player.name, player.id)
        return player

    def rename_player(self, player_id: str, name: str) -> Player:
        name = name.strip()
        if not name:
            raise ValueError("Player name must not be empty")

        players = self.storage.load_players()
        for player in players:
            if player.id == player_id:
                player.name = name
                self.storage.save_players(players)
                return player
        raise KeyError(f"Player not found: {player_id}")

    def delete_player(self, player_id: str):
        """Delete a player and every match they took part in."""
        players = self.storage.load_players()
        remaining = [p for p in players if p.id != player_id]
        if len(remaining) == len(players):
            raise KeyError(f"Player not found: {player_id}")
        self.storage.save_players(remaining)

        matches = self.storage.load_matches()
        self.storage.save_matches([m for m in matches if player_id not in m.players])
        logger.info("Deleted player %s", player_id)

    def matches_for(self, player_id: str) -> List[Match]:
        """All recorded matches the player took part in."""
        return [m for m in self.storage.load_matches() if player_id in m.players]

    def record_match(
        self,
        match: Match,
        tournament_id: str,
        timestamp: Optional[int] = None
    ) -> Match:
        """
        Add a match to the history and, if completed, update ratings.

        Ratings are computed from the stored players; players that are not
        registered are rated from the defaults and left unsaved.

        Args:
            match: The match to record
            tournament_id: Tournament the match belongs to
            timestamp: Match time in ms (defaults to now)

        Returns:
            The stored match record, including its rating deltas
        """
        timestamp = timestamp if timestamp is not None else self.clock()
        players = {p.id: p for p in self.storage.load_players()}

        ratings = {pid: players[pid].elo.current for pid in match.players if pid in players}
        counts = {pid: players[pid].elo.matches_for_rating for pid in match.players if pid in players}
        deltas = compute_match_deltas(match, ratings, counts)

        record = Match(
            id=match.id,
            teams=match.teams,
            score=list(match.score),
            completed=match.completed,
            skipped=match.skipped,
            tournament_id=tournament_id,
            date=timestamp,
            elo_data=deltas,
        )

        # Match ids are only unique within a tournament
        matches = [
            m for m in self.storage.load_matches()
            if (m.tournament_id, m.id) != (tournament_id, match.id)
        ]
        matches.append(record)
        self.storage.save_matches(matches)

        if match.completed:
            for pid in match.players:
                player = players.get(pid)
                if player is None:
                    continue
                player.elo = apply_rating_update(player.elo, deltas.changes[pid], match.id, timestamp)
            self.storage.save_players(list(players.values()))
            logger.info(
                "Rated match %s (%d-%d): %s",
                match.id, match.score[0], match.score[1], deltas.changes
            )

        return record

    def player_stats(self, player_id: str) -> PlayerStats:
        """Compute aggregate stats for one player."""
        players = self.storage.load_players()
        player = next((p for p in players if p.id == player_id), None)
        if player is None:
            raise KeyError(f"Player not found: {player_id}")
        return self._stats_for(player, players, self.storage.load_matches())

    def leaderboard(self) -> List[PlayerStats]:
        """Stats for every player, highest rating first."""
        players = self.storage.load_players()
        matches = self.storage.load_matches()
        stats = [self._stats_for(p, players, matches) for p in players]
        return sorted(stats, key=lambda s: s.rating, reverse=True)

    def partner_stats(self, player_id: str) -> List[PartnerStats]:
        """Completed-match results with each partner, most frequent partner first."""
        partners: Dict[str, PartnerStats] = {}
        for match in self.matches_for(player_id):
            if not match.completed:
                continue
            team = match.team_index(player_id)
            partner_id = next(pid for pid in match.teams[team] if pid != player_id)
            stats = partners.setdefault(partner_id, PartnerStats(partner_id=partner_id))
            stats.add(match.score[team], match.score[1 - team])

        return sorted(partners.values(), key=lambda p: p.matches_played, reverse=True)

    def best_partnership(self, player_id: str) -> Optional[PartnerStats]:
        """
        Partner with the best win rate, among partners with at least
        BEST_PARTNER_MIN_MATCHES matches. More matches break ties.
        """
        qualified = [
            p for p in self.partner_stats(player_id)
            if p.matches_played >= BEST_PARTNER_MIN_MATCHES
        ]
        if not qualified:
            return None
        return max(qualified, key=lambda p: (p.win_rate, p.matches_played))

    def head_to_head(self, player1_id: str, player2_id: str) -> HeadToHead:
        """
        Compare two players over their completed matches together.

        The closest match is the first with the smallest margin; the biggest
        is the first with the largest non-zero margin.
        """
        h2h = HeadToHead(
            player1_id=player1_id,
            player2_id=player2_id,
            partnership=PartnerStats(partner_id=player2_id),
        )
        versus = []
        closest_margin = None
        biggest_margin = 0

        for match in self.matches_for(player1_id):
            if not match.completed or player2_id not in match.players:
                continue

            team1 = match.team_index(player1_id)
            p1_score = match.score[team1]
            p2_score = match.score[1 - team1]

            if match.team_index(player2_id) == team1:
                h2h.partnership.add(p1_score, p2_score)
                continue

            versus.append(match)
            h2h.player1_games_won += p1_score
            h2h.player2_games_won += p2_score
            if p1_score > p2_score:
                h2h.player1_wins += 1
            elif p2_score > p1_score:
                h2h.player2_wins += 1

            margin = abs(p1_score - p2_score)
            if closest_margin is None or margin < closest_margin:
                closest_margin = margin
                h2h.closest_match = match
            if margin > biggest_margin:
                biggest_margin = margin
                h2h.biggest_match = match

        h2h.versus_matches = len(versus)
        h2h.recent_matches = list(reversed(versus[-RECENT_MATCHES:]))
        return h2h

    def _stats_for(self, player: Player, players: List[Player], all_matches: List[Match]) -> PlayerStats:
        elo = player.elo
        stats = PlayerStats(
            player_id=player.id,
            name=player.name,
            rating=elo.current,
            peak=elo.peak,
            peak_date=elo.peak_date,
            rank=rating_rank(elo.current, [p.elo.current for p in players]),
            trend=trend(elo.history),
            tier=tier(elo.current),
            provisional=elo.provisional,
            matches_for_rating=elo.matches_for_rating,
        )

        matches = [m for m in all_matches if player.id in m.players]
        stats.tournaments_played = len({m.tournament_id for m in matches})

        dates = sorted(m.date for m in matches if m.date is not None)
        if dates:
            stats.first_match_date = dates[0]
            stats.last_match_date = dates[-1]

        completed = sorted((m for m in matches if m.completed), key=lambda m: m.date or 0)
        for match in completed:
            team = match.team_index(player.id)
            my_score = match.score[team]
            opponent_score = match.score[1 - team]

            stats.matches_played += 1
            stats.games_won += my_score
            stats.games_lost += opponent_score

            # Draws leave the streak alone
            if my_score > opponent_score:
                stats.matches_won += 1
                stats.current_streak += 1
                stats.longest_streak = max(stats.longest_streak, stats.current_streak)
            elif my_score < opponent_score:
                stats.matches_lost += 1
                stats.current_streak = 0

        return stats
