"""
Tournament session controller.

Drives one Americano tournament: round generation, score entry, match
completion (with rating updates) and the saved tournament record.
"""

import logging
import random
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from americano.tournament.elo import Tier, tier
from americano.tournament.models import Match, Player, Round, validate_score
from americano.tournament.players import PlayerService, now_ms
from americano.tournament.scheduler import (
    PairingScheduler,
    max_courts,
    next_rotation_index,
)
from americano.utils.constants import PLAYERS_PER_MATCH

logger = logging.getLogger(__name__)


TIER_ORDER = list(Tier)


@dataclass
class SessionConfig:
    """Configuration for a tournament session."""
    max_courts: Optional[int] = None  # None = as many as the roster fills
    seed: Optional[int] = None
    save_on_end: bool = True


@dataclass
class TierChange:
    """A player crossing a tier boundary after a match."""
    player_id: str
    player_name: str
    old_tier: Tier
    new_tier: Tier

    @property
    def promoted(self) -> bool:
        return TIER_ORDER.index(self.new_tier) > TIER_ORDER.index(self.old_tier)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "playerName": self.player_name,
            "oldTier": self.old_tier.value,
            "newTier": self.new_tier.value,
            "promoted": self.promoted,
        }


class TournamentSession:
    """
    Orchestrates one Americano tournament.

    Owns its own PairingScheduler, so pairing cycles never leak between
    tournaments.

    Usage:
        session = TournamentSession(players, PlayerService(storage))
        first_round = session.start()
        session.update_score(match.id, 0, 4)
        session.finish_match(match.id)
        session.next_round()
    """

    def __init__(
        self,
        players: List[Player],
        player_service: PlayerService,
        config: Optional[SessionConfig] = None,
        rng: Optional[random.Random] = None,
        tournament_id: Optional[str] = None
    ):
        """
        Initialize the session.

        Args:
            players: Tournament roster
            player_service: Player profiles and rating persistence
            config: Session configuration
            rng: Random source (defaults to one seeded from config.seed)
            tournament_id: Optional ID (auto-generated if None)
        """
        self.config = config or SessionConfig()
        self.player_service = player_service
        self.rng = rng or random.Random(self.config.seed)
        self.scheduler = PairingScheduler(rng=self.rng)
        self.tournament_id = tournament_id or self._generate_tournament_id()

        self.players: List[Player] = list(players)
        self.rounds: List[Round] = []
        self.history: List[Match] = []
        self.rotation_index = 0
        self.starting_elos: Dict[str, int] = {}
        self.started = False
        self.ended = False

    def _generate_tournament_id(self) -> str:
        """Generate a unique tournament ID."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"tourney_{timestamp}_{uuid.uuid4().hex[:6]}"

    @property
    def court_count(self) -> int:
        courts = max_courts(len(self.players))
        if self.config.max_courts is not None:
            courts = min(courts, self.config.max_courts)
        return courts

    @property
    def current_round(self) -> Optional[Round]:
        return self.rounds[-1] if self.rounds else None

    @property
    def round_complete(self) -> bool:
        return self.current_round is not None and self.current_round.complete

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.rounds for m in r.matches if m.skipped)

    def start(self) -> Round:
        """
        Start the tournament and generate round 1.

        Clears pairing cycles, records starting ratings and shuffles the
        roster, whose order then drives the sit-out rotation.

        Raises:
            ValueError: If fewer than four players or already started
        """
        if len(self.players) < PLAYERS_PER_MATCH:
            raise ValueError(f"Need at least {PLAYERS_PER_MATCH} players to start, got {len(self.players)}")
        if self.started:
            raise ValueError(f"Tournament {self.tournament_id} already started")
        if len({p.id for p in self.players}) != len(self.players):
            raise ValueError("Player ids in the roster must be unique")

        self.scheduler.clear_pairing_history()
        self.starting_elos = {p.id: self._current_rating(p) for p in self.players}

        self.rng.shuffle(self.players)
        self.rotation_index = 0
        self.started = True
        logger.info("Started %s with %d players", self.tournament_id, len(self.players))
        return self.next_round()

    def next_round(self) -> Round:
        """Generate the next round and advance the sit-out rotation."""
        if not self.started:
            raise ValueError("Tournament has not started")
        if self.ended:
            raise ValueError("Tournament has ended")

        courts = self.court_count
        draw = self.scheduler.generate_round(self.players, self.history, courts, self.rotation_index)

        new_round = Round(
            round_number=len(self.rounds) + 1,
            matches=draw.matches,
            sit_outs=draw.sit_outs,
        )
        self.rounds.append(new_round)
        self.rotation_index = next_rotation_index(self.rotation_index, len(self.players), courts)
        return new_round

    def find_match(self, match_id: int) -> Match:
        for r in self.rounds:
            for match in r.matches:
                if match.id == match_id:
                    return match
        raise KeyError(f"Match not found: {match_id}")

    def update_score(self, match_id: int, team_index: int, score: int) -> Match:
        """Set one team's score on an unfinished match."""
        self._check_open()
        match = self.find_match(match_id)
        if match.completed:
            raise ValueError(f"Match {match_id} is completed and rated; its score is final")
        if team_index not in (0, 1):
            raise ValueError(f"team_index must be 0 or 1, got {team_index}")

        new_score = list(match.score)
        new_score[team_index] = score
        match.score = validate_score(new_score)
        return match

    def finish_match(self, match_id: int) -> List[TierChange]:
        """
        Complete a match and apply its rating changes.

        A skipped match can still be completed. A completed match can not be
        reopened: its ratings have already been applied.

        Returns:
            Tier changes of the players in the match
        """
        self._check_open()
        match = self.find_match(match_id)
        if match.completed:
            raise ValueError(f"Match {match_id} is already completed; rated matches cannot be reopened")

        old_tiers = self._tiers(match.players)

        # Session state only changes once the match is stored and rated
        self.player_service.record_match(
            replace(match, completed=True, skipped=False), self.tournament_id
        )
        match.skipped = False
        match.completed = True
        self.history.append(match)

        new_tiers = self._tiers(match.players)
        names = {p.id: p.name for p in self.players}
        changes = [
            TierChange(
                player_id=pid,
                player_name=names.get(pid, pid),
                old_tier=old_tiers[pid],
                new_tier=new_tiers[pid],
            )
            for pid in match.players
            if old_tiers[pid] != new_tiers[pid]
        ]
        for change in changes:
            logger.info("%s moved from %s to %s", change.player_name, change.old_tier.value, change.new_tier.value)
        return changes

    def skip_match(self, match_id: int) -> Match:
        """Toggle the skipped state of an unfinished match."""
        self._check_open()
        match = self.find_match(match_id)
        if match.completed:
            raise ValueError(f"Match {match_id} is completed and rated; it cannot be skipped")
        match.skipped = not match.skipped
        return match

    def end(self) -> Dict[str, Any]:
        """
        End the tournament and return its record.

        Skipped matches do not count; the record is saved when
        config.save_on_end is set.
        """
        if self.skipped_count:
            logger.warning("Ending %s with %d skipped matches", self.tournament_id, self.skipped_count)

        self.ended = True
        record = self.to_dict()
        if self.config.save_on_end:
            self.player_service.storage.save_tournament(record)
        return record

    def final_elos(self) -> Dict[str, int]:
        return {p.id: self._current_rating(p) for p in self.players}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the saved tournament record."""
        final_elos = self.final_elos()
        players = []
        for p in self.players:
            data = self._stored_player(p).to_dict()
            data["startingElo"] = self.starting_elos.get(p.id)
            data["finalElo"] = final_elos[p.id]
            players.append(data)

        return {
            "id": self.tournament_id,
            "date": now_ms(),
            "players": players,
            "rounds": [r.to_dict() for r in self.rounds],
            "history": [m.to_dict() for m in self.history],
            "rotationIndex": self.rotation_index,
            "ended": self.ended,
        }

    def _check_open(self):
        if self.ended:
            raise ValueError(f"Tournament {self.tournament_id} has ended")

    def _stored_player(self, player: Player) -> Player:
        """The stored version of a roster player, or the roster copy if unregistered."""
        try:
            return self.player_service.get_player(player.id)
        except KeyError:
            return player

    def _current_rating(self, player: Player) -> int:
        return self._stored_player(player).elo.current

    def _tiers(self, player_ids: List[str]) -> Dict[str, Tier]:
        ratings = {p.id: p.elo.current for p in self.players}
        ratings.update({p.id: p.elo.current for p in self.player_service.list_players()})
        return {pid: tier(ratings[pid]) for pid in player_ids}
