"""
Tournament session manager for the web interface.

Holds the active tournament sessions and converts them to API state.
"""
import logging
from typing import Dict, List, Optional, Any

from americano.tournament.models import Match, Round
from americano.tournament.players import PlayerService
from americano.tournament.session import SessionConfig, TournamentSession
from americano.tournament.storage import TournamentStorage

logger = logging.getLogger(__name__)


def serialize_match(match: Match) -> Dict[str, Any]:
    return {
        "id": match.id,
        "teams": [list(team) for team in match.teams],
        "score": list(match.score),
        "completed": match.completed,
        "skipped": match.skipped,
    }


def serialize_round(round_: Round) -> Dict[str, Any]:
    return {
        "round_number": round_.round_number,
        "matches": [serialize_match(m) for m in round_.matches],
        "sit_outs": [p.id for p in round_.sit_outs],
    }


class SessionManager:
    """
    Manages active tournament sessions.

    Every session owns its own scheduler; they share the player store.
    """

    def __init__(self, data_dir: str = "data"):
        self.storage = TournamentStorage(data_dir)
        self.player_service = PlayerService(self.storage)
        self.sessions: Dict[str, TournamentSession] = {}

    def create_session(
        self,
        player_ids: List[str],
        max_courts: Optional[int] = None,
        seed: Optional[int] = None
    ) -> TournamentSession:
        """
        Create and start a tournament for registered players.

        Raises:
            KeyError: If a player id is unknown
            ValueError: If the roster cannot start a tournament
        """
        if len(set(player_ids)) != len(player_ids):
            raise ValueError("Player ids must be unique")
        players = [self.player_service.get_player(pid) for pid in player_ids]

        session = TournamentSession(
            players,
            self.player_service,
            config=SessionConfig(max_courts=max_courts, seed=seed),
        )
        session.start()
        self.sessions[session.tournament_id] = session
        logger.info("Created session %s", session.tournament_id)
        return session

    def get_session(self, tournament_id: str) -> Optional[TournamentSession]:
        return self.sessions.get(tournament_id)

    def end_session(self, tournament_id: str) -> Dict[str, Any]:
        """End a session, save its record and drop it from the active set."""
        session = self.sessions.pop(tournament_id)
        return session.end()

    def list_active(self) -> List[str]:
        return list(self.sessions.keys())

    def get_tournament_state(self, session: TournamentSession) -> Dict[str, Any]:
        return {
            "tournament_id": session.tournament_id,
            "players": [p.id for p in session.players],
            "rounds": [serialize_round(r) for r in session.rounds],
            "rotation_index": session.rotation_index,
            "round_complete": session.round_complete,
            "skipped_count": session.skipped_count,
            "ended": session.ended,
        }
