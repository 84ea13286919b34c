"""
FastAPI application for the Americano tournament API.
"""
import os
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from americano.tournament.badges import check_all_badges
from americano.tournament.elo import tier, tier_thresholds
from americano.tournament.models import Player
from americano.web.models import (
    CreatePlayerRequest, RenamePlayerRequest, PlayerInfo, TierInfo,
    CreateTournamentRequest, ScoreRequest, MatchState, RoundState,
    TournamentState, TierChangeInfo, FinishMatchResponse
)
from americano.web.session_manager import SessionManager, serialize_match, serialize_round

# Create FastAPI app
app = FastAPI(
    title="Americano",
    description="Americano doubles tournament scheduling with Elo ratings",
    version="1.0.0"
)

# Global instance (initialized in startup)
session_manager: Optional[SessionManager] = None


@app.on_event("startup")
async def startup():
    """Initialize global instances on startup."""
    global session_manager

    session_manager = SessionManager(data_dir=os.environ.get("AMERICANO_DATA_DIR", "data"))


def player_info(player: Player) -> PlayerInfo:
    return PlayerInfo(
        id=player.id,
        name=player.name,
        rating=player.elo.current,
        peak=player.elo.peak,
        tier=tier(player.elo.current).value,
        provisional=player.elo.provisional,
        matches_for_rating=player.elo.matches_for_rating,
    )


def get_session_or_404(tournament_id: str):
    session = session_manager.get_session(tournament_id)
    if not session:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return session


# =============================================================================
# Player Endpoints
# =============================================================================

@app.get("/api/players")
async def list_players():
    """List all registered players."""
    players = session_manager.player_service.list_players()
    return {"players": [player_info(p) for p in players]}


@app.post("/api/players", response_model=PlayerInfo)
async def create_player(request: CreatePlayerRequest):
    """Register a new player."""
    try:
        player = session_manager.player_service.create_player(request.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return player_info(player)


@app.get("/api/players/{player_id}")
async def get_player(player_id: str):
    """Get a player's stats."""
    try:
        stats = session_manager.player_service.player_stats(player_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Player not found")
    return {
        "stats": stats.to_dict(),
        "badges": [b.to_dict() for b in check_all_badges(stats)],
    }


@app.get("/api/players/{player_id}/partners")
async def get_partners(player_id: str):
    """Results with each partner, and the best partnership if any."""
    service = session_manager.player_service
    try:
        service.get_player(player_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Player not found")

    best = service.best_partnership(player_id)
    return {
        "partners": [p.to_dict() for p in service.partner_stats(player_id)],
        "best": best.to_dict() if best else None,
    }


@app.get("/api/players/{player_id}/head-to-head/{other_id}")
async def head_to_head(player_id: str, other_id: str):
    """Record between two players, as opponents and as partners."""
    service = session_manager.player_service
    try:
        service.get_player(player_id)
        service.get_player(other_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Player not found")
    return service.head_to_head(player_id, other_id).to_dict()


@app.put("/api/players/{player_id}", response_model=PlayerInfo)
async def rename_player(player_id: str, request: RenamePlayerRequest):
    """Rename a player."""
    try:
        player = session_manager.player_service.rename_player(player_id, request.name)
    except KeyError:
        raise HTTPException(status_code=404, detail="Player not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return player_info(player)


@app.delete("/api/players/{player_id}")
async def delete_player(player_id: str):
    """Delete a player and their match history."""
    try:
        session_manager.player_service.delete_player(player_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Player not found")
    return {"status": "deleted"}


@app.get("/api/leaderboard")
async def leaderboard():
    """All players ranked by rating."""
    stats = session_manager.player_service.leaderboard()
    return {"players": [s.to_dict() for s in stats]}


@app.get("/api/tiers")
async def list_tiers():
    """Rating tiers with their thresholds."""
    return {
        "tiers": [
            TierInfo(
                tier=t["tier"],
                name=t["name"],
                threshold=t["threshold"],
                max_threshold=t["maxThreshold"],
                color=t["color"],
            )
            for t in tier_thresholds()
        ]
    }


# =============================================================================
# Tournament Endpoints
# =============================================================================

@app.post("/api/tournaments", response_model=TournamentState)
async def create_tournament(request: CreateTournamentRequest):
    """Start a tournament and generate its first round."""
    try:
        session = session_manager.create_session(
            player_ids=request.player_ids,
            max_courts=request.max_courts,
            seed=request.seed
        )
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TournamentState(**session_manager.get_tournament_state(session))


@app.get("/api/tournaments")
async def list_tournaments(limit: int = Query(default=20, le=100)):
    """List active sessions and saved tournaments."""
    return {
        "active": session_manager.list_active(),
        "saved": session_manager.storage.list_tournaments(limit=limit),
    }


@app.get("/api/tournaments/{tournament_id}", response_model=TournamentState)
async def get_tournament(tournament_id: str):
    """Get current tournament state."""
    session = get_session_or_404(tournament_id)
    return TournamentState(**session_manager.get_tournament_state(session))


@app.post("/api/tournaments/{tournament_id}/rounds", response_model=RoundState)
async def next_round(tournament_id: str):
    """Generate the next round."""
    session = get_session_or_404(tournament_id)
    try:
        new_round = session.next_round()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return RoundState(**serialize_round(new_round))


@app.put("/api/tournaments/{tournament_id}/matches/{match_id}/score", response_model=MatchState)
async def update_score(tournament_id: str, match_id: int, request: ScoreRequest):
    """Set one team's score."""
    session = get_session_or_404(tournament_id)
    try:
        match = session.update_score(match_id, request.team_index, request.score)
    except KeyError:
        raise HTTPException(status_code=404, detail="Match not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MatchState(**serialize_match(match))


@app.post("/api/tournaments/{tournament_id}/matches/{match_id}/finish", response_model=FinishMatchResponse)
async def finish_match(tournament_id: str, match_id: int):
    """Complete a match and apply rating changes."""
    session = get_session_or_404(tournament_id)
    try:
        changes = session.finish_match(match_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Match not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return FinishMatchResponse(
        match=MatchState(**serialize_match(session.find_match(match_id))),
        tier_changes=[
            TierChangeInfo(
                player_id=c.player_id,
                player_name=c.player_name,
                old_tier=c.old_tier.value,
                new_tier=c.new_tier.value,
                promoted=c.promoted,
            )
            for c in changes
        ]
    )


@app.post("/api/tournaments/{tournament_id}/matches/{match_id}/skip", response_model=MatchState)
async def skip_match(tournament_id: str, match_id: int):
    """Toggle the skipped state of a match."""
    session = get_session_or_404(tournament_id)
    try:
        match = session.skip_match(match_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Match not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MatchState(**serialize_match(match))


@app.post("/api/tournaments/{tournament_id}/end")
async def end_tournament(tournament_id: str):
    """End a tournament and save it."""
    get_session_or_404(tournament_id)
    record = session_manager.end_session(tournament_id)
    return {
        "status": "ended",
        "tournament_id": tournament_id,
        "final_elos": {p["id"]: p["finalElo"] for p in record["players"]},
    }


@app.get("/api/tournaments/{tournament_id}/record")
async def get_saved_tournament(tournament_id: str):
    """Get a saved tournament record."""
    record = session_manager.storage.load_tournament(tournament_id)
    if not record:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return record


@app.delete("/api/tournaments/{tournament_id}/record")
async def delete_saved_tournament(tournament_id: str):
    """Delete a saved tournament record."""
    if not session_manager.storage.delete_tournament(tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return {"status": "deleted"}
