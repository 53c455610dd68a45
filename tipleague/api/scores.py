"""Leaderboard endpoints."""

from fastapi import APIRouter, Depends, Query

from tipleague.database import Store, get_store
from tipleague.schemas import LeaderboardRow
from tipleague.services.bets import get_leaderboard

router = APIRouter()


@router.get("/scores", response_model=list[LeaderboardRow])
async def read_leaderboard(
    league: str = Query(default="global", description="League identifier"),
    store: Store = Depends(get_store),
) -> list[LeaderboardRow]:
    """Ranked leaderboard of a league, as of the last score rebuild."""
    return await get_leaderboard(store, league)
