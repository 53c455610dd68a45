"""Admin API endpoints for manual pipeline runs."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from tipleague.config import get_settings
from tipleague.database import Store, get_store
from tipleague.errors import AggregationFailure
from tipleague.tasks.fairplay import rebuild_fairplay
from tipleague.tasks.leaderboard import rebuild_scores
from tipleague.tasks.pipeline import run_batch

router = APIRouter(prefix="/admin", tags=["Admin"])


class TaskResult(BaseModel):
    """Task execution result."""
    status: str
    message: str


@router.post("/fairplay/rebuild", response_model=TaskResult)
async def trigger_fairplay(store: Store = Depends(get_store)) -> TaskResult:
    """Rebuild fairplay marks for every league."""
    try:
        marked = await rebuild_fairplay(store)
    except AggregationFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return TaskResult(status="completed", message=f"Marked {marked} fixtures.")


@router.post("/scores/rebuild", response_model=TaskResult)
async def trigger_scores(store: Store = Depends(get_store)) -> TaskResult:
    """
    Rebuild every leaderboard.

    Uses the current fairplay marks; rebuild those first if bets changed.
    """
    try:
        written = await rebuild_scores(store)
    except AggregationFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return TaskResult(status="completed", message=f"Wrote {written} score rows.")


@router.post("/pipeline/run", response_model=TaskResult)
async def trigger_pipeline(notify: bool = False) -> TaskResult:
    """
    Run the whole settlement batch now.

    Notifications are off unless asked for, since a manual run would
    otherwise replace the tokens already sent today.
    """
    report = await run_batch(get_settings(), notify=notify)
    failed = [name for name, step in report.items() if isinstance(step, dict) and step.get("status") == "failed"]
    return TaskResult(
        status=report["status"],
        message="All steps completed." if not failed else f"Failed steps: {', '.join(failed)}",
    )
