"""One-click re-bet links from the daily notifications."""

from html import escape

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from tipleague.database import Store, get_store
from tipleague.errors import KickoffPassedError, MatchNotFoundError, TokenNotFoundError
from tipleague.services.bets import redeem_token

router = APIRouter()

PREDICTION_LABELS = {"home": "home win", "draw": "draw", "away": "away win"}


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    html = (
        "<!doctype html><html><head><meta charset='utf-8'>"
        f"<title>{escape(title)}</title></head>"
        f"<body><h1>{escape(title)}</h1><p>{body}</p></body></html>"
    )
    return HTMLResponse(content=html, status_code=status_code)


@router.get("/bet/{token}", response_class=HTMLResponse)
async def redeem(token: str, store: Store = Depends(get_store)) -> HTMLResponse:
    """Place the bet bound to a notification token and render a confirmation."""
    try:
        confirmation = await redeem_token(store, token)
    except (TokenNotFoundError, MatchNotFoundError):
        return _page("Link not valid", "This link is unknown or has expired.", 404)
    except KickoffPassedError:
        return _page("Too late", "This match has already started.", 403)

    body = (
        f"{escape(confirmation.username)}, your bet on "
        f"<b>{escape(confirmation.home_team)} - {escape(confirmation.away_team)}</b> "
        f"is now <b>{PREDICTION_LABELS[confirmation.prediction.value]}</b>."
    )
    return _page("Bet saved", body)
