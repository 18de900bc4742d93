"""FastAPI dependencies shared by the routers.

Dependencies:
  get_actor     → name of the acting user from the X-Actor header
  period_query  → (month, year) query params, defaulting to the current IST month
"""

from fastapi import Header, Query

from findesk.utils.dates import today_ist

DEFAULT_ACTOR = "system"


async def get_actor(x_actor: str | None = Header(None)) -> str:
    """Who is making the change.  Feeds created_by / changed_by."""
    actor = (x_actor or "").strip()
    return actor or DEFAULT_ACTOR


async def period_query(
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None, ge=2000, le=2100),
) -> tuple[int, int]:
    today = today_ist()
    return month or today.month, year or today.year
