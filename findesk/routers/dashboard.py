"""Finance dashboard.

Endpoints:
    GET /api/dashboard/   Headline stats (cached for a minute)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.database import get_db
from findesk.schemas.dashboard import DashboardStats
from findesk.services.dashboard import dashboard_stats
from findesk.utils.dates import today_ist

router = APIRouter()


@router.get("/", response_model=DashboardStats)
async def get_dashboard(db: AsyncSession = Depends(get_db)):
    stats = await dashboard_stats(db, today=today_ist())
    return DashboardStats(**stats)
