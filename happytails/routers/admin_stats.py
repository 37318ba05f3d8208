# happytails/routers/admin_stats.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from happytails.core.auth import require_admin
from happytails.database import get_session
from happytails.repositories.event_repo import EventRepository
from happytails.repositories.stats_repo import StatsRepository
from happytails.schemas.stats import StatsEnvelope
from happytails.services.stats_service import StatsService

router = APIRouter(prefix="/admin/stats", tags=["Admin Stats"])

service = StatsService(StatsRepository(), EventRepository())


@router.get(
    "",
    response_model=StatsEnvelope,
    dependencies=[Depends(require_admin)],
)
def get_admin_dashboard_stats(
    year: int | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    session: Session = Depends(get_session),
):
    """
    Aggregated statistics for the admin dashboard.

    Query params (optional):
      - year: integer, defaults to current year
      - month: integer 1-12, defaults to current month
    """
    return StatsEnvelope(stats=service.get_dashboard(session, year=year, month=month))
