from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_admin
from app.models.user import User
from app.schemas.report import StatisticsOut
from app.services import quota as quota_service
from app.services.reports import build_statistics

router = APIRouter()


@router.get("/reports/statistics", response_model=StatisticsOut)
def get_statistics(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> StatisticsOut:
    return build_statistics(
        db,
        today=quota_service.school_today(),
        week=quota_service.current_iso_week(),
    )
