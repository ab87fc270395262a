"""
Report routes: dashboard and reports page figures.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.dependencies import require_permission
from ..auth.models import User
from ..core.permissions import Permission
from ..database import get_db
from .schemas import DashboardResponse, ReportResponse
from .service import get_dashboard, get_report

router = APIRouter()

@router.get("/dashboard", response_model=DashboardResponse)
def dashboard_route(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS))
):
    return get_dashboard(db)

@router.get("/summary", response_model=ReportResponse)
def report_route(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS))
):
    """
    Monthly activity, status breakdown, pending follow-up and top referrers.
    """
    return get_report(db)
