from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Response
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from attendly.database import get_db
from attendly.models.user import User
from attendly.routers.auth_deps import get_current_user, require_manager
from attendly.services import report_service

router = APIRouter(prefix="/leave-analytics", tags=["Leave Analytics"])


@router.get("/employee")
def employee_analytics(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return report_service.employee_leave_analytics(db, current_user.id, year or date.today().year)


@router.get("/manager")
def manager_analytics(
    year: Optional[int] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    return report_service.manager_leave_analytics(db, year or date.today().year, department)


@router.get("/export")
def export_leaves(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    department: Optional[str] = None,
    format: Literal["csv", "json"] = "csv",
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    leaves = report_service.leaves_for_export(db, start_date, end_date, department)
    if format == "json":
        return jsonable_encoder(report_service.leave_export_rows(leaves))

    filename = f"leave-report-{date.today().isoformat()}.csv"
    return Response(
        content=report_service.leave_csv(leaves),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
