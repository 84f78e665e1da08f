from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.audit import log_audit
from app.db import get_db
from app.models import OverrideSource, ShiftOverride
from app.schemas import (
    GroupAssignmentsRead,
    MonthCalendarResponse,
    ShiftLookupResponse,
    ShiftOverrideRead,
    ShiftOverrideUpsertRequest,
)
from app.security import Principal, ensure_employee_access, require_principal
from app.services.rotation import RotationGroup
from app.services.schedule import get_employee_month_calendar, lookup_group_assignments, lookup_shift
from app.services.shift_overrides import delete_shift_override, list_shift_overrides, upsert_shift_override
from app.settings import get_settings

router = APIRouter(tags=["schedule"])


def _leap_aware() -> bool:
    return get_settings().rotation_leap_aware


@router.get("/api/schedule/shift", response_model=ShiftLookupResponse)
def get_shift(
    group: RotationGroup = Query(...),
    day: date = Query(..., alias="date"),
    _principal: Principal = Depends(require_principal),
) -> ShiftLookupResponse:
    return lookup_shift(day, group, leap_aware=_leap_aware())


@router.get("/api/schedule/groups", response_model=GroupAssignmentsRead)
def get_groups(
    day: date = Query(..., alias="date"),
    _principal: Principal = Depends(require_principal),
) -> GroupAssignmentsRead:
    return lookup_group_assignments(day, leap_aware=_leap_aware())


@router.get("/api/employees/{employee_id}/calendar", response_model=MonthCalendarResponse)
def get_month_calendar(
    employee_id: int,
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> MonthCalendarResponse:
    ensure_employee_access(principal, employee_id)
    return get_employee_month_calendar(db, employee_id=employee_id, year=year, month=month)


@router.post(
    "/api/employees/{employee_id}/shift-overrides",
    response_model=ShiftOverrideRead,
)
def upsert_shift_override_endpoint(
    employee_id: int,
    payload: ShiftOverrideUpsertRequest,
    request: Request,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> ShiftOverrideRead:
    ensure_employee_access(principal, employee_id)
    if not principal.is_admin:
        payload = payload.model_copy(update={"source": OverrideSource.MANUAL})
    override = upsert_shift_override(
        db,
        employee_id=employee_id,
        payload=payload,
        created_by=str(principal.user_id),
    )
    log_audit(
        db,
        actor_id=str(principal.user_id),
        action="SHIFT_OVERRIDE_UPSERTED",
        entity_type="shift_override",
        entity_id=str(override.id),
        details={
            "employee_id": employee_id,
            "day_date": payload.day_date.isoformat(),
            "shift_type": payload.shift_type.value,
        },
        request=request,
    )
    return override


@router.get(
    "/api/employees/{employee_id}/shift-overrides",
    response_model=list[ShiftOverrideRead],
)
def list_shift_overrides_endpoint(
    employee_id: int,
    start_date: date = Query(...),
    end_date: date = Query(...),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> list[ShiftOverrideRead]:
    ensure_employee_access(principal, employee_id)
    return list_shift_overrides(db, employee_id=employee_id, start_date=start_date, end_date=end_date)


@router.delete("/api/shift-overrides/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shift_override_endpoint(
    override_id: int,
    request: Request,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> None:
    override = db.get(ShiftOverride, override_id)
    if override is None:
        raise HTTPException(status_code=404, detail="Shift override not found")
    ensure_employee_access(principal, override.employee_id)

    deleted = delete_shift_override(db, override_id)
    log_audit(
        db,
        actor_id=str(principal.user_id),
        action="SHIFT_OVERRIDE_DELETED",
        entity_type="shift_override",
        entity_id=str(override_id),
        details={"employee_id": deleted.employee_id, "day_date": deleted.day_date.isoformat()},
        request=request,
    )
