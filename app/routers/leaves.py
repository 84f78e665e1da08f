from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.audit import log_audit
from app.db import get_db
from app.errors import ApiError
from app.models import LeaveStatus
from app.schemas import (
    InLieuCreateRequest,
    InLieuRead,
    LeaveBalanceRead,
    LeaveCreateRequest,
    LeaveRead,
    LeaveStatusUpdateRequest,
    LeaveSyncRead,
    LeaveWithSyncRead,
)
from app.security import Principal, ensure_employee_access, require_admin, require_principal
from app.services.in_lieu import create_in_lieu_record, delete_in_lieu_record, list_in_lieu_records
from app.services.leave_balance import get_leave_balance
from app.services.leaves import (
    LeaveSyncResult,
    create_leave,
    delete_leave,
    get_leave,
    list_leaves,
    sync_leave_to_overrides,
    update_leave_status,
)

router = APIRouter(tags=["leaves"])


def _sync_read(sync: LeaveSyncResult | None) -> LeaveSyncRead | None:
    if sync is None:
        return None
    return LeaveSyncRead(**asdict(sync))


@router.post("/api/leaves", response_model=LeaveWithSyncRead, status_code=status.HTTP_201_CREATED)
def create_leave_endpoint(
    payload: LeaveCreateRequest,
    request: Request,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> LeaveWithSyncRead:
    ensure_employee_access(principal, payload.employee_id)
    if not principal.is_admin and payload.status != LeaveStatus.PENDING:
        raise ApiError(status_code=403, code="FORBIDDEN", message="Only admins can create a leave in this status.")
    leave, sync = create_leave(db, payload)
    log_audit(
        db,
        actor_id=str(principal.user_id),
        action="LEAVE_CREATED",
        entity_type="leave",
        entity_id=str(leave.id),
        details={
            "employee_id": leave.employee_id,
            "type": leave.type.value,
            "status": leave.status.value,
            "synced_days": len(sync.created_days),
            "failed_days": len(sync.failed_days),
        },
        request=request,
    )
    return LeaveWithSyncRead(leave=LeaveRead.model_validate(leave), sync=_sync_read(sync))


@router.get("/api/leaves", response_model=list[LeaveRead])
def list_leaves_endpoint(
    employee_id: int | None = Query(default=None, ge=1),
    year: int | None = Query(default=None, ge=1970),
    month: int | None = Query(default=None, ge=1, le=12),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> list[LeaveRead]:
    if not principal.is_admin:
        employee_id = principal.user_id
    return list_leaves(db, employee_id=employee_id, year=year, month=month)


@router.patch("/api/leaves/{leave_id}/status", response_model=LeaveWithSyncRead)
def update_leave_status_endpoint(
    leave_id: int,
    payload: LeaveStatusUpdateRequest,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
) -> LeaveWithSyncRead:
    leave, sync, removed = update_leave_status(db, leave_id, payload.status)
    log_audit(
        db,
        actor_id=str(principal.user_id),
        action="LEAVE_STATUS_UPDATED",
        entity_type="leave",
        entity_id=str(leave.id),
        details={"status": leave.status.value, "removed_overrides": removed},
        request=request,
    )
    return LeaveWithSyncRead(
        leave=LeaveRead.model_validate(leave),
        sync=_sync_read(sync),
        removed_overrides=removed,
    )


@router.post("/api/leaves/{leave_id}/sync", response_model=LeaveSyncRead)
def sync_leave_endpoint(
    leave_id: int,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> LeaveSyncRead:
    leave = get_leave(db, leave_id)
    ensure_employee_access(principal, leave.employee_id)
    return LeaveSyncRead(**asdict(sync_leave_to_overrides(db, leave)))


@router.delete("/api/leaves/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_leave_endpoint(
    leave_id: int,
    request: Request,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> None:
    leave = get_leave(db, leave_id)
    ensure_employee_access(principal, leave.employee_id)
    removed = delete_leave(db, leave_id)
    log_audit(
        db,
        actor_id=str(principal.user_id),
        action="LEAVE_DELETED",
        entity_type="leave",
        entity_id=str(leave_id),
        details={"removed_overrides": removed},
        request=request,
    )


@router.get("/api/employees/{employee_id}/leave-balance", response_model=LeaveBalanceRead)
def get_leave_balance_endpoint(
    employee_id: int,
    year: int = Query(..., ge=1970, le=9999),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> LeaveBalanceRead:
    ensure_employee_access(principal, employee_id)
    balance = get_leave_balance(db, employee_id=employee_id, year=year)
    return LeaveBalanceRead(employee_id=employee_id, year=year, **asdict(balance))


@router.post("/api/in-lieu", response_model=InLieuRead, status_code=status.HTTP_201_CREATED)
def create_in_lieu_endpoint(
    payload: InLieuCreateRequest,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
) -> InLieuRead:
    record = create_in_lieu_record(
        db,
        employee_id=payload.employee_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        created_by=str(principal.user_id),
    )
    log_audit(
        db,
        actor_id=str(principal.user_id),
        action="IN_LIEU_CREATED",
        entity_type="in_lieu_record",
        entity_id=str(record.id),
        details={"employee_id": record.employee_id, "leave_days_added": record.leave_days_added},
        request=request,
    )
    return record


@router.get("/api/in-lieu", response_model=list[InLieuRead])
def list_in_lieu_endpoint(
    employee_id: int | None = Query(default=None, ge=1),
    _principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[InLieuRead]:
    return list_in_lieu_records(db, employee_id=employee_id)


@router.delete("/api/in-lieu/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_in_lieu_endpoint(
    record_id: int,
    request: Request,
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
) -> None:
    record = delete_in_lieu_record(db, record_id)
    log_audit(
        db,
        actor_id=str(principal.user_id),
        action="IN_LIEU_DELETED",
        entity_type="in_lieu_record",
        entity_id=str(record_id),
        details={"employee_id": record.employee_id, "leave_days_removed": record.leave_days_added},
        request=request,
    )
