from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.audit import log_audit
from app.db import get_db
from app.schemas import (
    SalaryCalculationRequest,
    SalaryRecordRead,
    SalaryResultRead,
    SalaryUpsertRequest,
    SalaryYearSummaryRead,
)
from app.security import Principal, ensure_employee_access, require_principal
from app.services.salaries import list_salary_records, to_salary_input, upsert_salary_record, yearly_salary_summary
from app.services.salary_calc import SalaryResult, calculate

router = APIRouter(tags=["salary"])


def _result_read(result: SalaryResult) -> SalaryResultRead:
    return SalaryResultRead(**asdict(result), display=result.rounded())


@router.post("/api/salary/calculate", response_model=SalaryResultRead)
def calculate_salary(
    payload: SalaryCalculationRequest,
    _principal: Principal = Depends(require_principal),
) -> SalaryResultRead:
    return _result_read(calculate(to_salary_input(payload)))


@router.put("/api/employees/{employee_id}/salaries", response_model=SalaryRecordRead)
def upsert_salary_endpoint(
    employee_id: int,
    payload: SalaryUpsertRequest,
    request: Request,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> SalaryRecordRead:
    ensure_employee_access(principal, employee_id)
    record, result = upsert_salary_record(db, employee_id=employee_id, payload=payload)
    log_audit(
        db,
        actor_id=str(principal.user_id),
        action="SALARY_CALCULATED",
        entity_type="salary_record",
        entity_id=str(record.id),
        details={
            "employee_id": employee_id,
            "month": record.month.isoformat(),
            "total_salary": result.rounded()["total_salary"],
        },
        request=request,
    )
    return record


@router.get("/api/employees/{employee_id}/salaries", response_model=list[SalaryRecordRead])
def list_salaries_endpoint(
    employee_id: int,
    year: int | None = Query(default=None, ge=1970, le=9999),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> list[SalaryRecordRead]:
    ensure_employee_access(principal, employee_id)
    return list_salary_records(db, employee_id=employee_id, year=year)


@router.get("/api/employees/{employee_id}/salaries/summary", response_model=SalaryYearSummaryRead)
def salary_summary_endpoint(
    employee_id: int,
    year: int = Query(..., ge=1970, le=9999),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
) -> SalaryYearSummaryRead:
    ensure_employee_access(principal, employee_id)
    return SalaryYearSummaryRead(**yearly_salary_summary(db, employee_id=employee_id, year=year))
