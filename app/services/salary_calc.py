from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


OVERTIME_HOURLY_DIVISOR = 210
REFERENCE_EXCHANGE_RATE = 30.8

_OPTIONAL_NON_NEGATIVE_FIELDS = (
    "cost_of_living",
    "shift_allowance",
    "other_earnings",
    "schedule_overtime_hours",
    "manual_overtime_hours",
    "deduction",
)


class SalaryEngineError(Exception):
    pass


class ValidationError(SalaryEngineError):
    def __init__(self, issues: list[str]):
        super().__init__("; ".join(issues))
        self.issues = issues


class CalculationError(SalaryEngineError):
    pass


@dataclass(frozen=True)
class SalaryInput:
    basic_salary: float | None
    exchange_rate: float | None
    cost_of_living: float | None = None
    shift_allowance: float | None = None
    other_earnings: float | None = None
    schedule_overtime_hours: float | None = None
    manual_overtime_hours: float | None = None
    deduction: float | None = None


@dataclass(frozen=True)
class SalaryResult:
    total_overtime_hours: float
    hourly_rate: float
    overtime_pay: float
    rate_ratio: float
    gross_base: float
    total_salary: float

    def rounded(self) -> dict[str, float]:
        return {
            "total_overtime_hours": round_for_display(self.total_overtime_hours),
            "hourly_rate": round_for_display(self.hourly_rate),
            "overtime_pay": round_for_display(self.overtime_pay),
            "rate_ratio": round_for_display(self.rate_ratio, places=5),
            "gross_base": round_for_display(self.gross_base),
            "total_salary": round_for_display(self.total_salary),
        }


def round_for_display(value: float, *, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _coalesce(value: float | None) -> float:
    if value is None:
        return 0.0
    return float(value)


def _is_bad_number(value: float) -> bool:
    return math.isnan(value) or math.isinf(value)


def validate_salary_input(salary_input: SalaryInput) -> list[str]:
    issues: list[str] = []

    if salary_input.basic_salary is None:
        issues.append("basic_salary is required")
    elif _is_bad_number(float(salary_input.basic_salary)) or salary_input.basic_salary <= 0:
        issues.append("basic_salary must be greater than 0")

    if salary_input.exchange_rate is None:
        issues.append("exchange_rate is required")
    elif _is_bad_number(float(salary_input.exchange_rate)) or salary_input.exchange_rate <= 0:
        issues.append("exchange_rate must be greater than 0")

    for field_name in _OPTIONAL_NON_NEGATIVE_FIELDS:
        value = _coalesce(getattr(salary_input, field_name))
        if _is_bad_number(value) or value < 0:
            issues.append(f"{field_name} cannot be negative")

    total_hours = _coalesce(salary_input.schedule_overtime_hours) + _coalesce(salary_input.manual_overtime_hours)
    if total_hours < 0:
        issues.append("total overtime hours cannot be negative")

    return issues


def calculate(salary_input: SalaryInput) -> SalaryResult:
    issues = validate_salary_input(salary_input)
    if issues:
        raise ValidationError(issues)

    basic_salary = float(salary_input.basic_salary)  # type: ignore[arg-type]
    exchange_rate = float(salary_input.exchange_rate)  # type: ignore[arg-type]
    cost_of_living = _coalesce(salary_input.cost_of_living)
    shift_allowance = _coalesce(salary_input.shift_allowance)
    other_earnings = _coalesce(salary_input.other_earnings)
    deduction = _coalesce(salary_input.deduction)

    total_overtime_hours = _coalesce(salary_input.schedule_overtime_hours) + _coalesce(
        salary_input.manual_overtime_hours
    )
    hourly_rate = (basic_salary + cost_of_living) / OVERTIME_HOURLY_DIVISOR
    overtime_pay = hourly_rate * total_overtime_hours
    rate_ratio = exchange_rate / REFERENCE_EXCHANGE_RATE
    gross_base = basic_salary + cost_of_living + shift_allowance + other_earnings + overtime_pay
    total_salary = (gross_base * rate_ratio) - deduction

    if not math.isfinite(total_salary):
        raise CalculationError(f"Salary total is not finite: {total_salary!r}")

    return SalaryResult(
        total_overtime_hours=total_overtime_hours,
        hourly_rate=hourly_rate,
        overtime_pay=overtime_pay,
        rate_ratio=rate_ratio,
        gross_base=gross_base,
        total_salary=total_salary,
    )
