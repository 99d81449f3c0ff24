# complihr_api/services/id_categories.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from complihr_api.common.errors import InvalidArgument


class IdCategory(str, Enum):
    EMPLOYEE = "employee"
    PAYROLL = "payroll"
    LEAVE = "leave"
    EXPENSE = "expense"
    SHIFT = "shift"
    DEPARTMENT_CODE = "department_code"


# counter reset periods
RESET_MONTHLY = "monthly"
RESET_YEARLY = "yearly"
RESET_NEVER = "never"


@dataclass(frozen=True)
class CategorySpec:
    category: IdCategory
    pattern_field: str      # column on OrganizationSettings holding the pattern
    sequence_field: str     # legacy simple counter column on OrganizationSettings
    default_pattern: str
    default_reset: str


CATEGORIES: dict[IdCategory, CategorySpec] = {
    IdCategory.EMPLOYEE: CategorySpec(
        IdCategory.EMPLOYEE, "employee_id_pattern", "employee_id_sequence",
        "{ORG}-EMP-{YEAR}-{SEQUENCE:5}", RESET_YEARLY,
    ),
    IdCategory.PAYROLL: CategorySpec(
        IdCategory.PAYROLL, "payroll_id_pattern", "payroll_id_sequence",
        "{ORG}-PAY-{YEAR}{MONTH}-{SEQUENCE:4}", RESET_YEARLY,
    ),
    IdCategory.LEAVE: CategorySpec(
        IdCategory.LEAVE, "leave_id_pattern", "leave_id_sequence",
        "{ORG}-LV-{YEAR}-{SEQUENCE:4}", RESET_YEARLY,
    ),
    IdCategory.EXPENSE: CategorySpec(
        IdCategory.EXPENSE, "expense_id_pattern", "expense_id_sequence",
        "{ORG}-EXP-{YEAR}-{SEQUENCE:4}", RESET_YEARLY,
    ),
    IdCategory.SHIFT: CategorySpec(
        IdCategory.SHIFT, "shift_id_pattern", "shift_id_sequence",
        "{ORG}-SH-{YYYYMMDD}-{SEQUENCE:3}", RESET_YEARLY,
    ),
    IdCategory.DEPARTMENT_CODE: CategorySpec(
        IdCategory.DEPARTMENT_CODE, "department_code_pattern", "department_code_sequence",
        "{ORG}-DEPT-{SEQUENCE:3}", RESET_NEVER,
    ),
}


def parse_category(raw) -> IdCategory:
    """
    Accepts an IdCategory or its value; '-' and '_' are interchangeable so
    'department-code' (URL form) and 'department_code' both resolve.
    """
    if isinstance(raw, IdCategory):
        return raw
    key = (str(raw or "")).strip().lower().replace("-", "_")
    try:
        return IdCategory(key)
    except ValueError:
        allowed = ", ".join(c.value for c in IdCategory)
        raise InvalidArgument(f"Unknown id category {raw!r}. Valid categories are: {allowed}") from None


def category_spec(raw) -> CategorySpec:
    return CATEGORIES[parse_category(raw)]
