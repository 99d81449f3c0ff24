# complihr_api/blueprints/employees.py
from __future__ import annotations

from datetime import date, datetime

from flask import Blueprint, request
from sqlalchemy import or_

from complihr_api.common.auth import requires_roles
from complihr_api.common.http import ok, fail, paged
from complihr_api.common.paging import paginate, text_q
from complihr_api.extensions import db
from complihr_api.models.employee import Employee
from complihr_api.models.master import Department
from complihr_api.services.id_categories import IdCategory
from complihr_api.services.id_sequencer import generate_id
from complihr_api.services.organization_settings import get_organization

bp = Blueprint("employees", __name__, url_prefix="/api/v1/organizations/<int:org_id>/employees")

EMPLOYMENT_TYPES = ("fulltime", "parttime", "contract")


def _parse_date(s):
    if not s:
        return None
    if isinstance(s, date):
        return s
    try:
        return datetime.strptime(str(s)[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def _as_int(val, field):
    if val is None or val == "":
        return None
    try:
        return int(val)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be integer")


def _row(x: Employee):
    return {
        "id": x.id,
        "organization_id": x.organization_id,
        "employee_number": x.employee_number,
        "first_name": x.first_name,
        "last_name": x.last_name,
        "email": x.email,
        "department_id": x.department_id,
        "department_code": x.department.code if x.department else None,
        "start_date": x.start_date.isoformat() if x.start_date else None,
        "employment_type": x.employment_type,
        "status": x.status,
        "created_at": x.created_at.isoformat() if x.created_at else None,
    }


@bp.get("")
@requires_roles("admin", "hr")
def list_employees(org_id: int):
    get_organization(org_id)
    q = Employee.query.filter(Employee.organization_id == org_id)

    s = text_q()
    if s:
        like = f"%{s}%"
        q = q.filter(or_(Employee.employee_number.ilike(like),
                         Employee.first_name.ilike(like),
                         Employee.last_name.ilike(like),
                         Employee.email.ilike(like)))

    status = (request.args.get("status") or "").strip().lower()
    if status:
        q = q.filter(Employee.status == status)

    allowed = {
        "id": Employee.id,
        "employee_number": Employee.employee_number,
        "first_name": Employee.first_name,
        "created_at": Employee.created_at,
    }
    items, page, size, total = paginate(q, allowed, Employee.id.asc())
    return paged([_row(i) for i in items], page, size, total)


@bp.post("")
@requires_roles("admin", "hr")
def create_employee(org_id: int):
    org = get_organization(org_id)
    d = request.get_json(silent=True, force=True) or {}
    try:
        did = _as_int(d.get("department_id"), "department_id")
    except ValueError as ex:
        return fail(str(ex), 422)

    email = (d.get("email") or "").strip().lower()
    first = (d.get("first_name") or "").strip()
    if not (email and first):
        return fail("first_name, email are required", 422)

    employment_type = (d.get("employment_type") or "fulltime").lower()
    if employment_type not in EMPLOYMENT_TYPES:
        return fail(f"employment_type must be one of: {', '.join(EMPLOYMENT_TYPES)}", 422)

    dept = None
    if did:
        dept = db.session.get(Department, did)
        if not dept or dept.organization_id != org.id:
            return fail("Invalid department_id", 422)

    if Employee.query.filter_by(email=email).first():
        return fail("Email already exists", 409)

    number = (d.get("employee_number") or "").strip()
    if number:
        if Employee.query.filter_by(organization_id=org.id, employee_number=number).first():
            return fail("Employee number already exists for this organization", 409)
    else:
        number = generate_id(org.id, IdCategory.EMPLOYEE, dept_code=dept.code if dept else None)

    x = Employee(
        organization_id=org.id,
        department_id=dept.id if dept else None,
        employee_number=number,
        email=email,
        first_name=first,
        last_name=(d.get("last_name") or "").strip() or None,
        start_date=_parse_date(d.get("start_date")),
        employment_type=employment_type,
        status=(d.get("status") or "active").lower(),
    )
    db.session.add(x)
    db.session.commit()
    return ok(_row(x), 201)
