# complihr_api/blueprints/departments.py
from __future__ import annotations

from flask import Blueprint, request
from sqlalchemy import or_

from complihr_api.common.auth import requires_roles
from complihr_api.common.http import ok, fail, paged
from complihr_api.common.paging import paginate, text_q
from complihr_api.extensions import db
from complihr_api.models.master import Department
from complihr_api.services.id_categories import IdCategory
from complihr_api.services.id_sequencer import generate_id
from complihr_api.services.organization_settings import get_organization

bp = Blueprint("departments", __name__, url_prefix="/api/v1/organizations/<int:org_id>/departments")


# ---------- row shape ----------
def _row(x: Department):
    return {
        "id": x.id,
        "organization_id": x.organization_id,
        "code": x.code,
        "name": x.name,
        "is_active": x.is_active,
        "created_at": x.created_at.isoformat() if x.created_at else None,
    }


@bp.get("")
@requires_roles("admin", "hr")
def list_departments(org_id: int):
    get_organization(org_id)
    qry = Department.query.filter(Department.organization_id == org_id)

    s = text_q()
    if s:
        like = f"%{s}%"
        qry = qry.filter(or_(Department.name.ilike(like), Department.code.ilike(like)))

    allowed = {
        "id": Department.id,
        "name": Department.name,
        "code": Department.code,
        "created_at": Department.created_at,
    }
    items, page, size, total = paginate(qry, allowed, Department.code.asc())
    return paged([_row(i) for i in items], page, size, total)


@bp.post("")
@requires_roles("admin", "hr")
def create_department(org_id: int):
    org = get_organization(org_id)
    data = request.get_json(silent=True, force=True) or {}
    name = (data.get("name") or "").strip()
    if not name:
        return fail("name is required", 422)

    dup = Department.query.filter(
        Department.organization_id == org.id,
        db.func.lower(Department.name) == name.lower(),
    ).first()
    if dup:
        return fail("Department with same name already exists", 409)

    # explicit code wins; otherwise issue the next department code
    code = (data.get("code") or "").strip() or generate_id(org.id, IdCategory.DEPARTMENT_CODE)
    if Department.query.filter_by(organization_id=org.id, code=code).first():
        return fail("Department code already exists for this organization", 409)

    obj = Department(organization_id=org.id, code=code, name=name,
                     is_active=bool(data.get("is_active", True)))
    db.session.add(obj)
    db.session.commit()
    return ok(_row(obj), 201)
