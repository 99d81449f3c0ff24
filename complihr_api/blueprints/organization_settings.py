# complihr_api/blueprints/organization_settings.py
from __future__ import annotations

from flask import Blueprint, request

from complihr_api.common.auth import requires_roles
from complihr_api.common.errors import InvalidArgument
from complihr_api.common.http import ok
from complihr_api.models.organization_settings import OrganizationSettings
from complihr_api.services import id_sequencer
from complihr_api.services.id_categories import CATEGORIES, category_spec
from complihr_api.services.organization_settings import get_settings, update_settings

bp = Blueprint("organization_settings", __name__, url_prefix="/api/v1")


# ---------- row shapes ----------
def _row(s: OrganizationSettings):
    out = {
        "organization_id": s.organization_id,
        "fiscal_year_start_month": s.fiscal_year_start_month,
        "default_currency": s.default_currency,
        "timezone": s.timezone,
        "date_format": s.date_format,
        "payroll_frequency": s.payroll_frequency,
        "payroll_day_of_month": s.payroll_day_of_month,
        "leave_year_start_month": s.leave_year_start_month,
        "carry_forward_enabled": s.carry_forward_enabled,
        "max_carry_forward_days": s.max_carry_forward_days,
        "standard_working_hours_per_day": float(s.standard_working_hours_per_day)
            if s.standard_working_hours_per_day is not None else None,
        "standard_working_days_per_week": s.standard_working_days_per_week,
        "created_at": s.created_at.isoformat() if s.created_at else None,
        "updated_at": s.updated_at.isoformat() if s.updated_at else None,
    }
    for spec in CATEGORIES.values():
        out[spec.pattern_field] = getattr(s, spec.pattern_field)
        out[spec.sequence_field] = getattr(s, spec.sequence_field)
    return out


def _pattern_rows(s: OrganizationSettings):
    return [
        {
            "category": spec.category.value,
            "pattern": s.pattern_for(spec.category),
            "default_pattern": spec.default_pattern,
            "default_reset": spec.default_reset,
        }
        for spec in CATEGORIES.values()
    ]


def _body():
    return request.get_json(silent=True, force=True) or {}


# ---------- settings ----------
@bp.get("/organizations/<int:org_id>/settings")
@requires_roles("admin", "hr")
def get_organization_settings(org_id: int):
    return ok(_row(get_settings(org_id)))


@bp.patch("/organizations/<int:org_id>/settings")
@requires_roles("admin")
def patch_organization_settings(org_id: int):
    return ok(_row(update_settings(org_id, _body())))


# ---------- id patterns ----------
@bp.get("/organizations/<int:org_id>/id-patterns")
@requires_roles("admin", "hr")
def list_id_patterns(org_id: int):
    return ok(_pattern_rows(get_settings(org_id)))


@bp.put("/organizations/<int:org_id>/id-patterns/<category>")
@requires_roles("admin")
def put_id_pattern(org_id: int, category: str):
    spec = category_spec(category)
    pattern = _body().get("pattern")
    id_sequencer.update_pattern(org_id, spec.category, pattern)
    return ok({"category": spec.category.value, "pattern": pattern})


@bp.post("/id-patterns/preview")
@requires_roles("admin", "hr")
def preview_id_pattern():
    d = _body()
    count = d.get("count", 5)
    previews = id_sequencer.preview_pattern(
        d.get("pattern"),
        count=count,
        org_code=str(d.get("org_code") or "ACME").strip(),
        dept_code=str(d.get("dept_code") or "HR").strip(),
        as_of=d.get("as_of"),
    )
    return ok({"pattern": d.get("pattern"), "previews": previews})


# ---------- sequences / ids ----------
@bp.get("/organizations/<int:org_id>/id-sequences/<category>")
@requires_roles("admin", "hr")
def get_id_sequence(org_id: int, category: str):
    spec = category_spec(category)
    as_of = request.args.get("as_of")
    return ok({
        "category": spec.category.value,
        "current_value": id_sequencer.current_value(org_id, spec.category, as_of=as_of),
    })


@bp.post("/organizations/<int:org_id>/ids/<category>")
@requires_roles("admin", "hr")
def issue_id(org_id: int, category: str):
    spec = category_spec(category)
    d = _body()
    dept_code = d.get("dept_code")
    if dept_code is not None and not isinstance(dept_code, str):
        raise InvalidArgument("dept_code must be a string")
    new_id = id_sequencer.generate_id(org_id, spec.category, as_of=d.get("as_of"), dept_code=dept_code)
    return ok({"category": spec.category.value, "id": new_id}, 201)
