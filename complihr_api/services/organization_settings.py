# complihr_api/services/organization_settings.py
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError

from complihr_api.common.errors import InvalidArgument, NotFound
from complihr_api.extensions import db
from complihr_api.models.master import Organization
from complihr_api.models.organization_settings import OrganizationSettings
from complihr_api.services.id_categories import CATEGORIES
from complihr_api.services.id_patterns import validate_pattern

log = logging.getLogger(__name__)

PATTERN_FIELDS = {s.pattern_field: s.category for s in CATEGORIES.values()}
SEQUENCE_FIELDS = frozenset(s.sequence_field for s in CATEGORIES.values())

# field -> (min, max)
INT_RANGES = {
    "fiscal_year_start_month": (1, 12),
    "payroll_day_of_month": (1, 31),
    "leave_year_start_month": (1, 12),
    "max_carry_forward_days": (0, 30),
    "standard_working_days_per_week": (1, 7),
}
DECIMAL_RANGES = {
    "standard_working_hours_per_day": (Decimal("1"), Decimal("24")),
}
CHOICES = {
    "default_currency": ("GBP", "EUR", "USD"),
    "date_format": ("DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD"),
    "payroll_frequency": ("Weekly", "Fortnightly", "Monthly"),
}
MAX_LENGTHS = {
    "timezone": 50,
}
BOOLEANS = ("carry_forward_enabled",)


def get_organization(organization_id) -> Organization:
    try:
        oid = int(organization_id)
    except (TypeError, ValueError):
        raise NotFound(f"Organization {organization_id!r} not found") from None
    org = db.session.get(Organization, oid)
    if org is None:
        raise NotFound(f"Organization {organization_id!r} not found")
    return org


def ensure_settings(org: Organization) -> OrganizationSettings:
    """Return the organization's settings row, creating one with defaults if missing."""
    s = OrganizationSettings.query.filter_by(organization_id=org.id).first()
    if s:
        return s
    s = OrganizationSettings(organization_id=org.id)
    db.session.add(s)
    try:
        db.session.commit()
    except IntegrityError:
        # another request created it first
        db.session.rollback()
        s = OrganizationSettings.query.filter_by(organization_id=org.id).first()
        if s is None:
            raise
    else:
        log.info("created default settings for organization %s", org.id)
    return s


def get_settings(organization_id) -> OrganizationSettings:
    return ensure_settings(get_organization(organization_id))


def _clean_value(field: str, value: Any):
    if field in PATTERN_FIELDS:
        return validate_pattern(value)

    if field in INT_RANGES:
        lo, hi = INT_RANGES[field]
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise InvalidArgument(f"{field} must be an integer")
        try:
            v = int(value)
        except ValueError:
            raise InvalidArgument(f"{field} must be an integer") from None
        if not lo <= v <= hi:
            raise InvalidArgument(f"{field} must be between {lo} and {hi}")
        return v

    if field in DECIMAL_RANGES:
        lo, hi = DECIMAL_RANGES[field]
        if isinstance(value, bool):
            raise InvalidArgument(f"{field} must be a number")
        try:
            v = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise InvalidArgument(f"{field} must be a number") from None
        if not lo <= v <= hi:
            raise InvalidArgument(f"{field} must be between {lo} and {hi}")
        return v

    if field in CHOICES:
        if value not in CHOICES[field]:
            raise InvalidArgument(f"{field} must be one of: {', '.join(CHOICES[field])}")
        return value

    if field in MAX_LENGTHS:
        v = (value or "").strip() if isinstance(value, str) else None
        if not v:
            raise InvalidArgument(f"{field} must be a non-empty string")
        if len(v) > MAX_LENGTHS[field]:
            raise InvalidArgument(f"{field} must be at most {MAX_LENGTHS[field]} characters")
        return v

    if field in BOOLEANS:
        if not isinstance(value, bool):
            raise InvalidArgument(f"{field} must be true/false")
        return value

    if field in SEQUENCE_FIELDS:
        raise InvalidArgument(f"{field} is read-only")
    raise InvalidArgument(f"Unknown setting {field!r}")


def update_settings(organization_id, payload: Dict[str, Any]) -> OrganizationSettings:
    """
    Partial update. All fields are validated before anything is written, so
    a bad value leaves the row untouched. Counters are never modified here.
    """
    if not isinstance(payload, dict) or not payload:
        raise InvalidArgument("Request body must be a non-empty JSON object")

    s = get_settings(organization_id)
    cleaned = {k: _clean_value(k, v) for k, v in payload.items()}
    for k, v in cleaned.items():
        setattr(s, k, v)
    db.session.commit()
    log.info("organization %s settings updated: %s", s.organization_id, ", ".join(sorted(cleaned)))
    return s
