from datetime import datetime

from complihr_api.extensions import db
from complihr_api.services.id_categories import CATEGORIES, IdCategory

_P = {c: s.default_pattern for c, s in CATEGORIES.items()}


class OrganizationSettings(db.Model):
    """
    One row per organization.

    Id patterns + legacy simple counters per id category, followed by the
    general / payroll / leave / working-time settings. UK defaults:
    April fiscal year, GBP, Europe/London.
    """

    __tablename__ = "organization_settings"
    __table_args__ = (
        db.UniqueConstraint("organization_id", name="uq_organization_settings_org"),
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer,
        db.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )

    # --- id patterns ---
    employee_id_pattern = db.Column(db.String(100), nullable=False, default=_P[IdCategory.EMPLOYEE])
    employee_id_sequence = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    payroll_id_pattern = db.Column(db.String(100), nullable=False, default=_P[IdCategory.PAYROLL])
    payroll_id_sequence = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    leave_id_pattern = db.Column(db.String(100), nullable=False, default=_P[IdCategory.LEAVE])
    leave_id_sequence = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    expense_id_pattern = db.Column(db.String(100), nullable=False, default=_P[IdCategory.EXPENSE])
    expense_id_sequence = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    shift_id_pattern = db.Column(db.String(100), nullable=False, default=_P[IdCategory.SHIFT])
    shift_id_sequence = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    department_code_pattern = db.Column(db.String(100), nullable=False, default=_P[IdCategory.DEPARTMENT_CODE])
    department_code_sequence = db.Column(db.Integer, nullable=False, default=0, server_default="0")

    # --- general ---
    fiscal_year_start_month = db.Column(db.Integer, nullable=False, default=4)   # April = UK tax year
    default_currency = db.Column(db.String(3), nullable=False, default="GBP")
    timezone = db.Column(db.String(50), nullable=False, default="Europe/London")
    date_format = db.Column(db.String(20), nullable=False, default="DD/MM/YYYY")

    # --- payroll ---
    payroll_frequency = db.Column(db.String(20), nullable=False, default="Monthly")  # Weekly/Fortnightly/Monthly
    payroll_day_of_month = db.Column(db.Integer, nullable=False, default=28)

    # --- leave ---
    leave_year_start_month = db.Column(db.Integer, nullable=False, default=1)
    carry_forward_enabled = db.Column(db.Boolean, nullable=False, default=True)
    max_carry_forward_days = db.Column(db.Integer, nullable=False, default=5)

    # --- working time ---
    standard_working_hours_per_day = db.Column(db.Numeric(4, 2), nullable=False, default=8)
    standard_working_days_per_week = db.Column(db.Integer, nullable=False, default=5)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    organization = db.relationship(
        "Organization", backref=db.backref("settings", uselist=False)
    )

    def pattern_for(self, category: IdCategory) -> str:
        spec = CATEGORIES[category]
        return getattr(self, spec.pattern_field) or spec.default_pattern
