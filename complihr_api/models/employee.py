from datetime import datetime
from complihr_api.extensions import db

class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    department_id   = db.Column(db.Integer, db.ForeignKey("departments.id", ondelete="RESTRICT"), nullable=True)

    employee_number = db.Column(db.String(100), nullable=False)   # unique per organization
    email      = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(80), nullable=False)
    last_name  = db.Column(db.String(80), nullable=True)

    start_date = db.Column(db.Date, nullable=True)
    employment_type = db.Column(db.String(20), default="fulltime", nullable=False)  # fulltime/parttime/contract
    status = db.Column(db.String(16), default="active", nullable=False)             # active/inactive

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("organization_id", "employee_number", name="uq_employee_org_number"),
        db.UniqueConstraint("email", name="uq_employees_email"),
        db.Index("ix_emp_org_id", "organization_id"),
        db.Index("ix_emp_dept_id", "department_id"),
    )

    organization = db.relationship("Organization", lazy="joined")
    department   = db.relationship("Department", lazy="joined")
