from datetime import datetime

from sqlalchemy.sql import func

from complihr_api.extensions import db


class Organization(db.Model):
    __tablename__ = "organizations"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), nullable=False)   # rendered into {ORG}
    name = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    deleted_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("code", name="uq_organizations_code"),
    )

    def soft_delete(self):
        self.is_active = False
        self.deleted_at = func.now()


# Department: per organization, code issued from the department_code sequence
class Department(db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer,
        db.ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    code = db.Column(db.String(100), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("organization_id", "code", name="uq_department_org_code"),
        db.UniqueConstraint("organization_id", "name", name="uq_department_org_name"),
    )

    organization = db.relationship(
        "Organization", backref=db.backref("departments", lazy="dynamic")
    )
