from datetime import datetime

from complihr_api.extensions import db


class IdSequence(db.Model):
    """
    Counter per sequence scope (organization, sequence_type, year, month).

    Unscoped parts are stored as 0, never NULL: NULLs are distinct inside a
    unique constraint, so a NULL month would let ON CONFLICT miss and insert
    a fresh row (value 1) on every call.
    """

    __tablename__ = "id_sequences"

    id = db.Column(db.BigInteger().with_variant(db.Integer, "sqlite"), primary_key=True)
    organization_id = db.Column(
        db.Integer,
        db.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sequence_type = db.Column(db.String(50), nullable=False)     # employee, payroll, leave, ...
    year = db.Column(db.Integer, nullable=False, default=0)      # 0 = never resets
    month = db.Column(db.Integer, nullable=False, default=0)     # 0 = not a monthly sequence
    current_value = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint(
            "organization_id", "sequence_type", "year", "month",
            name="uq_id_sequences_scope",
        ),
    )
