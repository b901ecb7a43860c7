"""Append-only audit trail of visa application status transitions."""

from . import db, utcnow


class ApplicationStatusLog(db.Model):
    """One row per status transition. Rows are never updated or deleted."""

    __tablename__ = "application_status_log"

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.String(64),
        db.ForeignKey("visa_applications.application_id"),
        nullable=False,
        index=True,
    )
    old_status = db.Column(db.String(32), nullable=True)
    new_status = db.Column(db.String(32), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    changed_by = db.Column(db.String(64), nullable=False, default="system")
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    application = db.relationship("VisaApplication", back_populates="status_log")

    def to_dict(self) -> dict:
        return {
            "from": self.old_status,
            "to": self.new_status,
            "notes": self.notes,
            "changed_by": self.changed_by,
            "timestamp": self.created_at.isoformat() if self.created_at else None,
        }
