"""Visa application and uploaded document models."""

from . import db, utcnow


VISA_TYPES = ("tourist", "business", "transit", "work", "student", "family", "medical")
VISA_STATUSES = ("pending", "reviewing", "approved", "rejected", "additional_info_required")
DOCUMENT_TYPES = ("passport_copy", "photo", "cv", "additional_documents")


def _iso(value):
    return value.isoformat() if value else None


class VisaApplication(db.Model):
    """A submitted visa application awaiting operator review."""

    __tablename__ = "visa_applications"

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=False)
    nationality = db.Column(db.String(50), nullable=False)
    passport_number = db.Column(db.String(20), nullable=False, index=True)
    visa_type = db.Column(db.Enum(*VISA_TYPES, name="visa_type"), nullable=False)
    purpose_of_visit = db.Column(db.Text, nullable=False)
    duration_of_stay = db.Column(db.Integer, nullable=False)
    arrival_date = db.Column(db.Date, nullable=False)
    departure_date = db.Column(db.Date, nullable=False)
    accommodation_details = db.Column(db.Text, nullable=True)
    sponsor_information = db.Column(db.Text, nullable=True)
    previous_uae_visit = db.Column(db.String(3), nullable=False)
    criminal_record = db.Column(db.String(3), nullable=False)
    medical_conditions = db.Column(db.Text, nullable=True)
    emergency_contact_name = db.Column(db.String(100), nullable=False)
    emergency_contact_phone = db.Column(db.String(20), nullable=False)
    emergency_contact_relationship = db.Column(db.String(50), nullable=False)
    status = db.Column(
        db.Enum(*VISA_STATUSES, name="visa_application_status"),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
        index=True,
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    documents = db.relationship(
        "VisaApplicationDocument",
        back_populates="application",
        order_by="VisaApplicationDocument.position",
        lazy="selectin",
    )
    status_log = db.relationship(
        "ApplicationStatusLog",
        back_populates="application",
        order_by="ApplicationStatusLog.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<VisaApplication {self.application_id} status={self.status}>"

    def summary(self) -> dict:
        """Row shape used by the paginated listing."""

        return {
            "application_id": self.application_id,
            "full_name": self.full_name,
            "email": self.email,
            "nationality": self.nationality,
            "visa_type": self.visa_type,
            "status": self.status,
            "arrival_date": _iso(self.arrival_date),
            "created_at": _iso(self.created_at),
        }

    def to_dict(self) -> dict:
        """Serialize the full application including document references."""

        data = {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
            if column.name != "id"
        }
        for key in ("arrival_date", "departure_date", "created_at", "updated_at"):
            data[key] = _iso(data[key])
        data["documents"] = [document.to_dict() for document in self.documents]
        return data


class VisaApplicationDocument(db.Model):
    """Reference to an uploaded file attached to an application."""

    __tablename__ = "visa_application_documents"

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.String(64),
        db.ForeignKey("visa_applications.application_id"),
        nullable=False,
        index=True,
    )
    document_type = db.Column(db.Enum(*DOCUMENT_TYPES, name="visa_document_type"), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    original_filename = db.Column(db.String(255), nullable=False)
    stored_filename = db.Column(db.String(255), nullable=False)
    content_type = db.Column(db.String(128), nullable=False)
    size = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    application = db.relationship("VisaApplication", back_populates="documents")

    def to_dict(self) -> dict:
        return {
            "document_type": self.document_type,
            "original_filename": self.original_filename,
            "stored_filename": self.stored_filename,
            "content_type": self.content_type,
            "size": self.size,
        }
