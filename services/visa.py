"""Visa application intake, status tracking and operator transitions."""

from __future__ import annotations

import logging
import os
import secrets
import time
from typing import Iterable, Mapping

from sqlalchemy import func, select, update
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from models import VISA_STATUSES, VISA_TYPES, ApplicationStatusLog, VisaApplication, VisaApplicationDocument
from storage import AbstractStorage
from utils.errors import AppError, UploadError
from validation.rules import Unique
from validation.rulesets import VISA_APPLICATION

from .base import SubmissionService, display_date, display_timestamp, generate_identifier, iso

logger = logging.getLogger(__name__)

IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png"}
PDF_TYPES = {"application/pdf"}
WORD_TYPES = {
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

ALLOWED_CONTENT_TYPES = {
    "passport_copy": IMAGE_TYPES | PDF_TYPES,
    "photo": IMAGE_TYPES,
    "cv": PDF_TYPES | WORD_TYPES,
    "additional_documents": IMAGE_TYPES | PDF_TYPES | WORD_TYPES,
}
MAX_FILES_PER_FIELD = {"passport_copy": 1, "photo": 1, "cv": 1, "additional_documents": 5}
REQUIRED_FILES = ("passport_copy", "photo")

STATUS_DESCRIPTIONS = {
    "pending": "Application received and under initial review",
    "reviewing": "Application is being processed by our team",
    "approved": "Application approved - visa will be issued",
    "rejected": "Application rejected - see notes for details",
    "additional_info_required": "Additional information or documents needed",
}
NOTIFY_APPLICANT_STATUSES = {"approved", "rejected", "additional_info_required"}

PROCESSING_TIME = "5-7 business days"
NEXT_STEPS = [
    "Your application is being reviewed",
    "You will receive email updates on the progress",
    "Additional documents may be requested if needed",
    "Final decision will be communicated via email",
]


def _file_size(upload: FileStorage) -> int:
    stream = upload.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


class VisaApplicationService(SubmissionService):
    model = VisaApplication
    identifier_field = "application_id"
    filter_fields = ("status", "visa_type")
    sort_columns = ("created_at", "updated_at", "arrival_date", "full_name", "status")
    not_found_message = "Application not found"
    not_found_code = "APPLICATION_NOT_FOUND"

    def __init__(self, gateway, dispatcher, storage: AbstractStorage, config=None, **kwargs):
        super().__init__(gateway, dispatcher, config, **kwargs)
        self.storage = storage

    @property
    def max_upload_size(self) -> int:
        return int(self.config.get("MAX_UPLOAD_SIZE", 5 * 1024 * 1024))

    def _passport_on_file(self, passport_number, _exclude) -> bool:
        return self.count(VisaApplication.passport_number == passport_number) > 0

    def _ruleset(self):
        if self.config.get("VISA_REJECT_DUPLICATE_PASSPORT"):
            return VISA_APPLICATION.with_rules(
                "passport_number",
                Unique(self._passport_on_file, message="An application with this passport number already exists"),
            )
        return VISA_APPLICATION

    # Uploads -------------------------------------------------------------

    def check_files(self, files: Mapping[str, Iterable[FileStorage]] | None) -> dict[str, list[FileStorage]]:
        """Reject missing, unexpected, mistyped or oversize files before anything is stored."""

        uploads = {
            field: [upload for upload in (items or []) if upload is not None and upload.filename]
            for field, items in (files or {}).items()
        }
        uploads = {field: items for field, items in uploads.items() if items}

        if any(field not in uploads for field in REQUIRED_FILES):
            raise UploadError("Passport copy and photo are required", code="MISSING_REQUIRED_FILES")

        limit_mb = self.max_upload_size // (1024 * 1024)
        for field, items in uploads.items():
            if field not in ALLOWED_CONTENT_TYPES:
                raise UploadError(f"Unexpected file field: {field}", code="UNEXPECTED_FILE")
            if len(items) > MAX_FILES_PER_FIELD[field]:
                raise UploadError(
                    f"Too many files for {field}; at most {MAX_FILES_PER_FIELD[field]} allowed",
                    code="TOO_MANY_FILES",
                )
            for upload in items:
                content_type = (upload.mimetype or "").lower()
                if content_type not in ALLOWED_CONTENT_TYPES[field]:
                    raise UploadError(
                        f"Invalid file type for {field}: {content_type or 'unknown'}",
                        code="INVALID_FILE_TYPE",
                    )
                if _file_size(upload) > self.max_upload_size:
                    raise UploadError(
                        f"File {upload.filename} is too large; the limit is {limit_mb}MB",
                        code="FILE_TOO_LARGE",
                    )
        return uploads

    def store_files(self, application_id: str, uploads: dict[str, list[FileStorage]]) -> list[VisaApplicationDocument]:
        documents = []
        for field, items in uploads.items():
            for position, upload in enumerate(items):
                extension = os.path.splitext(secure_filename(upload.filename))[1].lower()
                stored_name = f"{field}-{int(time.time() * 1000)}-{secrets.token_hex(4)}{extension}"
                size = _file_size(upload)
                stored = self.storage.save(upload, stored_name)
                documents.append(
                    VisaApplicationDocument(
                        application_id=application_id,
                        document_type=field,
                        position=position,
                        original_filename=upload.filename,
                        stored_filename=stored,
                        content_type=upload.mimetype,
                        size=size,
                    )
                )
        logger.info("Stored %d document(s) for %s", len(documents), application_id)
        return documents

    def discard_files(self, documents: list[VisaApplicationDocument]) -> None:
        """Best-effort removal of uploads whose application row was not written."""

        for document in documents:
            try:
                self.storage.delete(document.stored_filename)
            except OSError as exc:
                logger.warning("Could not remove orphaned upload %s: %s", document.stored_filename, exc)

    # Operations ----------------------------------------------------------

    def submit(self, payload: Mapping, files: Mapping[str, Iterable[FileStorage]] | None = None) -> dict:
        data = self.validated(self._ruleset(), payload)
        uploads = self.check_files(files)

        application_id = generate_identifier("UAE", 9)
        now = self.clock()
        # Files land on disk before the row commits.
        documents = self.store_files(application_id, uploads)
        application = VisaApplication(
            application_id=application_id,
            status="pending",
            created_at=now,
            updated_at=now,
            **data,
        )
        entry = ApplicationStatusLog(
            application_id=application_id,
            old_status=None,
            new_status="pending",
            notes="Application submitted",
            created_at=now,
        )
        try:
            self.gateway.add(application, *documents, entry)
        except AppError:
            self.discard_files(documents)
            raise
        logger.info("Visa application %s submitted (%s)", application_id, data["visa_type"])

        self.dispatcher.notify(
            data["email"],
            f"UAE Visa Application Confirmation - {application_id}",
            "visa-application-confirmation",
            {
                "full_name": data["full_name"],
                "application_id": application_id,
                "visa_type": data["visa_type"],
                "arrival_date": display_date(data["arrival_date"]),
                "departure_date": display_date(data["departure_date"]),
                "duration_of_stay": data["duration_of_stay"],
            },
        )
        self.dispatcher.notify(
            self.admin_email,
            f"New Visa Application - {application_id}",
            "new-visa-application-admin",
            {
                "application_id": application_id,
                "full_name": data["full_name"],
                "email": data["email"],
                "phone": data["phone"],
                "nationality": data["nationality"],
                "visa_type": data["visa_type"],
                "arrival_date": display_date(data["arrival_date"]),
                "purpose_of_visit": data["purpose_of_visit"],
            },
        )

        return {
            "application_id": application_id,
            "status": "pending",
            "submitted_at": iso(now),
            "documents_received": len(documents),
            "estimated_processing_time": PROCESSING_TIME,
            "next_steps": NEXT_STEPS,
        }

    def get_status(self, application_id: str) -> dict:
        application = self.require(application_id)
        return {
            "application": {
                "id": application.application_id,
                "applicant_name": application.full_name,
                "email": application.email,
                "visa_type": application.visa_type,
                "current_status": application.status,
                "submitted_at": iso(application.created_at),
                "last_updated": iso(application.updated_at),
                "travel_dates": {
                    "arrival": iso(application.arrival_date),
                    "departure": iso(application.departure_date),
                },
            },
            "status_history": [entry.to_dict() for entry in application.status_log],
            "status_descriptions": STATUS_DESCRIPTIONS,
        }

    def get_application(self, application_id: str) -> dict:
        application = self.require(application_id)
        data = application.to_dict()
        data["status_history"] = [entry.to_dict() for entry in application.status_log]
        return data

    def list(self, filters=None, page=None, limit=None, sort_by=None, sort_order=None) -> dict:
        result = self.paginate(self.filter_conditions(filters), page, limit, sort_by, sort_order)
        return {
            "applications": [application.summary() for application in result.items],
            "pagination": result.pagination(),
            "sorting": result.sorting(),
        }

    def update_status(
        self,
        application_id: str,
        status: str | None,
        notes: str | None = None,
        changed_by: str = "operator",
    ) -> dict:
        """Move an application to ``status`` and append an audit entry.

        Any allowed status may follow any other; only the target value is
        checked.
        """

        data = self.validated("visa_status_update", {"status": status, "notes": notes})
        application = self.require(application_id)
        old_status = application.status
        new_status = data["status"]
        notes = data.get("notes")
        now = self.clock()

        with self.gateway.transaction():
            self.gateway.execute(
                update(VisaApplication)
                .where(VisaApplication.application_id == application_id)
                .values(status=new_status, updated_at=now)
            )
            self.gateway.add(
                ApplicationStatusLog(
                    application_id=application_id,
                    old_status=old_status,
                    new_status=new_status,
                    notes=notes,
                    changed_by=changed_by,
                    created_at=now,
                )
            )
        logger.info("Visa application %s moved %s -> %s", application_id, old_status, new_status)

        if new_status in NOTIFY_APPLICANT_STATUSES:
            self.dispatcher.notify(
                application.email,
                f"Visa Application Update - {application_id}",
                "visa-status-update",
                {
                    "full_name": application.full_name,
                    "application_id": application_id,
                    "status": new_status,
                    "status_description": STATUS_DESCRIPTIONS[new_status],
                    "notes": notes,
                    "updated_at": display_timestamp(now),
                },
            )

        return {
            "application_id": application_id,
            "old_status": old_status,
            "new_status": new_status,
            "notes": notes,
            "updated_at": iso(now),
        }

    def stats(self) -> dict:
        by_status = self.count_by(VisaApplication.status)
        by_type = self.count_by(VisaApplication.visa_type)
        total = sum(by_status.values())
        average_stay = self.gateway.scalar(select(func.avg(VisaApplication.duration_of_stay)))
        return {
            "overview": {
                "total_applications": total,
                "average_duration_of_stay": round(float(average_stay), 1) if average_stay is not None else 0,
            },
            "status_breakdown": {status: by_status.get(status, 0) for status in VISA_STATUSES},
            "visa_type_breakdown": {visa_type: by_type.get(visa_type, 0) for visa_type in VISA_TYPES},
            "monthly_trends": self.monthly_trends(),
            "recent_activity": {
                "last_30_days": self.count(VisaApplication.created_at >= self.since(30)),
            },
        }
