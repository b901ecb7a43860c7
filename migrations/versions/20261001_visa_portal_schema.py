"""create visa portal tables"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "visa_portal_20261001"
down_revision = None
branch_labels = None
depends_on = None


VISA_TYPES = ("tourist", "business", "transit", "work", "student", "family", "medical")
VISA_STATUSES = ("pending", "reviewing", "approved", "rejected", "additional_info_required")
DOCUMENT_TYPES = ("passport_copy", "photo", "cv", "additional_documents")
CONTACT_STATUSES = ("new", "in_progress", "resolved", "closed")
FEEDBACK_STATUSES = ("new", "reviewed", "responded", "closed")
RECOMMENDATIONS = ("yes", "no", "maybe")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        "visa_applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_id", sa.String(length=64), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("nationality", sa.String(length=50), nullable=False),
        sa.Column("passport_number", sa.String(length=20), nullable=False),
        sa.Column("visa_type", sa.Enum(*VISA_TYPES, name="visa_type"), nullable=False),
        sa.Column("purpose_of_visit", sa.Text(), nullable=False),
        sa.Column("duration_of_stay", sa.Integer(), nullable=False),
        sa.Column("arrival_date", sa.Date(), nullable=False),
        sa.Column("departure_date", sa.Date(), nullable=False),
        sa.Column("accommodation_details", sa.Text(), nullable=True),
        sa.Column("sponsor_information", sa.Text(), nullable=True),
        sa.Column("previous_uae_visit", sa.String(length=3), nullable=False),
        sa.Column("criminal_record", sa.String(length=3), nullable=False),
        sa.Column("medical_conditions", sa.Text(), nullable=True),
        sa.Column("emergency_contact_name", sa.String(length=100), nullable=False),
        sa.Column("emergency_contact_phone", sa.String(length=20), nullable=False),
        sa.Column("emergency_contact_relationship", sa.String(length=50), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*VISA_STATUSES, name="visa_application_status"),
            nullable=False,
            server_default="pending",
        ),
        *_timestamps(),
    )
    op.create_index("ix_visa_applications_application_id", "visa_applications", ["application_id"], unique=True)
    op.create_index("ix_visa_applications_email", "visa_applications", ["email"])
    op.create_index("ix_visa_applications_passport_number", "visa_applications", ["passport_number"])
    op.create_index("ix_visa_applications_status", "visa_applications", ["status"])
    op.create_index("ix_visa_applications_created_at", "visa_applications", ["created_at"])

    op.create_table(
        "visa_application_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "application_id",
            sa.String(length=64),
            sa.ForeignKey("visa_applications.application_id"),
            nullable=False,
        ),
        sa.Column("document_type", sa.Enum(*DOCUMENT_TYPES, name="visa_document_type"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("stored_filename", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=128), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_visa_application_documents_application_id", "visa_application_documents", ["application_id"]
    )

    op.create_table(
        "application_status_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "application_id",
            sa.String(length=64),
            sa.ForeignKey("visa_applications.application_id"),
            nullable=False,
        ),
        sa.Column("old_status", sa.String(length=32), nullable=True),
        sa.Column("new_status", sa.String(length=32), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.String(length=64), nullable=False, server_default="system"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_application_status_log_application_id", "application_status_log", ["application_id"])

    op.create_table(
        "contact_messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("message_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("inquiry_type", sa.String(length=32), nullable=False, server_default="general"),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("preferred_contact", sa.String(length=16), nullable=False, server_default="email"),
        sa.Column(
            "status",
            sa.Enum(*CONTACT_STATUSES, name="contact_message_status"),
            nullable=False,
            server_default="new",
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_contact_messages_message_id", "contact_messages", ["message_id"], unique=True)
    op.create_index("ix_contact_messages_inquiry_type", "contact_messages", ["inquiry_type"])
    op.create_index("ix_contact_messages_status", "contact_messages", ["status"])
    op.create_index("ix_contact_messages_created_at", "contact_messages", ["created_at"])

    op.create_table(
        "feedback",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("feedback_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("service_used", sa.String(length=32), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("feedback_type", sa.String(length=32), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("would_recommend", sa.Enum(*RECOMMENDATIONS, name="feedback_recommendation"), nullable=False),
        sa.Column("application_id", sa.String(length=64), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*FEEDBACK_STATUSES, name="feedback_status"),
            nullable=False,
            server_default="new",
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
    )
    op.create_index("ix_feedback_feedback_id", "feedback", ["feedback_id"], unique=True)
    op.create_index("ix_feedback_feedback_type", "feedback", ["feedback_type"])
    op.create_index("ix_feedback_status", "feedback", ["status"])
    op.create_index("ix_feedback_created_at", "feedback", ["created_at"])

    op.create_table(
        "newsletter_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("subscription_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("unsubscribe_token", sa.String(length=64), nullable=False, unique=True),
        sa.Column("unsubscribed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_newsletter_subscriptions_email", "newsletter_subscriptions", ["email"], unique=True)
    op.create_index("ix_newsletter_subscriptions_is_active", "newsletter_subscriptions", ["is_active"])
    op.create_index("ix_newsletter_subscriptions_created_at", "newsletter_subscriptions", ["created_at"])


def downgrade():
    op.drop_table("newsletter_subscriptions")
    op.drop_table("feedback")
    op.drop_table("contact_messages")
    op.drop_table("application_status_log")
    op.drop_table("visa_application_documents")
    op.drop_table("visa_applications")
