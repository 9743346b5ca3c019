"""Tenant — a logistics company using the platform.

A tenant registers with approved=False; a superadmin approval assigns the
unique subdomain the tenant's users sign in on.

Lifecycle:  submitted → approved → (deleted_at set on deactivation)
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import PublicBase


class Tenant(PublicBase):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255))
    abn: Mapped[str | None] = mapped_column(String(20))
    acn: Mapped[str | None] = mapped_column(String(20))
    website: Mapped[str | None] = mapped_column(String(255))
    scac: Mapped[str | None] = mapped_column(String(10))

    # ── Contact ───────────────────────────────────────────────
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30))
    fax: Mapped[str | None] = mapped_column(String(30))
    # {account, bookings, management, operations, reply_to}
    emails: Mapped[dict | None] = mapped_column(JSON)

    # ── Address ───────────────────────────────────────────────
    street: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(50))
    postal_code: Mapped[str | None] = mapped_column(String(20))
    country_code: Mapped[str | None] = mapped_column(String(2))

    # ── Platform ──────────────────────────────────────────────
    subdomain: Mapped[str | None] = mapped_column(String(63), unique=True, index=True)
    approved: Mapped[bool] = mapped_column(Boolean, default=False)
    approved_by: Mapped[str | None] = mapped_column(String(36))
    # submitted | approved | rejected
    onboarding_step: Mapped[str] = mapped_column(String(30), default="submitted")
    data_region: Mapped[str | None] = mapped_column(String(30))
    privacy_consent: Mapped[bool] = mapped_column(Boolean, default=False)
    terms_accepted_at: Mapped[datetime | None] = mapped_column(DateTime)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    users = relationship("User", back_populates="tenant")
