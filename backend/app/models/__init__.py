"""Aggregate model imports for Alembic auto-detection."""

# Public
from app.models.public.tenant import Tenant  # noqa: F401
from app.models.public.user import User, UserRole  # noqa: F401

# Tenant-owned
from app.models.tenant import *  # noqa: F401,F403
