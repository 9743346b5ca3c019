"""Database engine, session factory, and base classes.

Two separate DeclarativeBase classes:
  - PublicBase  → platform-wide tables (tenants, users)
  - TenantBase  → tables owned by a tenant; every row carries `tenant_id`

Tenant isolation is row-level: queries against TenantBase models are
filtered through `app.tenancy.scoped()` using the caller's AuthContext.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=20,
    max_overflow=10,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Base classes ────────────────────────────────────────────

class PublicBase(DeclarativeBase):
    """Platform-wide models (not tenant-scoped)."""
    pass


class TenantBase(DeclarativeBase):
    """Models scoped to a tenant by their `tenant_id` column."""
    pass


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a request-scoped session; commit on success, roll back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
