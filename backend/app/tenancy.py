"""Multi-tenancy: row-level isolation by `tenant_id`.

Key components:
  - _tenant_ctx         ContextVar holding the tenant id for the current request
                        (cache key namespacing only; services use AuthContext)
  - scoped()            adds the tenant filter to a SELECT for a TenantBase model
  - get_owned()         load one row by id inside the caller's tenant or 404
  - slugify() / validate_subdomain() / normalize_subdomain()
"""

import re
from contextvars import ContextVar
from typing import TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.config import settings
from app.middleware.exceptions import ResourceNotFoundError

T = TypeVar("T")

# ── Request-scoped tenant context ───────────────────────────

_tenant_ctx: ContextVar[str | None] = ContextVar("_tenant_ctx", default=None)


def set_current_tenant(tenant_id: str) -> None:
    _tenant_ctx.set(tenant_id)


def get_current_tenant() -> str | None:
    return _tenant_ctx.get()


def clear_tenant_context() -> None:
    _tenant_ctx.set(None)


# ── Row-level scoping ───────────────────────────────────────

def scoped(stmt: Select, model, ctx: AuthContext) -> Select:
    """Restrict a SELECT to the caller's tenant.

    Superadmins without a tenant in their token see every tenant's rows.
    Soft-deletable models are additionally filtered to live rows.
    """
    if ctx.tenant_id or not ctx.is_superadmin:
        stmt = stmt.where(model.tenant_id == ctx.tenant_id)
    if hasattr(model, "is_deleted"):
        stmt = stmt.where(model.is_deleted == False)  # noqa: E712
    return stmt


async def get_owned(
    db: AsyncSession,
    model: type[T],
    obj_id: str,
    ctx: AuthContext,
    *,
    label: str | None = None,
    for_update: bool = False,
) -> T:
    """Load a row by id within the caller's tenant, or raise 404.

    Rows owned by another tenant are reported exactly like missing rows.
    """
    stmt = scoped(select(model).where(model.id == obj_id), model, ctx)
    if for_update:
        stmt = stmt.with_for_update()
    obj = (await db.execute(stmt)).scalar_one_or_none()
    if obj is None:
        raise ResourceNotFoundError(label or model.__name__, obj_id)
    return obj


# ── Subdomains ──────────────────────────────────────────────

_SUBDOMAIN_RE = re.compile(r"^[a-z0-9-]{3,63}$")


def slugify(text: str) -> str:
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-")


def normalize_subdomain(subdomain: str) -> str:
    return slugify(subdomain.lower())


def reserved_subdomains() -> set[str]:
    return {s.strip() for s in settings.reserved_subdomains.split(",") if s.strip()}


def validate_subdomain(subdomain: str) -> str | None:
    """Return an error message for an unusable (normalized) subdomain, else None."""
    if not _SUBDOMAIN_RE.match(subdomain):
        return (
            "Subdomain must be 3-63 characters and contain only lowercase "
            "letters, numbers, and hyphens"
        )
    if subdomain in reserved_subdomains():
        return "This subdomain is reserved and cannot be used"
    return None
