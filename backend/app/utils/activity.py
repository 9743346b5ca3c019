"""Lightweight helper for recording activity log entries.

Usage:
    await log_activity(
        db, ctx, action="allocated", entity_type="lpn",
        entity_id=lpn.id, entity_code=lpn.lpn_number,
        summary="Allocated LPN to OUT-4F7K2Q",
    )

The row is added to the current session and committed with the
enclosing transaction; no extra flush is performed.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.models.tenant.activity_log import ActivityLog


async def log_activity(
    db: AsyncSession,
    ctx: AuthContext,
    *,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    entity_code: str | None = None,
    summary: str | None = None,
    details: dict | None = None,
    tenant_id: str | None = None,
) -> None:
    """Append an activity log entry to the current DB session."""
    entry = ActivityLog(
        tenant_id=tenant_id or ctx.tenant_id,
        user_id=ctx.user_id,
        user_name=ctx.user_name,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_code=entity_code,
        summary=summary,
        details=details,
    )
    db.add(entry)
