"""Offset pagination for list endpoints."""

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def paginate(db: AsyncSession, stmt: Select, *, limit: int, offset: int) -> tuple[list, int]:
    """Run `stmt` for one page. Returns (rows, total matching rows)."""
    total = await db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
    result = await db.execute(stmt.limit(limit).offset(offset))
    return list(result.scalars().all()), int(total or 0)
