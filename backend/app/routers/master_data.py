"""Router factory for simple tenant-owned master data.

Each router built here exposes:
    GET    ""          List (active by default; `search` over the listed fields)
    POST   ""          Create
    GET    /{id}       Single row
    PATCH  /{id}       Update
    DELETE /{id}       Toggle active/inactive

Reference fields (a vehicle's depot, a driver's vehicle) must point at rows
of the same tenant; anything else is reported as not found.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import get_auth_context, require_permission
from app.database import get_db
from app.middleware.exceptions import ConflictError
from app.tenancy import get_owned, scoped

logger = logging.getLogger("containa.master_data")


def build_router(
    model,
    *,
    label: str,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    out_schema: type[BaseModel],
    order_by: str,
    search_fields: tuple[str, ...] = (),
    unique_field: str | None = None,
    references: dict[str, tuple] | None = None,
) -> APIRouter:
    """`references` maps a field to (model, label) of the row it must point at."""
    router = APIRouter()
    references = references or {}

    async def check_references(db: AsyncSession, ctx: AuthContext, values: dict) -> None:
        for field, (ref_model, ref_label) in references.items():
            if values.get(field):
                await get_owned(db, ref_model, values[field], ctx, label=ref_label)

    async def check_unique(
        db: AsyncSession, ctx: AuthContext, values: dict, exclude_id: str | None = None
    ) -> None:
        value = values.get(unique_field) if unique_field else None
        if not value:
            return
        column = getattr(model, unique_field)
        stmt = scoped(select(model.id), model, ctx).where(func.lower(column) == value.lower())
        if exclude_id:
            stmt = stmt.where(model.id != exclude_id)
        if (await db.execute(stmt)).first():
            raise ConflictError(
                f"{label} with {unique_field} '{value}' already exists",
                details={"field": unique_field, "value": value},
            )

    @router.get("", response_model=list[out_schema])
    async def list_items(
        include_inactive: bool = False,
        search: str | None = None,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(get_auth_context),
    ):
        stmt = scoped(select(model), model, ctx).order_by(getattr(model, order_by))
        if not include_inactive:
            stmt = stmt.where(model.is_active == True)  # noqa: E712
        if search and search_fields:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(*(getattr(model, f).ilike(pattern) for f in search_fields)))
        result = await db.execute(stmt)
        return [out_schema.model_validate(row) for row in result.scalars().all()]

    @router.post("", response_model=out_schema, status_code=201)
    async def create_item(
        body: create_schema,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("settings.entities")),
    ):
        values = body.model_dump()
        await check_unique(db, ctx, values)
        await check_references(db, ctx, values)
        row = model(tenant_id=ctx.require_tenant(), **values)
        db.add(row)
        await db.flush()
        logger.info("Created %s %s", label, row.id)
        return out_schema.model_validate(row)

    @router.get("/{item_id}", response_model=out_schema)
    async def get_item(
        item_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(get_auth_context),
    ):
        return out_schema.model_validate(await get_owned(db, model, item_id, ctx, label=label))

    @router.patch("/{item_id}", response_model=out_schema)
    async def update_item(
        item_id: str,
        body: update_schema,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("settings.entities")),
    ):
        row = await get_owned(db, model, item_id, ctx, label=label)
        updates = body.model_dump(exclude_unset=True)
        await check_unique(db, ctx, updates, exclude_id=row.id)
        await check_references(db, ctx, updates)
        for key, value in updates.items():
            setattr(row, key, value)
        await db.flush()
        return out_schema.model_validate(row)

    @router.delete("/{item_id}", response_model=out_schema)
    async def toggle_item(
        item_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("settings.entities")),
    ):
        row = await get_owned(db, model, item_id, ctx, label=label)
        row.is_active = not row.is_active
        await db.flush()
        return out_schema.model_validate(row)

    return router
