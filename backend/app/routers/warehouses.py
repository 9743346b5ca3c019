"""Warehouse router.

Endpoints:
    GET    /api/warehouses          List warehouses (active by default)
    POST   /api/warehouses          Create
    GET    /api/warehouses/{id}     Single warehouse
    PATCH  /api/warehouses/{id}     Update
    DELETE /api/warehouses/{id}     Delete
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import get_auth_context, require_permission
from app.database import get_db
from app.models.tenant.warehouse import Warehouse
from app.schemas.warehouse import WarehouseCreate, WarehouseOut, WarehouseUpdate
from app.tenancy import get_owned, scoped

router = APIRouter()


@router.get("", response_model=list[WarehouseOut])
async def list_warehouses(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    stmt = scoped(select(Warehouse), Warehouse, ctx).order_by(Warehouse.name)
    if not include_inactive:
        stmt = stmt.where(Warehouse.is_active == True)  # noqa: E712
    result = await db.execute(stmt)
    return [WarehouseOut.model_validate(w) for w in result.scalars().all()]


@router.post("", response_model=WarehouseOut, status_code=201)
async def create_warehouse(
    body: WarehouseCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    warehouse = Warehouse(tenant_id=ctx.require_tenant(), **body.model_dump())
    db.add(warehouse)
    await db.flush()
    return WarehouseOut.model_validate(warehouse)


@router.get("/{warehouse_id}", response_model=WarehouseOut)
async def get_warehouse(
    warehouse_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return WarehouseOut.model_validate(await get_owned(db, Warehouse, warehouse_id, ctx))


@router.patch("/{warehouse_id}", response_model=WarehouseOut)
async def update_warehouse(
    warehouse_id: str,
    body: WarehouseUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    warehouse = await get_owned(db, Warehouse, warehouse_id, ctx)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(warehouse, key, value)
    await db.flush()
    return WarehouseOut.model_validate(warehouse)


@router.delete("/{warehouse_id}", status_code=204)
async def delete_warehouse(
    warehouse_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    warehouse = await get_owned(db, Warehouse, warehouse_id, ctx)
    await db.delete(warehouse)
    await db.flush()
