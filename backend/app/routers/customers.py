"""Customer management router.

Endpoints:
    GET    /api/customers          List customers (search, paginated)
    POST   /api/customers          Create customer
    GET    /api/customers/{id}     Single customer
    PATCH  /api/customers/{id}     Update customer
    DELETE /api/customers/{id}     Delete customer
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import get_auth_context, require_permission
from app.database import get_db
from app.models.tenant.customer import Customer
from app.schemas.common import PaginatedResponse
from app.schemas.customer import CustomerCreate, CustomerOut, CustomerUpdate
from app.tenancy import get_owned, scoped
from app.utils.pagination import paginate

router = APIRouter()


@router.get("", response_model=PaginatedResponse[CustomerOut])
async def list_customers(
    search: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    stmt = scoped(select(Customer), Customer, ctx).order_by(Customer.customer_name)
    if search:
        stmt = stmt.where(Customer.customer_name.ilike(f"%{search}%"))
    items, total = await paginate(db, stmt, limit=limit, offset=offset)
    return PaginatedResponse(
        items=[CustomerOut.model_validate(c) for c in items], total=total, limit=limit, offset=offset
    )


@router.post("", response_model=CustomerOut, status_code=201)
async def create_customer(
    body: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    customer = Customer(tenant_id=ctx.require_tenant(), **body.model_dump())
    db.add(customer)
    await db.flush()
    return CustomerOut.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return CustomerOut.model_validate(await get_owned(db, Customer, customer_id, ctx))


@router.patch("/{customer_id}", response_model=CustomerOut)
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    customer = await get_owned(db, Customer, customer_id, ctx)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(customer, key, value)
    await db.flush()
    return CustomerOut.model_validate(customer)


@router.delete("/{customer_id}", status_code=204)
async def delete_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    customer = await get_owned(db, Customer, customer_id, ctx)
    await db.delete(customer)
    await db.flush()
