"""Paying customer (billed party) router.

Endpoints:
    GET    /api/paying-customers          List paying customers
    POST   /api/paying-customers          Create
    GET    /api/paying-customers/{id}     Single paying customer
    PATCH  /api/paying-customers/{id}     Update
    DELETE /api/paying-customers/{id}     Delete
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import get_auth_context, require_permission
from app.database import get_db
from app.models.tenant.customer import PayingCustomer
from app.schemas.common import PaginatedResponse
from app.schemas.customer import PayingCustomerCreate, PayingCustomerOut, PayingCustomerUpdate
from app.tenancy import get_owned, scoped
from app.utils.pagination import paginate

router = APIRouter()


def _mirror_billing(customer: PayingCustomer) -> None:
    if customer.delivery_same_as_billing:
        customer.delivery_street = customer.billing_street
        customer.delivery_city = customer.billing_city
        customer.delivery_state = customer.billing_state
        customer.delivery_postcode = customer.billing_postcode


@router.get("", response_model=PaginatedResponse[PayingCustomerOut])
async def list_paying_customers(
    search: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    stmt = scoped(select(PayingCustomer), PayingCustomer, ctx).order_by(PayingCustomer.customer_name)
    if search:
        stmt = stmt.where(PayingCustomer.customer_name.ilike(f"%{search}%"))
    items, total = await paginate(db, stmt, limit=limit, offset=offset)
    return PaginatedResponse(
        items=[PayingCustomerOut.model_validate(c) for c in items],
        total=total, limit=limit, offset=offset,
    )


@router.post("", response_model=PayingCustomerOut, status_code=201)
async def create_paying_customer(
    body: PayingCustomerCreate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    customer = PayingCustomer(tenant_id=ctx.require_tenant(), **body.model_dump())
    _mirror_billing(customer)
    db.add(customer)
    await db.flush()
    return PayingCustomerOut.model_validate(customer)


@router.get("/{customer_id}", response_model=PayingCustomerOut)
async def get_paying_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    customer = await get_owned(db, PayingCustomer, customer_id, ctx, label="Paying customer")
    return PayingCustomerOut.model_validate(customer)


@router.patch("/{customer_id}", response_model=PayingCustomerOut)
async def update_paying_customer(
    customer_id: str,
    body: PayingCustomerUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    customer = await get_owned(db, PayingCustomer, customer_id, ctx, label="Paying customer")
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(customer, key, value)
    _mirror_billing(customer)
    await db.flush()
    return PayingCustomerOut.model_validate(customer)


@router.delete("/{customer_id}", status_code=204)
async def delete_paying_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("settings.entities")),
):
    customer = await get_owned(db, PayingCustomer, customer_id, ctx, label="Paying customer")
    await db.delete(customer)
    await db.flush()
