"""Party references and the snapshot fields copied onto jobs and bookings.

A party reference is a tagged union stored as two columns, `<name>_kind` and
`<name>_id`. Older clients send a single string such as "customers:6" or
"paying-customers:12"; a bare id means a paying customer.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.middleware.exceptions import ValidationFailedError
from app.models.tenant.customer import Customer, PayingCustomer
from app.models.tenant.warehouse import Warehouse

logger = logging.getLogger("containa.denormalize")

CUSTOMER = "customer"
PAYING_CUSTOMER = "paying_customer"
WAREHOUSE = "warehouse"

PARTY_MODELS = {
    CUSTOMER: Customer,
    PAYING_CUSTOMER: PayingCustomer,
    WAREHOUSE: Warehouse,
}

_LEGACY_PREFIXES = {
    "customers": CUSTOMER,
    "customer": CUSTOMER,
    "paying-customers": PAYING_CUSTOMER,
    "paying_customers": PAYING_CUSTOMER,
    "paying_customer": PAYING_CUSTOMER,
    "warehouses": WAREHOUSE,
    "warehouse": WAREHOUSE,
}


@dataclass(frozen=True)
class PartyRef:
    kind: str
    id: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.id}"


@dataclass
class PartySnapshot:
    name: str | None = None
    city: str | None = None
    state: str | None = None
    contact: str | None = None
    contact_number: str | None = None


def parse_party_ref(value, allowed: tuple[str, ...] = (CUSTOMER, PAYING_CUSTOMER)) -> PartyRef | None:
    """Accept a PartyRef, a {"kind", "id"} mapping, or a legacy string."""
    if value is None or value == "":
        return None
    if isinstance(value, PartyRef):
        ref = value
    elif isinstance(value, dict):
        ref = PartyRef(kind=str(value.get("kind")), id=str(value.get("id")))
    else:
        text = str(value).strip()
        if ":" in text:
            prefix, _, ref_id = text.partition(":")
            kind = _LEGACY_PREFIXES.get(prefix.strip().lower())
            if kind is None:
                raise ValidationFailedError(f"Unknown party reference type: {prefix}")
            ref = PartyRef(kind=kind, id=ref_id.strip())
        else:
            ref = PartyRef(kind=PAYING_CUSTOMER, id=text)

    if ref.kind not in allowed:
        raise ValidationFailedError(
            f"Party reference of type {ref.kind} is not allowed here",
            details={"allowed": list(allowed)},
        )
    if not ref.id:
        raise ValidationFailedError("Party reference is missing an id")
    return ref


def _snapshot_of(kind: str, record) -> PartySnapshot:
    if kind == CUSTOMER:
        return PartySnapshot(
            name=record.customer_name,
            city=record.city,
            state=record.state,
            contact=record.contact_name or record.contact_phone,
            contact_number=record.contact_phone,
        )
    if kind == PAYING_CUSTOMER:
        if record.delivery_same_as_billing:
            city, state = record.billing_city, record.billing_state
        else:
            city = record.delivery_city or record.billing_city
            state = record.delivery_state or record.billing_state
        return PartySnapshot(
            name=record.customer_name,
            city=city,
            state=state,
            contact=record.contact_name or record.contact_phone,
            contact_number=record.contact_phone,
        )
    return PartySnapshot(name=record.name, city=record.city, state=record.state)


async def party_snapshot(db: AsyncSession, ctx: AuthContext, ref: PartyRef | None) -> PartySnapshot:
    """Look up the referenced party and return the fields to copy.

    A missing or foreign record is logged and yields an empty snapshot; the
    write continues with partial data.
    """
    if ref is None:
        return PartySnapshot()
    model = PARTY_MODELS[ref.kind]
    record = await db.get(model, ref.id)
    if record is None or (ctx.tenant_id and record.tenant_id != ctx.tenant_id):
        logger.warning("Party %s not found for tenant %s; saving without snapshot", ref, ctx.tenant_id)
        return PartySnapshot()
    return _snapshot_of(ref.kind, record)


async def apply_party(
    db: AsyncSession,
    ctx: AuthContext,
    target,
    prefix: str,
    ref: PartyRef | None,
    fields: dict[str, str],
) -> None:
    """Store `ref` on `target` as `<prefix>_kind` / `<prefix>_id` and copy its snapshot.

    `fields` maps snapshot attributes to column names on the target,
    e.g. {"name": "customer_name", "city": "customer_location"}.
    """
    setattr(target, f"{prefix}_kind", ref.kind if ref else None)
    setattr(target, f"{prefix}_id", ref.id if ref else None)
    snapshot = await party_snapshot(db, ctx, ref)
    for attr, column in fields.items():
        setattr(target, column, getattr(snapshot, attr))
