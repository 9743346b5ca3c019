"""Import and export container booking routes.

`build_router(booking_type)` produces one router per booking type; both
are mounted by main.py:

    /api/import-container-bookings
    /api/export-container-bookings

Endpoints (relative to the mount point):
    GET    /                                                  List bookings
    POST   /                                                  Create booking (draft)
    GET    /{id}                                              Single booking
    PATCH  /{id}                                              Update booking
    DELETE /{id}                                              Delete draft/cancelled booking
    POST   /{id}/status                                       Manual status change
    GET    /{id}/containers                                   Containers on the booking
    POST   /{id}/containers                                   Add container
    GET    /{id}/containers/{cid}                             Single container
    PATCH  /{id}/containers/{cid}                             Update container
    DELETE /{id}/containers/{cid}                             Remove container
    POST   /{id}/containers/{cid}/status                      Manual container status change
    GET    /{id}/containers/{cid}/stock-allocations           Allocations with lines
    POST   /{id}/containers/{cid}/stock-allocations           Create allocation
    GET    /{id}/containers/{cid}/stock-allocations/{aid}     Single allocation
    PATCH  /{id}/containers/{cid}/stock-allocations/{aid}     Update allocation / replace lines
    DELETE /{id}/containers/{cid}/stock-allocations/{aid}     Delete allocation
    POST   /{id}/containers/{cid}/put-away                    (import) Create LPNs
    GET    /{id}/containers/{cid}/stock-allocations/{aid}/available-stock  (export) Candidate LPNs per line
    POST   /{id}/containers/{cid}/stock-allocations/{aid}/allocate         (export) Claim LPNs
    POST   /{id}/containers/{cid}/stock-allocations/{aid}/release          (export) Release LPNs
    GET    /{id}/containers/{cid}/allocated-lpns              (export) LPNs claimed by the container
    GET    /{id}/containers/{cid}/pickups                     (export) Pickups
    POST   /{id}/containers/{cid}/pickups                     (export) Create pickup
    POST   /{id}/containers/{cid}/pickups/{pid}/complete      (export) Complete pickup
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.auth.deps import require_permission
from app.database import get_db
from app.middleware.exceptions import (
    BusinessLogicError,
    ConflictError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from app.models.tenant.container import (
    EXPORT,
    IMPORT,
    AllocationProductLine,
    ContainerBooking,
    ContainerDetail,
    ContainerStockAllocation,
)
from app.models.tenant.customer import Customer
from app.models.tenant.stock import PickupStock, PutAwayStock
from app.models.tenant.warehouse import Warehouse
from app.schemas.common import PaginatedResponse
from app.schemas.container import (
    AllocationLineIn,
    AllocationStockOut,
    BookingCreate,
    BookingOut,
    BookingUpdate,
    ContainerAllocateRequest,
    ContainerAllocateResponse,
    ContainerDetailCreate,
    ContainerDetailOut,
    ContainerDetailUpdate,
    ContainerPickupCreate,
    ContainerPutAwayRequest,
    ContainerReleaseRequest,
    ContainerReleaseResponse,
    StatusChange,
    StockAllocationCreate,
    StockAllocationOut,
    StockAllocationUpdate,
)
from app.schemas.inventory import LpnOut
from app.schemas.outbound import PickupOut
from app.services.booking_workflow import (
    INITIAL_CONTAINER_STATUS,
    booking_statuses,
    change_booking_status,
    change_container_status,
    valid_stages,
)
from app.services.claims import sync_allocation_lines
from app.services.container_allocation import (
    allocate_to_container,
    release_from_container,
    stock_for_allocation,
)
from app.services.denormalize import apply_party, parse_party_ref
from app.services.pickup import complete_pickup, create_pickup
from app.services.put_away import put_away_container
from app.services.sku_calculator import enrich_allocation_line, load_sku
from app.services.status_aggregator import container_status_changed, publish, refresh_container
from app.services.status_rules import TERMINAL_BOOKING_STATUSES
from app.tenancy import get_owned, scoped
from app.utils.activity import log_activity
from app.utils.numbering import generate_booking_code, generate_container_number
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

_LABELS = {IMPORT: "Import booking", EXPORT: "Export booking"}


# ── Helpers ──────────────────────────────────────────────────

async def _get_booking(
    db: AsyncSession, ctx: AuthContext, booking_type: str, booking_id: str, *, for_update: bool = False
) -> ContainerBooking:
    booking = await get_owned(
        db, ContainerBooking, booking_id, ctx, label=_LABELS[booking_type], for_update=for_update
    )
    if booking.booking_type != booking_type:
        raise ResourceNotFoundError(_LABELS[booking_type], booking_id)
    return booking


async def _get_container(
    db: AsyncSession, ctx: AuthContext, booking: ContainerBooking, container_id: str
) -> ContainerDetail:
    container = await get_owned(db, ContainerDetail, container_id, ctx, label="Container")
    if container.booking_id != booking.id:
        raise ResourceNotFoundError("Container", container_id)
    return container


async def _get_allocation(
    db: AsyncSession, ctx: AuthContext, container: ContainerDetail, allocation_id: str
) -> ContainerStockAllocation:
    allocation = await get_owned(
        db, ContainerStockAllocation, allocation_id, ctx, label="Stock allocation"
    )
    if allocation.container_detail_id != container.id:
        raise ResourceNotFoundError("Stock allocation", allocation_id)
    return allocation


def _ensure_editable(booking: ContainerBooking) -> None:
    if booking.status in TERMINAL_BOOKING_STATUSES:
        raise BusinessLogicError(
            f"Booking {booking.booking_code} is {booking.status} and can no longer be changed",
            error_code="BOOKING_CLOSED",
        )


async def _check_parties(db: AsyncSession, ctx: AuthContext, data: dict) -> None:
    for key in ("consignee_id", "consignor_id"):
        if data.get(key):
            await get_owned(db, Customer, data[key], ctx, label="Customer")


async def _set_charge_to(
    db: AsyncSession, ctx: AuthContext, booking: ContainerBooking, value, supplied: set[str]
) -> None:
    fields = {"name": "charge_to_name"}
    if "charge_to_contact_name" not in supplied:
        fields["contact"] = "charge_to_contact_name"
    if "charge_to_contact_number" not in supplied:
        fields["contact_number"] = "charge_to_contact_number"
    await apply_party(db, ctx, booking, "charge_to", parse_party_ref(value), fields)


async def _container_number_taken(
    db: AsyncSession, tenant_id: str, number: str, exclude_id: str | None = None
) -> bool:
    stmt = select(ContainerDetail.id).where(
        ContainerDetail.tenant_id == tenant_id, ContainerDetail.container_number == number
    )
    if exclude_id:
        stmt = stmt.where(ContainerDetail.id != exclude_id)
    return await db.scalar(stmt.limit(1)) is not None


async def _build_lines(
    db: AsyncSession, tenant_id: str, items: list[AllocationLineIn]
) -> list[AllocationProductLine]:
    lines = []
    for position, item in enumerate(items):
        line = AllocationProductLine(tenant_id=tenant_id, position=position, **item.model_dump())
        sku, storage_unit = await load_sku(db, tenant_id, line.sku_id)
        if sku is not None:
            enrich_allocation_line(line, sku, storage_unit)
        lines.append(line)
    return lines


def _check_stage(booking_type: str, stage: str | None) -> str:
    stages = valid_stages(booking_type)
    if stage is None:
        return stages[0]
    if stage not in stages:
        raise ValidationFailedError(
            f"Invalid stage '{stage}' for {booking_type} booking",
            details={"valid_stages": list(stages)},
        )
    return stage


async def _has_stock(db: AsyncSession, column, value: str) -> bool:
    """Live LPNs or pickups linked through `column` (a PutAwayStock or PickupStock column)."""
    model = column.class_
    stmt = select(model.id).where(column == value)
    if model is PutAwayStock:
        stmt = stmt.where(PutAwayStock.is_deleted == False)  # noqa: E712
    return await db.scalar(stmt.limit(1)) is not None


async def _ensure_no_stock(db: AsyncSession, what: str, *, container_id=None, allocation_id=None) -> None:
    if container_id:
        checks = (PutAwayStock.container_detail_id, PickupStock.container_detail_id)
        value = container_id
    else:
        checks = (
            PutAwayStock.container_stock_allocation_id,
            PutAwayStock.export_allocation_id,
            PickupStock.container_stock_allocation_id,
        )
        value = allocation_id
    for column in checks:
        if await _has_stock(db, column, value):
            raise ConflictError(
                f"{what} has put-away stock or pickups and cannot be removed",
                details={"id": value},
            )


# ── Router factory ───────────────────────────────────────────

def build_router(booking_type: str) -> APIRouter:
    router = APIRouter()
    label = _LABELS[booking_type]

    # ── Bookings ─────────────────────────────────────────────

    @router.get("", response_model=PaginatedResponse[BookingOut])
    async def list_bookings(
        search: str | None = None,
        status: str | None = None,
        limit: int = Query(50, ge=1, le=200),
        offset: int = Query(0, ge=0),
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.read")),
    ):
        stmt = (
            scoped(select(ContainerBooking), ContainerBooking, ctx)
            .where(ContainerBooking.booking_type == booking_type)
            .order_by(ContainerBooking.created_at.desc())
        )
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                ContainerBooking.booking_code.ilike(pattern)
                | ContainerBooking.customer_reference.ilike(pattern)
                | ContainerBooking.booking_reference.ilike(pattern)
                | ContainerBooking.vessel_name.ilike(pattern)
            )
        if status:
            if status not in booking_statuses(booking_type):
                raise ValidationFailedError(f"Unknown {booking_type} booking status: {status}")
            stmt = stmt.where(ContainerBooking.status == status)
        items, total = await paginate(db, stmt, limit=limit, offset=offset)
        return PaginatedResponse(
            items=[BookingOut.model_validate(b) for b in items], total=total, limit=limit, offset=offset
        )

    @router.post("", response_model=BookingOut, status_code=201)
    async def create_booking(
        body: BookingCreate,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.write")),
    ):
        tenant_id = ctx.require_tenant()
        data = body.model_dump(exclude={"charge_to"})
        await _check_parties(db, ctx, data)

        booking = ContainerBooking(
            tenant_id=tenant_id,
            booking_type=booking_type,
            booking_code=await generate_booking_code(db, tenant_id, booking_type),
            status="draft",
            created_by=ctx.user_id,
            **data,
        )
        await _set_charge_to(db, ctx, booking, body.charge_to, body.model_fields_set)
        db.add(booking)
        await db.flush()
        await log_activity(
            db, ctx,
            action="created",
            entity_type="booking",
            entity_id=booking.id,
            entity_code=booking.booking_code,
            summary=f"Created {booking_type} booking {booking.booking_code}",
        )
        logger.info("%s %s created", label, booking.booking_code)
        return BookingOut.model_validate(booking)

    @router.get("/{booking_id}", response_model=BookingOut)
    async def get_booking(
        booking_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.read")),
    ):
        return BookingOut.model_validate(await _get_booking(db, ctx, booking_type, booking_id))

    @router.patch("/{booking_id}", response_model=BookingOut)
    async def update_booking(
        booking_id: str,
        body: BookingUpdate,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.write")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id, for_update=True)
        _ensure_editable(booking)
        changes = body.model_dump(exclude_unset=True)
        await _check_parties(db, ctx, changes)

        charge_to = changes.pop("charge_to", ...)
        for key, value in changes.items():
            setattr(booking, key, value)
        if charge_to is not ...:
            await _set_charge_to(db, ctx, booking, charge_to, set(changes))
        await db.flush()
        await log_activity(
            db, ctx,
            action="updated",
            entity_type="booking",
            entity_id=booking.id,
            entity_code=booking.booking_code,
            details={"fields": sorted(body.model_fields_set)},
        )
        return BookingOut.model_validate(booking)

    @router.delete("/{booking_id}", status_code=204)
    async def delete_booking(
        booking_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.delete")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id, for_update=True)
        if booking.status not in ("draft", "cancelled"):
            raise BusinessLogicError(
                "Only draft or cancelled bookings can be deleted", error_code="BOOKING_ACTIVE"
            )
        containers = (await db.execute(
            select(ContainerDetail).where(ContainerDetail.booking_id == booking.id)
        )).scalars().all()
        for container in containers:
            await _ensure_no_stock(
                db, f"Container {container.container_number}", container_id=container.id
            )

        allocations = (await db.execute(
            select(ContainerStockAllocation).where(ContainerStockAllocation.booking_id == booking.id)
        )).scalars().all()
        for allocation in allocations:
            await _ensure_no_stock(db, "Stock allocation", allocation_id=allocation.id)
            await db.delete(allocation)
        await db.flush()
        for container in containers:
            await db.delete(container)
        await db.flush()
        await log_activity(
            db, ctx,
            action="deleted",
            entity_type="booking",
            entity_id=booking.id,
            entity_code=booking.booking_code,
        )
        await db.delete(booking)
        await db.flush()

    @router.post("/{booking_id}/status", response_model=BookingOut)
    async def set_booking_status(
        booking_id: str,
        body: StatusChange,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.write")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id, for_update=True)
        await change_booking_status(db, ctx, booking, body.status)
        await db.flush()
        return BookingOut.model_validate(booking)

    # ── Containers ───────────────────────────────────────────

    @router.get("/{booking_id}/containers", response_model=list[ContainerDetailOut])
    async def list_containers(
        booking_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.read")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        result = await db.execute(
            select(ContainerDetail)
            .where(ContainerDetail.booking_id == booking.id)
            .order_by(ContainerDetail.created_at)
        )
        return [ContainerDetailOut.model_validate(c) for c in result.scalars().all()]

    @router.post("/{booking_id}/containers", response_model=ContainerDetailOut, status_code=201)
    async def create_container(
        booking_id: str,
        body: ContainerDetailCreate,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.write")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        _ensure_editable(booking)
        if body.warehouse_id:
            await get_owned(db, Warehouse, body.warehouse_id, ctx)

        data = body.model_dump()
        number = data.pop("container_number") or await generate_container_number(db, booking.tenant_id)
        if await _container_number_taken(db, booking.tenant_id, number):
            raise ConflictError(f"Container number {number} already exists")

        container = ContainerDetail(
            tenant_id=booking.tenant_id,
            booking_id=booking.id,
            container_number=number,
            status=INITIAL_CONTAINER_STATUS[booking_type],
            **data,
        )
        db.add(container)
        await db.flush()
        await log_activity(
            db, ctx,
            action="created",
            entity_type="container",
            entity_id=container.id,
            entity_code=container.container_number,
            summary=f"Added to {booking.booking_code}",
        )
        return ContainerDetailOut.model_validate(container)

    @router.get("/{booking_id}/containers/{container_id}", response_model=ContainerDetailOut)
    async def get_container(
        booking_id: str,
        container_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.read")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        return ContainerDetailOut.model_validate(await _get_container(db, ctx, booking, container_id))

    @router.patch("/{booking_id}/containers/{container_id}", response_model=ContainerDetailOut)
    async def update_container(
        booking_id: str,
        container_id: str,
        body: ContainerDetailUpdate,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.write")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        _ensure_editable(booking)
        container = await _get_container(db, ctx, booking, container_id)
        changes = body.model_dump(exclude_unset=True)
        if changes.get("warehouse_id"):
            await get_owned(db, Warehouse, changes["warehouse_id"], ctx)
        number = changes.get("container_number")
        if number and await _container_number_taken(db, container.tenant_id, number, container.id):
            raise ConflictError(f"Container number {number} already exists")

        for key, value in changes.items():
            setattr(container, key, value)
        await db.flush()
        return ContainerDetailOut.model_validate(container)

    @router.delete("/{booking_id}/containers/{container_id}", status_code=204)
    async def delete_container(
        booking_id: str,
        container_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.delete")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        _ensure_editable(booking)
        container = await _get_container(db, ctx, booking, container_id)
        await _ensure_no_stock(db, "Container", container_id=container.id)

        allocations = (await db.execute(
            select(ContainerStockAllocation)
            .where(ContainerStockAllocation.container_detail_id == container.id)
        )).scalars().all()
        for allocation in allocations:
            await _ensure_no_stock(db, "Stock allocation", allocation_id=allocation.id)
            await db.delete(allocation)
        event = container_status_changed(container, container.status)
        await log_activity(
            db, ctx,
            action="deleted",
            entity_type="container",
            entity_id=container.id,
            entity_code=container.container_number,
            summary=f"Removed from {booking.booking_code}",
        )
        await db.flush()
        await db.delete(container)
        await db.flush()
        await publish(db, event)

    @router.post(
        "/{booking_id}/containers/{container_id}/status", response_model=ContainerDetailOut
    )
    async def set_container_status(
        booking_id: str,
        container_id: str,
        body: StatusChange,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.write")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id, for_update=True)
        _ensure_editable(booking)
        container = await _get_container(db, ctx, booking, container_id)
        await change_container_status(db, ctx, booking, container, body.status)
        return ContainerDetailOut.model_validate(container)

    # ── Stock allocations ────────────────────────────────────

    allocations_path = "/{booking_id}/containers/{container_id}/stock-allocations"

    @router.get(allocations_path, response_model=list[StockAllocationOut])
    async def list_allocations(
        booking_id: str,
        container_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.read")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        container = await _get_container(db, ctx, booking, container_id)
        result = await db.execute(
            select(ContainerStockAllocation)
            .where(ContainerStockAllocation.container_detail_id == container.id)
            .order_by(ContainerStockAllocation.created_at)
        )
        return [StockAllocationOut.model_validate(a) for a in result.scalars().all()]

    @router.post(allocations_path, response_model=StockAllocationOut, status_code=201)
    async def create_allocation(
        booking_id: str,
        container_id: str,
        body: StockAllocationCreate,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.write")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        _ensure_editable(booking)
        container = await _get_container(db, ctx, booking, container_id)

        allocation = ContainerStockAllocation(
            tenant_id=booking.tenant_id,
            container_detail_id=container.id,
            booking_id=booking.id,
            stage=_check_stage(booking_type, body.stage),
            lines=await _build_lines(db, booking.tenant_id, body.lines),
        )
        db.add(allocation)
        await db.flush()
        if booking_type == EXPORT:
            await sync_allocation_lines(db, allocation)
        await refresh_container(db, container.id)
        await db.flush()
        return StockAllocationOut.model_validate(allocation)

    @router.get(allocations_path + "/{allocation_id}", response_model=StockAllocationOut)
    async def get_allocation(
        booking_id: str,
        container_id: str,
        allocation_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.read")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        container = await _get_container(db, ctx, booking, container_id)
        return StockAllocationOut.model_validate(
            await _get_allocation(db, ctx, container, allocation_id)
        )

    @router.patch(allocations_path + "/{allocation_id}", response_model=StockAllocationOut)
    async def update_allocation(
        booking_id: str,
        container_id: str,
        allocation_id: str,
        body: StockAllocationUpdate,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.write")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        _ensure_editable(booking)
        container = await _get_container(db, ctx, booking, container_id)
        allocation = await _get_allocation(db, ctx, container, allocation_id)

        if body.stage is not None:
            allocation.stage = _check_stage(booking_type, body.stage)
        if body.lines is not None:
            # The collection is replaced; delete-orphan removes the old lines
            allocation.lines = await _build_lines(db, allocation.tenant_id, body.lines)
        await db.flush()
        if booking_type == EXPORT:
            await sync_allocation_lines(db, allocation)
        await refresh_container(db, container.id)
        await db.flush()
        return StockAllocationOut.model_validate(allocation)

    @router.delete(allocations_path + "/{allocation_id}", status_code=204)
    async def delete_allocation(
        booking_id: str,
        container_id: str,
        allocation_id: str,
        db: AsyncSession = Depends(get_db),
        ctx: AuthContext = Depends(require_permission("containers.delete")),
    ):
        booking = await _get_booking(db, ctx, booking_type, booking_id)
        _ensure_editable(booking)
        container = await _get_container(db, ctx, booking, container_id)
        allocation = await _get_allocation(db, ctx, container, allocation_id)
        await _ensure_no_stock(db, "Stock allocation", allocation_id=allocation.id)
        await db.delete(allocation)
        await db.flush()
        await refresh_container(db, container.id)

    # ── Import: put-away ─────────────────────────────────────

    if booking_type == IMPORT:

        @router.post(
            "/{booking_id}/containers/{container_id}/put-away",
            response_model=list[LpnOut],
            status_code=201,
        )
        async def put_away(
            booking_id: str,
            container_id: str,
            body: ContainerPutAwayRequest,
            db: AsyncSession = Depends(get_db),
            ctx: AuthContext = Depends(require_permission("inventory.write")),
        ):
            booking = await _get_booking(db, ctx, booking_type, booking_id)
            _ensure_editable(booking)
            container = await _get_container(db, ctx, booking, container_id)
            if body.warehouse_id:
                await get_owned(db, Warehouse, body.warehouse_id, ctx)
            lpns = await put_away_container(
                db, ctx, booking, container, body.allocation_id,
                [p.model_dump() for p in body.pallets],
                warehouse_id=body.warehouse_id,
            )
            return [LpnOut.model_validate(lpn) for lpn in lpns]

    # ── Export: LPN allocation and pickups ──────────────────

    if booking_type == EXPORT:

        @router.get(
            allocations_path + "/{allocation_id}/available-stock",
            response_model=list[AllocationStockOut],
        )
        async def allocation_stock(
            booking_id: str,
            container_id: str,
            allocation_id: str,
            line_id: str | None = None,
            db: AsyncSession = Depends(get_db),
            ctx: AuthContext = Depends(require_permission("inventory.read")),
        ):
            booking = await _get_booking(db, ctx, booking_type, booking_id)
            container = await _get_container(db, ctx, booking, container_id)
            allocation = await _get_allocation(db, ctx, container, allocation_id)
            stock = await stock_for_allocation(db, ctx, container, allocation, line_id)
            return [
                AllocationStockOut(**entry | {
                    "available": [LpnOut.model_validate(lpn) for lpn in entry["available"]],
                    "allocated": [LpnOut.model_validate(lpn) for lpn in entry["allocated"]],
                })
                for entry in stock
            ]

        @router.post(
            allocations_path + "/{allocation_id}/allocate",
            response_model=ContainerAllocateResponse,
        )
        async def allocate_lpns(
            booking_id: str,
            container_id: str,
            allocation_id: str,
            body: ContainerAllocateRequest,
            db: AsyncSession = Depends(get_db),
            ctx: AuthContext = Depends(require_permission("containers.write")),
        ):
            booking = await _get_booking(db, ctx, booking_type, booking_id)
            _ensure_editable(booking)
            container = await _get_container(db, ctx, booking, container_id)
            allocation = await _get_allocation(db, ctx, container, allocation_id)
            results = await allocate_to_container(
                db, ctx, container, allocation,
                [item.model_dump() for item in body.allocations],
            )
            return ContainerAllocateResponse(
                container_status=container.status,
                results=results,
                allocation=StockAllocationOut.model_validate(allocation),
            )

        @router.post(
            allocations_path + "/{allocation_id}/release",
            response_model=ContainerReleaseResponse,
        )
        async def release_lpns(
            booking_id: str,
            container_id: str,
            allocation_id: str,
            body: ContainerReleaseRequest,
            db: AsyncSession = Depends(get_db),
            ctx: AuthContext = Depends(require_permission("containers.write")),
        ):
            booking = await _get_booking(db, ctx, booking_type, booking_id)
            _ensure_editable(booking)
            container = await _get_container(db, ctx, booking, container_id)
            allocation = await _get_allocation(db, ctx, container, allocation_id)
            released = await release_from_container(db, ctx, container, allocation, body.lpn_ids)
            return ContainerReleaseResponse(
                container_status=container.status,
                released_lpns=released,
                allocation=StockAllocationOut.model_validate(allocation),
            )

        @router.get(
            "/{booking_id}/containers/{container_id}/allocated-lpns",
            response_model=list[LpnOut],
        )
        async def allocated_lpns(
            booking_id: str,
            container_id: str,
            db: AsyncSession = Depends(get_db),
            ctx: AuthContext = Depends(require_permission("inventory.read")),
        ):
            booking = await _get_booking(db, ctx, booking_type, booking_id)
            container = await _get_container(db, ctx, booking, container_id)
            result = await db.execute(
                scoped(select(PutAwayStock), PutAwayStock, ctx)
                .join(
                    ContainerStockAllocation,
                    ContainerStockAllocation.id == PutAwayStock.export_allocation_id,
                )
                .where(ContainerStockAllocation.container_detail_id == container.id)
                .order_by(PutAwayStock.lpn_number)
            )
            return [LpnOut.model_validate(lpn) for lpn in result.scalars().all()]

        # ── Export: pickups ──────────────────────────────────

        pickups_path = "/{booking_id}/containers/{container_id}/pickups"

        @router.get(pickups_path, response_model=list[PickupOut])
        async def list_container_pickups(
            booking_id: str,
            container_id: str,
            db: AsyncSession = Depends(get_db),
            ctx: AuthContext = Depends(require_permission("inventory.read")),
        ):
            booking = await _get_booking(db, ctx, booking_type, booking_id)
            container = await _get_container(db, ctx, booking, container_id)
            result = await db.execute(
                select(PickupStock)
                .where(PickupStock.container_detail_id == container.id)
                .order_by(PickupStock.created_at)
            )
            return [PickupOut.model_validate(p) for p in result.scalars().all()]

        @router.post(pickups_path, response_model=PickupOut, status_code=201)
        async def create_container_pickup(
            booking_id: str,
            container_id: str,
            body: ContainerPickupCreate,
            db: AsyncSession = Depends(get_db),
            ctx: AuthContext = Depends(require_permission("inventory.write")),
        ):
            booking = await _get_booking(db, ctx, booking_type, booking_id)
            _ensure_editable(booking)
            container = await _get_container(db, ctx, booking, container_id)
            allocation = await _get_allocation(db, ctx, container, body.allocation_id)
            pickup = await create_pickup(
                db, ctx,
                lpn_ids=body.lpn_ids,
                allocation=allocation,
                loosened_qty=body.loosened_qty,
                buffer_qty=body.buffer_qty,
                notes=body.notes,
            )
            if body.complete:
                await complete_pickup(db, ctx, pickup)
            return PickupOut.model_validate(pickup)

        @router.post(pickups_path + "/{pickup_id}/complete", response_model=PickupOut)
        async def complete_container_pickup(
            booking_id: str,
            container_id: str,
            pickup_id: str,
            db: AsyncSession = Depends(get_db),
            ctx: AuthContext = Depends(require_permission("inventory.write")),
        ):
            booking = await _get_booking(db, ctx, booking_type, booking_id)
            container = await _get_container(db, ctx, booking, container_id)
            pickup = await get_owned(db, PickupStock, pickup_id, ctx, label="Pickup", for_update=True)
            if pickup.container_detail_id != container.id:
                raise ResourceNotFoundError("Pickup", pickup_id)
            await complete_pickup(db, ctx, pickup)
            return PickupOut.model_validate(pickup)

    return router


import_router = build_router(IMPORT)
export_router = build_router(EXPORT)
