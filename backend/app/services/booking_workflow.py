"""Manual status changes for container bookings and their containers.

Booking transitions (both types):

    draft ──► confirmed ──► in_progress ──► (container-driven statuses) ──► completed
      │           │              │                      │
      └───────────┴──────────────┴──────────────────────┴──► cancelled

`completed` and `cancelled` are final. Statuses between in_progress and
completed are written by the status aggregator, never by hand.

Container transitions:
    import:  expecting → received → put_away
    export:  allocated → picked_up → dispatched
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.context import AuthContext
from app.middleware.exceptions import BusinessLogicError, ValidationFailedError
from app.models.tenant.container import (
    EXPORT,
    EXPORT_BOOKING_STATUSES,
    EXPORT_STAGES,
    IMPORT,
    IMPORT_BOOKING_STATUSES,
    IMPORT_STAGES,
    ContainerBooking,
    ContainerDetail,
    ContainerStockAllocation,
)
from app.models.tenant.stock import PickupStock, PutAwayStock
from app.services.status_aggregator import container_status_changed, publish
from app.services.status_rules import TERMINAL_BOOKING_STATUSES
from app.utils.activity import log_activity

logger = logging.getLogger("containa.bookings")

MANUAL_TRANSITIONS = {
    "draft": {"confirmed", "cancelled"},
    "confirmed": {"in_progress", "cancelled"},
    "in_progress": {"completed", "cancelled"},
}
AGGREGATED_EXITS = {"completed", "cancelled"}

CONTAINER_TRANSITIONS = {
    IMPORT: {"expecting": {"received"}, "received": {"put_away"}, "put_away": set()},
    EXPORT: {"allocated": {"picked_up"}, "picked_up": {"dispatched"}, "dispatched": set()},
}

INITIAL_CONTAINER_STATUS = {IMPORT: "expecting", EXPORT: "allocated"}


def booking_statuses(booking_type: str) -> tuple[str, ...]:
    return IMPORT_BOOKING_STATUSES if booking_type == IMPORT else EXPORT_BOOKING_STATUSES


def valid_stages(booking_type: str) -> tuple[str, ...]:
    return IMPORT_STAGES if booking_type == IMPORT else EXPORT_STAGES


def allowed_transitions(booking_type: str, current: str) -> set[str]:
    if current in TERMINAL_BOOKING_STATUSES:
        return set()
    if current in MANUAL_TRANSITIONS:
        return MANUAL_TRANSITIONS[current]
    if current in booking_statuses(booking_type):
        return AGGREGATED_EXITS
    return set()


def can_transition(booking_type: str, current: str, target: str) -> bool:
    return target in allowed_transitions(booking_type, current)


# ── Validation ──────────────────────────────────────────────

@dataclass
class BookingFacts:
    """What the workflow needs to know about a booking's children."""
    container_count: int = 0
    # container id → allocation stages on it
    allocation_stages: dict[str, list[str]] = field(default_factory=dict)


def confirmation_errors(booking) -> list[str]:
    errors: list[str] = []
    if not booking.customer_reference:
        errors.append("Customer reference is required")
    if not booking.booking_reference:
        errors.append("Booking reference is required")
    if not booking.charge_to_id:
        errors.append("Charge to is required")
    if booking.booking_type == IMPORT and not booking.consignee_id:
        errors.append("Consignee is required")
    if booking.booking_type == EXPORT and not booking.consignor_id:
        errors.append("Consignor is required")
    if not booking.vessel_name:
        errors.append("Vessel name is required")
    if not booking.from_name and not booking.from_address:
        errors.append("From location is required")
    if not booking.to_name and not booking.to_address:
        errors.append("To location is required")

    sizes = booking.container_sizes or []
    quantities = booking.container_quantities or {}
    if not sizes:
        errors.append("At least one container size is required")
    else:
        missing = [s for s in sizes if not quantities.get(s) or int(quantities[s]) <= 0]
        if missing:
            errors.append(f"Quantity is required for container sizes: {', '.join(missing)}")

    if not booking.full_routing:
        errors.append("Full routing is required")
    return errors


def transition_errors(booking, target: str, facts: BookingFacts) -> list[str]:
    """All reasons `booking` cannot move to `target`; empty when it can."""
    if not can_transition(booking.booking_type, booking.status, target):
        return [f"Invalid status transition from {booking.status} to {target}"]
    if target == "confirmed":
        return confirmation_errors(booking)
    if target == "in_progress" and facts.container_count == 0:
        return ["At least one container is required before starting the booking"]
    if target == "completed":
        errors = []
        stages = valid_stages(booking.booking_type)
        if facts.container_count == 0:
            errors.append("A booking without containers cannot be completed")
        for container_id, allocation_stages in facts.allocation_stages.items():
            if not allocation_stages:
                errors.append(f"Container {container_id} has no stock allocation")
            invalid = [s for s in allocation_stages if s not in stages]
            if invalid:
                errors.append(
                    f"Container {container_id} has allocations in invalid stages: {', '.join(invalid)}"
                )
        return errors
    return []


async def load_booking_facts(db: AsyncSession, booking: ContainerBooking) -> BookingFacts:
    containers = (await db.execute(
        select(ContainerDetail.id, ContainerDetail.container_number)
        .where(ContainerDetail.booking_id == booking.id)
    )).all()
    facts = BookingFacts(container_count=len(containers))
    for container_id, number in containers:
        stages = (await db.execute(
            select(ContainerStockAllocation.stage)
            .where(ContainerStockAllocation.container_detail_id == container_id)
        )).scalars().all()
        facts.allocation_stages[number] = list(stages)
    return facts


# ── Operations ──────────────────────────────────────────────

async def change_booking_status(
    db: AsyncSession, ctx: AuthContext, booking: ContainerBooking, target: str
) -> ContainerBooking:
    if target == booking.status:
        return booking
    if target not in booking_statuses(booking.booking_type):
        raise ValidationFailedError(f"Unknown {booking.booking_type} booking status: {target}")

    facts = await load_booking_facts(db, booking)
    errors = transition_errors(booking, target, facts)
    if errors:
        raise BusinessLogicError(
            errors[0] if len(errors) == 1 else "Booking cannot change status",
            error_code="INVALID_TRANSITION",
            details={"errors": errors},
        )

    old = booking.status
    booking.status = target
    logger.info("Booking %s status %s -> %s", booking.booking_code, old, target)
    await log_activity(
        db, ctx,
        action="status_changed",
        entity_type="booking",
        entity_id=booking.id,
        entity_code=booking.booking_code,
        summary=f"{old} -> {target}",
    )
    return booking


async def change_container_status(
    db: AsyncSession,
    ctx: AuthContext,
    booking: ContainerBooking,
    container: ContainerDetail,
    target: str,
) -> ContainerDetail:
    """Manual container transition, then booking recompute."""
    if not target:
        raise ValidationFailedError("Status is required")
    transitions = CONTAINER_TRANSITIONS[booking.booking_type]
    current = container.status
    if target not in transitions.get(current, set()):
        raise ValidationFailedError(f"Invalid status transition from {current} to {target}")

    if target == "received":
        result = await db.execute(
            select(ContainerStockAllocation)
            .where(ContainerStockAllocation.container_detail_id == container.id)
        )
        lines = [line for alloc in result.scalars().all() for line in alloc.lines]
        if not all((line.received_qty or 0) > 0 for line in lines):
            raise ValidationFailedError(
                "All product lines must have received values before changing status to received"
            )
    elif target == "put_away":
        found = await db.scalar(
            select(PutAwayStock.id).where(PutAwayStock.container_detail_id == container.id).limit(1)
        )
        if found is None:
            raise ValidationFailedError(
                "Put-away records must exist before changing status to put_away"
            )
    elif target == "picked_up":
        found = await db.scalar(
            select(PickupStock.id).where(
                PickupStock.container_detail_id == container.id,
                PickupStock.pickup_status == "completed",
            ).limit(1)
        )
        if found is None:
            raise ValidationFailedError(
                "A completed pickup must exist before changing status to picked_up"
            )
    elif target == "dispatched":
        await _dispatch_container_stock(db, container)

    container.status = target
    await log_activity(
        db, ctx,
        action="status_changed",
        entity_type="container",
        entity_id=container.id,
        entity_code=container.container_number,
        summary=f"{current} -> {target}",
    )
    await db.flush()
    await publish(db, container_status_changed(container, current))
    return container


async def _dispatch_container_stock(db: AsyncSession, container: ContainerDetail) -> None:
    pickups = (await db.execute(
        select(PickupStock).where(
            PickupStock.container_detail_id == container.id,
            PickupStock.pickup_status == "completed",
        )
    )).scalars().all()
    lpn_ids = [e["lpn_id"] for p in pickups for e in p.picked_up_lpns or [] if e.get("lpn_id")]
    if lpn_ids:
        lpns = (await db.execute(
            select(PutAwayStock).where(PutAwayStock.id.in_(lpn_ids))
        )).scalars().all()
        for lpn in lpns:
            lpn.allocation_status = "dispatched"
    allocations = (await db.execute(
        select(ContainerStockAllocation)
        .where(ContainerStockAllocation.container_detail_id == container.id)
    )).scalars().all()
    for allocation in allocations:
        allocation.stage = "dispatched"
