"""Container → booking status propagation.

A change to a container's status is expressed as a ContainerStatusChanged
event and handed to `publish()`, whose handler recomputes the owning
booking's status from the statuses of all its containers.

Triggers:
  - stock allocation lines created / updated   → refresh_container()
  - put-away of an import container            → refresh_container()
  - pickup completed for an export container   → refresh_container()
  - manual container status update             → publish(container_status_changed(...))

Failure policy: lookup problems are logged and swallowed so the triggering
write still succeeds; the next trigger restores consistency. Database
errors propagate to the caller.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.tenant.container import (
    EXPORT,
    IMPORT,
    ContainerBooking,
    ContainerDetail,
    ContainerStockAllocation,
)
from app.models.tenant.stock import PickupStock, PutAwayStock
from app.services.status_rules import (
    booking_status_from_containers,
    export_container_status,
    import_container_status,
    resolve_booking_status,
)

logger = logging.getLogger("containa.status")


@dataclass(frozen=True)
class ContainerStatusChanged:
    tenant_id: str
    booking_id: str
    container_id: str
    old_status: str | None
    new_status: str


def container_status_changed(container: ContainerDetail, old_status: str | None) -> ContainerStatusChanged:
    return ContainerStatusChanged(
        tenant_id=container.tenant_id,
        booking_id=container.booking_id,
        container_id=container.id,
        old_status=old_status,
        new_status=container.status,
    )


# ── Container status from product lines ─────────────────────

async def _has_put_away(db: AsyncSession, container_id: str) -> bool:
    found = await db.scalar(
        select(PutAwayStock.id).where(
            PutAwayStock.container_detail_id == container_id,
            PutAwayStock.is_deleted == False,  # noqa: E712
        ).limit(1)
    )
    return found is not None


async def _has_completed_pickup(db: AsyncSession, container_id: str) -> bool:
    found = await db.scalar(
        select(PickupStock.id).where(
            PickupStock.container_detail_id == container_id,
            PickupStock.pickup_status == "completed",
        ).limit(1)
    )
    return found is not None


async def recompute_container_status(
    db: AsyncSession, container_id: str
) -> ContainerStatusChanged | None:
    """Derive a container's status from all of its allocation lines.

    Returns the change event, or None when the status is unchanged.
    Dispatched export containers are final and never recomputed.
    """
    container = await db.get(ContainerDetail, container_id)
    if container is None:
        logger.warning("Container %s not found during status recompute", container_id)
        return None
    booking = await db.get(ContainerBooking, container.booking_id)
    if booking is None:
        logger.warning(
            "Booking %s for container %s not found", container.booking_id, container_id
        )
        return None

    result = await db.execute(
        select(ContainerStockAllocation).where(
            ContainerStockAllocation.container_detail_id == container_id
        )
    )
    lines = [line for alloc in result.scalars().all() for line in alloc.lines]

    if booking.booking_type == IMPORT:
        new_status = import_container_status(lines, await _has_put_away(db, container_id))
    elif booking.booking_type == EXPORT:
        if container.status == "dispatched":
            return None
        new_status = export_container_status(
            lines, await _has_completed_pickup(db, container_id)
        )
    else:
        logger.warning("Booking %s has unknown type %r", booking.id, booking.booking_type)
        return None

    if new_status is None or new_status == container.status:
        return None

    old_status = container.status
    container.status = new_status
    logger.info(
        "Container %s status %s -> %s", container.container_number, old_status, new_status
    )
    return container_status_changed(container, old_status)


# ── Booking status from container statuses ──────────────────

async def handle_container_status_changed(
    db: AsyncSession, event: ContainerStatusChanged
) -> str | None:
    """Recompute the booking status for a container change. Returns the new status."""
    booking = await db.get(ContainerBooking, event.booking_id)
    if booking is None:
        logger.warning("Booking %s not found for %s", event.booking_id, event)
        return None

    statuses = (
        await db.execute(
            select(ContainerDetail.status).where(ContainerDetail.booking_id == booking.id)
        )
    ).scalars().all()

    computed = booking_status_from_containers(booking.booking_type, statuses)
    new_status = resolve_booking_status(booking.status, computed)
    if new_status != booking.status:
        logger.info(
            "Booking %s status %s -> %s", booking.booking_code, booking.status, new_status
        )
        booking.status = new_status
    return booking.status


async def publish(db: AsyncSession, *events: ContainerStatusChanged | None) -> None:
    for event in events:
        if event is None:
            continue
        try:
            await handle_container_status_changed(db, event)
        except SQLAlchemyError:
            raise
        except Exception:
            logger.exception("Booking status recompute failed for %s", event)


async def refresh_container(db: AsyncSession, container_id: str) -> ContainerStatusChanged | None:
    """Recompute a container's status and propagate any change to its booking."""
    try:
        event = await recompute_container_status(db, container_id)
    except SQLAlchemyError:
        raise
    except Exception:
        logger.exception("Container status recompute failed for %s", container_id)
        return None
    await publish(db, event)
    return event
