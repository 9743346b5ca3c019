"""Status aggregation rules — pure functions, no database access.

Two levels:
  product lines      → container status   (import_container_status / export_container_status)
  container statuses → booking status     (booking_status_from_containers)

Every function is deterministic in its inputs: the same multiset of
statuses (or the same line quantities) always yields the same result.
A return value of None means "no opinion, leave the stored status alone".
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from app.models.tenant.container import EXPORT, IMPORT

TERMINAL_BOOKING_STATUSES = frozenset({"cancelled", "completed"})


class _Line(Protocol):
    received_qty: int | None
    allocated_qty: int | None
    picked_qty: int | None


def _qty(value) -> float:
    return float(value or 0)


# ── Container → booking ─────────────────────────────────────

def import_booking_status(statuses: Sequence[str]) -> str | None:
    if not statuses:
        return None
    distinct = set(statuses)
    if distinct == {"put_away"}:
        return "put_away"
    if "put_away" in distinct:
        return "partially_put_away"
    if distinct == {"received"}:
        return "received"
    if "received" in distinct:
        return "partially_received"
    if distinct == {"expecting"}:
        return "expecting"
    return None


def export_booking_status(statuses: Sequence[str]) -> str | None:
    """Export ladder: allocated → picked_up → dispatched."""
    if not statuses:
        return None
    distinct = set(statuses)
    if distinct == {"dispatched"}:
        return "dispatched"
    if "dispatched" in distinct:
        if distinct <= {"dispatched", "picked_up"}:
            return "ready_to_dispatch"
        return "partially_picked"
    if distinct == {"picked_up"}:
        return "picked"
    if "picked_up" in distinct:
        return "partially_picked"
    if distinct == {"allocated"}:
        return "allocated"
    return None


def booking_status_from_containers(
    booking_type: str, statuses: Iterable[str]
) -> str | None:
    statuses = [s for s in statuses if s]
    if booking_type == IMPORT:
        return import_booking_status(statuses)
    if booking_type == EXPORT:
        return export_booking_status(statuses)
    raise ValueError(f"Unknown booking type: {booking_type!r}")


def resolve_booking_status(current: str, computed: str | None) -> str:
    """Terminal statuses are never overwritten by aggregation."""
    if current in TERMINAL_BOOKING_STATUSES or computed is None:
        return current
    return computed


# ── Product lines → container ───────────────────────────────

def import_container_status(lines: Sequence[_Line], has_put_away: bool) -> str:
    if lines and all(_qty(line.received_qty) > 0 for line in lines):
        return "put_away" if has_put_away else "received"
    return "expecting"


def export_container_status(
    lines: Sequence[_Line], has_completed_pickup: bool
) -> str | None:
    allocated = [line for line in lines if _qty(line.allocated_qty) > 0]
    if not allocated:
        return None
    if has_completed_pickup and all(_qty(line.picked_qty) > 0 for line in allocated):
        return "picked_up"
    return "allocated"


# ── Outbound job ────────────────────────────────────────────

ALLOCATION_STAGE_STATUSES = frozenset({"draft", "partially_allocated", "allocated"})
PICK_STAGE_STATUSES = frozenset({"allocated", "ready_to_pick", "partially_picked", "picked"})


class _OutboundLine(Protocol):
    expected_qty: int | None
    allocated_qty: int | None


def line_fully_allocated(line: _OutboundLine) -> bool:
    expected = _qty(line.expected_qty)
    allocated = _qty(line.allocated_qty)
    if expected > 0:
        return allocated >= expected
    return allocated > 0


def outbound_allocation_status(lines: Sequence[_OutboundLine], current: str) -> str:
    """Job status after an allocation; only moves within the allocation stage."""
    if current not in ALLOCATION_STAGE_STATUSES:
        return current
    if not any(_qty(line.allocated_qty) > 0 for line in lines):
        return current
    if all(line_fully_allocated(line) for line in lines):
        return "allocated"
    return "partially_allocated"


def outbound_pick_status(lpn_statuses: Iterable[str], current: str) -> str:
    """Job status after a pickup, from the statuses of the job's LPNs."""
    if current not in PICK_STAGE_STATUSES:
        return current
    statuses = list(lpn_statuses)
    if not statuses:
        return current
    if all(s == "picked" for s in statuses):
        return "picked"
    if "picked" in statuses:
        return "partially_picked"
    return current


# Steps an operator takes by hand; the rest follow allocation and picking
OUTBOUND_MANUAL_TRANSITIONS: dict[str, frozenset[str]] = {
    "allocated": frozenset({"ready_to_pick"}),
    "picked": frozenset({"ready_to_dispatch"}),
    "ready_to_dispatch": frozenset({"dispatched"}),
}


def can_change_outbound_status(current: str, target: str) -> bool:
    return target in OUTBOUND_MANUAL_TRANSITIONS.get(current, frozenset())
