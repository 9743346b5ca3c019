"""Status aggregation rules for containers, bookings and outbound jobs."""

from types import SimpleNamespace

import pytest

from app.services.status_rules import (
    booking_status_from_containers,
    can_change_outbound_status,
    export_container_status,
    import_container_status,
    outbound_allocation_status,
    outbound_pick_status,
    resolve_booking_status,
)


def _line(**kw):
    base = {"received_qty": None, "allocated_qty": None, "picked_qty": None, "expected_qty": None}
    base.update(kw)
    return SimpleNamespace(**base)


@pytest.mark.unit
class TestBookingFromContainers:

    @pytest.mark.parametrize("statuses,expected", [
        (["expecting", "expecting"], "expecting"),
        (["expecting", "received"], "partially_received"),
        (["received", "received"], "received"),
        (["received", "put_away"], "partially_put_away"),
        (["expecting", "put_away"], "partially_put_away"),
        (["put_away"], "put_away"),
    ])
    def test_import_ladder(self, statuses, expected):
        assert booking_status_from_containers("import", statuses) == expected

    @pytest.mark.parametrize("statuses,expected", [
        (["allocated", "allocated"], "allocated"),
        (["allocated", "picked_up"], "partially_picked"),
        (["picked_up", "picked_up"], "picked"),
        (["picked_up", "dispatched"], "ready_to_dispatch"),
        (["allocated", "dispatched"], "partially_picked"),
        (["dispatched", "dispatched"], "dispatched"),
    ])
    def test_export_ladder(self, statuses, expected):
        assert booking_status_from_containers("export", statuses) == expected

    def test_no_containers_has_no_opinion(self):
        assert booking_status_from_containers("import", []) is None
        assert booking_status_from_containers("export", [None, ""]) is None

    def test_order_does_not_matter(self):
        a = booking_status_from_containers("import", ["put_away", "expecting", "received"])
        b = booking_status_from_containers("import", ["received", "put_away", "expecting"])
        assert a == b == "partially_put_away"

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            booking_status_from_containers("domestic", ["expecting"])

    @pytest.mark.parametrize("current", ["completed", "cancelled"])
    def test_terminal_status_is_kept(self, current):
        assert resolve_booking_status(current, "received") == current

    def test_none_keeps_current(self):
        assert resolve_booking_status("confirmed", None) == "confirmed"
        assert resolve_booking_status("confirmed", "expecting") == "expecting"


@pytest.mark.unit
class TestContainerFromLines:

    def test_import_expecting_until_every_line_received(self):
        lines = [_line(received_qty=10), _line(received_qty=0)]
        assert import_container_status(lines, has_put_away=False) == "expecting"

    def test_import_received(self):
        lines = [_line(received_qty=10), _line(received_qty=4)]
        assert import_container_status(lines, has_put_away=False) == "received"

    def test_import_put_away_needs_received_lines(self):
        lines = [_line(received_qty=10)]
        assert import_container_status(lines, has_put_away=True) == "put_away"
        assert import_container_status([_line()], has_put_away=True) == "expecting"

    def test_import_without_lines(self):
        assert import_container_status([], has_put_away=False) == "expecting"

    def test_export_without_allocations_has_no_opinion(self):
        assert export_container_status([_line(allocated_qty=0)], False) is None

    def test_export_picked_up_needs_completed_pickup(self):
        lines = [_line(allocated_qty=5, picked_qty=5), _line(allocated_qty=0)]
        assert export_container_status(lines, has_completed_pickup=False) == "allocated"
        assert export_container_status(lines, has_completed_pickup=True) == "picked_up"

    def test_export_partial_pick_stays_allocated(self):
        lines = [_line(allocated_qty=5, picked_qty=5), _line(allocated_qty=3, picked_qty=0)]
        assert export_container_status(lines, has_completed_pickup=True) == "allocated"


@pytest.mark.unit
class TestOutboundStatus:

    def test_partial_then_full_allocation(self):
        lines = [_line(expected_qty=40, allocated_qty=40), _line(expected_qty=20, allocated_qty=0)]
        assert outbound_allocation_status(lines, "draft") == "partially_allocated"
        lines[1].allocated_qty = 20
        assert outbound_allocation_status(lines, "partially_allocated") == "allocated"

    def test_nothing_allocated_keeps_status(self):
        assert outbound_allocation_status([_line(expected_qty=5, allocated_qty=0)], "draft") == "draft"

    def test_allocation_does_not_rewind_later_stages(self):
        lines = [_line(expected_qty=5, allocated_qty=1)]
        assert outbound_allocation_status(lines, "picked") == "picked"

    def test_line_without_expected_qty_counts_once_allocated(self):
        assert outbound_allocation_status([_line(allocated_qty=3)], "draft") == "allocated"

    def test_pick_status(self):
        assert outbound_pick_status(["picked", "allocated"], "allocated") == "partially_picked"
        assert outbound_pick_status(["picked", "picked"], "ready_to_pick") == "picked"
        assert outbound_pick_status([], "allocated") == "allocated"
        assert outbound_pick_status(["picked"], "dispatched") == "dispatched"

    @pytest.mark.parametrize("current,target,allowed", [
        ("allocated", "ready_to_pick", True),
        ("picked", "ready_to_dispatch", True),
        ("ready_to_dispatch", "dispatched", True),
        ("draft", "dispatched", False),
        ("picked", "dispatched", False),
        ("dispatched", "ready_to_dispatch", False),
    ])
    def test_manual_transitions(self, current, target, allowed):
        assert can_change_outbound_status(current, target) is allowed
