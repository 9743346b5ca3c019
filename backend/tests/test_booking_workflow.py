"""Booking status transitions and the checks that guard them."""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from app.services.booking_workflow import (
    BookingFacts,
    allowed_transitions,
    confirmation_errors,
    transition_errors,
)


def _booking(**overrides):
    fields = dict(
        booking_type="import",
        status="draft",
        customer_reference="CR-1",
        booking_reference="BR-1",
        charge_to_id="pc-1",
        consignee_id="c-1",
        consignor_id=None,
        vessel_name="MSC Aurora",
        from_name="Port Botany",
        from_address=None,
        to_name="Port Botany DC",
        to_address=None,
        container_sizes=["20GP"],
        container_quantities={"20GP": 2},
        full_routing={"pickup": "Port Botany", "dropoff": "Port Botany DC"},
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.unit
class TestTransitions:

    def test_manual_ladder(self):
        assert allowed_transitions("import", "draft") == {"confirmed", "cancelled"}
        assert allowed_transitions("export", "confirmed") == {"in_progress", "cancelled"}

    def test_aggregated_statuses_only_exit_to_final(self):
        assert allowed_transitions("import", "partially_received") == {"completed", "cancelled"}
        assert allowed_transitions("export", "ready_to_dispatch") == {"completed", "cancelled"}

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_final_statuses_are_closed(self, status):
        assert allowed_transitions("import", status) == set()

    def test_cannot_skip_confirmation(self):
        errors = transition_errors(_booking(), "in_progress", BookingFacts(container_count=1))
        assert errors == ["Invalid status transition from draft to in_progress"]

    def test_start_needs_a_container(self):
        booking = _booking(status="confirmed")
        assert transition_errors(booking, "in_progress", BookingFacts()) == [
            "At least one container is required before starting the booking"
        ]
        assert transition_errors(booking, "in_progress", BookingFacts(container_count=1)) == []

    def test_completion_checks_every_container(self):
        booking = _booking(status="put_away")
        facts = BookingFacts(
            container_count=2,
            allocation_stages={"CN-00000001": ["put_away"], "CN-00000002": []},
        )
        assert transition_errors(booking, "completed", facts) == [
            "Container CN-00000002 has no stock allocation"
        ]

    def test_completion_rejects_stages_of_the_other_type(self):
        booking = _booking(status="put_away")
        facts = BookingFacts(container_count=1, allocation_stages={"CN-00000001": ["picked"]})
        [error] = transition_errors(booking, "completed", facts)
        assert "invalid stages: picked" in error

    def test_cancel_needs_nothing(self):
        assert transition_errors(_booking(status="in_progress"), "cancelled", BookingFacts()) == []


@pytest.mark.unit
class TestConfirmation:

    def test_complete_booking_confirms(self):
        assert confirmation_errors(_booking()) == []

    def test_all_missing_fields_are_reported(self):
        booking = _booking(
            customer_reference=None,
            charge_to_id=None,
            consignee_id=None,
            full_routing=None,
        )
        assert confirmation_errors(booking) == [
            "Customer reference is required",
            "Charge to is required",
            "Consignee is required",
            "Full routing is required",
        ]

    def test_export_needs_consignor_not_consignee(self):
        booking = _booking(booking_type="export", consignee_id=None)
        assert confirmation_errors(booking) == ["Consignor is required"]
        assert confirmation_errors(_booking(booking_type="export", consignor_id="c-2")) == []

    def test_address_stands_in_for_name(self):
        assert confirmation_errors(_booking(from_name=None, from_address="1 Wharf Rd")) == []

    def test_every_size_needs_a_quantity(self):
        booking = _booking(container_sizes=["20GP", "40HC"], container_quantities={"20GP": 1})
        assert confirmation_errors(booking) == [
            "Quantity is required for container sizes: 40HC"
        ]
        assert confirmation_errors(_booking(container_sizes=[])) == [
            "At least one container size is required"
        ]


@pytest.mark.api
@pytest.mark.asyncio
class TestBookingEndpoints:

    BASE = "/api/import-container-bookings"

    async def _create(self, client, headers, body) -> dict:
        response = await client.post(self.BASE, json=body, headers=headers)
        assert response.status_code == 201
        return response.json()

    async def test_create_snapshots_charge_to(
        self, client: AsyncClient, auth_headers, parties, booking_body
    ):
        _, payer = parties
        data = await self._create(client, auth_headers, booking_body())
        assert data["status"] == "draft"
        assert data["booking_type"] == "import"
        assert data["booking_code"].startswith("IMP-")
        assert data["charge_to"] == {"kind": "paying_customer", "id": payer.id}
        assert data["charge_to_name"] == "Blue Water Imports"
        assert data["charge_to_contact_name"] == "Dana Reyes"

    async def test_legacy_charge_to_string(
        self, client: AsyncClient, auth_headers, parties, booking_body
    ):
        customer, _ = parties
        data = await self._create(
            client, auth_headers, booking_body(charge_to=f"customers:{customer.id}")
        )
        assert data["charge_to"] == {"kind": "customer", "id": customer.id}
        assert data["charge_to_name"] == "Coastal Foods"

    async def test_unknown_consignee(self, client: AsyncClient, auth_headers, booking_body):
        response = await client.post(
            self.BASE, json=booking_body(consignee_id="missing"), headers=auth_headers
        )
        assert response.status_code == 404

    async def test_confirm_reports_every_missing_field(
        self, client: AsyncClient, auth_headers, booking_body
    ):
        booking = await self._create(
            client, auth_headers, booking_body(vessel_name=None, full_routing=None)
        )
        response = await client.post(
            f"{self.BASE}/{booking['id']}/status", json={"status": "confirmed"}, headers=auth_headers
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "INVALID_TRANSITION"
        assert error["details"]["errors"] == [
            "Vessel name is required",
            "Full routing is required",
        ]

    async def test_ladder_through_the_api(
        self, client: AsyncClient, auth_headers, booking_body, warehouse
    ):
        booking = await self._create(client, auth_headers, booking_body())
        status_url = f"{self.BASE}/{booking['id']}/status"

        response = await client.post(status_url, json={"status": "confirmed"}, headers=auth_headers)
        assert response.json()["status"] == "confirmed"

        response = await client.post(status_url, json={"status": "in_progress"}, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"]["details"]["errors"] == [
            "At least one container is required before starting the booking"
        ]

        response = await client.post(
            f"{self.BASE}/{booking['id']}/containers",
            json={"container_size": "20GP", "warehouse_id": warehouse.id},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["status"] == "expecting"
        assert response.json()["container_number"].startswith("CN-")

        response = await client.post(status_url, json={"status": "in_progress"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

    async def test_unknown_status_is_a_bad_request(
        self, client: AsyncClient, auth_headers, booking_body
    ):
        booking = await self._create(client, auth_headers, booking_body())
        response = await client.post(
            f"{self.BASE}/{booking['id']}/status", json={"status": "shipped"}, headers=auth_headers
        )
        assert response.status_code == 400

    async def test_cancelled_booking_is_read_only(
        self, client: AsyncClient, auth_headers, booking_body
    ):
        booking = await self._create(client, auth_headers, booking_body())
        url = f"{self.BASE}/{booking['id']}"
        await client.post(f"{url}/status", json={"status": "cancelled"}, headers=auth_headers)

        response = await client.patch(url, json={"vessel_name": "Other"}, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "BOOKING_CLOSED"

        response = await client.delete(url, headers=auth_headers)
        assert response.status_code == 204
        assert (await client.get(url, headers=auth_headers)).status_code == 404

    async def test_confirmed_booking_cannot_be_deleted(
        self, client: AsyncClient, auth_headers, booking_body
    ):
        booking = await self._create(client, auth_headers, booking_body())
        url = f"{self.BASE}/{booking['id']}"
        await client.post(f"{url}/status", json={"status": "confirmed"}, headers=auth_headers)

        response = await client.delete(url, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "BOOKING_ACTIVE"

    async def test_export_bookings_are_separate(
        self, client: AsyncClient, auth_headers, booking_body
    ):
        booking = await self._create(client, auth_headers, booking_body())

        response = await client.get(
            f"/api/export-container-bookings/{booking['id']}", headers=auth_headers
        )
        assert response.status_code == 404
        listing = await client.get("/api/export-container-bookings", headers=auth_headers)
        assert listing.json()["total"] == 0
