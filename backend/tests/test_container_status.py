"""Container status cascade: allocation lines → container → booking."""

import logging

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from app.services import status_aggregator

IMPORTS = "/api/import-container-bookings"
EXPORTS = "/api/export-container-bookings"


async def _started_booking(client, headers, base, body, warehouse_id) -> tuple[dict, dict]:
    """Create a booking with one container and move it to in_progress."""
    booking = (await client.post(base, json=body, headers=headers)).json()
    url = f"{base}/{booking['id']}"
    await client.post(f"{url}/status", json={"status": "confirmed"}, headers=headers)
    container = (await client.post(
        f"{url}/containers",
        json={"container_size": "20GP", "warehouse_id": warehouse_id},
        headers=headers,
    )).json()
    response = await client.post(f"{url}/status", json={"status": "in_progress"}, headers=headers)
    assert response.status_code == 200
    return booking, container


async def _export_allocation(client, headers, body, warehouse_id, sku_id, expected_qty):
    """Started export booking with one allocation line of `expected_qty` HU."""
    booking, container = await _started_booking(client, headers, EXPORTS, body, warehouse_id)
    container_url = f"{EXPORTS}/{booking['id']}/containers/{container['id']}"
    allocation = (await client.post(
        f"{container_url}/stock-allocations",
        json={"lines": [{"sku_id": sku_id, "expected_qty": expected_qty}]},
        headers=headers,
    )).json()
    return container_url, allocation


@pytest.mark.integration
@pytest.mark.asyncio
class TestImportCascade:

    async def test_receive_then_put_away(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku
    ):
        booking, container = await _started_booking(
            client, auth_headers, IMPORTS, booking_body(), warehouse.id
        )
        booking_url = f"{IMPORTS}/{booking['id']}"
        container_url = f"{booking_url}/containers/{container['id']}"

        # Expected only: nothing changes yet
        response = await client.post(
            f"{container_url}/stock-allocations",
            json={"lines": [{"sku_id": sku.id, "batch_number": "B7", "expected_qty": 80}]},
            headers=auth_headers,
        )
        assert response.status_code == 201
        allocation = response.json()
        assert allocation["stage"] == "expected"
        assert allocation["lines"][0]["sku_description"] == "Carton 500ml x 12"
        assert (await client.get(container_url, headers=auth_headers)).json()["status"] == "expecting"
        assert (await client.get(booking_url, headers=auth_headers)).json()["status"] == "in_progress"

        # Every line received
        response = await client.patch(
            f"{container_url}/stock-allocations/{allocation['id']}",
            json={
                "stage": "received",
                "lines": [
                    {"sku_id": sku.id, "batch_number": "B7", "expected_qty": 80, "received_qty": 80}
                ],
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        [line] = response.json()["lines"]
        assert (await client.get(container_url, headers=auth_headers)).json()["status"] == "received"
        assert (await client.get(booking_url, headers=auth_headers)).json()["status"] == "received"

        response = await client.post(
            f"{container_url}/put-away",
            json={
                "allocation_id": allocation["id"],
                "pallets": [
                    {"line_id": line["id"], "hu_qty": 40, "location": "B-01-01"},
                    {"line_id": line["id"], "hu_qty": 40, "location": "B-01-02"},
                ],
            },
            headers=auth_headers,
        )
        assert response.status_code == 201
        lpns = response.json()
        assert len(lpns) == 2
        assert {lpn["container_detail_id"] for lpn in lpns} == {container["id"]}
        assert {lpn["warehouse_id"] for lpn in lpns} == {warehouse.id}
        assert all(lpn["batch_number"] == "B7" for lpn in lpns)

        assert (await client.get(container_url, headers=auth_headers)).json()["status"] == "put_away"
        assert (await client.get(booking_url, headers=auth_headers)).json()["status"] == "put_away"

        response = await client.post(
            f"{booking_url}/status", json={"status": "completed"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    async def test_put_away_needs_received_lines(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku
    ):
        booking, container = await _started_booking(
            client, auth_headers, IMPORTS, booking_body(), warehouse.id
        )
        container_url = f"{IMPORTS}/{booking['id']}/containers/{container['id']}"
        allocation = (await client.post(
            f"{container_url}/stock-allocations",
            json={"lines": [{"sku_id": sku.id, "expected_qty": 80}]},
            headers=auth_headers,
        )).json()

        response = await client.post(
            f"{container_url}/put-away",
            json={
                "allocation_id": allocation["id"],
                "pallets": [{"line_id": allocation["lines"][0]["id"], "hu_qty": 40}],
            },
            headers=auth_headers,
        )
        assert response.status_code == 422

    async def test_one_of_two_containers_received(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku
    ):
        booking, first = await _started_booking(
            client, auth_headers, IMPORTS, booking_body(), warehouse.id
        )
        booking_url = f"{IMPORTS}/{booking['id']}"
        second = (await client.post(
            f"{booking_url}/containers", json={"container_size": "20GP"}, headers=auth_headers
        )).json()

        for container, received in ((first, 80), (second, 0)):
            await client.post(
                f"{booking_url}/containers/{container['id']}/stock-allocations",
                json={"lines": [{"sku_id": sku.id, "expected_qty": 80, "received_qty": received}]},
                headers=auth_headers,
            )

        assert (await client.get(booking_url, headers=auth_headers)).json()["status"] == (
            "partially_received"
        )


@pytest.mark.integration
@pytest.mark.asyncio
class TestExportCascade:

    async def test_pick_then_dispatch(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku, make_lpns
    ):
        [lpn] = await make_lpns(40)
        booking, container = await _started_booking(
            client, auth_headers, EXPORTS, booking_body(), warehouse.id
        )
        assert container["status"] == "allocated"
        booking_url = f"{EXPORTS}/{booking['id']}"
        container_url = f"{booking_url}/containers/{container['id']}"

        allocation = (await client.post(
            f"{container_url}/stock-allocations",
            json={"lines": [{"sku_id": sku.id, "expected_qty": 40}]},
            headers=auth_headers,
        )).json()
        assert allocation["stage"] == "allocated"
        response = await client.post(
            f"{container_url}/stock-allocations/{allocation['id']}/allocate",
            json={"allocations": [{"line_id": allocation["lines"][0]["id"]}]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["results"][0]["allocated_lpns"] == [lpn.lpn_number]

        response = await client.post(
            f"{container_url}/pickups",
            json={"allocation_id": allocation["id"], "lpn_ids": [lpn.id], "complete": True},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["pickup_status"] == "completed"
        assert response.json()["final_picked_up_qty"] == 40

        assert (await client.get(container_url, headers=auth_headers)).json()["status"] == "picked_up"
        assert (await client.get(booking_url, headers=auth_headers)).json()["status"] == "picked"

        response = await client.post(
            f"{container_url}/status", json={"status": "dispatched"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "dispatched"
        assert (await client.get(booking_url, headers=auth_headers)).json()["status"] == "dispatched"

        record = await client.get(f"/api/inventory/records/{lpn.id}", headers=auth_headers)
        assert record.json()["allocation_status"] == "dispatched"

    async def test_pickup_takes_only_lpns_allocated_to_the_container(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku, make_lpns
    ):
        [lpn] = await make_lpns(40, status="allocated")
        booking, container = await _started_booking(
            client, auth_headers, EXPORTS, booking_body(), warehouse.id
        )
        container_url = f"{EXPORTS}/{booking['id']}/containers/{container['id']}"
        allocation = (await client.post(
            f"{container_url}/stock-allocations",
            json={"lines": [{"sku_id": sku.id, "expected_qty": 40}]},
            headers=auth_headers,
        )).json()

        response = await client.post(
            f"{container_url}/pickups",
            json={"allocation_id": allocation["id"], "lpn_ids": [lpn.id]},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert response.json()["error"]["details"] == {"lpns": [lpn.lpn_number]}


@pytest.mark.api
@pytest.mark.asyncio
class TestManualContainerStatus:

    async def test_import_cannot_skip_receiving(
        self, client: AsyncClient, auth_headers, booking_body, warehouse
    ):
        booking, container = await _started_booking(
            client, auth_headers, IMPORTS, booking_body(), warehouse.id
        )
        response = await client.post(
            f"{IMPORTS}/{booking['id']}/containers/{container['id']}/status",
            json={"status": "put_away"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert "expecting to put_away" in response.json()["error"]["message"]

    async def test_received_needs_received_lines(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku
    ):
        booking, container = await _started_booking(
            client, auth_headers, IMPORTS, booking_body(), warehouse.id
        )
        container_url = f"{IMPORTS}/{booking['id']}/containers/{container['id']}"
        await client.post(
            f"{container_url}/stock-allocations",
            json={"lines": [{"sku_id": sku.id, "expected_qty": 80}]},
            headers=auth_headers,
        )
        response = await client.post(
            f"{container_url}/status", json={"status": "received"}, headers=auth_headers
        )
        assert response.status_code == 400

    async def test_export_picked_up_needs_a_completed_pickup(
        self, client: AsyncClient, auth_headers, booking_body, warehouse
    ):
        booking, container = await _started_booking(
            client, auth_headers, EXPORTS, booking_body(), warehouse.id
        )
        response = await client.post(
            f"{EXPORTS}/{booking['id']}/containers/{container['id']}/status",
            json={"status": "picked_up"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_invalid_stage_for_booking_type(
        self, client: AsyncClient, auth_headers, booking_body, warehouse
    ):
        booking, container = await _started_booking(
            client, auth_headers, IMPORTS, booking_body(), warehouse.id
        )
        response = await client.post(
            f"{IMPORTS}/{booking['id']}/containers/{container['id']}/stock-allocations",
            json={"stage": "picked", "lines": []},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"]["valid_stages"] == [
            "expected", "received", "put_away"
        ]


@pytest.mark.integration
@pytest.mark.asyncio
class TestExportLpnAllocation:

    async def test_quantity_allocation_claims_whole_lpns_oldest_first(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku, make_lpns
    ):
        oldest, middle, newest = await make_lpns(40, 40, 40)
        container_url, allocation = await _export_allocation(
            client, auth_headers, booking_body(), warehouse.id, sku.id, 80
        )
        allocation_url = f"{container_url}/stock-allocations/{allocation['id']}"

        response = await client.post(
            f"{allocation_url}/allocate",
            json={"allocations": [{"line_id": allocation["lines"][0]["id"]}]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["results"][0]["allocated_lpns"] == [oldest.lpn_number, middle.lpn_number]
        assert body["allocation"]["lines"][0]["allocated_qty"] == 80
        assert body["container_status"] == "allocated"

        record = (await client.get(f"/api/inventory/records/{oldest.id}", headers=auth_headers)).json()
        assert record["allocation_status"] == "allocated"
        assert record["export_allocation_id"] == allocation["id"]

        claimed = await client.get(f"{container_url}/allocated-lpns", headers=auth_headers)
        assert [lpn["lpn_number"] for lpn in claimed.json()] == [oldest.lpn_number, middle.lpn_number]

        [stock] = (await client.get(f"{allocation_url}/available-stock", headers=auth_headers)).json()
        assert [lpn["lpn_number"] for lpn in stock["available"]] == [newest.lpn_number]
        assert len(stock["allocated"]) == 2
        assert stock["allocated_qty"] == 80

    async def test_requested_quantity_is_capped_at_remaining(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku, make_lpns
    ):
        first, second = await make_lpns(40, 40)
        container_url, allocation = await _export_allocation(
            client, auth_headers, booking_body(), warehouse.id, sku.id, 40
        )
        allocate_url = f"{container_url}/stock-allocations/{allocation['id']}/allocate"
        line_id = allocation["lines"][0]["id"]

        response = await client.post(
            allocate_url,
            json={"allocations": [{"line_id": line_id, "quantity": 200}]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["results"][0]["allocated_lpns"] == [first.lpn_number]
        assert response.json()["results"][0]["allocated_qty"] == 40

        response = await client.post(
            allocate_url, json={"allocations": [{"line_id": line_id}]}, headers=auth_headers
        )
        assert response.status_code == 422
        assert "already fully allocated" in response.json()["error"]["message"]

        record = await client.get(f"/api/inventory/records/{second.id}", headers=auth_headers)
        assert record.json()["allocation_status"] == "available"

    async def test_short_stock_is_rejected(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku, make_lpns
    ):
        [lpn] = await make_lpns(40)
        container_url, allocation = await _export_allocation(
            client, auth_headers, booking_body(), warehouse.id, sku.id, 80
        )
        response = await client.post(
            f"{container_url}/stock-allocations/{allocation['id']}/allocate",
            json={"allocations": [{"line_id": allocation["lines"][0]["id"]}]},
            headers=auth_headers,
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["message"].startswith("Insufficient stock. Available: 40, Still needed: 80")
        assert error["details"]["still_needed"] == 80

        record = await client.get(f"/api/inventory/records/{lpn.id}", headers=auth_headers)
        assert record.json()["allocation_status"] == "available"

    async def test_lpn_held_by_outbound_job_is_refused(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku,
        make_lpns, make_outbound,
    ):
        [lpn] = await make_lpns(40)
        job, [line] = await make_outbound(40, job_code="OUT-AAA111")
        response = await client.post(
            f"/api/outbound-inventory/{job.id}/allocate",
            json={"allocations": [{"product_line_id": line.id, "lpn_ids": [lpn.id]}]},
            headers=auth_headers,
        )
        assert response.status_code == 200

        container_url, allocation = await _export_allocation(
            client, auth_headers, booking_body(), warehouse.id, sku.id, 40
        )
        response = await client.post(
            f"{container_url}/stock-allocations/{allocation['id']}/allocate",
            json={"allocations": [{"line_id": allocation["lines"][0]["id"], "lpn_ids": [lpn.id]}]},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert "OUT-AAA111" in response.json()["error"]["message"]

        pickup = await client.post(
            f"{container_url}/pickups",
            json={"allocation_id": allocation["id"], "lpn_ids": [lpn.id], "complete": True},
            headers=auth_headers,
        )
        assert pickup.status_code == 409

        record = await client.get(f"/api/inventory/records/{lpn.id}", headers=auth_headers)
        assert record.json()["allocation_status"] == "allocated"
        assert record.json()["outbound_inventory_id"] == job.id

    async def test_outbound_cannot_take_a_container_lpn(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku,
        make_lpns, make_outbound,
    ):
        [lpn] = await make_lpns(40)
        container_url, allocation = await _export_allocation(
            client, auth_headers, booking_body(), warehouse.id, sku.id, 40
        )
        await client.post(
            f"{container_url}/stock-allocations/{allocation['id']}/allocate",
            json={"allocations": [{"line_id": allocation["lines"][0]["id"]}]},
            headers=auth_headers,
        )

        job, [line] = await make_outbound(40, job_code="OUT-BBB222")
        response = await client.post(
            f"/api/outbound-inventory/{job.id}/allocate",
            json={"allocations": [{"product_line_id": line.id, "lpn_ids": [lpn.id]}]},
            headers=auth_headers,
        )
        assert response.status_code == 409
        [detail] = response.json()["error"]["details"]["lpns"]
        assert detail["export_allocation_id"] == allocation["id"]

        response = await client.post(
            f"/api/outbound-inventory/{job.id}/allocate",
            json={"allocations": [{"product_line_id": line.id}]},
            headers=auth_headers,
        )
        assert response.status_code == 422

    async def test_release_returns_lpns_to_stock(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku, make_lpns
    ):
        [lpn] = await make_lpns(40)
        container_url, allocation = await _export_allocation(
            client, auth_headers, booking_body(), warehouse.id, sku.id, 40
        )
        allocation_url = f"{container_url}/stock-allocations/{allocation['id']}"
        await client.post(
            f"{allocation_url}/allocate",
            json={"allocations": [{"line_id": allocation["lines"][0]["id"]}]},
            headers=auth_headers,
        )

        response = await client.post(f"{allocation_url}/release", json={}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["released_lpns"] == [lpn.lpn_number]
        assert response.json()["allocation"]["lines"][0]["allocated_qty"] == 0

        record = (await client.get(f"/api/inventory/records/{lpn.id}", headers=auth_headers)).json()
        assert record["allocation_status"] == "available"
        assert record["export_allocation_id"] is None

    async def test_hand_typed_quantities_are_derived_from_lpns(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku
    ):
        booking, container = await _started_booking(
            client, auth_headers, EXPORTS, booking_body(), warehouse.id
        )
        response = await client.post(
            f"{EXPORTS}/{booking['id']}/containers/{container['id']}/stock-allocations",
            json={"lines": [{"sku_id": sku.id, "expected_qty": 40, "allocated_qty": 40}]},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["lines"][0]["allocated_qty"] == 0


@pytest.mark.integration
@pytest.mark.asyncio
class TestStatusRecomputeFailures:

    async def test_container_recompute_error_is_logged_and_write_commits(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku, monkeypatch, caplog
    ):
        async def broken(db, container_id):
            raise RuntimeError("status rules exploded")

        booking, container = await _started_booking(
            client, auth_headers, IMPORTS, booking_body(), warehouse.id
        )
        container_url = f"{IMPORTS}/{booking['id']}/containers/{container['id']}"
        monkeypatch.setattr(status_aggregator, "recompute_container_status", broken)
        caplog.set_level(logging.ERROR, logger="containa.status")

        response = await client.post(
            f"{container_url}/stock-allocations",
            json={"lines": [{"sku_id": sku.id, "expected_qty": 80, "received_qty": 80}]},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert "Container status recompute failed" in caplog.text
        assert any(record.exc_info for record in caplog.records)

        allocations = await client.get(f"{container_url}/stock-allocations", headers=auth_headers)
        assert len(allocations.json()) == 1
        assert (await client.get(container_url, headers=auth_headers)).json()["status"] == "expecting"

    async def test_booking_recompute_error_is_logged_and_write_commits(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku, monkeypatch, caplog
    ):
        async def broken(db, event):
            raise RuntimeError("booking rules exploded")

        booking, container = await _started_booking(
            client, auth_headers, IMPORTS, booking_body(), warehouse.id
        )
        booking_url = f"{IMPORTS}/{booking['id']}"
        container_url = f"{booking_url}/containers/{container['id']}"
        monkeypatch.setattr(status_aggregator, "handle_container_status_changed", broken)
        caplog.set_level(logging.ERROR, logger="containa.status")

        response = await client.post(
            f"{container_url}/stock-allocations",
            json={"lines": [{"sku_id": sku.id, "expected_qty": 80, "received_qty": 80}]},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert "Booking status recompute failed" in caplog.text

        assert (await client.get(container_url, headers=auth_headers)).json()["status"] == "received"
        assert (await client.get(booking_url, headers=auth_headers)).json()["status"] == "in_progress"

    async def test_database_error_propagates_and_rolls_back(
        self, client: AsyncClient, auth_headers, booking_body, warehouse, sku, monkeypatch
    ):
        async def broken(db, container_id):
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))

        booking, container = await _started_booking(
            client, auth_headers, IMPORTS, booking_body(), warehouse.id
        )
        container_url = f"{IMPORTS}/{booking['id']}/containers/{container['id']}"
        monkeypatch.setattr(status_aggregator, "recompute_container_status", broken)

        response = await client.post(
            f"{container_url}/stock-allocations",
            json={"lines": [{"sku_id": sku.id, "expected_qty": 80}]},
            headers=auth_headers,
        )
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "DATABASE_UNAVAILABLE"

        monkeypatch.undo()
        allocations = await client.get(f"{container_url}/stock-allocations", headers=auth_headers)
        assert allocations.json() == []
