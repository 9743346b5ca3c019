"""Inbound jobs: creation, receiving and put-away."""

import pytest
from httpx import AsyncClient

BASE = "/api/inbound-inventory"


@pytest.mark.api
@pytest.mark.asyncio
class TestInboundFlow:

    async def _create(self, client, headers, warehouse, sku, payer, expected=80) -> dict:
        response = await client.post(
            BASE,
            json={
                "delivery_customer": f"paying-customers:{payer.id}",
                "delivery_customer_reference": "PO-7781",
                "warehouse_id": warehouse.id,
                "lines": [{"sku_id": sku.id, "batch_number": "B1", "expected_qty": expected}],
            },
            headers=headers,
        )
        assert response.status_code == 201
        return response.json()

    async def test_create_snapshots_customer_and_enriches_lines(
        self, client: AsyncClient, auth_headers, warehouse, sku, parties
    ):
        _, payer = parties
        job = await self._create(client, auth_headers, warehouse, sku, payer)
        assert job["job_code"].startswith("IN-")
        assert job["delivery_customer"] == {"kind": "paying_customer", "id": payer.id}
        assert job["customer_name"] == "Blue Water Imports"
        assert (job["customer_location"], job["customer_state"]) == ("Sydney", "NSW")
        [line] = job["lines"]
        assert line["sku_description"] == "Carton 500ml x 12"
        assert line["weight_per_hu"] == 7.5
        assert job["completed_date"] is None

    async def test_receive_then_put_away(
        self, client: AsyncClient, auth_headers, warehouse, sku, parties
    ):
        _, payer = parties
        job = await self._create(client, auth_headers, warehouse, sku, payer)
        line_id = job["lines"][0]["id"]

        response = await client.post(
            f"{BASE}/{job['id']}/receive",
            json={"lines": [{"product_line_id": line_id, "received_qty": 80}]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["lines"][0]["received_qty"] == 80
        assert response.json()["completed_date"] is not None

        response = await client.post(
            f"{BASE}/{job['id']}/put-away",
            json={
                "product_line_id": line_id,
                "pallets": [{"hu_qty": 40, "location": "A-01-01"}, {"hu_qty": 40, "location": "A-01-02"}],
            },
            headers=auth_headers,
        )
        assert response.status_code == 201
        lpns = response.json()
        assert [lpn["hu_qty"] for lpn in lpns] == [40, 40]
        assert all(lpn["lpn_number"].startswith("LPN") for lpn in lpns)
        assert {lpn["warehouse_id"] for lpn in lpns} == {warehouse.id}
        assert {lpn["allocation_status"] for lpn in lpns} == {"available"}

        # Everything received is already on the shelf
        response = await client.post(
            f"{BASE}/{job['id']}/put-away",
            json={"product_line_id": line_id, "pallets": [{"hu_qty": 1}]},
            headers=auth_headers,
        )
        assert response.status_code == 400

        inventory = (await client.get("/api/inventory", headers=auth_headers)).json()
        [item] = inventory["items"]
        assert item["qty_available"] == 80

    async def test_put_away_before_receiving(
        self, client: AsyncClient, auth_headers, warehouse, sku, parties
    ):
        _, payer = parties
        job = await self._create(client, auth_headers, warehouse, sku, payer)
        response = await client.post(
            f"{BASE}/{job['id']}/put-away",
            json={"product_line_id": job["lines"][0]["id"], "pallets": [{"hu_qty": 40}]},
            headers=auth_headers,
        )
        assert response.status_code == 422

    async def test_receive_unknown_line(
        self, client: AsyncClient, auth_headers, warehouse, sku, parties
    ):
        _, payer = parties
        job = await self._create(client, auth_headers, warehouse, sku, payer)
        response = await client.post(
            f"{BASE}/{job['id']}/receive",
            json={"lines": [{"product_line_id": "nope", "received_qty": 5}]},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"lines": ["nope"]}

    async def test_job_with_stock_cannot_be_deleted(
        self, client: AsyncClient, auth_headers, warehouse, sku, parties
    ):
        _, payer = parties
        job = await self._create(client, auth_headers, warehouse, sku, payer)
        line_id = job["lines"][0]["id"]
        await client.post(
            f"{BASE}/{job['id']}/receive",
            json={"lines": [{"product_line_id": line_id, "received_qty": 80}]},
            headers=auth_headers,
        )
        await client.post(
            f"{BASE}/{job['id']}/put-away",
            json={"product_line_id": line_id, "pallets": [{"hu_qty": 80}]},
            headers=auth_headers,
        )

        response = await client.delete(f"{BASE}/{job['id']}", headers=auth_headers)
        assert response.status_code == 409

    async def test_viewer_cannot_create(self, client: AsyncClient, viewer_headers):
        response = await client.post(BASE, json={"lines": []}, headers=viewer_headers)
        assert response.status_code == 403
