"""Outbound allocation: FIFO/FEFO by quantity, manual LPNs, release."""

from datetime import date

import pytest
from httpx import AsyncClient

from app.middleware.exceptions import ConflictError, ValidationFailedError
from app.models.tenant.inbound import InboundProductLine
from app.services.allocation import allocate, release


@pytest.mark.integration
@pytest.mark.asyncio
class TestAllocateByQuantity:

    async def test_fifo_takes_whole_lpns_oldest_first(
        self, db_session, ctx, make_lpns, make_outbound
    ):
        oldest, middle, newest = await make_lpns(30, 30, 30)
        job, [line] = await make_outbound(50)

        [result] = await allocate(db_session, ctx, job, [{"product_line_id": line.id}])

        assert result["allocated_lpns"] == [oldest.lpn_number, middle.lpn_number]
        assert result["allocated_qty"] == 60
        assert newest.allocation_status == "available"
        assert job.status == "allocated"

    async def test_short_stock_is_rejected(self, db_session, ctx, make_lpns, make_outbound):
        [lpn] = await make_lpns(20)
        job, [line] = await make_outbound(50)
        with pytest.raises(ValidationFailedError) as exc:
            await allocate(db_session, ctx, job, [{"product_line_id": line.id}])
        assert exc.value.message.startswith("Insufficient stock. Available: 20, Still needed: 50")
        assert exc.value.details["available"] == 20
        assert exc.value.details["still_needed"] == 50
        assert lpn.allocation_status == "available"
        assert job.status == "draft"

    async def test_requested_quantity_is_capped_at_remaining(
        self, db_session, ctx, make_lpns, make_outbound
    ):
        first, second, third = await make_lpns(30, 30, 30)
        job, [line] = await make_outbound(30)
        [result] = await allocate(db_session, ctx, job, [
            {"product_line_id": line.id, "quantity": 90},
        ])
        assert result["allocated_lpns"] == [first.lpn_number]
        assert result["allocated_qty"] == 30
        assert second.allocation_status == "available"
        assert third.allocation_status == "available"

    async def test_partial_quantity_is_partially_allocated(
        self, db_session, ctx, make_lpns, make_outbound
    ):
        await make_lpns(20, 20, 20)
        job, [line] = await make_outbound(50)
        [result] = await allocate(db_session, ctx, job, [
            {"product_line_id": line.id, "quantity": 20},
        ])
        assert result["allocated_qty"] == 20
        assert job.status == "partially_allocated"

    async def test_batch_filter(self, db_session, ctx, make_lpns, make_outbound):
        await make_lpns(30, batch_number="B1")
        [b2] = await make_lpns(30, batch_number="B2")
        job, [line] = await make_outbound(30)
        [result] = await allocate(db_session, ctx, job, [
            {"product_line_id": line.id, "batch_number": "B2"},
        ])
        assert result["allocated_lpns"] == [b2.lpn_number]

    async def test_fefo_prefers_earliest_expiry(
        self, db_session, ctx, sku, make_lpns, make_outbound, inbound_job
    ):
        job_in, late_line = inbound_job
        late_line.expiry_date = date(2027, 6, 1)
        early_line = InboundProductLine(
            tenant_id=job_in.tenant_id,
            inbound_inventory_id=job_in.id,
            sku_id=sku.id,
            received_qty=40,
            expiry_date=date(2027, 1, 1),
        )
        db_session.add(early_line)
        await db_session.flush()

        older, newer = await make_lpns(40, 40)
        older.inbound_product_line_id = late_line.id
        newer.inbound_product_line_id = early_line.id
        sku.pick_strategy = "FEFO"
        await db_session.flush()

        job, [line] = await make_outbound(40)
        [result] = await allocate(db_session, ctx, job, [{"product_line_id": line.id}])
        assert result["allocated_lpns"] == [newer.lpn_number]

    async def test_no_stock(self, db_session, ctx, make_outbound):
        job, [line] = await make_outbound(10)
        with pytest.raises(ValidationFailedError, match="No available stock"):
            await allocate(db_session, ctx, job, [{"product_line_id": line.id}])

    async def test_fully_allocated_line_is_rejected(
        self, db_session, ctx, make_lpns, make_outbound
    ):
        await make_lpns(40, 40)
        job, [line] = await make_outbound(40)
        await allocate(db_session, ctx, job, [{"product_line_id": line.id}])
        with pytest.raises(ValidationFailedError, match="already fully allocated"):
            await allocate(db_session, ctx, job, [{"product_line_id": line.id}])

    async def test_empty_request(self, db_session, ctx, make_outbound):
        job, _ = await make_outbound(10)
        with pytest.raises(ValidationFailedError):
            await allocate(db_session, ctx, job, [])


@pytest.mark.integration
@pytest.mark.asyncio
class TestManualAllocation:

    async def test_named_lpns(self, db_session, ctx, make_lpns, make_outbound):
        first, second = await make_lpns(25, 25)
        job, [line] = await make_outbound(25)
        [result] = await allocate(db_session, ctx, job, [
            {"product_line_id": line.id, "lpn_ids": [second.id]},
        ])
        assert result["allocated_lpns"] == [second.lpn_number]
        assert first.allocation_status == "available"

    async def test_lpn_claimed_by_other_job(self, db_session, ctx, make_lpns, make_outbound):
        [lpn] = await make_lpns(25)
        job_1, [line_1] = await make_outbound(25, job_code="OUT-AAA111")
        job_2, [line_2] = await make_outbound(25, job_code="OUT-BBB222")
        await allocate(db_session, ctx, job_1, [{"product_line_id": line_1.id, "lpn_ids": [lpn.id]}])

        with pytest.raises(ConflictError) as exc:
            await allocate(db_session, ctx, job_2, [
                {"product_line_id": line_2.id, "lpn_ids": [lpn.id]},
            ])
        assert exc.value.details["lpns"][0]["outbound_inventory_id"] == job_1.id
        assert lpn.outbound_inventory_id == job_1.id

    async def test_wrong_sku(self, db_session, ctx, make_lpns, make_outbound):
        [lpn] = await make_lpns(25)
        lpn.sku_id = "another-sku"
        await db_session.flush()
        job, [line] = await make_outbound(25)
        with pytest.raises(ValidationFailedError, match="different SKU"):
            await allocate(db_session, ctx, job, [{"product_line_id": line.id, "lpn_ids": [lpn.id]}])

    async def test_line_of_another_job(self, db_session, ctx, make_outbound):
        job_1, _ = await make_outbound(10, job_code="OUT-AAA111")
        _, [line_2] = await make_outbound(10, job_code="OUT-BBB222")
        with pytest.raises(ValidationFailedError, match="does not belong"):
            await allocate(db_session, ctx, job_1, [{"product_line_id": line_2.id, "quantity": 5}])


@pytest.mark.integration
@pytest.mark.asyncio
class TestRelease:

    async def test_release_returns_stock_and_resets_job(
        self, db_session, ctx, make_lpns, make_outbound
    ):
        lpns = await make_lpns(20, 20)
        job, [line] = await make_outbound(40)
        await allocate(db_session, ctx, job, [{"product_line_id": line.id}])
        assert job.status == "allocated"

        released = await release(db_session, ctx, job, line.id)
        assert sorted(released) == sorted(lpn.lpn_number for lpn in lpns)
        assert all(lpn.allocation_status == "available" for lpn in lpns)
        assert line.allocated_qty == 0
        assert job.status == "draft"

    async def test_release_some(self, db_session, ctx, make_lpns, make_outbound):
        first, second = await make_lpns(20, 20)
        job, [line] = await make_outbound(40)
        await allocate(db_session, ctx, job, [{"product_line_id": line.id}])
        await release(db_session, ctx, job, line.id, [first.id])
        assert line.allocated_qty == 20
        assert job.status == "partially_allocated"


@pytest.mark.api
@pytest.mark.asyncio
class TestAllocationApi:

    async def test_allocate_endpoint(self, client: AsyncClient, auth_headers, make_lpns, make_outbound):
        await make_lpns(40, 40)
        job, [line] = await make_outbound(80)
        response = await client.post(
            f"/api/outbound-inventory/{job.id}/allocate",
            json={"allocations": [{"product_line_id": line.id}]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "allocated"
        assert body["results"][0]["allocated_qty"] == 80

        detail = await client.get(f"/api/outbound-inventory/{job.id}", headers=auth_headers)
        assert detail.json()["lines"][0]["allocated_qty"] == 80

    async def test_conflict_rolls_back_whole_request(
        self, client: AsyncClient, auth_headers, make_lpns, make_outbound
    ):
        free, taken = await make_lpns(10, 10)
        other, [other_line] = await make_outbound(10, job_code="OUT-AAA111")
        job, [line_1, line_2] = await make_outbound(10, 10, job_code="OUT-BBB222")
        first = await client.post(
            f"/api/outbound-inventory/{other.id}/allocate",
            json={"allocations": [{"product_line_id": other_line.id, "lpn_ids": [taken.id]}]},
            headers=auth_headers,
        )
        assert first.status_code == 200

        response = await client.post(
            f"/api/outbound-inventory/{job.id}/allocate",
            json={"allocations": [
                {"product_line_id": line_1.id, "lpn_ids": [free.id]},
                {"product_line_id": line_2.id, "lpn_ids": [taken.id]},
            ]},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

        record = await client.get(f"/api/inventory/records/{free.id}", headers=auth_headers)
        assert record.json()["allocation_status"] == "available"

    async def test_viewer_cannot_allocate(self, client: AsyncClient, viewer_headers, make_outbound):
        job, [line] = await make_outbound(10)
        response = await client.post(
            f"/api/outbound-inventory/{job.id}/allocate",
            json={"allocations": [{"product_line_id": line.id}]},
            headers=viewer_headers,
        )
        assert response.status_code == 403
