"""Pickups and the manual outbound steps that follow them."""

import pytest
from httpx import AsyncClient

from app.middleware.exceptions import ConflictError, ValidationFailedError
from app.services.allocation import allocate, release
from app.services.pickup import (
    change_outbound_status,
    complete_pickup,
    create_pickup,
    pickup_quantities,
)


@pytest.mark.unit
class TestQuantities:

    def test_loosened_lpns_are_not_counted_whole(self):
        lpns = [
            {"lpn_id": "a", "hu_qty": 40, "is_loosened": False},
            {"lpn_id": "b", "hu_qty": 40, "is_loosened": True},
        ]
        assert pickup_quantities(lpns, loosened_qty=12, buffer_qty=3) == (52, 55)

    def test_empty(self):
        assert pickup_quantities(None, None, None) == (0, 0)


@pytest.mark.integration
@pytest.mark.asyncio
class TestOutboundPickups:

    async def _allocated_job(self, db_session, ctx, make_lpns, make_outbound):
        lpns = await make_lpns(20, 20)
        job, [line] = await make_outbound(40)
        await allocate(db_session, ctx, job, [{"product_line_id": line.id}])
        return job, line, lpns

    async def test_partial_then_full_pick(self, db_session, ctx, make_lpns, make_outbound):
        job, line, (first, second) = await self._allocated_job(
            db_session, ctx, make_lpns, make_outbound
        )

        pickup = await create_pickup(
            db_session, ctx, lpn_ids=[first.id], outbound_product_line=line, buffer_qty=2,
        )
        assert pickup.pickup_status == "draft"
        assert (pickup.picked_up_qty, pickup.final_picked_up_qty) == (20, 22)
        assert first.allocation_status == "allocated"

        await complete_pickup(db_session, ctx, pickup)
        assert first.allocation_status == "picked"
        assert job.status == "partially_picked"

        rest = await create_pickup(db_session, ctx, lpn_ids=[second.id], outbound_product_line=line)
        await complete_pickup(db_session, ctx, rest)
        assert job.status == "picked"

    async def test_only_lpns_allocated_to_the_line(
        self, db_session, ctx, make_lpns, make_outbound
    ):
        job, line, _ = await self._allocated_job(db_session, ctx, make_lpns, make_outbound)
        [stray] = await make_lpns(10)
        with pytest.raises(ConflictError, match="not allocated to this product line"):
            await create_pickup(db_session, ctx, lpn_ids=[stray.id], outbound_product_line=line)

    async def test_needs_exactly_one_target(self, db_session, ctx):
        with pytest.raises(ValidationFailedError):
            await create_pickup(db_session, ctx, lpn_ids=[])

    async def test_completing_twice_is_a_no_op(self, db_session, ctx, make_lpns, make_outbound):
        job, line, (first, _) = await self._allocated_job(db_session, ctx, make_lpns, make_outbound)
        pickup = await create_pickup(db_session, ctx, lpn_ids=[first.id], outbound_product_line=line)
        await complete_pickup(db_session, ctx, pickup)
        assert await complete_pickup(db_session, ctx, pickup) is pickup
        assert pickup.pickup_status == "completed"

    async def test_stale_draft_cannot_take_an_lpn_reallocated_elsewhere(
        self, db_session, ctx, make_lpns, make_outbound
    ):
        job, line, (first, _) = await self._allocated_job(db_session, ctx, make_lpns, make_outbound)
        draft = await create_pickup(db_session, ctx, lpn_ids=[first.id], outbound_product_line=line)

        await release(db_session, ctx, job, line.id, [first.id])
        other, [other_line] = await make_outbound(20, job_code="OUT-BBB222")
        await allocate(db_session, ctx, other, [
            {"product_line_id": other_line.id, "lpn_ids": [first.id]},
        ])

        with pytest.raises(ConflictError, match="OUT-BBB222") as exc:
            await complete_pickup(db_session, ctx, draft)
        assert exc.value.details["outbound_inventory_id"] == other.id
        assert draft.pickup_status == "draft"
        assert first.allocation_status == "allocated"
        assert first.outbound_inventory_id == other.id

    async def test_stale_draft_after_release(self, db_session, ctx, make_lpns, make_outbound):
        job, line, (first, _) = await self._allocated_job(db_session, ctx, make_lpns, make_outbound)
        draft = await create_pickup(db_session, ctx, lpn_ids=[first.id], outbound_product_line=line)
        await release(db_session, ctx, job, line.id, [first.id])

        with pytest.raises(ConflictError, match="no longer allocated to this product line"):
            await complete_pickup(db_session, ctx, draft)
        assert first.allocation_status == "available"


@pytest.mark.integration
@pytest.mark.asyncio
class TestManualOutboundSteps:

    async def test_dispatch_marks_picked_lpns(self, db_session, ctx, make_lpns, make_outbound):
        lpns = await make_lpns(20, 20)
        job, [line] = await make_outbound(40)
        await allocate(db_session, ctx, job, [{"product_line_id": line.id}])
        await change_outbound_status(db_session, ctx, job, "ready_to_pick")

        pickup = await create_pickup(
            db_session, ctx, lpn_ids=[lpn.id for lpn in lpns], outbound_product_line=line,
        )
        await complete_pickup(db_session, ctx, pickup)
        assert job.status == "picked"

        await change_outbound_status(db_session, ctx, job, "ready_to_dispatch")
        await change_outbound_status(db_session, ctx, job, "dispatched")
        assert job.status == "dispatched"
        assert {lpn.allocation_status for lpn in lpns} == {"dispatched"}

    async def test_cannot_skip_steps(self, db_session, ctx, make_outbound):
        job, _ = await make_outbound(10)
        with pytest.raises(ValidationFailedError) as exc:
            await change_outbound_status(db_session, ctx, job, "dispatched")
        assert exc.value.details == {"current": "draft", "target": "dispatched"}
        assert job.status == "draft"


@pytest.mark.api
@pytest.mark.asyncio
class TestPickupApi:

    async def test_create_and_complete(self, client: AsyncClient, auth_headers, make_lpns, make_outbound):
        [lpn] = await make_lpns(40)
        job, [line] = await make_outbound(40)
        await client.post(
            f"/api/outbound-inventory/{job.id}/allocate",
            json={"allocations": [{"product_line_id": line.id}]},
            headers=auth_headers,
        )

        response = await client.post(
            f"/api/outbound-inventory/{job.id}/pickups",
            json={"product_line_id": line.id, "lpn_ids": [lpn.id], "complete": True},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["pickup_status"] == "completed"
        assert response.json()["final_picked_up_qty"] == 40

        job_out = await client.get(f"/api/outbound-inventory/{job.id}", headers=auth_headers)
        assert job_out.json()["status"] == "picked"

        listed = await client.get(f"/api/outbound-inventory/{job.id}/pickups", headers=auth_headers)
        assert len(listed.json()) == 1

    async def test_status_endpoint_rejects_invalid_step(
        self, client: AsyncClient, auth_headers, make_outbound
    ):
        job, _ = await make_outbound(10)
        response = await client.post(
            f"/api/outbound-inventory/{job.id}/status",
            json={"status": "dispatched"},
            headers=auth_headers,
        )
        assert response.status_code == 400
