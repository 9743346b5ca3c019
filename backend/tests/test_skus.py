"""SKU and storage unit endpoints, and the stacking fields derived between them."""

import pytest
from httpx import AsyncClient


@pytest.mark.api
@pytest.mark.asyncio
class TestSkuStacking:

    async def _pallet(self, client, headers, length=1200, width=1000) -> dict:
        response = await client.post(
            "/api/storage-units",
            json={"name": "PALLET", "length_per_su_mm": length, "width_per_su_mm": width},
            headers=headers,
        )
        assert response.status_code == 201
        return response.json()

    async def _sku(self, client, headers, storage_unit_id, **extra) -> dict:
        body = {
            "sku_code": "CTN-500",
            "description": "Carton 500ml x 12",
            "storage_unit_id": storage_unit_id,
            "hu_per_su": 40,
            "length_per_hu_mm": 400,
            "width_per_hu_mm": 300,
            "height_per_hu_mm": 250,
        }
        body.update(extra)
        response = await client.post("/api/skus", json=body, headers=headers)
        assert response.status_code == 201
        return response.json()

    @staticmethod
    def _stacking(sku: dict) -> tuple:
        return sku["cases_per_layer"], sku["layers_per_pallet"], sku["cases_per_pallet"]

    async def test_derived_on_create(self, client: AsyncClient, auth_headers):
        pallet = await self._pallet(client, auth_headers)
        sku = await self._sku(client, auth_headers, pallet["id"])
        assert self._stacking(sku) == (9, 4, 36)
        assert sku["cases_per_layer_calculated"] is True
        assert sku["pick_strategy"] == "FIFO"

    async def test_manual_value_sticks_and_can_be_cleared(self, client: AsyncClient, auth_headers):
        pallet = await self._pallet(client, auth_headers)
        sku = await self._sku(client, auth_headers, pallet["id"], cases_per_layer=10)
        assert self._stacking(sku) == (10, 4, 40)
        assert sku["cases_per_layer_calculated"] is False

        response = await client.patch(
            f"/api/skus/{sku['id']}", json={"cases_per_layer": None}, headers=auth_headers
        )
        assert self._stacking(response.json()) == (9, 4, 36)
        assert response.json()["cases_per_layer_calculated"] is True

    async def test_resizing_the_storage_unit_rederives(self, client: AsyncClient, auth_headers):
        pallet = await self._pallet(client, auth_headers)
        sku = await self._sku(client, auth_headers, pallet["id"])

        response = await client.patch(
            f"/api/storage-units/{pallet['id']}", json={"length_per_su_mm": 800}, headers=auth_headers
        )
        assert response.status_code == 200

        sku = (await client.get(f"/api/skus/{sku['id']}", headers=auth_headers)).json()
        assert self._stacking(sku) == (6, 6, 36)

    async def test_storage_unit_in_use_cannot_be_deleted(self, client: AsyncClient, auth_headers):
        pallet = await self._pallet(client, auth_headers)
        await self._sku(client, auth_headers, pallet["id"])
        response = await client.delete(f"/api/storage-units/{pallet['id']}", headers=auth_headers)
        assert response.status_code == 409

    async def test_sku_code_unique_per_tenant(
        self, client: AsyncClient, auth_headers, other_headers
    ):
        await self._sku(client, auth_headers, None)
        response = await client.post(
            "/api/skus", json={"sku_code": "CTN-500"}, headers=auth_headers
        )
        assert response.status_code == 409
        assert response.json()["error"]["details"] == {"sku_code": "CTN-500"}

        response = await client.post(
            "/api/skus", json={"sku_code": "CTN-500"}, headers=other_headers
        )
        assert response.status_code == 201

    async def test_search(self, client: AsyncClient, auth_headers):
        await self._sku(client, auth_headers, None)
        await self._sku(client, auth_headers, None, sku_code="BAG-25", description="Rice 25kg")

        response = await client.get("/api/skus", params={"search": "rice"}, headers=auth_headers)
        assert [s["sku_code"] for s in response.json()["items"]] == ["BAG-25"]
