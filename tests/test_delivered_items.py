"""Delivery and revert flows."""

import pytest
from httpx import AsyncClient

from conftest import headers_for
from test_items import _create

DELIVERY = {"customer_name": "Maria", "customer_last_name": "Silva"}


async def _deliver(client: AsyncClient, headers: dict, item_id: str):
    return await client.post(
        f"/api/delivered-items/{item_id}/deliver", headers=headers, json=DELIVERY
    )


@pytest.mark.api
@pytest.mark.asyncio
class TestDelivery:

    async def test_deliver_item(self, client: AsyncClient, employee, employee_headers):
        item = await _create(client, employee_headers)
        response = await _deliver(client, employee_headers, item["id"])

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "delivered"
        assert data["delivered_by"] == employee.id
        assert data["customer_name"] == "Maria"
        assert data["delivered_at"] is not None

    async def test_deliver_has_no_own_restriction(
        self, client: AsyncClient, employee_headers, other_employee_headers
    ):
        item = await _create(client, other_employee_headers)
        response = await _deliver(client, employee_headers, item["id"])
        assert response.status_code == 200

    async def test_deliver_twice_rejected(self, client: AsyncClient, employee_headers):
        item = await _create(client, employee_headers)
        await _deliver(client, employee_headers, item["id"])
        response = await _deliver(client, employee_headers, item["id"])
        assert response.status_code == 400

    async def test_delivered_items_cannot_be_edited(self, client: AsyncClient, employee_headers):
        item = await _create(client, employee_headers)
        await _deliver(client, employee_headers, item["id"])
        response = await client.put(
            f"/api/items/{item['id']}", headers=employee_headers, json={"location": "Elsewhere"}
        )
        assert response.status_code == 400

    async def test_list_delivered(self, client: AsyncClient, employee_headers, supervisor_headers):
        first = await _create(client, employee_headers)
        await _create(client, employee_headers, flight_number="AC777")
        await _deliver(client, employee_headers, first["id"])

        response = await client.get("/api/delivered-items/", headers=supervisor_headers)
        assert response.status_code == 200
        assert [i["id"] for i in response.json()] == [first["id"]]

        found = await client.get(
            "/api/delivered-items/", params={"search": "silva"}, headers=supervisor_headers
        )
        assert len(found.json()) == 1

    async def test_get_undelivered_item_is_not_found(self, client: AsyncClient, employee_headers):
        item = await _create(client, employee_headers)
        response = await client.get(f"/api/delivered-items/{item['id']}", headers=employee_headers)
        assert response.status_code == 404


@pytest.mark.api
@pytest.mark.asyncio
class TestRevert:

    async def test_supervisor_cannot_revert(
        self, client: AsyncClient, employee_headers, supervisor_headers
    ):
        item = await _create(client, employee_headers)
        await _deliver(client, employee_headers, item["id"])

        response = await client.post(
            f"/api/delivered-items/{item['id']}/revert", headers=supervisor_headers
        )
        assert response.status_code == 403

    async def test_admin_reverts_delivery(
        self, client: AsyncClient, admin, employee_headers, admin_headers
    ):
        item = await _create(client, employee_headers)
        delivered = (await _deliver(client, employee_headers, item["id"])).json()

        response = await client.post(
            f"/api/delivered-items/{item['id']}/revert", headers=admin_headers
        )

        assert response.status_code == 201
        restored = response.json()
        assert restored["id"] != item["id"]
        assert restored["status"] == "onHand"
        assert restored["found_by"] == admin.id
        assert restored["date_found"] == delivered["delivered_at"]

        active = await client.get("/api/delivered-items/", headers=admin_headers)
        assert active.json() == []
        archived = await client.get(
            "/api/delivered-items/", params={"include_archived": True}, headers=admin_headers
        )
        assert [i["id"] for i in archived.json()] == [item["id"]]
        assert archived.json()[0]["archived"] is True

    async def test_revert_twice_rejected(self, client: AsyncClient, employee_headers, admin_headers):
        item = await _create(client, employee_headers)
        await _deliver(client, employee_headers, item["id"])
        await client.post(f"/api/delivered-items/{item['id']}/revert", headers=admin_headers)

        response = await client.post(
            f"/api/delivered-items/{item['id']}/revert", headers=admin_headers
        )
        assert response.status_code == 400

    async def test_granted_revert_permission(
        self, client: AsyncClient, supervisor, employee_headers, admin_headers
    ):
        await client.put(
            f"/api/users/{supervisor.id}/permissions",
            headers=admin_headers,
            json={"permissions": ["revert_delivered_status"]},
        )
        item = await _create(client, employee_headers)
        await _deliver(client, employee_headers, item["id"])

        response = await client.post(
            f"/api/delivered-items/{item['id']}/revert", headers=headers_for(supervisor)
        )
        assert response.status_code == 201


@pytest.mark.api
@pytest.mark.asyncio
class TestDeliveredCorrections:

    async def test_finder_corrects_own_delivery(self, client: AsyncClient, employee_headers):
        item = await _create(client, employee_headers)
        await _deliver(client, employee_headers, item["id"])

        response = await client.put(
            f"/api/delivered-items/{item['id']}",
            headers=employee_headers,
            json={"customer_name": "Mariana", "customer_last_name": None},
        )
        assert response.status_code == 200
        assert response.json()["customer_name"] == "Mariana"
        assert response.json()["customer_last_name"] == "Silva"
        assert response.json()["status"] == "delivered"

    async def test_employee_cannot_correct_others_delivery(
        self, client: AsyncClient, employee_headers, other_employee_headers
    ):
        item = await _create(client, other_employee_headers)
        await _deliver(client, other_employee_headers, item["id"])

        response = await client.put(
            f"/api/delivered-items/{item['id']}",
            headers=employee_headers,
            json={"customer_name": "Mariana"},
        )
        assert response.status_code == 403

    async def test_supervisor_corrects_any_delivery(
        self, client: AsyncClient, employee_headers, supervisor_headers
    ):
        item = await _create(client, employee_headers)
        await _deliver(client, employee_headers, item["id"])

        response = await client.put(
            f"/api/delivered-items/{item['id']}",
            headers=supervisor_headers,
            json={"description": "Blue backpack, torn strap"},
        )
        assert response.status_code == 200
        assert response.json()["description"] == "Blue backpack, torn strap"

    async def test_archived_delivery_cannot_be_corrected(
        self, client: AsyncClient, employee_headers, admin_headers
    ):
        item = await _create(client, employee_headers)
        await _deliver(client, employee_headers, item["id"])
        await client.post(f"/api/delivered-items/{item['id']}/revert", headers=admin_headers)

        response = await client.put(
            f"/api/delivered-items/{item['id']}",
            headers=admin_headers,
            json={"customer_name": "Mariana"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ITEM_ARCHIVED"

    async def test_on_hand_item_is_not_a_delivery(self, client: AsyncClient, employee_headers):
        item = await _create(client, employee_headers)
        response = await client.put(
            f"/api/delivered-items/{item['id']}",
            headers=employee_headers,
            json={"customer_name": "Mariana"},
        )
        assert response.status_code == 404

    async def test_my_deliveries_are_filtered_by_finder(
        self, client: AsyncClient, employee_headers, other_employee_headers
    ):
        mine = await _create(client, employee_headers)
        theirs = await _create(client, other_employee_headers)
        await _deliver(client, employee_headers, mine["id"])
        await _deliver(client, employee_headers, theirs["id"])

        response = await client.get("/api/delivered-items/my", headers=employee_headers)
        assert response.status_code == 200
        assert [i["id"] for i in response.json()] == [mine["id"]]
