"""
HTTP API tests.
Covers: event intake, request-scoped latches, process-wide invoice memo,
activity listing filters, option sources, single record lookup, health.
"""
from __future__ import annotations

import asyncio
import uuid
from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

PRODUCT = "Magento\\Catalog\\Model\\Product\\Interceptor"


def _event(kind: str, **fields: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"kind": kind, "actor": {"id": 1, "username": "admin"}}
    payload.update(fields)
    return payload


async def _post_events(client: AsyncClient, *events: dict[str, Any], **kwargs: Any) -> dict:
    resp = await client.post("/api/v1/events/", json={"events": list(events)}, **kwargs)
    assert resp.status_code == 202, resp.text
    return resp.json()


class TestEventIntake:
    async def test_batch_is_processed_in_order(self, client: AsyncClient):
        body = await _post_events(
            client,
            _event("admin_login", store_id=0),
            _event("entity_saved", entity_type=PRODUCT, entity_id=5, is_new=True, data={"name": "Shirt"}),
            headers={"User-Agent": "pytest-agent", "X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
        )
        assert body == {"processed": 2}

        resp = await client.get("/api/v1/activity/")
        data = resp.json()
        assert data["total"] == 2
        by_action = {item["action"]: item for item in data["items"]}
        assert by_action["login"]["entity_type"] == "Admin Login"
        assert by_action["login"]["store_id"] == 0
        assert by_action["create"]["changes"] == {"name": "Shirt"}
        assert by_action["create"]["client_ip"] == "203.0.113.9"
        assert by_action["create"]["user_agent"] == "pytest-agent"
        assert by_action["create"]["actor_id"] == "1"

    async def test_client_address_without_proxy_header(self, client: AsyncClient):
        await _post_events(client, _event("admin_logout"))
        item = (await client.get("/api/v1/activity/")).json()["items"][0]
        assert item["client_ip"] == "127.0.0.1"

    async def test_unknown_kind_rejected(self, client: AsyncClient):
        resp = await client.post("/api/v1/events/", json={"events": [_event("cache_flushed")]})
        assert resp.status_code == 422
        assert resp.json()["error"] == "VALIDATION_ERROR"

    async def test_empty_batch_rejected(self, client: AsyncClient):
        resp = await client.post("/api/v1/events/", json={"events": []})
        assert resp.status_code == 422

    async def test_config_latch_is_per_request(self, client: AsyncClient):
        config = _event("config_saved", section="web", groups={"url": {"fields": {"redirect": {"value": "1"}}}})
        await _post_events(client, config, {**config, "section": "catalog"})
        assert (await client.get("/api/v1/activity/")).json()["total"] == 1

        await _post_events(client, config)
        assert (await client.get("/api/v1/activity/")).json()["total"] == 2

    async def test_concurrent_requests_each_log_config(self, client: AsyncClient):
        config = _event("config_saved", section="web", groups={"url": {"fields": {"redirect": {"value": "1"}}}})
        await asyncio.gather(
            _post_events(client, config),
            _post_events(client, {**config, "section": "catalog"}),
        )
        assert (await client.get("/api/v1/activity/")).json()["total"] == 2

    async def test_invoice_memo_spans_requests(self, client: AsyncClient):
        invoice = _event("invoice_created", invoice_id=7, order_id=3, increment_id="000000001")
        await _post_events(client, invoice, invoice)
        await _post_events(client, invoice)

        data = (await client.get("/api/v1/activity/")).json()
        assert data["total"] == 1
        assert data["items"][0]["entity_type"] == "Invoice Creation"

    async def test_update_flow_through_api(self, client: AsyncClient):
        saved = _event("entity_saved", entity_type=PRODUCT, entity_id=5, data={"name": "Shirt", "price": "9.00"})
        await _post_events(client, {**saved, "is_new": True})
        await _post_events(client, {**saved, "data": {"name": "Shirt", "price": 9}})
        await _post_events(client, {**saved, "data": {"name": "Polo", "price": 9}})

        data = (await client.get("/api/v1/activity/", params={"action": "update"})).json()
        assert data["total"] == 1
        assert data["items"][0]["changes"] == {"name": "Polo"}


class TestActivityListing:
    async def _seed(self, client: AsyncClient) -> None:
        await _post_events(
            client,
            _event("admin_login", store_id=1),
            _event("admin_login", store_id=2),
            _event("entity_deleted", entity_type="Magento\\Cms\\Model\\Page", entity_id=4, store_id=1),
        )

    async def test_filters(self, client: AsyncClient):
        await self._seed(client)

        by_action = (await client.get("/api/v1/activity/", params={"action": "login"})).json()
        assert by_action["total"] == 2

        by_store = (await client.get("/api/v1/activity/", params={"store_id": 1})).json()
        assert by_store["total"] == 2

        by_type = (
            await client.get("/api/v1/activity/", params={"entity_type": "Magento\\Cms\\Model\\Page"})
        ).json()
        assert by_type["total"] == 1
        assert by_type["items"][0]["action"] == "delete"

    async def test_pagination(self, client: AsyncClient):
        await self._seed(client)
        data = (await client.get("/api/v1/activity/", params={"page": 2, "size": 2})).json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert len(data["items"]) == 1

    async def test_invalid_action_filter(self, client: AsyncClient):
        resp = await client.get("/api/v1/activity/", params={"action": "export"})
        assert resp.status_code == 422

    async def test_inverted_date_range(self, client: AsyncClient):
        resp = await client.get(
            "/api/v1/activity/",
            params={"date_from": "2026-05-02T00:00:00", "date_to": "2026-05-01T00:00:00"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "BAD_REQUEST"

    async def test_get_single_record(self, client: AsyncClient):
        await self._seed(client)
        item = (await client.get("/api/v1/activity/", params={"action": "delete"})).json()["items"][0]

        resp = await client.get(f"/api/v1/activity/{item['id']}")
        assert resp.status_code == 200
        assert resp.json()["entity_id"] == "4"

    async def test_missing_record(self, client: AsyncClient):
        resp = await client.get(f"/api/v1/activity/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NOT_FOUND"

    async def test_attribute_changes_display(self, client: AsyncClient):
        attribute = "Magento\\Catalog\\Model\\ResourceModel\\Eav\\Attribute"
        await _post_events(
            client,
            _event(
                "entity_saved", entity_type=attribute, entity_id=93, is_new=True,
                data={"attribute_code": "color", "optionvisual": {"value": {"option_0": ["Red"]}}},
            ),
        )
        item = (await client.get("/api/v1/activity/")).json()["items"][0]
        assert item["changes_display"] == {"optionvisual": {"value": {"option_0": ["Red"]}}}
        assert item["changes"]["attribute_code"] == "color"


class TestOptionsAndHealth:
    async def test_options(self, client: AsyncClient):
        data = (await client.get("/api/v1/activity/options")).json()
        assert [option["value"] for option in data["actions"]] == [
            "login", "logout", "create", "update", "delete",
        ]
        assert {"value": "products", "label": "Products"} in data["sections"]
        assert [option["value"] for option in data["retention_periods"]] == ["1", "2", "3", "6", "12"]

    async def test_health(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
