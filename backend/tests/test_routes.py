# Overview: Pytest coverage for the fulfillment JSON API (status codes, actor header, error mapping).

import pytest


IMAGE = "https://cdn.example.test/pods/1.jpg"


@pytest.fixture
def created_order(client, catalog, actor_headers, sample_items):
    resp = client.post("/api/orders/", json={
        "salesperson_id": "seller-1",
        "store_id": "store-1",
        "planogram_id": "plano-1",
        "items": sample_items,
    }, headers=actor_headers)
    assert resp.status_code == 201
    return resp.get_json()["order"]


class TestSystemRoutes:
    def test_health(self, client, db_session):
        resp = client.get("/api/health")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert "record_store" in body["checks"]

    def test_version(self, client):
        resp = client.get("/api/version")
        assert resp.status_code == 200
        assert resp.get_json()["api_version"] == "1.0.0"


class TestOrderRoutes:
    def test_actor_header_required(self, client, db_session, sample_items):
        resp = client.post("/api/orders/", json={
            "salesperson_id": "seller-1",
            "store_id": "store-1",
            "items": sample_items,
        })
        assert resp.status_code == 401

    def test_create_and_fetch_enriched(self, client, created_order):
        assert created_order["total_cents"] == 24551
        assert created_order["status"] == "pending"

        resp = client.get(f"/api/orders/{created_order['id']}")

        assert resp.status_code == 200
        order = resp.get_json()["order"]
        assert order["store_name"] == "Madrid Centro"
        assert order["seller_name"] == "Ana Ruiz"
        assert order["planogram_name"] == "Summer Endcap"
        assert order["items"][0]["product_name"] == "Olive Oil 1L"

    def test_missing_fields(self, client, db_session, actor_headers):
        resp = client.post("/api/orders/", json={"store_id": "store-1"}, headers=actor_headers)
        assert resp.status_code == 400

    def test_invalid_items(self, client, db_session, actor_headers):
        resp = client.post("/api/orders/", json={
            "salesperson_id": "seller-1",
            "store_id": "store-1",
            "items": [{"product_id": "prod-1", "quantity": 0, "unit_price_cents": 100}],
        }, headers=actor_headers)

        assert resp.status_code == 400
        assert "quantity" in resp.get_json()["error"]

    @pytest.mark.parametrize("raw_quantity", ["--5", "\u00b2"])
    def test_malformed_quantity_string_is_bad_request(self, client, db_session, actor_headers, raw_quantity):
        resp = client.post("/api/orders/", json={
            "salesperson_id": "seller-1",
            "store_id": "store-1",
            "items": [{"product_id": "prod-1", "quantity": raw_quantity, "unit_price_cents": 100}],
        }, headers=actor_headers)

        assert resp.status_code == 400
        assert "quantity" in resp.get_json()["error"]

    def test_price_above_cap_is_bad_request(self, client, db_session, actor_headers):
        resp = client.post("/api/invoices/", json={
            "store_id": "store-1",
            "seller_id": "seller-1",
            "items": [{"product_id": "prod-1", "quantity": 1, "unit_price_cents": 10**12}],
        }, headers=actor_headers)

        assert resp.status_code == 400
        assert "unit_price_cents" in resp.get_json()["error"]

    def test_unknown_order(self, client, db_session):
        assert client.get("/api/orders/order-missing").status_code == 404

    def test_status_update(self, client, created_order, actor_headers):
        resp = client.patch(
            f"/api/orders/{created_order['id']}/status",
            json={"status": "completed"},
            headers=actor_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["order"]["completed_at"] is not None

        bad = client.patch(
            f"/api/orders/{created_order['id']}/status",
            json={"status": "shipped"},
            headers=actor_headers,
        )
        assert bad.status_code == 400
        assert "allowed" in bad.get_json()["details"]

    def test_list_filters_and_stats(self, client, created_order):
        resp = client.get("/api/orders/?store_id=store-1")
        assert [o["id"] for o in resp.get_json()["orders"]] == [created_order["id"]]

        resp = client.get("/api/orders/?without_invoice=1")
        assert len(resp.get_json()["orders"]) == 1

        stats = client.get("/api/orders/stats").get_json()["stats"]
        assert stats["total_orders"] == 1

    def test_replace_items(self, client, created_order, actor_headers):
        resp = client.put(
            f"/api/orders/{created_order['id']}/items",
            json={"items": [{"product_id": "prod-2", "quantity": 2, "unit_price_cents": 250}]},
            headers=actor_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["order"]["total_cents"] == 500

    def test_delete_blocked_by_invoice(self, client, created_order, actor_headers):
        client.post("/api/invoices/from-order", json={"order_id": created_order["id"]}, headers=actor_headers)

        resp = client.delete(f"/api/orders/{created_order['id']}", headers=actor_headers)

        assert resp.status_code == 409


class TestInvoiceRoutes:
    def test_from_order_and_duplicate(self, client, created_order, actor_headers):
        resp = client.post("/api/invoices/from-order", json={"order_id": created_order["id"]}, headers=actor_headers)

        assert resp.status_code == 201
        invoice = resp.get_json()["invoice"]
        assert invoice["taxes_cents"] == 5156
        assert invoice["total_cents"] == 29707
        assert invoice["created_by"] == "user-admin"

        again = client.post("/api/invoices/from-order", json={"order_id": created_order["id"]}, headers=actor_headers)
        assert again.status_code == 409

    def test_from_missing_order(self, client, db_session, actor_headers):
        resp = client.post("/api/invoices/from-order", json={"order_id": "order-missing"}, headers=actor_headers)
        assert resp.status_code == 404

    def test_manual_invoice_and_enriched_fetch(self, client, catalog, actor_headers):
        resp = client.post("/api/invoices/", json={
            "store_id": "store-2",
            "seller_id": "seller-1",
            "items": [{"product_id": "prod-2", "quantity": 1, "unit_price_cents": 1000}],
        }, headers=actor_headers)
        assert resp.status_code == 201
        invoice_id = resp.get_json()["invoice"]["id"]

        invoice = client.get(f"/api/invoices/{invoice_id}").get_json()["invoice"]
        assert invoice["order_id"] == ""
        assert invoice["order_number"] == "No order"
        assert invoice["store_name"] == "Barcelona Port"

    def test_mark_paid(self, client, created_order, actor_headers):
        invoice = client.post(
            "/api/invoices/from-order", json={"order_id": created_order["id"]}, headers=actor_headers
        ).get_json()["invoice"]

        resp = client.patch(
            f"/api/invoices/{invoice['id']}/status",
            json={"status": "paid", "paid_date": "2026-06-01T10:00:00Z"},
            headers=actor_headers,
        )

        assert resp.status_code == 200
        assert resp.get_json()["invoice"]["paid_date"] == "2026-06-01T10:00:00.000Z"

    def test_bad_paid_date(self, client, created_order, actor_headers):
        invoice = client.post(
            "/api/invoices/from-order", json={"order_id": created_order["id"]}, headers=actor_headers
        ).get_json()["invoice"]

        resp = client.patch(
            f"/api/invoices/{invoice['id']}/status",
            json={"status": "paid", "paid_date": "yesterday"},
            headers=actor_headers,
        )
        assert resp.status_code == 400

    def test_generate_automatic(self, client, created_order, actor_headers):
        client.patch(f"/api/orders/{created_order['id']}/status", json={"status": "completed"}, headers=actor_headers)

        resp = client.post("/api/invoices/generate-automatic", headers=actor_headers)

        assert resp.status_code == 200
        result = resp.get_json()["result"]
        assert result["succeeded"] == 1
        assert result["failed"] == 0


class TestPodRoutes:
    def test_pod_lifecycle(self, client, created_order, actor_headers):
        invoice = client.post(
            "/api/invoices/from-order", json={"order_id": created_order["id"]}, headers=actor_headers
        ).get_json()["invoice"]

        resp = client.post(
            "/api/pods/from-invoice",
            json={"invoice_id": invoice["id"], "image_url": IMAGE},
            headers=actor_headers,
        )
        assert resp.status_code == 201
        pod = resp.get_json()["pod"]
        assert pod["uploaded_by"] == "user-admin"

        linked = client.get(f"/api/invoices/{invoice['id']}").get_json()["invoice"]
        assert linked["pod_id"] == pod["id"]

        fetched = client.get(f"/api/pods/{pod['id']}").get_json()["pod"]
        assert fetched["invoice_number"] == invoice["invoice_number"]
        assert fetched["uploaded_by_name"] == "Admin System"

        validated = client.post(f"/api/pods/{pod['id']}/validate", headers=actor_headers)
        assert validated.get_json()["pod"]["validated_by"] == "user-admin"

        assert client.get("/api/pods/?unvalidated=1").get_json()["pods"] == []

        blocked = client.delete(f"/api/invoices/{invoice['id']}", headers=actor_headers)
        assert blocked.status_code == 409

        assert client.delete(f"/api/pods/{pod['id']}", headers=actor_headers).status_code == 200
        assert client.delete(f"/api/invoices/{invoice['id']}", headers=actor_headers).status_code == 200

    def test_duplicate_pod(self, client, created_order, actor_headers):
        invoice = client.post(
            "/api/invoices/from-order", json={"order_id": created_order["id"]}, headers=actor_headers
        ).get_json()["invoice"]
        body = {"invoice_id": invoice["id"], "image_url": IMAGE}

        client.post("/api/pods/from-invoice", json=body, headers=actor_headers)
        resp = client.post("/api/pods/from-invoice", json=body, headers=actor_headers)

        assert resp.status_code == 409

    def test_manual_pod_requires_po(self, client, db_session, actor_headers):
        resp = client.post("/api/pods/", json={
            "salesperson_id": "seller-1",
            "store_id": "store-1",
            "image_url": IMAGE,
        }, headers=actor_headers)
        assert resp.status_code == 400

    def test_unknown_pod(self, client, db_session, actor_headers):
        assert client.get("/api/pods/pod-missing").status_code == 404
        assert client.post("/api/pods/pod-missing/validate", headers=actor_headers).status_code == 404
        assert client.delete("/api/pods/pod-missing", headers=actor_headers).status_code == 404


class TestIntegrityRoutes:
    def test_issues_and_auto_fix(self, client, created_order, actor_headers):
        client.patch(f"/api/orders/{created_order['id']}/status", json={"status": "completed"}, headers=actor_headers)
        client.post("/api/pods/", json={
            "salesperson_id": "seller-1",
            "store_id": "store-1",
            "po": "PO-PAPER",
            "image_url": IMAGE,
        }, headers=actor_headers)

        body = client.get("/api/integrity/issues").get_json()
        assert [i["type"] for i in body["issues"]] == ["order_without_invoice", "orphan_pod"]
        assert body["summary"]["total"] == 2

        medium = client.get("/api/integrity/issues?severity=medium").get_json()
        assert [i["type"] for i in medium["issues"]] == ["orphan_pod"]

        assert client.get("/api/integrity/issues?severity=urgent").status_code == 400

        resp = client.post("/api/integrity/auto-fix", headers=actor_headers)
        assert resp.status_code == 200
        assert resp.get_json()["report"]["fixed"] == 1

        after = client.get("/api/integrity/issues").get_json()
        assert [i["type"] for i in after["issues"]] == ["orphan_pod"]

    def test_auto_fix_requires_actor(self, client, db_session):
        assert client.post("/api/integrity/auto-fix").status_code == 401
