# Overview: Pytest coverage for legacy status migration, display enrichment and the flask CLI groups.

from backoffice.models import OrderStatus, PODStatus
from backoffice.services import (
    enrichment_service,
    invoice_service,
    maintenance_service,
    order_service,
    pod_service,
    record_store,
)


IMAGE = "https://cdn.example.test/pods/1.jpg"


def _legacy_order(order_id, status, **extra):
    record = {
        "id": order_id,
        "po": f"PO-{order_id}",
        "salesperson_id": "seller-1",
        "store_id": "store-1",
        "status": status,
        "subtotal_cents": 500,
        "total_cents": 500,
        "created_at": "2025-10-01T08:00:00.000Z",
        "items": [],
    }
    record.update(extra)
    return record


class TestLegacyStatusMigration:
    def test_rewrites_orders_and_pods(self, db_session):
        record_store.write_many({
            record_store.ORDERS: [
                _legacy_order("o1", "delivered", delivered_at="2025-10-03T08:00:00.000Z"),
                _legacy_order("o2", "processing"),
                _legacy_order("o3", "cancelled"),
                _legacy_order("o4", "pending"),
            ],
            record_store.PODS: [
                {"id": "p1", "po": "PO-o1", "status": "delivered", "image_url": IMAGE},
                {"id": "p2", "po": "PO-o3", "status": "cancelled", "image_url": IMAGE},
                {"id": "p3", "po": "PO-x", "status": "completed", "image_url": IMAGE},
            ],
        })

        counts = maintenance_service.migrate_legacy_statuses()

        assert counts == {"orders": 3, "pods": 2}
        orders = {r["id"]: r for r in record_store.read_all(record_store.ORDERS)}
        assert [orders[i]["status"] for i in ("o1", "o2", "o3", "o4")] == [
            "completed", "completed", "pending", "pending",
        ]
        assert orders["o1"]["completed_at"] == "2025-10-03T08:00:00.000Z"
        assert "delivered_at" not in orders["o1"]
        assert [r["status"] for r in record_store.read_all(record_store.PODS)] == [
            "completed", "pending", "completed",
        ]

    def test_second_run_changes_nothing(self, db_session):
        record_store.write_all(record_store.ORDERS, [_legacy_order("o1", "delivered")])

        maintenance_service.migrate_legacy_statuses()

        assert maintenance_service.migrate_legacy_statuses() == {"orders": 0, "pods": 0}

    def test_legacy_records_load_with_current_statuses(self, db_session):
        record_store.write_many({
            record_store.ORDERS: [_legacy_order("o1", "delivered", delivered_at="2025-10-03T08:00:00.000Z")],
            record_store.PODS: [{"id": "p1", "po": "PO-o1", "status": "cancelled", "image_url": IMAGE}],
        })

        order = order_service.get_order("o1")
        assert order.status is OrderStatus.COMPLETED
        assert order.completed_at is not None
        assert pod_service.get_pod("p1").status is PODStatus.PENDING


class TestEnrichment:
    def test_missing_lookups_use_placeholders(self, db_session):
        order = order_service.create_order(
            "seller-gone", "store-gone",
            [{"product_id": "prod-gone", "quantity": 1, "unit_price_cents": 100}],
        )
        pod = pod_service.create_manual_pod("seller-gone", "store-gone", "PO-1", IMAGE, "user-gone")

        enriched = enrichment_service.enrich_order(order)
        assert enriched["store_name"] == "Store not found"
        assert enriched["seller_name"] == "Seller not found"
        assert enriched["planogram_name"] == "No planogram"
        assert enriched["items"][0]["product_name"] == "Product not found"
        assert enriched["items"][0]["product_brand"] == "Uncategorized"

        enriched_pod = enrichment_service.enrich_pod(pod)
        assert enriched_pod["uploaded_by_name"] == "User not found"
        assert enriched_pod["order_number"] == "No order"
        assert enriched_pod["invoice_number"] == "No invoice"

    def test_invoice_shows_order_number(self, catalog, sample_items):
        order = order_service.create_order("seller-1", "store-1", sample_items)
        invoice = invoice_service.create_invoice_from_order(order.id, "user-admin")

        enriched = enrichment_service.enrich_invoice(invoice)

        assert enriched["order_number"] == order.po
        assert enriched["seller_name"] == "Ana Ruiz"
        assert enriched["items"][1]["product_brand"] == "Beverages"


class TestCli:
    def test_check_integrity_clean(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["fulfillment", "check-integrity"])

        assert result.exit_code == 0
        assert "No integrity issues" in result.output

    def test_check_integrity_lists_issues(self, app, db_session):
        pod_service.create_manual_pod("seller-1", "store-1", "PO-PAPER", IMAGE, "user-admin")

        result = app.test_cli_runner().invoke(args=["fulfillment", "check-integrity", "--severity", "medium"])

        assert result.exit_code == 0
        assert "orphan_pod" in result.output
        assert "1 issue(s)" in result.output

    def test_auto_fix(self, app, catalog, sample_items):
        order = order_service.create_order("seller-1", "store-1", sample_items)
        order_service.update_order_status(order.id, "completed")

        result = app.test_cli_runner().invoke(args=["fulfillment", "auto-fix", "--user-id", "user-admin"])

        assert result.exit_code == 0
        assert "Fixed: 1  Errors: 0" in result.output
        assert invoice_service.list_invoices()[0].order_id == order.id

    def test_generate_invoices(self, app, catalog, sample_items):
        order = order_service.create_order("seller-1", "store-1", sample_items)
        order_service.update_order_status(order.id, "completed")

        result = app.test_cli_runner().invoke(args=["fulfillment", "generate-invoices", "--user-id", "user-admin"])

        assert result.exit_code == 0
        assert "Created 1, failed 0." in result.output

    def test_migrate_statuses(self, app, db_session):
        record_store.write_all(record_store.ORDERS, [_legacy_order("o1", "processing")])

        result = app.test_cli_runner().invoke(args=["maintenance", "migrate-statuses"])

        assert result.exit_code == 0
        assert "Migrated 1 orders and 0 PODs." in result.output

    def test_collections(self, app, catalog):
        result = app.test_cli_runner().invoke(args=["system", "collections"])

        assert result.exit_code == 0
        assert "products" in result.output
