"""
Sales tests.

Verifies:
- A sale decrements stock, snapshots price and writes an OUT movement
- Overselling is rejected without side effects
- SALE_RECORDED always, LOW_STOCK whenever stock ends below the minimum
"""

import re
from decimal import Decimal

import pytest

from stockroom.models import Notification, Product, SalesTransaction, StockMovement
from stockroom.services import sales_service
from stockroom.validation import InvalidStateError, NotFoundError, ValidationError


def _types(db_session):
    rows = db_session.query(Notification).order_by(Notification.id.asc()).all()
    return [n.type for n in rows]


class TestRecordSale:

    def test_sale_updates_stock_and_ledger(self, db_session, product):
        sale = sales_service.record_sale(product_id=product.id, quantity=5, customer_name="Dana")

        assert re.fullmatch(r"TXN-\d+-[0-9A-F]{6}", sale.transaction_number)
        assert sale.unit_price == Decimal("4.00")
        assert sale.total_amount == Decimal("20.00")
        assert sale.customer_name == "Dana"
        assert db_session.get(Product, product.id).quantity == 15

        movement = db_session.query(StockMovement).one()
        assert movement.movement_type == "OUT"
        assert movement.quantity == 5
        assert movement.reference_number == sale.transaction_number
        assert movement.notes == "Sale transaction"

        n = db_session.query(Notification).one()
        assert n.type == "SALE_RECORDED"
        assert n.message == 'Sale recorded: 5 units of "Cold Brew" for $20.00'
        assert n.related_entity_type == "sales"
        assert n.related_entity_id == sale.id

    def test_oversell_rejected_without_side_effects(self, db_session, product):
        with pytest.raises(InvalidStateError, match="Insufficient stock available"):
            sales_service.record_sale(product_id=product.id, quantity=25)

        assert db_session.get(Product, product.id).quantity == 20
        assert db_session.query(SalesTransaction).count() == 0
        assert db_session.query(StockMovement).count() == 0
        assert db_session.query(Notification).count() == 0

    def test_sell_entire_stock(self, db_session, product):
        sales_service.record_sale(product_id=product.id, quantity=20)
        assert db_session.get(Product, product.id).quantity == 0

    def test_price_snapshot_survives_price_change(self, db_session, product):
        sale = sales_service.record_sale(product_id=product.id, quantity=2)
        db_session.get(Product, product.id).price = Decimal("9.99")
        db_session.commit()

        stored = db_session.get(SalesTransaction, sale.id)
        assert stored.unit_price == Decimal("4.00")
        assert stored.total_amount == Decimal("8.00")

    @pytest.mark.parametrize("quantity", [0, -1, True, "3"])
    def test_invalid_quantity(self, db_session, product, quantity):
        with pytest.raises(ValidationError):
            sales_service.record_sale(product_id=product.id, quantity=quantity)

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.record_sale(product_id=999, quantity=1)

    def test_transaction_numbers_unique(self, db_session, product):
        numbers = {sales_service.record_sale(product_id=product.id, quantity=1).transaction_number for _ in range(5)}
        assert len(numbers) == 5


class TestSaleLowStock:

    def test_crossing_emits_low_stock(self, db_session, make_product):
        p = make_product(name="Oat Milk", quantity=12, min_stock_level=10, price=Decimal("1.50"))
        sales_service.record_sale(product_id=p.id, quantity=3)

        assert _types(db_session) == ["SALE_RECORDED", "LOW_STOCK"]
        low = db_session.query(Notification).filter_by(type="LOW_STOCK").one()
        assert low.message == 'Product "Oat Milk" is running low. Current stock: 9 units'

    def test_every_sale_while_low_alerts(self, db_session, make_product):
        p = make_product(quantity=12, min_stock_level=10)
        sales_service.record_sale(product_id=p.id, quantity=3)
        sales_service.record_sale(product_id=p.id, quantity=1)
        assert _types(db_session) == ["SALE_RECORDED", "LOW_STOCK", "SALE_RECORDED", "LOW_STOCK"]

    def test_sale_from_already_low_stock(self, db_session, make_product):
        p = make_product(quantity=8, min_stock_level=10)
        sales_service.record_sale(product_id=p.id, quantity=2)
        assert _types(db_session) == ["SALE_RECORDED", "LOW_STOCK"]

    def test_sale_to_exact_threshold_not_low(self, db_session, make_product):
        p = make_product(quantity=12, min_stock_level=10)
        sales_service.record_sale(product_id=p.id, quantity=2)
        assert _types(db_session) == ["SALE_RECORDED"]


class TestSalesRoutes:

    def test_create_sale(self, client, auth_headers, product):
        resp = client.post("/api/sales", headers=auth_headers, json={
            "product_id": product.id, "quantity": 5, "notes": "counter",
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["quantity"] == 5
        assert body["total_amount"] == 20.0
        assert body["product_name"] == "Cold Brew"
        assert body["product_sku"] == "CB-001"
        assert client.get(f"/api/products/{product.id}").get_json()["quantity"] == 15

    def test_create_sale_insufficient(self, client, auth_headers, product):
        resp = client.post("/api/sales", headers=auth_headers, json={"product_id": product.id, "quantity": 25})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Insufficient stock available"
        assert client.get(f"/api/products/{product.id}").get_json()["quantity"] == 20

    def test_create_sale_missing_product(self, client, auth_headers, db_session):
        resp = client.post("/api/sales", headers=auth_headers, json={"quantity": 1})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing required fields: product_id"

    def test_create_sale_unknown_product(self, client, auth_headers, db_session):
        resp = client.post("/api/sales", headers=auth_headers, json={"product_id": 31337, "quantity": 1})
        assert resp.status_code == 404

    def test_create_sale_zero_quantity(self, client, auth_headers, product):
        resp = client.post("/api/sales", headers=auth_headers, json={"product_id": product.id, "quantity": 0})
        assert resp.status_code == 400

    def test_create_sale_huge_quantity(self, client, auth_headers, db_session, product):
        resp = client.post("/api/sales", headers=auth_headers, json={"product_id": product.id, "quantity": 10**30})
        assert resp.status_code == 400
        assert db_session.query(SalesTransaction).count() == 0

    def test_create_sale_low_stock_when_already_low(self, client, auth_headers, db_session, make_product):
        p = make_product(quantity=8, min_stock_level=10)
        resp = client.post("/api/sales", headers=auth_headers, json={"product_id": p.id, "quantity": 2})
        assert resp.status_code == 201
        assert _types(db_session) == ["SALE_RECORDED", "LOW_STOCK"]

    def test_client_cannot_set_price(self, client, auth_headers, product):
        resp = client.post("/api/sales", headers=auth_headers, json={
            "product_id": product.id, "quantity": 1, "unit_price": 0.01,
        })
        assert resp.status_code == 400

    def test_list_and_get(self, client, auth_headers, product):
        for q in (1, 2, 3):
            client.post("/api/sales", headers=auth_headers, json={"product_id": product.id, "quantity": q})

        rows = client.get("/api/sales").get_json()
        assert [r["quantity"] for r in rows] == [3, 2, 1]
        assert len(client.get("/api/sales?limit=2").get_json()) == 2

        one = client.get(f"/api/sales/{rows[0]['id']}")
        assert one.status_code == 200
        assert one.get_json()["transaction_number"] == rows[0]["transaction_number"]

    def test_get_missing_sale(self, client, db_session):
        resp = client.get("/api/sales/555")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Sale not found"
