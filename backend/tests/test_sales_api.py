# Overview: Pytest coverage for the sales HTTP endpoints.

"""
Sales API Tests

Covers the request/response contract of POST /api/sales and the read
endpoints: status codes, structured error bodies, captured prices in the
response, and requester identity handling.
"""

import pytest

from posengine.models import Sale
from posengine.services.inventory_service import get_stock_quantity


class TestCreateSaleRoute:

    def test_create_sale(self, client, db_session, cashier_headers, cashier, customer, make_product):
        p = make_product("MUG", price="9.99", stock=10, name="Mug")

        response = client.post("/api/sales", headers=cashier_headers, json={
            "items": [{"product_id": p.id, "quantity": 2}],
            "customer_id": customer.id,
        })

        assert response.status_code == 201
        sale = response.get_json()["sale"]
        assert sale["total_amount"] == "19.98"
        assert sale["user"] == {"id": cashier.id, "email": "cashier@pos.local"}
        assert sale["customer"]["id"] == customer.id
        assert len(sale["items"]) == 1
        item = sale["items"][0]
        assert item["quantity"] == 2
        assert item["unit_price"] == "9.99"
        assert item["subtotal"] == "19.98"
        assert item["product"]["sku"] == "MUG"
        assert item["product"]["stock_quantity"] == 8

    def test_requires_identity(self, client, db_session, make_product):
        p = make_product("MUG")

        response = client.post("/api/sales", json={"items": [{"product_id": p.id, "quantity": 1}]})

        assert response.status_code == 401
        assert get_stock_quantity(p.id) == 10

    def test_inactive_user_rejected(self, client, db_session, cashier, cashier_headers, make_product):
        p = make_product("MUG")
        cashier.is_active = False
        db_session.commit()

        response = client.post("/api/sales", headers=cashier_headers,
                               json={"items": [{"product_id": p.id, "quantity": 1}]})

        assert response.status_code == 401

    def test_empty_items_is_400(self, client, db_session, cashier_headers):
        response = client.post("/api/sales", headers=cashier_headers, json={"items": []})

        assert response.status_code == 400
        body = response.get_json()
        assert body["code"] == "validation_error"
        assert body["retryable"] is False

    def test_fractional_quantity_is_400(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG")

        response = client.post("/api/sales", headers=cashier_headers,
                               json={"items": [{"product_id": p.id, "quantity": 1.5}]})

        assert response.status_code == 400
        assert get_stock_quantity(p.id) == 10

    @pytest.mark.parametrize("field", ["product_id", "quantity"])
    def test_oversized_integer_is_400(self, client, db_session, cashier_headers, make_product, field):
        p = make_product("MUG")
        line = {"product_id": p.id, "quantity": 1}
        line[field] = 10**30

        response = client.post("/api/sales", headers=cashier_headers, json={"items": [line]})

        assert response.status_code == 400
        assert response.get_json()["code"] == "validation_error"
        assert get_stock_quantity(p.id) == 10

    def test_non_object_body_is_400(self, client, db_session, cashier_headers):
        response = client.post("/api/sales", headers=cashier_headers, json=[1, 2])

        assert response.status_code == 400

    def test_unknown_product_is_404_and_nothing_committed(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", stock=10)

        response = client.post("/api/sales", headers=cashier_headers, json={
            "items": [{"product_id": p.id, "quantity": 1}, {"product_id": 777, "quantity": 1}],
        })

        assert response.status_code == 404
        body = response.get_json()
        assert body["code"] == "not_found"
        assert body["details"] == {"entity": "product", "id": 777}
        assert get_stock_quantity(p.id) == 10
        assert db_session.query(Sale).count() == 0

    def test_unknown_customer_is_404(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", stock=10)

        response = client.post("/api/sales", headers=cashier_headers, json={
            "items": [{"product_id": p.id, "quantity": 1}],
            "customer_id": 9999,
        })

        assert response.status_code == 404
        assert response.get_json()["details"]["entity"] == "customer"
        assert get_stock_quantity(p.id) == 10

    def test_insufficient_stock_is_409_with_detail(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", stock=4, name="Mug")

        response = client.post("/api/sales", headers=cashier_headers, json={
            "items": [{"product_id": p.id, "quantity": 2}, {"product_id": p.id, "quantity": 3}],
        })

        assert response.status_code == 409
        body = response.get_json()
        assert body["code"] == "insufficient_stock"
        assert body["details"] == {"product_id": p.id, "available": 2, "requested": 3}
        assert "Mug" in body["error"]
        assert get_stock_quantity(p.id) == 4

    def test_timeout_is_503_retryable(self, app, client, db_session, cashier_headers, make_product, monkeypatch):
        p = make_product("MUG", stock=10)
        monkeypatch.setitem(app.config, "SALE_TRANSACTION_TIMEOUT_SECONDS", 0)

        response = client.post("/api/sales", headers=cashier_headers,
                               json={"items": [{"product_id": p.id, "quantity": 1}]})

        assert response.status_code == 503
        body = response.get_json()
        assert body["code"] == "transaction_timeout"
        assert body["retryable"] is True
        assert get_stock_quantity(p.id) == 10


class TestReadSales:

    def _sell(self, client, headers, product_id, quantity=1):
        response = client.post("/api/sales", headers=headers,
                               json={"items": [{"product_id": product_id, "quantity": quantity}]})
        assert response.status_code == 201
        return response.get_json()["sale"]

    def test_get_sale(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG")
        created = self._sell(client, cashier_headers, p.id, 3)

        response = client.get(f"/api/sales/{created['id']}", headers=cashier_headers)

        assert response.status_code == 200
        sale = response.get_json()["sale"]
        assert sale["id"] == created["id"]
        assert sale["total_amount"] == "29.97"
        assert [i["unit_price"] for i in sale["items"]] == ["9.99"]

    def test_get_missing_sale_is_404(self, client, db_session, cashier_headers):
        response = client.get("/api/sales/123456", headers=cashier_headers)

        assert response.status_code == 404

    def test_list_sales_newest_first(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", stock=100)
        ids = [self._sell(client, cashier_headers, p.id)["id"] for _ in range(3)]

        response = client.get("/api/sales?page=1&limit=2", headers=cashier_headers)

        assert response.status_code == 200
        body = response.get_json()
        assert body["total"] == 3
        assert body["limit"] == 2
        assert [s["id"] for s in body["sales"]] == [ids[2], ids[1]]

    def test_list_sales_date_filter(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", stock=100)
        self._sell(client, cashier_headers, p.id)

        future = client.get("/api/sales?startDate=2999-01-01T00:00:00Z", headers=cashier_headers)
        past = client.get("/api/sales?endDate=2000-01-01", headers=cashier_headers)
        bad = client.get("/api/sales?startDate=yesterday", headers=cashier_headers)

        assert future.get_json()["total"] == 0
        assert past.get_json()["total"] == 0
        assert bad.status_code == 400
