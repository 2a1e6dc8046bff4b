# Overview: Pytest coverage for the product and customer collaborator endpoints.

from decimal import Decimal

import pytest

from posengine.errors import ConflictError, ValidationError
from posengine.models import Product
from posengine.services import products_service
from posengine.services.inventory_service import get_stock_quantity


class TestProductRoutes:

    def test_create_product_parses_price_exactly(self, client, db_session, cashier_headers):
        response = client.post("/api/products", headers=cashier_headers, json={
            "sku": "MUG-01", "name": "Mug", "price": 9.99, "stock_quantity": 10,
        })

        assert response.status_code == 201
        body = response.get_json()
        assert body["price"] == "9.99"
        assert body["stock_quantity"] == 10
        assert db_session.get(Product, body["id"]).price == Decimal("9.99")

    def test_duplicate_sku_is_409(self, client, db_session, cashier_headers, make_product):
        make_product("MUG-01")

        response = client.post("/api/products", headers=cashier_headers, json={
            "sku": "MUG-01", "name": "Other", "price": "1.00",
        })

        assert response.status_code == 409
        assert response.get_json()["code"] == "conflict"

    def test_price_validation(self, client, db_session, cashier_headers):
        negative = client.post("/api/products", headers=cashier_headers,
                               json={"sku": "N", "name": "N", "price": "-1.00"})
        too_precise = client.post("/api/products", headers=cashier_headers,
                                  json={"sku": "P", "name": "P", "price": "1.001"})
        missing = client.post("/api/products", headers=cashier_headers, json={"sku": "M", "name": "M"})

        assert negative.status_code == 400
        assert too_precise.status_code == 400
        assert missing.status_code == 400

    def test_update_cannot_write_stock(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", stock=10)

        response = client.put(f"/api/products/{p.id}", headers=cashier_headers, json={"stock_quantity": 99})

        assert response.status_code == 400
        assert get_stock_quantity(p.id) == 10

    def test_update_price(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", price="9.99")

        response = client.put(f"/api/products/{p.id}", headers=cashier_headers, json={"price": "12.99"})

        assert response.status_code == 200
        assert response.get_json()["price"] == "12.99"

    def test_restock(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", stock=1)

        response = client.post(f"/api/products/{p.id}/restock", headers=cashier_headers, json={"quantity": 4})
        bad = client.post(f"/api/products/{p.id}/restock", headers=cashier_headers, json={"quantity": 0})

        assert response.status_code == 200
        assert response.get_json()["stock_quantity"] == 5
        assert bad.status_code == 400

    def test_product_with_sales_cannot_be_deleted(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", stock=5)
        client.post("/api/sales", headers=cashier_headers, json={"items": [{"product_id": p.id, "quantity": 1}]})

        response = client.delete(f"/api/products/{p.id}", headers=cashier_headers)

        assert response.status_code == 409
        assert db_session.get(Product, p.id) is not None

    def test_unsold_product_can_be_deleted(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG")

        response = client.delete(f"/api/products/{p.id}", headers=cashier_headers)
        missing = client.get(f"/api/products/{p.id}", headers=cashier_headers)

        assert response.status_code == 200
        assert missing.status_code == 404


    def test_oversized_integers_are_400(self, client, db_session, cashier_headers, make_product):
        p = make_product("MUG", stock=1)

        created = client.post("/api/products", headers=cashier_headers, json={
            "sku": "BIG", "name": "Big", "price": "1.00", "stock_quantity": 10**30,
        })
        restocked = client.post(f"/api/products/{p.id}/restock", headers=cashier_headers,
                                json={"quantity": 10**30})

        assert created.status_code == 400
        assert restocked.status_code == 400
        assert get_stock_quantity(p.id) == 1


class TestProductService:

    def test_check_violation_is_not_reported_as_sku_conflict(self, db_session):
        with pytest.raises(ValidationError):
            products_service.create_product(patch={"sku": "NEG", "name": "Neg", "price": Decimal("-1.00")})

        assert db_session.query(Product).filter_by(sku="NEG").first() is None

    def test_taken_sku_is_still_a_conflict(self, db_session, make_product):
        make_product("DUP")

        with pytest.raises(ConflictError):
            products_service.create_product(patch={"sku": "DUP", "name": "Dup", "price": Decimal("1.00")})

    def test_cli_rejects_negative_price(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "products", "create", "--sku", "NEG", "--name", "Neg", "--price=-1.00",
        ])

        assert result.exit_code == 1
        assert "price must be >= 0" in result.output
        assert db_session.query(Product).filter_by(sku="NEG").first() is None


class TestCustomerRoutes:

    def test_create_and_fetch_customer(self, client, db_session, cashier_headers):
        created = client.post("/api/customers", headers=cashier_headers, json={
            "first_name": "Grace", "last_name": "Hopper",
            "email": "grace@example.com", "phone": "555-0101",
        })

        assert created.status_code == 201
        customer_id = created.get_json()["id"]

        detail = client.get(f"/api/customers/{customer_id}", headers=cashier_headers)
        body = detail.get_json()
        assert body["total_orders"] == 0
        assert body["total_spent"] == "0.00"
        assert body["last_visit"] is None
        assert body["sales"] == []

    def test_invalid_email_rejected(self, client, db_session, cashier_headers):
        response = client.post("/api/customers", headers=cashier_headers, json={
            "first_name": "X", "last_name": "Y", "email": "not-an-email", "phone": "1",
        })

        assert response.status_code == 400

    def test_list_reflects_new_sale_immediately(self, client, db_session, cashier_headers, customer, make_product):
        p = make_product("MUG", price="4.25", stock=10)

        before = client.get("/api/customers", headers=cashier_headers).get_json()
        client.post("/api/sales", headers=cashier_headers, json={
            "items": [{"product_id": p.id, "quantity": 2}], "customer_id": customer.id,
        })
        after = client.get("/api/customers", headers=cashier_headers).get_json()

        assert before["customers"][0]["total_orders"] == 0
        assert after["customers"][0]["total_orders"] == 1
        assert after["customers"][0]["total_spent"] == "8.50"


def test_health(client, db_session):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json()["checks"]["inventory"]["status"] == "healthy"
