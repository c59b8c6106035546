"""
HTTP surface tests.

Verifies:
- Unauthenticated requests return 401
- Accounts without a farm cannot reach farm-scoped routes
- Error bodies follow the JSON error contract
- Purchase / sale / expense round trips through the API
"""

from datetime import date

import pytest

from farmledger.models import Sale


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/farms"),
            ("POST", "/api/farms"),
            ("GET", "/api/boats"),
            ("GET", "/api/customers"),
            ("GET", "/api/product-types"),
            ("GET", "/api/purchases"),
            ("GET", "/api/purchases/form-options"),
            ("GET", "/api/sales"),
            ("PATCH", "/api/sales/1/payment-status"),
            ("GET", "/api/expenses"),
            ("GET", "/api/expense-types"),
            ("GET", "/api/reports/dashboard"),
            ("GET", "/api/reports/debts"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/boats", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401
        assert resp.json == {"error": "Invalid or expired token"}


class TestTenantContext:

    def test_account_without_farm(self, client, db_session, loose_staff, headers_for):
        resp = client.get("/api/sales", headers=headers_for(loose_staff))
        assert resp.status_code == 401
        assert resp.json == {"error": "No farm is associated with this account"}

    def test_staff_cannot_create_farm(self, client, db_session, staff_a, headers_for):
        resp = client.post(
            "/api/farms",
            json={"name": "X", "address": "Y", "phone": "Z"},
            headers=headers_for(staff_a),
        )
        assert resp.status_code == 403


class TestSystem:

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["status"] == "healthy"

    def test_unknown_route_is_json(self, client, db_session):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert "error" in resp.json

    def test_cors_for_allowed_origin(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

        resp = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestLedgerRoundTrip:

    def test_sale_lifecycle(self, client, db_session, staff_a, catalog_a, headers_for):
        headers = headers_for(staff_a)
        _, customer, product_type = catalog_a

        resp = client.post("/api/sales", headers=headers, json={
            "customer_id": customer.id,
            "squid_type_id": product_type.id,
            "weight": 100,
            "unit_price": 150000,
            "sale_date": "2024-05-10",
            "total_amount": 1,
        })
        assert resp.status_code == 201
        sale = resp.json
        assert sale["total_amount"] == "15000000.00"
        assert sale["customer"]["id"] == customer.id

        resp = client.patch(f"/api/sales/{sale['id']}", headers=headers, json={"weight": "50.00"})
        assert resp.status_code == 200
        assert resp.json["total_amount"] == "7500000.00"

        resp = client.patch(
            f"/api/sales/{sale['id']}/payment-status", headers=headers, json={"payment_status": "paid"},
        )
        assert resp.status_code == 200
        assert resp.json["payment_status"] == "paid"

        resp = client.get("/api/sales?payment_status=paid", headers=headers)
        assert [s["id"] for s in resp.json["items"]] == [sale["id"]]

        assert client.delete(f"/api/sales/{sale['id']}", headers=headers).status_code == 200
        assert client.get(f"/api/sales/{sale['id']}", headers=headers).status_code == 403

    def test_payment_status_body_must_be_object(
        self, client, db_session, farm_a, staff_a, catalog_a, sale_factory, headers_for
    ):
        _, customer, product_type = catalog_a
        sale = sale_factory(farm_a, customer, product_type, weight=1, unit_price=1, sale_date=date(2024, 5, 1))

        resp = client.patch(
            f"/api/sales/{sale.id}/payment-status", headers=headers_for(staff_a), json=["paid"],
        )
        assert resp.status_code == 422
        assert resp.json["errors"] == {"payload": ["Invalid JSON payload"]}
        assert db_session.get(Sale, sale.id).payment_status == "unpaid"

    def test_validation_error_body(self, client, db_session, staff_a, catalog_a, headers_for):
        boat, _, _ = catalog_a
        resp = client.post("/api/purchases", headers=headers_for(staff_a), json={
            "boat_id": boat.id,
            "product_type_id": 99999,
            "weight": "-3",
            "unit_price": "abc",
            "purchase_date": "2024-05-10",
        })
        assert resp.status_code == 422
        body = resp.json
        assert body["error"] == "Validation failed"
        assert set(body["errors"]) == {"weight", "unit_price"}

        resp = client.post("/api/purchases", headers=headers_for(staff_a), json={
            "boat_id": boat.id,
            "product_type_id": 99999,
            "weight": "3",
            "unit_price": "10",
            "purchase_date": "2024-05-10",
        })
        assert resp.status_code == 422
        assert resp.json["errors"] == {"product_type_id": ["The selected product type is invalid"]}

    def test_purchase_form_options_and_create(self, client, db_session, owner_a, catalog_a, headers_for):
        headers = headers_for(owner_a)
        options = client.get("/api/purchases/form-options", headers=headers).json
        boat_id = options["boats"][0]["id"]
        product_type_id = options["product_types"][0]["id"]

        resp = client.post("/api/purchases", headers=headers, json={
            "boat_id": boat_id,
            "product_type_id": product_type_id,
            "weight": "12.5",
            "unit_price": "80000",
            "purchase_date": "2024-05-10",
        })
        assert resp.status_code == 201
        assert resp.json["total_amount"] == "1000000.00"
        assert resp.json["boat"]["id"] == boat_id

    def test_expenses_and_types(self, client, db_session, owner_a, farm_a, headers_for):
        headers = headers_for(owner_a)
        for kind in ("Van chuyen", "Dau"):
            resp = client.post("/api/expenses", headers=headers, json={
                "expense_type": kind,
                "amount": "100000",
                "expense_date": "2024-05-02",
            })
            assert resp.status_code == 201

        resp = client.get("/api/expense-types", headers=headers)
        assert resp.json == {"items": ["Dau", "Van chuyen"]}

        resp = client.get("/api/expenses?expense_type=Dau", headers=headers)
        assert resp.json["count"] == 1

    def test_catalog_crud(self, client, db_session, owner_a, farm_a, headers_for):
        headers = headers_for(owner_a)
        resp = client.post("/api/boats", headers=headers, json={
            "name": "Tau Moi", "owner_name": "Chu", "phone": "0900000000",
        })
        assert resp.status_code == 201
        boat_id = resp.json["id"]

        resp = client.put(f"/api/boats/{boat_id}", headers=headers, json={"description": "Tau lon"})
        assert resp.json["description"] == "Tau lon"

        assert client.delete(f"/api/boats/{boat_id}", headers=headers).status_code == 200
        assert client.get("/api/boats", headers=headers).json["items"] == []
