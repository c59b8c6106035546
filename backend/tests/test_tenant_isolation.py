# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-farm access is denied for every resource.

These tests create two farms with their own owners, staff and catalog, then
verify that:
1. The access decision is an exact farm_id match
2. A missing id and another farm's id fail identically
3. Purchases and sales cannot reference another farm's boats, customers or
   product types
4. Lists never include another farm's rows
"""

from datetime import date

import pytest

from farmledger.models import Boat, Customer
from farmledger.services import catalog_service, purchase_service, sale_service
from farmledger.services.catalog_service import CUSTOMERS
from farmledger.services.tenant_service import (
    AuthorizationError,
    Principal,
    accessible_farm_id,
    check_reference,
    get_scoped,
    has_access_to_farm,
    principal_for,
    require_accessible_farm_id,
    require_farm_access,
)
from farmledger.validation import ValidationError


class TestAccessDecision:
    """has_access_to_farm is a pure function of the principal."""

    def test_exact_match(self):
        principal = Principal(id=1, role="staff", farm_id=7)
        assert has_access_to_farm(principal, 7) is True

    def test_other_farm_denied(self):
        principal = Principal(id=1, role="staff", farm_id=7)
        assert has_access_to_farm(principal, 8) is False

    def test_absent_farm_id_denied(self):
        principal = Principal(id=1, role="admin", farm_id=7)
        assert has_access_to_farm(principal, None) is False

    def test_no_principal_denied(self):
        assert has_access_to_farm(None, 7) is False

    def test_principal_without_farm_denied(self):
        principal = Principal(id=1, role="admin", farm_id=None)
        assert has_access_to_farm(principal, 7) is False
        assert accessible_farm_id(principal) is None

    def test_owned_farm_not_granted_by_default(self):
        principal = Principal(id=1, role="admin", farm_id=7, owned_farm_ids=frozenset({9}))
        assert has_access_to_farm(principal, 9) is False

    def test_owned_farm_granted_when_owner_access_enabled(self):
        principal = Principal(id=1, role="admin", farm_id=7, owned_farm_ids=frozenset({9}))
        assert has_access_to_farm(principal, 9, allow_owner=True) is True

    def test_owner_access_only_for_admins(self):
        principal = Principal(id=1, role="staff", farm_id=7, owned_farm_ids=frozenset({9}))
        assert has_access_to_farm(principal, 9, allow_owner=True) is False

    def test_require_accessible_farm_id_without_farm(self):
        with pytest.raises(AuthorizationError):
            require_accessible_farm_id(Principal(id=1, role="admin", farm_id=None))


class TestOwnerAccessFlag:

    def test_flag_controls_owned_farm_access(self, app, db_session, owner_a, farm_a, farm_b):
        # owner_a also owns farm_b but acts within farm_a
        farm_b.owner_id = owner_a.id
        db_session.commit()
        principal = principal_for(owner_a)
        assert farm_b.id in principal.owned_farm_ids

        with pytest.raises(AuthorizationError):
            require_farm_access(principal, farm_b.id)

        app.config["FARM_OWNER_ACCESS"] = True
        try:
            require_farm_access(principal, farm_b.id)
        finally:
            app.config["FARM_OWNER_ACCESS"] = False


class TestScopedLookup:

    def test_own_record_returned(self, db_session, principal_a, catalog_a):
        _, customer, _ = catalog_a
        assert get_scoped(Customer, customer.id, principal_a).id == customer.id

    def test_staff_cannot_read_other_farm_customer(self, db_session, staff_a, catalog_b):
        """Staff of F1 reading a customer of F2 is an authorization failure."""
        _, customer_b, _ = catalog_b
        with pytest.raises(AuthorizationError):
            catalog_service.get_record(CUSTOMERS, principal_for(staff_a), customer_b.id)

    def test_missing_id_fails_like_foreign_id(self, db_session, principal_a, catalog_b):
        _, customer_b, _ = catalog_b
        with pytest.raises(AuthorizationError) as foreign:
            get_scoped(Customer, customer_b.id, principal_a)
        with pytest.raises(AuthorizationError) as missing:
            get_scoped(Customer, 99999, principal_a)
        assert str(foreign.value) == str(missing.value)

    def test_update_and_delete_blocked_across_farms(self, db_session, principal_a, catalog_b):
        _, customer_b, _ = catalog_b
        with pytest.raises(AuthorizationError):
            catalog_service.update_record(CUSTOMERS, principal_a, customer_b.id, {"name": "Hijacked"})
        with pytest.raises(AuthorizationError):
            catalog_service.delete_record(CUSTOMERS, principal_a, customer_b.id)

        db_session.refresh(customer_b)
        assert customer_b.name == "Khach B"


class TestCrossFarmReferences:

    def test_check_reference(self, db_session, farm_a, catalog_a, catalog_b):
        boat_a = catalog_a[0]
        boat_b = catalog_b[0]
        record, err = check_reference(Boat, boat_a.id, farm_a.id, field_name="boat_id", label="boat")
        assert record.id == boat_a.id and err is None

        record, err = check_reference(Boat, boat_b.id, farm_a.id, field_name="boat_id", label="boat")
        assert record is None
        assert err.errors == {"boat_id": ["The selected boat is invalid"]}

    def test_purchase_with_foreign_boat_and_product_type(self, db_session, farm_a, catalog_b):
        boat_b, _, product_type_b = catalog_b
        with pytest.raises(ValidationError) as exc:
            purchase_service.create_purchase(farm_a.id, {
                "boat_id": boat_b.id,
                "product_type_id": product_type_b.id,
                "weight": "10",
                "unit_price": "1000",
                "purchase_date": "2024-05-01",
            })
        assert set(exc.value.errors) == {"boat_id", "product_type_id"}

    def test_sale_with_foreign_customer(self, db_session, farm_a, catalog_a, catalog_b):
        _, _, product_type_a = catalog_a
        _, customer_b, _ = catalog_b
        with pytest.raises(ValidationError) as exc:
            sale_service.create_sale(farm_a.id, {
                "customer_id": customer_b.id,
                "product_type_id": product_type_a.id,
                "weight": "10",
                "unit_price": "1000",
                "sale_date": "2024-05-01",
            })
        assert "customer_id" in exc.value.errors

    def test_update_cannot_repoint_to_foreign_reference(
        self, db_session, farm_a, principal_a, catalog_a, catalog_b, sale_factory
    ):
        _, customer_a, product_type_a = catalog_a
        _, customer_b, _ = catalog_b
        sale = sale_factory(farm_a, customer_a, product_type_a, weight=1, unit_price=1, sale_date=date(2024, 5, 1))

        with pytest.raises(ValidationError):
            sale_service.update_sale(principal_a, sale.id, {"customer_id": customer_b.id})

        db_session.refresh(sale)
        assert sale.customer_id == customer_a.id


class TestListsAreScoped:

    def test_catalog_lists(self, db_session, farm_a, farm_b, catalog_a, catalog_b):
        names = [c.name for c in catalog_service.list_records(CUSTOMERS, farm_a.id)]
        assert names == ["Khach A"]

    def test_http_lists_and_reads(self, client, db_session, staff_a, catalog_a, catalog_b, headers_for):
        headers = headers_for(staff_a)
        _, customer_b, _ = catalog_b

        resp = client.get("/api/customers", headers=headers)
        assert resp.status_code == 200
        assert [c["name"] for c in resp.json["items"]] == ["Khach A"]

        foreign = client.get(f"/api/customers/{customer_b.id}", headers=headers)
        missing = client.get("/api/customers/99999", headers=headers)
        assert foreign.status_code == 403
        assert missing.status_code == 403
        assert foreign.json == missing.json
