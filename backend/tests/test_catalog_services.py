# Overview: Pytest coverage for branch, product and employee management.

"""
Catalog Services Tests

Branch, product and employee management on the SQL catalog store:
validation, category variants, branch membership, uniqueness, and
credential checks.
"""

from decimal import Decimal

import pytest

from tdpos.models import BaleProduct, TireProduct
from tdpos.services import branch_service, employee_service, product_service
from tdpos.services.employee_service import PasswordValidationError, verify_password
from tdpos.validation import ConflictError, NotFoundError, ValidationError


def tire_payload(branch_ids, **overrides):
    payload = {
        "category": "tire",
        "name": "All Terrain 265/65R17",
        "price": "1899.99",
        "quantity": 8,
        "grade": "A",
        "tire_size": "265/65R17",
        "tire_type": "All Terrain",
        "load_index": "112",
        "speed_rating": "T",
        "warranty_period": "2 years",
        "branch_ids": branch_ids,
    }
    payload.update(overrides)
    return payload


class TestBranchService:
    def test_create_and_get(self, catalog):
        branch = branch_service.create_branch(catalog, {"name": "TD Mafeteng", "location": "Mafeteng"})
        assert branch_service.get_branch(catalog, str(branch.id)).name == "TD Mafeteng"

    def test_location_must_be_a_district(self, catalog):
        with pytest.raises(ValidationError):
            branch_service.create_branch(catalog, {"name": "TD Joburg", "location": "Johannesburg"})

    def test_missing_fields(self, catalog):
        with pytest.raises(ValidationError) as exc:
            branch_service.create_branch(catalog, {"name": "X1"})
        assert "location" in exc.value.message

    def test_update(self, catalog, branch_a):
        branch = branch_service.update_branch(catalog, str(branch_a.id), {"name": "TD Maseru Central"})
        assert branch.name == "TD Maseru Central"
        assert branch.location == "Maseru"

    def test_empty_update_is_rejected(self, catalog, branch_a):
        with pytest.raises(ValidationError):
            branch_service.update_branch(catalog, str(branch_a.id), {})

    def test_delete(self, catalog, branch_a):
        branch_id = str(branch_a.id)
        branch_service.delete_branch(catalog, branch_id)
        with pytest.raises(NotFoundError):
            branch_service.get_branch(catalog, branch_id)


class TestProductService:
    def test_create_tire(self, catalog, branch_a, branch_b):
        product = product_service.create_product(catalog, tire_payload([str(branch_a.id), branch_b.id]))

        assert isinstance(product, TireProduct)
        assert product.category == "tire"
        assert product.price == Decimal("1899.99")
        assert product.branch_ids == [str(branch_a.id), str(branch_b.id)]
        assert product.to_dict()["attributes"]["tire_size"] == "265/65R17"

    def test_create_bale(self, catalog, branch_a):
        product = product_service.create_product(catalog, {
            "category": "bale",
            "name": "Summer Mix",
            "price": 1200,
            "quantity": 4,
            "grade": "C",
            "bale_weight": "55.5",
            "bale_category": "Clothing",
            "origin_country": "Canada",
            "import_date": "2026-02-14",
            "bale_count": 120,
            "branch_ids": [str(branch_a.id)],
        })
        assert isinstance(product, BaleProduct)
        assert product.import_date.isoformat() == "2026-02-14"
        assert product.bale_weight == Decimal("55.50")

    def test_tire_requires_tire_fields(self, catalog, branch_a):
        payload = tire_payload([str(branch_a.id)])
        del payload["speed_rating"]
        with pytest.raises(ValidationError) as exc:
            product_service.create_product(catalog, payload)
        assert "speed_rating" in exc.value.message

    def test_tire_rejects_bale_fields(self, catalog, branch_a):
        with pytest.raises(ValidationError):
            product_service.create_product(catalog, tire_payload([str(branch_a.id)], bale_weight="10"))

    def test_unknown_category(self, catalog, branch_a):
        with pytest.raises(ValidationError):
            product_service.create_product(catalog, tire_payload([str(branch_a.id)], category="rim"))

    @pytest.mark.parametrize("field,value", [
        ("price", "-1"),
        ("price", "abc"),
        ("quantity", -3),
        ("quantity", "2.5"),
        ("grade", "D"),
        ("name", "X"),
    ])
    def test_field_rules(self, catalog, branch_a, field, value):
        with pytest.raises(ValidationError):
            product_service.create_product(catalog, tire_payload([str(branch_a.id)], **{field: value}))

    def test_needs_at_least_one_existing_branch(self, catalog, branch_a):
        with pytest.raises(ValidationError):
            product_service.create_product(catalog, tire_payload([]))
        with pytest.raises(ValidationError):
            product_service.create_product(catalog, tire_payload([str(branch_a.id), "999"]))

    def test_list_filters(self, catalog, tire, bale, branch_b):
        assert [p.id for p in product_service.list_products(catalog, category="bale")] == [bale.id]
        assert [p.id for p in product_service.list_products(catalog, branch_id=str(branch_b.id))] == [tire.id]
        with pytest.raises(ValidationError):
            product_service.list_products(catalog, category="rim")

    def test_update_bumps_updated_at(self, catalog, tire):
        before = tire.updated_at
        product = product_service.update_product(catalog, str(tire.id), {"quantity": 12, "price": "95.50"})
        assert product.quantity == 12
        assert product.price == Decimal("95.50")
        assert product.updated_at >= before

    def test_update_branches(self, catalog, tire, branch_b):
        product = product_service.update_product(catalog, str(tire.id), {"branch_ids": [str(branch_b.id)]})
        assert product.branch_ids == [str(branch_b.id)]

    def test_category_cannot_change(self, catalog, tire):
        with pytest.raises(ValidationError):
            product_service.update_product(catalog, str(tire.id), {"category": "bale"})

    def test_required_attribute_cannot_be_blanked(self, catalog, tire):
        with pytest.raises(ValidationError):
            product_service.update_product(catalog, str(tire.id), {"tire_size": ""})

    def test_delete(self, catalog, tire):
        product_id = str(tire.id)
        product_service.delete_product(catalog, product_id)
        with pytest.raises(NotFoundError):
            product_service.get_product(catalog, product_id)


class TestEmployeeService:
    def _payload(self, branch_id=None, **overrides):
        payload = {
            "first_name": "Thabo",
            "last_name": "Nthako",
            "email": "Thabo@TD.co.ls",
            "role": "Manager",
            "branch_id": branch_id,
            "password": "hunter22",
        }
        payload.update(overrides)
        return payload

    def test_create_lowercases_email_and_hashes(self, catalog, branch_a):
        employee = employee_service.create_employee(catalog, self._payload(branch_a.id))

        assert employee.email == "thabo@td.co.ls"
        assert employee.password_hash != "hunter22"
        assert verify_password("hunter22", employee.password_hash)
        assert "password_hash" not in employee.to_dict()

    def test_duplicate_email_any_case(self, catalog, cashier):
        with pytest.raises(ConflictError):
            employee_service.create_employee(catalog, self._payload(email="LERATO@td.co.ls"))

    def test_short_password(self, catalog):
        with pytest.raises(PasswordValidationError):
            employee_service.create_employee(catalog, self._payload(password="abc"))

    def test_invalid_role_and_email(self, catalog):
        with pytest.raises(ValidationError):
            employee_service.create_employee(catalog, self._payload(role="Owner"))
        with pytest.raises(ValidationError):
            employee_service.create_employee(catalog, self._payload(email="not-an-email"))

    def test_unknown_branch(self, catalog):
        with pytest.raises(ValidationError):
            employee_service.create_employee(catalog, self._payload(branch_id=4242))

    def test_partial_update_ignores_blank_fields(self, catalog, cashier):
        employee = employee_service.update_employee(
            catalog, str(cashier.id), {"phone_number": "+266 5800 0000", "last_name": "", "email": None}
        )
        assert employee.phone_number == "+266 5800 0000"
        assert employee.last_name == "Mokoena"
        assert employee.email == "lerato@td.co.ls"

    def test_list_resolves_branch(self, catalog, cashier, branch_a):
        rows = employee_service.list_employees(catalog)
        assert rows[0]["branch"]["name"] == "TD Maseru"
        assert employee_service.list_employees(catalog, branch_id="999") == []

    def test_list_after_branch_deleted(self, catalog, cashier, branch_a):
        branch_id = str(branch_a.id)
        branch_service.delete_branch(catalog, branch_id)
        rows = employee_service.list_employees(catalog)
        assert rows[0]["branch_id"] == branch_id
        assert rows[0]["branch"] is None

    def test_authenticate(self, catalog, cashier):
        assert employee_service.authenticate(catalog, "Lerato@td.co.ls", "secret123").id == cashier.id
        assert employee_service.authenticate(catalog, "lerato@td.co.ls", "wrong-pass") is None
        assert employee_service.authenticate(catalog, "nobody@td.co.ls", "secret123") is None
