# Overview: Product management with per-category attribute validation.

"""
Products Service

Products are a tagged variant keyed by category: a tire carries tire
attributes, a bale carries bale attributes, and nothing else. The category
is fixed at creation; changing it means deleting and re-creating.

Every product must be available in at least one existing branch.
"""

from __future__ import annotations

from tdpos.models import Product
from tdpos.models.catalog import (
    CATEGORY_BALE,
    CATEGORY_TIRE,
    PRODUCT_CATEGORIES,
    PRODUCT_CLASSES,
    PRODUCT_GRADES,
)
from tdpos.stores import ProductFilter, SqlCatalogStore
from tdpos.validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from tdpos.time_utils import utcnow

COMMON_FIELDS = {"name", "price", "quantity", "grade", "commodity"}
CATEGORY_FIELDS = {
    CATEGORY_TIRE: {"tire_size", "tire_type", "load_index", "speed_rating", "warranty_period"},
    CATEGORY_BALE: {"bale_weight", "bale_category", "origin_country", "import_date", "bale_count"},
}
CATEGORY_REQUIRED = {
    CATEGORY_TIRE: {"tire_size", "tire_type", "load_index", "speed_rating"},
    CATEGORY_BALE: {"bale_weight", "bale_category", "origin_country"},
}

PRODUCT_POLICIES = {
    category: ModelValidationPolicy(
        writable_fields=COMMON_FIELDS | CATEGORY_FIELDS[category],
        required_on_create={"name", "price", "quantity", "grade"} | CATEGORY_REQUIRED[category],
    )
    for category in PRODUCT_CATEGORIES
}


def _split_payload(payload: dict) -> tuple[dict, list | None]:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    data = dict(payload)
    data.pop("category", None)
    branch_ids = data.pop("branch_ids", None)
    if branch_ids is not None and not isinstance(branch_ids, list):
        raise ValidationError("branch_ids must be a list")
    return data, branch_ids


def _resolve_branches(catalog: SqlCatalogStore, branch_ids: list) -> list:
    wanted = list(dict.fromkeys(str(b) for b in branch_ids))
    if not wanted:
        raise ValidationError("Select at least one branch")
    branches = catalog.find_branches_by_ids(wanted)
    if len(branches) != len(wanted):
        raise ValidationError("Unknown branch in branch_ids")
    return branches


def _enforce_grade(patch: dict) -> None:
    if "grade" in patch and patch["grade"] not in PRODUCT_GRADES:
        raise ValidationError(f"grade must be one of: {', '.join(PRODUCT_GRADES)}")


def list_products(
    catalog: SqlCatalogStore,
    *,
    category: str | None = None,
    branch_id: str | None = None,
    below_quantity: int | None = None,
) -> list[Product]:
    if category is not None and category not in PRODUCT_CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(PRODUCT_CATEGORIES)}")
    return catalog.find_products(ProductFilter(
        category=category,
        branch_id=branch_id,
        below_quantity=below_quantity,
    ))


def get_product(catalog: SqlCatalogStore, product_id: str) -> Product:
    product = catalog.find_product_by_id(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(catalog: SqlCatalogStore, payload: dict) -> Product:
    category = (payload or {}).get("category")
    if category not in PRODUCT_CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(PRODUCT_CATEGORIES)}")

    model = PRODUCT_CLASSES[category]
    data, branch_ids = _split_payload(payload)
    patch = validate_payload(model=model, payload=data, policy=PRODUCT_POLICIES[category], partial=False)
    enforce_rules_product(patch)
    _enforce_grade(patch)

    product = model(**patch)
    product.branches = _resolve_branches(catalog, branch_ids or [])
    return catalog.add_product(product)


def update_product(catalog: SqlCatalogStore, product_id: str, payload: dict) -> Product:
    product = get_product(catalog, product_id)

    requested_category = (payload or {}).get("category")
    if requested_category is not None and requested_category != product.category:
        raise ValidationError("category cannot be changed")

    data, branch_ids = _split_payload(payload)
    patch = validate_payload(
        model=type(product),
        payload=data,
        policy=PRODUCT_POLICIES[product.category],
        partial=True,
    )
    enforce_rules_product(patch)
    _enforce_grade(patch)

    for field in CATEGORY_REQUIRED[product.category]:
        if field in patch and patch[field] in (None, ""):
            raise ValidationError(f"{field} is required for {product.category} products")

    for k, v in patch.items():
        setattr(product, k, v)
    if branch_ids is not None:
        product.branches = _resolve_branches(catalog, branch_ids)
    product.updated_at = utcnow()
    return catalog.update_product(product)


def delete_product(catalog: SqlCatalogStore, product_id: str) -> None:
    product = get_product(catalog, product_id)
    catalog.delete_product(product)
