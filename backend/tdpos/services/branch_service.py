# Overview: Branch management on top of the catalog store.

from __future__ import annotations

from tdpos.models import Branch
from tdpos.models.catalog import BRANCH_LOCATIONS
from tdpos.stores import SqlCatalogStore
from tdpos.validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    require_min_length,
    validate_payload,
)

BRANCH_POLICY = ModelValidationPolicy(
    writable_fields={"name", "location"},
    required_on_create={"name", "location"},
)


def _enforce_rules_branch(patch: dict) -> None:
    require_min_length(patch, "name", 2)
    if "location" in patch and patch["location"] not in BRANCH_LOCATIONS:
        raise ValidationError(f"location must be one of: {', '.join(BRANCH_LOCATIONS)}")


def list_branches(catalog: SqlCatalogStore) -> list[Branch]:
    return catalog.find_branches()


def get_branch(catalog: SqlCatalogStore, branch_id: str) -> Branch:
    branch = catalog.find_branch_by_id(branch_id)
    if branch is None:
        raise NotFoundError("Branch not found")
    return branch


def create_branch(catalog: SqlCatalogStore, payload: dict) -> Branch:
    patch = validate_payload(model=Branch, payload=payload, policy=BRANCH_POLICY, partial=False)
    _enforce_rules_branch(patch)
    return catalog.add_branch(Branch(**patch))


def update_branch(catalog: SqlCatalogStore, branch_id: str, payload: dict) -> Branch:
    branch = get_branch(catalog, branch_id)
    patch = validate_payload(model=Branch, payload=payload, policy=BRANCH_POLICY, partial=True)
    _enforce_rules_branch(patch)
    if not patch:
        raise ValidationError("No changes were made")
    for k, v in patch.items():
        setattr(branch, k, v)
    return catalog.update_branch(branch)


def delete_branch(catalog: SqlCatalogStore, branch_id: str) -> None:
    """
    Delete a branch.

    Products lose their membership in it; employees keep the dangling
    branch_id. Neither is deleted.
    """
    branch = get_branch(catalog, branch_id)
    catalog.delete_branch(branch)
