# Overview: Employee management and credential checks for POS operators.

"""
Employee Service

Every sale is attributed to a cashier, so every POS operator is an
Employee. Emails are unique regardless of case (stored lower-cased).
Credentials are hashed with bcrypt and never leave this module.
"""

import re

import bcrypt

from tdpos.models import Employee
from tdpos.models.employees import EMPLOYEE_ROLES
from tdpos.stores import SqlCatalogStore
from tdpos.validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from tdpos.time_utils import utcnow

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

EMPLOYEE_POLICY = ModelValidationPolicy(
    writable_fields={"first_name", "last_name", "email", "phone_number", "role", "branch_id", "position"},
    required_on_create={"first_name", "last_name", "email", "role"},
)


class PasswordValidationError(ValidationError):
    """Raised when a credential doesn't meet requirements."""


def hash_password(password: str) -> str:
    """Hash with bcrypt (cost factor 12) after a minimum-length check."""
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # malformed hash in the database
        return False


def _normalize(patch: dict) -> dict:
    if "email" in patch and patch["email"] is not None:
        email = patch["email"].strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("email must be a valid email address")
        patch["email"] = email
    if "role" in patch and patch["role"] not in EMPLOYEE_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(EMPLOYEE_ROLES)}")
    return patch


def _check_branch(catalog: SqlCatalogStore, branch_id) -> None:
    if branch_id is not None and catalog.find_branch_by_id(branch_id) is None:
        raise ValidationError("Branch not found")


def list_employees(catalog: SqlCatalogStore, branch_id: str | None = None) -> list[dict]:
    """Employees as dicts, each with its branch resolved (None if gone)."""
    branches = {str(b.id): b for b in catalog.find_branches()}
    rows = []
    for emp in catalog.find_employees(branch_id=branch_id):
        row = emp.to_dict()
        branch = branches.get(row["branch_id"])
        row["branch"] = branch.to_dict() if branch else None
        rows.append(row)
    return rows


def get_employee(catalog: SqlCatalogStore, employee_id: str) -> Employee:
    employee = catalog.find_employee_by_id(employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


def create_employee(catalog: SqlCatalogStore, payload: dict) -> Employee:
    data = dict(payload or {})
    password = data.pop("password", None)
    patch = _normalize(validate_payload(model=Employee, payload=data, policy=EMPLOYEE_POLICY, partial=False))
    _check_branch(catalog, patch.get("branch_id"))

    if catalog.find_employee_by_email(patch["email"]) is not None:
        raise ConflictError("Employee with this email already exists")

    employee = Employee(**patch, password_hash=hash_password(password))
    return catalog.add_employee(employee)


def update_employee(catalog: SqlCatalogStore, employee_id: str, payload: dict) -> Employee:
    """Partial update: only fields present (and non-empty) are changed."""
    employee = get_employee(catalog, employee_id)
    data = {k: v for k, v in (payload or {}).items() if v not in (None, "")}
    password = data.pop("password", None)
    patch = _normalize(validate_payload(model=Employee, payload=data, policy=EMPLOYEE_POLICY, partial=True))
    _check_branch(catalog, patch.get("branch_id"))

    if "email" in patch and patch["email"] != employee.email:
        if catalog.find_employee_by_email(patch["email"]) is not None:
            raise ConflictError("Employee with this email already exists")

    for k, v in patch.items():
        setattr(employee, k, v)
    if password:
        employee.password_hash = hash_password(password)
    employee.updated_at = utcnow()
    return catalog.update_employee(employee)


def delete_employee(catalog: SqlCatalogStore, employee_id: str) -> None:
    employee = get_employee(catalog, employee_id)
    catalog.delete_employee(employee)


def authenticate(catalog: SqlCatalogStore, email: str, password: str) -> Employee | None:
    """Employee for this email/password pair, or None."""
    employee = catalog.find_employee_by_email(email or "")
    if employee is None or not verify_password(password, employee.password_hash):
        return None
    return employee
