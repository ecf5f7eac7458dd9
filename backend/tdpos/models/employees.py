from __future__ import annotations

from ..extensions import db
from tdpos.time_utils import to_utc_z, utcnow

ROLE_CASHIER = "Cashier"
ROLE_MANAGER = "Manager"
ROLE_ADMIN = "Admin"
EMPLOYEE_ROLES = (ROLE_CASHIER, ROLE_MANAGER, ROLE_ADMIN)


class Employee(db.Model):
    """
    A person allowed to operate the POS.

    Email is stored lower-cased and is unique, which makes the uniqueness
    case-insensitive. branch_id is a weak reference (no FK): deleting a
    branch leaves employees pointing at it.
    """
    __tablename__ = "employees"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(128), nullable=False)
    last_name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone_number = db.Column(db.String(32), nullable=True)
    role = db.Column(db.String(16), nullable=False, default=ROLE_CASHIER)
    branch_id = db.Column(db.Integer, nullable=True, index=True)
    position = db.Column(db.String(128), nullable=True)

    # bcrypt hash; never serialized
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Employee id={self.id} email={self.email!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "role": self.role,
            "branch_id": str(self.branch_id) if self.branch_id is not None else None,
            "position": self.position,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
