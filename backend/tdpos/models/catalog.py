from __future__ import annotations

from ..extensions import db
from tdpos.money import money_str
from tdpos.time_utils import to_utc_z, utcnow

# Districts a branch may be located in
BRANCH_LOCATIONS = (
    "Berea",
    "Butha-Buthe",
    "Leribe",
    "Mafeteng",
    "Maseru",
    "Mohale's Hoek",
    "Mokhotlong",
    "Qacha's Nek",
    "Quthing",
    "Thaba-Tseka",
)

CATEGORY_TIRE = "tire"
CATEGORY_BALE = "bale"
PRODUCT_CATEGORIES = (CATEGORY_TIRE, CATEGORY_BALE)

PRODUCT_GRADES = ("A", "B", "C")


product_branches = db.Table(
    "product_branches",
    db.Column("product_id", db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    db.Column("branch_id", db.Integer, db.ForeignKey("branches.id", ondelete="CASCADE"), primary_key=True),
)


class Branch(db.Model):
    """
    Physical retail location.

    Products reference branches through product_branches; employees hold a
    plain branch_id. Deleting a branch removes the association rows only.
    """
    __tablename__ = "branches"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(64), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Branch id={self.id} name={self.name!r} location={self.location!r}>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "location": self.location,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Product master data.

    CATEGORY VARIANTS: category is the polymorphic discriminator. Tire and
    bale attributes live in their own joined tables (TireProduct /
    BaleProduct), so a row only ever carries the attribute group its
    category requires.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_quantity", "category", "quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    category = db.Column(db.String(16), nullable=False, index=True)
    grade = db.Column(db.String(1), nullable=False, default="A")
    commodity = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow, index=True)

    branches = db.relationship(
        "Branch",
        secondary=product_branches,
        lazy="selectin",
        order_by="Branch.id",
        backref=db.backref("products", lazy=True),
    )

    __mapper_args__ = {
        "polymorphic_on": category,
        "polymorphic_identity": "product",
    }

    @property
    def branch_ids(self) -> list[str]:
        return [str(b.id) for b in self.branches]

    def attributes_dict(self) -> dict:
        return {}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} category={self.category!r} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "price": money_str(self.price),
            "quantity": self.quantity,
            "category": self.category,
            "grade": self.grade,
            "commodity": self.commodity,
            "branch_ids": self.branch_ids,
            "attributes": self.attributes_dict(),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class TireProduct(Product):
    __tablename__ = "product_tires"

    id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    tire_size = db.Column(db.String(32), nullable=False)
    tire_type = db.Column(db.String(64), nullable=False)
    load_index = db.Column(db.String(16), nullable=False)
    speed_rating = db.Column(db.String(8), nullable=False)
    warranty_period = db.Column(db.String(64), nullable=True)

    __mapper_args__ = {"polymorphic_identity": CATEGORY_TIRE, "polymorphic_load": "inline"}

    def attributes_dict(self) -> dict:
        return {
            "tire_size": self.tire_size,
            "tire_type": self.tire_type,
            "load_index": self.load_index,
            "speed_rating": self.speed_rating,
            "warranty_period": self.warranty_period,
        }


class BaleProduct(Product):
    __tablename__ = "product_bales"

    id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    bale_weight = db.Column(db.Numeric(10, 2), nullable=False)
    bale_category = db.Column(db.String(64), nullable=False)
    origin_country = db.Column(db.String(64), nullable=False)
    import_date = db.Column(db.Date, nullable=True)
    bale_count = db.Column(db.Integer, nullable=True)

    __mapper_args__ = {"polymorphic_identity": CATEGORY_BALE, "polymorphic_load": "inline"}

    def attributes_dict(self) -> dict:
        return {
            "bale_weight": money_str(self.bale_weight) if self.bale_weight is not None else None,
            "bale_category": self.bale_category,
            "origin_country": self.origin_country,
            "import_date": self.import_date.isoformat() if self.import_date else None,
            "bale_count": self.bale_count,
        }


# category -> mapped class; the only way new products are constructed
PRODUCT_CLASSES = {
    CATEGORY_TIRE: TireProduct,
    CATEGORY_BALE: BaleProduct,
}
