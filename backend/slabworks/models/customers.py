from __future__ import annotations

from ..extensions import db
from slabworks.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data, created on signup or at point of sale.

    MULTI-TENANT: Customers are scoped to companies via company_id.
    company_name is set for builder customers buying on behalf of a firm.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_company_name", "company_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    # Billing address
    address = db.Column(db.String(512), nullable=True)
    postal_code = db.Column(db.String(16), nullable=True)

    company_name = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    company = db.relationship("Company", backref=db.backref("customers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "postal_code": self.postal_code,
            "company_name": self.company_name,
            "created_at": to_utc_z(self.created_at),
        }
