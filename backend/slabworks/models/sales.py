from __future__ import annotations

from ..extensions import db
from slabworks.time_utils import to_utc_z

SALE_STATUS_ACTIVE = "active"
SALE_STATUS_PARTIALLY_CUT = "partially_cut"
SALE_STATUS_CUT = "cut"
SALE_STATUS_CANCELED = "canceled"


class Sale(db.Model):
    """
    Sales contract.

    A sale owns the reservation of its slabs, sinks and faucets through
    their sale_id column; it has no line-item table of its own. Canceling is
    a soft cancel (status + canceled_at), the row is never deleted.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_company_status_date", "company_id", "status", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default=SALE_STATUS_ACTIVE, index=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    canceled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    installed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    square_feet = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    # True when price_cents was set by hand instead of summed from the rooms
    price_overridden = db.Column(db.Boolean, nullable=False, default=False)
    project_address = db.Column(db.String(512), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    seller = db.relationship("User")
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_canceled(self) -> bool:
        return self.status == SALE_STATUS_CANCELED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "customer_id": self.customer_id,
            "seller_id": self.seller_id,
            "status": self.status,
            "sale_date": to_utc_z(self.sale_date),
            "canceled_at": to_utc_z(self.canceled_at) if self.canceled_at else None,
            "installed_at": to_utc_z(self.installed_at) if self.installed_at else None,
            "notes": self.notes,
            "square_feet": float(self.square_feet) if self.square_feet is not None else 0.0,
            "price_cents": self.price_cents,
            "price_overridden": bool(self.price_overridden),
            "project_address": self.project_address,
            "version_id": self.version_id,
        }


class SaleEvent(db.Model):
    """
    Append-only audit trail of contract lifecycle transitions.

    Written in the same DB transaction as the change it records, so a
    rolled-back sell leaves no event behind.
    """
    __tablename__ = "sale_events"
    __table_args__ = (
        db.Index("ix_sale_events_sale_occurred", "sale_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    event_type = db.Column(db.String(32), nullable=False)
    actor_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    note = db.Column(db.String(255), nullable=True)
    payload = db.Column(db.JSON, nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "sale_id": self.sale_id,
            "event_type": self.event_type,
            "actor_user_id": self.actor_user_id,
            "note": self.note,
            "payload": self.payload,
            "occurred_at": to_utc_z(self.occurred_at),
        }
