from __future__ import annotations

from ..extensions import db
from slabworks.time_utils import to_utc_z


class DealList(db.Model):
    """Kanban column of the deal pipeline."""
    __tablename__ = "deal_lists"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "position": self.position,
        }


class Deal(db.Model):
    """
    Pipeline card. Independent of the contract core; soft-deleted via
    deleted_at.
    """
    __tablename__ = "deals"
    __table_args__ = (
        db.Index("ix_deals_list_position", "list_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    list_id = db.Column(db.Integer, db.ForeignKey("deal_lists.id"), nullable=False)

    name = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    amount_cents = db.Column(db.Integer, nullable=True)
    status = db.Column(db.String(32), nullable=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "customer_id": self.customer_id,
            "user_id": self.user_id,
            "list_id": self.list_id,
            "name": self.name,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "status": self.status,
            "position": self.position,
            "created_at": to_utc_z(self.created_at),
        }
