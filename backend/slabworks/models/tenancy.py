from __future__ import annotations

from ..extensions import db
from slabworks.time_utils import to_utc_z


class Company(db.Model):
    """
    Multi-tenant root: every fabrication shop is a Company.

    All customers, stones, fixture catalogs, sales, deals and employees
    belong to exactly one company. Queries are always scoped by company_id,
    either directly or through the owning stone / fixture type.
    """
    __tablename__ = "companies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
