from __future__ import annotations

from ..extensions import db
from slabworks.time_utils import to_utc_z


def _decimal_out(value):
    return float(value) if value is not None else None


class Stone(db.Model):
    """Stone type (color/material) a company stocks slabs of."""
    __tablename__ = "stones"
    __table_args__ = (
        db.UniqueConstraint("company_id", "name", name="uq_stones_company_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(32), nullable=False, default="granite")

    # Nominal slab dimensions in inches
    length = db.Column(db.Numeric(10, 2), nullable=True)
    width = db.Column(db.Numeric(10, 2), nullable=True)

    # Retail price per square foot, in cents
    retail_price_cents = db.Column(db.Integer, nullable=False, default=0)

    is_display = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    company = db.relationship("Company", backref=db.backref("stones", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "type": self.type,
            "length": _decimal_out(self.length),
            "width": _decimal_out(self.width),
            "retail_price_cents": self.retail_price_cents,
            "is_display": self.is_display,
            "created_at": to_utc_z(self.created_at),
        }


class SlabInventory(db.Model):
    """
    One physical slab.

    RESERVATION: sale_id is NULL while the slab is unsold. A slab is
    reservable only while sale_id IS NULL and cut_date IS NULL; see
    inventory_service.slab_is_available().

    The room_* / pricing columns are the room snapshot written at sale time.
    Slabs sold together in one room share a room_uuid; a sale's rooms are
    rebuilt from these columns.

    parent_id links a remnant (the unsold part of a partially used slab)
    to the slab it was cut from.
    """
    __tablename__ = "slab_inventory"
    __table_args__ = (
        db.Index("ix_slab_inventory_stone_sale", "stone_id", "sale_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    stone_id = db.Column(db.Integer, db.ForeignKey("stones.id"), nullable=False, index=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("slab_inventory.id"), nullable=True, index=True)

    bundle = db.Column(db.String(64), nullable=True)
    length = db.Column(db.Numeric(10, 2), nullable=True)
    width = db.Column(db.Numeric(10, 2), nullable=True)
    url = db.Column(db.String(512), nullable=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    cut_date = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Room snapshot (cleared when released)
    room_uuid = db.Column(db.String(36), nullable=True, index=True)
    room = db.Column(db.String(64), nullable=True)
    edge = db.Column(db.String(64), nullable=True)
    backsplash = db.Column(db.String(64), nullable=True)
    tear_out = db.Column(db.String(64), nullable=True)
    stove = db.Column(db.String(64), nullable=True)
    waterfall = db.Column(db.String(64), nullable=True)
    corbels = db.Column(db.Integer, nullable=True)
    seam = db.Column(db.String(64), nullable=True)
    ten_year_sealer = db.Column(db.Boolean, nullable=True)
    square_feet = db.Column(db.Numeric(10, 2), nullable=True)
    price_cents = db.Column(db.Integer, nullable=True)
    extras = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    stone = db.relationship("Stone", backref=db.backref("slabs", lazy=True))
    parent = db.relationship("SlabInventory", remote_side=[id], backref=db.backref("remnants", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stone_id": self.stone_id,
            "parent_id": self.parent_id,
            "bundle": self.bundle,
            "length": _decimal_out(self.length),
            "width": _decimal_out(self.width),
            "url": self.url,
            "sale_id": self.sale_id,
            "cut_date": to_utc_z(self.cut_date) if self.cut_date else None,
            "notes": self.notes,
            "room_id": self.room_uuid,
            "room": self.room,
            "square_feet": _decimal_out(self.square_feet),
            "price_cents": self.price_cents,
        }


class SinkType(db.Model):
    """Sink catalog entry; physical units live in `sinks`."""
    __tablename__ = "sink_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(64), nullable=True)
    retail_price_cents = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "type": self.type,
            "retail_price_cents": self.retail_price_cents,
        }


class Sink(db.Model):
    """
    Physical sink unit. Same reservation rule as slabs: sale_id IS NULL
    and not soft-deleted. slab_id is the first slab of the room it was
    sold with.
    """
    __tablename__ = "sinks"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sink_type_id = db.Column(db.Integer, db.ForeignKey("sink_types.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    slab_id = db.Column(db.Integer, db.ForeignKey("slab_inventory.id"), nullable=True, index=True)
    notes = db.Column(db.Text, nullable=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    sink_type = db.relationship("SinkType", backref=db.backref("units", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sink_type_id": self.sink_type_id,
            "sale_id": self.sale_id,
            "slab_id": self.slab_id,
            "notes": self.notes,
            "is_deleted": self.is_deleted,
        }


class FaucetType(db.Model):
    """Faucet catalog entry; physical units live in `faucets`."""
    __tablename__ = "faucet_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(64), nullable=True)
    retail_price_cents = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "type": self.type,
            "retail_price_cents": self.retail_price_cents,
        }


class Faucet(db.Model):
    """Physical faucet unit; mirrors Sink."""
    __tablename__ = "faucets"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    faucet_type_id = db.Column(db.Integer, db.ForeignKey("faucet_types.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    slab_id = db.Column(db.Integer, db.ForeignKey("slab_inventory.id"), nullable=True, index=True)
    notes = db.Column(db.Text, nullable=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)

    faucet_type = db.relationship("FaucetType", backref=db.backref("units", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "faucet_type_id": self.faucet_type_id,
            "sale_id": self.sale_id,
            "slab_id": self.slab_id,
            "notes": self.notes,
            "is_deleted": self.is_deleted,
        }
