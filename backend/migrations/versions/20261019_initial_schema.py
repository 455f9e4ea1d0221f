"""Initial slabworks schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column("id", sa.Integer(), nullable=False)


def _created_at():
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("(CURRENT_TIMESTAMP)"),
        nullable=False,
    )


def upgrade():
    op.create_table(
        "companies",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_companies_is_active", "companies", ["is_active"])

    op.create_table(
        "users",
        _id(),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_employee", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", "email", name="uq_users_company_email"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_users_company_id", "users", ["company_id"])
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "session_tokens",
        _id(),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_session_tokens_user_id", "session_tokens", ["user_id"])
    op.create_index("ix_session_tokens_company_id", "session_tokens", ["company_id"])
    op.create_index("ix_session_tokens_token_hash", "session_tokens", ["token_hash"], unique=True)

    op.create_table(
        "customers",
        _id(),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("postal_code", sa.String(16), nullable=True),
        sa.Column("company_name", sa.String(255), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_customers_company_id", "customers", ["company_id"])
    op.create_index("ix_customers_company_name", "customers", ["company_id", "name"])

    op.create_table(
        "stones",
        _id(),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(32), nullable=False, server_default="granite"),
        sa.Column("length", sa.Numeric(10, 2), nullable=True),
        sa.Column("width", sa.Numeric(10, 2), nullable=True),
        sa.Column("retail_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_display", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", "name", name="uq_stones_company_name"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stones_company_id", "stones", ["company_id"])

    op.create_table(
        "sales",
        _id(),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("seller_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("sale_date", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("installed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("square_feet", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("price_overridden", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("project_address", sa.String(512), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["seller_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.create_index("ix_sales_company_id", ["company_id"], unique=False)
        batch_op.create_index("ix_sales_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_sales_seller_id", ["seller_id"], unique=False)
        batch_op.create_index("ix_sales_status", ["status"], unique=False)
        batch_op.create_index("ix_sales_company_status_date", ["company_id", "status", "sale_date"], unique=False)

    op.create_table(
        "slab_inventory",
        _id(),
        sa.Column("stone_id", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("bundle", sa.String(64), nullable=True),
        sa.Column("length", sa.Numeric(10, 2), nullable=True),
        sa.Column("width", sa.Numeric(10, 2), nullable=True),
        sa.Column("url", sa.String(512), nullable=True),
        sa.Column("sale_id", sa.Integer(), nullable=True),
        sa.Column("cut_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("room_uuid", sa.String(36), nullable=True),
        sa.Column("room", sa.String(64), nullable=True),
        sa.Column("edge", sa.String(64), nullable=True),
        sa.Column("backsplash", sa.String(64), nullable=True),
        sa.Column("tear_out", sa.String(64), nullable=True),
        sa.Column("stove", sa.String(64), nullable=True),
        sa.Column("waterfall", sa.String(64), nullable=True),
        sa.Column("corbels", sa.Integer(), nullable=True),
        sa.Column("seam", sa.String(64), nullable=True),
        sa.Column("ten_year_sealer", sa.Boolean(), nullable=True),
        sa.Column("square_feet", sa.Numeric(10, 2), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=True),
        sa.Column("extras", sa.JSON(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["stone_id"], ["stones.id"]),
        sa.ForeignKeyConstraint(["parent_id"], ["slab_inventory.id"]),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("slab_inventory", schema=None) as batch_op:
        batch_op.create_index("ix_slab_inventory_stone_id", ["stone_id"], unique=False)
        batch_op.create_index("ix_slab_inventory_parent_id", ["parent_id"], unique=False)
        batch_op.create_index("ix_slab_inventory_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_slab_inventory_room_uuid", ["room_uuid"], unique=False)
        batch_op.create_index("ix_slab_inventory_stone_sale", ["stone_id", "sale_id"], unique=False)

    for type_table, unit_table, type_fk in (
        ("sink_types", "sinks", "sink_type_id"),
        ("faucet_types", "faucets", "faucet_type_id"),
    ):
        op.create_table(
            type_table,
            _id(),
            sa.Column("company_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("type", sa.String(64), nullable=True),
            sa.Column("retail_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
            sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
            sa.PrimaryKeyConstraint("id"),
            sqlite_autoincrement=True,
        )
        op.create_index(f"ix_{type_table}_company_id", type_table, ["company_id"])

        op.create_table(
            unit_table,
            _id(),
            sa.Column(type_fk, sa.Integer(), nullable=False),
            sa.Column("sale_id", sa.Integer(), nullable=True),
            sa.Column("slab_id", sa.Integer(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("0")),
            sa.ForeignKeyConstraint([type_fk], [f"{type_table}.id"]),
            sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
            sa.ForeignKeyConstraint(["slab_id"], ["slab_inventory.id"]),
            sa.PrimaryKeyConstraint("id"),
            sqlite_autoincrement=True,
        )
        op.create_index(f"ix_{unit_table}_{type_fk}", unit_table, [type_fk])
        op.create_index(f"ix_{unit_table}_sale_id", unit_table, ["sale_id"])
        op.create_index(f"ix_{unit_table}_slab_id", unit_table, ["slab_id"])

    op.create_table(
        "sale_events",
        _id(),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(32), nullable=False),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("note", sa.String(255), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["actor_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_sale_events_company_id", "sale_events", ["company_id"])
    op.create_index("ix_sale_events_sale_id", "sale_events", ["sale_id"])
    op.create_index("ix_sale_events_sale_occurred", "sale_events", ["sale_id", "occurred_at"])

    op.create_table(
        "deal_lists",
        _id(),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_deal_lists_company_id", "deal_lists", ["company_id"])

    op.create_table(
        "deals",
        _id(),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("list_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount_cents", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(32), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["list_id"], ["deal_lists.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_deals_company_id", "deals", ["company_id"])
    op.create_index("ix_deals_customer_id", "deals", ["customer_id"])
    op.create_index("ix_deals_list_position", "deals", ["list_id", "position"])


def downgrade():
    for table in (
        "deals",
        "deal_lists",
        "sale_events",
        "faucets",
        "faucet_types",
        "sinks",
        "sink_types",
        "slab_inventory",
        "sales",
        "stones",
        "customers",
        "session_tokens",
        "users",
        "companies",
    ):
        op.drop_table(table)
