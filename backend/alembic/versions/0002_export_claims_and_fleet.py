"""Export LPN claims and fleet/freight master data.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

`put_away_stock.export_allocation_id` records which export container
allocation holds an LPN; `container_stock_allocation_id` keeps pointing at
the import allocation the pallet arrived on.
"""

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def _id():
    return sa.Column("id", sa.String(36), primary_key=True)


def _tenant_id():
    return sa.Column("tenant_id", sa.String(36), nullable=False, index=True)


def _active_and_timestamps():
    return (
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )


def upgrade() -> None:
    # ── Export claims ────────────────────────────────────────

    with op.batch_alter_table("put_away_stock") as batch:
        batch.add_column(sa.Column("export_allocation_id", sa.String(36)))
        batch.create_index("ix_put_away_stock_export_allocation_id", ["export_allocation_id"])
        batch.create_foreign_key(
            "fk_put_away_stock_export_allocation",
            "container_stock_allocations",
            ["export_allocation_id"], ["id"],
        )

    # ── Fleet ────────────────────────────────────────────────

    op.create_table(
        "transport_companies",
        _id(),
        _tenant_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(255)),
        sa.Column("mobile", sa.String(30)),
        *_active_and_timestamps(),
    )

    op.create_table(
        "trailer_types",
        _id(),
        _tenant_id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("max_weight_kg", sa.Float()),
        sa.Column("max_cubic_m3", sa.Float()),
        sa.Column("max_pallet", sa.Integer()),
        sa.Column("max_teu_capacity", sa.Integer()),
        sa.Column("trailer_a", sa.Boolean(), server_default="false"),
        sa.Column("trailer_b", sa.Boolean(), server_default="false"),
        sa.Column("trailer_c", sa.Boolean(), server_default="false"),
        *_active_and_timestamps(),
    )

    op.create_table(
        "vehicles",
        _id(),
        _tenant_id(),
        sa.Column("fleet_number", sa.String(50)),
        sa.Column("rego", sa.String(20), nullable=False, index=True),
        sa.Column("rego_expiry_date", sa.Date()),
        sa.Column("gps_id", sa.String(100)),
        sa.Column("description", sa.Text()),
        sa.Column("default_depot_id", sa.String(36), sa.ForeignKey("warehouses.id")),
        sa.Column("a_trailer_type_id", sa.String(36), sa.ForeignKey("trailer_types.id")),
        sa.Column("b_trailer_type_id", sa.String(36), sa.ForeignKey("trailer_types.id")),
        sa.Column("c_trailer_type_id", sa.String(36), sa.ForeignKey("trailer_types.id")),
        sa.Column("sideloader", sa.Boolean(), server_default="false"),
        *_active_and_timestamps(),
    )

    op.create_table(
        "trailers",
        _id(),
        _tenant_id(),
        sa.Column("fleet_number", sa.String(50)),
        sa.Column("rego", sa.String(20), nullable=False, index=True),
        sa.Column("rego_expiry_date", sa.Date()),
        sa.Column("trailer_type_id", sa.String(36), sa.ForeignKey("trailer_types.id")),
        sa.Column("max_weight_kg", sa.Float()),
        sa.Column("max_cube_m3", sa.Float()),
        sa.Column("max_pallet", sa.Integer()),
        sa.Column("default_warehouse_id", sa.String(36), sa.ForeignKey("warehouses.id")),
        sa.Column("dangerous_cert_number", sa.String(100)),
        sa.Column("dangerous_cert_expiry", sa.Date()),
        sa.Column("description", sa.Text()),
        *_active_and_timestamps(),
    )

    op.create_table(
        "drivers",
        _id(),
        _tenant_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(30), nullable=False),
        sa.Column("employee_type", sa.String(20), nullable=False),
        sa.Column("vehicle_id", sa.String(36), sa.ForeignKey("vehicles.id")),
        sa.Column("default_depot_id", sa.String(36), sa.ForeignKey("warehouses.id")),
        sa.Column("abn", sa.String(20)),
        sa.Column("address_street", sa.String(255)),
        sa.Column("address_city", sa.String(100)),
        sa.Column("address_state", sa.String(50)),
        sa.Column("address_postcode", sa.String(20)),
        sa.Column("driving_licence_number", sa.String(50), nullable=False),
        sa.Column("licence_expiry", sa.Date()),
        sa.Column("dangerous_goods_cert_number", sa.String(100)),
        sa.Column("dangerous_goods_cert_expiry", sa.Date()),
        sa.Column("msic_number", sa.String(50)),
        sa.Column("msic_expiry", sa.Date()),
        *_active_and_timestamps(),
    )

    # ── Freight ──────────────────────────────────────────────

    op.create_table(
        "shipping_lines",
        _id(),
        _tenant_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("contact_name", sa.String(255)),
        sa.Column("contact_phone_number", sa.String(30)),
        sa.Column("address_street", sa.String(255)),
        sa.Column("address_city", sa.String(100)),
        sa.Column("address_state", sa.String(50)),
        sa.Column("address_postcode", sa.String(20)),
        sa.Column("import_free_days", sa.Integer()),
        sa.Column("calculate_import_free_days_using", sa.String(30)),
        *_active_and_timestamps(),
    )

    op.create_table(
        "vessels",
        _id(),
        _tenant_id(),
        sa.Column("vessel_name", sa.String(255), nullable=False),
        sa.Column("voyage_number", sa.String(50)),
        sa.Column("lloyds_number", sa.String(20)),
        sa.Column("job_type", sa.String(10), nullable=False),
        sa.Column("eta", sa.DateTime()),
        sa.Column("availability", sa.DateTime()),
        sa.Column("storage_start", sa.DateTime()),
        sa.Column("first_free_import_date", sa.DateTime()),
        sa.Column("etd", sa.DateTime()),
        sa.Column("receival_start", sa.DateTime()),
        sa.Column("cutoff", sa.DateTime()),
        sa.Column("reefer_cutoff", sa.DateTime()),
        *_active_and_timestamps(),
    )

    op.create_table(
        "container_sizes",
        _id(),
        _tenant_id(),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(255)),
        sa.Column("attribute", sa.String(2)),
        sa.Column("weight", sa.Float()),
        *_active_and_timestamps(),
    )


def downgrade() -> None:
    for table in (
        "container_sizes",
        "vessels",
        "shipping_lines",
        "drivers",
        "trailers",
        "vehicles",
        "trailer_types",
        "transport_companies",
    ):
        op.drop_table(table)

    with op.batch_alter_table("put_away_stock") as batch:
        batch.drop_constraint("fk_put_away_stock_export_allocation", type_="foreignkey")
        batch.drop_index("ix_put_away_stock_export_allocation_id")
        batch.drop_column("export_allocation_id")
