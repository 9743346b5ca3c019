"""Initial schema: platform tables and tenant-owned warehouse tables.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19

Every tenant-owned table carries a `tenant_id` column; isolation is
row-level, so one migration stream covers all tenants:

    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def _id():
    return sa.Column("id", sa.String(36), primary_key=True)


def _tenant_id():
    return sa.Column("tenant_id", sa.String(36), nullable=False, index=True)


def _timestamps():
    return (
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )


def upgrade() -> None:
    # ── Platform ─────────────────────────────────────────────

    op.create_table(
        "tenants",
        _id(),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255)),
        sa.Column("abn", sa.String(20)),
        sa.Column("acn", sa.String(20)),
        sa.Column("website", sa.String(255)),
        sa.Column("scac", sa.String(10)),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30)),
        sa.Column("fax", sa.String(30)),
        sa.Column("emails", sa.JSON()),
        sa.Column("street", sa.String(255)),
        sa.Column("city", sa.String(100)),
        sa.Column("state", sa.String(50)),
        sa.Column("postal_code", sa.String(20)),
        sa.Column("country_code", sa.String(2)),
        sa.Column("subdomain", sa.String(63), unique=True, index=True),
        sa.Column("approved", sa.Boolean(), server_default="false"),
        sa.Column("approved_by", sa.String(36)),
        sa.Column("onboarding_step", sa.String(30), server_default="submitted"),
        sa.Column("data_region", sa.String(30)),
        sa.Column("privacy_consent", sa.Boolean(), server_default="false"),
        sa.Column("terms_accepted_at", sa.DateTime()),
        sa.Column("deleted_at", sa.DateTime()),
        *_timestamps(),
    )

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(30), server_default="operator"),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("tenant_id", sa.String(36), sa.ForeignKey("tenants.id"), index=True),
        sa.Column("tenant_role_id", sa.String(36), index=True),
        sa.Column("custom_permissions", sa.JSON()),
        *_timestamps(),
    )

    # ── Access control & master data ─────────────────────────

    op.create_table(
        "tenant_roles",
        _id(),
        _tenant_id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("is_system_role", sa.Boolean(), server_default="false"),
        sa.Column("permissions", sa.JSON()),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "name", name="uq_tenant_roles_tenant_name"),
    )

    op.create_table(
        "customers",
        _id(),
        _tenant_id(),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("contact_name", sa.String(255)),
        sa.Column("contact_phone", sa.String(30)),
        sa.Column("street", sa.String(255)),
        sa.Column("city", sa.String(100)),
        sa.Column("state", sa.String(50)),
        sa.Column("postcode", sa.String(20)),
        *_timestamps(),
    )

    op.create_table(
        "paying_customers",
        _id(),
        _tenant_id(),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("abn", sa.String(20)),
        sa.Column("email", sa.String(255)),
        sa.Column("contact_name", sa.String(255)),
        sa.Column("contact_phone", sa.String(30)),
        sa.Column("billing_street", sa.String(255)),
        sa.Column("billing_city", sa.String(100)),
        sa.Column("billing_state", sa.String(50)),
        sa.Column("billing_postcode", sa.String(20)),
        sa.Column("delivery_same_as_billing", sa.Boolean(), server_default="false"),
        sa.Column("delivery_street", sa.String(255)),
        sa.Column("delivery_city", sa.String(100)),
        sa.Column("delivery_state", sa.String(50)),
        sa.Column("delivery_postcode", sa.String(20)),
        *_timestamps(),
    )

    op.create_table(
        "warehouses",
        _id(),
        _tenant_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("street", sa.String(255)),
        sa.Column("city", sa.String(100)),
        sa.Column("state", sa.String(50)),
        sa.Column("postcode", sa.String(20)),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        *_timestamps(),
    )

    op.create_table(
        "storage_units",
        _id(),
        _tenant_id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("length_per_su_mm", sa.Float()),
        sa.Column("width_per_su_mm", sa.Float()),
        *_timestamps(),
    )

    op.create_table(
        "skus",
        _id(),
        _tenant_id(),
        sa.Column("sku_code", sa.String(100), nullable=False, index=True),
        sa.Column("description", sa.String(255)),
        sa.Column("customer_id", sa.String(36), sa.ForeignKey("customers.id")),
        sa.Column("storage_unit_id", sa.String(36), sa.ForeignKey("storage_units.id")),
        sa.Column("hu_per_su", sa.Integer()),
        sa.Column("receive_hu", sa.Boolean(), server_default="false"),
        sa.Column("pick_hu", sa.Boolean(), server_default="false"),
        sa.Column("pick_strategy", sa.String(10), server_default="FIFO"),
        sa.Column("length_per_hu_mm", sa.Float()),
        sa.Column("width_per_hu_mm", sa.Float()),
        sa.Column("height_per_hu_mm", sa.Float()),
        sa.Column("weight_per_hu_kg", sa.Float()),
        sa.Column("cases_per_layer", sa.Integer()),
        sa.Column("layers_per_pallet", sa.Integer()),
        sa.Column("cases_per_pallet", sa.Integer()),
        sa.Column("cases_per_layer_calculated", sa.Boolean(), server_default="false"),
        sa.Column("layers_per_pallet_calculated", sa.Boolean(), server_default="false"),
        sa.Column("cases_per_pallet_calculated", sa.Boolean(), server_default="false"),
        sa.Column("eaches_per_case", sa.Integer()),
        sa.Column("is_expiry", sa.Boolean(), server_default="false"),
        sa.Column("is_attribute1", sa.Boolean(), server_default="false"),
        sa.Column("is_attribute2", sa.Boolean(), server_default="false"),
        sa.Column("expiry_date", sa.Date()),
        sa.Column("attribute1", sa.String(100)),
        sa.Column("attribute2", sa.String(100)),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "sku_code", name="uq_skus_tenant_code"),
    )

    # ── Inbound / outbound jobs ──────────────────────────────

    op.create_table(
        "inbound_inventory",
        _id(),
        _tenant_id(),
        sa.Column("job_code", sa.String(30), nullable=False, index=True),
        sa.Column("expected_date", sa.Date()),
        sa.Column("completed_date", sa.DateTime()),
        sa.Column("delivery_customer_reference", sa.String(100)),
        sa.Column("ordering_customer_reference", sa.String(100)),
        sa.Column("delivery_customer_kind", sa.String(30)),
        sa.Column("delivery_customer_id", sa.String(36)),
        sa.Column("customer_name", sa.String(255)),
        sa.Column("customer_location", sa.String(100)),
        sa.Column("customer_state", sa.String(50)),
        sa.Column("customer_contact_name", sa.String(255)),
        sa.Column("supplier_name", sa.String(255)),
        sa.Column("transport_mode", sa.String(20)),
        sa.Column("warehouse_id", sa.String(36), sa.ForeignKey("warehouses.id"), index=True),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "job_code", name="uq_inbound_tenant_job_code"),
    )

    op.create_table(
        "inbound_product_lines",
        _id(),
        _tenant_id(),
        sa.Column(
            "inbound_inventory_id", sa.String(36),
            sa.ForeignKey("inbound_inventory.id"), nullable=False, index=True,
        ),
        sa.Column("sku_id", sa.String(36), sa.ForeignKey("skus.id"), index=True),
        sa.Column("sku_description", sa.String(255)),
        sa.Column("batch_number", sa.String(100), index=True),
        sa.Column("lpn_qty", sa.Integer()),
        sa.Column("expected_qty", sa.Integer()),
        sa.Column("received_qty", sa.Integer()),
        sa.Column("expected_weight", sa.Float()),
        sa.Column("received_weight", sa.Float()),
        sa.Column("sqm_per_su", sa.Float()),
        sa.Column("pallet_spaces", sa.Float()),
        sa.Column("weight_per_hu", sa.Float()),
        sa.Column("expected_cubic_per_hu", sa.Float()),
        sa.Column("received_cubic_per_hu", sa.Float()),
        sa.Column("expiry_date", sa.Date()),
        sa.Column("attribute1", sa.String(100)),
        sa.Column("attribute2", sa.String(100)),
        *_timestamps(),
    )

    party_columns = []
    for prefix in ("customer", "customer_to", "customer_from"):
        party_columns += [
            sa.Column(f"{prefix}_kind", sa.String(30)),
            sa.Column(f"{prefix}_id", sa.String(36)),
            sa.Column(f"{prefix}_name", sa.String(255)),
            sa.Column(f"{prefix}_location", sa.String(100)),
            sa.Column(f"{prefix}_state", sa.String(50)),
            sa.Column(f"{prefix}_contact", sa.String(255)),
        ]

    op.create_table(
        "outbound_inventory",
        _id(),
        _tenant_id(),
        sa.Column("job_code", sa.String(30), nullable=False, index=True),
        sa.Column("status", sa.String(30), server_default="draft", index=True),
        sa.Column("customer_ref_number", sa.String(100)),
        sa.Column("consignee_ref_number", sa.String(100)),
        sa.Column("container_number", sa.String(50)),
        sa.Column("inspection_number", sa.String(100)),
        sa.Column("inbound_job_number", sa.String(30)),
        sa.Column("warehouse_id", sa.String(36), sa.ForeignKey("warehouses.id"), index=True),
        *party_columns,
        sa.Column("required_date_time", sa.DateTime()),
        sa.Column("order_notes", sa.Text()),
        sa.Column("pallet_count", sa.Integer()),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "job_code", name="uq_outbound_tenant_job_code"),
    )

    op.create_table(
        "outbound_product_lines",
        _id(),
        _tenant_id(),
        sa.Column(
            "outbound_inventory_id", sa.String(36),
            sa.ForeignKey("outbound_inventory.id"), nullable=False, index=True,
        ),
        sa.Column("sku_id", sa.String(36), sa.ForeignKey("skus.id"), index=True),
        sa.Column("sku_description", sa.String(255)),
        sa.Column("batch_number", sa.String(100)),
        sa.Column("expiry", sa.Date()),
        sa.Column("attribute1", sa.String(100)),
        sa.Column("attribute2", sa.String(100)),
        sa.Column("expected_qty", sa.Integer()),
        sa.Column("allocated_qty", sa.Integer(), server_default="0"),
        sa.Column("expected_weight", sa.Float()),
        sa.Column("allocated_weight", sa.Float()),
        sa.Column("required_cubic_per_hu", sa.Float()),
        sa.Column("allocated_cubic_per_hu", sa.Float()),
        sa.Column("plt_qty", sa.Float()),
        sa.Column("container_number", sa.String(50)),
        sa.Column("location", sa.String(100)),
        *_timestamps(),
    )

    # ── Container bookings ───────────────────────────────────

    op.create_table(
        "container_bookings",
        _id(),
        _tenant_id(),
        sa.Column("booking_type", sa.String(10), nullable=False, index=True),
        sa.Column("booking_code", sa.String(30), nullable=False, index=True),
        sa.Column("status", sa.String(30), server_default="draft", index=True),
        sa.Column("customer_reference", sa.String(100)),
        sa.Column("booking_reference", sa.String(100)),
        sa.Column("charge_to_kind", sa.String(30)),
        sa.Column("charge_to_id", sa.String(36)),
        sa.Column("charge_to_name", sa.String(255)),
        sa.Column("charge_to_contact_name", sa.String(255)),
        sa.Column("charge_to_contact_number", sa.String(30)),
        sa.Column("consignee_id", sa.String(36), sa.ForeignKey("customers.id")),
        sa.Column("consignor_id", sa.String(36), sa.ForeignKey("customers.id")),
        sa.Column("vessel_name", sa.String(255)),
        sa.Column("voyage_number", sa.String(50)),
        sa.Column("eta", sa.DateTime()),
        sa.Column("etd", sa.DateTime()),
        sa.Column("availability", sa.DateTime()),
        sa.Column("storage_start", sa.Date()),
        sa.Column("first_free_import_date", sa.Date()),
        sa.Column("receival_start", sa.DateTime()),
        sa.Column("cutoff", sa.DateTime()),
        sa.Column("from_name", sa.String(255)),
        sa.Column("from_address", sa.String(255)),
        sa.Column("from_city", sa.String(100)),
        sa.Column("from_state", sa.String(50)),
        sa.Column("from_postcode", sa.String(20)),
        sa.Column("to_name", sa.String(255)),
        sa.Column("to_address", sa.String(255)),
        sa.Column("to_city", sa.String(100)),
        sa.Column("to_state", sa.String(50)),
        sa.Column("to_postcode", sa.String(20)),
        sa.Column("container_sizes", sa.JSON()),
        sa.Column("container_quantities", sa.JSON()),
        sa.Column("full_routing", sa.JSON()),
        sa.Column("empty_routing", sa.JSON()),
        sa.Column("instructions", sa.Text()),
        sa.Column("job_notes", sa.Text()),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "booking_code", name="uq_bookings_tenant_code"),
    )

    op.create_table(
        "container_details",
        _id(),
        _tenant_id(),
        sa.Column(
            "booking_id", sa.String(36),
            sa.ForeignKey("container_bookings.id"), nullable=False, index=True,
        ),
        sa.Column("container_number", sa.String(30), nullable=False),
        sa.Column("container_size", sa.String(20)),
        sa.Column("iso_code", sa.String(10)),
        sa.Column("seal_number", sa.String(50)),
        sa.Column("shipping_line", sa.String(255)),
        sa.Column("warehouse_id", sa.String(36), sa.ForeignKey("warehouses.id")),
        sa.Column("gross_weight", sa.Float()),
        sa.Column("tare_weight", sa.Float()),
        sa.Column("cargo_weight", sa.Float()),
        sa.Column("status", sa.String(30), nullable=False, index=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "tenant_id", "container_number", name="uq_container_details_tenant_number"
        ),
    )

    op.create_table(
        "container_stock_allocations",
        _id(),
        _tenant_id(),
        sa.Column(
            "container_detail_id", sa.String(36),
            sa.ForeignKey("container_details.id"), nullable=False, index=True,
        ),
        sa.Column(
            "booking_id", sa.String(36),
            sa.ForeignKey("container_bookings.id"), nullable=False, index=True,
        ),
        sa.Column("stage", sa.String(20), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "allocation_product_lines",
        _id(),
        _tenant_id(),
        sa.Column(
            "allocation_id", sa.String(36),
            sa.ForeignKey("container_stock_allocations.id"), nullable=False, index=True,
        ),
        sa.Column("position", sa.Integer(), server_default="0"),
        sa.Column("sku_id", sa.String(36), sa.ForeignKey("skus.id")),
        sa.Column("sku_description", sa.String(255)),
        sa.Column("batch_number", sa.String(100)),
        sa.Column("expected_qty", sa.Integer()),
        sa.Column("received_qty", sa.Integer()),
        sa.Column("allocated_qty", sa.Integer()),
        sa.Column("picked_qty", sa.Integer()),
        sa.Column("expected_weight", sa.Float()),
        sa.Column("received_weight", sa.Float()),
        sa.Column("lpn_qty", sa.Integer()),
        sa.Column("sqm_per_su", sa.Float()),
        sa.Column("plt_qty", sa.Float()),
        sa.Column("pallet_spaces", sa.Float()),
        sa.Column("weight_per_hu", sa.Float()),
        sa.Column("expected_cubic_per_hu", sa.Float()),
        sa.Column("location", sa.String(100)),
        sa.Column("expiry_date", sa.Date()),
        sa.Column("attribute1", sa.String(100)),
        sa.Column("attribute2", sa.String(100)),
    )

    # ── Stock ────────────────────────────────────────────────

    op.create_table(
        "put_away_stock",
        _id(),
        _tenant_id(),
        sa.Column("lpn_number", sa.String(20), nullable=False, index=True),
        sa.Column(
            "inbound_inventory_id", sa.String(36),
            sa.ForeignKey("inbound_inventory.id"), index=True,
        ),
        sa.Column(
            "inbound_product_line_id", sa.String(36),
            sa.ForeignKey("inbound_product_lines.id"), index=True,
        ),
        sa.Column(
            "container_detail_id", sa.String(36),
            sa.ForeignKey("container_details.id"), index=True,
        ),
        sa.Column(
            "container_stock_allocation_id", sa.String(36),
            sa.ForeignKey("container_stock_allocations.id"),
        ),
        sa.Column("sku_id", sa.String(36), sa.ForeignKey("skus.id"), index=True),
        sa.Column("batch_number", sa.String(100)),
        sa.Column("warehouse_id", sa.String(36), sa.ForeignKey("warehouses.id"), index=True),
        sa.Column("location", sa.String(100), index=True),
        sa.Column("hu_qty", sa.Integer(), server_default="0"),
        sa.Column("allocation_status", sa.String(20), server_default="available", index=True),
        sa.Column(
            "outbound_inventory_id", sa.String(36),
            sa.ForeignKey("outbound_inventory.id"), index=True,
        ),
        sa.Column(
            "outbound_product_line_id", sa.String(36),
            sa.ForeignKey("outbound_product_lines.id"), index=True,
        ),
        sa.Column("allocated_at", sa.DateTime()),
        sa.Column("allocated_by", sa.String(36)),
        sa.Column("is_deleted", sa.Boolean(), server_default="false", index=True),
        sa.Column("deleted_at", sa.DateTime()),
        sa.Column("deleted_by", sa.String(36)),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "lpn_number", name="uq_put_away_tenant_lpn"),
    )

    op.create_table(
        "pickup_stock",
        _id(),
        _tenant_id(),
        sa.Column(
            "outbound_inventory_id", sa.String(36),
            sa.ForeignKey("outbound_inventory.id"), index=True,
        ),
        sa.Column(
            "outbound_product_line_id", sa.String(36),
            sa.ForeignKey("outbound_product_lines.id"), index=True,
        ),
        sa.Column(
            "container_detail_id", sa.String(36),
            sa.ForeignKey("container_details.id"), index=True,
        ),
        sa.Column(
            "container_stock_allocation_id", sa.String(36),
            sa.ForeignKey("container_stock_allocations.id"),
        ),
        sa.Column("picked_up_lpns", sa.JSON()),
        sa.Column("picked_up_loosened_qty", sa.Integer(), server_default="0"),
        sa.Column("buffer_qty", sa.Integer(), server_default="0"),
        sa.Column("picked_up_qty", sa.Integer(), server_default="0"),
        sa.Column("final_picked_up_qty", sa.Integer(), server_default="0"),
        sa.Column("pickup_status", sa.String(20), server_default="draft", index=True),
        sa.Column("picked_up_by", sa.String(36)),
        sa.Column("notes", sa.Text()),
        *_timestamps(),
    )

    # ── Audit ────────────────────────────────────────────────

    op.create_table(
        "activity_logs",
        _id(),
        sa.Column("tenant_id", sa.String(36), index=True),
        sa.Column("user_id", sa.String(36), nullable=False, index=True),
        sa.Column("user_name", sa.String(200)),
        sa.Column("action", sa.String(50), nullable=False, index=True),
        sa.Column("entity_type", sa.String(50), nullable=False, index=True),
        sa.Column("entity_id", sa.String(36)),
        sa.Column("entity_code", sa.String(100)),
        sa.Column("summary", sa.Text()),
        sa.Column("details", sa.JSON()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), index=True),
    )


def downgrade() -> None:
    for table in (
        "activity_logs",
        "pickup_stock",
        "put_away_stock",
        "allocation_product_lines",
        "container_stock_allocations",
        "container_details",
        "container_bookings",
        "outbound_product_lines",
        "outbound_inventory",
        "inbound_product_lines",
        "inbound_inventory",
        "skus",
        "storage_units",
        "warehouses",
        "paying_customers",
        "customers",
        "tenant_roles",
        "users",
        "tenants",
    ):
        op.drop_table(table)
