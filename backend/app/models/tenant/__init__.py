"""Tenant-owned models.

These models use TenantBase; every row carries the owning `tenant_id`.
"""

# ── Access control ───────────────────────────────────────────
from app.models.tenant.tenant_role import TenantRole

# ── Master data ──────────────────────────────────────────────
from app.models.tenant.customer import Customer, PayingCustomer
from app.models.tenant.warehouse import Warehouse
from app.models.tenant.sku import SKU, StorageUnit
from app.models.tenant.fleet import Driver, Trailer, TrailerType, TransportCompany, Vehicle
from app.models.tenant.freight import ContainerSize, ShippingLine, Vessel

# ── Jobs ─────────────────────────────────────────────────────
from app.models.tenant.inbound import InboundInventory, InboundProductLine
from app.models.tenant.outbound import OutboundInventory, OutboundProductLine
from app.models.tenant.container import (
    AllocationProductLine,
    ContainerBooking,
    ContainerDetail,
    ContainerStockAllocation,
)

# ── Stock ────────────────────────────────────────────────────
from app.models.tenant.stock import PickupStock, PutAwayStock

# ── Audit ────────────────────────────────────────────────────
from app.models.tenant.activity_log import ActivityLog

__all__ = [
    "TenantRole",
    "Customer", "PayingCustomer", "Warehouse", "SKU", "StorageUnit",
    "TransportCompany", "TrailerType", "Vehicle", "Trailer", "Driver",
    "ShippingLine", "Vessel", "ContainerSize",
    "InboundInventory", "InboundProductLine",
    "OutboundInventory", "OutboundProductLine",
    "ContainerBooking", "ContainerDetail", "ContainerStockAllocation",
    "AllocationProductLine",
    "PutAwayStock", "PickupStock",
    "ActivityLog",
]
