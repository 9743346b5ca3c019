"""Shipping line, vessel and container size routers.

Mounted under /api/shipping-lines, /api/vessels and /api/container-sizes.
"""

from app.models.tenant.freight import ContainerSize, ShippingLine, Vessel
from app.routers.master_data import build_router
from app.schemas.freight import (
    ContainerSizeCreate, ContainerSizeOut, ContainerSizeUpdate,
    ShippingLineCreate, ShippingLineOut, ShippingLineUpdate,
    VesselCreate, VesselOut, VesselUpdate,
)

shipping_lines_router = build_router(
    ShippingLine,
    label="Shipping line",
    create_schema=ShippingLineCreate,
    update_schema=ShippingLineUpdate,
    out_schema=ShippingLineOut,
    order_by="name",
    search_fields=("name", "contact_name", "email"),
    unique_field="name",
)

vessels_router = build_router(
    Vessel,
    label="Vessel",
    create_schema=VesselCreate,
    update_schema=VesselUpdate,
    out_schema=VesselOut,
    order_by="vessel_name",
    search_fields=("vessel_name", "voyage_number", "lloyds_number"),
)

container_sizes_router = build_router(
    ContainerSize,
    label="Container size",
    create_schema=ContainerSizeCreate,
    update_schema=ContainerSizeUpdate,
    out_schema=ContainerSizeOut,
    order_by="size",
    search_fields=("description",),
)
