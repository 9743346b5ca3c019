import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.middleware.exceptions import register_exception_handlers
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.tenant import TenantMiddleware
from app.routers import (
    container_bookings,
    customers,
    fleet,
    freight,
    health,
    inbound_inventory,
    inventory,
    outbound_inventory,
    paying_customers,
    skus,
    storage_units,
    tenant_roles,
    tenants,
    warehouses,
)
from app.utils.cache import close_redis

logger = logging.getLogger("containa")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Containa API starting (%s)", settings.environment)
    yield
    await close_redis()
    logger.info("Containa API stopped")


app = FastAPI(
    title="Containa",
    description="Warehouse & container freight logistics",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware (outermost first) ─────────────────────────────
# Rate limiting
app.add_middleware(
    RateLimitMiddleware,
    default_limit=100,  # requests per minute per user / IP
    default_window=60,
    exempt_paths=["/health", "/health/ready", "/docs", "/openapi.json"],
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Tenant context (innermost)
app.add_middleware(TenantMiddleware)

# ── Routers ──────────────────────────────────────────────────
# Public
app.include_router(health.router)
app.include_router(tenants.router, prefix="/api/tenants", tags=["tenants"])

# Master data
app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
app.include_router(paying_customers.router, prefix="/api/paying-customers", tags=["paying-customers"])
app.include_router(warehouses.router, prefix="/api/warehouses", tags=["warehouses"])
app.include_router(storage_units.router, prefix="/api/storage-units", tags=["storage-units"])
app.include_router(skus.router, prefix="/api/skus", tags=["skus"])
app.include_router(tenant_roles.router, prefix="/api/tenant-roles", tags=["tenant-roles"])

# Fleet and freight
app.include_router(fleet.transport_companies_router, prefix="/api/transport-companies", tags=["fleet"])
app.include_router(fleet.trailer_types_router, prefix="/api/trailer-types", tags=["fleet"])
app.include_router(fleet.vehicles_router, prefix="/api/vehicles", tags=["fleet"])
app.include_router(fleet.trailers_router, prefix="/api/trailers", tags=["fleet"])
app.include_router(fleet.drivers_router, prefix="/api/drivers", tags=["fleet"])
app.include_router(freight.shipping_lines_router, prefix="/api/shipping-lines", tags=["freight"])
app.include_router(freight.vessels_router, prefix="/api/vessels", tags=["freight"])
app.include_router(freight.container_sizes_router, prefix="/api/container-sizes", tags=["freight"])

# Warehouse operations
app.include_router(inbound_inventory.router, prefix="/api/inbound-inventory", tags=["inbound"])
app.include_router(outbound_inventory.router, prefix="/api/outbound-inventory", tags=["outbound"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])

# Container bookings
app.include_router(
    container_bookings.import_router,
    prefix="/api/import-container-bookings",
    tags=["import-bookings"],
)
app.include_router(
    container_bookings.export_router,
    prefix="/api/export-container-bookings",
    tags=["export-bookings"],
)
