"""Fleet routers: transport companies, trailer types, vehicles, trailers and drivers.

Mounted under /api/transport-companies, /api/trailer-types, /api/vehicles,
/api/trailers and /api/drivers. DELETE toggles active/inactive.
"""

from app.models.tenant.fleet import Driver, Trailer, TrailerType, TransportCompany, Vehicle
from app.models.tenant.warehouse import Warehouse
from app.routers.master_data import build_router
from app.schemas.fleet import (
    DriverCreate, DriverOut, DriverUpdate,
    TrailerCreate, TrailerOut, TrailerUpdate,
    TrailerTypeCreate, TrailerTypeOut, TrailerTypeUpdate,
    TransportCompanyCreate, TransportCompanyOut, TransportCompanyUpdate,
    VehicleCreate, VehicleOut, VehicleUpdate,
)

transport_companies_router = build_router(
    TransportCompany,
    label="Transport company",
    create_schema=TransportCompanyCreate,
    update_schema=TransportCompanyUpdate,
    out_schema=TransportCompanyOut,
    order_by="name",
    search_fields=("name", "contact", "mobile"),
    unique_field="name",
)

trailer_types_router = build_router(
    TrailerType,
    label="Trailer type",
    create_schema=TrailerTypeCreate,
    update_schema=TrailerTypeUpdate,
    out_schema=TrailerTypeOut,
    order_by="name",
    search_fields=("name",),
    unique_field="name",
)

vehicles_router = build_router(
    Vehicle,
    label="Vehicle",
    create_schema=VehicleCreate,
    update_schema=VehicleUpdate,
    out_schema=VehicleOut,
    order_by="rego",
    search_fields=("rego", "fleet_number", "description"),
    unique_field="rego",
    references={
        "default_depot_id": (Warehouse, "Warehouse"),
        "a_trailer_type_id": (TrailerType, "Trailer type"),
        "b_trailer_type_id": (TrailerType, "Trailer type"),
        "c_trailer_type_id": (TrailerType, "Trailer type"),
    },
)

trailers_router = build_router(
    Trailer,
    label="Trailer",
    create_schema=TrailerCreate,
    update_schema=TrailerUpdate,
    out_schema=TrailerOut,
    order_by="rego",
    search_fields=("rego", "fleet_number", "description"),
    unique_field="rego",
    references={
        "trailer_type_id": (TrailerType, "Trailer type"),
        "default_warehouse_id": (Warehouse, "Warehouse"),
    },
)

drivers_router = build_router(
    Driver,
    label="Driver",
    create_schema=DriverCreate,
    update_schema=DriverUpdate,
    out_schema=DriverOut,
    order_by="name",
    search_fields=("name", "phone_number", "driving_licence_number"),
    references={
        "vehicle_id": (Vehicle, "Vehicle"),
        "default_depot_id": (Warehouse, "Warehouse"),
    },
)
