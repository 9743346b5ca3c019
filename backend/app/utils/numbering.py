"""Shared code generation.

All codes are random uppercase alphanumerics, retried until unique within
the tenant; after MAX_ATTEMPTS collisions a timestamp-based fallback is used.

Formats:
  lpn:        LPN + 8 chars                    e.g. LPN7Q2MZ8KD
  container:  CN- + 8 chars                    e.g. CN-A93KQ0ZP
  inbound:    IN- + 6 chars   } unique across every job table
  outbound:   OUT- + 6 chars  }
  booking:    IMP- / EXP- + last 8 timestamp digits + 3 random digits
"""

import random
import string
import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.tenant.container import ContainerBooking, ContainerDetail
from app.models.tenant.inbound import InboundInventory
from app.models.tenant.outbound import OutboundInventory
from app.models.tenant.stock import PutAwayStock

MAX_ATTEMPTS = 10
_ALPHABET = string.ascii_uppercase + string.digits

# Every table holding a job number, and its code column
JOB_CODE_COLUMNS = (
    InboundInventory.job_code,
    OutboundInventory.job_code,
    ContainerBooking.booking_code,
)

BOOKING_PREFIXES = {"import": "IMP", "export": "EXP"}
JOB_PREFIXES = {"inbound": "IN", "outbound": "OUT"}


def random_code(length: int = 8) -> str:
    return "".join(random.choices(_ALPHABET, k=length))


def _timestamp_suffix(digits: int = 6) -> str:
    return str(int(time.time() * 1000))[-digits:]


async def _exists(db: AsyncSession, column, tenant_id: str, code: str) -> bool:
    table = column.class_
    found = await db.scalar(
        select(table.id).where(table.tenant_id == tenant_id, column == code).limit(1)
    )
    return found is not None


async def _job_code_exists(db: AsyncSession, tenant_id: str, code: str) -> bool:
    for column in JOB_CODE_COLUMNS:
        if await _exists(db, column, tenant_id, code):
            return True
    return False


async def generate_lpn_number(db: AsyncSession, tenant_id: str) -> str:
    """Generate a pallet number unique within the tenant."""
    for _ in range(MAX_ATTEMPTS):
        code = f"LPN{random_code(8)}"
        if not await _exists(db, PutAwayStock.lpn_number, tenant_id, code):
            return code
    return f"LPN{_timestamp_suffix(8)}"


async def generate_lpn_numbers(db: AsyncSession, tenant_id: str, count: int) -> list[str]:
    """Generate `count` distinct pallet numbers for one put-away."""
    codes: list[str] = []
    while len(codes) < count:
        code = await generate_lpn_number(db, tenant_id)
        if code not in codes:
            codes.append(code)
    return codes


async def generate_container_number(db: AsyncSession, tenant_id: str) -> str:
    for _ in range(MAX_ATTEMPTS):
        code = f"CN-{random_code(8)}"
        if not await _exists(db, ContainerDetail.container_number, tenant_id, code):
            return code
    return f"CN-{_timestamp_suffix(8)}"


async def generate_job_code(db: AsyncSession, tenant_id: str, kind: str) -> str:
    """Generate an inbound/outbound job code unique across all job tables."""
    prefix = JOB_PREFIXES[kind]
    for _ in range(MAX_ATTEMPTS):
        code = f"{prefix}-{random_code(6)}"
        if not await _job_code_exists(db, tenant_id, code):
            return code
    return f"{prefix}-{_timestamp_suffix(6)}-{random_code(4)}"


async def generate_booking_code(db: AsyncSession, tenant_id: str, booking_type: str) -> str:
    prefix = BOOKING_PREFIXES[booking_type]
    for _ in range(MAX_ATTEMPTS):
        code = f"{prefix}-{_timestamp_suffix(8)}{random.randint(0, 999):03d}"
        if not await _job_code_exists(db, tenant_id, code):
            return code
    return f"{prefix}-{_timestamp_suffix(8)}-{random_code(4)}"
