"""Public marketplace endpoints for browsing vendors and their services."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Pagination, get_db
from app.core.exceptions import NotFoundError
from app.domain.vendor_state import VendorStatus
from app.models.vendor import Service, Vendor
from app.schemas.vendor import ServiceResponse, VendorListResponse, VendorPublicResponse

router = APIRouter()


async def _get_approved_vendor(db: AsyncSession, vendor_id: UUID) -> Vendor:
    # Pending, rejected and suspended vendors are indistinguishable from missing ones
    result = await db.execute(
        select(Vendor).where(
            Vendor.id == vendor_id,
            Vendor.status == VendorStatus.APPROVED.value,
        )
    )
    vendor = result.scalar_one_or_none()
    if not vendor:
        raise NotFoundError("Vendor", str(vendor_id))
    return vendor


@router.get("/", response_model=VendorListResponse)
async def list_vendors(
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[Pagination, Depends()],
    city: str | None = None,
    q: str | None = None,
) -> VendorListResponse:
    """List approved vendors, optionally filtered by city or shop name."""
    filters = [Vendor.status == VendorStatus.APPROVED.value]
    if city:
        filters.append(func.lower(Vendor.city).contains(func.lower(city)))
    if q:
        filters.append(func.lower(Vendor.shop_name).contains(func.lower(q)))

    count = await db.execute(select(func.count()).select_from(Vendor).where(and_(*filters)))
    total = count.scalar_one()

    result = await db.execute(
        select(Vendor)
        .where(and_(*filters))
        .order_by(Vendor.shop_name)
        .offset((pagination.page - 1) * pagination.page_size)
        .limit(pagination.page_size)
    )
    return VendorListResponse(
        items=[VendorPublicResponse.model_validate(v) for v in result.scalars().all()],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/{vendor_id}", response_model=VendorPublicResponse)
async def get_vendor(
    vendor_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Vendor:
    return await _get_approved_vendor(db, vendor_id)


@router.get("/{vendor_id}/services", response_model=list[ServiceResponse])
async def list_vendor_services(
    vendor_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[Service]:
    """Bookable services of an approved vendor; retired services are hidden."""
    await _get_approved_vendor(db, vendor_id)
    result = await db.execute(
        select(Service)
        .where(Service.vendor_id == vendor_id, Service.is_active.is_(True))
        .order_by(Service.name)
    )
    return list(result.scalars().all())
