"""
Hotel API - Service Catalog Endpoints
=====================================

Services guests can order (food, laundry, spa, transport...). The public
sees active services only; admins see and manage everything.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.deps import get_db, get_optional_user, require_admin

from services import ServiceCatalogService
from schemas import CurrentUser, MessageResponse, ServiceCategory, ServiceCreate, ServiceDTO, ServiceUpdate

router = APIRouter()


class ServiceEnvelope(BaseModel):
    message: str
    service: ServiceDTO


@router.get(
    "",
    response_model=List[ServiceDTO],
    summary="List Services",
    description="Active services only, unless the caller is an admin or passes is_active explicitly."
)
def list_services(
    category: Optional[ServiceCategory] = Query(default=None),
    is_active: Optional[bool] = Query(default=None),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return ServiceCatalogService.list_services(db, user, category, is_active)


@router.get("/{service_id}", response_model=ServiceDTO, summary="Get Service")
def get_service(
    service_id: int,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return ServiceCatalogService.get_service(db, service_id, user)


@router.post(
    "",
    response_model=ServiceEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Service",
    dependencies=[Depends(require_admin)],
)
def create_service(data: ServiceCreate, db: Session = Depends(get_db)):
    return ServiceEnvelope(message="Service created successfully", service=ServiceCatalogService.create_service(db, data))


@router.put(
    "/{service_id}",
    response_model=ServiceEnvelope,
    summary="Update Service",
    description="Price changes only apply to services added to bookings afterwards.",
    dependencies=[Depends(require_admin)],
)
def update_service(service_id: int, data: ServiceUpdate, db: Session = Depends(get_db)):
    return ServiceEnvelope(
        message="Service updated successfully",
        service=ServiceCatalogService.update_service(db, service_id, data),
    )


@router.delete(
    "/{service_id}",
    response_model=MessageResponse,
    summary="Delete Service",
    dependencies=[Depends(require_admin)],
)
def delete_service(service_id: int, db: Session = Depends(get_db)):
    ServiceCatalogService.delete_service(db, service_id)
    return MessageResponse(message="Service deleted successfully")
