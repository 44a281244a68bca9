"""
Addresses API Endpoints
Customer address book; locations are validated against GHN master data

Author: Online Store Team
Date: 2025-02-20
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from storefront.api.common import (
    deleted_page, get_or_404, hard_delete_or_404, restore_or_400, soft_delete_or_404
)
from storefront.connectors.ghn_connector import GHNConnector, GHNError, LocationValidation, get_ghn_connector
from storefront.core.auth import get_current_user, require_admin
from storefront.core.pagination import PageParams, pagination
from storefront.domain.customer import AddressCreate, AddressUpdate
from storefront.repositories.address_repository import AddressRepository
from storefront.repositories.customer_repository import CustomerRepository

logger = logging.getLogger(__name__)

router = APIRouter()


async def _validate_location(ghn: GHNConnector, province_id: int, district_id: int, ward_code: str) -> LocationValidation:
    try:
        validation = await ghn.validate_location(province_id, district_id, ward_code)
    except GHNError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    if not validation.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=validation.error)
    return validation


@router.get("/")
async def get_addresses(
    customer_id: Optional[int] = Query(None, alias="customerId"),
    _user=Depends(get_current_user)
):
    """All live addresses of a customer, default first"""
    if customer_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="customerId is required")

    if not CustomerRepository().find_by_id(customer_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    addresses = AddressRepository().find_by_customer(customer_id)
    return {
        "count": len(addresses),
        "addresses": [address.model_dump(mode="json") for address in addresses]
    }


@router.get("/deleted/list")
async def get_deleted_addresses(
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    return deleted_page(AddressRepository(), "addresses", page)


@router.get("/{address_id}")
async def get_address(address_id: int, _user=Depends(get_current_user)):
    return get_or_404(AddressRepository(), address_id, "Address")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_address(
    payload: AddressCreate,
    _user=Depends(get_current_user),
    ghn: GHNConnector = Depends(get_ghn_connector)
):
    if not CustomerRepository().find_by_id(payload.customer_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    location = await _validate_location(ghn, payload.province_id, payload.district_id, payload.ward_code)

    address = AddressRepository().create(
        payload,
        province_name=location.province_name,
        district_name=location.district_name,
        ward_name=location.ward_name
    )
    logger.info(f"Address {address.id} created for customer {address.customer_id}")
    return address


@router.put("/{address_id}")
async def update_address(
    address_id: int,
    payload: AddressUpdate,
    _user=Depends(get_current_user),
    ghn: GHNConnector = Depends(get_ghn_connector)
):
    """Partial update; any location change is re-validated and names refreshed"""
    repo = AddressRepository()
    address = get_or_404(repo, address_id, "Address")

    fields = payload.model_dump(exclude_unset=True, exclude_none=True)

    if payload.changes_location:
        province_id = fields.get("province_id", address.province_id)
        district_id = fields.get("district_id", address.district_id)
        ward_code = fields.get("ward_code", address.ward_code)

        location = await _validate_location(ghn, province_id, district_id, ward_code)
        fields.update({
            "province_id": province_id,
            "province_name": location.province_name,
            "district_id": district_id,
            "district_name": location.district_name,
            "ward_code": ward_code,
            "ward_name": location.ward_name,
        })

    for key in ("full_name", "street"):
        if key in fields:
            fields[key] = fields[key].strip()

    return repo.update(address, fields)


@router.put("/{address_id}/default")
async def set_default_address(address_id: int, _user=Depends(get_current_user)):
    repo = AddressRepository()
    address = get_or_404(repo, address_id, "Address")
    return repo.set_default(address)


@router.delete("/{address_id}")
async def delete_address(address_id: int, _user=Depends(get_current_user)):
    return soft_delete_or_404(AddressRepository(), address_id, "Address")


@router.put("/{address_id}/restore")
async def restore_address(address_id: int, _admin=Depends(require_admin)):
    return restore_or_400(AddressRepository(), address_id, "Address")


@router.delete("/{address_id}/hard")
async def hard_delete_address(address_id: int, _admin=Depends(require_admin)):
    return hard_delete_or_404(AddressRepository(), address_id, "Address")
