"""
Shipping API Endpoints
GHN location master data, available services and fee quotes

Author: Online Store Team
Date: 2025-02-20
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from typing import Optional

from storefront.connectors.ghn_connector import GHNConnector, GHNError, get_ghn_connector
from storefront.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


# Request models
class ShippingServicesRequest(BaseModel):
    from_district_id: Optional[int] = Field(None, description="Defaults to the shop's district")
    to_district_id: int


class ShippingFeeRequest(BaseModel):
    from_district_id: Optional[int] = Field(None, description="Defaults to the shop's district")
    to_district_id: int
    to_ward_code: str = Field(..., min_length=1)
    service_id: Optional[int] = None
    weight: float = Field(..., gt=0, description="Grams")
    insurance_value: float = Field(0, ge=0, description="Declared value in VND")


def _bad_gateway(e: GHNError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get("/locations/provinces")
async def get_provinces(ghn: GHNConnector = Depends(get_ghn_connector)):
    try:
        provinces = await ghn.get_provinces()
    except GHNError as e:
        raise _bad_gateway(e)
    return {"success": True, "count": len(provinces), "provinces": provinces}


@router.get("/locations/districts")
async def get_districts(
    province_id: Optional[int] = Query(None, alias="provinceId"),
    ghn: GHNConnector = Depends(get_ghn_connector)
):
    if province_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="provinceId là bắt buộc")
    try:
        districts = await ghn.get_districts(province_id)
    except GHNError as e:
        raise _bad_gateway(e)
    return {"success": True, "count": len(districts), "districts": districts}


@router.get("/locations/wards")
async def get_wards(
    district_id: Optional[int] = Query(None, alias="districtId"),
    ghn: GHNConnector = Depends(get_ghn_connector)
):
    if district_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="districtId là bắt buộc")
    try:
        wards = await ghn.get_wards(district_id)
    except GHNError as e:
        raise _bad_gateway(e)
    return {"success": True, "count": len(wards), "wards": wards}


@router.post("/services")
async def get_available_services(payload: ShippingServicesRequest, ghn: GHNConnector = Depends(get_ghn_connector)):
    from_district_id = payload.from_district_id or settings.GHN_FROM_DISTRICT_ID
    try:
        services = await ghn.get_available_services(from_district_id, payload.to_district_id)
    except GHNError as e:
        raise _bad_gateway(e)
    return {"success": True, "count": len(services), "services": services}


@router.post("/calculate")
async def calculate_shipping(payload: ShippingFeeRequest, ghn: GHNConnector = Depends(get_ghn_connector)):
    """Fee quote; shipments inside the shop's district are free"""
    from_district_id = payload.from_district_id or settings.GHN_FROM_DISTRICT_ID
    try:
        fee = await ghn.calculate_fee(
            from_district_id=from_district_id,
            to_district_id=payload.to_district_id,
            to_ward_code=payload.to_ward_code,
            service_id=payload.service_id,
            weight=payload.weight,
            insurance_value=payload.insurance_value
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GHNError as e:
        raise _bad_gateway(e)

    logger.info(f"GHN quote {from_district_id} -> {payload.to_district_id}: {fee.get('total')}")
    return {"success": True, "weight": payload.weight, "fee": fee}
