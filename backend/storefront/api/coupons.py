"""
Coupons API Endpoints
Public coupon lookup and discount calculation, admin coupon management

Author: Online Store Team
Date: 2025-03-02
"""
from fastapi import APIRouter, Depends, HTTPException, status

from storefront.api.common import get_or_404, hard_delete_or_404, page_envelope, soft_delete_or_404
from storefront.core.auth import require_admin, require_super_admin
from storefront.core.pagination import PageParams, pagination
from storefront.domain.coupon import CouponCalculateRequest, CouponCreate, CouponUpdate, as_aware
from storefront.repositories.coupon_repository import CouponRepository
from storefront.services.coupon_service import CouponService

router = APIRouter()


@router.get("/")
async def get_coupons(page: PageParams = Depends(pagination(10, 100))):
    """Coupons that can be used right now"""
    coupons, total = CouponRepository().find_active(limit=page.page_size, offset=page.offset)
    return page_envelope("coupons", coupons, total, page)


@router.get("/code/{code}")
async def get_coupon_by_code(code: str):
    return CouponService().get_usable(code)


@router.post("/calculate")
async def calculate_discount(payload: CouponCalculateRequest):
    """Discount and final amount for an order amount"""
    quote = CouponService().quote(payload.coupon_code, payload.order_amount)
    return quote.to_dict()


@router.get("/{coupon_id}")
async def get_coupon(coupon_id: int):
    return get_or_404(CouponRepository(), coupon_id, "Coupon")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_coupon(payload: CouponCreate, _admin=Depends(require_admin)):
    repo = CouponRepository()
    if repo.code_exists(payload.code):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Coupon code already exists")
    return repo.create(payload)


@router.put("/{coupon_id}")
async def update_coupon(coupon_id: int, payload: CouponUpdate, _admin=Depends(require_admin)):
    repo = CouponRepository()
    coupon = get_or_404(repo, coupon_id, "Coupon")

    fields = payload.model_dump(exclude_unset=True, exclude_none=True)

    start = fields.get("start_date", coupon.start_date)
    end = fields.get("end_date", coupon.end_date)
    if as_aware(end) <= as_aware(start):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must be after start_date")

    discount_type = fields.get("discount_type", coupon.discount_type)
    discount_value = fields.get("discount_value", coupon.discount_value)
    if discount_type == "percentage" and discount_value > 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="percentage discount cannot exceed 100")

    return repo.update(coupon_id, fields)


@router.delete("/{coupon_id}")
async def delete_coupon(coupon_id: int, _admin=Depends(require_admin)):
    return soft_delete_or_404(CouponRepository(), coupon_id, "Coupon")


@router.delete("/{coupon_id}/hard")
async def hard_delete_coupon(coupon_id: int, _super_admin=Depends(require_super_admin)):
    return hard_delete_or_404(CouponRepository(), coupon_id, "Coupon")
