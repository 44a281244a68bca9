"""
Orders API Endpoints
Checkout, order history and admin order management

Author: Online Store Team
Date: 2025-02-20
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from storefront.api.common import (
    deleted_page, get_or_404, hard_delete_or_404, page_envelope, restore_or_400, soft_delete_or_404
)
from storefront.core.auth import get_current_user, require_admin, require_super_admin
from storefront.core.pagination import PageParams, pagination
from storefront.domain.order import OrderCreate
from storefront.domain.user import User
from storefront.repositories.order_repository import OrderRepository
from storefront.services.order_service import OrderService

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderCreate, user: User = Depends(get_current_user)):
    """
    Place an order

    Prices come from the catalog; the customer is resolved from
    customer_phone / customer_email / customer_name.
    """
    order = OrderService().place_order(user, payload)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"success": True, "data": order.model_dump(mode="json")}
    )


@router.get("/")
async def get_orders(
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    """All live orders, newest first"""
    orders, total = OrderRepository().find_all(limit=page.page_size, offset=page.offset)
    return page_envelope("orders", orders, total, page)


@router.get("/deleted/list")
async def get_deleted_orders(
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    return deleted_page(OrderRepository(), "orders", page)


@router.get("/myorders")
async def get_my_orders(
    page: PageParams = Depends(pagination(10, 100)),
    user: User = Depends(get_current_user)
):
    """Orders of the signed-in user (falls back to orders placed under their email)"""
    orders, total = OrderRepository().find_by_user(
        user.id,
        email=user.email,
        limit=page.page_size,
        offset=page.offset
    )
    return page_envelope("orders", orders, total, page)


@router.get("/{order_id}")
async def get_order(order_id: int):
    """Public so the payment result page can show the order"""
    return get_or_404(OrderRepository(), order_id, "Order")


@router.put("/{order_id}/deliver")
async def mark_order_delivered(order_id: int, _admin=Depends(require_admin)):
    repo = OrderRepository()
    order = repo.mark_delivered(order_id, datetime.now(timezone.utc))
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.delete("/{order_id}")
async def delete_order(order_id: int, _admin=Depends(require_admin)):
    return soft_delete_or_404(OrderRepository(), order_id, "Order")


@router.put("/{order_id}/restore")
async def restore_order(order_id: int, _admin=Depends(require_admin)):
    return restore_or_400(OrderRepository(), order_id, "Order")


@router.delete("/{order_id}/hard")
async def hard_delete_order(order_id: int, _super_admin=Depends(require_super_admin)):
    return hard_delete_or_404(OrderRepository(), order_id, "Order")
