"""
Payments API Endpoints
VNPAY payment initiation, IPN webhook and payment status

Author: Online Store Team
Date: 2025-03-02
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, Request, status

from storefront.connectors.vnpay_gateway import VnpayGateway, get_vnpay_gateway
from storefront.core.rate_limit import get_client_ip
from storefront.domain.payment import PaymentInitiate
from storefront.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_payment_service(gateway: VnpayGateway = Depends(get_vnpay_gateway)) -> PaymentService:
    return PaymentService(gateway)


async def _callback_params(request: Request) -> Dict[str, str]:
    """Query string merged with a form or JSON body (body wins), first value per key"""
    params = {key: value for key, value in request.query_params.items()}

    if request.method == "POST":
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            try:
                body = await request.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                params.update({key: str(value) for key, value in body.items()})
        elif content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
            form = await request.form()
            params.update({key: str(value) for key, value in form.items()})

    return params


@router.get("/gateways")
async def get_supported_gateways(service: PaymentService = Depends(get_payment_service)):
    gateways = service.supported_gateways()
    return {"success": True, "data": {"gateways": gateways, "count": len(gateways)}}


@router.post("/initiate")
@router.post("/create")
async def initiate_payment(
    payload: PaymentInitiate,
    request: Request,
    service: PaymentService = Depends(get_payment_service)
):
    """Create a pending payment and return the gateway redirect URL"""
    data = service.initiate(payload, client_ip=get_client_ip(request))
    return {"success": True, "data": data}


@router.api_route("/webhook/{gateway}", methods=["GET", "POST"], status_code=status.HTTP_200_OK)
async def payment_webhook(
    gateway: str,
    request: Request,
    service: PaymentService = Depends(get_payment_service)
):
    """
    Gateway IPN callback

    Always answers 200 with {success, message}; a non-2xx answer makes the
    gateway retry.
    """
    params = await _callback_params(request)
    return service.handle_callback(gateway, params)


@router.get("/confirm/{order_id}")
async def confirm_payment(order_id: int, service: PaymentService = Depends(get_payment_service)):
    return {"success": True, "data": service.confirm(order_id)}


@router.get("/history/{order_id}")
async def get_payment_history(order_id: int, service: PaymentService = Depends(get_payment_service)):
    payments = service.history(order_id)
    return {"success": True, "data": [payment.model_dump(mode="json") for payment in payments]}
