"""
VNPAY Payment Gateway Connector
Builds signed payment URLs and verifies IPN / return callbacks

Author: Online Store Team
Date: 2025-03-02

PROTOCOL (API version 2.1.0):
- Redirect URL: {VNPAY_URL}?<params>&vnp_SecureHash=<signature>
- Signature: HMAC-SHA512(hash_secret, sorted "key=value" pairs joined by "&"),
  values form-encoded (spaces as "+"), hex uppercase
- vnp_Amount is the VND amount x 100 as an integer string
- vnp_CreateDate is yyyyMMddHHmmss in Asia/Ho_Chi_Minh time
- vnp_TxnRef must be unique per attempt: "<orderId>-<epoch ms>"

CALLBACK:
- vnp_SecureHash / vnp_SecureHashType are excluded from the signed data,
  and so are vnp_Email / vnp_PhoneNumber
- vnp_ResponseCode "00" is the only success code
"""
import hmac
import time
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple
from urllib.parse import quote_plus
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

VN_TIMEZONE = ZoneInfo("Asia/Ho_Chi_Minh")
DATE_FORMAT = "%Y%m%d%H%M%S"

UNSIGNED_PARAMS = {"vnp_SecureHash", "vnp_SecureHashType", "vnp_Email", "vnp_PhoneNumber"}

# vnp_ResponseCode -> (payment status, failure reason)
RESPONSE_CODES: Dict[str, Tuple[str, Optional[str]]] = {
    "00": ("success", None),
    "01": ("failed", "Transaction rejected"),
    "02": ("cancelled", "Transaction cancelled"),
    "04": ("failed", "Transaction rejected"),
    "05": ("processing", None),
    "06": ("processing", None),
    "07": ("expired", "Transaction expired"),
    "09": ("failed", "Transaction not found"),
    "10": ("cancelled", "Transaction cancelled"),
    "11": ("failed", "insufficient_fund"),
    "12": ("failed", "invalid_card"),
    "13": ("failed", "invalid_otp"),
    "14": ("failed", "Card temporarily locked"),
    "15": ("failed", "Card permanently locked"),
    "21": ("processing", None),
    "99": ("processing", None),
}


class VnpayConfigError(Exception):
    """Terminal code or hash secret missing"""


@dataclass
class VnpayCallback:
    """Parsed callback parameters"""
    transaction_ref: str
    order_id: Optional[int]
    amount: float
    response_code: str
    status: str
    failure_reason: Optional[str]
    transaction_no: Optional[str]
    bank_code: Optional[str]
    pay_date: Optional[datetime]

    @property
    def is_success(self) -> bool:
        return self.status == "success"


def _encode(params: Dict[str, str]) -> str:
    return "&".join(f"{key}={quote_plus(str(params[key]))}" for key in sorted(params))


class VnpayGateway:
    """
    VNPAY redirect-based payment gateway

    Stateless: every method works from its arguments and the configured
    terminal code / secret.
    """

    name = "vnpay"
    version = "2.1.0"

    def __init__(self, tmn_code: str, hash_secret: str, payment_url: str, return_url: str):
        self.tmn_code = (tmn_code or "").strip()
        self.hash_secret = (hash_secret or "").strip()
        self.payment_url = payment_url
        self.return_url = return_url

    @property
    def is_configured(self) -> bool:
        return bool(self.tmn_code and self.hash_secret)

    def sign(self, params: Dict[str, str]) -> str:
        """HMAC-SHA512 of the sorted, form-encoded parameters"""
        data = _encode(params)
        return hmac.new(self.hash_secret.encode(), data.encode(), hashlib.sha512).hexdigest().upper()

    @staticmethod
    def make_transaction_ref(order_id: int, now_ms: Optional[int] = None) -> str:
        return f"{order_id}-{now_ms if now_ms is not None else int(time.time() * 1000)}"

    def build_payment_url(
        self,
        order_id: int,
        amount: float,
        order_info: str,
        client_ip: str,
        locale: str = "vn",
        bank_code: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Tuple[str, str, Dict[str, str]]:
        """
        Build the signed redirect URL.

        Returns:
            (redirect_url, transaction_ref, signed params)

        Raises:
            VnpayConfigError: gateway credentials not configured
            ValueError: non-positive amount
        """
        if not self.is_configured:
            raise VnpayConfigError("VNPAY is not configured (VNPAY_TMN_CODE / VNPAY_HASH_SECRET)")

        vnp_amount = round(amount * 100)
        if vnp_amount <= 0:
            raise ValueError("Amount must be greater than 0")

        now = (now or datetime.now(VN_TIMEZONE)).astimezone(VN_TIMEZONE)
        transaction_ref = self.make_transaction_ref(order_id, int(now.timestamp() * 1000))

        params = {
            "vnp_Version": self.version,
            "vnp_Command": "pay",
            "vnp_TmnCode": self.tmn_code,
            "vnp_Amount": str(vnp_amount),
            "vnp_CurrCode": "VND",
            "vnp_TxnRef": transaction_ref,
            "vnp_OrderInfo": " ".join(order_info.split()),
            "vnp_OrderType": "other",
            "vnp_Locale": locale,
            "vnp_ReturnUrl": self.return_url,
            "vnp_IpAddr": client_ip,
            "vnp_CreateDate": now.strftime(DATE_FORMAT),
        }
        if bank_code:
            params["vnp_BankCode"] = bank_code

        signature = self.sign(params)
        redirect_url = f"{self.payment_url}?{_encode(params)}&vnp_SecureHash={signature}"

        logger.info(f"VNPAY payment URL created for order {order_id} (ref {transaction_ref})")
        return redirect_url, transaction_ref, params

    def verify_callback(self, params: Dict[str, str]) -> bool:
        """Check vnp_SecureHash against our own signature of the other vnp_ params"""
        received = params.get("vnp_SecureHash")
        if not received or not self.is_configured:
            return False

        signed = {
            key: value for key, value in params.items()
            if key.startswith("vnp_") and key not in UNSIGNED_PARAMS and value not in (None, "")
        }
        expected = self.sign(signed)
        return hmac.compare_digest(expected.lower(), str(received).lower())

    @staticmethod
    def parse_callback(params: Dict[str, str]) -> VnpayCallback:
        """Turn raw callback parameters into amounts, status and dates"""
        transaction_ref = params.get("vnp_TxnRef", "")
        order_part = transaction_ref.split("-", 1)[0]
        order_id = int(order_part) if order_part.isdigit() else None

        try:
            amount = int(params.get("vnp_Amount", "0")) / 100
        except ValueError:
            amount = 0.0

        response_code = params.get("vnp_ResponseCode", "99")
        status, failure_reason = RESPONSE_CODES.get(response_code, ("failed", f"Unknown response code {response_code}"))

        pay_date = None
        raw_date = params.get("vnp_PayDate")
        if raw_date:
            try:
                pay_date = datetime.strptime(raw_date, DATE_FORMAT).replace(tzinfo=VN_TIMEZONE)
            except ValueError:
                logger.warning(f"Unparseable vnp_PayDate: {raw_date}")

        return VnpayCallback(
            transaction_ref=transaction_ref,
            order_id=order_id,
            amount=amount,
            response_code=response_code,
            status=status,
            failure_reason=failure_reason,
            transaction_no=params.get("vnp_TransactionNo"),
            bank_code=params.get("vnp_BankCode"),
            pay_date=pay_date
        )


def get_vnpay_gateway() -> VnpayGateway:
    """FastAPI dependency: gateway configured from settings"""
    from storefront.core.config import settings

    return VnpayGateway(
        tmn_code=settings.VNPAY_TMN_CODE,
        hash_secret=settings.VNPAY_HASH_SECRET,
        payment_url=settings.VNPAY_URL,
        return_url=settings.VNPAY_RETURN_URL
    )
