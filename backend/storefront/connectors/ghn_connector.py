"""
GHN (Giao Hang Nhanh) API Connector
Vietnamese carrier: location master data, address validation and shipping fees

Author: Online Store Team
Date: 2025-02-20

API CONFIGURATION:
- Base URL: https://dev-online-gateway.ghn.vn/shiip/public-api (sandbox)
- Headers: Token (API token), ShopId (shop id)
- Every response is {"code": 200, "message": "...", "data": ...}; any other code is an error

ENDPOINTS:
- GET  /master-data/province
- POST /master-data/district {province_id}
- POST /master-data/ward {district_id}
- POST /v2/shipping-order/available-services {shop_id, from_district, to_district}
- POST /v2/shipping-order/fee {shop_id, service_id, from_district_id, to_district_id,
                               to_ward_code, weight, length, width, height, insurance_value}
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import logging

logger = logging.getLogger(__name__)

# Parcel used for fee quotes (cm / grams)
PARCEL_LENGTH = 15
PARCEL_WIDTH = 10
PARCEL_HEIGHT = 10
MIN_WEIGHT_GRAMS = 100


class GHNError(Exception):
    """GHN unreachable or answered with a non-200 code"""


@dataclass
class LocationValidation:
    valid: bool
    error: Optional[str] = None
    province: Dict[str, Any] = field(default_factory=dict)
    district: Dict[str, Any] = field(default_factory=dict)
    ward: Dict[str, Any] = field(default_factory=dict)

    @property
    def province_name(self) -> Optional[str]:
        return self.province.get("ProvinceName")

    @property
    def district_name(self) -> Optional[str]:
        return self.district.get("DistrictName")

    @property
    def ward_name(self) -> Optional[str]:
        return self.ward.get("WardName")


class GHNConnector:
    """
    Connector for the GHN public API

    Handles:
    - Province / district / ward master data
    - Address validation against master data
    - Available services and fee quotes
    """

    def __init__(
        self,
        token: str,
        shop_id: str,
        base_url: str = "https://dev-online-gateway.ghn.vn/shiip/public-api",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            token: GHN API token
            shop_id: GHN shop id
            base_url: API root (sandbox by default)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.token = token
        self.shop_id = shop_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def _headers(self) -> Dict[str, str]:
        headers = {"Token": self.token, "Content-Type": "application/json"}
        if self.shop_id:
            headers["ShopId"] = str(self.shop_id)
        return headers

    async def _request(self, method: str, endpoint: str, payload: Optional[Dict] = None) -> Any:
        """
        Call GHN and unwrap the envelope

        Returns:
            The "data" member of the response

        Raises:
            GHNError: transport failure, HTTP error or code != 200
        """
        if not self.token:
            raise GHNError("GHN is not configured (GHN_TOKEN)")

        url = f"{self.base_url}{endpoint}"

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            try:
                response = await client.request(method, url, json=payload, headers=self._headers)
                body = response.json()
            except httpx.HTTPError as e:
                logger.error(f"GHN {endpoint} request failed: {e}")
                raise GHNError(f"GHN request failed: {e}") from e
            except ValueError as e:
                logger.error(f"GHN {endpoint} returned non-JSON body (HTTP {response.status_code})")
                raise GHNError("GHN returned an invalid response") from e

        if body.get("code") != 200:
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.warning(f"GHN {endpoint} error: {message}")
            raise GHNError(f"GHN API error: {message}")

        return body.get("data")

    # ------------------------------------------------------------------
    # Master data
    # ------------------------------------------------------------------

    async def get_provinces(self) -> List[Dict]:
        return await self._request("GET", "/master-data/province") or []

    async def get_districts(self, province_id: int) -> List[Dict]:
        return await self._request("POST", "/master-data/district", {"province_id": province_id}) or []

    async def get_wards(self, district_id: int) -> List[Dict]:
        return await self._request("POST", "/master-data/ward", {"district_id": district_id}) or []

    async def validate_location(self, province_id: int, district_id: int, ward_code: str) -> LocationValidation:
        """
        Check that the ward belongs to the district and the district to the province.

        Error messages are shown to Vietnamese shoppers as-is.

        Raises:
            GHNError: GHN could not be reached
        """
        if not province_id or not district_id or not ward_code:
            return LocationValidation(valid=False, error="provinceId, districtId và wardCode là bắt buộc")

        provinces = await self.get_provinces()
        province = next((p for p in provinces if p.get("ProvinceID") == province_id), None)
        if not province:
            return LocationValidation(valid=False, error=f"Tỉnh/thành có ID {province_id} không tồn tại")

        districts = await self.get_districts(province_id)
        district = next((d for d in districts if d.get("DistrictID") == district_id), None)
        if not district:
            return LocationValidation(
                valid=False,
                error=f"Quận/huyện có ID {district_id} không tồn tại trong tỉnh {province.get('ProvinceName')}"
            )

        wards = await self.get_wards(district_id)
        ward = next((w for w in wards if str(w.get("WardCode")) == str(ward_code)), None)
        if not ward:
            return LocationValidation(
                valid=False,
                error=f"Phường/xã có mã {ward_code} không tồn tại trong quận {district.get('DistrictName')}"
            )

        return LocationValidation(valid=True, province=province, district=district, ward=ward)

    # ------------------------------------------------------------------
    # Services and fees
    # ------------------------------------------------------------------

    async def get_available_services(self, from_district_id: int, to_district_id: int) -> List[Dict]:
        payload = {
            "shop_id": int(self.shop_id) if str(self.shop_id).isdigit() else self.shop_id,
            "from_district": from_district_id,
            "to_district": to_district_id,
        }
        return await self._request("POST", "/v2/shipping-order/available-services", payload) or []

    async def calculate_fee(
        self,
        from_district_id: int,
        to_district_id: int,
        to_ward_code: str,
        service_id: Optional[int],
        weight: float = 0,
        insurance_value: float = 0
    ) -> Dict[str, Any]:
        """
        Quote a shipment.

        Same-district shipments are free and never reach GHN.

        Raises:
            ValueError: service_id missing for a cross-district quote
            GHNError: GHN rejected the quote
        """
        if from_district_id == to_district_id:
            return {
                "total": 0,
                "service_fee": 0,
                "insurance_fee": 0,
                "message": "Cùng quận - Miễn phí vận chuyển"
            }

        if not service_id:
            raise ValueError("service_id là bắt buộc. Hãy lấy danh sách dịch vụ khả dụng trước.")

        payload = {
            "shop_id": int(self.shop_id) if str(self.shop_id).isdigit() else self.shop_id,
            "service_id": int(service_id),
            "from_district_id": from_district_id,
            "to_district_id": to_district_id,
            "to_ward_code": str(to_ward_code),
            "weight": round(max(weight or 0, MIN_WEIGHT_GRAMS)),
            "length": PARCEL_LENGTH,
            "width": PARCEL_WIDTH,
            "height": PARCEL_HEIGHT,
            "insurance_value": int(insurance_value or 0),
        }
        return await self._request("POST", "/v2/shipping-order/fee", payload) or {}


def get_ghn_connector() -> GHNConnector:
    """FastAPI dependency: connector configured from settings"""
    from storefront.core.config import settings

    return GHNConnector(
        token=settings.GHN_TOKEN,
        shop_id=settings.GHN_SHOP_ID,
        base_url=settings.GHN_API_URL,
        timeout=settings.GHN_TIMEOUT
    )
