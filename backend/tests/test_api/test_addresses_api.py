"""
API tests for /api/addresses

GHN is replaced through the get_ghn_connector dependency by a stub whose
validate_location answers from a fixed result.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import patch

from storefront.connectors.ghn_connector import GHNError, LocationValidation, get_ghn_connector
from storefront.domain.customer import Address, Customer
from storefront.main import app

NOW = datetime(2025, 3, 1, tzinfo=timezone.utc)

VALID_LOCATION = LocationValidation(
    valid=True,
    province={"ProvinceID": 202, "ProvinceName": "Hồ Chí Minh"},
    district={"DistrictID": 1442, "DistrictName": "Quận 1"},
    ward={"WardCode": "20109", "WardName": "Phường Bến Nghé"}
)

ADDRESS_BODY = {
    "customer_id": 5,
    "full_name": "Nguyễn Văn A",
    "phone": "0901234567",
    "province_id": 202,
    "district_id": 1442,
    "ward_code": "20109",
    "street": "12 Lê Lợi",
}


class StubGHN:
    def __init__(self, result=VALID_LOCATION, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def validate_location(self, province_id, district_id, ward_code):
        self.calls.append((province_id, district_id, ward_code))
        if self.error:
            raise self.error
        return self.result


def make_address(address_id=1, **overrides):
    data = {
        "id": address_id, "customer_id": 5, "full_name": "Nguyễn Văn A", "phone": "0901234567",
        "province_id": 202, "province_name": "Hồ Chí Minh", "district_id": 1442, "district_name": "Quận 1",
        "ward_code": "20109", "ward_name": "Phường Bến Nghé", "street": "12 Lê Lợi", "created_at": NOW,
    }
    data.update(overrides)
    return Address(**data)


def make_customer():
    return Customer(id=5, name="Nguyễn Văn A", email="a@example.com", created_at=NOW)


@pytest.fixture
def ghn():
    stub = StubGHN()
    app.dependency_overrides[get_ghn_connector] = lambda: stub
    return stub


class TestListAddresses:

    def test_customer_id_is_required(self, user_client):
        response = user_client.get("/api/addresses/")

        assert response.status_code == 400
        assert response.json() == {"message": "customerId is required"}

    @patch('storefront.api.addresses.CustomerRepository')
    def test_unknown_customer_is_404(self, mock_customer_repo, user_client):
        mock_customer_repo.return_value.find_by_id.return_value = None

        response = user_client.get("/api/addresses/?customerId=5")

        assert response.status_code == 404

    @patch('storefront.api.addresses.AddressRepository')
    @patch('storefront.api.addresses.CustomerRepository')
    def test_list_counts_addresses(self, mock_customer_repo, mock_address_repo, user_client):
        mock_customer_repo.return_value.find_by_id.return_value = make_customer()
        mock_address_repo.return_value.find_by_customer.return_value = [make_address(1, is_default=True),
                                                                       make_address(2)]

        response = user_client.get("/api/addresses/?customerId=5")

        assert response.json()["count"] == 2
        assert response.json()["addresses"][0]["is_default"] is True


class TestCreateAddress:

    @patch('storefront.api.addresses.AddressRepository')
    @patch('storefront.api.addresses.CustomerRepository')
    def test_names_come_from_ghn(self, mock_customer_repo, mock_address_repo, user_client, ghn):
        # Arrange
        mock_customer_repo.return_value.find_by_id.return_value = make_customer()
        mock_address_repo.return_value.create.return_value = make_address(7)

        # Act
        response = user_client.post("/api/addresses/", json=ADDRESS_BODY)

        # Assert
        assert response.status_code == 201
        assert ghn.calls == [(202, 1442, "20109")]
        kwargs = mock_address_repo.return_value.create.call_args.kwargs
        assert kwargs == {"province_name": "Hồ Chí Minh", "district_name": "Quận 1",
                          "ward_name": "Phường Bến Nghé"}

    @patch('storefront.api.addresses.AddressRepository')
    @patch('storefront.api.addresses.CustomerRepository')
    def test_invalid_location_is_400(self, mock_customer_repo, mock_address_repo, user_client, ghn):
        mock_customer_repo.return_value.find_by_id.return_value = make_customer()
        ghn.result = LocationValidation(valid=False, error="Phường/xã 99999 không thuộc Quận 1")

        response = user_client.post("/api/addresses/", json=ADDRESS_BODY)

        assert response.status_code == 400
        assert response.json() == {"message": "Phường/xã 99999 không thuộc Quận 1"}
        mock_address_repo.return_value.create.assert_not_called()

    @patch('storefront.api.addresses.CustomerRepository')
    def test_ghn_outage_is_502(self, mock_customer_repo, user_client, ghn):
        mock_customer_repo.return_value.find_by_id.return_value = make_customer()
        ghn.error = GHNError("GHN request failed")

        response = user_client.post("/api/addresses/", json=ADDRESS_BODY)

        assert response.status_code == 502

    def test_bad_phone_is_400(self, user_client, ghn):
        response = user_client.post("/api/addresses/", json={**ADDRESS_BODY, "phone": "12ab"})

        assert response.status_code == 400
        assert response.json()["message"].startswith("phone:")


class TestUpdateAddress:

    @patch('storefront.api.addresses.AddressRepository')
    def test_street_only_update_skips_ghn(self, mock_address_repo, user_client, ghn):
        address = make_address(1)
        mock_address_repo.return_value.find_by_id.return_value = address
        mock_address_repo.return_value.update.return_value = make_address(1, street="34 Nguyễn Huệ")

        response = user_client.put("/api/addresses/1", json={"street": "  34 Nguyễn Huệ "})

        assert response.status_code == 200
        assert ghn.calls == []
        mock_address_repo.return_value.update.assert_called_once_with(address, {"street": "34 Nguyễn Huệ"})

    @patch('storefront.api.addresses.AddressRepository')
    def test_ward_change_revalidates_with_stored_ids(self, mock_address_repo, user_client, ghn):
        mock_address_repo.return_value.find_by_id.return_value = make_address(1)
        mock_address_repo.return_value.update.return_value = make_address(1)

        user_client.put("/api/addresses/1", json={"ward_code": "20109"})

        assert ghn.calls == [(202, 1442, "20109")]
        fields = mock_address_repo.return_value.update.call_args[0][1]
        assert fields["ward_name"] == "Phường Bến Nghé"
        assert fields["province_name"] == "Hồ Chí Minh"

    @patch('storefront.api.addresses.AddressRepository')
    def test_set_default(self, mock_address_repo, user_client):
        address = make_address(2)
        mock_address_repo.return_value.find_by_id.return_value = address
        mock_address_repo.return_value.set_default.return_value = make_address(2, is_default=True)

        response = user_client.put("/api/addresses/2/default")

        assert response.json()["is_default"] is True
        mock_address_repo.return_value.set_default.assert_called_once_with(address)


class TestAddressLifecycle:

    def test_hard_delete_is_admin_only(self, user_client):
        assert user_client.delete("/api/addresses/1/hard").status_code == 401

    @patch('storefront.api.addresses.AddressRepository')
    def test_hard_delete_by_admin(self, mock_address_repo, admin_client):
        mock_address_repo.return_value.hard_delete.return_value = True

        response = admin_client.delete("/api/addresses/1/hard")

        assert response.json() == {"message": "Address permanently deleted"}
