"""
API tests for /api/payments and the VNPAY IPN alias

The payment service is replaced through get_payment_service, so most of these
tests cover request parsing and response shapes only. The database outage
test runs the real service against a configured gateway.
"""
import psycopg2
import pytest
from unittest.mock import MagicMock, patch

from storefront.api.payments import get_payment_service
from storefront.connectors.vnpay_gateway import VnpayGateway, get_vnpay_gateway
from storefront.core.errors import ServiceError
from storefront.main import app


@pytest.fixture
def service():
    mock_service = MagicMock()
    app.dependency_overrides[get_payment_service] = lambda: mock_service
    return mock_service


class TestInitiate:

    def test_gateways(self, client, service):
        service.supported_gateways.return_value = ["vnpay"]

        response = client.get("/api/payments/gateways")

        assert response.json() == {"success": True, "data": {"gateways": ["vnpay"], "count": 1}}

    @pytest.mark.parametrize("path", ["/api/payments/initiate", "/api/payments/create"])
    def test_initiate_returns_redirect(self, client, service, path):
        # Arrange
        service.initiate.return_value = {"payment_id": 3, "redirect_url": "https://sandbox.vnpayment.vn/x"}

        # Act
        response = client.post(path, json={"order_id": 100, "bank_code": "NCB"},
                               headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

        # Assert
        assert response.status_code == 200
        assert response.json()["data"]["redirect_url"].startswith("https://")
        payload = service.initiate.call_args[0][0]
        assert payload.order_id == 100
        assert payload.gateway == "vnpay"
        assert service.initiate.call_args.kwargs == {"client_ip": "203.0.113.9"}

    def test_paid_order_is_400(self, client, service):
        service.initiate.side_effect = ServiceError("Order 100 is already paid", 400)

        response = client.post("/api/payments/initiate", json={"order_id": 100})

        assert response.status_code == 400
        assert response.json() == {"message": "Order 100 is already paid"}

    def test_negative_amount_is_400(self, client, service):
        response = client.post("/api/payments/initiate", json={"order_id": 100, "amount": -5})

        assert response.status_code == 400
        service.initiate.assert_not_called()


class TestWebhook:

    def test_get_callback_reads_query_string(self, client, service):
        service.handle_callback.return_value = {"success": True, "message": "Confirm Success"}

        response = client.get("/api/payments/webhook/vnpay?vnp_TxnRef=100-1&vnp_ResponseCode=00")

        assert response.status_code == 200
        assert response.json()["success"] is True
        gateway, params = service.handle_callback.call_args[0]
        assert gateway == "vnpay"
        assert params == {"vnp_TxnRef": "100-1", "vnp_ResponseCode": "00"}

    def test_form_body_overrides_query(self, client, service):
        service.handle_callback.return_value = {"success": True, "message": "Confirm Success"}

        client.post("/api/payments/webhook/vnpay?vnp_TxnRef=old", data={"vnp_TxnRef": "100-1"})

        assert service.handle_callback.call_args[0][1] == {"vnp_TxnRef": "100-1"}

    def test_json_body_values_become_strings(self, client, service):
        service.handle_callback.return_value = {"success": False, "message": "Invalid signature"}

        response = client.post("/api/payments/webhook/vnpay", json={"vnp_Amount": 25000000})

        assert response.status_code == 200
        assert service.handle_callback.call_args[0][1] == {"vnp_Amount": "25000000"}

    def test_legacy_vnpay_path_reaches_the_same_handler(self, client, service):
        service.handle_callback.return_value = {"success": True, "message": "Confirm Success"}

        response = client.get("/vnpay-api/webhook/vnpay?vnp_TxnRef=100-1")

        assert response.status_code == 200
        assert service.handle_callback.call_args[0][0] == "vnpay"


class TestStatus:

    def test_confirm(self, client, service):
        service.confirm.return_value = {"order_id": 100, "is_paid": True, "status": "completed"}

        response = client.get("/api/payments/confirm/100")

        assert response.json()["data"]["is_paid"] is True
        service.confirm.assert_called_once_with(100)

    def test_confirm_unknown_order_is_404(self, client, service):
        service.confirm.side_effect = ServiceError("Order not found: 100", 404)

        assert client.get("/api/payments/confirm/100").status_code == 404

    def test_history(self, client, service):
        service.history.return_value = []

        response = client.get("/api/payments/history/100")

        assert response.json() == {"success": True, "data": []}


class TestWebhookWithDatabaseDown:

    @patch('storefront.repositories.payment_repository.get_db_connection_dict')
    def test_database_outage_still_answers_200(self, mock_get_conn, client):
        # Arrange
        gateway = VnpayGateway(
            tmn_code="TESTCODE",
            hash_secret="SECRETKEY",
            payment_url="https://sandbox.vnpayment.vn/paymentv2/vpcpay.html",
            return_url="http://localhost:3000/payment/result"
        )
        app.dependency_overrides[get_vnpay_gateway] = lambda: gateway
        mock_get_conn.side_effect = psycopg2.OperationalError("could not connect to server")
        params = {
            "vnp_TmnCode": "TESTCODE",
            "vnp_Amount": "25000000",
            "vnp_TxnRef": "100-1740800000000",
            "vnp_ResponseCode": "00",
            "vnp_TransactionNo": "14000000",
            "vnp_PayDate": "20250301170000",
        }
        params["vnp_SecureHash"] = gateway.sign(params)

        # Act
        response = client.get("/api/payments/webhook/vnpay", params=params)

        # Assert
        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "Webhook processing failed"}
