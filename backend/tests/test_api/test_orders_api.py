"""
API tests for /api/orders
"""
from datetime import datetime, timezone
from unittest.mock import patch

from storefront.core.errors import ServiceError
from storefront.domain.order import Order, OrderItem

NOW = datetime(2025, 3, 1, tzinfo=timezone.utc)


def make_order(order_id=1, **overrides):
    data = {
        "id": order_id,
        "user_id": 1,
        "customer_id": 5,
        "items": [OrderItem(product_id=1, name="iPhone 15", qty=2, price=100000)],
        "items_price": 200000,
        "total_price": 230000,
        "shipping_fee": 30000,
        "created_at": NOW,
    }
    data.update(overrides)
    return Order(**data)


class TestPlaceOrder:

    @patch('storefront.api.orders.OrderService')
    def test_create_order_wraps_result(self, mock_service_class, user_client, regular_user):
        # Arrange
        mock_service_class.return_value.place_order.return_value = make_order(10)
        body = {
            "order_items": [{"product_id": 1, "qty": 2}],
            "customer_phone": "0901234567",
            "shipping_fee": 30000,
            "payment_method": "vnpay"
        }

        # Act
        response = user_client.post("/api/orders/", json=body)

        # Assert
        assert response.status_code == 201
        assert response.json()["success"] is True
        assert response.json()["data"]["id"] == 10
        user, payload = mock_service_class.return_value.place_order.call_args[0]
        assert user is regular_user
        assert payload.order_items[0].qty == 2
        assert payload.payment_method == "vnpay"

    @patch('storefront.api.orders.OrderService')
    def test_business_rule_failure_is_forwarded(self, mock_service_class, user_client):
        mock_service_class.return_value.place_order.side_effect = ServiceError("No order items")

        response = user_client.post("/api/orders/", json={"order_items": []})

        assert response.status_code == 400
        assert response.json() == {"message": "No order items"}

    def test_zero_quantity_is_400(self, user_client):
        response = user_client.post("/api/orders/", json={"order_items": [{"product_id": 1, "qty": 0}]})

        assert response.status_code == 400

    def test_unknown_payment_method_is_400(self, user_client):
        response = user_client.post("/api/orders/", json={"order_items": [{"product_id": 1, "qty": 1}],
                                                         "payment_method": "bitcoin"})

        assert response.status_code == 400

    def test_anonymous_checkout_is_401(self, client):
        response = client.post("/api/orders/", json={"order_items": [{"product_id": 1, "qty": 1}]})

        assert response.status_code == 401


class TestReadOrders:

    @patch('storefront.api.orders.OrderRepository')
    def test_my_orders_include_email_fallback(self, mock_repo_class, user_client, regular_user):
        mock_repo_class.return_value.find_by_user.return_value = ([make_order()], 1)

        response = user_client.get("/api/orders/myorders?pageSize=5")

        assert response.status_code == 200
        assert response.json()["orders"][0]["items"][0]["name"] == "iPhone 15"
        mock_repo_class.return_value.find_by_user.assert_called_once_with(
            regular_user.id, email=regular_user.email, limit=5, offset=0
        )

    @patch('storefront.api.orders.OrderRepository')
    def test_single_order_is_public(self, mock_repo_class, client):
        mock_repo_class.return_value.find_by_id.return_value = make_order(3)

        response = client.get("/api/orders/3")

        assert response.json()["id"] == 3

    def test_order_list_is_admin_only(self, user_client):
        assert user_client.get("/api/orders/").status_code == 401

    @patch('storefront.api.orders.OrderRepository')
    def test_admin_order_list(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.find_all.return_value = ([make_order(1), make_order(2)], 12)

        response = admin_client.get("/api/orders/")

        assert response.json()["pages"] == 2


class TestAdminOrderActions:

    @patch('storefront.api.orders.OrderRepository')
    def test_mark_delivered(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.mark_delivered.return_value = make_order(1, is_delivered=True, delivered_at=NOW)

        response = admin_client.put("/api/orders/1/deliver")

        assert response.status_code == 200
        assert response.json()["is_delivered"] is True
        order_id, delivered_at = mock_repo_class.return_value.mark_delivered.call_args[0]
        assert order_id == 1
        assert delivered_at.tzinfo is not None

    @patch('storefront.api.orders.OrderRepository')
    def test_mark_delivered_unknown_order_is_404(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.mark_delivered.return_value = None

        response = admin_client.put("/api/orders/1/deliver")

        assert response.status_code == 404
        assert response.json() == {"message": "Order not found"}

    @patch('storefront.api.orders.OrderRepository')
    def test_restore_unknown_order_is_404(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.find_by_id.return_value = None

        assert admin_client.put("/api/orders/1/restore").status_code == 404

    def test_hard_delete_needs_super_admin(self, admin_client):
        response = admin_client.delete("/api/orders/1/hard")

        assert response.status_code == 401
        assert response.json() == {"message": "Not authorized as a super admin"}
