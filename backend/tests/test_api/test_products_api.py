"""
API tests for /api/products and /api/reviews
"""
import json
from datetime import datetime, timezone
from unittest.mock import patch

from storefront.domain.product import Product, Review

NOW = datetime(2025, 2, 1, tzinfo=timezone.utc)
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def make_product(product_id=1, **overrides):
    data = {"id": product_id, "name": "iPhone 15", "image": "/uploads/image-1.png", "price": 20000000,
            "count_in_stock": 3, "created_at": NOW}
    data.update(overrides)
    return Product(**data)


def make_review(review_id=1, product_id=1, user_id=1, **overrides):
    data = {"id": review_id, "name": "User 1", "rating": 5, "comment": "Tuyệt vời", "user_id": user_id,
            "product_id": product_id, "created_at": NOW}
    data.update(overrides)
    return Review(**data)


class TestProductListing:

    @patch('storefront.api.products.ReviewRepository')
    @patch('storefront.api.products.ProductRepository')
    def test_list_includes_reviews_and_pages(self, mock_product_repo, mock_review_repo, client):
        # Arrange
        mock_product_repo.return_value.find_all.return_value = ([make_product(1), make_product(2)], 20)
        mock_review_repo.return_value.find_for_products.return_value = {1: [make_review(product_id=1)]}

        # Act
        response = client.get("/api/products/?keyword=iphone&minPrice=100&inStock=true&category=3")

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["page"] == 1
        assert body["pages"] == 3
        assert body["total"] == 20
        assert len(body["products"][0]["reviews"]) == 1
        assert body["products"][1]["reviews"] == []
        assert body["products"][0]["in_stock"] is True

        filters = mock_product_repo.return_value.find_all.call_args[0][0]
        assert filters.keyword == "iphone"
        assert filters.min_price == 100
        assert filters.in_stock is True
        assert filters.category_id == 3
        assert mock_product_repo.return_value.find_all.call_args.kwargs == {"limit": 9, "offset": 0}

    @patch('storefront.api.products.ProductRepository')
    def test_featured_list_has_no_reviews(self, mock_product_repo, client):
        mock_product_repo.return_value.find_all.return_value = ([make_product()], 1)

        response = client.get("/api/products/featured/list?pageSize=600")

        assert "reviews" not in response.json()["products"][0]
        assert mock_product_repo.return_value.find_all.call_args.kwargs["limit"] == 500

    @patch('storefront.api.products.ReviewRepository')
    @patch('storefront.api.products.ProductRepository')
    def test_get_product_with_reviews(self, mock_product_repo, mock_review_repo, client):
        mock_product_repo.return_value.find_by_id.return_value = make_product(7)
        mock_review_repo.return_value.find_for_products.return_value = {}

        response = client.get("/api/products/7")

        assert response.status_code == 200
        assert response.json()["id"] == 7
        assert response.json()["reviews"] == []

    @patch('storefront.api.products.ProductRepository')
    def test_deleted_product_is_404(self, mock_product_repo, client):
        mock_product_repo.return_value.find_by_id.return_value = None

        response = client.get("/api/products/7")

        assert response.status_code == 404
        assert response.json() == {"message": "Product not found"}

    @patch('storefront.api.products.ProductRepository')
    def test_top_rated(self, mock_product_repo, client):
        mock_product_repo.return_value.find_top_rated.return_value = [make_product(rating=5)]

        response = client.get("/api/products/top/rated")

        assert response.json()[0]["rating"] == 5
        mock_product_repo.return_value.find_top_rated.assert_called_once_with(limit=3)


class TestProductWrites:

    @patch('storefront.api.products.ProductRepository')
    def test_create_with_image_upload(self, mock_product_repo, admin_client, admin_user):
        # Arrange
        mock_product_repo.return_value.create.return_value = make_product(9)

        # Act
        response = admin_client.post(
            "/api/products/",
            data={"name": "iPhone 15", "price": "20000000", "features": json.dumps(["A16", "USB-C"])},
            files={"image": ("phone.png", PNG_BYTES, "image/png")}
        )

        # Assert
        assert response.status_code == 201
        args, kwargs = mock_product_repo.return_value.create.call_args
        assert args[0].features == ["A16", "USB-C"]
        assert kwargs["image"].startswith("/uploads/image-")
        assert kwargs["image"].endswith(".png")
        assert kwargs["user_id"] == admin_user.id

    def test_create_without_image_is_400(self, admin_client):
        response = admin_client.post("/api/products/", data={"name": "iPhone 15", "price": "100"})

        assert response.status_code == 400
        assert response.json() == {"message": "Product image is required"}

    def test_create_with_non_image_file_is_400(self, admin_client):
        response = admin_client.post(
            "/api/products/",
            data={"name": "iPhone 15", "price": "100"},
            files={"image": ("notes.txt", b"hello", "text/plain")}
        )

        assert response.status_code == 400
        assert "image" in response.json()["message"].lower()

    def test_invalid_json_field_is_400(self, admin_client):
        response = admin_client.post(
            "/api/products/",
            data={"name": "iPhone 15", "price": "100", "specs": "{not json"},
            files={"image": ("phone.png", PNG_BYTES, "image/png")}
        )

        assert response.status_code == 400
        assert response.json() == {"message": "specs: must be valid JSON"}

    @patch('storefront.api.products.ProductRepository')
    def test_partial_update_only_sends_given_fields(self, mock_product_repo, admin_client):
        mock_product_repo.return_value.find_by_id.return_value = make_product(1)
        mock_product_repo.return_value.update.return_value = make_product(1, price=19000000)

        response = admin_client.put("/api/products/1", data={"price": "19000000"})

        assert response.status_code == 200
        mock_product_repo.return_value.update.assert_called_once_with(1, {"price": 19000000.0})

    def test_regular_user_cannot_delete(self, user_client):
        assert user_client.delete("/api/products/1").status_code == 401


class TestReviews:

    @patch('storefront.api.reviews.ReviewRepository')
    @patch('storefront.api.reviews.ProductRepository')
    def test_create_review(self, mock_product_repo, mock_review_repo, user_client, regular_user):
        # Arrange
        mock_product_repo.return_value.find_by_id.return_value = make_product(1)
        mock_review_repo.return_value.find_user_review.return_value = None
        mock_review_repo.return_value.create.return_value = make_review()

        # Act
        response = user_client.post("/api/reviews/products/1/reviews", data={"rating": "5", "comment": " Tuyệt vời "})

        # Assert
        assert response.status_code == 201
        kwargs = mock_review_repo.return_value.create.call_args.kwargs
        assert kwargs["comment"] == "Tuyệt vời"
        assert kwargs["name"] == regular_user.display_name
        assert kwargs["user_id"] == regular_user.id

    @patch('storefront.api.reviews.ReviewRepository')
    @patch('storefront.api.reviews.ProductRepository')
    def test_second_review_is_400(self, mock_product_repo, mock_review_repo, user_client):
        mock_product_repo.return_value.find_by_id.return_value = make_product(1)
        mock_review_repo.return_value.find_user_review.return_value = make_review()

        response = user_client.post("/api/reviews/products/1/reviews", data={"rating": "4", "comment": "Ok"})

        assert response.status_code == 400
        assert response.json() == {"message": "Product already reviewed"}

    def test_rating_out_of_range_is_400(self, user_client):
        response = user_client.post("/api/reviews/products/1/reviews", data={"rating": "6", "comment": "Ok"})

        assert response.status_code == 400

    @patch('storefront.api.reviews.ReviewRepository')
    def test_blank_comment_is_400(self, mock_review_repo, user_client):
        response = user_client.post("/api/reviews/products/1/reviews", data={"rating": "5", "comment": "   "})

        assert response.status_code == 400
        assert response.json() == {"message": "Comment is required"}
        mock_review_repo.return_value.create.assert_not_called()

    @patch('storefront.api.reviews.ReviewRepository')
    def test_edit_to_blank_comment_is_400(self, mock_review_repo, user_client):
        mock_review_repo.return_value.find_by_id.return_value = make_review(user_id=1)

        response = user_client.put("/api/reviews/1", json={"comment": "  "})

        assert response.status_code == 400
        mock_review_repo.return_value.update.assert_not_called()

    @patch('storefront.api.reviews.ReviewRepository')
    def test_list_reviews(self, mock_review_repo, client):
        mock_review_repo.return_value.find_by_product.return_value = ([make_review()], 1)

        response = client.get("/api/reviews/products/1/reviews?keyword=tuy")

        assert response.json()["pages"] == 1
        mock_review_repo.return_value.find_by_product.assert_called_once_with(1, keyword="tuy", limit=10, offset=0)

    @patch('storefront.api.reviews.ReviewRepository')
    def test_cannot_edit_someone_elses_review(self, mock_review_repo, user_client):
        mock_review_repo.return_value.find_by_id.return_value = make_review(user_id=99)

        response = user_client.put("/api/reviews/1", json={"rating": 1})

        assert response.status_code == 404
        mock_review_repo.return_value.update.assert_not_called()

    @patch('storefront.api.reviews.ReviewRepository')
    def test_edit_own_review(self, mock_review_repo, user_client):
        review = make_review(user_id=1)
        mock_review_repo.return_value.find_by_id.return_value = review
        mock_review_repo.return_value.update.return_value = make_review(rating=3)

        response = user_client.put("/api/reviews/1", json={"rating": 3})

        assert response.json()["rating"] == 3
        mock_review_repo.return_value.update.assert_called_once_with(review, {"rating": 3})
