"""
API tests for /api/categories, including the shared soft delete / restore /
hard delete responses
"""
from datetime import datetime, timezone
from unittest.mock import patch

from storefront.domain.catalog import Category

NOW = datetime(2025, 2, 1, tzinfo=timezone.utc)


def make_category(category_id=1, name="Điện thoại", **overrides):
    return Category(id=category_id, name=name, created_at=NOW, **overrides)


class TestListCategories:

    @patch('storefront.api.categories.CategoryRepository')
    def test_list_returns_page_envelope(self, mock_repo_class, client):
        # Arrange
        mock_repo = mock_repo_class.return_value
        mock_repo.find_all.return_value = ([make_category(1), make_category(2, "Laptop")], 21)

        # Act
        response = client.get("/api/categories/?keyword=lap&pageSize=10&pageNumber=2")

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert [c["name"] for c in body["categories"]] == ["Điện thoại", "Laptop"]
        assert body["page"] == 2
        assert body["pages"] == 3
        assert "total" not in body
        mock_repo.find_all.assert_called_once_with(keyword="lap", limit=10, offset=10)

    @patch('storefront.api.categories.CategoryRepository')
    def test_page_size_is_clamped(self, mock_repo_class, client):
        mock_repo_class.return_value.find_all.return_value = ([], 0)

        response = client.get("/api/categories/?pageSize=1000")

        assert response.json() == {"categories": [], "page": 1, "pages": 0}
        assert mock_repo_class.return_value.find_all.call_args.kwargs["limit"] == 100

    @patch('storefront.api.categories.CategoryRepository')
    def test_get_unknown_category_is_404(self, mock_repo_class, client):
        mock_repo_class.return_value.find_by_id.return_value = None

        response = client.get("/api/categories/99")

        assert response.status_code == 404
        assert response.json() == {"message": "Category not found"}

    def test_deleted_list_requires_login(self, client):
        assert client.get("/api/categories/deleted/list").status_code == 401

    @patch('storefront.api.categories.CategoryRepository')
    def test_deleted_list_includes_total(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.find_deleted.return_value = ([make_category(is_deleted=True)], 1)

        response = admin_client.get("/api/categories/deleted/list")
        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["categories"][0]["is_deleted"] is True


class TestWriteCategories:

    @patch('storefront.api.categories.CategoryRepository')
    def test_create_category(self, mock_repo_class, admin_client):
        mock_repo = mock_repo_class.return_value
        mock_repo.find_by_name.return_value = None
        mock_repo.create.return_value = make_category(5, "Tablet")

        response = admin_client.post("/api/categories/", json={"name": "Tablet"})

        assert response.status_code == 201
        assert response.json()["id"] == 5

    @patch('storefront.api.categories.CategoryRepository')
    def test_duplicate_name_is_400(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.find_by_name.return_value = make_category()

        response = admin_client.post("/api/categories/", json={"name": "điện thoại"})

        assert response.status_code == 400
        assert response.json() == {"message": "Category already exists"}
        mock_repo_class.return_value.create.assert_not_called()

    def test_regular_user_cannot_create(self, user_client):
        response = user_client.post("/api/categories/", json={"name": "Tablet"})

        assert response.status_code == 401

    @patch('storefront.api.categories.CategoryRepository')
    def test_renaming_to_own_name_is_allowed(self, mock_repo_class, admin_client):
        mock_repo = mock_repo_class.return_value
        mock_repo.find_by_id.return_value = make_category(1)
        mock_repo.find_by_name.return_value = make_category(1)
        mock_repo.update.return_value = make_category(1, description="Mới")

        response = admin_client.put("/api/categories/1", json={"name": "Điện thoại", "description": "Mới"})

        assert response.status_code == 200
        assert response.json()["description"] == "Mới"

    @patch('storefront.api.categories.CategoryRepository')
    def test_renaming_to_another_categorys_name_is_400(self, mock_repo_class, admin_client):
        mock_repo = mock_repo_class.return_value
        mock_repo.find_by_id.return_value = make_category(1)
        mock_repo.find_by_name.return_value = make_category(2, "Laptop")

        response = admin_client.put("/api/categories/1", json={"name": "Laptop"})

        assert response.status_code == 400


class TestCategoryLifecycle:

    @patch('storefront.api.categories.CategoryRepository')
    def test_soft_delete(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.soft_delete.return_value = True

        response = admin_client.delete("/api/categories/1")

        assert response.status_code == 200
        assert response.json() == {"message": "Category removed"}

    @patch('storefront.api.categories.CategoryRepository')
    def test_soft_delete_unknown_is_404(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.soft_delete.return_value = False

        assert admin_client.delete("/api/categories/1").status_code == 404

    @patch('storefront.api.categories.CategoryRepository')
    def test_restore_deleted_category(self, mock_repo_class, admin_client):
        mock_repo = mock_repo_class.return_value
        mock_repo.find_by_id.side_effect = [make_category(is_deleted=True), make_category()]

        response = admin_client.put("/api/categories/1/restore")

        assert response.status_code == 200
        assert response.json()["message"] == "Category restored"
        assert response.json()["category"]["is_deleted"] is False
        mock_repo.restore.assert_called_once_with(1)

    @patch('storefront.api.categories.CategoryRepository')
    def test_restore_live_category_is_400(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.find_by_id.return_value = make_category()

        response = admin_client.put("/api/categories/1/restore")

        assert response.status_code == 400
        assert response.json() == {"message": "Category is not deleted"}

    @patch('storefront.api.categories.CategoryRepository')
    def test_hard_delete_by_super_admin(self, mock_repo_class, super_admin_client):
        mock_repo_class.return_value.hard_delete.return_value = True

        response = super_admin_client.delete("/api/categories/1/hard")

        assert response.status_code == 200
        assert response.json() == {"message": "Category permanently deleted"}
