"""
API tests for /api/users: registration, sessions, password reset,
verification, profile and admin management
"""
from unittest.mock import patch

from storefront.api.users import username_from_email, _unique_username
from storefront.core.auth import create_refresh_token, decode_token, hash_one_time_token, hash_password
from conftest import make_user


class TestUsernames:

    def test_username_from_email_replaces_invalid_characters(self):
        assert username_from_email("nguyen.van+a@example.com") == "nguyen_van_a"

    def test_username_keeps_dash_and_underscore(self):
        assert username_from_email("tran-b_c@example.com") == "tran-b_c"

    @patch('storefront.api.users.UserRepository')
    def test_unique_username_adds_suffix(self, mock_repo_class):
        repo = mock_repo_class.return_value
        repo.username_exists.side_effect = [True, True, False]

        assert _unique_username(repo, "nguyen") == "nguyen3"


class TestRegisterAndLogin:

    @patch('storefront.api.users.UserRepository')
    def test_register_signs_in_and_sets_refresh_cookie(self, mock_repo_class, client):
        # Arrange
        repo = mock_repo_class.return_value
        repo.email_exists.return_value = False
        repo.username_exists.return_value = False
        repo.create.return_value = make_user(10, email="new@example.com")

        # Act
        response = client.post("/api/users/", json={"name": "New", "email": "new@example.com", "password": "secret123"})

        # Assert
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "new@example.com"
        assert decode_token(body["token"])["id"] == 10
        assert body["access_token"] == body["token"]
        assert "password_hash" not in body

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("refreshToken=")
        assert "HttpOnly" in cookie
        assert "Path=/api/users/refresh" in cookie
        assert "SameSite=strict" in cookie

        kwargs = repo.create.call_args.kwargs
        assert kwargs["username"] == "new"
        assert kwargs["password_hash"] != "secret123"
        repo.set_email_verification_token.assert_called_once()

    @patch('storefront.api.users.UserRepository')
    def test_register_existing_email_is_400(self, mock_repo_class, client):
        mock_repo_class.return_value.email_exists.return_value = True

        response = client.post("/api/users/", json={"email": "old@example.com", "password": "secret123"})

        assert response.status_code == 400
        assert response.json() == {"message": "User already exists"}

    def test_register_short_password_is_400(self, client):
        response = client.post("/api/users/", json={"email": "new@example.com", "password": "123"})

        assert response.status_code == 400
        assert "password" in response.json()["message"]

    @patch('storefront.api.users.UserRepository')
    def test_login_success(self, mock_repo_class, client):
        user = make_user(4, password_hash=hash_password("secret123"))
        mock_repo_class.return_value.find_by_email.return_value = user

        response = client.post("/api/users/login", json={"email": user.email, "password": "secret123"})

        assert response.status_code == 200
        assert decode_token(response.json()["token"])["id"] == 4
        mock_repo_class.return_value.record_login.assert_called_once_with(4)

    @patch('storefront.api.users.UserRepository')
    def test_login_wrong_password_is_401(self, mock_repo_class, client):
        mock_repo_class.return_value.find_by_email.return_value = make_user(4, password_hash=hash_password("secret123"))

        response = client.post("/api/users/login", json={"email": "user4@example.com", "password": "nope-nope"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid email or password"}

    @patch('storefront.api.users.UserRepository')
    def test_register_is_rate_limited(self, mock_repo_class, client):
        mock_repo_class.return_value.email_exists.return_value = True
        body = {"email": "old@example.com", "password": "secret123"}

        statuses = [client.post("/api/users/", json=body).status_code for _ in range(4)]

        assert statuses == [400, 400, 400, 429]


class TestRefreshAndLogout:

    def test_refresh_without_cookie_is_401(self, client):
        response = client.post("/api/users/refresh")

        assert response.status_code == 401
        assert response.json() == {"message": "Not authorized, no refresh token"}

    @patch('storefront.api.users.UserRepository')
    def test_refresh_rotates_cookie(self, mock_repo_class, client):
        # Arrange
        mock_repo_class.return_value.find_by_id.return_value = make_user(4)
        client.cookies.set("refreshToken", create_refresh_token(4))

        # Act
        response = client.post("/api/users/refresh")

        # Assert
        assert response.status_code == 200
        assert decode_token(response.json()["token"])["id"] == 4
        assert response.headers["set-cookie"].startswith("refreshToken=")

    def test_access_token_is_not_a_refresh_token(self, client):
        from storefront.core.auth import create_access_token
        client.cookies.set("refreshToken", create_access_token(4))

        response = client.post("/api/users/refresh")

        assert response.status_code == 401
        assert response.json() == {"message": "Not authorized, refresh token failed"}

    def test_logout_clears_cookie(self, client):
        response = client.post("/api/users/logout")

        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}
        assert 'refreshToken=""' in response.headers["set-cookie"] or "Max-Age=0" in response.headers["set-cookie"]


class TestPasswordReset:

    @patch('storefront.api.users.UserRepository')
    def test_forgot_password_answer_does_not_reveal_accounts(self, mock_repo_class, client):
        repo = mock_repo_class.return_value

        repo.find_by_email.return_value = None
        unknown = client.post("/api/users/forgot-password", json={"email": "nobody@example.com"})

        repo.find_by_email.return_value = make_user(4)
        known = client.post("/api/users/forgot-password", json={"email": "user4@example.com"})

        assert unknown.status_code == known.status_code == 200
        assert unknown.json() == known.json()
        repo.set_password_reset_token.assert_called_once()

    @patch('storefront.api.users.UserRepository')
    def test_reset_password_with_valid_token(self, mock_repo_class, client):
        repo = mock_repo_class.return_value
        repo.find_by_password_reset_token.return_value = make_user(4)

        response = client.post("/api/users/reset-password", json={"token": "raw", "new_password": "newsecret"})

        assert response.status_code == 200
        repo.find_by_password_reset_token.assert_called_once_with(hash_one_time_token("raw"))
        user_id, new_hash = repo.reset_password.call_args[0]
        assert user_id == 4
        assert new_hash != "newsecret"

    @patch('storefront.api.users.UserRepository')
    def test_reset_password_with_bad_token_is_400(self, mock_repo_class, client):
        mock_repo_class.return_value.find_by_password_reset_token.return_value = None

        response = client.post("/api/users/reset-password", json={"token": "raw", "new_password": "newsecret"})

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid or expired reset token"}

    @patch('storefront.api.users.UserRepository')
    def test_verify_email(self, mock_repo_class, client):
        mock_repo_class.return_value.find_by_email_verification_token.return_value = make_user(4)

        response = client.post("/api/users/verify-email", json={"token": "raw"})

        assert response.status_code == 200
        mock_repo_class.return_value.mark_email_verified.assert_called_once_with(4)

    def test_resend_verification_when_already_verified_is_400(self, client):
        from storefront.core.auth import get_current_user
        from storefront.main import app
        app.dependency_overrides[get_current_user] = lambda: make_user(4, is_email_verified=True)

        response = client.post("/api/users/resend-verification")

        assert response.status_code == 400
        assert response.json() == {"message": "Email is already verified"}


class TestProfile:

    def test_get_profile(self, user_client, regular_user):
        response = user_client.get("/api/users/profile")

        assert response.json()["email"] == regular_user.email

    @patch('storefront.api.users.UserRepository')
    def test_update_profile_hashes_new_password(self, mock_repo_class, user_client):
        repo = mock_repo_class.return_value
        repo.username_exists.return_value = False
        repo.update.return_value = make_user(1, name="Renamed")

        response = user_client.put("/api/users/profile", json={"name": "Renamed", "password": "newsecret"})

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        assert "token" in response.json()
        fields = repo.update.call_args[0][1]
        assert "password" not in fields
        assert fields["password_hash"] != "newsecret"

    @patch('storefront.api.users.UserRepository')
    def test_update_profile_email_clash_is_409(self, mock_repo_class, user_client):
        mock_repo_class.return_value.email_exists.return_value = True

        response = user_client.put("/api/users/profile", json={"email": "taken@example.com"})

        assert response.status_code == 409
        assert response.json() == {"message": "Email already in use"}


class TestAdminUserManagement:

    @patch('storefront.api.users.UserRepository')
    def test_list_users(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.find_all.return_value = ([make_user(1), make_user(2)], 2)

        response = admin_client.get("/api/users/?keyword=user")

        assert len(response.json()["users"]) == 2
        assert response.json()["pages"] == 1

    @patch('storefront.api.users.UserRepository')
    def test_admin_cannot_grant_super_admin(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.find_by_id.return_value = make_user(5)

        response = admin_client.put("/api/users/5", json={"role": "super-admin"})

        assert response.status_code == 401
        mock_repo_class.return_value.update.assert_not_called()

    @patch('storefront.api.users.UserRepository')
    def test_super_admin_can_grant_super_admin(self, mock_repo_class, super_admin_client):
        repo = mock_repo_class.return_value
        repo.find_by_id.return_value = make_user(5)
        repo.update.return_value = make_user(5, role="super-admin")

        response = super_admin_client.put("/api/users/5", json={"role": "super-admin"})

        assert response.status_code == 200
        assert response.json()["role"] == "super-admin"

    def test_admin_cannot_delete_self(self, admin_client, admin_user):
        response = admin_client.delete(f"/api/users/{admin_user.id}")

        assert response.status_code == 400
        assert response.json() == {"message": "You cannot delete your own account"}

    @patch('storefront.api.users.UserRepository')
    def test_soft_delete_user(self, mock_repo_class, admin_client):
        mock_repo_class.return_value.soft_delete.return_value = True

        response = admin_client.delete("/api/users/9")

        assert response.json() == {"message": "User removed"}
