"""
User Repository - Data Access Layer for user accounts

Emails are stored lowercase. Reset and verification tokens are stored as
sha256 hashes with an expiry; lookups only match unexpired tokens.

Author: Online Store Team
Date: 2025-02-14
"""
from datetime import datetime
from typing import List, Optional, Tuple

from storefront.domain.user import User
from storefront.core.database import get_db_connection_dict
from storefront.repositories.base import SoftDeleteRepository


class UserRepository(SoftDeleteRepository[User]):
    """Repository for user accounts"""

    model = User
    table = "users"
    alias = "u"
    select_sql = """
        SELECT u.id, u.username, u.name, u.email, u.password_hash, u.role,
               u.profile_image, u.is_email_verified, u.last_login_at,
               u.is_deleted, u.created_at, u.updated_at
        FROM users u
    """

    def find_all(
        self,
        keyword: Optional[str] = None,
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[User], int]:
        """Live users, searching username and email"""
        conditions = ["u.is_deleted = FALSE"]
        params = []

        if keyword:
            conditions.append("(u.username ILIKE %s OR u.email ILIKE %s)")
            params.extend([f"%{keyword}%", f"%{keyword}%"])

        return self._paginate(conditions, params, limit, offset)

    def _find_one(self, condition: str, params: tuple) -> Optional[User]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"{self.select_sql} WHERE {condition}", params)
            row = cursor.fetchone()
            return self._map_row(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        condition = "u.email = %s"
        if not include_deleted:
            condition += " AND u.is_deleted = FALSE"
        return self._find_one(condition, (email.strip().lower(),))

    def username_exists(self, username: str, exclude_id: Optional[int] = None) -> bool:
        user = self._find_one("LOWER(u.username) = LOWER(%s)", (username,))
        return user is not None and user.id != exclude_id

    def email_exists(self, email: str, exclude_id: Optional[int] = None) -> bool:
        user = self.find_by_email(email, include_deleted=True)
        return user is not None and user.id != exclude_id

    def create(
        self,
        username: str,
        email: str,
        password_hash: str,
        name: Optional[str] = None,
        role: str = "user"
    ) -> User:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO users (username, name, email, password_hash, role)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING id
            """, (username, name, email.strip().lower(), password_hash, role))
            user_id = cursor.fetchone()['id']
            conn.commit()

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(user_id)

    def update(self, user_id: int, fields: dict) -> Optional[User]:
        """
        Update columns on a live user

        Args:
            fields: username / name / email / role / password_hash
        """
        if "email" in fields and fields["email"]:
            fields = {**fields, "email": fields["email"].strip().lower()}
        return self._update_fields(user_id, fields)

    def _execute(self, query: str, params: tuple) -> None:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(query, params)
            conn.commit()

        finally:
            cursor.close()
            conn.close()

    def record_login(self, user_id: int) -> None:
        self._execute("UPDATE users SET last_login_at = NOW() WHERE id = %s", (user_id,))

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    def set_password_reset_token(self, user_id: int, token_hash: str, expires_at: datetime) -> None:
        self._execute("""
            UPDATE users
            SET password_reset_token = %s, password_reset_expire = %s
            WHERE id = %s
        """, (token_hash, expires_at, user_id))

    def find_by_password_reset_token(self, token_hash: str) -> Optional[User]:
        return self._find_one(
            "u.password_reset_token = %s AND u.password_reset_expire > NOW() AND u.is_deleted = FALSE",
            (token_hash,)
        )

    def reset_password(self, user_id: int, password_hash: str) -> None:
        self._execute("""
            UPDATE users
            SET password_hash = %s, password_reset_token = NULL, password_reset_expire = NULL
            WHERE id = %s
        """, (password_hash, user_id))

    # ------------------------------------------------------------------
    # Email verification
    # ------------------------------------------------------------------

    def set_email_verification_token(self, user_id: int, token_hash: str, expires_at: datetime) -> None:
        self._execute("""
            UPDATE users
            SET email_verification_token = %s, email_verification_expire = %s
            WHERE id = %s
        """, (token_hash, expires_at, user_id))

    def find_by_email_verification_token(self, token_hash: str) -> Optional[User]:
        return self._find_one(
            "u.email_verification_token = %s AND u.email_verification_expire > NOW() "
            "AND u.is_deleted = FALSE",
            (token_hash,)
        )

    def mark_email_verified(self, user_id: int) -> None:
        self._execute("""
            UPDATE users
            SET is_email_verified = TRUE,
                email_verification_token = NULL,
                email_verification_expire = NULL
            WHERE id = %s
        """, (user_id,))
