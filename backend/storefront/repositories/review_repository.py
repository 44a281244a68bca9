"""
Review Repository - Data Access Layer for product reviews

Every write recomputes the product's rating and num_reviews from its live
reviews inside the same transaction.

Author: Online Store Team
Date: 2025-02-20
"""
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from storefront.domain.product import Review
from storefront.core.database import get_db_connection_dict
from storefront.repositories.base import SoftDeleteRepository

_COLUMNS = "id, name, rating, comment, avatar, user_id, product_id, is_deleted, created_at, updated_at"

_RECALCULATE_RATING = """
    UPDATE products
    SET num_reviews = stats.review_count,
        rating = stats.average_rating
    FROM (
        SELECT COUNT(*) AS review_count, COALESCE(AVG(rating), 0) AS average_rating
        FROM reviews
        WHERE product_id = %s AND is_deleted = FALSE
    ) AS stats
    WHERE products.id = %s
"""


class ReviewRepository(SoftDeleteRepository[Review]):
    """Repository for product reviews"""

    model = Review
    table = "reviews"
    alias = "r"
    select_sql = f"SELECT {', '.join('r.' + c.strip() for c in _COLUMNS.split(','))} FROM reviews r"

    @staticmethod
    def _recalculate(cursor, product_id: int) -> None:
        cursor.execute(_RECALCULATE_RATING, (product_id, product_id))

    def find_by_product(
        self,
        product_id: int,
        keyword: Optional[str] = None,
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[Review], int]:
        """Live reviews of a product, newest first, optionally searching the comment"""
        conditions = ["r.product_id = %s", "r.is_deleted = FALSE"]
        params = [product_id]

        if keyword:
            conditions.append("r.comment ILIKE %s")
            params.append(f"%{keyword}%")

        return self._paginate(conditions, params, limit, offset)

    def find_for_products(self, product_ids: List[int]) -> Dict[int, List[Review]]:
        """Live reviews for several products in one query, grouped by product"""
        grouped: Dict[int, List[Review]] = defaultdict(list)
        if not product_ids:
            return grouped

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {self.select_sql}
                WHERE r.product_id = ANY(%s) AND r.is_deleted = FALSE
                ORDER BY r.created_at DESC
            """, (list(product_ids),))
            for row in cursor.fetchall():
                review = self._map_row(row)
                grouped[review.product_id].append(review)
            return grouped

        finally:
            cursor.close()
            conn.close()

    def find_user_review(self, product_id: int, user_id: int) -> Optional[Review]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {self.select_sql}
                WHERE r.product_id = %s AND r.user_id = %s AND r.is_deleted = FALSE
            """, (product_id, user_id))
            row = cursor.fetchone()
            return self._map_row(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(
        self,
        product_id: int,
        user_id: int,
        name: str,
        rating: int,
        comment: str,
        avatar: Optional[str] = None
    ) -> Review:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO reviews (name, rating, comment, avatar, user_id, product_id)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING {_COLUMNS}
            """, (name, rating, comment, avatar, user_id, product_id))
            row = cursor.fetchone()
            self._recalculate(cursor, product_id)
            conn.commit()
            return self._map_row(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, review: Review, fields: dict) -> Review:
        if not fields:
            return review

        assignments = ", ".join(f"{column} = %s" for column in fields)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE reviews
                SET {assignments}
                WHERE id = %s
                RETURNING {_COLUMNS}
            """, list(fields.values()) + [review.id])
            row = cursor.fetchone()
            self._recalculate(cursor, review.product_id)
            conn.commit()
            return self._map_row(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def _change_and_recalculate(self, query: str, review_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(query, (review_id,))
            row = cursor.fetchone()
            if row:
                self._recalculate(cursor, row['product_id'])
            conn.commit()
            return row is not None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def soft_delete(self, entity_id: int) -> bool:
        return self._change_and_recalculate("""
            UPDATE reviews SET is_deleted = TRUE
            WHERE id = %s AND is_deleted = FALSE
            RETURNING product_id
        """, entity_id)

    def hard_delete(self, entity_id: int) -> bool:
        return self._change_and_recalculate(
            "DELETE FROM reviews WHERE id = %s RETURNING product_id",
            entity_id
        )
