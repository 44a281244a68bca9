"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.

Author: Online Store Team
Date: 2025-02-14
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from psycopg2.extras import Json

from storefront.domain.product import Product, ProductCreate, ProductFilters, Deal
from storefront.core.database import get_db_connection_dict
from storefront.repositories.base import SoftDeleteRepository

_NUMERIC_KEYWORD = re.compile(r"^\d+(\.\d+)?$")

_JSON_COLUMNS = ("images", "features", "specs")


def price_window(keyword: str) -> Optional[Tuple[float, float]]:
    """
    Price range matched by a numeric search keyword.

    Below 1,000,000 the keyword is read as the leading digits of a price in
    dong: "15" matches 150,000 - 159,999. From 1,000,000 up it matches
    +/- 10% around the value.

    Returns:
        (lower, upper) inclusive bounds, or None for non-numeric keywords
    """
    term = keyword.strip()
    if not _NUMERIC_KEYWORD.match(term):
        return None

    value = float(term)
    if value < 1_000_000:
        multiplier = 10 ** (6 - len(term))
        return value * multiplier, (value + 1) * multiplier - 1
    return value * 0.9, value * 1.1


class ProductRepository(SoftDeleteRepository[Product]):
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    model = Product
    table = "products"
    alias = "p"
    select_sql = """
        SELECT
            p.id, p.user_id, p.name, p.image, p.images, p.brand,
            p.category_id, cat.name AS category_name,
            p.supplier_id, sup.name AS supplier_name,
            p.description, p.features, p.specs,
            p.rating, p.num_reviews, p.price, p.original_price,
            p.count_in_stock, p.featured, p.deal_discount, p.deal_end_time,
            p.is_deleted, p.created_at, p.updated_at
        FROM products p
        LEFT JOIN categories cat ON cat.id = p.category_id
        LEFT JOIN suppliers sup ON sup.id = p.supplier_id
    """

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        """
        Map a database row to the Product domain model.

        The deal is stored as two nullable columns and exposed as one object.
        """
        deal = None
        if row.get('deal_discount') is not None:
            deal = Deal(discount=row['deal_discount'], end_time=row.get('deal_end_time'))

        return Product(
            id=row['id'],
            user_id=row.get('user_id'),
            name=row['name'],
            image=row['image'],
            images=row.get('images') or [],
            brand=row.get('brand'),
            category_id=row.get('category_id'),
            category_name=row.get('category_name'),
            supplier_id=row.get('supplier_id'),
            supplier_name=row.get('supplier_name'),
            description=row.get('description'),
            features=row.get('features') or [],
            specs=row.get('specs') or {},
            rating=row.get('rating') or 0,
            num_reviews=row.get('num_reviews') or 0,
            price=row['price'],
            original_price=row.get('original_price'),
            count_in_stock=row.get('count_in_stock') or 0,
            featured=row.get('featured', False),
            deal=deal,
            is_deleted=row.get('is_deleted', False),
            created_at=row['created_at'],
            updated_at=row.get('updated_at')
        )

    def _map_row(self, row: dict) -> Product:
        return self._map_row_to_product(row)

    @staticmethod
    def _build_filters(filters: ProductFilters) -> Tuple[List[str], list]:
        conditions = ["p.is_deleted = FALSE"]
        params: list = []

        if filters.keyword and filters.keyword.strip():
            keyword = filters.keyword.strip()
            window = price_window(keyword)
            if window:
                conditions.append("(p.name ILIKE %s OR p.price BETWEEN %s AND %s)")
                params.extend([f"%{keyword}%", window[0], window[1]])
            else:
                conditions.append("p.name ILIKE %s")
                params.append(f"%{keyword}%")

        if filters.category_id is not None:
            conditions.append("p.category_id = %s")
            params.append(filters.category_id)

        if filters.brand:
            conditions.append("p.brand = %s")
            params.append(filters.brand)

        if filters.min_price is not None:
            conditions.append("p.price >= %s")
            params.append(filters.min_price)

        if filters.max_price is not None:
            conditions.append("p.price <= %s")
            params.append(filters.max_price)

        if filters.in_stock is True:
            conditions.append("p.count_in_stock > 0")
        elif filters.in_stock is False:
            conditions.append("p.count_in_stock = 0")

        if filters.featured is not None:
            conditions.append("p.featured = %s")
            params.append(filters.featured)

        return conditions, params

    def find_all(
        self,
        filters: Optional[ProductFilters] = None,
        limit: int = 9,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find live products with filters

        Args:
            filters: keyword / category / brand / price range / stock / featured
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            (products, total matching)
        """
        conditions, params = self._build_filters(filters or ProductFilters())
        return self._paginate(conditions, params, limit, offset)

    def find_top_rated(self, limit: int = 3) -> List[Product]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {self.select_sql}
                WHERE p.is_deleted = FALSE
                ORDER BY p.rating DESC, p.num_reviews DESC
                LIMIT %s
            """, (limit,))
            return [self._map_row_to_product(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def get_stats(self) -> Dict[str, Any]:
        """
        Storefront totals for the public overview

        Returns:
            total_products, in_stock_products, total_orders, total_revenue, total_customers
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(*) AS total_products,
                    COUNT(*) FILTER (WHERE count_in_stock > 0) AS in_stock_products
                FROM products
                WHERE is_deleted = FALSE
            """)
            product_stats = cursor.fetchone()

            cursor.execute("""
                SELECT
                    COUNT(*) AS total_orders,
                    COALESCE(SUM(total_price), 0) AS total_revenue
                FROM orders
                WHERE is_deleted = FALSE
            """)
            order_stats = cursor.fetchone()

            cursor.execute("""
                SELECT COUNT(*) AS total_customers
                FROM users
                WHERE role = 'user' AND is_deleted = FALSE
            """)
            customer_stats = cursor.fetchone()

            return {
                "total_products": product_stats['total_products'],
                "in_stock_products": product_stats['in_stock_products'],
                "total_orders": order_stats['total_orders'],
                "total_revenue": float(order_stats['total_revenue']),
                "total_customers": customer_stats['total_customers']
            }

        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def _to_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Turn payload fields into column values (JSONB wrapping, deal split)"""
        columns = {}
        for key, value in fields.items():
            if key == "deal":
                columns["deal_discount"] = value["discount"] if value else None
                columns["deal_end_time"] = value.get("end_time") if value else None
            elif key in _JSON_COLUMNS:
                columns[key] = Json(value)
            else:
                columns[key] = value
        return columns

    def create(self, data: ProductCreate, image: str, user_id: Optional[int]) -> Product:
        """Insert a product and return it with category and supplier names"""
        columns = self._to_columns(data.model_dump())
        columns["name"] = data.name.strip()
        columns["image"] = image
        columns["user_id"] = user_id

        names = ", ".join(columns)
        placeholders = ", ".join(["%s"] * len(columns))

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"INSERT INTO products ({names}) VALUES ({placeholders}) RETURNING id",
                list(columns.values())
            )
            product_id = cursor.fetchone()['id']
            conn.commit()

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(product_id)

    def update(self, product_id: int, fields: Dict[str, Any]) -> Optional[Product]:
        """
        Partial update

        Args:
            fields: ProductUpdate.model_dump(exclude_unset=True) plus an
                optional new "image"
        """
        return self._update_fields(product_id, self._to_columns(fields))
