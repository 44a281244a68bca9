"""
Address Repository - Data Access Layer for customer addresses

A customer has at most one live default address. Whenever a write leaves an
address live and default, the other defaults of that customer are cleared in
the same transaction (the partial unique index uq_addresses_one_default
backs this up).

Author: Online Store Team
Date: 2025-02-20
"""
from typing import List, Optional

from storefront.domain.customer import Address, AddressCreate
from storefront.core.database import get_db_connection_dict
from storefront.repositories.base import SoftDeleteRepository

_RETURNING = """
    id, customer_id, full_name, phone, province_id, province_name,
    district_id, district_name, ward_code, ward_name, street, zip_code,
    address_type, is_default, is_deleted, created_at, updated_at
"""

_CLEAR_OTHER_DEFAULTS = """
    UPDATE addresses
    SET is_default = FALSE
    WHERE customer_id = %s AND id <> %s AND is_default = TRUE AND is_deleted = FALSE
"""


class AddressRepository(SoftDeleteRepository[Address]):
    """Repository for customer addresses"""

    model = Address
    table = "addresses"
    alias = "a"
    select_sql = f"SELECT {_RETURNING} FROM addresses a"

    def find_by_customer(self, customer_id: int) -> List[Address]:
        """Live addresses of a customer, default first, then newest first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                {self.select_sql}
                WHERE a.customer_id = %s AND a.is_deleted = FALSE
                ORDER BY a.is_default DESC, a.created_at DESC
            """, (customer_id,))
            return [self._map_row(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def create(
        self,
        data: AddressCreate,
        province_name: str,
        district_name: str,
        ward_name: str
    ) -> Address:
        """
        Insert an address; if it is the default, demote the customer's
        other defaults in the same transaction.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if data.is_default:
                # id 0 never exists, so every other default is cleared
                cursor.execute(_CLEAR_OTHER_DEFAULTS, (data.customer_id, 0))

            cursor.execute(f"""
                INSERT INTO addresses (
                    customer_id, full_name, phone, province_id, province_name,
                    district_id, district_name, ward_code, ward_name, street,
                    zip_code, address_type, is_default
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {_RETURNING}
            """, (
                data.customer_id, data.full_name.strip(), data.phone,
                data.province_id, province_name,
                data.district_id, district_name,
                data.ward_code, ward_name,
                data.street.strip(), data.zip_code, data.address_type, data.is_default
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, address: Address, fields: dict) -> Optional[Address]:
        """
        Apply column changes to a live address.

        Args:
            address: Current state (provides customer_id)
            fields: Column -> value; location names must already be resolved
        """
        if not fields:
            return address

        assignments = ", ".join(f"{column} = %s" for column in fields)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if fields.get("is_default"):
                cursor.execute(_CLEAR_OTHER_DEFAULTS, (address.customer_id, address.id))

            cursor.execute(f"""
                UPDATE addresses
                SET {assignments}
                WHERE id = %s AND is_deleted = FALSE
                RETURNING {_RETURNING}
            """, list(fields.values()) + [address.id])
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def set_default(self, address: Address) -> Optional[Address]:
        return self.update(address, {"is_default": True})

    def restore(self, entity_id: int) -> bool:
        """Restore a deleted address; a restored default takes over from the current one"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT customer_id, is_default
                FROM addresses
                WHERE id = %s AND is_deleted = TRUE
            """, (entity_id,))
            row = cursor.fetchone()
            if not row:
                return False

            if row['is_default']:
                cursor.execute(_CLEAR_OTHER_DEFAULTS, (row['customer_id'], entity_id))

            cursor.execute("UPDATE addresses SET is_deleted = FALSE WHERE id = %s", (entity_id,))
            conn.commit()
            return True

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
