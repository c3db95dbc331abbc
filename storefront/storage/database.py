import logging
from pathlib import Path

import aiosqlite

from storefront.models.enums import OrderStatus, UserRole
from storefront.models.order import Order, OrderCreate, OrderUpdate
from storefront.models.product import Product, ProductCreate, ProductUpdate
from storefront.models.user import User, UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Async SQLite database manager with typed repository methods.

    All SQL in the application lives in this class. Other layers
    call typed methods that accept and return Pydantic models.
    Lookups return ``None`` when a row does not exist; deciding what
    that means for the caller is left to the route layer.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = str(db_path)
        self.connection: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open connection, enable WAL mode and foreign keys, execute schema."""
        self.connection = await aiosqlite.connect(self.db_path)
        self.connection.row_factory = aiosqlite.Row
        schema_path = Path(__file__).parent / "schema.sql"
        schema_sql = schema_path.read_text()
        await self.connection.executescript(schema_sql)
        await self.connection.execute("PRAGMA journal_mode=WAL")
        await self.connection.execute("PRAGMA foreign_keys=ON")
        await self.connection.commit()
        logger.info(f"Database initialized at {self.db_path}")

    async def close(self) -> None:
        """Close the database connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None

    async def __aenter__(self) -> "DatabaseManager":
        await self.initialize()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        await self.close()

    async def execute(self, sql: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Execute a single SQL statement and commit."""
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        await self.connection.commit()
        return cursor

    async def fetch_one(self, sql: str, params: tuple = ()) -> dict | None:
        """Execute a query and return a single row as a dict, or None."""
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        row = await cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    async def fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        """Execute a query and return all rows as list of dicts."""
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]

    # ── Products ──────────────────────────────────────────────────────────

    @staticmethod
    def _row_to_product(row: dict) -> Product:
        return Product(
            id=row["id"],
            name=row["name"],
            price=row["price"],
            description=row["description"],
            in_stock=bool(row["in_stock"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def create_product(self, data: ProductCreate) -> Product:
        cursor = await self.execute(
            """INSERT INTO products (name, price, description, in_stock)
               VALUES (?, ?, ?, ?)""",
            (data.name, data.price, data.description, data.in_stock),
        )
        product = await self.get_product(cursor.lastrowid)  # type: ignore[arg-type]
        assert product is not None
        return product

    async def list_products(self) -> list[Product]:
        rows = await self.fetch_all("SELECT * FROM products ORDER BY id")
        return [self._row_to_product(r) for r in rows]

    async def get_product(self, product_id: int) -> Product | None:
        row = await self.fetch_one("SELECT * FROM products WHERE id = ?", (product_id,))
        if not row:
            return None
        return self._row_to_product(row)

    async def replace_product(self, product_id: int, data: ProductCreate) -> Product | None:
        cursor = await self.execute(
            """UPDATE products
               SET name = ?, price = ?, description = ?, in_stock = ?,
                   updated_at = datetime('now')
               WHERE id = ?""",
            (data.name, data.price, data.description, data.in_stock, product_id),
        )
        if cursor.rowcount == 0:
            return None
        return await self.get_product(product_id)

    async def update_product(self, product_id: int, data: ProductUpdate) -> Product | None:
        # description is the only nullable column
        changes = {
            column: value
            for column, value in data.model_dump(exclude_unset=True).items()
            if value is not None or column == "description"
        }
        if not changes:
            return await self.get_product(product_id)
        assignments = ", ".join(f"{column} = ?" for column in changes)
        cursor = await self.execute(
            f"UPDATE products SET {assignments}, updated_at = datetime('now') WHERE id = ?",
            (*changes.values(), product_id),
        )
        if cursor.rowcount == 0:
            return None
        return await self.get_product(product_id)

    async def delete_product(self, product_id: int) -> bool:
        cursor = await self.execute("DELETE FROM products WHERE id = ?", (product_id,))
        return cursor.rowcount > 0

    async def missing_product_ids(self, product_ids: list[int]) -> list[int]:
        """Return the ids from *product_ids* that have no product row."""
        if not product_ids:
            return []
        placeholders = ", ".join("?" for _ in product_ids)
        rows = await self.fetch_all(
            f"SELECT id FROM products WHERE id IN ({placeholders})",
            tuple(product_ids),
        )
        found = {r["id"] for r in rows}
        return [pid for pid in dict.fromkeys(product_ids) if pid not in found]

    # ── Orders ────────────────────────────────────────────────────────────

    async def _order_items(self, order_id: int) -> list[int]:
        rows = await self.fetch_all(
            "SELECT product_id FROM order_items WHERE order_id = ? ORDER BY position",
            (order_id,),
        )
        return [r["product_id"] for r in rows]

    async def _set_order_items(self, order_id: int, product_ids: list[int]) -> None:
        assert self.connection is not None
        await self.connection.execute("DELETE FROM order_items WHERE order_id = ?", (order_id,))
        await self.connection.executemany(
            "INSERT INTO order_items (order_id, product_id, position) VALUES (?, ?, ?)",
            [(order_id, pid, pos) for pos, pid in enumerate(product_ids)],
        )
        await self.connection.commit()

    async def _row_to_order(self, row: dict) -> Order:
        return Order(
            id=row["id"],
            product_ids=await self._order_items(row["id"]),
            total=row["total"],
            status=OrderStatus(row["status"]),
            created_at=row["created_at"],
        )

    async def create_order(self, data: OrderCreate) -> Order:
        cursor = await self.execute(
            "INSERT INTO orders (total, status) VALUES (?, ?)",
            (data.total, data.status.value),
        )
        order_id = cursor.lastrowid
        assert order_id is not None
        await self._set_order_items(order_id, data.product_ids)
        order = await self.get_order(order_id)
        assert order is not None
        return order

    async def list_orders(self) -> list[Order]:
        rows = await self.fetch_all("SELECT * FROM orders ORDER BY id")
        return [await self._row_to_order(r) for r in rows]

    async def get_order(self, order_id: int) -> Order | None:
        row = await self.fetch_one("SELECT * FROM orders WHERE id = ?", (order_id,))
        if not row:
            return None
        return await self._row_to_order(row)

    async def replace_order(self, order_id: int, data: OrderCreate) -> Order | None:
        cursor = await self.execute(
            "UPDATE orders SET total = ?, status = ? WHERE id = ?",
            (data.total, data.status.value, order_id),
        )
        if cursor.rowcount == 0:
            return None
        await self._set_order_items(order_id, data.product_ids)
        return await self.get_order(order_id)

    async def update_order(self, order_id: int, data: OrderUpdate) -> Order | None:
        if await self.get_order(order_id) is None:
            return None
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        product_ids = changes.pop("product_ids", None)
        if changes:
            assignments = ", ".join(f"{column} = ?" for column in changes)
            values = [v.value if isinstance(v, OrderStatus) else v for v in changes.values()]
            await self.execute(
                f"UPDATE orders SET {assignments} WHERE id = ?",
                (*values, order_id),
            )
        if product_ids is not None:
            await self._set_order_items(order_id, product_ids)
        return await self.get_order(order_id)

    async def delete_order(self, order_id: int) -> bool:
        cursor = await self.execute("DELETE FROM orders WHERE id = ?", (order_id,))
        return cursor.rowcount > 0

    # ── Users ─────────────────────────────────────────────────────────────

    @staticmethod
    def _row_to_user(row: dict) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            role=UserRole(row["role"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def create_user(self, data: UserCreate, password_hash: str) -> User:
        cursor = await self.execute(
            "INSERT INTO users (email, password_hash, role) VALUES (?, ?, ?)",
            (data.email, password_hash, data.role.value),
        )
        user = await self.get_user(cursor.lastrowid)  # type: ignore[arg-type]
        assert user is not None
        return user

    async def list_users(self) -> list[User]:
        rows = await self.fetch_all("SELECT * FROM users ORDER BY id")
        return [self._row_to_user(r) for r in rows]

    async def get_user(self, user_id: int) -> User | None:
        row = await self.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        if not row:
            return None
        return self._row_to_user(row)

    async def get_user_by_email(self, email: str) -> User | None:
        row = await self.fetch_one("SELECT * FROM users WHERE email = ?", (email.lower(),))
        if not row:
            return None
        return self._row_to_user(row)

    async def get_password_hash(self, user_id: int) -> str | None:
        row = await self.fetch_one("SELECT password_hash FROM users WHERE id = ?", (user_id,))
        return row["password_hash"] if row else None

    async def replace_user(self, user_id: int, data: UserCreate, password_hash: str) -> User | None:
        cursor = await self.execute(
            """UPDATE users
               SET email = ?, password_hash = ?, role = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (data.email, password_hash, data.role.value, user_id),
        )
        if cursor.rowcount == 0:
            return None
        return await self.get_user(user_id)

    async def update_user(
        self, user_id: int, data: UserUpdate, password_hash: str | None = None
    ) -> User | None:
        """Apply the sent fields of *data*. A new password arrives pre-hashed."""
        changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"password"})
        if "role" in changes:
            changes["role"] = UserRole(changes["role"]).value
        if password_hash is not None:
            changes["password_hash"] = password_hash
        if not changes:
            return await self.get_user(user_id)
        assignments = ", ".join(f"{column} = ?" for column in changes)
        cursor = await self.execute(
            f"UPDATE users SET {assignments}, updated_at = datetime('now') WHERE id = ?",
            (*changes.values(), user_id),
        )
        if cursor.rowcount == 0:
            return None
        return await self.get_user(user_id)

    async def delete_user(self, user_id: int) -> bool:
        cursor = await self.execute("DELETE FROM users WHERE id = ?", (user_id,))
        return cursor.rowcount > 0
