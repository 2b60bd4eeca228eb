"""SQLite-based data persistence for Green Pantry.

This module provides SQLite database storage as an alternative to JSON files.
It implements the same interface as DataStore for seamless switching.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from uuid import UUID

from .data_store import DuplicateClaimError, ItemNotFoundError
from .models import (
    FoodCategory,
    GreenPointsEvent,
    GreenPointsType,
    InventoryItem,
    LifecycleState,
    SavingsEvent,
    SavingsType,
    StorageLocation,
    WastedFood,
    WasteEvent,
)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class SQLiteStore:
    """Manages SQLite database persistence for pantry data."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | None = None):
        """Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file. Defaults to ./data/pantry.db
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "pantry.db"
        self.db_path = db_path
        self._ensure_directories()
        self._init_database()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database schema if not exists."""
        with self._get_connection() as conn:
            conn.executescript("""
                -- Schema version tracking
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                );

                -- Household inventory, live and archived
                CREATE TABLE IF NOT EXISTS inventory_items (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    quantity REAL NOT NULL DEFAULT 1.0,
                    unit TEXT NOT NULL DEFAULT 'pc',
                    acquired_date TEXT NOT NULL,
                    shelf_life_by_storage TEXT NOT NULL DEFAULT '{}',
                    expiration_date TEXT,
                    estimated_cost REAL,
                    carbon_footprint REAL NOT NULL DEFAULT 0.0,
                    location TEXT NOT NULL DEFAULT 'pantry',
                    state TEXT NOT NULL DEFAULT 'live',
                    used_date TEXT,
                    category TEXT
                );

                -- Waste sessions
                CREATE TABLE IF NOT EXISTS waste_events (
                    id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    reason TEXT,
                    total_peso_value REAL NOT NULL,
                    total_carbon_footprint REAL NOT NULL
                );

                -- Foods wasted in a session
                CREATE TABLE IF NOT EXISTS wasted_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_id TEXT NOT NULL REFERENCES waste_events(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    peso_value REAL NOT NULL,
                    carbon_footprint REAL NOT NULL DEFAULT 0.0,
                    category TEXT,
                    estimated_amount TEXT
                );

                -- Savings events; a week can be claimed once per user and type
                CREATE TABLE IF NOT EXISTS savings_events (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL DEFAULT '',
                    timestamp TEXT NOT NULL,
                    type TEXT NOT NULL,
                    amount REAL NOT NULL CHECK (amount >= 0),
                    description TEXT NOT NULL,
                    calculation_method TEXT NOT NULL,
                    related_item_id TEXT,
                    week_id TEXT,
                    transferred INTEGER NOT NULL DEFAULT 0,
                    UNIQUE (user_id, week_id, type)
                );

                -- Green Points; zero-waste weeks are awarded once per user
                CREATE TABLE IF NOT EXISTS green_points_events (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL DEFAULT '',
                    timestamp TEXT NOT NULL,
                    type TEXT NOT NULL,
                    points INTEGER NOT NULL CHECK (points >= 0),
                    description TEXT NOT NULL,
                    related_item_id TEXT,
                    related_recipe_id TEXT,
                    week_id TEXT,
                    UNIQUE (user_id, week_id, type)
                );

                CREATE INDEX IF NOT EXISTS idx_waste_events_timestamp
                    ON waste_events(timestamp);
                CREATE INDEX IF NOT EXISTS idx_savings_events_timestamp
                    ON savings_events(timestamp);
                CREATE INDEX IF NOT EXISTS idx_green_points_events_timestamp
                    ON green_points_events(timestamp);
            """)

            cursor = conn.execute("SELECT version FROM schema_version")
            if cursor.fetchone() is None:
                conn.execute(
                    "INSERT INTO schema_version (version) VALUES (?)", (self.SCHEMA_VERSION,)
                )

    # --- Inventory Operations ---

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> InventoryItem:
        return InventoryItem(
            id=UUID(row["id"]),
            name=row["name"],
            quantity=row["quantity"],
            unit=row["unit"],
            acquired_date=date.fromisoformat(row["acquired_date"]),
            shelf_life_by_storage=json.loads(row["shelf_life_by_storage"]),
            expiration_date=date.fromisoformat(row["expiration_date"])
            if row["expiration_date"]
            else None,
            estimated_cost=row["estimated_cost"],
            carbon_footprint=row["carbon_footprint"],
            location=StorageLocation(row["location"]),
            state=LifecycleState(row["state"]),
            used_date=date.fromisoformat(row["used_date"]) if row["used_date"] else None,
            category=FoodCategory(row["category"]) if row["category"] else None,
        )

    @staticmethod
    def _item_params(item: InventoryItem) -> tuple:
        return (
            item.name,
            item.quantity,
            item.unit,
            item.acquired_date.isoformat(),
            json.dumps({loc.value: days for loc, days in item.shelf_life_by_storage.items()}),
            _iso(item.expiration_date),
            item.estimated_cost,
            item.carbon_footprint,
            item.location.value,
            item.state.value,
            _iso(item.used_date),
            item.category.value if item.category else None,
            str(item.id),
        )

    def load_inventory(self) -> list[InventoryItem]:
        """Load inventory items in insertion order.

        Returns:
            List of InventoryItem
        """
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM inventory_items ORDER BY rowid").fetchall()
            return [self._row_to_item(row) for row in rows]

    def save_inventory(self, items: list[InventoryItem]) -> None:
        """Replace all inventory items.

        Args:
            items: List of InventoryItem to save
        """
        with self._get_connection() as conn:
            conn.execute("DELETE FROM inventory_items")
            for item in items:
                self._insert_item(conn, item)

    def _insert_item(self, conn: sqlite3.Connection, item: InventoryItem) -> None:
        conn.execute(
            """
            INSERT INTO inventory_items
            (name, quantity, unit, acquired_date, shelf_life_by_storage, expiration_date,
             estimated_cost, carbon_footprint, location, state, used_date, category, id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            self._item_params(item),
        )

    def add_inventory_item(self, item: InventoryItem) -> UUID:
        """Add an inventory item.

        Returns:
            Item ID
        """
        with self._get_connection() as conn:
            self._insert_item(conn, item)
        return item.id

    def get_inventory_item(self, item_id: UUID) -> InventoryItem | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM inventory_items WHERE id = ?", (str(item_id),)
            ).fetchone()
            return self._row_to_item(row) if row else None

    def update_inventory_item(self, item: InventoryItem) -> None:
        """Replace a stored item with the same ID.

        Raises:
            ItemNotFoundError: If no stored item has this ID
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE inventory_items SET
                    name = ?, quantity = ?, unit = ?, acquired_date = ?,
                    shelf_life_by_storage = ?, expiration_date = ?, estimated_cost = ?,
                    carbon_footprint = ?, location = ?, state = ?, used_date = ?, category = ?
                WHERE id = ?
                """,
                self._item_params(item),
            )
            if cursor.rowcount == 0:
                raise ItemNotFoundError(item.id)

    def set_inventory_quantity(self, item_id: UUID, quantity: float) -> None:
        """Set the quantity of a stored item.

        Raises:
            ItemNotFoundError: If no stored item has this ID
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE inventory_items SET quantity = ? WHERE id = ?",
                (quantity, str(item_id)),
            )
            if cursor.rowcount == 0:
                raise ItemNotFoundError(item_id)

    # --- Waste Event Operations ---

    def load_waste_events(self) -> list[WasteEvent]:
        """Load waste events, oldest first.

        Returns:
            List of WasteEvent
        """
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM waste_events ORDER BY timestamp").fetchall()
            events = []
            for row in rows:
                item_rows = conn.execute(
                    "SELECT * FROM wasted_items WHERE event_id = ? ORDER BY id",
                    (row["id"],),
                ).fetchall()
                events.append(
                    WasteEvent(
                        id=UUID(row["id"]),
                        timestamp=datetime.fromisoformat(row["timestamp"]),
                        reason=row["reason"],
                        total_peso_value=row["total_peso_value"],
                        total_carbon_footprint=row["total_carbon_footprint"],
                        items=[
                            WastedFood(
                                name=item["name"],
                                peso_value=item["peso_value"],
                                carbon_footprint=item["carbon_footprint"],
                                category=FoodCategory(item["category"])
                                if item["category"]
                                else None,
                                estimated_amount=item["estimated_amount"],
                            )
                            for item in item_rows
                        ],
                    )
                )
            return events

    def add_waste_event(self, event: WasteEvent) -> UUID:
        """Append a waste event with its items.

        Returns:
            Event ID
        """
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO waste_events
                (id, timestamp, reason, total_peso_value, total_carbon_footprint)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(event.id),
                    event.timestamp.isoformat(),
                    event.reason,
                    event.total_peso_value,
                    event.total_carbon_footprint,
                ),
            )
            for item in event.items:
                conn.execute(
                    """
                    INSERT INTO wasted_items
                    (event_id, name, peso_value, carbon_footprint, category, estimated_amount)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(event.id),
                        item.name,
                        item.peso_value,
                        item.carbon_footprint,
                        item.category.value if item.category else None,
                        item.estimated_amount,
                    ),
                )
        return event.id

    # --- Savings Event Operations ---

    def load_savings_events(self) -> list[SavingsEvent]:
        """Load savings events, oldest first.

        Returns:
            List of SavingsEvent
        """
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM savings_events ORDER BY timestamp").fetchall()
            return [
                SavingsEvent(
                    id=UUID(row["id"]),
                    user_id=row["user_id"] or None,
                    timestamp=datetime.fromisoformat(row["timestamp"]),
                    type=SavingsType(row["type"]),
                    amount=row["amount"],
                    description=row["description"],
                    calculation_method=row["calculation_method"],
                    related_item_id=UUID(row["related_item_id"])
                    if row["related_item_id"]
                    else None,
                    week_id=row["week_id"],
                    transferred=bool(row["transferred"]),
                )
                for row in rows
            ]

    def has_claim(self, claim_key: tuple[str, str, str]) -> bool:
        """Whether an event with this (user, week, type) key was recorded."""
        user_id, week_id, event_type = claim_key
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM savings_events WHERE user_id = ? AND week_id = ? AND type = ?",
                (user_id, week_id, event_type),
            ).fetchone()
            return row is not None

    def append_savings_event(self, event: SavingsEvent) -> UUID:
        """Append a savings event.

        Returns:
            Event ID

        Raises:
            DuplicateClaimError: If the (user, week, type) key is already recorded
        """
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO savings_events
                    (id, user_id, timestamp, type, amount, description, calculation_method,
                     related_item_id, week_id, transferred)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(event.id),
                        event.user_id or "",
                        event.timestamp.isoformat(),
                        event.type.value,
                        event.amount,
                        event.description,
                        event.calculation_method,
                        str(event.related_item_id) if event.related_item_id else None,
                        event.week_id,
                        int(event.transferred),
                    ),
                )
        except sqlite3.IntegrityError as e:
            if event.claim_key is not None:
                raise DuplicateClaimError(event.claim_key) from e
            raise
        return event.id

    # --- Green Points Operations ---

    def load_points_events(self) -> list[GreenPointsEvent]:
        """Load Green Points events, oldest first.

        Returns:
            List of GreenPointsEvent
        """
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM green_points_events ORDER BY timestamp").fetchall()
            return [
                GreenPointsEvent(
                    id=UUID(row["id"]),
                    user_id=row["user_id"] or None,
                    timestamp=datetime.fromisoformat(row["timestamp"]),
                    type=GreenPointsType(row["type"]),
                    points=row["points"],
                    description=row["description"],
                    related_item_id=UUID(row["related_item_id"])
                    if row["related_item_id"]
                    else None,
                    related_recipe_id=UUID(row["related_recipe_id"])
                    if row["related_recipe_id"]
                    else None,
                    week_id=row["week_id"],
                )
                for row in rows
            ]

    def has_points_claim(self, claim_key: tuple[str, str, str]) -> bool:
        """Whether a points event with this (user, week, type) key was recorded."""
        user_id, week_id, event_type = claim_key
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM green_points_events WHERE user_id = ? AND week_id = ? AND type = ?",
                (user_id, week_id, event_type),
            ).fetchone()
            return row is not None

    def append_points_event(self, event: GreenPointsEvent) -> UUID:
        """Append a Green Points event.

        Returns:
            Event ID

        Raises:
            DuplicateClaimError: If the (user, week, type) key is already recorded
        """
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO green_points_events
                    (id, user_id, timestamp, type, points, description,
                     related_item_id, related_recipe_id, week_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(event.id),
                        event.user_id or "",
                        event.timestamp.isoformat(),
                        event.type.value,
                        event.points,
                        event.description,
                        str(event.related_item_id) if event.related_item_id else None,
                        str(event.related_recipe_id) if event.related_recipe_id else None,
                        event.week_id,
                    ),
                )
        except sqlite3.IntegrityError as e:
            if event.claim_key is not None:
                raise DuplicateClaimError(event.claim_key) from e
            raise
        return event.id
