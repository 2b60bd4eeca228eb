"""Data persistence for Green Pantry.

This module provides data persistence with support for JSON (default) or SQLite backends.
Use create_data_store() to get the appropriate backend based on configuration.
"""

import json
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Protocol
from uuid import UUID

from .models import GreenPointsEvent, InventoryItem, SavingsEvent, WasteEvent


class BackendType(str, Enum):
    """Data storage backend types."""

    JSON = "json"
    SQLITE = "sqlite"


class ItemNotFoundError(Exception):
    """Raised when an inventory item is not found."""

    def __init__(self, item_id: UUID | str):
        self.item_id = item_id
        super().__init__(f"Inventory item not found: {item_id}")


class DuplicateClaimError(Exception):
    """Raised when a once-per-week savings or points claim was already recorded."""

    def __init__(self, claim_key: tuple[str, str, str]):
        self.claim_key = claim_key
        user_id, week_id, event_type = claim_key
        super().__init__(
            f"{event_type} already claimed for {week_id}"
            + (f" by {user_id}" if user_id else "")
        )


class DataStoreProtocol(Protocol):
    """Protocol defining the data store interface."""

    def load_inventory(self) -> list[InventoryItem]: ...
    def save_inventory(self, items: list[InventoryItem]) -> None: ...
    def add_inventory_item(self, item: InventoryItem) -> UUID: ...
    def get_inventory_item(self, item_id: UUID) -> InventoryItem | None: ...
    def update_inventory_item(self, item: InventoryItem) -> None: ...
    def set_inventory_quantity(self, item_id: UUID, quantity: float) -> None: ...
    def load_waste_events(self) -> list[WasteEvent]: ...
    def add_waste_event(self, event: WasteEvent) -> UUID: ...
    def load_savings_events(self) -> list[SavingsEvent]: ...
    def append_savings_event(self, event: SavingsEvent) -> UUID: ...
    def has_claim(self, claim_key: tuple[str, str, str]) -> bool: ...
    def load_points_events(self) -> list[GreenPointsEvent]: ...
    def append_points_event(self, event: GreenPointsEvent) -> UUID: ...
    def has_points_claim(self, claim_key: tuple[str, str, str]) -> bool: ...


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for our data types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class DataStore:
    """Manages JSON file persistence for pantry data."""

    def __init__(self, data_dir: Path | None = None):
        """Initialize data store.

        Args:
            data_dir: Directory for data files. Defaults to ./data
        """
        self.data_dir = data_dir or Path.cwd() / "data"
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _inventory_path(self) -> Path:
        """Path to inventory file."""
        return self.data_dir / "inventory.json"

    def _waste_events_path(self) -> Path:
        """Path to waste event file."""
        return self.data_dir / "waste_events.json"

    def _savings_events_path(self) -> Path:
        """Path to savings event file."""
        return self.data_dir / "savings_events.json"

    def _points_events_path(self) -> Path:
        """Path to Green Points event file."""
        return self.data_dir / "green_points.json"

    def _read(self, path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            return []
        with open(path) as f:
            return json.load(f)

    def _write(self, path: Path, records: list[dict[str, Any]]) -> None:
        with open(path, "w") as f:
            json.dump(records, f, cls=JSONEncoder, indent=2)

    # --- Inventory Operations ---

    def load_inventory(self) -> list[InventoryItem]:
        """Load inventory items, live and archived.

        Returns:
            List of InventoryItem
        """
        return [InventoryItem.model_validate(item) for item in self._read(self._inventory_path())]

    def save_inventory(self, items: list[InventoryItem]) -> None:
        """Save inventory items.

        Args:
            items: List of InventoryItem to save
        """
        self._write(self._inventory_path(), [i.model_dump(mode="json") for i in items])

    def add_inventory_item(self, item: InventoryItem) -> UUID:
        """Add an inventory item.

        Returns:
            Item ID
        """
        items = self.load_inventory()
        items.append(item)
        self.save_inventory(items)
        return item.id

    def get_inventory_item(self, item_id: UUID) -> InventoryItem | None:
        for item in self.load_inventory():
            if item.id == item_id:
                return item
        return None

    def update_inventory_item(self, item: InventoryItem) -> None:
        """Replace a stored item with the same ID.

        Raises:
            ItemNotFoundError: If no stored item has this ID
        """
        items = self.load_inventory()
        for i, existing in enumerate(items):
            if existing.id == item.id:
                items[i] = item
                self.save_inventory(items)
                return
        raise ItemNotFoundError(item.id)

    def set_inventory_quantity(self, item_id: UUID, quantity: float) -> None:
        """Set the quantity of a stored item.

        Raises:
            ItemNotFoundError: If no stored item has this ID
        """
        items = self.load_inventory()
        for item in items:
            if item.id == item_id:
                item.quantity = quantity
                self.save_inventory(items)
                return
        raise ItemNotFoundError(item_id)

    # --- Waste Event Operations ---

    def load_waste_events(self) -> list[WasteEvent]:
        """Load waste events.

        Returns:
            List of WasteEvent
        """
        return [WasteEvent.model_validate(e) for e in self._read(self._waste_events_path())]

    def add_waste_event(self, event: WasteEvent) -> UUID:
        """Append a waste event.

        Returns:
            Event ID
        """
        records = self._read(self._waste_events_path())
        records.append(event.model_dump(mode="json"))
        self._write(self._waste_events_path(), records)
        return event.id

    # --- Savings Event Operations ---

    def load_savings_events(self) -> list[SavingsEvent]:
        """Load savings events.

        Returns:
            List of SavingsEvent
        """
        return [SavingsEvent.model_validate(e) for e in self._read(self._savings_events_path())]

    def has_claim(self, claim_key: tuple[str, str, str]) -> bool:
        """Whether an event with this (user, week, type) key was recorded."""
        return any(e.claim_key == claim_key for e in self.load_savings_events())

    def append_savings_event(self, event: SavingsEvent) -> UUID:
        """Append a savings event.

        Returns:
            Event ID

        Raises:
            DuplicateClaimError: If the event's claim key is already recorded
        """
        key = event.claim_key
        if key is not None and self.has_claim(key):
            raise DuplicateClaimError(key)

        records = self._read(self._savings_events_path())
        records.append(event.model_dump(mode="json"))
        self._write(self._savings_events_path(), records)
        return event.id

    # --- Green Points Operations ---

    def load_points_events(self) -> list[GreenPointsEvent]:
        """Load Green Points events.

        Returns:
            List of GreenPointsEvent
        """
        return [
            GreenPointsEvent.model_validate(e) for e in self._read(self._points_events_path())
        ]

    def has_points_claim(self, claim_key: tuple[str, str, str]) -> bool:
        """Whether a points event with this (user, week, type) key was recorded."""
        return any(e.claim_key == claim_key for e in self.load_points_events())

    def append_points_event(self, event: GreenPointsEvent) -> UUID:
        """Append a Green Points event.

        Returns:
            Event ID

        Raises:
            DuplicateClaimError: If the event's claim key is already recorded
        """
        key = event.claim_key
        if key is not None and self.has_points_claim(key):
            raise DuplicateClaimError(key)

        records = self._read(self._points_events_path())
        records.append(event.model_dump(mode="json"))
        self._write(self._points_events_path(), records)
        return event.id


def create_data_store(
    backend: BackendType = BackendType.JSON,
    data_dir: Path | None = None,
    db_path: Path | None = None,
) -> DataStoreProtocol:
    """Create a data store with the specified backend.

    Args:
        backend: Which backend to use (json or sqlite)
        data_dir: Directory for data files (used by JSON backend, also used
                  as base path for SQLite if db_path not specified)
        db_path: Path to SQLite database file (only used by SQLite backend)

    Returns:
        A DataStore or SQLiteStore instance

    Example:
        # Use JSON backend (default)
        store = create_data_store()

        # Use SQLite with custom path
        store = create_data_store(
            BackendType.SQLITE,
            db_path=Path("./my_data/pantry.db")
        )
    """
    if backend == BackendType.SQLITE:
        from .sqlite_store import SQLiteStore

        if db_path is None and data_dir is not None:
            db_path = data_dir / "pantry.db"

        return SQLiteStore(db_path=db_path)
    else:
        return DataStore(data_dir=data_dir)
