"""CLI entry point for Green Pantry."""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from .analytics import Analytics
from .config import ConfigManager
from .data_store import (
    BackendType,
    DataStoreProtocol,
    DuplicateClaimError,
    ItemNotFoundError,
    create_data_store,
)
from .inventory_manager import InventoryManager, LifecycleError
from .models import GreenPointsType, Recipe, SavingsType, StorageLocation, WastedFood
from .output_formatter import OutputFormatter
from .savings_manager import SavingsManager

app = typer.Typer(
    name="green-pantry",
    help="Household food waste tracking with savings and a Green Score",
    no_args_is_help=True,
)

# Global state for formatter and config (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
data_store: DataStoreProtocol | None = None
inventory_manager: InventoryManager | None = None
savings_manager: SavingsManager | None = None


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def get_data_store() -> DataStoreProtocol:
    """Get or create data store instance using config values."""
    global data_store
    if data_store is None:
        cfg = get_config()
        backend = BackendType(cfg.data.backend)
        data_store = create_data_store(backend=backend, data_dir=cfg.data.storage_dir)
    return data_store


def get_inventory_manager() -> InventoryManager:
    """Get or create InventoryManager instance."""
    global inventory_manager
    if inventory_manager is None:
        inventory_manager = InventoryManager(get_data_store(), user_id=get_config().user.id)
    return inventory_manager


def get_savings_manager() -> SavingsManager:
    """Get or create SavingsManager instance."""
    global savings_manager
    if savings_manager is None:
        savings_manager = SavingsManager(get_data_store(), user_id=get_config().user.id)
    return savings_manager


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_json_payload(data: str | None, file: Path | None) -> dict:
    if not data and not file:
        formatter.error("Must provide either --data or --file", error_code="MISSING_INPUT")
        raise typer.Exit(code=1)
    if data:
        return json.loads(data)
    with open(file) as f:  # type: ignore[arg-type]
        return json.load(f)


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Green Pantry CLI - Use what you buy, and see what it saves."""
    global formatter, config, data_store, inventory_manager, savings_manager

    formatter = OutputFormatter(json_mode=json_output)

    # Load config early
    config = ConfigManager()
    configure_logging("DEBUG" if verbose else config.logging.level)

    # CLI --data-dir overrides config, which overrides default
    effective_data_dir = data_dir if data_dir else config.data.storage_dir
    backend = BackendType(config.data.backend)

    data_store = create_data_store(backend=backend, data_dir=effective_data_dir)
    inventory_manager = InventoryManager(data_store, user_id=config.user.id)
    savings_manager = SavingsManager(data_store, user_id=config.user.id)


# --- Pantry subcommand group ---
pantry_app = typer.Typer(help="Pantry inventory commands")
app.add_typer(pantry_app, name="pantry")


@pantry_app.command("add")
def pantry_add(
    item: Annotated[str, typer.Argument(help="Item name")],
    quantity: Annotated[float, typer.Option("--quantity", "-q", help="Quantity")] = 1.0,
    unit: Annotated[str, typer.Option("--unit", "-u", help="Unit of measurement")] = "pc",
    cost: Annotated[float | None, typer.Option("--cost", "-c", help="Estimated cost")] = None,
    location: Annotated[
        StorageLocation, typer.Option("--location", "-l", help="Storage location")
    ] = StorageLocation.PANTRY,
    shelf_life: Annotated[
        int | None,
        typer.Option("--shelf-life", help="Shelf life in days at this location"),
    ] = None,
    expiration: Annotated[
        str | None, typer.Option("--expires", help="Expiration date (YYYY-MM-DD)")
    ] = None,
    acquired: Annotated[
        str | None, typer.Option("--acquired", help="Date acquired (YYYY-MM-DD)")
    ] = None,
    co2: Annotated[float, typer.Option("--co2", help="Carbon footprint in kg CO2e")] = 0.0,
) -> None:
    """Add an item to the pantry."""
    try:
        mgr = get_inventory_manager()
        result = mgr.add_item(
            name=item,
            quantity=quantity,
            unit=unit,
            estimated_cost=cost,
            location=location,
            shelf_life_by_storage={location: shelf_life} if shelf_life is not None else None,
            expiration_date=date.fromisoformat(expiration) if expiration else None,
            acquired_date=date.fromisoformat(acquired) if acquired else None,
            carbon_footprint=co2,
        )

        output_data = {
            "success": True,
            "message": f"Added {item} to the pantry ({location.value})",
            "data": {"inventory_item": result.model_dump(mode="json")},
        }
        formatter.output(output_data, output_data["message"])
    except ValidationError as e:
        formatter.error(str(e), error_code="INVALID_ITEM")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@pantry_app.command("list")
def pantry_list(
    location: Annotated[
        StorageLocation | None, typer.Option("--location", "-l", help="Filter by location")
    ] = None,
    archived: Annotated[
        bool, typer.Option("--archived", help="Show used and wasted items instead")
    ] = False,
) -> None:
    """List pantry items."""
    try:
        mgr = get_inventory_manager()
        if archived:
            items = mgr.get_archived_items()
        else:
            items = mgr.get_live_items(location=location)

        output_data = {
            "success": True,
            "data": {
                "inventory": [
                    {
                        **i.model_dump(mode="json"),
                        "expires": i.effective_expiration_date.isoformat(),
                    }
                    for i in items
                ],
                "count": len(items),
            },
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@pantry_app.command("use")
def pantry_use(
    item_id: Annotated[str, typer.Argument(help="Inventory item ID")],
    efficiency: Annotated[
        float, typer.Option("--efficiency", "-e", help="Fraction of the item used (0-1]")
    ] = 1.0,
) -> None:
    """Mark an item as used and record avoided-expiry savings."""
    try:
        mgr = get_inventory_manager()
        item, event = mgr.use_item(item_id, usage_efficiency=efficiency)

        output_data = {
            "success": True,
            "message": f"Used {item.name}",
            "data": {
                "inventory_item": item.model_dump(mode="json"),
                "savings_event": event.model_dump(mode="json") if event else None,
            },
        }
        formatter.output(output_data, output_data["message"])
    except ItemNotFoundError as e:
        formatter.error(str(e), error_code="ITEM_NOT_FOUND")
        raise typer.Exit(code=1)
    except LifecycleError as e:
        formatter.error(str(e), error_code="ALREADY_ARCHIVED")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@pantry_app.command("waste")
def pantry_waste(
    item_id: Annotated[str, typer.Argument(help="Inventory item ID")],
    reason: Annotated[str | None, typer.Option("--reason", "-r", help="Why it was wasted")] = None,
) -> None:
    """Mark an item as wasted and log it."""
    try:
        mgr = get_inventory_manager()
        item, event = mgr.waste_item(item_id, reason=reason)

        output_data = {
            "success": True,
            "message": f"Wasted {item.name}",
            "data": {"waste_event": event.model_dump(mode="json")},
        }
        formatter.output(output_data, output_data["message"])
    except ItemNotFoundError as e:
        formatter.error(str(e), error_code="ITEM_NOT_FOUND")
        raise typer.Exit(code=1)
    except LifecycleError as e:
        formatter.error(str(e), error_code="ALREADY_ARCHIVED")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@pantry_app.command("cook")
def pantry_cook(
    data: Annotated[str | None, typer.Option("--data", "-d", help="JSON recipe data")] = None,
    file: Annotated[Path | None, typer.Option("--file", "-f", help="Path to JSON file")] = None,
) -> None:
    """Cook a recipe: deduct owned ingredients and record savings."""
    try:
        recipe = Recipe.model_validate(_load_json_payload(data, file))
        mgr = get_inventory_manager()
        result, events = mgr.cook_recipe(recipe)

        output_data = {
            "success": True,
            "message": f"Cooked {recipe.name}",
            "data": {
                "deduction": result.model_dump(mode="json"),
                "savings_events": [e.model_dump(mode="json") for e in events],
            },
        }
        formatter.output(output_data, output_data["message"])
    except json.JSONDecodeError as e:
        formatter.error(f"Invalid JSON: {e}", error_code="INVALID_JSON")
        raise typer.Exit(code=1)
    except ValidationError as e:
        formatter.error(str(e), error_code="INVALID_RECIPE")
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Waste subcommand group ---
waste_app = typer.Typer(help="Waste tracking commands")
app.add_typer(waste_app, name="waste")


@waste_app.command("log")
def waste_log(
    item: Annotated[str | None, typer.Argument(help="Item name that was wasted")] = None,
    value: Annotated[float, typer.Option("--value", help="Peso value wasted")] = 0.0,
    co2: Annotated[float, typer.Option("--co2", help="Carbon footprint in kg CO2e")] = 0.0,
    amount: Annotated[
        str | None, typer.Option("--amount", "-a", help="Estimated amount, e.g. '2 cups'")
    ] = None,
    reason: Annotated[str | None, typer.Option("--reason", "-r", help="Reason for waste")] = None,
    data: Annotated[
        str | None, typer.Option("--data", "-d", help="JSON list of wasted items")
    ] = None,
) -> None:
    """Log a waste session, either one item or a JSON list of items."""
    try:
        if data:
            items = [WastedFood.model_validate(i) for i in json.loads(data)]
        elif item:
            items = [
                WastedFood(
                    name=item,
                    peso_value=value,
                    carbon_footprint=co2,
                    estimated_amount=amount,
                )
            ]
        else:
            formatter.error("Provide an item name or --data", error_code="MISSING_INPUT")
            raise typer.Exit(code=1)

        analytics = Analytics(data_store=get_data_store())
        event = analytics.log_waste(items, reason=reason)

        output_data = {
            "success": True,
            "message": f"Logged waste: {', '.join(i.name for i in items)}",
            "data": {"waste_event": event.model_dump(mode="json")},
        }
        formatter.output(output_data, output_data["message"])
    except json.JSONDecodeError as e:
        formatter.error(f"Invalid JSON: {e}", error_code="INVALID_JSON")
        raise typer.Exit(code=1)
    except ValidationError as e:
        formatter.error(str(e), error_code="INVALID_WASTE")
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@waste_app.command("list")
def waste_list(
    reason: Annotated[str | None, typer.Option("--reason", "-r", help="Filter by reason")] = None,
    since: Annotated[
        str | None, typer.Option("--since", help="Only sessions on or after (YYYY-MM-DD)")
    ] = None,
) -> None:
    """List waste sessions."""
    try:
        events = get_data_store().load_waste_events()

        if reason:
            events = [e for e in events if (e.reason or "").lower() == reason.lower()]
        if since:
            start = datetime.combine(date.fromisoformat(since), datetime.min.time())
            events = [e for e in events if e.timestamp >= start]
        events.sort(key=lambda e: e.timestamp, reverse=True)

        output_data = {
            "success": True,
            "data": {
                "waste_log": [e.model_dump(mode="json") for e in events],
                "count": len(events),
            },
        }
        formatter.output(output_data, f"{len(events)} waste sessions")
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Savings subcommand group ---
savings_app = typer.Typer(help="Savings commands")
app.add_typer(savings_app, name="savings")


@savings_app.command("list")
def savings_list(
    event_type: Annotated[
        SavingsType | None, typer.Option("--type", "-t", help="Filter by mechanism")
    ] = None,
) -> None:
    """List recorded savings."""
    try:
        mgr = get_savings_manager()
        events = mgr.list_events(event_type=event_type)

        output_data = {
            "success": True,
            "data": {
                "savings": [e.model_dump(mode="json") for e in events],
                "total": round(sum(e.amount for e in events), 2),
            },
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@savings_app.command("claim")
def savings_claim() -> None:
    """Claim this week's waste reduction bonus."""
    try:
        mgr = get_savings_manager()
        event = mgr.claim_weekly_bonus()

        if event is None:
            formatter.warning("Waste did not go down this week, no bonus to claim")
            return

        output_data = {
            "success": True,
            "message": f"Claimed ₱{event.amount:.2f} bonus for {event.week_id}",
            "data": {"savings_event": event.model_dump(mode="json")},
        }
        formatter.output(output_data, output_data["message"])
    except DuplicateClaimError as e:
        formatter.error(str(e), error_code="ALREADY_CLAIMED")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Points subcommand group ---
points_app = typer.Typer(help="Green Points commands")
app.add_typer(points_app, name="points")


@points_app.command("list")
def points_list(
    event_type: Annotated[
        GreenPointsType | None, typer.Option("--type", "-t", help="Filter by action")
    ] = None,
) -> None:
    """List earned Green Points."""
    try:
        mgr = get_savings_manager()
        events = mgr.list_points(event_type=event_type)

        output_data = {
            "success": True,
            "data": {
                "points": [e.model_dump(mode="json") for e in events],
                "total": sum(e.points for e in events),
            },
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def stats() -> None:
    """View waste, pantry and savings analytics."""
    try:
        analytics = Analytics(data_store=get_data_store())
        snapshot = analytics.snapshot()

        output_data = {
            "success": True,
            "data": {"analytics": snapshot.model_dump(mode="json")},
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def score() -> None:
    """View the Green Score and badges."""
    try:
        analytics = Analytics(data_store=get_data_store())
        snapshot = analytics.green_score()

        output_data = {
            "success": True,
            "data": {"green_score": snapshot.model_dump(mode="json")},
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
