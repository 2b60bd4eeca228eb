"""Tests for CLI commands."""

import json
from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest
from typer.testing import CliRunner

from green_pantry.data_store import DataStore
from green_pantry.main import app
from green_pantry.models import WastedFood, WasteEvent

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every command from a directory without a config.toml."""
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


def invoke(data_dir, *args):
    return runner.invoke(app, ["--json", "--data-dir", str(data_dir), *args])


def add_item(data_dir, name="Milk", *extra):
    result = invoke(data_dir, "pantry", "add", name, *extra)
    assert result.exit_code == 0
    return json.loads(result.stdout)["data"]["inventory_item"]


def last_sunday() -> datetime:
    today = datetime.now()
    monday = (today - timedelta(days=today.weekday())).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return monday - timedelta(hours=12)


class TestPantryCommands:
    """Tests for pantry subcommands."""

    def test_add_item(self, temp_data_dir):
        item = add_item(
            temp_data_dir,
            "Fresh Milk",
            "--quantity",
            "2",
            "--unit",
            "l",
            "--cost",
            "190",
            "--location",
            "refrigerator",
            "--shelf-life",
            "7",
        )
        assert item["name"] == "Fresh Milk"
        assert item["quantity"] == 2.0
        assert item["location"] == "refrigerator"
        assert item["shelf_life_by_storage"] == {"refrigerator": 7}
        assert item["state"] == "live"

    def test_add_rejects_negative_shelf_life(self, temp_data_dir):
        result = invoke(temp_data_dir, "pantry", "add", "Milk", "--shelf-life", "-1")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_ITEM"

    def test_list(self, temp_data_dir):
        add_item(temp_data_dir, "Milk")
        add_item(temp_data_dir, "Rice", "--location", "pantry")

        result = invoke(temp_data_dir, "pantry", "list")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["data"]["count"] == 2
        assert {i["name"] for i in data["data"]["inventory"]} == {"Milk", "Rice"}
        assert "expires" in data["data"]["inventory"][0]

    def test_list_rich(self, temp_data_dir):
        result = runner.invoke(app, ["--data-dir", str(temp_data_dir), "pantry", "list"])
        assert result.exit_code == 0
        assert "No items in the pantry" in result.stdout

    def test_use_attributes_savings(self, temp_data_dir):
        acquired = (date.today() - timedelta(days=9)).isoformat()
        item = add_item(
            temp_data_dir,
            "Milk",
            "--cost",
            "100",
            "--location",
            "refrigerator",
            "--shelf-life",
            "10",
            "--acquired",
            acquired,
        )

        result = invoke(temp_data_dir, "pantry", "use", item["id"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["data"]["inventory_item"]["state"] == "used"
        assert data["data"]["savings_event"]["amount"] == 22.5
        assert data["data"]["savings_event"]["type"] == "avoided_expiry"

    def test_use_twice(self, temp_data_dir):
        item = add_item(temp_data_dir, "Milk")
        invoke(temp_data_dir, "pantry", "use", item["id"])

        result = invoke(temp_data_dir, "pantry", "use", item["id"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "ALREADY_ARCHIVED"

    def test_use_unknown_item(self, temp_data_dir):
        result = invoke(temp_data_dir, "pantry", "use", str(uuid4()))
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "ITEM_NOT_FOUND"

    def test_waste(self, temp_data_dir):
        item = add_item(temp_data_dir, "Pork", "--cost", "180", "--co2", "3.6")

        result = invoke(temp_data_dir, "pantry", "waste", item["id"], "--reason", "spoiled")
        assert result.exit_code == 0
        event = json.loads(result.stdout)["data"]["waste_event"]
        assert event["total_peso_value"] == 180.0
        assert event["reason"] == "spoiled"

    def test_cook(self, temp_data_dir, sample_recipe_json):
        add_item(temp_data_dir, "Chicken", "--quantity", "1", "--unit", "kg")
        add_item(temp_data_dir, "Garlic", "--quantity", "1", "--unit", "bulb")

        result = invoke(temp_data_dir, "pantry", "cook", "--data", sample_recipe_json)
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["deduction"]["missing"] == []
        assert len(data["deduction"]["deducted"]) == 2
        assert [e["type"] for e in data["savings_events"]] == ["recipe_followed"]

        listed = json.loads(invoke(temp_data_dir, "pantry", "list").stdout)["data"]["inventory"]
        quantities = {i["name"]: i["quantity"] for i in listed}
        assert quantities["Chicken"] == pytest.approx(0.5)
        assert quantities["Garlic"] == pytest.approx(0.7)

    def test_cook_from_file(self, temp_data_dir, tmp_path, sample_recipe_json):
        recipe_file = tmp_path / "recipe.json"
        recipe_file.write_text(sample_recipe_json)

        result = invoke(temp_data_dir, "pantry", "cook", "--file", str(recipe_file))
        assert result.exit_code == 0
        assert len(json.loads(result.stdout)["data"]["deduction"]["missing"]) == 2

    def test_cook_invalid_json(self, temp_data_dir):
        result = invoke(temp_data_dir, "pantry", "cook", "--data", "{not json")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_JSON"

    def test_cook_requires_input(self, temp_data_dir):
        result = invoke(temp_data_dir, "pantry", "cook")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "MISSING_INPUT"


class TestWasteCommands:
    """Tests for waste subcommands."""

    def test_log_single_item(self, temp_data_dir):
        result = invoke(
            temp_data_dir, "waste", "log", "Rice", "--value", "25", "--reason", "overcooked"
        )
        assert result.exit_code == 0
        event = json.loads(result.stdout)["data"]["waste_event"]
        assert event["items"][0]["name"] == "Rice"
        assert event["total_peso_value"] == 25.0

    def test_log_session(self, temp_data_dir):
        items = json.dumps(
            [
                {"name": "Bread", "peso_value": 40},
                {"name": "Chicken", "peso_value": 120, "carbon_footprint": 2.1},
            ]
        )
        result = invoke(temp_data_dir, "waste", "log", "--data", items)
        assert result.exit_code == 0
        event = json.loads(result.stdout)["data"]["waste_event"]
        assert event["total_peso_value"] == 160.0
        assert len(event["items"]) == 2

    def test_log_negative_value(self, temp_data_dir):
        result = invoke(temp_data_dir, "waste", "log", "Rice", "--value", "-5")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_WASTE"

    def test_log_requires_item(self, temp_data_dir):
        result = invoke(temp_data_dir, "waste", "log")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "MISSING_INPUT"

    def test_list(self, temp_data_dir):
        invoke(temp_data_dir, "waste", "log", "Rice", "--value", "25", "--reason", "overcooked")
        invoke(temp_data_dir, "waste", "log", "Bread", "--value", "40", "--reason", "stale")

        data = json.loads(invoke(temp_data_dir, "waste", "list").stdout)["data"]
        assert data["count"] == 2

        data = json.loads(invoke(temp_data_dir, "waste", "list", "--reason", "STALE").stdout)
        assert [e["items"][0]["name"] for e in data["data"]["waste_log"]] == ["Bread"]


class TestSavingsCommands:
    """Tests for savings subcommands."""

    def test_claim_bonus_once(self, temp_data_dir):
        DataStore(data_dir=temp_data_dir).add_waste_event(
            WasteEvent(timestamp=last_sunday(), items=[WastedFood(name="Rice", peso_value=80.0)])
        )

        result = invoke(temp_data_dir, "savings", "claim")
        assert result.exit_code == 0
        event = json.loads(result.stdout)["data"]["savings_event"]
        assert event["amount"] == 80.0
        assert event["type"] == "waste_reduction_bonus"

        result = invoke(temp_data_dir, "savings", "claim")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "ALREADY_CLAIMED"

    def test_claim_without_reduction(self, temp_data_dir):
        result = invoke(temp_data_dir, "savings", "claim")
        assert result.exit_code == 0
        assert "warning" in json.loads(result.stdout)

    def test_list(self, temp_data_dir):
        invoke(temp_data_dir, "pantry", "cook", "--data", json.dumps({"name": "Leftovers"}))

        data = json.loads(invoke(temp_data_dir, "savings", "list").stdout)["data"]
        assert data["total"] == 100.0
        assert data["savings"][0]["type"] == "recipe_followed"

        data = json.loads(
            invoke(temp_data_dir, "savings", "list", "--type", "avoided_expiry").stdout
        )["data"]
        assert data["savings"] == []


class TestPointsCommands:
    """Tests for points subcommands."""

    def test_list_after_add_and_use(self, temp_data_dir):
        item = add_item(temp_data_dir, "Tofu")
        data = json.loads(invoke(temp_data_dir, "points", "list").stdout)["data"]
        assert data["total"] == 10

        invoke(temp_data_dir, "pantry", "use", item["id"])
        data = json.loads(invoke(temp_data_dir, "points", "list").stdout)["data"]
        assert data["total"] == 35
        assert data["points"][0]["related_item_id"] == item["id"]

        data = json.loads(
            invoke(temp_data_dir, "points", "list", "--type", "use_pantry_item").stdout
        )["data"]
        assert [e["points"] for e in data["points"]] == [25]

    def test_list_rich_empty(self, temp_data_dir):
        result = runner.invoke(app, ["--data-dir", str(temp_data_dir), "points", "list"])
        assert result.exit_code == 0
        assert "No Green Points earned yet" in result.stdout


class TestReports:
    """Tests for stats and score."""

    def test_stats_empty(self, temp_data_dir):
        result = invoke(temp_data_dir, "stats")
        assert result.exit_code == 0
        analytics = json.loads(result.stdout)["data"]["analytics"]
        assert analytics["use_rate"] == 100.0
        assert analytics["pantry"]["health_score"] == 100
        assert analytics["waste"]["week_over_week_change"] is None

    def test_stats_after_waste(self, temp_data_dir):
        invoke(temp_data_dir, "waste", "log", "Spinach", "--value", "45")
        analytics = json.loads(invoke(temp_data_dir, "stats").stdout)["data"]["analytics"]
        assert analytics["waste"]["total_value"] == 45.0
        assert analytics["waste"]["category_values"] == {"Vegetables": 45.0}

    def test_score_cold_start(self, temp_data_dir):
        result = invoke(temp_data_dir, "score")
        assert result.exit_code == 0
        score = json.loads(result.stdout)["data"]["green_score"]
        assert score["score"] == 350
        assert score["badges"] == ["Eco-Starter"]

    def test_score_rich(self, temp_data_dir):
        result = runner.invoke(app, ["--data-dir", str(temp_data_dir), "score"])
        assert result.exit_code == 0
        assert "Green Score" in result.stdout


class TestSQLiteBackend:
    """Tests for selecting the SQLite backend from config."""

    def test_config_selects_sqlite(self, temp_data_dir, tmp_path):
        (tmp_path / "cwd" / "config.toml").write_text('[data]\nbackend = "sqlite"\n')

        add_item(temp_data_dir, "Milk")
        assert (temp_data_dir / "pantry.db").exists()
        assert not (temp_data_dir / "inventory.json").exists()
