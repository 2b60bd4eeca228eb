"""Output formatting for CLI and programmatic use."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .data_store import JSONEncoder


def _peso(value: float | None) -> str:
    return f"₱{value:.2f}" if value is not None else "-"


def _change(value: float | None) -> str:
    if value is None:
        return "[dim]n/a[/dim]"
    # Less waste is good
    color = "green" if value <= 0 else "red"
    return f"[{color}]{value:+.1f}%[/{color}]"


class OutputFormatter:
    """Formats output for both Rich terminal and JSON modes."""

    def __init__(self, json_mode: bool = False):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode
        self.console = Console()

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Output data in appropriate format.

        Args:
            data: Data to output
            message: Optional message for Rich mode
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        """Output as JSON to stdout."""
        print(json.dumps(data, cls=JSONEncoder, indent=2))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            self.console.print(f"[green]✓[/green] {message}")

        payload = data.get("data", {})
        if "inventory_item" in payload:
            self._render_inventory_item(data)
        elif "inventory" in payload:
            self._render_inventory(data)
        elif "deduction" in payload:
            self._render_deduction(data)
        elif "waste_event" in payload:
            self._render_waste_event(data)
        elif "waste_log" in payload:
            self._render_waste_log(data)
        elif "savings" in payload:
            self._render_savings(data)
        elif "points" in payload:
            self._render_points(data)
        elif "analytics" in payload:
            self._render_analytics(data)
        elif "green_score" in payload:
            self._render_green_score(data)

        if payload.get("savings_event"):
            self._render_savings_event(payload["savings_event"])

    def _render_inventory_item(self, data: dict) -> None:
        """Render a single inventory item."""
        item = data["data"]["inventory_item"]

        panel_content = f"""[bold]{item["name"]}[/bold]

Quantity: {item.get("quantity", 1)} {item.get("unit") or ""}
Location: {item.get("location", "pantry")}
State: {item.get("state", "live")}
Acquired: {item.get("acquired_date", "-")}"""

        if item.get("expiration_date"):
            panel_content += f"\nExpires: {item['expiration_date']}"
        if item.get("estimated_cost") is not None:
            panel_content += f"\nEst. Cost: {_peso(item['estimated_cost'])}"
        if item.get("used_date"):
            panel_content += f"\nLeft pantry: {item['used_date']}"

        panel = Panel(panel_content, title="Pantry Item", border_style="green")
        self.console.print(panel)

    def _render_inventory(self, data: dict) -> None:
        """Render inventory list."""
        items = data["data"]["inventory"]

        if not items:
            self.console.print("[dim]No items in the pantry[/dim]")
            return

        table = Table(title="Household Pantry", show_header=True, header_style="bold cyan")
        table.add_column("Item", style="cyan")
        table.add_column("Qty", justify="right")
        table.add_column("Location", style="green")
        table.add_column("Cost", justify="right")
        table.add_column("Expires", style="red")
        table.add_column("ID", style="dim")

        for item in items:
            table.add_row(
                item["name"],
                f"{item.get('quantity', 1):g} {item.get('unit', '')}".strip(),
                item.get("location", "pantry"),
                _peso(item.get("estimated_cost")),
                str(item.get("expires") or item.get("expiration_date") or "-"),
                str(item["id"]),
            )

        self.console.print(table)
        self.console.print(f"\nTotal items: {len(items)}")

    def _render_deduction(self, data: dict) -> None:
        """Render the outcome of cooking a recipe."""
        deduction = data["data"]["deduction"]

        if deduction["deducted"]:
            table = Table(title="Deducted", show_header=True, header_style="bold")
            table.add_column("Item")
            table.add_column("Remaining", justify="right")
            table.add_column("State")
            for item in deduction["deducted"]:
                table.add_row(
                    item["name"],
                    f"{item['quantity']:g} {item['unit']}",
                    item["state"],
                )
            self.console.print(table)

        if deduction["missing"]:
            self.console.print("\n[yellow]Not deducted:[/yellow]")
            for ingredient in deduction["missing"]:
                self.console.print(
                    f"  - {ingredient['name']} ({ingredient['quantity']:g} {ingredient['unit']})"
                )

        for event in data["data"].get("savings_events", []):
            self._render_savings_event(event)

    def _render_waste_event(self, data: dict) -> None:
        """Render a single logged waste session."""
        event = data["data"]["waste_event"]
        lines = [f"  - {i['name']}: {_peso(i['peso_value'])}" for i in event["items"]]
        panel_content = "\n".join(lines)
        panel_content += f"\n\nTotal: {_peso(event['total_peso_value'])}"
        panel_content += f"\nCO2e: {event['total_carbon_footprint']:.3f} kg"
        if event.get("reason"):
            panel_content += f"\nReason: {event['reason']}"
        self.console.print(Panel(panel_content, title="Waste Logged", border_style="red"))

    def _render_waste_log(self, data: dict) -> None:
        """Render waste log records."""
        events = data["data"]["waste_log"]

        if not events:
            self.console.print("[dim]No waste records[/dim]")
            return

        self.console.print("\n[bold]Waste Log[/bold]")

        table = Table(show_header=True, header_style="bold")
        table.add_column("Date")
        table.add_column("Items")
        table.add_column("Reason")
        table.add_column("Value", justify="right")
        table.add_column("CO2e (kg)", justify="right")

        for event in events:
            table.add_row(
                str(event["timestamp"])[:16].replace("T", " "),
                ", ".join(i["name"] for i in event["items"]),
                event.get("reason") or "-",
                _peso(event["total_peso_value"]),
                f"{event['total_carbon_footprint']:.3f}",
            )

        self.console.print(table)

    def _render_savings_event(self, event: dict) -> None:
        self.console.print(
            f"  [green]+{_peso(event['amount'])}[/green] {event['description']}"
        )
        self.console.print(f"  [dim]{event['calculation_method']}[/dim]")

    def _render_savings(self, data: dict) -> None:
        """Render the savings ledger."""
        events = data["data"]["savings"]
        total = data["data"].get("total", 0.0)

        if not events:
            self.console.print("[dim]No savings recorded yet[/dim]")
            return

        table = Table(title="Savings", show_header=True, header_style="bold green")
        table.add_column("Date")
        table.add_column("Type")
        table.add_column("Amount", justify="right", style="green")
        table.add_column("Description")

        for event in events:
            table.add_row(
                str(event["timestamp"])[:10],
                event["type"].replace("_", " "),
                _peso(event["amount"]),
                event["description"],
            )

        self.console.print(table)
        self.console.print(f"\nTotal saved: [bold green]{_peso(total)}[/bold green]")

    def _render_points(self, data: dict) -> None:
        """Render the Green Points ledger."""
        events = data["data"]["points"]
        total = data["data"].get("total", 0)

        if not events:
            self.console.print("[dim]No Green Points earned yet[/dim]")
            return

        table = Table(title="Green Points", show_header=True, header_style="bold green")
        table.add_column("Date")
        table.add_column("Action")
        table.add_column("Points", justify="right", style="green")
        table.add_column("Description")

        for event in events:
            table.add_row(
                str(event["timestamp"])[:10],
                event["type"].replace("_", " "),
                f"+{event['points']}",
                event["description"],
            )

        self.console.print(table)
        self.console.print(f"\nTotal: [bold green]{total:,} points[/bold green]")

    def _render_analytics(self, data: dict) -> None:
        """Render the analytics snapshot."""
        snapshot = data["data"]["analytics"]
        waste = snapshot["waste"]
        pantry = snapshot["pantry"]
        savings = snapshot["savings"]

        self.console.print("\n[bold]Waste[/bold]")
        self.console.print(
            f"This week: {_peso(waste['this_week_value'])} "
            f"(last week {_peso(waste['last_week_value'])}, "
            f"{_change(waste['week_over_week_change'])})"
        )
        self.console.print(
            f"This month: {_peso(waste['this_month_value'])} "
            f"(last month {_peso(waste['last_month_value'])}, "
            f"{_change(waste['month_over_month_change'])})"
        )
        self.console.print(
            f"All time: {_peso(waste['total_value'])}, {waste['total_co2e']:.3f} kg CO2e"
        )
        self.console.print(
            f"Weekly average: {_peso(waste['avg_weekly_value'])} over "
            f"{waste['waste_log_frequency']:.2f} session(s) per week"
        )
        if waste.get("top_category_by_value"):
            top = waste["top_category_by_value"]
            self.console.print(f"Most wasted by value: {top['name']} ({_peso(top['value'])})")
        if waste.get("top_reason"):
            self.console.print(
                f"Most common reason: {waste['top_reason']['name']} "
                f"({waste['top_reason']['count']}x)"
            )
        if waste.get("days_since_last_log") is not None:
            self.console.print(f"Days since last waste: {waste['days_since_last_log']}")

        if waste["category_values"]:
            table = Table(show_header=True, header_style="bold")
            table.add_column("Category")
            table.add_column("Value", justify="right")
            table.add_column("Count", justify="right")
            table.add_column("Waste rate", justify="right")
            rates = snapshot.get("waste_rate_by_category", {})
            for category, value in waste["category_values"].items():
                rate = rates.get(category)
                table.add_row(
                    category,
                    _peso(value),
                    str(waste["category_counts"].get(category, 0)),
                    f"{rate * 100:.0f}%" if rate is not None else "-",
                )
            self.console.print(table)

        self.console.print("\n[bold]Pantry[/bold]")
        self.console.print(
            f"{pantry['total_items']} item(s) worth {_peso(pantry['total_value'])}: "
            f"[green]{pantry['fresh_items']} fresh[/green], "
            f"[yellow]{pantry['expiring_items']} expiring[/yellow], "
            f"[red]{pantry['expired_items']} expired[/red]"
        )
        self.console.print(f"Health score: {pantry['health_score']}")
        self.console.print(
            f"Average stay: {pantry['avg_item_duration']:.1f} day(s), "
            f"turnover {pantry['turnover_rate']:.1f}%"
        )

        self.console.print("\n[bold]Savings[/bold]")
        self.console.print(
            f"Total {_peso(savings['total'])}, this week {_peso(savings['this_week'])}, "
            f"this month {_peso(savings['this_month'])}"
        )
        self.console.print(f"Use rate: {snapshot['use_rate']:.1f}%")
        self.console.print(f"Saved per peso wasted: {snapshot['savings_per_waste_peso']:.2f}")

        if snapshot["consumption_velocity"]:
            self.console.print("\n[dim]Average days to use:[/dim]")
            for category, days in snapshot["consumption_velocity"].items():
                self.console.print(f"  {category}: {days:.1f}")

    def _render_green_score(self, data: dict) -> None:
        """Render the Green Score."""
        snapshot = data["data"]["green_score"]
        breakdown = snapshot["breakdown"]

        panel_content = f"""[bold green]{snapshot["score"]}[/bold green] / 1000

Behavioral: {breakdown["behavioral"]} (use rate {breakdown["use_rate_points"]}, penalty -{breakdown["waste_penalty"]})
Financial: {breakdown["financial"]}
Engagement: {breakdown["engagement"]} (consistency {breakdown["consistency_points"]}, streak {breakdown["streak_points"]})"""

        if snapshot["badges"]:
            panel_content += f"\n\nBadges: {', '.join(snapshot['badges'])}"

        self.console.print(Panel(panel_content, title="Green Score", border_style="green"))

    def error(self, message: str, error_code: str | None = None) -> None:
        """Output error message.

        Args:
            message: Error message
            error_code: Optional error code
        """
        if self.json_mode:
            output = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            print(json.dumps(output))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

    def success(self, message: str, data: dict | None = None) -> None:
        """Output success message.

        Args:
            message: Success message
            data: Optional data to include
        """
        if self.json_mode:
            output: dict[str, Any] = {"success": True, "message": message}
            if data:
                output["data"] = data
            print(json.dumps(output, cls=JSONEncoder))
        else:
            self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        """Output warning message.

        Args:
            message: Warning message
        """
        if self.json_mode:
            print(json.dumps({"warning": message}))
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
