#!/usr/bin/env python3
"""Print a practitioner's day from a running agenda service."""

import sys

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

STATUS_STYLES = {
    "NEW": "cyan",
    "PENDING": "yellow",
    "CONFIRMED": "green",
    "FINISHED": "blue",
    "CANCELLED": "red",
    "AVAILABLE": "dim",
}


class AgendaCLI:
    """Read-only agenda viewer for front-desk staff."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        """Initialize agenda CLI."""
        self.base_url = base_url.rstrip("/")
        self.console = Console()
        self.client = httpx.Client(timeout=10.0)

    def show_day(self, practitioner_id: str, day: str) -> bool:
        """Fetch and print one day. Returns False if the service call failed."""
        try:
            view = self.client.get(f"{self.base_url}/practitioners/{practitioner_id}/days/{day}")
            summary = self.client.get(f"{self.base_url}/practitioners/{practitioner_id}/days/{day}/summary")
        except httpx.HTTPError as e:
            self.console.print(f"[red]❌ Connection error: {e}[/red]")
            return False

        if view.status_code != 200:
            self.console.print(f"[red]❌ API Error: {view.status_code} - {view.text}[/red]")
            return False

        data = view.json()
        table = Table(title=f"Agenda {practitioner_id} - {data['day']}")
        table.add_column("Time", style="bold")
        table.add_column("Patient")
        table.add_column("Reason")
        table.add_column("Status")
        table.add_column("Notes", style="dim")

        for apt in data["appointments"]:
            style = STATUS_STYLES.get(apt["status"], "white")
            table.add_row(
                apt["time_of_day"],
                apt.get("patient_name") or f"#{apt['patient_id']}",
                apt["reason"],
                f"[{style}]{apt['status'].title()}[/{style}]",
                apt.get("notes") or "",
            )

        if data["appointments"]:
            self.console.print(table)
        else:
            self.console.print("[yellow]No appointments for this day.[/yellow]")

        if summary.status_code == 200:
            counts = summary.json()
            by_status = ", ".join(f"{status.title()}: {count}" for status, count in counts["by_status"].items())
            self.console.print(
                Panel.fit(
                    f"[bold]{counts['total']}[/bold] appointments ({by_status or 'none'})\n"
                    f"Open slots: {counts['available_slots']}",
                    border_style="blue",
                )
            )
        return True


def main():
    """Main entry point for the agenda CLI."""
    if len(sys.argv) < 3:
        print("usage: agenda_cli.py PRACTITIONER_ID DAY [BASE_URL]")
        sys.exit(2)

    base_url = sys.argv[3] if len(sys.argv) > 3 else "http://localhost:8000"
    cli = AgendaCLI(base_url)
    if not cli.show_day(sys.argv[1], sys.argv[2]):
        sys.exit(1)


if __name__ == "__main__":
    main()
