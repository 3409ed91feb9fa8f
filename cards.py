"""Command-line interface for managing cards and previewing billing cycles."""

from __future__ import annotations

import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Dict, List

from pythonjsonlogger.json import JsonFormatter

from anchored_days import format_date_br, to_date
from billing_cycle import (
    EXACT,
    CardConfiguration,
    get_comprehensive_summary,
    get_launch_preview,
    resolve_billing_period,
    validate_configuration,
)


DATA_FILE = Path(__file__).with_name("cards.json")


def setup_logging(level: str = "WARNING") -> None:
    """Send calculator warnings to stderr as JSON lines."""
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    )
    logger.addHandler(handler)


def load_data() -> Dict:
    """Load card records from ``cards.json``."""
    if DATA_FILE.exists():
        with DATA_FILE.open() as f:
            return json.load(f)
    return {"cards": []}


def save_data(data: Dict) -> None:
    with DATA_FILE.open("w") as f:
        json.dump(data, f, indent=2)


# ---------------------------------------------------------------------------
# Editing helpers


def _delete_item(items: List[dict]) -> None:
    idx = input("Number to delete: ").strip()
    if idx.isdigit() and 1 <= int(idx) <= len(items):
        del items[int(idx) - 1]


def _optional_day(prompt: str):
    value = input(prompt).strip()
    return int(value) if value else None


def edit_cards(data: Dict) -> None:
    """Add or remove card records."""
    cards = data.setdefault("cards", [])
    while True:
        print("\nCurrent cards:")
        for i, c in enumerate(cards, 1):
            config = CardConfiguration.from_record(c)
            due = config.due_day or "auto"
            print(f"{i}. {c.get('name', 'Card')} closes {config.closing_day} due {due}")
        action = input("A)dd, D)elete, B)ack: ").strip().lower()
        if action == "a":
            try:
                name = input("Name: ").strip() or "Card"
                record = {
                    "name": name,
                    "closing_day": int(input("Closing day: ").strip()),
                    "due_day": _optional_day("Due day [auto]: "),
                    "preferred_purchase_day": _optional_day("Best purchase day [auto]: "),
                }
            except ValueError as exc:
                print(f"Warning: {exc}")
                continue
            result = validate_configuration(record)
            if not result.valid:
                print("Warning: " + "; ".join(result.errors))
                continue
            cards.append(record)
            save_data(data)
        elif action == "d":
            _delete_item(cards)
            save_data(data)
        elif action == "b":
            break


# ---------------------------------------------------------------------------
# Reports


def show_summary(data: Dict, today: date) -> None:
    """Print the current billing period and upcoming dates for every card."""
    cards = data.get("cards", [])
    if not cards:
        print("No cards configured.")
        return
    for c in cards:
        resolution = resolve_billing_period(c, today)
        summary = get_comprehensive_summary(c, today)
        period = summary.period
        degraded = "" if resolution.precision == EXACT else f" (degraded: {resolution.precision})"
        print(f"\n{c.get('name', 'Card')}: statement {period.reference_label}{degraded}")
        print(
            f"  period {format_date_br(period.start)} - {format_date_br(period.end)}"
            f", {period.days_remaining} days remaining"
        )
        print(f"  next closing {format_date_br(summary.next_closing)}")
        print(f"  next due {format_date_br(summary.next_due)}")
        print(f"  best purchase day {summary.best_purchase_day}")


def preview_purchase(data: Dict, purchase_date: date) -> None:
    """Print when a purchase made on ``purchase_date`` is billed on each card."""
    for c in data.get("cards", []):
        preview = get_launch_preview(purchase_date, c)
        deferred = " (next month or later)" if preview.is_deferred else ""
        print(
            f"{c.get('name', 'Card')}: billed {format_date_br(preview.launch_date)}"
            f" on the {preview.launch_label} statement,"
            f" {preview.days_until_due} days to pay{deferred}"
        )


# ---------------------------------------------------------------------------
# Menu


def main() -> None:
    """Display the main menu and handle user selections."""
    setup_logging()
    data = load_data()
    while True:
        print("\n--- Card Menu ---")
        print("1. Edit cards")
        print("2. Show billing summary")
        print("3. Preview purchase")
        print("4. Quit")
        choice = input("Select an option: ").strip()
        if choice == "1":
            edit_cards(data)
        elif choice == "2":
            show_summary(data, date.today())
        elif choice == "3":
            raw = input("Purchase date (YYYY-MM-DD) [today]: ").strip()
            try:
                purchase = to_date(raw) if raw else date.today()
            except ValueError as exc:
                print(f"Warning: {exc}")
                continue
            preview_purchase(data, purchase)
        elif choice == "4":
            break
        else:
            print("Invalid option.")


if __name__ == "__main__":
    main()
