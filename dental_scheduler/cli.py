"""
CLI entry point for running the scheduling engine against a JSON snapshot.

Usage:
    python -m dental_scheduler.cli availability --snapshot day.json
    python -m dental_scheduler.cli risk --snapshot patient.json
    python -m dental_scheduler.cli optimize --snapshot request.json --verbose

Snapshot keys by command:
    availability: request, window, bookings
    risk:         history, now (optional)
    optimize:     context, bookings, windows (optional), history (optional), now (optional)
"""

import argparse
import json
import logging
import sys
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import TypeAdapter

from dental_scheduler.errors import SchedulingError
from dental_scheduler.logging_context import configure_logging, request_context
from dental_scheduler.scheduling.availability import compute_availability, summarize_day
from dental_scheduler.scheduling.optimizer import optimize_schedule
from dental_scheduler.scheduling.risk import (
    classify_risk,
    estimate_no_show_risk,
    summarize_history,
)
from dental_scheduler.schemas.patient_schema import AppointmentHistoryRecord
from dental_scheduler.schemas.scheduling_schema import (
    Booking,
    SchedulingContext,
    SlotRequest,
    WorkingWindow,
)

logger = logging.getLogger(__name__)

_bookings_adapter = TypeAdapter(list[Booking])
_windows_adapter = TypeAdapter(list[WorkingWindow])
_history_adapter = TypeAdapter(list[AppointmentHistoryRecord])


def _parse_now(snapshot: dict[str, Any]) -> Optional[datetime]:
    raw = snapshot.get("now")
    return datetime.fromisoformat(raw) if raw else None


def run_availability(snapshot: dict[str, Any]) -> dict[str, Any]:
    request = SlotRequest.model_validate(snapshot["request"])
    window = WorkingWindow.model_validate(snapshot["window"])
    bookings = _bookings_adapter.validate_python(snapshot.get("bookings", []))

    slots = compute_availability(request, bookings, window)
    summary = summarize_day(request, bookings, window)
    return {
        "slots": [s.model_dump(mode="json") for s in slots],
        "summary": summary.model_dump(mode="json"),
    }


def run_risk(snapshot: dict[str, Any]) -> dict[str, Any]:
    history = _history_adapter.validate_python(snapshot.get("history", []))
    score = estimate_no_show_risk(history, now=_parse_now(snapshot))
    return {
        "risk_score": score,
        "risk_level": classify_risk(score).value,
        "patterns": summarize_history(history).model_dump(mode="json"),
    }


def run_optimize(snapshot: dict[str, Any]) -> dict[str, Any]:
    context = SchedulingContext.model_validate(snapshot["context"])
    bookings = _bookings_adapter.validate_python(snapshot.get("bookings", []))
    history = _history_adapter.validate_python(snapshot.get("history", []))
    windows = (
        _windows_adapter.validate_python(snapshot["windows"])
        if "windows" in snapshot
        else None
    )

    bookings_by_date: dict[date, list[Booking]] = {}
    for booking in bookings:
        bookings_by_date.setdefault(booking.interval.start.date(), []).append(booking)

    result = optimize_schedule(
        context, bookings_by_date, history=history, windows=windows, now=_parse_now(snapshot)
    )
    return result.model_dump(mode="json")


COMMANDS = {
    "availability": run_availability,
    "risk": run_risk,
    "optimize": run_optimize,
}


def _run(command: str, snapshot_path: Path) -> dict[str, Any]:
    if not snapshot_path.exists():
        logger.error("Snapshot file not found: %s", snapshot_path)
        sys.exit(1)

    try:
        snapshot = json.loads(snapshot_path.read_text(encoding="utf-8"))
        return COMMANDS[command](snapshot)
    except (KeyError, ValueError) as exc:
        # Covers malformed JSON, pydantic ValidationError and bad ISO timestamps.
        logger.error("Invalid snapshot %s: %s", snapshot_path, exc)
        sys.exit(1)
    except SchedulingError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        sys.exit(2)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Run the dental scheduling engine on a JSON snapshot."
    )
    parser.add_argument(
        "command",
        choices=sorted(COMMANDS),
        help="Engine operation to run.",
    )
    parser.add_argument(
        "--snapshot",
        type=str,
        required=True,
        help="Path to a JSON file holding the operation's inputs.",
    )
    parser.add_argument(
        "--request-id",
        type=str,
        default=None,
        help="Correlation ID for log records (default: random).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output.",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        configure_logging(logging.DEBUG, force=True)

    with request_context(args.request_id or f"CLI-{uuid.uuid4().hex[:8]}"):
        output = _run(args.command, Path(args.snapshot))

    sys.stdout.write(json.dumps(output, indent=2) + "\n")


if __name__ == "__main__":
    main()
