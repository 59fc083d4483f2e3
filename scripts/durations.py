#!/usr/bin/env python3
"""Stage durations, time to offer, and deadline adherence.

Usage:
    python scripts/durations.py                    # Stage timing + deadlines
    python scripts/durations.py --records jobs.json
"""

import argparse
import sys
from datetime import date, datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from normalize import normalize_records
from pipeline_lib import (
    TIMELINE_BENCHMARKS,
    days_between,
    load_records,
    load_records_file,
    round_half_up,
    safe_ratio,
    today_utc,
)

# Stage -> (entered, left). Time in a stage runs between the two timestamps.
STAGE_BOUNDARIES = {
    "Interested": ("created_at", "applied_date"),
    "Applied": ("applied_date", "response_date"),
    "Phone Screen": ("response_date", "interview_date"),
    "Interview": ("interview_date", "offer_date"),
}

# Transition -> (start field, end field, benchmark key)
TIMELINE_TRANSITIONS = [
    ("Applied → Phone Screen", "applied_date", "response_date", "applied_to_phone"),
    ("Phone Screen → Interview", "response_date", "interview_date", "phone_to_interview"),
    ("Interview → Offer", "interview_date", "offer_date", "interview_to_offer"),
    ("Total Process", "applied_date", "offer_date", "total_process"),
]

# Statuses whose status_changed_at marks action taken on the application.
ACTION_STATUSES = {"Applied", "Phone Screen", "Interview", "Offer", "Rejected"}
ACTION_FIELDS = ["applied_date", "response_date", "interview_date", "offer_date"]

FAST_DELTA = -3
SLOW_DELTA = 5


def _mean_days(records: list[dict], start_field: str, end_field: str) -> tuple[float, int]:
    """Mean elapsed days between two fields, and how many records counted.

    Records missing either timestamp, or with end before start, are skipped.
    """
    spans = []
    for record in records:
        start = record.get(start_field)
        end = record.get(end_field)
        if start is None or end is None or end < start:
            continue
        spans.append(days_between(start, end))
    if not spans:
        return 0.0, 0
    return round_half_up(sum(spans) / len(spans), 1), len(spans)


def stage_durations(records: list[dict]) -> dict:
    """Average days spent in each stage, 0.0 for stages with no data."""
    return {
        stage: _mean_days(records, start, end)[0]
        for stage, (start, end) in STAGE_BOUNDARIES.items()
    }


def offer_timestamp(record: dict) -> datetime | None:
    """When the record became an offer: offer_date, else status_changed_at."""
    return record.get("offer_date") or record.get("status_changed_at")


def time_to_offer(records: list[dict]) -> float:
    """Mean days from applying to the offer, over Offer records only.

    Returns 0.0 when no offer has both timestamps in order.
    """
    spans = []
    for record in records:
        if record.get("status") != "Offer":
            continue
        applied = record.get("applied_date")
        offered = offer_timestamp(record)
        if applied is None or offered is None or offered < applied:
            continue
        spans.append(days_between(applied, offered))
    if not spans:
        return 0.0
    return round_half_up(sum(spans) / len(spans), 1)


def action_dates(record: dict) -> list:
    """Calendar dates on which the user acted on the application."""
    moments = [record.get(field) for field in ACTION_FIELDS]
    if record.get("status") in ACTION_STATUSES:
        moments.append(record.get("status_changed_at"))
    return [m.date() for m in moments if m is not None]


def deadline_adherence(records: list[dict], today: date | None = None) -> dict:
    """How many application deadlines were met versus missed.

    Every record with a deadline is either met (some action on or before the
    deadline date) or missed. Records without a deadline are left out.
    pending is the subset of missed with no action yet and the deadline still
    ahead; it does not change the ratio.

    Dates compare as UTC calendar days, so an offset timestamp late on the
    deadline day can fall on the next UTC day.
    """
    today = today or today_utc()
    met = missed = pending = 0

    for record in records:
        deadline = record.get("application_deadline")
        if deadline is None:
            continue
        deadline_day = deadline.date()
        actions = action_dates(record)
        if actions and min(actions) <= deadline_day:
            met += 1
            continue
        missed += 1
        if not actions and deadline_day >= today:
            pending += 1

    return {
        "met": met,
        "missed": missed,
        "pending": pending,
        "adherence": safe_ratio(met, met + missed),
    }


def _timeline_status(delta: float) -> str:
    if delta < FAST_DELTA:
        return "fast"
    if delta > SLOW_DELTA:
        return "slow"
    return "normal"


def timeline_vs_benchmarks(records: list[dict], benchmarks=None) -> list[dict]:
    """Average days per stage transition against typical hiring timelines.

    Transitions with no qualifying records report avg_days 0 and status
    "normal" with count 0.
    """
    benchmarks = benchmarks or TIMELINE_BENCHMARKS
    rows = []
    for stage, start, end, key in TIMELINE_TRANSITIONS:
        avg, count = _mean_days(records, start, end)
        benchmark = benchmarks[key]
        delta = round_half_up(avg - benchmark, 1) if count else 0.0
        rows.append({
            "stage": stage,
            "avg_days": avg,
            "benchmark": benchmark,
            "delta": delta,
            "status": _timeline_status(delta) if count else "normal",
            "count": count,
        })
    return rows


def print_durations(records: list[dict]):
    """Print stage timing, time to offer, and deadline adherence."""
    print("STAGE TIMING")
    print("=" * 60)
    for stage, days in stage_durations(records).items():
        print(f"  {stage:<15s} {days:>6.1f} days")
    print()

    print("  Transition                  Avg   Bench  Delta  Status  n")
    for row in timeline_vs_benchmarks(records):
        print(f"  {row['stage']:<26s} {row['avg_days']:>5.1f} {row['benchmark']:>6d} "
              f"{row['delta']:>+6.1f}  {row['status']:<7s} {row['count']}")
    print()

    print(f"  Average time to offer: {time_to_offer(records):.1f} days")
    dl = deadline_adherence(records)
    print(f"  Deadlines: {dl['met']} met | {dl['missed']} missed ({dl['pending']} still open)"
          f" — adherence {dl['adherence'] * 100:.1f}%")


def main():
    parser = argparse.ArgumentParser(description="Stage timing and deadline adherence")
    parser.add_argument("--records", help="JSON/YAML file of job records")
    args = parser.parse_args()

    try:
        raw = load_records_file(Path(args.records)) if args.records else load_records()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print_durations(normalize_records(raw))


if __name__ == "__main__":
    main()
