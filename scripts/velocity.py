#!/usr/bin/env python3
"""Application velocity: records bucketed into calendar periods.

Every series covers a fixed trailing window ending at the current period and
includes empty periods with a count of 0, so charts never skip a gap.

Usage:
    python scripts/velocity.py                          # Last 12 months
    python scripts/velocity.py --granularity week       # Last 12 weeks
    python scripts/velocity.py --window 6 --applied     # Applied-date volume
    python scripts/velocity.py --conversion             # Rolling response rate
"""

import argparse
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from normalize import normalize_records
from pipeline_lib import (
    DEFAULT_SETTINGS,
    VALID_GRANULARITIES,
    load_records,
    load_records_file,
    percent,
    today_utc,
)

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _check_args(granularity: str, window_size: int):
    if granularity not in VALID_GRANULARITIES:
        raise ValueError(
            f"Unknown granularity '{granularity}' (expected one of {', '.join(VALID_GRANULARITIES)})"
        )
    if isinstance(window_size, bool) or not isinstance(window_size, int) or window_size < 1:
        raise ValueError(f"window_size must be a positive integer, got {window_size!r}")


def period_start(moment: date | datetime, granularity: str) -> date:
    """Truncate a date or datetime to the first day of its period.

    Weeks start on Monday.
    """
    d = moment.date() if isinstance(moment, datetime) else moment
    if granularity == "day":
        return d
    if granularity == "week":
        return d - timedelta(days=d.weekday())
    if granularity == "month":
        return d.replace(day=1)
    raise ValueError(f"Unknown granularity '{granularity}'")


def period_label(start: date, granularity: str) -> str:
    """Canonical key for a period: YYYY-MM for months, ISO date otherwise."""
    if granularity == "month":
        return f"{start.year:04d}-{start.month:02d}"
    return start.isoformat()


def shift_period(start: date, granularity: str, steps: int) -> date:
    """Move a period start by a number of periods (negative goes back)."""
    if granularity == "day":
        return start + timedelta(days=steps)
    if granularity == "week":
        return start + timedelta(weeks=steps)
    month_index = start.year * 12 + (start.month - 1) + steps
    return date(month_index // 12, month_index % 12 + 1, 1)


def window_periods(granularity: str, window_size: int, today: date | None = None) -> list[date]:
    """Start dates of the window_size periods ending at today's period."""
    _check_args(granularity, window_size)
    current = period_start(today or today_utc(), granularity)
    return [shift_period(current, granularity, -i) for i in range(window_size - 1, -1, -1)]


def _group_by_period(records, granularity, periods, date_field) -> dict[date, list[dict]]:
    groups = {start: [] for start in periods}
    for record in records:
        moment = record.get(date_field)
        if moment is None:
            continue
        start = period_start(moment, granularity)
        # Outside the window: excluded, never clipped into an edge bucket.
        if start in groups:
            groups[start].append(record)
    return groups


def bucket_by_period(
    records: list[dict],
    granularity: str = "month",
    window_size: int = 12,
    date_field: str = "created_at",
    today: date | None = None,
) -> list[dict]:
    """Count normalized records per period over a trailing window.

    Args:
        records: Normalized records.
        granularity: "day", "week" or "month".
        window_size: Number of periods, ending with the current one.
        date_field: Timestamp that places a record in a period;
            "applied_date" gives application volume.
        today: Reference date (defaults to the current UTC date).

    Returns:
        Exactly window_size {period, count} dicts in chronological order.

    Raises:
        ValueError: On an unknown granularity or a non-positive window.
    """
    periods = window_periods(granularity, window_size, today)
    groups = _group_by_period(records, granularity, periods, date_field)
    return [
        {"period": period_label(start, granularity), "count": len(groups[start])}
        for start in periods
    ]


def conversion_by_period(
    records: list[dict],
    granularity: str = "month",
    window_size: int = 12,
    rolling: int = 3,
    date_field: str = "created_at",
    today: date | None = None,
) -> list[dict]:
    """Per-period counts with response rate and a trailing rolling rate.

    A record has responded when it carries a response timestamp. rate and
    rolling_rate are integer percents; rolling_rate pools the current period
    with the rolling - 1 periods before it inside the window.
    """
    if isinstance(rolling, bool) or not isinstance(rolling, int) or rolling < 1:
        raise ValueError(f"rolling must be a positive integer, got {rolling!r}")
    periods = window_periods(granularity, window_size, today)
    groups = _group_by_period(records, granularity, periods, date_field)

    buckets = []
    for start in periods:
        group = groups[start]
        buckets.append({
            "period": period_label(start, granularity),
            "count": len(group),
            "responded": sum(1 for r in group if r.get("response_date") is not None),
        })

    for i, bucket in enumerate(buckets):
        trailing = buckets[max(0, i - rolling + 1):i + 1]
        bucket["rate"] = percent(bucket["responded"], bucket["count"])
        bucket["rolling_rate"] = percent(
            sum(b["responded"] for b in trailing),
            sum(b["count"] for b in trailing),
        )
    return buckets


def count_this_period(
    records: list[dict],
    granularity: str = "week",
    date_field: str = "created_at",
    today: date | None = None,
) -> int:
    """Number of records whose date falls in the current period."""
    return bucket_by_period(records, granularity, 1, date_field, today)[0]["count"]


def day_of_week_patterns(records: list[dict], date_field: str = "created_at") -> list[dict]:
    """Volume and response rate by weekday, Monday first.

    Every weekday appears, with zeros when nothing was tracked on it.
    """
    totals = [0] * 7
    responses = [0] * 7
    for record in records:
        moment = record.get(date_field)
        if moment is None:
            continue
        weekday = moment.weekday()
        totals[weekday] += 1
        if record.get("response_date") is not None:
            responses[weekday] += 1

    return [
        {
            "day": DAY_NAMES[i],
            "count": totals[i],
            "responded": responses[i],
            "response_rate": percent(responses[i], totals[i]),
        }
        for i in range(7)
    ]


def print_buckets(buckets: list[dict], title: str):
    """Print a bar chart of bucket counts."""
    print(title)
    print("=" * 60)
    for b in buckets:
        if "rolling_rate" in b:
            print(f"  {b['period']:<12s} {b['count']:>4d}  "
                  f"resp {b['rate']:>3d}%  rolling {b['rolling_rate']:>3d}%")
        else:
            print(f"  {b['period']:<12s} {b['count']:>4d}  {'#' * b['count']}")

    total = sum(b["count"] for b in buckets)
    avg = total / len(buckets) if buckets else 0
    print(f"\n  Total: {total} over {len(buckets)} periods")
    print(f"  Average: {avg:.1f}/period")


def main():
    parser = argparse.ArgumentParser(description="Application velocity by period")
    parser.add_argument("--records", help="JSON/YAML file of job records")
    parser.add_argument("--granularity", choices=VALID_GRANULARITIES,
                        default=DEFAULT_SETTINGS["granularity"])
    parser.add_argument("--window", type=int, default=DEFAULT_SETTINGS["window_size"],
                        help="Number of trailing periods")
    parser.add_argument("--applied", action="store_true",
                        help="Bucket by applied date instead of tracked date")
    parser.add_argument("--conversion", action="store_true",
                        help="Show per-period and rolling response rate")
    parser.add_argument("--weekdays", action="store_true",
                        help="Show volume and response rate by weekday")
    args = parser.parse_args()

    try:
        raw = load_records_file(Path(args.records)) if args.records else load_records()
        records = normalize_records(raw)
        date_field = "applied_date" if args.applied else "created_at"

        if args.weekdays:
            print("Weekday Patterns")
            print("=" * 60)
            for row in day_of_week_patterns(records, date_field):
                print(f"  {row['day']:<10s} {row['count']:>4d}  resp {row['response_rate']:>3d}%")
            return

        if args.conversion:
            buckets = conversion_by_period(
                records, args.granularity, args.window,
                DEFAULT_SETTINGS["rolling_periods"], date_field,
            )
        else:
            buckets = bucket_by_period(records, args.granularity, args.window, date_field)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    noun = "Applications" if args.applied else "Tracked Jobs"
    print_buckets(buckets, f"{noun} per {args.granularity.title()}")


if __name__ == "__main__":
    main()
