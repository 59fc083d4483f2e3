#!/usr/bin/env python3
"""Full analytics snapshot: every report plus coaching insights.

Normalizes the record set once, runs the funnel, segment, time-series and
timing calculations, then feeds their results to the insight rules. The
snapshot is plain data and can be printed, or exported as CSV or JSON.

Usage:
    python scripts/analytics.py                          # Print summary
    python scripts/analytics.py --goal 8                 # Override weekly goal
    python scripts/analytics.py --export csv             # CSV to stdout
    python scripts/analytics.py --export json --output exports/snapshot.json
"""

import argparse
import csv
import io
import json
import sys
from datetime import date, datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from conversion_report import segment, segment_report
from durations import deadline_adherence, stage_durations, time_to_offer, timeline_vs_benchmarks
from funnel_report import (
    compute_funnel,
    compute_offer_rate,
    compute_response_rate,
    funnel_total,
    stage_conversion,
)
from insights import generate_insights
from log import get_logger
from normalize import normalize_records
from pipeline_lib import (
    DEFAULT_SETTINGS,
    SETTINGS_FILE,
    load_records,
    load_records_file,
    load_settings,
    today_utc,
    validate_settings,
)
from velocity import bucket_by_period, conversion_by_period, count_this_period, day_of_week_patterns

logger = get_logger(__name__)


def build_metrics(records: list[dict], settings: dict, today: date) -> dict:
    """Aggregate normalized records into the metrics dict the rules read."""
    funnel = compute_funnel(records)
    return {
        "total_jobs": funnel_total(funnel),
        "funnel": funnel,
        "stage_conversion": stage_conversion(funnel),
        "response_rate": compute_response_rate(records),
        "offer_rate": compute_offer_rate(funnel),
        "segments": segment_report(records),
        "industry_counts": {s["value"]: s["total"] for s in segment(records, "industry")},
        "time_series": conversion_by_period(
            records,
            settings["granularity"],
            settings["window_size"],
            settings["rolling_periods"],
            today=today,
        ),
        "applications_series": bucket_by_period(
            records,
            settings["granularity"],
            settings["window_size"],
            date_field="applied_date",
            today=today,
        ),
        "weekday_patterns": day_of_week_patterns(records),
        "stage_durations": stage_durations(records),
        "timeline": timeline_vs_benchmarks(records),
        "time_to_offer": time_to_offer(records),
        "deadlines": deadline_adherence(records, today),
        "weekly_goal": settings["weekly_goal"],
        "this_week_applications": count_this_period(
            records, "week", date_field="applied_date", today=today,
        ),
    }


def build_snapshot(raw_records, settings: dict | None = None, today: date | None = None) -> dict:
    """Compute the complete analytics snapshot from raw records.

    Args:
        raw_records: Records as returned by the data source, any shape.
        settings: Overrides for DEFAULT_SETTINGS (weekly_goal, max_insights,
            window_size, granularity, rolling_periods).
        today: Reference date for windows and deadlines (defaults to the
            current UTC date).

    Returns:
        A dict of plain, JSON-serializable values.

    Raises:
        ValueError: If a setting is invalid.
    """
    merged = dict(DEFAULT_SETTINGS)
    merged.update(settings or {})
    validate_settings(merged)
    today = today or today_utc()

    records = normalize_records(raw_records)
    snapshot = build_metrics(records, merged, today)
    snapshot["as_of"] = today.isoformat()
    snapshot["granularity"] = merged["granularity"]
    snapshot["insights"] = generate_insights(snapshot, merged["max_insights"])
    return snapshot


# --- Export ---


def format_csv(snapshot: dict) -> str:
    """Serialize a snapshot as Metric,Value rows followed by section tables."""
    out = io.StringIO()
    w = csv.writer(out)
    funnel = snapshot["funnel"]
    dl = snapshot["deadlines"]

    w.writerow(["Metric", "Value"])
    w.writerow(["Total jobs", snapshot["total_jobs"]])
    w.writerow(["Offers", funnel.get("Offer", 0)])
    w.writerow(["Offer rate", f"{snapshot['offer_rate']:.3f}"])
    w.writerow(["Response rate", f"{snapshot['response_rate'] * 100:.1f}%"])
    w.writerow(["Weekly goal", snapshot["weekly_goal"]])
    w.writerow(["Applications this week", snapshot["this_week_applications"]])
    w.writerow(["Average time to offer (days)", f"{snapshot['time_to_offer']:.1f}"])
    w.writerow(["Deadline adherence", f"{dl['adherence'] * 100:.1f}%"])
    w.writerow(["Deadlines met", dl["met"]])
    w.writerow(["Deadlines missed", dl["missed"]])
    w.writerow(["Deadlines missed but still open", dl["pending"]])

    w.writerow([])
    w.writerow(["Funnel breakdown"])
    for stage, count in funnel.items():
        w.writerow([stage, count])

    w.writerow([])
    w.writerow(["Response rate by segment"])
    w.writerow(["Category", "Value", "Total", "Responded", "Response rate", "Offers", "Avg days to response"])
    for s in snapshot["segments"]:
        w.writerow([
            s["category"], s["value"], s["total"], s["responded"],
            f"{s['response_rate']}%", s["offers"], f"{s['avg_days_to_response']:.1f}",
        ])

    w.writerow([])
    w.writerow([f"Trend by {snapshot['granularity']}"])
    w.writerow(["Period", "Count", "Responded", "Rolling response rate"])
    for b in snapshot["time_series"]:
        w.writerow([b["period"], b["count"], b["responded"], f"{b['rolling_rate']}%"])

    w.writerow([])
    w.writerow(["Average days per stage"])
    for stage, days in snapshot["stage_durations"].items():
        w.writerow([stage, f"{days:.1f}"])

    w.writerow([])
    w.writerow(["Insights"])
    for text in snapshot["insights"]:
        w.writerow([text])

    return out.getvalue()


def format_json(snapshot: dict, generated_at: datetime | None = None) -> str:
    """Serialize a snapshot as pretty-printed JSON with a generation time."""
    moment = generated_at or datetime.now(timezone.utc)
    payload = {"generated_at": moment.isoformat()}
    payload.update(snapshot)
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def print_summary(snapshot: dict):
    """Print the headline numbers and insights."""
    funnel = snapshot["funnel"]
    dl = snapshot["deadlines"]

    print(f"JOB SEARCH ANALYTICS — {snapshot['as_of']}")
    print("=" * 60)
    print(f"  Total jobs: {snapshot['total_jobs']}")
    print(f"  Offers: {funnel.get('Offer', 0)} ({snapshot['offer_rate'] * 100:.1f}%)")
    print(f"  Response rate: {snapshot['response_rate'] * 100:.1f}%")
    print(f"  This week: {snapshot['this_week_applications']}/{snapshot['weekly_goal']} applications")
    print(f"  Time to offer: {snapshot['time_to_offer']:.1f} days")
    print(f"  Deadline adherence: {dl['adherence'] * 100:.1f}% "
          f"({dl['met']} met, {dl['missed']} missed)")
    print()
    print("INSIGHTS")
    for i, text in enumerate(snapshot["insights"], 1):
        print(f"  {i}. {text}")
    print()


def main():
    parser = argparse.ArgumentParser(description="Job search analytics snapshot")
    parser.add_argument("--records", help="JSON/YAML file of job records")
    parser.add_argument("--settings", help=f"Settings YAML (default: {SETTINGS_FILE.name})")
    parser.add_argument("--goal", type=int, help="Weekly application goal")
    parser.add_argument("--export", choices=["csv", "json"], help="Export format")
    parser.add_argument("--output", help="Write export to this file instead of stdout")
    args = parser.parse_args()

    try:
        settings = load_settings(Path(args.settings) if args.settings else None)
        if args.goal is not None:
            settings["weekly_goal"] = args.goal
        raw = load_records_file(Path(args.records)) if args.records else load_records()
        snapshot = build_snapshot(raw, settings)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not args.export:
        print_summary(snapshot)
        return

    text = format_csv(snapshot) if args.export == "csv" else format_json(snapshot)
    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text)
        logger.info("Wrote %s export to %s", args.export, output)
        print(f"Exported: {output}")
    else:
        sys.stdout.write(text)


if __name__ == "__main__":
    main()
