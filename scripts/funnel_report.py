#!/usr/bin/env python3
"""Pipeline funnel analytics.

Buckets job records by status, computes stage-to-stage conversion and the
overall response and offer rates, and compares them against benchmark
conversion targets.

Usage:
    python scripts/funnel_report.py                     # Funnel summary
    python scripts/funnel_report.py --targets           # Targets vs actual
    python scripts/funnel_report.py --records jobs.json # Read an export file
"""

import argparse
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from normalize import normalize_records
from pipeline_lib import (
    APPLIED_STATUSES,
    FUNNEL_STAGES,
    PROGRESSION,
    RESPONDED_STATUSES,
    UNKNOWN,
    load_records,
    load_records_file,
    safe_ratio,
)

# Conversion targets (industry benchmarks for cold applications)
TARGETS = {
    "apply_to_phone": 0.10,       # 10%: typical cold-apply callback rate
    "phone_to_interview": 0.33,   # 33%
    "interview_to_offer": 0.33,   # 33%
    "full_funnel": 0.05,          # 5% with follow-up + tailoring
}


def compute_funnel(records: list[dict]) -> dict:
    """Count normalized records per funnel stage.

    Every record lands in exactly one bucket, so the counts always sum to
    len(records). Statuses outside the enumeration go to Unknown.
    """
    funnel = {stage: 0 for stage in FUNNEL_STAGES}
    for record in records:
        status = record.get("status")
        if status in funnel:
            funnel[status] += 1
        else:
            funnel[UNKNOWN] += 1
    return funnel


def funnel_total(funnel: dict) -> int:
    return sum(funnel.values())


def get_stage_index(status: str) -> int:
    """Position of a status in the forward progression, -1 if off-path."""
    try:
        return PROGRESSION.index(status)
    except ValueError:
        return -1


def stage_conversion(funnel: dict) -> list[dict]:
    """Conversion between each adjacent pair of progression stages.

    A record at stage i has passed through every stage before it, so
    "reached" is the cumulative count from stage i onward. Rejected and
    Unknown records are off the progression and not counted.
    """
    reached = []
    running = 0
    for stage in reversed(PROGRESSION):
        running += funnel.get(stage, 0)
        reached.append(running)
    reached.reverse()

    steps = []
    for i in range(len(PROGRESSION) - 1):
        steps.append({
            "from": PROGRESSION[i],
            "to": PROGRESSION[i + 1],
            "reached_from": reached[i],
            "reached_to": reached[i + 1],
            "rate": safe_ratio(reached[i + 1], reached[i]),
        })
    return steps


def compute_response_rate(records: list[dict]) -> float:
    """Share of applied records that got a response (0.0-1.0).

    Applied means any status from Applied onward, Rejected included;
    responded means Phone Screen, Interview or Offer.
    """
    applied = sum(1 for r in records if r.get("status") in APPLIED_STATUSES)
    responded = sum(1 for r in records if r.get("status") in RESPONDED_STATUSES)
    return safe_ratio(responded, applied)


def compute_offer_rate(funnel: dict) -> float:
    """Offers as a share of all tracked records (0.0-1.0)."""
    return safe_ratio(funnel.get("Offer", 0), funnel_total(funnel))


def compare_to_targets(funnel: dict) -> list[dict]:
    """Actual conversion rates alongside TARGETS.

    A stage whose denominator is empty counts as OK: there is nothing to be
    below target yet.
    """
    n_applied = sum(funnel.get(s, 0) for s in APPLIED_STATUSES)
    n_phone = sum(funnel.get(s, 0) for s in RESPONDED_STATUSES)
    n_interview = funnel.get("Interview", 0) + funnel.get("Offer", 0)
    n_offer = funnel.get("Offer", 0)

    rows = [
        ("Apply -> Response", "apply_to_phone", n_phone, n_applied),
        ("Response -> Interview", "phone_to_interview", n_interview, n_phone),
        ("Interview -> Offer", "interview_to_offer", n_offer, n_interview),
        ("Full Funnel", "full_funnel", n_offer, n_applied),
    ]

    comparison = []
    for label, key, numerator, denominator in rows:
        actual = safe_ratio(numerator, denominator)
        target = TARGETS[key]
        ok = actual >= target or denominator == 0
        comparison.append({
            "metric": label,
            "target": target,
            "actual": actual,
            "status": "OK" if ok else "BELOW",
        })
    return comparison


def print_funnel(records: list[dict]):
    """Print the stage distribution and stage-to-stage conversion."""
    funnel = compute_funnel(records)
    total = funnel_total(funnel)

    print(f"Pipeline Funnel Summary — {date.today().isoformat()}")
    print(f"{'=' * 60}")
    print(f"Total jobs: {total}")
    print()

    print("Stage Distribution:")
    for stage in FUNNEL_STAGES:
        count = funnel[stage]
        pct = safe_ratio(count, total) * 100
        bar = "#" * int(pct / 2)
        print(f"  {stage:<15s} {count:>4d}  ({pct:>5.1f}%)  {bar}")
    print()

    print("Stage-to-Stage Conversion:")
    for step in stage_conversion(funnel):
        print(f"  {step['from']:<12s} → {step['to']:<12s}: "
              f"{step['reached_to']}/{step['reached_from']} = {step['rate'] * 100:.1f}%")
    print()

    print(f"Response rate: {compute_response_rate(records) * 100:.1f}%")
    print(f"Offer rate:    {compute_offer_rate(funnel) * 100:.1f}%")


def print_targets(records: list[dict]):
    """Print actual conversion against TARGETS."""
    funnel = compute_funnel(records)

    print("Conversion Targets vs Actual")
    print(f"{'=' * 60}")
    print(f"\n  {'Metric':<30s} {'Target':>8s} {'Actual':>8s} {'Status':>8s}")
    print(f"  {'-' * 30} {'-' * 8} {'-' * 8} {'-' * 8}")
    for row in compare_to_targets(funnel):
        print(f"  {row['metric']:<30s} {row['target']:>7.0%} {row['actual']:>7.0%} {row['status']:>8s}")


def load_input(records_path: str | None) -> list[dict]:
    """Load raw records from --records, or the default jobs directory."""
    if records_path:
        return load_records_file(Path(records_path))
    return load_records()


def main():
    parser = argparse.ArgumentParser(description="Pipeline funnel analytics")
    parser.add_argument("--records", help="JSON/YAML file of job records")
    parser.add_argument("--targets", action="store_true", help="Show conversion targets vs actual")
    args = parser.parse_args()

    try:
        records = normalize_records(load_input(args.records))
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.targets:
        print_targets(records)
    else:
        print_funnel(records)


if __name__ == "__main__":
    main()
