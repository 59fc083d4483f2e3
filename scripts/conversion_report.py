#!/usr/bin/env python3
"""Response and offer rates segmented by categorical attribute.

Usage:
    python scripts/conversion_report.py                       # All attributes
    python scripts/conversion_report.py --by industry         # One attribute
    python scripts/conversion_report.py --benchmarks          # Industry vs benchmark
"""

import argparse
import sys
from collections import Counter, defaultdict
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from normalize import attribute_key, attribute_label, normalize_records
from pipeline_lib import (
    INDUSTRY_BENCHMARKS,
    SEGMENT_ATTRIBUTES,
    SEGMENT_VALUES,
    load_records,
    load_records_file,
    percent,
    round_half_up,
    safe_ratio,
    whole_days_between,
)


def _display_label(labels: Counter) -> str:
    """Most frequent label; ties go to the lexicographically smallest."""
    return min(labels.items(), key=lambda item: (-item[1], item[0]))[0]


def _avg_days_to_response(group: list[dict]) -> float:
    """Mean whole days from applied to response, one decimal, 0 if none.

    Only records with both dates and response on or after applied count.
    """
    days = []
    for record in group:
        applied = record.get("applied_date")
        response = record.get("response_date")
        if applied is None or response is None or response < applied:
            continue
        days.append(whole_days_between(applied, response))
    if not days:
        return 0.0
    return round_half_up(sum(days) / len(days), 1)


def segment(records: list[dict], attribute: str, allowed_values=None) -> list[dict]:
    """Compute per-value response statistics for one attribute.

    Args:
        records: Normalized records.
        attribute: Categorical field name (e.g. "company_size").
        allowed_values: Optional whitelist of values; compared
            case-insensitively. Observed values outside it are ignored.

    Returns:
        Segments sorted by response_rate desc, then total desc, then value.
        Records without the attribute are excluded; empty segments never
        appear.
    """
    allowed = None
    if allowed_values is not None:
        allowed = {str(v).strip().lower() for v in allowed_values if str(v).strip()}

    groups: dict[str, list[dict]] = defaultdict(list)
    labels: dict[str, Counter] = defaultdict(Counter)
    for record in records:
        key = attribute_key(record, attribute)
        if key is None:
            continue
        if allowed is not None and key not in allowed:
            continue
        groups[key].append(record)
        labels[key][attribute_label(record, attribute)] += 1

    category = SEGMENT_ATTRIBUTES.get(attribute, attribute.replace("_", " ").title())

    segments = []
    for key, group in groups.items():
        total = len(group)
        responded = sum(1 for r in group if r.get("response_date") is not None)
        offers = sum(1 for r in group if r.get("status") == "Offer")
        segments.append({
            "category": category,
            "attribute": attribute,
            "value": _display_label(labels[key]),
            "key": key,
            "total": total,
            "responded": responded,
            "response_rate": percent(responded, total),
            "offers": offers,
            "offer_rate": percent(offers, total),
            "avg_days_to_response": _avg_days_to_response(group),
        })

    segments.sort(key=lambda s: (-s["response_rate"], -s["total"], s["key"]))
    return segments


def segment_report(records: list[dict], attributes=None) -> list[dict]:
    """Concatenate per-attribute segments in attribute order.

    Attributes with a known value list (SEGMENT_VALUES) are restricted to it;
    the rest use every observed value.
    """
    report = []
    for attribute in (attributes or list(SEGMENT_ATTRIBUTES)):
        report.extend(segment(records, attribute, SEGMENT_VALUES.get(attribute)))
    return report


def top_segment(segments: list[dict]) -> dict | None:
    """Highest response-rate segment across a combined report."""
    if not segments:
        return None
    return min(segments, key=lambda s: (-s["response_rate"], -s["total"], s["category"], s["key"]))


def low_segments(segments: list[dict], max_rate: int = 10, min_total: int = 5) -> list[dict]:
    """Segments with enough volume and a response rate below max_rate."""
    return [s for s in segments if s["response_rate"] < max_rate and s["total"] >= min_total]


def compare_to_benchmarks(segments: list[dict], benchmarks=None) -> list[dict]:
    """Compare per-industry offer rates against benchmark offer rates.

    Industries without a benchmark use the "(unknown)" row. Rates are
    fractions (0.0-1.0); sorted by delta desc, then value.
    """
    benchmarks = benchmarks or INDUSTRY_BENCHMARKS
    fallback = benchmarks["(unknown)"]
    by_key = {k.lower(): v for k, v in benchmarks.items()}

    rows = []
    for s in segments:
        bm = by_key.get(s["key"], fallback)
        user_rate = safe_ratio(s["offers"], s["total"])
        rows.append({
            "value": s["value"],
            "user_rate": user_rate,
            "benchmark_rate": bm["offer_rate"],
            "delta": user_rate - bm["offer_rate"],
            "offers": s["offers"],
            "total": s["total"],
        })
    rows.sort(key=lambda r: (-r["delta"], r["value"]))
    return rows


def print_segments(title: str, segments: list[dict]):
    """Print a segment table."""
    print(f"\n{title}")
    print("-" * len(title))

    if not segments:
        print("  No data available.")
        return

    print(f"  {'Value':<24s} {'Total':>6s} {'Resp':>5s} {'Rate':>6s} {'Offers':>7s} {'Days':>6s}")
    for s in segments:
        print(f"  {s['value']:<24s} {s['total']:>6d} {s['responded']:>5d} "
              f"{s['response_rate']:>5d}% {s['offers']:>7d} {s['avg_days_to_response']:>6.1f}")


def print_benchmarks(records: list[dict]):
    """Print industry offer rates against benchmarks."""
    rows = compare_to_benchmarks(segment(records, "industry"))
    print("\nINDUSTRY VS BENCHMARK")
    print("-" * 21)
    if not rows:
        print("  No data available.")
        return
    for r in rows:
        sign = "+" if r["delta"] >= 0 else ""
        print(f"  {r['value']:<24s} you {r['user_rate']:>6.1%}  benchmark {r['benchmark_rate']:>6.1%}"
              f"  ({sign}{r['delta'] * 100:.1f} pts, {r['offers']}/{r['total']})")


def main():
    parser = argparse.ArgumentParser(description="Segmented response rate report")
    parser.add_argument("--records", help="JSON/YAML file of job records")
    parser.add_argument("--by", choices=sorted(SEGMENT_ATTRIBUTES) + ["location"],
                        help="Single attribute to segment by")
    parser.add_argument("--benchmarks", action="store_true",
                        help="Compare industry offer rates to benchmarks")
    args = parser.parse_args()

    try:
        raw = load_records_file(Path(args.records)) if args.records else load_records()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    records = normalize_records(raw)

    print("=" * 60)
    print("RESPONSE RATE REPORT")
    print("=" * 60)
    print(f"\nJobs: {len(records)}")

    if args.benchmarks:
        print_benchmarks(records)
        return

    attributes = [args.by] if args.by else list(SEGMENT_ATTRIBUTES)
    for attribute in attributes:
        title = f"BY {attribute.replace('_', ' ').upper()}"
        print_segments(title, segment(records, attribute, SEGMENT_VALUES.get(attribute)))
    print()


if __name__ == "__main__":
    main()
