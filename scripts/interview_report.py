#!/usr/bin/env python3
"""Interview outcome analytics: conversion by format, type and industry.

Reads interview records ({id, result, format, interview_type, industry,
score}) and optional feedback records ({interview_id, provider, themes}).

Usage:
    python scripts/interview_report.py --interviews interviews.yaml
    python scripts/interview_report.py --interviews i.json --feedback f.json
"""

import argparse
import sys
from collections import Counter
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from pipeline_lib import load_records_file, safe_ratio


def _breakdown(interviews: list[dict], field: str, name: str) -> list[dict]:
    """Interviews and offer conversion per value of field, busiest first."""
    totals = Counter()
    offers = Counter()
    for interview in interviews:
        key = interview.get(field) or "unknown"
        totals[key] += 1
        if interview.get("result") is True:
            offers[key] += 1

    rows = [
        {
            name: key,
            "interviews": totals[key],
            "offers": offers[key],
            "conversion": safe_ratio(offers[key], totals[key]),
        }
        for key in totals
    ]
    rows.sort(key=lambda r: (-r["interviews"], str(r[name])))
    return rows


def _average(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def mock_interview_ids(interviews: list[dict], feedbacks: list[dict]) -> set:
    """IDs of practice interviews: typed "mock" or reviewed by a mock coach."""
    ids = set()
    for f in feedbacks:
        if "mock" in str(f.get("provider", "")).lower():
            ids.add(f.get("interview_id"))
    for interview in interviews:
        if str(interview.get("interview_type", "")).lower() == "mock":
            ids.add(interview.get("id"))
    return ids


def compute_overview(interviews, feedbacks=()) -> dict:
    """Aggregate interview outcomes for one user.

    An interview converts when its result is exactly True. Mock versus real
    averages are None on the side with no numeric scores; improvement is
    None unless both sides have scores.
    """
    interviews = [i for i in (interviews or []) if isinstance(i, dict)]
    feedbacks = [f for f in (feedbacks or []) if isinstance(f, dict)]

    count = len(interviews)
    offers = sum(1 for i in interviews if i.get("result") is True)

    themes = Counter()
    for f in feedbacks:
        for theme in f.get("themes") or []:
            themes[theme] += 1
    feedback_themes = [
        {"theme": theme, "count": n}
        for theme, n in sorted(themes.items(), key=lambda item: (-item[1], item[0]))
    ]

    mock_ids = mock_interview_ids(interviews, feedbacks)
    mock_scores = []
    real_scores = []
    for interview in interviews:
        score = interview.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            continue
        if interview.get("id") in mock_ids:
            mock_scores.append(score)
        else:
            real_scores.append(score)

    mock_avg = _average(mock_scores)
    real_avg = _average(real_scores)
    improvement = None
    if mock_avg is not None and real_avg is not None:
        improvement = real_avg - mock_avg

    return {
        "conversion_rate": safe_ratio(offers, count),
        "interviews_count": count,
        "offers_count": offers,
        "format_breakdown": _breakdown(interviews, "format", "format"),
        "type_breakdown": _breakdown(interviews, "interview_type", "type"),
        "industry_breakdown": _breakdown(interviews, "industry", "industry"),
        "mock_vs_real": {
            "mock_average": mock_avg,
            "real_average": real_avg,
            "improvement": improvement,
        },
        "feedback_themes": feedback_themes,
    }


def print_overview(overview: dict):
    """Print interview conversion and breakdowns."""
    print("INTERVIEW OUTCOMES")
    print("=" * 60)
    print(f"  Interviews: {overview['interviews_count']} | Offers: {overview['offers_count']}"
          f" | Conversion: {overview['conversion_rate'] * 100:.1f}%")

    for title, key, field in (
        ("By format", "format_breakdown", "format"),
        ("By type", "type_breakdown", "type"),
        ("By industry", "industry_breakdown", "industry"),
    ):
        rows = overview[key]
        if not rows:
            continue
        print(f"\n  {title}:")
        for r in rows:
            print(f"    {str(r[field]):<20s} n={r['interviews']:>3d}  conv={r['conversion'] * 100:.1f}%")

    mvr = overview["mock_vs_real"]
    if mvr["improvement"] is not None:
        print(f"\n  Mock avg {mvr['mock_average']:.1f} → real avg {mvr['real_average']:.1f}"
              f" ({mvr['improvement']:+.1f})")

    if overview["feedback_themes"]:
        print("\n  Feedback themes:")
        for t in overview["feedback_themes"][:10]:
            print(f"    {t['theme']:<25s} {t['count']}")
    print()


def main():
    parser = argparse.ArgumentParser(description="Interview outcome analytics")
    parser.add_argument("--interviews", required=True, help="JSON/YAML list of interviews")
    parser.add_argument("--feedback", help="JSON/YAML list of interview feedback")
    args = parser.parse_args()

    try:
        interviews = load_records_file(Path(args.interviews), key="interviews")
        feedbacks = load_records_file(Path(args.feedback), key="feedback") if args.feedback else []
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print_overview(compute_overview(interviews, feedbacks))


if __name__ == "__main__":
    main()
