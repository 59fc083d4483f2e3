"""Tests for scripts/durations.py"""

import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "scripts"))

from durations import (
    action_dates,
    deadline_adherence,
    print_durations,
    stage_durations,
    time_to_offer,
    timeline_vs_benchmarks,
)
from normalize import normalize_record, normalize_records

TODAY = date(2024, 3, 15)


# --- stage_durations ---


def test_stage_durations_empty_all_zero():
    durations = stage_durations([])
    assert durations == {"Interested": 0.0, "Applied": 0.0, "Phone Screen": 0.0, "Interview": 0.0}


def test_stage_durations_averages():
    records = normalize_records([
        {"created_at": "2024-01-01", "applied_date": "2024-01-03", "response_date": "2024-01-10"},
        {"created_at": "2024-01-01", "applied_date": "2024-01-05"},
    ])
    durations = stage_durations(records)
    assert durations["Interested"] == 3.0
    assert durations["Applied"] == 7.0
    assert durations["Phone Screen"] == 0.0


def test_stage_durations_zero_span_counts():
    records = normalize_records([
        {"applied_date": "2024-01-01", "response_date": "2024-01-01"},
        {"applied_date": "2024-01-01", "response_date": "2024-01-05"},
    ])
    assert stage_durations(records)["Applied"] == 2.0


def test_stage_durations_negative_span_skipped():
    records = normalize_records([
        {"applied_date": "2024-01-10", "response_date": "2024-01-01"},
        {"applied_date": "2024-01-01", "response_date": "2024-01-05"},
    ])
    assert stage_durations(records)["Applied"] == 4.0


def test_stage_durations_one_decimal():
    records = normalize_records([
        {"interview_date": "2024-01-01T00:00:00Z", "offer_date": "2024-01-01T08:00:00Z"},
    ])
    assert stage_durations(records)["Interview"] == 0.3


# --- time_to_offer ---


def test_time_to_offer_mean():
    records = normalize_records([
        {"status": "Offer", "applied_date": "2024-01-01", "offer_date": "2024-01-31"},
        {"status": "Offer", "applied_date": "2024-01-01", "status_changed_at": "2024-01-11"},
    ])
    assert time_to_offer(records) == 20.0


def test_time_to_offer_ignores_non_offers():
    records = normalize_records([
        {"status": "Interview", "applied_date": "2024-01-01", "status_changed_at": "2024-03-01"},
        {"status": "Offer", "applied_date": "2024-01-01", "offer_date": "2024-01-15"},
    ])
    assert time_to_offer(records) == 14.0


def test_time_to_offer_missing_timestamps():
    records = normalize_records([{"status": "Offer", "applied_date": "2024-01-01"}, {"status": "Offer"}])
    assert time_to_offer(records) == 0.0


def test_time_to_offer_empty():
    assert time_to_offer([]) == 0.0


# --- deadline_adherence ---


def _job(deadline=None, **fields):
    raw = dict(fields)
    if deadline:
        raw["application_deadline"] = deadline
    return raw


class TestDeadlineAdherence:
    def test_met_and_missed(self):
        records = normalize_records([
            _job("2024-03-10", status="Applied", applied_date="2024-03-08"),
            _job("2024-03-10", status="Applied", applied_date="2024-03-12"),
        ])
        result = deadline_adherence(records, TODAY)
        assert result["met"] == 1
        assert result["missed"] == 1
        assert result["adherence"] == 0.5

    def test_same_day_is_met(self):
        records = normalize_records([
            _job("2024-03-10", status="Applied", applied_date="2024-03-10T23:00:00Z"),
        ])
        assert deadline_adherence(records, TODAY)["met"] == 1

    def test_any_action_before_deadline_counts(self):
        records = normalize_records([
            _job("2024-03-10", status="Interview", applied_date="2024-03-12",
                 response_date="2024-03-09"),
        ])
        assert deadline_adherence(records, TODAY)["met"] == 1

    def test_status_change_counts_as_action(self):
        records = normalize_records([
            _job("2024-03-10", status="Rejected", status_changed_at="2024-03-05"),
        ])
        assert deadline_adherence(records, TODAY)["met"] == 1

    def test_interested_status_change_is_not_action(self):
        records = normalize_records([
            _job("2024-03-01", status="Interested", status_changed_at="2024-02-20"),
        ])
        assert deadline_adherence(records, TODAY)["missed"] == 1

    def test_no_action_deadline_passed_is_missed(self):
        records = normalize_records([_job("2024-03-01", status="Interested")])
        assert deadline_adherence(records, TODAY) == {
            "met": 0, "missed": 1, "pending": 0, "adherence": 0.0,
        }

    def test_no_action_deadline_ahead_is_missed_and_open(self):
        records = normalize_records([
            _job("2024-03-20", status="Interested"),
            _job("2024-03-15", status="Interested"),
        ])
        result = deadline_adherence(records, TODAY)
        assert result["missed"] == 2
        assert result["pending"] == 2
        assert result["adherence"] == 0.0

    def test_open_deadline_stays_in_ratio(self):
        """Every deadline-bearing record lands in met or missed."""
        records = normalize_records([
            _job("2024-05-10", status="Applied", applied_date="2024-05-01"),
            _job("2030-01-01", status="Interested"),
        ])
        result = deadline_adherence(records, date(2024, 6, 1))
        assert result["met"] + result["missed"] == 2
        assert result["pending"] == 1
        assert result["adherence"] == 0.5

    def test_offset_timestamp_compared_on_utc_day(self):
        """23:00 at -05:00 on the deadline day is 04:00 UTC the day after."""
        records = normalize_records([
            _job("2024-03-05", status="Applied", applied_date="2024-03-05T23:00:00-05:00"),
        ])
        assert deadline_adherence(records, TODAY)["missed"] == 1

    def test_records_without_deadline_excluded(self):
        records = normalize_records([
            _job(status="Applied", applied_date="2024-03-08"),
            _job("2024-03-10", status="Applied", applied_date="2024-03-08"),
        ])
        result = deadline_adherence(records, TODAY)
        assert result["met"] + result["missed"] == 1
        assert result["adherence"] == 1.0

    def test_empty(self):
        assert deadline_adherence([], TODAY)["adherence"] == 0.0


def test_action_dates():
    record = normalize_record({
        "status": "Applied",
        "applied_date": "2024-03-08T10:00:00Z",
        "status_changed_at": "2024-03-09",
    })
    assert action_dates(record) == [date(2024, 3, 8), date(2024, 3, 9)]


# --- timeline_vs_benchmarks ---


def test_timeline_statuses():
    records = normalize_records([
        {"applied_date": "2024-01-01", "response_date": "2024-01-16"},
        {"response_date": "2024-01-16", "interview_date": "2024-01-17"},
    ])
    rows = {r["stage"]: r for r in timeline_vs_benchmarks(records)}
    assert rows["Applied → Phone Screen"]["avg_days"] == 15.0
    assert rows["Applied → Phone Screen"]["delta"] == 8.0
    assert rows["Applied → Phone Screen"]["status"] == "slow"
    assert rows["Phone Screen → Interview"]["status"] == "fast"
    assert rows["Interview → Offer"]["status"] == "normal"
    assert rows["Interview → Offer"]["count"] == 0


def test_timeline_within_band_is_normal():
    records = normalize_records([{"applied_date": "2024-01-01", "response_date": "2024-01-12"}])
    row = timeline_vs_benchmarks(records)[0]
    assert row["delta"] == 4.0
    assert row["status"] == "normal"


def test_timeline_custom_benchmarks():
    benchmarks = {"applied_to_phone": 1, "phone_to_interview": 1,
                  "interview_to_offer": 1, "total_process": 1}
    records = normalize_records([{"applied_date": "2024-01-01", "response_date": "2024-01-03"}])
    row = timeline_vs_benchmarks(records, benchmarks)[0]
    assert row["benchmark"] == 1
    assert row["delta"] == 1.0


# --- Output ---


def test_print_durations(capsys):
    records = normalize_records([
        {"created_at": "2024-01-01", "applied_date": "2024-01-03", "status": "Applied"},
    ])
    print_durations(records)
    out = capsys.readouterr().out
    assert "STAGE TIMING" in out
    assert "Interested" in out
    assert "Average time to offer: 0.0 days" in out
