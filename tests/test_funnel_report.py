"""Tests for scripts/funnel_report.py"""

import json
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "scripts"))

from funnel_report import (
    TARGETS,
    compare_to_targets,
    compute_funnel,
    compute_offer_rate,
    compute_response_rate,
    funnel_total,
    get_stage_index,
    main,
    print_funnel,
    stage_conversion,
)
from normalize import normalize_records
from pipeline_lib import FUNNEL_STAGES


def _make_records(*statuses):
    """Normalized records with the given raw statuses (None = missing)."""
    raws = []
    for i, status in enumerate(statuses):
        raw = {"id": i}
        if status is not None:
            raw["status"] = status
        raws.append(raw)
    return normalize_records(raws)


def _scenario():
    """4 Applied, 3 Interview, 3 without status."""
    return _make_records(*(["Applied"] * 4 + ["Interview"] * 3 + [None] * 3))


# --- TARGETS ---


def test_targets_are_rates():
    for key, val in TARGETS.items():
        assert 0 < val <= 1.0, f"Target {key} = {val} not in (0, 1]"


# --- get_stage_index ---


def test_stage_index_first():
    assert get_stage_index("Interested") == 0


def test_stage_index_offer_last():
    assert get_stage_index("Offer") == 4


def test_stage_index_off_path():
    assert get_stage_index("Rejected") == -1
    assert get_stage_index("Unknown") == -1


# --- compute_funnel ---


class TestComputeFunnel:
    def test_scenario_counts(self):
        funnel = compute_funnel(_scenario())
        assert funnel["Applied"] == 4
        assert funnel["Interview"] == 3
        assert funnel["Unknown"] == 3
        assert funnel["Offer"] == 0
        assert funnel_total(funnel) == 10

    def test_every_stage_present(self):
        assert list(compute_funnel([])) == FUNNEL_STAGES

    def test_empty_all_zero(self):
        funnel = compute_funnel([])
        assert all(count == 0 for count in funnel.values())

    def test_case_mismatch_is_unknown(self):
        funnel = compute_funnel(_make_records("offer", "OFFER", "Offer"))
        assert funnel["Offer"] == 1
        assert funnel["Unknown"] == 2

    def test_sum_equals_input_length(self):
        statuses = ["Applied", "Rejected", "bogus", None, "Offer", "Interested", 7]
        records = _make_records(*statuses)
        assert funnel_total(compute_funnel(records)) == len(records)

    def test_order_independent(self):
        records = _scenario() + _make_records("Offer", "Rejected", "Phone Screen")
        shuffled = list(records)
        random.Random(3).shuffle(shuffled)
        assert compute_funnel(shuffled) == compute_funnel(records)

    def test_unnormalized_status_goes_to_unknown(self):
        """Records that skipped normalization still land in one bucket."""
        funnel = compute_funnel([{"status": "Hired"}, {}])
        assert funnel["Unknown"] == 2


# --- stage_conversion ---


def test_stage_conversion_cumulative():
    steps = stage_conversion(compute_funnel(_scenario()))
    by_pair = {(s["from"], s["to"]): s for s in steps}
    assert by_pair[("Applied", "Phone Screen")]["reached_from"] == 7
    assert by_pair[("Applied", "Phone Screen")]["reached_to"] == 3
    assert by_pair[("Phone Screen", "Interview")]["rate"] == 1.0
    assert by_pair[("Interview", "Offer")]["rate"] == 0.0


def test_stage_conversion_empty_no_division_error():
    steps = stage_conversion(compute_funnel([]))
    assert len(steps) == 4
    assert all(s["rate"] == 0.0 for s in steps)


# --- Rates ---


def test_response_rate_scenario():
    assert compute_response_rate(_scenario()) == pytest.approx(3 / 7)


def test_response_rate_counts_rejected_as_applied():
    records = _make_records("Rejected", "Rejected", "Phone Screen", "Interested")
    assert compute_response_rate(records) == pytest.approx(1 / 3)


def test_response_rate_empty():
    assert compute_response_rate([]) == 0.0


def test_offer_rate():
    funnel = compute_funnel(_make_records("Offer", "Applied", "Applied", "Rejected"))
    assert compute_offer_rate(funnel) == 0.25


def test_offer_rate_empty():
    assert compute_offer_rate(compute_funnel([])) == 0.0


# --- compare_to_targets ---


def test_compare_to_targets_scenario():
    rows = {r["metric"]: r for r in compare_to_targets(compute_funnel(_scenario()))}
    assert rows["Apply -> Response"]["status"] == "OK"
    assert rows["Interview -> Offer"]["status"] == "BELOW"
    assert rows["Full Funnel"]["actual"] == 0.0


def test_compare_to_targets_empty_is_ok():
    rows = compare_to_targets(compute_funnel([]))
    assert all(r["status"] == "OK" for r in rows)


# --- Output ---


def test_print_funnel(capsys):
    print_funnel(_scenario())
    out = capsys.readouterr().out
    assert "Total jobs: 10" in out
    assert "Unknown" in out
    assert "Response rate: 42.9%" in out


def test_main_reads_records_file(tmp_path, monkeypatch, capsys):
    path = tmp_path / "jobs.json"
    path.write_text(json.dumps({"jobs": [{"status": "Applied"}, {"status": "Offer"}]}))
    monkeypatch.setattr(sys, "argv", ["funnel_report.py", "--records", str(path), "--targets"])
    main()
    out = capsys.readouterr().out
    assert "Conversion Targets vs Actual" in out


def test_main_bad_file_exits(tmp_path, monkeypatch, capsys):
    path = tmp_path / "jobs.json"
    path.write_text("{}")
    monkeypatch.setattr(sys, "argv", ["funnel_report.py", "--records", str(path)])
    with pytest.raises(SystemExit) as exc:
        main()
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err
