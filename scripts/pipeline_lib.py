"""Shared utilities for the job search analytics scripts.

Consolidates record loading, settings loading, timestamp parsing, rounding,
and the constants (statuses, stage order, segment attributes, benchmarks)
that every report script reads.
"""

from datetime import date, datetime, timezone
from pathlib import Path

import json
import math
import re

import yaml

from log import get_logger

logger = get_logger(__name__)

REPO_ROOT = Path(__file__).resolve().parent.parent

JOBS_DIR = REPO_ROOT / "data" / "jobs"
CONFIG_DIR = REPO_ROOT / "config"
SETTINGS_FILE = CONFIG_DIR / "settings.yaml"

UNKNOWN = "Unknown"

# Pipeline statuses in funnel order. Matching is case-sensitive.
STATUS_ORDER = [
    "Interested", "Applied", "Phone Screen", "Interview", "Offer", "Rejected",
]
VALID_STATUSES = set(STATUS_ORDER)

FUNNEL_STAGES = STATUS_ORDER + [UNKNOWN]

# Forward progression used for stage-to-stage conversion (Rejected is terminal
# but not a step forward).
PROGRESSION = ["Interested", "Applied", "Phone Screen", "Interview", "Offer"]

APPLIED_STATUSES = {"Applied", "Phone Screen", "Interview", "Offer", "Rejected"}
RESPONDED_STATUSES = {"Phone Screen", "Interview", "Offer"}

# Categorical attributes available for segmentation, with display names.
SEGMENT_ATTRIBUTES = {
    "company_size": "Company Size",
    "industry": "Industry",
    "job_type": "Job Type",
    "application_method": "Application Method",
}
CATEGORICAL_FIELDS = list(SEGMENT_ATTRIBUTES) + ["location"]

# Known values per attribute. Industry has no fixed list: every observed
# value becomes a segment.
SEGMENT_VALUES = {
    "company_size": ["Small (1-50)", "Medium (51-500)", "Large (500+)", "Unknown"],
    "job_type": ["Full-time", "Part-time", "Contract", "Internship"],
    "application_method": [
        "Company Website", "LinkedIn", "Indeed", "Referral", "Recruiter",
    ],
}

# Raw field name aliases -> canonical field. First non-empty alias wins.
FIELD_ALIASES = {
    "id": ["id"],
    "status": ["status", "job_status"],
    "created_at": ["created_at", "createdAt"],
    "applied_date": ["applied_date", "appliedDate"],
    "response_date": ["response_date", "responseDate", "phone_screen_date"],
    "interview_date": ["interview_date", "interviewDate"],
    "offer_date": ["offer_date", "offerDate"],
    "status_changed_at": ["status_changed_at", "statusChangedAt"],
    "application_deadline": ["application_deadline", "applicationDeadline"],
    "company_name": ["company_name", "company"],
    "job_title": ["job_title", "title"],
}

TIMESTAMP_FIELDS = [
    "created_at", "applied_date", "response_date", "interview_date",
    "offer_date", "status_changed_at", "application_deadline",
]

VALID_GRANULARITIES = ("day", "week", "month")

# Per-industry benchmarks for offer rate and response latency.
INDUSTRY_BENCHMARKS = {
    "Software": {"avg_response_days": 10, "offer_rate": 0.08},
    "Finance": {"avg_response_days": 12, "offer_rate": 0.06},
    "Healthcare": {"avg_response_days": 9, "offer_rate": 0.07},
    "Education": {"avg_response_days": 7, "offer_rate": 0.05},
    "(unknown)": {"avg_response_days": 11, "offer_rate": 0.06},
}

# Typical days spent between stage transitions.
TIMELINE_BENCHMARKS = {
    "applied_to_phone": 7,
    "phone_to_interview": 5,
    "interview_to_offer": 10,
    "total_process": 30,
}

DEFAULT_SETTINGS = {
    "weekly_goal": 5,
    "max_insights": 5,
    "window_size": 12,
    "granularity": "month",
    "rolling_periods": 3,
}

SECONDS_PER_DAY = 86_400

# Epoch numbers above this are treated as milliseconds (1e11 s is year 5138).
_EPOCH_MS_THRESHOLD = 1e11

_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


# --- Timestamp parsing ---


def parse_timestamp(value) -> datetime | None:
    """Parse a loosely formatted timestamp into an aware UTC datetime.

    Accepts datetime/date objects (PyYAML produces these for unquoted dates),
    ISO 8601 strings with an optional trailing Z or offset, bare YYYY-MM-DD
    and YYYY-MM strings, and epoch numbers in seconds or milliseconds.
    Naive values are taken as UTC. Returns None for anything unparseable;
    never raises.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        seconds = value / 1000 if abs(value) > _EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    if not text:
        return None

    m = _YEAR_MONTH.match(text)
    if m:
        try:
            return datetime(int(m.group(1)), int(m.group(2)), 1, tzinfo=timezone.utc)
        except ValueError:
            return None

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def days_between(start: datetime, end: datetime) -> float:
    """Elapsed days from start to end (negative when end precedes start)."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def whole_days_between(start: datetime, end: datetime) -> int:
    """Elapsed days floored to an integer, matching floor(ms / 86400000)."""
    return math.floor(days_between(start, end))


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


# --- Rounding and ratios ---


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero for non-negative values (0.5 -> 1).

    Python's round() uses banker's rounding, which would turn 12.5% into 12.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is zero."""
    if not denominator:
        return 0.0
    return numerator / denominator


def percent(numerator: float, denominator: float) -> int:
    """Integer percent rounded half-up, 0 when the denominator is zero."""
    return int(round_half_up(safe_ratio(numerator, denominator) * 100))


# --- Settings ---


def load_settings(path: Path | None = None) -> dict:
    """Load analytics settings from YAML, merged over DEFAULT_SETTINGS.

    A missing file yields the defaults. Raises ValueError if the file is not
    valid YAML, is not a mapping, or holds a value of the wrong type.
    """
    settings = dict(DEFAULT_SETTINGS)
    settings_path = path or SETTINGS_FILE
    if not settings_path.exists():
        return settings

    try:
        with open(settings_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {settings_path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {settings_path} must contain a mapping")

    for key, value in data.items():
        if key not in DEFAULT_SETTINGS:
            logger.warning("Ignoring unknown setting '%s' in %s", key, settings_path)
            continue
        settings[key] = value

    validate_settings(settings)
    return settings


def validate_settings(settings: dict) -> None:
    """Raise ValueError if any setting is out of range."""
    for key in ("weekly_goal", "max_insights", "window_size", "rolling_periods"):
        value = settings.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Setting '{key}' must be an integer, got {value!r}")
    if settings["weekly_goal"] < 0:
        raise ValueError("Setting 'weekly_goal' must be >= 0")
    for key in ("max_insights", "window_size", "rolling_periods"):
        if settings[key] < 1:
            raise ValueError(f"Setting '{key}' must be >= 1")
    if settings.get("granularity") not in VALID_GRANULARITIES:
        raise ValueError(
            f"Setting 'granularity' must be one of {', '.join(VALID_GRANULARITIES)}"
        )


# --- Record loading ---


def load_records(dirs: list[Path] | None = None) -> list[dict]:
    """Load job records from one-record-per-file YAML directories.

    Files starting with an underscore are skipped, as are files whose
    content is not a mapping. Each record gets a _file key. Raises
    ValueError naming the file when one is not valid YAML.
    """
    records = []
    for jobs_dir in (dirs or [JOBS_DIR]):
        if not jobs_dir.exists():
            continue
        for filepath in sorted(jobs_dir.glob("*.yaml")):
            if filepath.name.startswith("_"):
                continue
            try:
                with open(filepath) as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {filepath}: {e}")
            if isinstance(data, dict):
                data["_file"] = filepath.name
                records.append(data)
            else:
                logger.warning("Skipping %s: not a mapping", filepath.name)
    return records


def load_records_file(path: Path, key: str = "jobs") -> list[dict]:
    """Load a list of records from a single JSON or YAML file.

    The file may hold a bare list, or a mapping with the list under `key`
    (the backend export writes {"jobs": [...]}). Raises ValueError when the
    file cannot be parsed or has neither shape.
    """
    text = path.read_text()
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Could not parse {path}: {e}")

    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of records or a {key!r} list")

    records = [r for r in data if isinstance(r, dict)]
    skipped = len(data) - len(records)
    if skipped:
        logger.warning("Skipped %d non-mapping item(s) in %s", skipped, path.name)
    return records
