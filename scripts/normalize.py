"""Record normalization for the analytics engine.

Coerces raw, user-entered job records into one canonical shape so that every
report reads the same field names, the same timestamp type, and the same
segmentation keys. A malformed field is defaulted on its own; the record is
never dropped, so a job with a bad date still counts toward the funnel.
"""

from log import get_logger
from pipeline_lib import (
    CATEGORICAL_FIELDS,
    FIELD_ALIASES,
    TIMESTAMP_FIELDS,
    UNKNOWN,
    VALID_STATUSES,
    parse_timestamp,
)

logger = get_logger(__name__)


def _first_present(raw: dict, aliases: list[str]):
    """Return the first alias value that is not None or a blank string."""
    for alias in aliases:
        value = raw.get(alias)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def normalize_status(value) -> str:
    """Map a raw status to the fixed enumeration, or Unknown.

    Only surrounding whitespace is forgiven: "applied" is not "Applied".
    """
    if not isinstance(value, str):
        return UNKNOWN
    status = value.strip()
    return status if status in VALID_STATUSES else UNKNOWN


def normalize_attribute(value) -> dict | None:
    """Build a {key, label} pair for a categorical value.

    The key is trimmed and lower-cased for grouping; the label keeps the
    original casing for display. Missing and blank values return None.
    """
    if value is None or isinstance(value, bool):
        return None
    label = str(value).strip()
    if not label:
        return None
    return {"key": label.lower(), "label": label}


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_record(raw) -> dict:
    """Normalize one raw record. Never raises."""
    if not isinstance(raw, dict):
        logger.debug("Record is not a mapping (%s); using defaults", type(raw).__name__)
        raw = {}

    record = {
        "id": _first_present(raw, FIELD_ALIASES["id"]),
        "status": normalize_status(_first_present(raw, FIELD_ALIASES["status"])),
        "company_name": _text(_first_present(raw, FIELD_ALIASES["company_name"])),
        "job_title": _text(_first_present(raw, FIELD_ALIASES["job_title"])),
    }

    for field in TIMESTAMP_FIELDS:
        value = _first_present(raw, FIELD_ALIASES[field])
        parsed = parse_timestamp(value)
        if value is not None and parsed is None:
            logger.debug("Record %s: unparseable %s %r", record["id"], field, value)
        record[field] = parsed

    attributes = {}
    for field in CATEGORICAL_FIELDS:
        attr = normalize_attribute(raw.get(field))
        if attr:
            attributes[field] = attr
    record["attributes"] = attributes

    return record


def normalize_records(raws) -> list[dict]:
    """Normalize every raw record, preserving count and order."""
    return [normalize_record(raw) for raw in (raws or [])]


def attribute_key(record: dict, attribute: str) -> str | None:
    """Segmentation key of a normalized record's attribute, or None."""
    attr = record.get("attributes", {}).get(attribute)
    return attr["key"] if attr else None


def attribute_label(record: dict, attribute: str) -> str | None:
    """Display label of a normalized record's attribute, or None."""
    attr = record.get("attributes", {}).get(attribute)
    return attr["label"] if attr else None
