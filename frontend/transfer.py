"""
frontend/transfer.py
Bulk upload parsing and CSV export for building records (pandas).
"""

import io
import json
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

# (wire name, label, kind) for every known building field, in display order.
# kind: "text" | "number" | "int" | "date" | "long"
BUILDING_FIELDS: List[Tuple[str, str, str]] = [
    ("projectId", "Project ID", "text"),
    ("projectSubId", "Project Sub ID", "text"),
    ("projectName", "Project Name", "text"),
    ("buildingName", "Building Name", "text"),
    ("address", "Address", "text"),
    ("areaClient", "Area (sq ft)", "number"),
    ("qualifyingArea", "Qualifying Area (sq ft)", "number"),
    ("yearPIS", "Year Placed in Service", "int"),
    ("bldgType", "Building Type", "text"),
    ("inspectionDate", "Inspection Date", "date"),
    ("improvements", "Improvements", "long"),
    ("attemptWholeBldg", "Attempt Whole Building", "text"),
    ("legalEntity", "Legal Entity", "text"),
    ("costEEBCP", "Cost EEBCP", "number"),
    ("allowedWattage", "Allowed Wattage", "number"),
    ("proposedWattage", "Proposed Wattage", "number"),
    ("baselineLPD", "Baseline LPD", "number"),
    ("proposedLPD", "Proposed LPD", "number"),
    ("reductionPercent", "Reduction %", "number"),
    ("confirmedBy", "Confirmed By", "text"),
    ("guaranteedCat", "Guaranteed Category", "text"),
    ("possibleCat", "Possible Category", "text"),
    ("missingInfo", "Missing Info", "long"),
    ("notes", "Notes", "long"),
    ("additionalNotes", "Additional Notes", "long"),
    ("sharefileLink", "ShareFile Link", "text"),
    ("startDate", "Start Date", "date"),
    ("dueDate", "Due Date", "date"),
    ("submitFA", "Submit FA", "text"),
]

FIELD_NAMES = [name for name, _, _ in BUILDING_FIELDS]
REQUIRED_FIELDS = ("projectId", "buildingName")


class UploadError(ValueError):
    """The uploaded file could not be turned into a list of building objects."""


def _drop_missing(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if not (v is None or (isinstance(v, float) and pd.isna(v)) or v == "")}


def parse_upload(filename: str, data: bytes) -> List[Dict[str, Any]]:
    """
    Parse a .json or .csv upload into building dicts.

    JSON may be an array of objects or {"buildings": [...]}. CSV headers are
    wire names (projectId, buildingName, ...); every cell is read as text and
    empty cells are dropped, leaving type coercion to the backend.

    Raises:
        UploadError: Unsupported extension or malformed content
    """
    name = filename.lower()

    if name.endswith(".json"):
        try:
            parsed = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise UploadError(f"Invalid JSON: {e}") from e

        if isinstance(parsed, dict):
            parsed = parsed.get("buildings")
        if not isinstance(parsed, list) or not all(isinstance(item, dict) for item in parsed):
            raise UploadError("JSON must be an array of building objects")
        return [_drop_missing(item) for item in parsed]

    if name.endswith(".csv"):
        try:
            df = pd.read_csv(io.BytesIO(data), dtype=str, keep_default_na=True)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise UploadError(f"Invalid CSV: {e}") from e

        df.columns = [str(c).strip() for c in df.columns]
        return [_drop_missing(row) for row in df.to_dict(orient="records")]

    raise UploadError("Upload a .json or .csv file")


def rows_missing_required(records: List[Dict[str, Any]]) -> List[int]:
    """1-based positions of records without projectId or buildingName."""
    return [
        i for i, record in enumerate(records, start=1)
        if not all(str(record.get(field) or "").strip() for field in REQUIRED_FIELDS)
    ]


def flatten_export(projects: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    One row per building from the /projects/all payload.

    Known fields come first in display order, then id/createdAt, then any
    extra keys alphabetically.
    """
    rows: List[Dict[str, Any]] = []
    for project in projects:
        for building in project.get("buildings", []):
            row = dict(building)
            row.setdefault("projectId", project.get("projectId"))
            row.setdefault("projectName", project.get("projectName"))
            rows.append(row)

    leading = FIELD_NAMES + ["id", "createdAt"]
    if not rows:
        return pd.DataFrame(columns=leading)

    df = pd.DataFrame(rows)
    extras = sorted(c for c in df.columns if c not in leading)
    return df.reindex(columns=leading + extras)


def export_csv_bytes(projects: List[Dict[str, Any]]) -> bytes:
    return flatten_export(projects).to_csv(index=False).encode("utf-8")


def form_payload(values: Dict[str, Any], original: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Turn dialog form values into a request body.

    Create (no original): only filled-in fields. Edit: only fields whose value
    differs from the stored record; a cleared field is sent as null.
    """
    clean: Dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, str):
            value = value.strip()
        clean[key] = None if value == "" else value

    if original is None:
        return {k: v for k, v in clean.items() if v is not None}

    return {k: v for k, v in clean.items() if original.get(k) != v}
