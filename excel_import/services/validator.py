"""
validator.py
Maps decoded rows onto the Record schema (name, age, email).
"""

import math
from typing import Any, Dict, List, Optional

from excel_import.models.ingestion import RawRow, Record
from excel_import.services.errors import ValidationError

REQUIRED_FIELDS = ("name", "age", "email")

def _lookup(cells: Dict[str, Any], field: str) -> Optional[Any]:
    # Header labels match field names case-insensitively
    for label, value in cells.items():
        if label.strip().lower() == field:
            return value
    return None

def _clean_name(row: RawRow, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(row.position, "name", "must be text")
    name = value.strip()
    if not name:
        raise ValidationError(row.position, "name", "must not be empty")
    return name

def _clean_age(row: RawRow, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(row.position, "age", f"must be a number, got {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            value = float(text) if text else None
        except ValueError:
            value = None
        if value is None:
            raise ValidationError(row.position, "age", f"must be a number, got {text!r}")
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError(row.position, "age", f"must be a whole number, got {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError(row.position, "age", f"must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(row.position, "age", f"must not be negative, got {value}")
    return value

def _clean_email(row: RawRow, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(row.position, "email", "must be text")
    email = value.strip().lower()
    if not email:
        raise ValidationError(row.position, "email", "must not be empty")
    return email

def validate_row(row: RawRow) -> Record:
    """Map one RawRow onto a Record or raise ValidationError for the first bad field."""
    for field in REQUIRED_FIELDS:
        if _lookup(row.cells, field) is None:
            raise ValidationError(row.position, field, "is required")
    return Record(
        name=_clean_name(row, _lookup(row.cells, "name")),
        age=_clean_age(row, _lookup(row.cells, "age")),
        email=_clean_email(row, _lookup(row.cells, "email")),
    )

def validate_rows(rows: List[RawRow]) -> List[Record]:
    """Validate every row in sheet order, stopping at the first failure.

    Two rows whose emails normalize to the same value reject the batch at the
    later of the two rows.
    """
    records: List[Record] = []
    seen: Dict[str, int] = {}
    for row in rows:
        record = validate_row(row)
        if record.email in seen:
            raise ValidationError(
                row.position,
                "email",
                f"duplicate email '{record.email}' (already used in row {seen[record.email]})",
            )
        seen[record.email] = row.position
        records.append(record)
    return records
