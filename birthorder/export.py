# birthorder/export.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from .errors import ExportError


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value)
    # Only commas are handled; embedded quotes and newlines pass through as-is.
    if isinstance(value, str) and "," in text:
        return f'"{text}"'
    return text


def to_csv(rows: List[Dict[str, Any]]) -> str:
    """
    Render store rows as CSV text.

    The header is the first row's own key order, so column order follows
    whichever store produced the rows.
    """
    if not rows:
        raise ExportError("No data to export")

    keys = list(rows[0].keys())
    lines = [",".join(keys)]
    for row in rows:
        lines.append(",".join(_cell(row.get(k)) for k in keys))
    return "\n".join(lines)
