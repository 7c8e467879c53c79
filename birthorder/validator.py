# birthorder/validator.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import SubmissionCreate
from .schema import REQUIRED_FIELDS, to_storage_keys, wire_name


def missing_fields(data: Dict[str, Any]) -> List[str]:
    # Falsy counts as missing: "", 0, None and False are all rejected.
    return [field for field in REQUIRED_FIELDS if not data.get(field)]


def _describe(err: Dict[str, Any]) -> str:
    loc = err.get("loc") or ()
    field = wire_name(str(loc[0])) if loc else "body"
    msg = str(err.get("msg", "invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{field}: {msg}"


def validate_submission(
    data: Any,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> SubmissionCreate:
    """
    Check a raw form payload (hyphenated keys) and return the storage-shaped record.

    Raises ValidationError listing every missing field, or one message per
    violated constraint. Nothing is persisted here.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    missing = missing_fields(data)
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details=missing,
        )

    # Optional notes/contact-email fall back to "" inside SubmissionCreate.
    record = to_storage_keys(data)
    record["ipAddress"] = ip_address
    record["userAgent"] = user_agent

    try:
        return SubmissionCreate.model_validate(record)
    except PydanticValidationError as e:
        details = [_describe(err) for err in e.errors()]
        raise ValidationError("Validation error", details=details) from e
