# birthorder/schema.py
from __future__ import annotations

import re
from typing import Dict, List, Literal, Tuple, get_args


# ---------------------------------------------------------------------
# Fixed enumerations (must match the research dashboard form)
# ---------------------------------------------------------------------
Region = Literal[
    "Canadian",
    "Pacific Islander",
    "Western European",
    "British",
    "Central American",
    "South American",
    "Caribbean",
    "Eastern European",
    "Northern European",
    "East Asian",
    "African",
    "South Asian",
    "Middle Eastern",
    "Other",
]

Gender = Literal["male", "female"]

AgeRange = Literal["18-25", "26-30", "31-35", "35+"]

REGIONS: List[str] = list(get_args(Region))
GENDERS: List[str] = list(get_args(Gender))
AGE_RANGES: List[str] = list(get_args(AgeRange))


# ---------------------------------------------------------------------
# Numeric ranges (inclusive)
# ---------------------------------------------------------------------
FAMILY_SIZE_RANGE: Tuple[int, int] = (1, 20)
ATTITUDE_SCORE_RANGE: Tuple[float, float] = (0.1, 0.7)
EDUCATION_RANGE: Tuple[float, float] = (1, 20)

NOTES_MAX_LENGTH = 1000
EMAIL_MAX_LENGTH = 254

# Separators are mandatory inside each repeat so matching stays linear.
EMAIL_PATTERN = r"\w+(?:[.-]\w+)*@\w+(?:[.-]\w+)*\.\w{2,3}"
EMAIL_RE = re.compile(EMAIL_PATTERN)


# ---------------------------------------------------------------------
# Wire (hyphenated form keys) -> storage (camelCase) mapping
# ---------------------------------------------------------------------
FIELD_MAP: Dict[str, str] = {
    "region": "region",
    "family-size": "familySize",
    "firstborn-gender": "firstbornGender",
    "attitude-score": "attitudeScore",
    "firstborn-education": "firstbornEducation",
    "laterborn-education": "laterbornEducation",
    "age-range": "ageRange",
    "notes": "notes",
    "contact-email": "contactEmail",
}

REQUIRED_FIELDS: List[str] = [
    "region",
    "family-size",
    "firstborn-gender",
    "attitude-score",
    "firstborn-education",
    "laterborn-education",
    "age-range",
]


# camelCase -> snake_case columns used by the relational store
COLUMN_MAP: Dict[str, str] = {
    "id": "id",
    "region": "region",
    "familySize": "family_size",
    "firstbornGender": "firstborn_gender",
    "attitudeScore": "attitude_score",
    "firstbornEducation": "firstborn_education",
    "laterbornEducation": "laterborn_education",
    "ageRange": "age_range",
    "notes": "notes",
    "contactEmail": "contact_email",
    "ipAddress": "ip_address",
    "userAgent": "user_agent",
    "timestamp": "timestamp",
}


def to_storage_keys(data: Dict[str, object]) -> Dict[str, object]:
    """Translate hyphenated wire keys to camelCase; unknown keys are dropped."""
    return {FIELD_MAP[k]: v for k, v in data.items() if k in FIELD_MAP}


def wire_name(storage_key: str) -> str:
    for wire, storage in FIELD_MAP.items():
        if storage == storage_key:
            return wire
    return storage_key
