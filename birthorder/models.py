# birthorder/models.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .schema import (
    ATTITUDE_SCORE_RANGE,
    EDUCATION_RANGE,
    EMAIL_MAX_LENGTH,
    EMAIL_RE,
    FAMILY_SIZE_RANGE,
    NOTES_MAX_LENGTH,
    AgeRange,
    Gender,
    Region,
)


class SubmissionCreate(BaseModel):
    region: Region
    familySize: int = Field(..., ge=FAMILY_SIZE_RANGE[0], le=FAMILY_SIZE_RANGE[1])
    firstbornGender: Gender
    attitudeScore: float = Field(
        ..., ge=ATTITUDE_SCORE_RANGE[0], le=ATTITUDE_SCORE_RANGE[1], allow_inf_nan=False
    )
    firstbornEducation: float = Field(
        ..., ge=EDUCATION_RANGE[0], le=EDUCATION_RANGE[1], allow_inf_nan=False
    )
    laterbornEducation: float = Field(
        ..., ge=EDUCATION_RANGE[0], le=EDUCATION_RANGE[1], allow_inf_nan=False
    )
    ageRange: AgeRange
    notes: str = Field("", max_length=NOTES_MAX_LENGTH)
    contactEmail: str = Field("", max_length=EMAIL_MAX_LENGTH)
    ipAddress: Optional[str] = None
    userAgent: Optional[str] = None

    @field_validator("notes", "contactEmail", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("contactEmail")
    @classmethod
    def _check_email(cls, v: str) -> str:
        if v and not EMAIL_RE.fullmatch(v):
            raise ValueError("Please enter a valid email")
        return v


class Submission(SubmissionCreate):
    id: str = Field(..., min_length=1)
    timestamp: datetime


class GroupSummary(BaseModel):
    """Counts and means for one (region, gender) group, as produced by a database GROUP BY."""

    region: str
    gender: str
    count: int = Field(..., ge=0)
    avg_family_size: float
    avg_attitude_score: float
    avg_education_difference: float


class Statistics(BaseModel):
    totalSubmissions: int
    averageFamilySize: str
    averageAttitudeScore: str
    averageEducationDifference: str
    regions: Dict[str, int] = Field(default_factory=dict)
    genderDistribution: Dict[str, int] = Field(default_factory=dict)


# ---------------------------------------------------------------------
# Response envelopes
# ---------------------------------------------------------------------
class SubmitDataResponse(BaseModel):
    success: bool = True
    message: str = "Data submitted successfully"
    submissionId: str


class SubmissionListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    page: int
    totalPages: int
    submissions: List[Submission] = Field(default_factory=list)


class RegionSubmissionsResponse(BaseModel):
    success: bool = True
    region: str
    count: int
    submissions: List[Submission] = Field(default_factory=list)


class SubmissionResponse(BaseModel):
    success: bool = True
    submission: Submission


class StatisticsResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    statistics: Union[Statistics, Dict[str, int]] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    database: Optional[str] = None
    timestamp: str
    uptime: Optional[float] = None
