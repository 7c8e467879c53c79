# birthorder/stats.py
from __future__ import annotations

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from .models import GroupSummary, Statistics, SubmissionCreate
from .schema import GENDERS


def _fmt(value: float, places: int) -> str:
    # Exact binary ties round away from zero (2.125 -> "2.13"), unlike format().
    return str(Decimal(value).quantize(Decimal(10) ** -places, rounding=ROUND_HALF_UP))


def _region_counts(counts: Counter) -> Dict[str, int]:
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return {region: n for region, n in ordered}


def _gender_counts(counts: Counter) -> Dict[str, int]:
    out = {g: 0 for g in GENDERS}
    for gender, n in counts.items():
        out[gender] = out.get(gender, 0) + n
    return out


def _build(
    total: int,
    sum_family_size: float,
    sum_attitude_score: float,
    sum_education_difference: float,
    regions: Counter,
    genders: Counter,
) -> Statistics:
    # Means are taken in full precision; rounding happens only when formatting.
    return Statistics(
        totalSubmissions=total,
        averageFamilySize=_fmt(sum_family_size / total, 2),
        averageAttitudeScore=_fmt(sum_attitude_score / total, 3),
        averageEducationDifference=_fmt(sum_education_difference / total, 2),
        regions=_region_counts(regions),
        genderDistribution=_gender_counts(genders),
    )


def compute_statistics(records: Iterable[SubmissionCreate]) -> Optional[Statistics]:
    """
    Single pass over every record.

    Returns None when there are no records so callers can tell "no data"
    apart from a zero-valued result.
    """
    total = 0
    sum_family_size = 0.0
    sum_attitude_score = 0.0
    sum_education_difference = 0.0
    regions: Counter = Counter()
    genders: Counter = Counter()

    for rec in records:
        total += 1
        sum_family_size += rec.familySize
        sum_attitude_score += rec.attitudeScore
        sum_education_difference += rec.firstbornEducation - rec.laterbornEducation
        regions[rec.region] += 1
        genders[rec.firstbornGender] += 1

    if total == 0:
        return None

    return _build(
        total,
        sum_family_size,
        sum_attitude_score,
        sum_education_difference,
        regions,
        genders,
    )


def combine_groups(groups: List[GroupSummary]) -> Optional[Statistics]:
    """
    Recombine per-(region, gender) group means into global means.

    Each group mean is weighted by its record count before summing, which
    reproduces the unweighted mean over all records.
    """
    total = 0
    sum_family_size = 0.0
    sum_attitude_score = 0.0
    sum_education_difference = 0.0
    regions: Counter = Counter()
    genders: Counter = Counter()

    for g in groups:
        if g.count <= 0:
            continue
        total += g.count
        sum_family_size += g.avg_family_size * g.count
        sum_attitude_score += g.avg_attitude_score * g.count
        sum_education_difference += g.avg_education_difference * g.count
        regions[g.region] += g.count
        genders[g.gender] += g.count

    if total == 0:
        return None

    return _build(
        total,
        sum_family_size,
        sum_attitude_score,
        sum_education_difference,
        regions,
        genders,
    )
