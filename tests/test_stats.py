import random
from collections import defaultdict

import pytest

from birthorder.models import GroupSummary, SubmissionCreate
from birthorder.schema import AGE_RANGES, GENDERS, REGIONS
from birthorder.stats import combine_groups, compute_statistics


def _record(region="British", size=3, gender="male", attitude=0.45, first=16.0, later=14.0):
    return SubmissionCreate(
        region=region,
        familySize=size,
        firstbornGender=gender,
        attitudeScore=attitude,
        firstbornEducation=first,
        laterbornEducation=later,
        ageRange="26-30",
    )


def _random_records(n, seed=7):
    rng = random.Random(seed)
    return [
        SubmissionCreate(
            region=rng.choice(REGIONS[:5]),
            familySize=rng.randint(1, 20),
            firstbornGender=rng.choice(GENDERS),
            attitudeScore=round(rng.uniform(0.1, 0.7), 3),
            firstbornEducation=round(rng.uniform(1, 20), 1),
            laterbornEducation=round(rng.uniform(1, 20), 1),
            ageRange=rng.choice(AGE_RANGES),
        )
        for _ in range(n)
    ]


def _groups(records):
    buckets = defaultdict(list)
    for r in records:
        buckets[(r.region, r.firstbornGender)].append(r)
    out = []
    for (region, gender), rs in buckets.items():
        n = len(rs)
        out.append(
            GroupSummary(
                region=region,
                gender=gender,
                count=n,
                avg_family_size=sum(r.familySize for r in rs) / n,
                avg_attitude_score=sum(r.attitudeScore for r in rs) / n,
                avg_education_difference=sum(r.firstbornEducation - r.laterbornEducation for r in rs) / n,
            )
        )
    return out


def test_empty_input_means_no_data():
    assert compute_statistics([]) is None
    assert combine_groups([]) is None


def test_single_record():
    stats = compute_statistics([_record()])
    assert stats.totalSubmissions == 1
    assert stats.averageFamilySize == "3.00"
    assert stats.averageAttitudeScore == "0.450"
    assert stats.averageEducationDifference == "2.00"
    assert stats.regions == {"British": 1}
    assert stats.genderDistribution == {"male": 1, "female": 0}


def test_means_match_direct_computation():
    records = _random_records(57)
    stats = compute_statistics(records)
    n = len(records)

    assert stats.totalSubmissions == n
    assert float(stats.averageFamilySize) == pytest.approx(sum(r.familySize for r in records) / n, abs=0.005)
    assert float(stats.averageAttitudeScore) == pytest.approx(sum(r.attitudeScore for r in records) / n, abs=0.0005)
    direct_diff = sum(r.firstbornEducation - r.laterbornEducation for r in records) / n
    assert float(stats.averageEducationDifference) == pytest.approx(direct_diff, abs=0.005)


def test_weighted_recombination_matches_single_pass():
    records = _random_records(83, seed=11)
    combined = combine_groups(_groups(records))
    direct = compute_statistics(records)

    assert combined.totalSubmissions == direct.totalSubmissions
    assert combined.regions == direct.regions
    assert combined.genderDistribution == direct.genderDistribution
    for field, tol in [
        ("averageFamilySize", 0.01),
        ("averageAttitudeScore", 0.001),
        ("averageEducationDifference", 0.01),
    ]:
        assert float(getattr(combined, field)) == pytest.approx(float(getattr(direct, field)), abs=tol)


def test_recombination_is_weighted_not_naive():
    # Naive averaging of the two group means would give 10.50.
    records = [_record(region="British", size=1)] * 9 + [_record(region="African", size=20)]
    stats = combine_groups(_groups(records))
    assert stats.averageFamilySize == "2.90"


def test_regions_sorted_by_count_descending():
    records = (
        [_record(region="Canadian")]
        + [_record(region="British")] * 3
        + [_record(region="East Asian")] * 2
    )
    stats = compute_statistics(records)
    assert list(stats.regions.items()) == [("British", 3), ("East Asian", 2), ("Canadian", 1)]


def test_gender_distribution_counts():
    records = [_record(gender="female")] * 4 + [_record(gender="male")]
    stats = compute_statistics(records)
    assert stats.genderDistribution == {"male": 1, "female": 4}


def test_exact_ties_round_half_up():
    # Mean family size 17 / 8 = 2.125 exactly.
    stats = compute_statistics([_record(size=2)] * 7 + [_record(size=3)])
    assert stats.averageFamilySize == "2.13"

    # Mean attitude (0.25 + 0.375) / 2 = 0.3125 exactly.
    stats = compute_statistics([_record(attitude=0.25), _record(attitude=0.375)])
    assert stats.averageAttitudeScore == "0.313"


def test_negative_ties_round_away_from_zero():
    # Education differences -2 and -2.25 average to -2.125.
    stats = compute_statistics([_record(first=12, later=14), _record(first=12, later=14.25)])
    assert stats.averageEducationDifference == "-2.13"


def test_tie_rounding_is_the_same_after_recombination():
    records = [_record(region="British", size=2)] * 7 + [_record(region="Canadian", size=3)]
    assert combine_groups(_groups(records)).averageFamilySize == "2.13"
