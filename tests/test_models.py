from datetime import datetime, timezone

import pytest

from jobgate.models import (
    Decision,
    EngagementType,
    JobPosting,
    Preferences,
    RemotePolicy,
    SeniorityLevel,
    Verdict,
)


def test_lenient_enum_parsing():
    """Enum fields accept any casing/separator and fall back to UNKNOWN."""
    assert RemotePolicy.parse("FullyRemote") is RemotePolicy.FULLY_REMOTE
    assert RemotePolicy.parse("on-site") is RemotePolicy.ON_SITE
    assert EngagementType.parse("ContractB2B") is EngagementType.CONTRACT_B2B
    assert SeniorityLevel.parse("senior") is SeniorityLevel.SENIOR
    assert SeniorityLevel.parse(5) is SeniorityLevel.LEAD
    assert SeniorityLevel.parse("galactic") is SeniorityLevel.UNKNOWN
    assert RemotePolicy.parse(None) is RemotePolicy.UNKNOWN


def test_verdict_parse_is_strict():
    assert Verdict.parse("learn_then_apply") is Verdict.LEARN_THEN_APPLY
    with pytest.raises(ValueError):
        Verdict.parse("MAYBE")


def test_verdict_rank_follows_declaration_order():
    assert Verdict.APPLY_NOW.rank < Verdict.LEARN_THEN_APPLY.rank < Verdict.SKIP.rank


def test_posting_from_camel_case_record():
    """Records exported with camelCase keys load the same as snake_case."""
    p = JobPosting.from_dict({
        "id": 42,
        "title": "Lead Engineer",
        "requiredSkills": ["C#"],
        "salaryMax": "95000",
        "seniorityLevel": "Lead",
        "remotePolicy": "FullyRemote",
        "engagementType": "Freelance",
        "geoRestrictions": ["EU-only"],
    })
    assert p.id == "42"
    assert p.required_skills == ("C#",)
    assert p.salary_max == 95_000.0
    assert p.offered_salary == 95_000.0
    assert p.seniority_level is SeniorityLevel.LEAD
    assert p.engagement_type is EngagementType.FREELANCE
    assert p.geo_restrictions == ("EU-only",)


def test_posting_without_id_is_rejected():
    with pytest.raises(ValueError):
        JobPosting.from_dict({"title": "No id"})


def test_offered_salary_prefers_top_of_range():
    assert JobPosting(id="a", salary_min=50_000, salary_max=70_000).offered_salary == 70_000
    assert JobPosting(id="b", salary_min=50_000).offered_salary == 50_000
    assert JobPosting(id="c").offered_salary is None
    assert not JobPosting(id="c").has_salary


def test_decision_persisted_layout():
    created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    d = Decision(Verdict.LEARN_THEN_APPLY, readiness_score=64, estimated_learning_hours=12, created_at=created)
    record = d.to_dict()
    assert record == {
        "verdict": "LEARN_THEN_APPLY",
        "readinessScore": 64,
        "estimatedLearningHours": 12,
        "createdAt": created.isoformat(),
    }
    assert Decision.from_dict(record) == d


def test_decision_from_snake_case_record():
    d = Decision.from_dict({"verdict": "SKIP", "readiness_score": 10})
    assert d.verdict is Verdict.SKIP
    assert d.readiness_score == 10
    assert d.estimated_learning_hours == 0


def test_decision_timestamps_normalize_to_utc():
    """Z-suffixed and naive timestamps both load as aware UTC datetimes."""
    expected = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)
    zulu = Decision.from_dict({"verdict": "APPLY_NOW", "createdAt": "2024-06-01T09:00:00Z"})
    naive = Decision.from_dict({"verdict": "APPLY_NOW", "createdAt": "2024-06-01T09:00:00"})
    offset = Decision.from_dict({"verdict": "APPLY_NOW", "createdAt": "2024-06-01T11:00:00+02:00"})

    assert zulu.created_at == expected
    assert naive.created_at == expected
    assert naive.created_at.tzinfo is not None
    assert offset.created_at == expected
    assert sorted([zulu, naive, offset], key=lambda d: d.created_at)


@pytest.mark.parametrize("raw, expected", [
    ("false", False),
    ("False", False),
    ("no", False),
    ("0", False),
    ("true", True),
    ("yes", True),
    (False, False),
    (True, True),
    (0, False),
])
def test_remote_only_parses_strings(raw, expected):
    assert Preferences.from_dict({"remote_only": raw}).remote_only is expected
    assert Preferences.from_dict({"remoteOnly": raw}).remote_only is expected


def test_remote_only_rejects_garbage():
    with pytest.raises(ValueError):
        Preferences.from_dict({"remote_only": "sometimes"})
