import pytest

from jobgate.decisions import (
    DecisionEngine,
    SkillGap,
    analyze_skill_gaps,
    decide_and_record,
    estimate_hours_to_learn,
    readiness,
)
from jobgate.models import EngagementType, RemotePolicy, SeniorityLevel, Verdict

LEARNING_SKILLS = {"C#": 5, ".NET": 5, "Azure": 4, "Terraform": 3}


def learning_posting(make_posting, **overrides):
    """Strong-but-not-ready fit: one required skill one level short."""
    fields = dict(
        id="learn-1",
        required_skills=("C#", ".NET", "Azure", "Terraform"),
        preferred_skills=(),
        seniority_level=SeniorityLevel.ARCHITECT,
        salary_min=70_000,
        salary_max=80_000,
    )
    fields.update(overrides)
    return make_posting(**fields)


def test_hours_to_learn_uses_level_table_and_complexity():
    assert estimate_hours_to_learn("Terraform", 3, 4) == 20
    assert estimate_hours_to_learn("Go", 2, 4) == 36
    assert estimate_hours_to_learn("Kubernetes", 0, 4) == 84
    assert estimate_hours_to_learn("React", 0, 3) == 43
    assert estimate_hours_to_learn("Rust", 4, 4) == 0


def test_skill_gaps_critical_first(make_posting, make_profile):
    p = make_posting(required_skills=("C#", "Go"), preferred_skills=("Docker", "Elixir"))
    gaps = analyze_skill_gaps(p, make_profile(skills={"C#": 5, "Docker": 2}))

    assert [(g.skill, g.is_critical) for g in gaps] == [("Go", True), ("Docker", False), ("Elixir", False)]
    assert gaps[0].target_level == 4
    assert gaps[1].target_level == 3


def test_readiness_penalties():
    gaps = [
        SkillGap("Go", 0, 4, True, 56),
        SkillGap("Docker", 2, 3, False, 14),
    ]
    assert readiness(80, gaps) == 65
    assert readiness(10, gaps) == 0
    assert readiness(100, []) == 100


def test_perfect_fit_is_apply_now(make_posting, make_profile):
    outcome = DecisionEngine().decide(make_posting(), make_profile())

    assert outcome.verdict is Verdict.APPLY_NOW
    assert outcome.match_score == 90
    assert outcome.readiness_score == 90
    assert outcome.estimated_learning_hours == 0
    assert outcome.skill_gaps == ()
    assert outcome.apply_by is not None
    assert "APPLY NOW" in outcome.reasoning


def test_one_level_short_is_learn_then_apply(make_posting, make_profile):
    outcome = DecisionEngine().decide(learning_posting(make_posting), make_profile(skills=LEARNING_SKILLS))

    assert outcome.match_score == 77
    assert outcome.readiness_score == 67
    assert outcome.verdict is Verdict.LEARN_THEN_APPLY
    assert outcome.estimated_learning_hours == 20
    assert outcome.confidence == 80
    assert outcome.critical_missing_skills == ()
    assert "LEARN first (~20h)" in outcome.reasoning


def test_poor_match_is_skip(make_posting, make_profile):
    p = make_posting(
        required_skills=("Java", "Spring", "Kafka", "Cassandra"),
        preferred_skills=(),
        seniority_level=SeniorityLevel.INTERN,
        remote_policy=RemotePolicy.ON_SITE,
        salary_min=20_000,
        salary_max=30_000,
    )
    outcome = DecisionEngine().decide(p, make_profile(skills={"C#": 5, "ASP.NET": 5}))

    assert outcome.verdict is Verdict.SKIP
    assert outcome.apply_by is None
    assert "Poor match" in outcome.reasoning
    assert outcome.critical_missing_skills == ("Java", "Spring", "Kafka", "Cassandra")


def test_low_salary_is_skip(make_posting, make_profile):
    outcome = DecisionEngine().decide(make_posting(salary_min=30_000, salary_max=35_000), make_profile())
    assert outcome.verdict is Verdict.SKIP
    assert "Salary below" in outcome.reasoning


def test_geo_restriction_is_skip(make_posting, make_profile):
    outcome = DecisionEngine().decide(make_posting(geo_restrictions=("US-only",)), make_profile())
    assert outcome.verdict is Verdict.SKIP
    assert "Ineligible: Restricted: US-only" in outcome.reasoning


@pytest.mark.parametrize("overrides", [
    {"engagement_type": EngagementType.EMPLOYMENT},
    {"engagement_type": EngagementType.INSIDE_IR35},
    {"remote_policy": RemotePolicy.ON_SITE},
    {"remote_policy": RemotePolicy.HYBRID},
])
def test_ineligible_posting_is_skip_even_when_decided_directly(make_posting, make_profile, memory_store, overrides):
    """A perfect skill fit never earns APPLY_NOW when the gate rejects the posting."""
    p = make_posting(id="gated", **overrides)
    outcome = decide_and_record(DecisionEngine(), memory_store, p, make_profile())

    assert outcome.verdict is Verdict.SKIP
    assert "Ineligible:" in outcome.reasoning
    assert not memory_store.can_apply("gated").allowed


def test_skill_too_deep_to_learn_is_skip(make_posting, make_profile):
    """A single required skill needing more than 80h rules the posting out."""
    skills = {"C#": 5, "ASP.NET": 5, "Azure": 4}
    p = make_posting(required_skills=("C#", "ASP.NET", "Azure", "Kubernetes"), preferred_skills=())
    outcome = DecisionEngine().decide(p, make_profile(skills=skills))
    assert outcome.verdict is Verdict.SKIP


def test_outcome_to_decision(make_posting, make_profile):
    outcome = DecisionEngine().decide(learning_posting(make_posting), make_profile(skills=LEARNING_SKILLS))
    decision = outcome.to_decision()
    assert decision.verdict is Verdict.LEARN_THEN_APPLY
    assert decision.readiness_score == 67
    assert decision.estimated_learning_hours == 20
    assert decision.created_at == outcome.decided_at


def test_decide_and_record_writes_store(make_posting, make_profile, memory_store):
    p = learning_posting(make_posting)
    decide_and_record(DecisionEngine(), memory_store, p, make_profile(skills=LEARNING_SKILLS))

    assert memory_store.get_decision("learn-1").verdict is Verdict.LEARN_THEN_APPLY
    allowed, reason = memory_store.can_learn("learn-1")
    assert allowed
    assert "20h" in reason


def test_decide_rejects_none(make_profile):
    with pytest.raises(ValueError):
        DecisionEngine().decide(None, make_profile())
