import itertools

import pytest

from jobgate.eligibility import assess, filter_eligible, is_eligible
from jobgate.models import EngagementType, RemotePolicy


def test_employment_fully_remote_fails_only_engagement(make_posting):
    """Payroll employment is out even when the role is fully remote."""
    p = make_posting(engagement_type=EngagementType.EMPLOYMENT, remote_policy=RemotePolicy.FULLY_REMOTE)
    result = assess(p)

    assert not is_eligible(p)
    assert not result.is_eligible
    assert [r.name for r in result.failed_rules] == ["Engagement Type"]
    assert "not available" in result.failed_rules[0].reason
    assert result.summary.startswith("Ineligible")


def test_contract_remote_is_eligible(make_posting):
    result = assess(make_posting())
    assert result.is_eligible
    assert [r.name for r in result.rules] == ["Engagement Type", "Remote Policy", "Geographic Restrictions"]
    assert all(r.passed for r in result.rules)


def test_unknown_values_pass(make_posting):
    p = make_posting(engagement_type=EngagementType.UNKNOWN, remote_policy=RemotePolicy.UNKNOWN)
    assert is_eligible(p)


@pytest.mark.parametrize("policy", [RemotePolicy.ON_SITE, RemotePolicy.HYBRID])
def test_physical_presence_fails(make_posting, policy):
    result = assess(make_posting(remote_policy=policy))
    assert [r.name for r in result.failed_rules] == ["Remote Policy"]


def test_geo_restrictions_are_case_insensitive(make_posting):
    p = make_posting(geo_restrictions=("us-ONLY", "Timezone-overlap"))
    result = assess(p)
    assert not is_eligible(p)
    assert result.failed_rules[0].name == "Geographic Restrictions"
    assert "us-ONLY" in result.failed_rules[0].reason
    assert "Timezone-overlap" not in result.failed_rules[0].reason


def test_unlisted_restriction_passes(make_posting):
    assert is_eligible(make_posting(geo_restrictions=("CET-timezone",)))


def test_is_eligible_agrees_with_assess(make_posting):
    """The fast path and the audit path never disagree."""
    restrictions = [(), ("EU-only",), ("Remote-OK",)]
    for engagement, policy, geo in itertools.product(EngagementType, RemotePolicy, restrictions):
        p = make_posting(engagement_type=engagement, remote_policy=policy, geo_restrictions=geo)
        assert is_eligible(p) == assess(p).is_eligible


def test_filter_preserves_order(make_posting):
    postings = [
        make_posting(id="a"),
        make_posting(id="b", engagement_type=EngagementType.INSIDE_IR35),
        make_posting(id="c", remote_policy=RemotePolicy.REMOTE_FRIENDLY),
    ]
    assert [p.id for p in filter_eligible(postings)] == ["a", "c"]
    assert filter_eligible([]) == []


def test_none_is_rejected():
    with pytest.raises(ValueError):
        is_eligible(None)
    with pytest.raises(ValueError):
        assess(None)
    with pytest.raises(ValueError):
        filter_eligible(None)
