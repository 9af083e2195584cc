"""Hard eligibility gate: B2B/contractor roles workable fully remotely.

This is not a scoring weight. Ineligible postings are dropped before any
matching happens. Unknown engagement type, remote policy or restrictions
always pass: ingestion frequently cannot determine them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from jobgate.log import get_logger
from jobgate.models import EngagementType, JobPosting, RemotePolicy

log = get_logger(__name__)

EXCLUDED_ENGAGEMENTS: frozenset[EngagementType] = frozenset({
    EngagementType.EMPLOYMENT,
    EngagementType.INSIDE_IR35,
})

EXCLUDED_REMOTE_POLICIES: frozenset[RemotePolicy] = frozenset({
    RemotePolicy.ON_SITE,
    RemotePolicy.HYBRID,
})

EXCLUSIONARY_GEO_RESTRICTIONS: frozenset[str] = frozenset(
    tag.casefold()
    for tag in (
        "UK-only", "EU-only", "US-only", "AU-only",
        "UK-based", "EU-based", "US-based", "AU-based",
        "Work-Auth-Required", "No-Visa-Sponsorship", "Security-Clearance-Required",
    )
)


@dataclass(frozen=True)
class EligibilityRule:
    name: str
    passed: bool
    reason: str


@dataclass(frozen=True)
class EligibilityAssessment:
    posting: JobPosting
    is_eligible: bool
    summary: str
    rules: tuple[EligibilityRule, ...]

    @property
    def failed_rules(self) -> list[EligibilityRule]:
        return [r for r in self.rules if not r.passed]


def _require(posting: JobPosting | None) -> JobPosting:
    if posting is None:
        raise ValueError("posting must not be None")
    return posting


def _engagement_ok(posting: JobPosting) -> bool:
    return posting.engagement_type not in EXCLUDED_ENGAGEMENTS


def _remote_ok(posting: JobPosting) -> bool:
    return posting.remote_policy not in EXCLUDED_REMOTE_POLICIES


def exclusionary_restrictions(posting: JobPosting) -> list[str]:
    """Restriction tags on *posting* that rule out a remote contractor."""
    return [r for r in posting.geo_restrictions if r.casefold() in EXCLUSIONARY_GEO_RESTRICTIONS]


def is_eligible(posting: JobPosting) -> bool:
    _require(posting)
    return (
        _engagement_ok(posting)
        and _remote_ok(posting)
        and not exclusionary_restrictions(posting)
    )


def assess(posting: JobPosting) -> EligibilityAssessment:
    """Per-rule pass/fail with readable reasons, for audit output.

    Filtering always goes through :func:`is_eligible`; both share the same
    rule predicates.
    """
    _require(posting)
    engagement = posting.engagement_type.name
    remote = posting.remote_policy.name

    engagement_passed = _engagement_ok(posting)
    remote_passed = _remote_ok(posting)
    restricted = exclusionary_restrictions(posting)

    rules = (
        EligibilityRule(
            "Engagement Type",
            engagement_passed,
            f"{engagement}: eligible for B2B/contractor work"
            if engagement_passed
            else f"{engagement}: payroll employment not available for a remote contractor",
        ),
        EligibilityRule(
            "Remote Policy",
            remote_passed,
            f"{remote}: remote work possible"
            if remote_passed
            else f"{remote}: requires physical presence",
        ),
        EligibilityRule(
            "Geographic Restrictions",
            not restricted,
            "No exclusionary geographic restrictions detected"
            if not restricted
            else f"Restricted: {', '.join(restricted)}",
        ),
    )

    eligible = all(r.passed for r in rules)
    failed = sum(1 for r in rules if not r.passed)
    summary = (
        "Eligible: B2B/contractor remote work is possible"
        if eligible
        else f"Ineligible: {failed} rule(s) failed"
    )
    return EligibilityAssessment(posting=posting, is_eligible=eligible, summary=summary, rules=rules)


def filter_eligible(postings: Iterable[JobPosting]) -> list[JobPosting]:
    """Keep eligible postings, preserving order."""
    if postings is None:
        raise ValueError("postings must not be None")
    postings = list(postings)
    result = [p for p in postings if is_eligible(p)]
    log.debug("Eligibility gate: %d -> %d postings", len(postings), len(result))
    return result
