"""Preference-driven filtering applied after the eligibility gate.

Each rule only removes postings and is evaluated independently, so the
outcome does not depend on rule order. Unknown data passes.
"""
from __future__ import annotations

from typing import Callable, Iterable

from jobgate.eligibility import is_eligible
from jobgate.log import get_logger
from jobgate.models import CandidateProfile, JobPosting, Preferences, RemotePolicy, SeniorityLevel

log = get_logger(__name__)

REMOTE_ONLY_ACCEPTED: frozenset[RemotePolicy] = frozenset({
    RemotePolicy.FULLY_REMOTE,
    RemotePolicy.REMOTE_FRIENDLY,
    RemotePolicy.UNKNOWN,
})


def _eligibility(posting: JobPosting, prefs: Preferences) -> str | None:
    if not is_eligible(posting):
        return "fails the eligibility gate"
    return None


def _excluded_company(posting: JobPosting, prefs: Preferences) -> str | None:
    company = posting.company.casefold()
    if any(c.casefold() == company for c in prefs.exclude_companies):
        return f"company '{posting.company}' is excluded"
    return None


def _seniority(posting: JobPosting, prefs: Preferences) -> str | None:
    if SeniorityLevel.UNKNOWN in (posting.seniority_level, prefs.min_seniority):
        return None
    if posting.seniority_level < prefs.min_seniority:
        return (
            f"seniority {posting.seniority_level.label} < minimum "
            f"{prefs.min_seniority.label}"
        )
    return None


def _remote(posting: JobPosting, prefs: Preferences) -> str | None:
    if not prefs.remote_only:
        return None
    if posting.remote_policy not in REMOTE_ONLY_ACCEPTED:
        return f"remote policy {posting.remote_policy.value} does not meet remote-only preference"
    return None


def _salary_floor(posting: JobPosting, prefs: Preferences) -> str | None:
    if prefs.min_salary <= 0 or not posting.has_salary:
        return None
    offered = max(s for s in (posting.salary_min, posting.salary_max) if s is not None)
    if offered < prefs.min_salary:
        return f"salary {offered:,.0f} < minimum {prefs.min_salary:,.0f}"
    return None


RULES: tuple[Callable[[JobPosting, Preferences], str | None], ...] = (
    _eligibility,
    _excluded_company,
    _seniority,
    _remote,
    _salary_floor,
)


def rejection_reasons(posting: JobPosting, profile: CandidateProfile) -> list[str]:
    """Every rule that removes *posting*; empty when it passes."""
    if posting is None:
        raise ValueError("posting must not be None")
    if profile is None:
        raise ValueError("profile must not be None")
    reasons = (rule(posting, profile.preferences) for rule in RULES)
    return [r for r in reasons if r]


def is_relevant(posting: JobPosting, profile: CandidateProfile) -> bool:
    return not rejection_reasons(posting, profile)


def apply_filters(postings: Iterable[JobPosting], profile: CandidateProfile) -> list[JobPosting]:
    """Postings that pass eligibility and every preference rule, in order."""
    if postings is None:
        raise ValueError("postings must not be None")
    if profile is None:
        raise ValueError("profile must not be None")

    postings = list(postings)
    kept: list[JobPosting] = []
    for posting in postings:
        reasons = rejection_reasons(posting, profile)
        if reasons:
            log.debug(
                "Filtered out '%s' at %s: %s",
                posting.title, posting.company, "; ".join(reasons),
            )
            continue
        kept.append(posting)
    log.info("Relevance filter: %d -> %d postings", len(postings), len(kept))
    return kept
