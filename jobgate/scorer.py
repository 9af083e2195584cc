"""Weighted, explainable compatibility scoring of a posting against a profile.

Five dimensions are scored 0-100 and combined with configurable weights
that must sum to 1.0:

    skill 0.40 | seniority 0.20 | salary 0.20 | remote 0.10 | growth 0.10

Missing data scores a neutral 50 rather than counting against the posting;
the confidence value reports how much of the score rests on such gaps.
Everything here is pure and safe to call from many threads at once.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Iterable

from jobgate.log import get_logger
from jobgate.models import (
    CandidateProfile,
    JobPosting,
    MatchScore,
    RecommendedAction,
    RemotePolicy,
    ScoreExplanation,
    SeniorityLevel,
)

log = get_logger(__name__)


@dataclass(frozen=True)
class ScoringWeights:
    skill: float = 0.40
    seniority: float = 0.20
    salary: float = 0.20
    remote: float = 0.10
    growth: float = 0.10

    def __post_init__(self) -> None:
        total = sum(asdict(self).values())
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Scoring weights must sum to 1.0, got {total:.4f}")
        if any(w < 0 for w in asdict(self).values()):
            raise ValueError("Scoring weights must be non-negative")

    @classmethod
    def from_dict(cls, data: dict[str, float]) -> "ScoringWeights":
        unknown = set(data) - set(asdict(cls()))
        if unknown:
            raise ValueError(f"Unknown scoring weight(s): {', '.join(sorted(unknown))}")
        return cls(**{k: float(v) for k, v in data.items()})


DEFAULT_WEIGHTS = ScoringWeights()

NEUTRAL_SCORE = 50.0

# Skill score split between required and preferred skills
REQUIRED_SHARE = 70.0
PREFERRED_SHARE = 30.0

# |posting level - target level| -> score; anything further scores SENIORITY_FAR_SCORE
SENIORITY_GAP_SCORES: dict[int, float] = {0: 100.0, 1: 75.0, 2: 40.0}
SENIORITY_FAR_SCORE = 10.0

SALARY_AT_TARGET = 100.0
SALARY_AT_MINIMUM = 70.0
SALARY_BELOW_MINIMUM = 20.0

# Keyed by the candidate's remote_only flag
REMOTE_SCORES: dict[bool, dict[RemotePolicy, float]] = {
    False: {
        RemotePolicy.FULLY_REMOTE: 100.0,
        RemotePolicy.REMOTE_FRIENDLY: 95.0,
        RemotePolicy.HYBRID: 90.0,
        RemotePolicy.ON_SITE: 80.0,
        RemotePolicy.UNKNOWN: 85.0,
    },
    True: {
        RemotePolicy.FULLY_REMOTE: 100.0,
        RemotePolicy.REMOTE_FRIENDLY: 80.0,
        RemotePolicy.HYBRID: 40.0,
        RemotePolicy.ON_SITE: 0.0,
        RemotePolicy.UNKNOWN: 50.0,
    },
}
assert all(set(t) == set(RemotePolicy) for t in REMOTE_SCORES.values())

# Inclusive lower bounds, highest first
ACTION_THRESHOLDS: tuple[tuple[float, RecommendedAction], ...] = (
    (75.0, RecommendedAction.APPLY),
    (55.0, RecommendedAction.PREPARE_AND_APPLY),
    (35.0, RecommendedAction.SKILL_UP_FIRST),
)

WEEKS_PER_MISSING_SKILL: dict[RecommendedAction, int] = {
    RecommendedAction.APPLY: 0,
    RecommendedAction.PREPARE_AND_APPLY: 2,
    RecommendedAction.SKILL_UP_FIRST: 4,
}
NEVER_READY_WEEKS = 99

CONFIDENCE_FLOOR = 0.10
CONFIDENCE_CEILING = 1.00
PENALTY_NO_REQUIRED_SKILLS = 0.30
PENALTY_NO_SALARY = 0.15
PENALTY_UNKNOWN_SENIORITY = 0.15
PENALTY_UNKNOWN_REMOTE = 0.10
PENALTY_SPARSE_PROFILE = 0.20
SPARSE_PROFILE_SKILLS = 3

STRENGTH_COUNT = 3
STRENGTH_MIN_SCORE = 50.0

_REMOTE_LABELS: dict[RemotePolicy, str] = {
    RemotePolicy.FULLY_REMOTE: "Fully remote",
    RemotePolicy.REMOTE_FRIENDLY: "Remote-friendly",
    RemotePolicy.HYBRID: "Hybrid",
    RemotePolicy.ON_SITE: "On-site",
    RemotePolicy.UNKNOWN: "Remote policy unknown",
}


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" + ("" if n == 1 else "s")


def _money(value: float) -> str:
    return f"${value:,.0f}"


def _unique(skills: Iterable[str]) -> list[str]:
    """Deduplicate case-insensitively, keeping the first spelling."""
    seen: set[str] = set()
    out: list[str] = []
    for s in skills:
        key = s.casefold()
        if key not in seen:
            seen.add(key)
            out.append(s)
    return out


# ── Dimension scores ─────────────────────────────────────────────────────


def skill_score(total_required: int, matched_required: int,
                total_preferred: int, matched_preferred: int) -> float:
    if total_required == 0 and total_preferred == 0:
        return NEUTRAL_SCORE
    required = matched_required / total_required * REQUIRED_SHARE if total_required else REQUIRED_SHARE
    preferred = matched_preferred / total_preferred * PREFERRED_SHARE if total_preferred else PREFERRED_SHARE
    return required + preferred


def seniority_score(posting_level: SeniorityLevel, target_level: SeniorityLevel) -> float:
    if SeniorityLevel.UNKNOWN in (posting_level, target_level):
        return NEUTRAL_SCORE
    gap = abs(int(posting_level) - int(target_level))
    return SENIORITY_GAP_SCORES.get(gap, SENIORITY_FAR_SCORE)


def salary_score(offered: float | None, min_salary: float, target_salary: float) -> float:
    if offered is None:
        return NEUTRAL_SCORE
    if offered >= target_salary:
        return SALARY_AT_TARGET
    if offered >= min_salary:
        return SALARY_AT_MINIMUM
    return SALARY_BELOW_MINIMUM


def remote_score(policy: RemotePolicy, remote_only: bool) -> float:
    return REMOTE_SCORES[bool(remote_only)][policy]


def growth_score(missing_preferred: int, total_preferred: int) -> float:
    """More preferred skills still to learn means more room to grow."""
    if total_preferred == 0:
        return NEUTRAL_SCORE
    return min(missing_preferred / total_preferred * 100.0, 100.0)


def determine_action(overall_score: float) -> RecommendedAction:
    for threshold, action in ACTION_THRESHOLDS:
        if overall_score >= threshold:
            return action
    return RecommendedAction.SKIP


def estimate_weeks_to_ready(action: RecommendedAction, missing_required: int) -> int:
    if action not in WEEKS_PER_MISSING_SKILL:
        return NEVER_READY_WEEKS
    return missing_required * WEEKS_PER_MISSING_SKILL[action]


def compute_confidence(posting: JobPosting, profile: CandidateProfile) -> float:
    confidence = 1.0
    if not posting.required_skills:
        confidence -= PENALTY_NO_REQUIRED_SKILLS
    if not posting.has_salary:
        confidence -= PENALTY_NO_SALARY
    if posting.seniority_level == SeniorityLevel.UNKNOWN:
        confidence -= PENALTY_UNKNOWN_SENIORITY
    if posting.remote_policy == RemotePolicy.UNKNOWN:
        confidence -= PENALTY_UNKNOWN_REMOTE
    if len(profile.skills) < SPARSE_PROFILE_SKILLS:
        confidence -= PENALTY_SPARSE_PROFILE
    return round(min(max(confidence, CONFIDENCE_FLOOR), CONFIDENCE_CEILING), 2)


# ── Explanation ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _SkillBreakdown:
    required: list[str]
    preferred: list[str]
    matched_required: list[str]
    missing_required: list[str]
    matched_preferred: list[str]
    missing_preferred: list[str]

    @property
    def matching(self) -> list[str]:
        return _unique(self.matched_required + self.matched_preferred)


def _breakdown(posting: JobPosting, profile: CandidateProfile) -> _SkillBreakdown:
    have = profile.skill_names
    required = _unique(posting.required_skills)
    preferred = _unique(posting.preferred_skills)
    return _SkillBreakdown(
        required=required,
        preferred=preferred,
        matched_required=[s for s in required if s.casefold() in have],
        missing_required=[s for s in required if s.casefold() not in have],
        matched_preferred=[s for s in preferred if s.casefold() in have],
        missing_preferred=[s for s in preferred if s.casefold() not in have],
    )


def _explain_skills(b: _SkillBreakdown, score: float) -> str:
    total = len(b.required)
    if not total:
        return (
            f"No required skills listed; matched {len(b.matched_preferred)}/{len(b.preferred)} "
            f"preferred skills, so skill match is estimated ({score:.0f}/100)"
        )
    pct = round(len(b.matched_required) / total * 100)
    if b.missing_required:
        return (
            f"Matched {len(b.matched_required)}/{total} required skills ({pct}%). "
            f"Missing: {', '.join(b.missing_required)} ({score:.0f}/100)"
        )
    return f"Matched all {total} required skills ({pct}%) ({score:.0f}/100)"


def _explain_seniority(posting: JobPosting, profile: CandidateProfile, score: float) -> str:
    level = posting.seniority_level
    target = profile.preferences.min_seniority
    if level == SeniorityLevel.UNKNOWN:
        return f"Posting seniority is unknown, you target {target.label}: neutral score ({score:.0f}/100)"
    if target == SeniorityLevel.UNKNOWN:
        return f"Posting is {level.label}, no target seniority set: neutral score ({score:.0f}/100)"
    gap = abs(int(level) - int(target))
    if gap == 0:
        return f"Posting is {level.label}, matching your target: perfect fit ({score:.0f}/100)"
    return f"Posting is {level.label}, you target {target.label}: {_plural(gap, 'level')} apart ({score:.0f}/100)"


def _explain_salary(posting: JobPosting, profile: CandidateProfile, score: float) -> str:
    offered = posting.offered_salary
    if offered is None:
        return f"No salary info provided: neutral score ({score:.0f}/100)"
    return (
        f"Offered {_money(offered)} vs your target of "
        f"{_money(profile.preferences.target_salary)} ({score:.0f}/100)"
    )


def _explain_remote(posting: JobPosting, score: float) -> str:
    label = _REMOTE_LABELS[posting.remote_policy]
    if posting.remote_policy == RemotePolicy.UNKNOWN:
        return f"{label}: neutral score ({score:.0f}/100)"
    if score >= 100.0:
        quality = "perfect match"
    elif score >= 80.0:
        quality = "good match"
    elif score >= 40.0:
        quality = "partial match"
    else:
        quality = "poor match"
    return f"{label}: {quality} ({score:.0f}/100)"


def _explain_growth(b: _SkillBreakdown, score: float) -> str:
    if not b.preferred:
        return f"No preferred skills listed: neutral growth score ({score:.0f}/100)"
    if b.missing_preferred:
        return (
            f"{_plural(len(b.missing_preferred), 'preferred skill')} to learn "
            f"({', '.join(b.missing_preferred)}): good stretch ({score:.0f}/100)"
        )
    return f"You already have all {len(b.preferred)} preferred skills: limited stretch ({score:.0f}/100)"


def _explain_overall(action: RecommendedAction, overall: float, missing: int) -> str:
    if action == RecommendedAction.APPLY:
        return f"Strong match at {overall:.0f}/100: apply with confidence"
    if action == RecommendedAction.PREPARE_AND_APPLY:
        return f"Solid potential at {overall:.0f}/100: apply with minor prep on {_plural(missing, 'missing skill')}"
    if action == RecommendedAction.SKILL_UP_FIRST:
        return f"Growth opportunity at {overall:.0f}/100: invest in {_plural(missing, 'missing skill')} before applying"
    return f"Weak match at {overall:.0f}/100: significant gaps, consider skipping"


def _strengths(dimensions: dict[str, float]) -> tuple[str, ...]:
    ranked = sorted(dimensions.items(), key=lambda kv: -kv[1])[:STRENGTH_COUNT]
    return tuple(f"{label} ({value:.0f}/100)" for label, value in ranked if value >= STRENGTH_MIN_SCORE)


def _risks(posting: JobPosting, profile: CandidateProfile, b: _SkillBreakdown) -> tuple[str, ...]:
    prefs = profile.preferences
    risks: list[str] = []
    if b.missing_required:
        risks.append(
            f"Missing {_plural(len(b.missing_required), 'required skill')}: "
            f"{', '.join(b.missing_required)}"
        )
    offered = posting.offered_salary
    if offered is not None and offered < prefs.min_salary:
        risks.append(f"Salary {_money(offered)} is below your minimum of {_money(prefs.min_salary)}")
    if prefs.remote_only and posting.remote_policy == RemotePolicy.ON_SITE:
        risks.append("On-site only: conflicts with your remote-only preference")
    if prefs.remote_only and posting.remote_policy == RemotePolicy.HYBRID:
        risks.append("Hybrid work: may conflict with your remote-only preference")
    if (
        SeniorityLevel.UNKNOWN not in (posting.seniority_level, prefs.min_seniority)
        and posting.seniority_level < prefs.min_seniority
    ):
        risks.append(
            f"Posting seniority {posting.seniority_level.label} is below "
            f"your target of {prefs.min_seniority.label}"
        )
    return tuple(risks)


# ── Engine ───────────────────────────────────────────────────────────────


class ScoringEngine:
    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS) -> None:
        if weights is None:
            raise ValueError("weights must not be None")
        self.weights = weights

    def score(self, posting: JobPosting, profile: CandidateProfile) -> MatchScore:
        if posting is None:
            raise ValueError("posting must not be None")
        if profile is None:
            raise ValueError("profile must not be None")

        prefs = profile.preferences
        b = _breakdown(posting, profile)

        skill = skill_score(
            len(b.required), len(b.matched_required),
            len(b.preferred), len(b.matched_preferred),
        )
        seniority = seniority_score(posting.seniority_level, prefs.min_seniority)
        salary = salary_score(posting.offered_salary, prefs.min_salary, prefs.target_salary)
        remote = remote_score(posting.remote_policy, prefs.remote_only)
        growth = growth_score(len(b.missing_preferred), len(b.preferred))

        w = self.weights
        overall = round(
            skill * w.skill
            + seniority * w.seniority
            + salary * w.salary
            + remote * w.remote
            + growth * w.growth,
            2,
        )
        action = determine_action(overall)

        dims = {
            "Skill match": round(skill, 2),
            "Seniority fit": round(seniority, 2),
            "Salary alignment": round(salary, 2),
            "Remote fit": round(remote, 2),
            "Growth opportunity": round(growth, 2),
        }
        explanation = ScoreExplanation(
            skill_match=_explain_skills(b, skill),
            seniority_fit=_explain_seniority(posting, profile, seniority),
            salary_alignment=_explain_salary(posting, profile, salary),
            remote_fit=_explain_remote(posting, remote),
            growth_opportunity=_explain_growth(b, growth),
            overall_verdict=_explain_overall(action, overall, len(b.missing_required)),
            strengths=_strengths(dims),
            risks=_risks(posting, profile, b),
        )

        return MatchScore(
            overall_score=overall,
            skill_score=dims["Skill match"],
            seniority_score=dims["Seniority fit"],
            salary_score=dims["Salary alignment"],
            remote_score=dims["Remote fit"],
            growth_score=dims["Growth opportunity"],
            matching_skills=tuple(b.matching),
            missing_skills=tuple(b.missing_required),
            bonus_skills=tuple(b.matched_preferred),
            confidence=compute_confidence(posting, profile),
            explanation=explanation,
            recommended_action=action,
            estimated_weeks_to_ready=estimate_weeks_to_ready(action, len(b.missing_required)),
        )

    def rank(
        self, postings: Iterable[JobPosting], profile: CandidateProfile
    ) -> list[tuple[JobPosting, MatchScore]]:
        """Score every posting; best overall score first."""
        scored = [(p, self.score(p, profile)) for p in postings]
        scored.sort(key=lambda pair: -pair[1].overall_score)
        log.debug("Ranked %d postings", len(scored))
        return scored


_default_engine = ScoringEngine()


def score(posting: JobPosting, profile: CandidateProfile) -> MatchScore:
    return _default_engine.score(posting, profile)
