"""GO/NO-GO decisions: turn a match score into APPLY_NOW, LEARN_THEN_APPLY or SKIP.

The verdict, not the raw score, is what the apply and learn workflows are
allowed to act on; it is written to the decision store.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from jobgate.eligibility import assess, is_eligible
from jobgate.log import get_logger
from jobgate.models import CandidateProfile, Decision, JobPosting, MatchScore, Verdict
from jobgate.scorer import ScoringEngine

log = get_logger(__name__)

REQUIRED_TARGET_LEVEL = 4
PREFERRED_TARGET_LEVEL = 3

# Hours to move from level i to i+1
HOURS_PER_LEVEL: tuple[int, ...] = (8, 12, 16, 20, 30)

ADVANCED_SKILLS: tuple[str, ...] = (
    "kubernetes", "system design", "microservices", "distributed systems", "aws", "azure", "gcp",
)
INTERMEDIATE_SKILLS: tuple[str, ...] = ("react", "angular", "vue", "docker", "ci/cd", "sql", "nosql")
ADVANCED_MULTIPLIER = 1.5
INTERMEDIATE_MULTIPLIER = 1.2

CRITICAL_GAP_PENALTY = 10
NICE_TO_HAVE_GAP_PENALTY = 5

MIN_MATCH_SCORE = 30
MAX_CRITICAL_MISSING = 3
MAX_HOURS_PER_SKILL = 80
SALARY_SKIP_CEILING = 40_000
QUICK_WIN_HOURS = 4
LEARNING_HOURS_PER_DAY = 2

# (max learning hours over all gaps, min match score, min salary_max or None)
LEARN_WINDOWS: tuple[tuple[int, int, float | None], ...] = (
    (8, 60, None),
    (24, 70, None),
    (40, 80, 120_000),
)


@dataclass(frozen=True)
class SkillGap:
    skill: str
    current_level: int
    target_level: int
    is_critical: bool
    hours_to_learn: int


@dataclass(frozen=True)
class DecisionOutcome:
    posting_id: str
    verdict: Verdict
    reasoning: str
    match_score: int
    readiness_score: int
    confidence: int
    estimated_learning_hours: int
    skill_gaps: tuple[SkillGap, ...] = ()
    critical_missing_skills: tuple[str, ...] = ()
    quick_wins: tuple[str, ...] = ()
    apply_by: datetime | None = None
    score: MatchScore | None = field(default=None, compare=False, repr=False)
    decided_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_decision(self) -> Decision:
        return Decision(
            verdict=self.verdict,
            readiness_score=self.readiness_score,
            estimated_learning_hours=self.estimated_learning_hours,
            created_at=self.decided_at,
        )


def _complexity(skill: str) -> float:
    s = skill.casefold()
    if any(a in s for a in ADVANCED_SKILLS):
        return ADVANCED_MULTIPLIER
    if any(i in s for i in INTERMEDIATE_SKILLS):
        return INTERMEDIATE_MULTIPLIER
    return 1.0


def estimate_hours_to_learn(skill: str, current_level: int, target_level: int) -> int:
    hours = sum(HOURS_PER_LEVEL[i] for i in range(max(current_level, 0), min(target_level, len(HOURS_PER_LEVEL))))
    return int(hours * _complexity(skill))


def analyze_skill_gaps(posting: JobPosting, profile: CandidateProfile) -> list[SkillGap]:
    """Critical gaps for required skills, nice-to-have gaps for preferred ones."""
    gaps: list[SkillGap] = []
    seen: set[str] = set()

    for skill, target, critical in (
        *((s, REQUIRED_TARGET_LEVEL, True) for s in posting.required_skills),
        *((s, PREFERRED_TARGET_LEVEL, False) for s in posting.preferred_skills),
    ):
        key = skill.casefold()
        if key in seen:
            continue
        seen.add(key)
        level = profile.proficiency_of(skill)
        if level < target:
            gaps.append(SkillGap(
                skill=skill,
                current_level=level,
                target_level=target,
                is_critical=critical,
                hours_to_learn=estimate_hours_to_learn(skill, level, target),
            ))

    gaps.sort(key=lambda g: (not g.is_critical, g.hours_to_learn))
    return gaps


def readiness(match_score: int, gaps: list[SkillGap]) -> int:
    critical = sum(1 for g in gaps if g.is_critical)
    penalty = critical * CRITICAL_GAP_PENALTY + (len(gaps) - critical) * NICE_TO_HAVE_GAP_PENALTY
    return min(max(match_score - penalty, 0), 100)


def _has_deal_breaker(gaps: list[SkillGap]) -> bool:
    missing = sum(1 for g in gaps if g.is_critical and g.current_level == 0)
    return missing > MAX_CRITICAL_MISSING or any(g.hours_to_learn > MAX_HOURS_PER_SKILL for g in gaps)


def _salary_too_low(posting: JobPosting) -> bool:
    return posting.salary_max is not None and posting.salary_max < SALARY_SKIP_CEILING


def _critical_hours(gaps: list[SkillGap]) -> int:
    return sum(g.hours_to_learn for g in gaps if g.is_critical)


def determine_verdict(
    match_score: int, readiness_score: int, gaps: list[SkillGap], posting: JobPosting
) -> Verdict:
    if match_score < MIN_MATCH_SCORE:
        return Verdict.SKIP
    if _has_deal_breaker(gaps) or _salary_too_low(posting) or not is_eligible(posting):
        return Verdict.SKIP

    if readiness_score >= 75:
        return Verdict.APPLY_NOW
    if match_score >= 80 and readiness_score >= 60:
        return Verdict.APPLY_NOW
    if not any(g.is_critical for g in gaps):
        return Verdict.APPLY_NOW

    hours = sum(g.hours_to_learn for g in gaps)
    for max_hours, min_match, min_salary in LEARN_WINDOWS:
        if hours > max_hours or match_score < min_match:
            continue
        if min_salary is not None and (posting.salary_max is None or posting.salary_max < min_salary):
            continue
        return Verdict.LEARN_THEN_APPLY
    return Verdict.SKIP


def _confidence(match_score: int, readiness_score: int, gaps: list[SkillGap]) -> int:
    confidence = 70
    if match_score >= 80 and readiness_score >= 80:
        confidence += 20
    elif match_score >= 60 and readiness_score >= 60:
        confidence += 10
    if not any(g.is_critical for g in gaps):
        confidence += 10
    return min(max(confidence, 0), 100)


def _apply_by(verdict: Verdict, hours: int, now: datetime) -> datetime | None:
    if verdict == Verdict.APPLY_NOW:
        return now + timedelta(days=2)
    if verdict == Verdict.LEARN_THEN_APPLY:
        return now + timedelta(days=math.ceil(hours / LEARNING_HOURS_PER_DAY) + 1)
    return None


def _reasoning(
    verdict: Verdict, match_score: int, readiness_score: int, gaps: list[SkillGap], posting: JobPosting
) -> str:
    critical = [g for g in gaps if g.is_critical]
    lines: list[str] = []

    if verdict == Verdict.APPLY_NOW:
        lines.append(f"Strong fit: {match_score}% match, {readiness_score}% ready")
        if not gaps:
            lines.append("No skill gaps: you meet all requirements")
        elif not critical:
            lines.append(f"Only {len(gaps)} nice-to-have skill(s) missing")
        else:
            lines.append(f"Minor gaps ({len(critical)} skill(s)) won't block you")
        lines.append("APPLY NOW: you're ready enough")

    elif verdict == Verdict.LEARN_THEN_APPLY:
        hours = _critical_hours(gaps)
        lines.append(f"Good fit ({match_score}% match) but needs preparation")
        lines.append(f"{len(critical)} critical gap(s): {', '.join(g.skill for g in critical[:3])}")
        lines.append(f"LEARN first (~{hours}h), then APPLY")
        if hours <= 8:
            lines.append(f"Quick win: just {hours}h of focused learning")

    else:
        if match_score < MIN_MATCH_SCORE:
            lines.append(f"Poor match ({match_score}%): not aligned with your skills")
        elif _has_deal_breaker(gaps):
            lines.append(f"Too many critical gaps ({len(critical)}): high effort, uncertain ROI")
        elif _salary_too_low(posting):
            lines.append(f"Salary below {SALARY_SKIP_CEILING:,} threshold")
        elif not is_eligible(posting):
            failed = assess(posting).failed_rules
            lines.append(f"Ineligible: {'; '.join(r.reason for r in failed)}")
        else:
            lines.append(
                f"Learning time ({sum(g.hours_to_learn for g in gaps)}h) not justified by match quality"
            )
        lines.append("SKIP: focus on better opportunities")

    return "\n".join(lines)


class DecisionEngine:
    def __init__(self, scorer: ScoringEngine | None = None) -> None:
        self.scorer = scorer or ScoringEngine()

    def decide(self, posting: JobPosting, profile: CandidateProfile) -> DecisionOutcome:
        if posting is None:
            raise ValueError("posting must not be None")
        if profile is None:
            raise ValueError("profile must not be None")

        score = self.scorer.score(posting, profile)
        match = int(score.overall_score)
        gaps = analyze_skill_gaps(posting, profile)
        ready = readiness(match, gaps)
        verdict = determine_verdict(match, ready, gaps, posting)
        hours = _critical_hours(gaps) if verdict == Verdict.LEARN_THEN_APPLY else 0
        now = datetime.now(timezone.utc)

        outcome = DecisionOutcome(
            posting_id=posting.id,
            verdict=verdict,
            reasoning=_reasoning(verdict, match, ready, gaps, posting),
            match_score=match,
            readiness_score=ready,
            confidence=_confidence(match, ready, gaps),
            estimated_learning_hours=hours,
            skill_gaps=tuple(gaps),
            critical_missing_skills=tuple(g.skill for g in gaps if g.is_critical and g.current_level == 0),
            quick_wins=tuple(g.skill for g in gaps if g.hours_to_learn <= QUICK_WIN_HOURS),
            apply_by=_apply_by(verdict, hours, now),
            score=score,
            decided_at=now,
        )
        log.debug("Decided %s: %s (match=%d, ready=%d)", posting.id, verdict.value, match, ready)
        return outcome


def decide_and_record(engine: DecisionEngine, store, posting: JobPosting,
                      profile: CandidateProfile) -> DecisionOutcome:
    """Decide *posting* and write the verdict to *store*."""
    outcome = engine.decide(posting, profile)
    if not store.set_decision(posting.id, outcome.to_decision()):
        log.warning("Verdict for %s is held in memory only (save failed)", posting.id)
    return outcome
