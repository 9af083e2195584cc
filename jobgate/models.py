"""Data models for postings, candidate profiles, scores and decisions."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any


def _enum_key(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


class _LenientEnum:
    """Mixin: parse names/values in any spelling, UNKNOWN when unrecognized."""

    @classmethod
    def parse(cls, value: Any):
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNKNOWN
        if isinstance(value, int) and not isinstance(value, bool):
            for member in cls:
                if member.value == value:
                    return member
            return cls.UNKNOWN
        key = _enum_key(str(value))
        for member in cls:
            if key in (_enum_key(member.name), _enum_key(str(member.value))):
                return member
        return cls.UNKNOWN


class SeniorityLevel(_LenientEnum, IntEnum):
    UNKNOWN = 0
    INTERN = 1
    JUNIOR = 2
    MIDDLE = 3
    SENIOR = 4
    LEAD = 5
    ARCHITECT = 6
    PRINCIPAL = 7

    @property
    def label(self) -> str:
        return self.name.capitalize()


class RemotePolicy(_LenientEnum, Enum):
    UNKNOWN = "unknown"
    ON_SITE = "on_site"
    HYBRID = "hybrid"
    FULLY_REMOTE = "fully_remote"
    REMOTE_FRIENDLY = "remote_friendly"


class EngagementType(_LenientEnum, Enum):
    UNKNOWN = "unknown"
    EMPLOYMENT = "employment"
    CONTRACT_B2B = "contract_b2b"
    FREELANCE = "freelance"
    INSIDE_IR35 = "inside_ir35"


class RecommendedAction(Enum):
    SKIP = "skip"
    SKILL_UP_FIRST = "skill_up_first"
    PREPARE_AND_APPLY = "prepare_and_apply"
    APPLY = "apply"

    @property
    def label(self) -> str:
        return _ACTION_LABELS[self]


_ACTION_LABELS: dict[RecommendedAction, str] = {
    RecommendedAction.APPLY: "Apply Now",
    RecommendedAction.PREPARE_AND_APPLY: "Prepare & Apply",
    RecommendedAction.SKILL_UP_FIRST: "Skill Up First",
    RecommendedAction.SKIP: "Skip",
}


class Verdict(Enum):
    """Stored GO/NO-GO verdict. Declaration order is the display order."""

    APPLY_NOW = "APPLY_NOW"
    LEARN_THEN_APPLY = "LEARN_THEN_APPLY"
    SKIP = "SKIP"

    @classmethod
    def parse(cls, value: Any) -> "Verdict":
        if isinstance(value, cls):
            return value
        key = _enum_key(str(value))
        for member in cls:
            if key == _enum_key(member.value):
                return member
        raise ValueError(f"Unknown verdict: {value!r}")

    @property
    def rank(self) -> int:
        return list(Verdict).index(self)


def _get(data: dict, *keys: str, default: Any = None) -> Any:
    """First present key among snake_case / camelCase spellings."""
    for k in keys:
        if k in data and data[k] is not None:
            return data[k]
    return default


def _number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


_TRUE_STRINGS = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "n", "off", ""})


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _TRUE_STRINGS:
            return True
        if key in _FALSE_STRINGS:
            return False
        raise ValueError(f"Not a boolean: {value!r}")
    return bool(value)


def _timestamp(value: str) -> datetime:
    """ISO-8601 in UTC; accepts a trailing Z and treats naive values as UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ── Postings ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class JobPosting:
    id: str
    title: str = ""
    company: str = ""
    required_skills: tuple[str, ...] = ()
    preferred_skills: tuple[str, ...] = ()
    salary_min: float | None = None
    salary_max: float | None = None
    seniority_level: SeniorityLevel = SeniorityLevel.UNKNOWN
    remote_policy: RemotePolicy = RemotePolicy.UNKNOWN
    engagement_type: EngagementType = EngagementType.UNKNOWN
    geo_restrictions: tuple[str, ...] = ()
    url: str = ""
    source: str = "unknown"

    @property
    def offered_salary(self) -> float | None:
        """Salary used for comparisons: the top of the range when listed."""
        return self.salary_max if self.salary_max is not None else self.salary_min

    @property
    def has_salary(self) -> bool:
        return self.salary_min is not None or self.salary_max is not None

    @classmethod
    def from_dict(cls, data: dict) -> "JobPosting":
        posting_id = _get(data, "id", "job_id", "jobId")
        if not posting_id:
            raise ValueError("Posting record has no id")
        return cls(
            id=str(posting_id),
            title=str(_get(data, "title", default="")),
            company=str(_get(data, "company", default="")),
            required_skills=tuple(_get(data, "required_skills", "requiredSkills", default=[])),
            preferred_skills=tuple(_get(data, "preferred_skills", "preferredSkills", default=[])),
            salary_min=_number(_get(data, "salary_min", "salaryMin")),
            salary_max=_number(_get(data, "salary_max", "salaryMax")),
            seniority_level=SeniorityLevel.parse(_get(data, "seniority_level", "seniorityLevel", "seniority")),
            remote_policy=RemotePolicy.parse(_get(data, "remote_policy", "remotePolicy", "remote")),
            engagement_type=EngagementType.parse(_get(data, "engagement_type", "engagementType")),
            geo_restrictions=tuple(_get(data, "geo_restrictions", "geoRestrictions", default=[])),
            url=str(_get(data, "url", default="")),
            source=str(_get(data, "source", "source_platform", "sourcePlatform", default="unknown")),
        )

    def __str__(self) -> str:
        return f"[{self.source}] {self.title} at {self.company} ({self.seniority_level.label}, {self.remote_policy.value})"


# ── Candidate profile ────────────────────────────────────────────────────


@dataclass(frozen=True)
class SkillEntry:
    name: str
    proficiency: int = 3  # 1 (beginner) – 5 (expert)
    years_of_experience: float = 0.0

    @classmethod
    def from_dict(cls, data: dict | str) -> "SkillEntry":
        if isinstance(data, str):
            return cls(name=data)
        return cls(
            name=str(data["name"]),
            proficiency=int(_get(data, "proficiency", "level", default=3)),
            years_of_experience=float(_get(data, "years_of_experience", "yearsOfExperience", "years", default=0.0)),
        )


@dataclass(frozen=True)
class Preferences:
    min_salary: float = 0.0
    target_salary: float = 0.0
    remote_only: bool = True
    min_seniority: SeniorityLevel = SeniorityLevel.SENIOR
    exclude_companies: frozenset[str] = frozenset()

    @classmethod
    def from_dict(cls, data: dict) -> "Preferences":
        return cls(
            min_salary=float(_get(data, "min_salary", "minSalary", default=0.0)),
            target_salary=float(_get(data, "target_salary", "targetSalary", default=0.0)),
            remote_only=_flag(_get(data, "remote_only", "remoteOnly", default=True)),
            min_seniority=SeniorityLevel.parse(_get(data, "min_seniority", "minSeniority", default="senior")),
            exclude_companies=frozenset(_get(data, "exclude_companies", "excludeCompanies", default=[])),
        )


@dataclass(frozen=True)
class CandidateProfile:
    skills: tuple[SkillEntry, ...] = ()
    preferences: Preferences = field(default_factory=Preferences)

    @property
    def skill_names(self) -> set[str]:
        return {s.name.casefold() for s in self.skills}

    def proficiency_of(self, skill: str) -> int:
        key = skill.casefold()
        for s in self.skills:
            if s.name.casefold() == key:
                return s.proficiency
        return 0

    @classmethod
    def from_dict(cls, data: dict) -> "CandidateProfile":
        return cls(
            skills=tuple(SkillEntry.from_dict(s) for s in data.get("skills", []) or []),
            preferences=Preferences.from_dict(data.get("preferences", {}) or {}),
        )


# ── Scoring output ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScoreExplanation:
    skill_match: str = ""
    seniority_fit: str = ""
    salary_alignment: str = ""
    remote_fit: str = ""
    growth_opportunity: str = ""
    overall_verdict: str = ""
    strengths: tuple[str, ...] = ()
    risks: tuple[str, ...] = ()

    def lines(self) -> list[str]:
        return [
            self.skill_match,
            self.seniority_fit,
            self.salary_alignment,
            self.remote_fit,
            self.growth_opportunity,
        ]


@dataclass(frozen=True)
class MatchScore:
    overall_score: float
    skill_score: float
    seniority_score: float
    salary_score: float
    remote_score: float
    growth_score: float
    matching_skills: tuple[str, ...]
    missing_skills: tuple[str, ...]
    bonus_skills: tuple[str, ...]
    confidence: float
    explanation: ScoreExplanation
    recommended_action: RecommendedAction
    estimated_weeks_to_ready: int

    @property
    def action_label(self) -> str:
        return self.recommended_action.label

    def to_dict(self) -> dict:
        return {
            "overall_score": self.overall_score,
            "skill_score": self.skill_score,
            "seniority_score": self.seniority_score,
            "salary_score": self.salary_score,
            "remote_score": self.remote_score,
            "growth_score": self.growth_score,
            "matching_skills": list(self.matching_skills),
            "missing_skills": list(self.missing_skills),
            "bonus_skills": list(self.bonus_skills),
            "confidence": self.confidence,
            "recommended_action": self.recommended_action.value,
            "estimated_weeks_to_ready": self.estimated_weeks_to_ready,
            "explanation": {
                "skill_match": self.explanation.skill_match,
                "seniority_fit": self.explanation.seniority_fit,
                "salary_alignment": self.explanation.salary_alignment,
                "remote_fit": self.explanation.remote_fit,
                "growth_opportunity": self.explanation.growth_opportunity,
                "overall_verdict": self.explanation.overall_verdict,
                "strengths": list(self.explanation.strengths),
                "risks": list(self.explanation.risks),
            },
        }

    def __str__(self) -> str:
        return (
            f"Score: {self.overall_score:.0f}/100 | {self.action_label} | "
            f"Match: {len(self.matching_skills)}, Missing: {len(self.missing_skills)}, "
            f"Bonus: {len(self.bonus_skills)}"
        )


# ── Decisions ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Decision:
    verdict: Verdict
    readiness_score: int = 0
    estimated_learning_hours: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "verdict": self.verdict.value,
            "readinessScore": self.readiness_score,
            "estimatedLearningHours": self.estimated_learning_hours,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Decision":
        created = _get(data, "createdAt", "created_at")
        return cls(
            verdict=Verdict.parse(data["verdict"]),
            readiness_score=int(_get(data, "readinessScore", "readiness_score", default=0)),
            estimated_learning_hours=int(_get(data, "estimatedLearningHours", "estimated_learning_hours", default=0)),
            created_at=_timestamp(str(created)) if created else datetime.now(timezone.utc),
        )
