import os
import tempfile

# Keep the suite off the real home directory; must run before jobgate is imported
os.environ["JOBGATE_LOG_DIR"] = ""
os.environ.setdefault("JOBGATE_HOME", tempfile.mkdtemp(prefix="jobgate-test-"))

import pytest

from jobgate.decision_store import DecisionStore, InMemoryBackend
from jobgate.models import (
    CandidateProfile,
    EngagementType,
    JobPosting,
    Preferences,
    RemotePolicy,
    SeniorityLevel,
    SkillEntry,
)


def posting(**overrides) -> JobPosting:
    fields = dict(
        id="job-1",
        title="Senior .NET Engineer",
        company="Contoso",
        required_skills=("C#", "ASP.NET", "Azure", "SQL"),
        preferred_skills=("Docker", "Kubernetes"),
        salary_min=80_000,
        salary_max=100_000,
        seniority_level=SeniorityLevel.SENIOR,
        remote_policy=RemotePolicy.FULLY_REMOTE,
        engagement_type=EngagementType.CONTRACT_B2B,
    )
    fields.update(overrides)
    return JobPosting(**fields)


def profile(skills=None, **prefs) -> CandidateProfile:
    if skills is None:
        skills = {name: 4 for name in ("C#", "ASP.NET", "Azure", "SQL", "Docker", "Kubernetes")}
    preferences = dict(
        min_salary=70_000,
        target_salary=90_000,
        remote_only=True,
        min_seniority=SeniorityLevel.SENIOR,
    )
    preferences.update(prefs)
    return CandidateProfile(
        skills=tuple(SkillEntry(name, proficiency=level, years_of_experience=4) for name, level in skills.items()),
        preferences=Preferences(**preferences),
    )


@pytest.fixture
def make_posting():
    return posting


@pytest.fixture
def make_profile():
    return profile


@pytest.fixture
def memory_store():
    return DecisionStore(InMemoryBackend())


@pytest.fixture
def decisions_file(tmp_path, monkeypatch):
    """Point the default store at a per-test file."""
    path = tmp_path / "decisions.json"
    monkeypatch.setenv("JOBGATE_DECISIONS_PATH", str(path))
    return path
