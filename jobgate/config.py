"""Load candidate profile, postings and env configuration."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobgate.log import get_logger
from jobgate.models import CandidateProfile, JobPosting
from jobgate.scorer import DEFAULT_WEIGHTS, ScoringWeights

log = get_logger(__name__)

load_dotenv()

HOME_DIR: Path = Path(os.environ.get("JOBGATE_HOME", Path.home() / ".jobgate"))
CONFIG_DIR: Path = Path(os.environ.get("JOBGATE_CONFIG_DIR", Path.cwd() / "config"))
PROFILE_PATH: Path = CONFIG_DIR / "profile.yaml"
REPORTS_DIR: Path = HOME_DIR / "reports"
DATA_DIR: Path = HOME_DIR / "data"

# Older profiles spell salary preferences with a currency suffix
_LEGACY_PREFERENCE_KEYS: dict[str, str] = {
    "min_salary_usd": "min_salary",
    "minSalaryUsd": "min_salary",
    "target_salary_usd": "target_salary",
    "targetSalaryUsd": "target_salary",
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def decisions_path() -> Path:
    """Well-known per-user location of the persisted decisions."""
    override = get_env("JOBGATE_DECISIONS_PATH")
    return Path(override).expanduser() if override else HOME_DIR / "decisions.json"


def ensure_dirs() -> None:
    for d in (HOME_DIR, REPORTS_DIR, DATA_DIR):
        d.mkdir(parents=True, exist_ok=True)


def load_profile_data(path: str | Path | None = None) -> dict[str, Any]:
    profile_path = Path(path) if path else PROFILE_PATH
    with open(profile_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    prefs = data.setdefault("preferences", {}) or {}
    for old, new in _LEGACY_PREFERENCE_KEYS.items():
        if old in prefs and new not in prefs:
            prefs[new] = prefs.pop(old)
    data["preferences"] = prefs

    return data


def load_profile(path: str | Path | None = None) -> CandidateProfile:
    profile = CandidateProfile.from_dict(load_profile_data(path))
    log.debug("Loaded profile with %d skills", len(profile.skills))
    return profile


def load_weights(path: str | Path | None = None) -> ScoringWeights:
    """Scoring weights from the profile's ``scoring.weights`` section."""
    try:
        data = load_profile_data(path)
    except FileNotFoundError:
        return DEFAULT_WEIGHTS
    weights = (data.get("scoring") or {}).get("weights")
    if not weights:
        return DEFAULT_WEIGHTS
    return ScoringWeights.from_dict(weights)


def load_postings(path: str | Path) -> list[JobPosting]:
    """Normalized postings from a JSON (or YAML) list of records."""
    posting_path = Path(path)
    with open(posting_path, "r", encoding="utf-8") as f:
        if posting_path.suffix.lower() in (".yaml", ".yml"):
            records = yaml.safe_load(f) or []
        else:
            records = json.load(f)
    if isinstance(records, dict):
        records = records.get("postings", [])
    postings = [JobPosting.from_dict(r) for r in records]
    log.info("Loaded %d postings from %s", len(postings), posting_path.name)
    return postings
