"""End-to-end run: filter postings, score them, decide and record verdicts."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Iterable

from jobgate.config import ensure_dirs, load_postings, load_profile, load_weights
from jobgate.decision_store import DecisionStore, default_store
from jobgate.decisions import DecisionEngine, DecisionOutcome, decide_and_record
from jobgate.log import get_logger
from jobgate.models import CandidateProfile, JobPosting, MatchScore, Verdict
from jobgate.relevance import apply_filters
from jobgate.report import build_decision_report, write_decision_report
from jobgate.scorer import ScoringEngine

log = get_logger(__name__)

DEFAULT_MAX_WORKERS = 8


def _workers(count: int, max_workers: int | None) -> int:
    return max(1, min(count, max_workers or DEFAULT_MAX_WORKERS))


def evaluate(
    postings: Iterable[JobPosting],
    profile: CandidateProfile,
    *,
    engine: ScoringEngine | None = None,
    max_workers: int | None = None,
) -> list[tuple[JobPosting, MatchScore]]:
    """Relevant postings with their scores, best first."""
    engine = engine or ScoringEngine()
    relevant = apply_filters(postings, profile)
    if not relevant:
        return []

    with ThreadPoolExecutor(max_workers=_workers(len(relevant), max_workers)) as pool:
        scores = list(pool.map(lambda p: engine.score(p, profile), relevant))

    scored = list(zip(relevant, scores))
    scored.sort(key=lambda pair: -pair[1].overall_score)
    log.info("Scored %d relevant posting(s)", len(scored))
    return scored


def decide_all(
    postings: Iterable[JobPosting],
    profile: CandidateProfile,
    store: DecisionStore,
    *,
    engine: DecisionEngine | None = None,
    max_workers: int | None = None,
) -> list[tuple[JobPosting, DecisionOutcome]]:
    """Decide every relevant posting and record its verdict in *store*.

    Ordered APPLY_NOW first, then LEARN_THEN_APPLY, then SKIP; by match score
    within a verdict.
    """
    engine = engine or DecisionEngine()
    relevant = apply_filters(postings, profile)
    if not relevant:
        return []

    # Scoring runs in parallel; the store serializes its own writes
    with ThreadPoolExecutor(max_workers=_workers(len(relevant), max_workers)) as pool:
        outcomes = list(pool.map(lambda p: decide_and_record(engine, store, p, profile), relevant))

    decided = list(zip(relevant, outcomes))
    decided.sort(key=lambda pair: (pair[1].verdict.rank, -pair[1].match_score))
    counts = {v: sum(1 for _, o in decided if o.verdict == v) for v in Verdict}
    log.info(
        "Decided %d posting(s): apply=%d, learn=%d, skip=%d",
        len(decided), counts[Verdict.APPLY_NOW], counts[Verdict.LEARN_THEN_APPLY], counts[Verdict.SKIP],
    )
    return decided


def run(
    postings_path: str | Path,
    *,
    profile_path: str | Path | None = None,
    store: DecisionStore | None = None,
    write_report: bool = False,
) -> dict[str, Any]:
    ensure_dirs()
    profile = load_profile(profile_path)
    engine = DecisionEngine(ScoringEngine(load_weights(profile_path)))
    store = store or default_store()

    postings = load_postings(postings_path)
    decided = decide_all(postings, profile, store, engine=engine)
    outcomes = [o for _, o in decided]

    report_path = None
    if write_report:
        content = build_decision_report(decided, store.get_all_decisions())
        report_path = write_decision_report(content)

    summary = {
        "postings_loaded": len(postings),
        "relevant_count": len(decided),
        "apply_now": sum(1 for o in outcomes if o.verdict == Verdict.APPLY_NOW),
        "learn_then_apply": sum(1 for o in outcomes if o.verdict == Verdict.LEARN_THEN_APPLY),
        "skip": sum(1 for o in outcomes if o.verdict == Verdict.SKIP),
        "saved": store.last_save_error is None,
        "report_path": str(report_path) if report_path else None,
    }
    log.info(
        "Run complete: loaded=%d, relevant=%d, apply=%d, learn=%d, skip=%d",
        summary["postings_loaded"], summary["relevant_count"],
        summary["apply_now"], summary["learn_then_apply"], summary["skip"],
    )
    return summary
