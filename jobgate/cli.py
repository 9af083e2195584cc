"""
jobgate CLI: rank postings, decide what to do with them, and gate the work.

Usage:
    jobgate [command] [options]

Commands:
    match       Score and rank postings against your profile
    assess      Show the per-rule eligibility audit for one posting
    decide      Decide APPLY_NOW / LEARN_THEN_APPLY / SKIP and record it
    apply       Check whether applying to a posting is allowed
    learn       Check whether learning for a posting is allowed
    decisions   List recorded decisions
    clear       Remove all recorded decisions

Examples:
    jobgate match --postings postings.json --top 5
    jobgate decide --postings postings.json --report
    jobgate apply job-123
"""
from __future__ import annotations

import argparse
import json
import sys

import yaml

from jobgate import __version__
from jobgate.config import load_postings, load_profile, load_weights
from jobgate.decision_store import default_store
from jobgate.decisions import DecisionEngine, DecisionOutcome, decide_and_record
from jobgate.eligibility import assess
from jobgate.log import get_logger
from jobgate.models import JobPosting, MatchScore
from jobgate.pipeline import decide_all, evaluate
from jobgate.report import build_decision_report, write_decision_report
from jobgate.scorer import ScoringEngine

log = get_logger(__name__)


def _find_posting(postings: list[JobPosting], posting_id: str) -> JobPosting:
    for p in postings:
        if p.id == posting_id:
            return p
    raise ValueError(f"No posting with id {posting_id!r}")


def _print_score(rank: int, posting: JobPosting, score: MatchScore) -> None:
    print(f"{rank}. {posting.title} @ {posting.company} [{posting.id}]")
    print(f"   {score}")
    print(f"   Confidence: {score.confidence:.0%} | Ready in ~{score.estimated_weeks_to_ready} week(s)")
    for line in score.explanation.lines():
        print(f"   - {line}")
    if score.explanation.strengths:
        print(f"   Strengths: {', '.join(score.explanation.strengths)}")
    for risk in score.explanation.risks:
        print(f"   Risk: {risk}")
    print(f"   {score.explanation.overall_verdict}")
    print()


def _print_outcome(posting: JobPosting, outcome: DecisionOutcome) -> None:
    print(f"{outcome.verdict.value:<17} {posting.title} @ {posting.company} [{posting.id}]")
    print(f"   Match {outcome.match_score}% | Readiness {outcome.readiness_score}% "
          f"| Confidence {outcome.confidence}%")
    for line in outcome.reasoning.splitlines():
        print(f"   {line}")
    print()


def cmd_match(args) -> int:
    profile = load_profile(args.profile)
    engine = ScoringEngine(load_weights(args.profile))
    scored = evaluate(load_postings(args.postings), profile, engine=engine)

    if args.json:
        print(json.dumps([{"id": p.id, **s.to_dict()} for p, s in scored[: args.top]], indent=2))
        return 0

    if not scored:
        print("No relevant postings.")
        return 0
    for i, (posting, score) in enumerate(scored[: args.top], 1):
        _print_score(i, posting, score)
    return 0


def cmd_assess(args) -> int:
    posting = _find_posting(load_postings(args.postings), args.posting_id)
    result = assess(posting)
    print(f"{posting.title} @ {posting.company} [{posting.id}]")
    print(result.summary)
    for rule in result.rules:
        print(f"  [{'PASS' if rule.passed else 'FAIL'}] {rule.name}: {rule.reason}")
    return 0 if result.is_eligible else 1


def cmd_decide(args) -> int:
    profile = load_profile(args.profile)
    engine = DecisionEngine(ScoringEngine(load_weights(args.profile)))
    store = default_store()
    postings = load_postings(args.postings)

    if args.posting_id:
        posting = _find_posting(postings, args.posting_id)
        decided = [(posting, decide_and_record(engine, store, posting, profile))]
    else:
        decided = decide_all(postings, profile, store, engine=engine)

    if not decided:
        print("No relevant postings.")
    for posting, outcome in decided[: args.top]:
        _print_outcome(posting, outcome)

    if store.last_save_error is not None:
        print(f"Warning: decisions not saved ({store.last_save_error})", file=sys.stderr)

    if args.report:
        path = write_decision_report(build_decision_report(decided, store.get_all_decisions()))
        print(f"Report: {path}")
    return 0


def _gate(result) -> int:
    print(result.reason)
    return 0 if result.allowed else 1


def cmd_apply(args) -> int:
    return _gate(default_store().can_apply(args.posting_id))


def cmd_learn(args) -> int:
    return _gate(default_store().can_learn(args.posting_id))


def cmd_decisions(args) -> int:
    decisions = default_store().get_all_decisions()
    if not decisions:
        print("No decisions recorded. Run 'jobgate decide' first.")
        return 0
    for posting_id, d in sorted(decisions.items(), key=lambda kv: (kv[1].verdict.rank, kv[0])):
        hours = f" {d.estimated_learning_hours}h" if d.estimated_learning_hours else ""
        print(f"{d.verdict.value:<17} {posting_id}  readiness={d.readiness_score}%{hours}  "
              f"{d.created_at:%Y-%m-%d %H:%M}")
    return 0


def cmd_clear(args) -> int:
    if not default_store().clear():
        print("Decisions cleared in memory only; the store could not be written.", file=sys.stderr)
        return 1
    print("All decisions cleared.")
    return 0


COMMANDS = {
    "match": cmd_match,
    "assess": cmd_assess,
    "decide": cmd_decide,
    "apply": cmd_apply,
    "learn": cmd_learn,
    "decisions": cmd_decisions,
    "clear": cmd_clear,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jobgate",
        description="Match postings to your profile and gate apply/learn work on recorded decisions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    match_parser = subparsers.add_parser("match", help="Score and rank postings")
    match_parser.add_argument("--postings", "-j", required=True, help="Postings file (JSON list)")
    match_parser.add_argument("--profile", "-p", help="Profile YAML (default: config/profile.yaml)")
    match_parser.add_argument("--top", "-t", type=int, default=10, help="Show top N matches")
    match_parser.add_argument("--json", action="store_true", help="Print scores as JSON")

    assess_parser = subparsers.add_parser("assess", help="Eligibility audit for one posting")
    assess_parser.add_argument("posting_id", help="Posting id")
    assess_parser.add_argument("--postings", "-j", required=True, help="Postings file (JSON list)")

    decide_parser = subparsers.add_parser("decide", help="Decide and record verdicts")
    decide_parser.add_argument("--postings", "-j", required=True, help="Postings file (JSON list)")
    decide_parser.add_argument("--profile", "-p", help="Profile YAML (default: config/profile.yaml)")
    decide_parser.add_argument("--posting-id", "-i", help="Decide a single posting")
    decide_parser.add_argument("--top", "-t", type=int, default=20, help="Show top N decisions")
    decide_parser.add_argument("--report", action="store_true", help="Write a markdown report")

    apply_parser = subparsers.add_parser("apply", help="Is applying allowed?")
    apply_parser.add_argument("posting_id", help="Posting id")

    learn_parser = subparsers.add_parser("learn", help="Is learning allowed?")
    learn_parser.add_argument("posting_id", help="Posting id")

    subparsers.add_parser("decisions", help="List recorded decisions")
    subparsers.add_parser("clear", help="Remove all recorded decisions")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nOperation cancelled.")
        return 1
    except (OSError, ValueError, yaml.YAMLError) as e:
        log.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
