"""Markdown audit report of a decision run."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from jobgate.config import REPORTS_DIR
from jobgate.decisions import DecisionOutcome
from jobgate.log import get_logger
from jobgate.models import Decision, JobPosting, Verdict

log = get_logger(__name__)

_VERDICT_HEADINGS: dict[Verdict, str] = {
    Verdict.APPLY_NOW: "Apply Now",
    Verdict.LEARN_THEN_APPLY: "Learn Then Apply",
    Verdict.SKIP: "Skip",
}


def _truncate(text: str, width: int) -> str:
    return text[:width] + ("…" if len(text) > width else "")


def _outcome_section(posting: JobPosting, outcome: DecisionOutcome) -> list[str]:
    lines = [f"### {posting.title} @ {posting.company}"]
    lines.append(
        f"- **Match:** {outcome.match_score}% | **Readiness:** {outcome.readiness_score}% "
        f"| **Confidence:** {outcome.confidence}%"
    )
    if outcome.verdict == Verdict.LEARN_THEN_APPLY:
        lines.append(f"- **Learning:** ~{outcome.estimated_learning_hours}h")
    if outcome.critical_missing_skills:
        lines.append(f"- **Missing:** {', '.join(outcome.critical_missing_skills)}")
    if outcome.quick_wins:
        lines.append(f"- **Quick wins:** {', '.join(outcome.quick_wins)}")
    if outcome.apply_by:
        lines.append(f"- **Apply by:** {outcome.apply_by:%Y-%m-%d}")
    for reason in outcome.reasoning.splitlines():
        lines.append(f"  - {reason}")
    if posting.url:
        lines.append(f"- **Posting:** [{posting.id}]({posting.url})")
    lines.append("")
    return lines


def build_decision_report(
    decided: list[tuple[JobPosting, DecisionOutcome]],
    decisions: dict[str, Decision] | None = None,
) -> str:
    decisions = decisions or {}
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    lines: list[str] = [f"# Decision Report: {date}", ""]

    counts = {v: sum(1 for _, o in decided if o.verdict == v) for v in Verdict}
    lines.append(
        f"**{len(decided)}** postings decided | **{counts[Verdict.APPLY_NOW]}** apply now "
        f"| **{counts[Verdict.LEARN_THEN_APPLY]}** learn first | **{counts[Verdict.SKIP]}** skip"
    )
    lines.append("")

    for verdict in (Verdict.APPLY_NOW, Verdict.LEARN_THEN_APPLY):
        group = [(p, o) for p, o in decided if o.verdict == verdict]
        if not group:
            continue
        lines.append(f"## {_VERDICT_HEADINGS[verdict]}")
        lines.append("")
        for posting, outcome in group:
            lines.extend(_outcome_section(posting, outcome))

    if decided:
        lines.append("---")
        lines.append("")
        lines.append("## Quick Reference")
        lines.append("")
        lines.append("| # | Role | Company | Match | Ready | Verdict |")
        lines.append("|--:|------|---------|------:|------:|---------|")
        for i, (posting, outcome) in enumerate(decided, 1):
            lines.append(
                f"| {i} | {_truncate(posting.title, 40)} | {_truncate(posting.company, 22)} "
                f"| {outcome.match_score}% | {outcome.readiness_score}% | {outcome.verdict.value} |"
            )
        lines.append("")

    if decisions:
        lines.append("---")
        lines.append("")
        lines.append("## Decision History")
        lines.append("")
        history = sorted(decisions.items(), key=lambda kv: kv[1].created_at, reverse=True)
        for posting_id, d in history[:20]:
            extra = f", {d.estimated_learning_hours}h to learn" if d.verdict == Verdict.LEARN_THEN_APPLY else ""
            lines.append(
                f"- **{posting_id}**: _{d.verdict.value}_ ({d.readiness_score}% ready{extra}) "
                f"at {d.created_at:%Y-%m-%d %H:%M}"
            )
        lines.append("")

    log.info("Built decision report: %d decided, %d stored", len(decided), len(decisions))
    return "\n".join(lines)


def write_decision_report(content: str, reports_dir: Path | None = None) -> Path:
    target = reports_dir or REPORTS_DIR
    target.mkdir(parents=True, exist_ok=True)
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    path = target / f"decisions_{date}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written to %s", path)
    return path
