"""Persisted verdicts per posting, and the gates that apply/learn must pass.

A stored decision is the only authority for the gates: ``can_apply`` is true
only for APPLY_NOW, ``can_learn`` only for LEARN_THEN_APPLY. The store is
last-write-wins with one decision per posting id, rewritten in full on
every change.

Persistence failures never break gating. An unreadable file is treated as
empty, and a failed save keeps the verdict in memory for this process
(``last_save_error`` records why it did not reach disk).
"""
from __future__ import annotations

import fcntl
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Iterator, NamedTuple

from jobgate.config import decisions_path
from jobgate.errors import StoreError, StoreLoadError, StoreSaveError
from jobgate.log import get_logger
from jobgate.models import Decision, Verdict
from jobgate.retry import retry

log = get_logger(__name__)


class GateResult(NamedTuple):
    allowed: bool
    reason: str


@contextmanager
def _flocked(handle) -> Iterator[None]:
    """Hold an exclusive advisory lock on *handle* for the block."""
    try:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        locked = True
    except OSError as exc:
        log.debug("flock unavailable on %s: %s", getattr(handle, "name", handle), exc)
        locked = False
    try:
        yield
    finally:
        if locked:
            with suppress(OSError):
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


# ── Backends ─────────────────────────────────────────────────────────────


class DecisionBackend(ABC):
    """Key-value storage of serialized decisions (posting id -> record)."""

    @abstractmethod
    def load(self) -> dict[str, dict]:
        """All records. Raises StoreLoadError when unreadable."""

    @abstractmethod
    def save(self, records: dict[str, dict]) -> None:
        """Replace all records. Raises StoreSaveError on failure."""

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Exclusive access across the load-merge-save span."""
        yield


class InMemoryBackend(DecisionBackend):
    def __init__(self, records: dict[str, dict] | None = None) -> None:
        self._records: dict[str, dict] = {k: dict(v) for k, v in (records or {}).items()}

    def load(self) -> dict[str, dict]:
        return {k: dict(v) for k, v in self._records.items()}

    def save(self, records: dict[str, dict]) -> None:
        self._records = {k: dict(v) for k, v in records.items()}


class JsonFileBackend(DecisionBackend):
    """One JSON object on disk, replaced atomically on every save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def load(self) -> dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StoreLoadError(f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreLoadError(f"{self.path} does not hold a JSON object")
        return data

    def save(self, records: dict[str, dict]) -> None:
        try:
            self._write(records)
        except OSError as exc:
            raise StoreSaveError(f"cannot write {self.path}: {exc}") from exc

    @retry(max_attempts=3, retryable=(OSError,))
    def _write(self, records: dict[str, dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            with suppress(OSError):
                os.unlink(tmp)
            raise

    @contextmanager
    def lock(self) -> Iterator[None]:
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(self.lock_path, "a", encoding="utf-8")
        except OSError as exc:
            log.warning("No cross-process lock for %s (%s)", self.path.name, exc)
            handle = None

        if handle is None:
            yield
            return

        with handle, _flocked(handle):
            yield


# ── Store ────────────────────────────────────────────────────────────────


class DecisionStore:
    def __init__(self, backend: DecisionBackend) -> None:
        if backend is None:
            raise ValueError("backend must not be None")
        self._backend = backend
        self._mutex = threading.RLock()
        self._cache: dict[str, Decision] = {}
        self._loaded = False
        # Changes not yet on disk; re-applied over every reload
        self._unsaved: set[str] = set()
        self._pending_clear = False
        self.last_save_error: StoreError | None = None

    @staticmethod
    def _parse(records: dict[str, dict]) -> dict[str, Decision]:
        decisions: dict[str, Decision] = {}
        for posting_id, record in records.items():
            try:
                decisions[str(posting_id)] = Decision.from_dict(record)
            except (KeyError, TypeError, ValueError) as exc:
                log.warning("Ignoring malformed decision for %s: %s", posting_id, exc)
        return decisions

    def _refresh(self) -> None:
        """Reload from the backend, keeping unsaved in-memory changes on top."""
        with self._mutex:
            try:
                records = self._backend.load()
            except StoreLoadError as exc:
                log.warning(
                    "Decision store unreadable, %s: %s",
                    "keeping in-memory view" if self._loaded else "starting empty",
                    exc,
                )
                self._loaded = True
                return

            fresh = {} if self._pending_clear else self._parse(records)
            for posting_id in self._unsaved:
                if posting_id in self._cache:
                    fresh[posting_id] = self._cache[posting_id]
            self._cache = fresh
            self._loaded = True

    def _persist(self) -> bool:
        records = {pid: d.to_dict() for pid, d in self._cache.items()}
        try:
            self._backend.save(records)
        except StoreSaveError as exc:
            self.last_save_error = exc
            log.error("Decision store save failed, verdicts held in memory only: %s", exc)
            return False
        self._unsaved.clear()
        self._pending_clear = False
        self.last_save_error = None
        return True

    def get_decision(self, posting_id: str) -> Decision | None:
        if not posting_id:
            return None
        with self._mutex:
            self._refresh()
            return self._cache.get(posting_id)

    def set_decision(self, posting_id: str, decision: Decision) -> bool:
        """Upsert and write through. False when the save failed."""
        if not posting_id:
            raise ValueError("posting_id must not be empty")
        if decision is None:
            raise ValueError("decision must not be None")
        with self._mutex, self._backend.lock():
            self._refresh()
            self._cache[posting_id] = decision
            self._unsaved.add(posting_id)
            saved = self._persist()
        log.info("Decision for %s: %s", posting_id, decision.verdict.value)
        return saved

    def get_all_decisions(self) -> dict[str, Decision]:
        """Point-in-time snapshot; later writes do not show up in it."""
        with self._mutex:
            self._refresh()
            return dict(self._cache)

    def clear(self) -> bool:
        with self._mutex, self._backend.lock():
            self._cache = {}
            self._unsaved.clear()
            self._pending_clear = True
            self._loaded = True
            saved = self._persist()
        log.info("Cleared all decisions")
        return saved

    def can_apply(self, posting_id: str) -> GateResult:
        decision = self.get_decision(posting_id)
        if decision is None:
            return GateResult(False, f"BLOCKED: run 'decide' first before applying to {posting_id or 'this posting'}")
        if decision.verdict == Verdict.LEARN_THEN_APPLY:
            return GateResult(
                False,
                f"BLOCKED: verdict is {Verdict.LEARN_THEN_APPLY.value} "
                f"({decision.estimated_learning_hours}h of learning needed). Learn first!",
            )
        if decision.verdict == Verdict.SKIP:
            return GateResult(False, f"BLOCKED: verdict is {Verdict.SKIP.value}. Don't spend time on this posting.")
        return GateResult(True, f"ALLOWED: verdict is {Verdict.APPLY_NOW.value}")

    def can_learn(self, posting_id: str) -> GateResult:
        decision = self.get_decision(posting_id)
        if decision is None:
            return GateResult(False, "BLOCKED: run 'decide' first to get a learning plan")
        if decision.verdict == Verdict.APPLY_NOW:
            return GateResult(
                False,
                f"BLOCKED: you're already ready ({decision.readiness_score}% readiness). "
                f"APPLY NOW, don't over-prepare!",
            )
        if decision.verdict == Verdict.SKIP:
            return GateResult(
                False,
                f"BLOCKED: verdict is {Verdict.SKIP.value}. Don't spend learning time on this posting.",
            )
        return GateResult(True, f"ALLOWED: {decision.estimated_learning_hours}h of learning needed")


def default_store() -> DecisionStore:
    """File-backed store at the configured per-user path."""
    return DecisionStore(JsonFileBackend(decisions_path()))
