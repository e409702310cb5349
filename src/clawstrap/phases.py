"""Phase sequencing with explicit idempotency checks.

A Phase pairs an action with a "already satisfied?" predicate and a
failure policy. The sequencer walks phases strictly in order:

    check -> skip if satisfied
    action -> completed
    action raised -> fatal: stop the run / warn: log and keep going

Nothing is rolled back. Every phase leaves the host in a state that
is safe to keep, so a later re-run simply skips what is done.

Usage:
    from clawstrap.phases import Phase, PhaseSequencer
    result = PhaseSequencer([Phase("node", "Node.js", install_node, node_ok)]).run()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

from .errors import PhaseFailedError
from .models import FailurePolicy

logger = logging.getLogger("clawstrap.phases")


class PhaseStatus(str, Enum):
    """Outcome of a single phase in a run."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class Phase:
    """One idempotent provisioning step.

    Attributes:
        phase_id: Stable identifier (used for --start-at and summaries).
        title: Human-readable label.
        action: Callable doing the work; raises on failure.
        check: Returns True when the phase is already satisfied.
            None means the phase always runs.
        policy: FATAL aborts the run on failure, WARN continues.
        remedy: Command the operator can run later if the phase failed.
    """

    phase_id: str
    title: str
    action: Callable[[], object]
    check: Optional[Callable[[], bool]] = None
    policy: FailurePolicy = FailurePolicy.FATAL
    remedy: str = ""

    def is_satisfied(self) -> bool:
        """Evaluate the precondition. A check that raises counts as unsatisfied."""
        if self.check is None:
            return False
        try:
            return bool(self.check())
        except Exception as exc:
            logger.debug("Check for %s raised %s; treating as not done", self.phase_id, exc)
            return False


@dataclass
class PhaseResult:
    """Record of what happened to a phase."""

    phase_id: str
    title: str
    status: PhaseStatus
    detail: str = ""
    remedy: str = ""


@dataclass
class SequenceResult:
    """Per-phase records for a whole run, in execution order."""

    results: list[PhaseResult] = field(default_factory=list)

    def _ids(self, status: PhaseStatus) -> list[str]:
        return [r.phase_id for r in self.results if r.status == status]

    @property
    def completed(self) -> list[str]:
        return self._ids(PhaseStatus.COMPLETED)

    @property
    def skipped(self) -> list[str]:
        return self._ids(PhaseStatus.SKIPPED)

    @property
    def failed(self) -> list[str]:
        return self._ids(PhaseStatus.FAILED)

    @property
    def warnings(self) -> list[PhaseResult]:
        """Failed phases the run continued past."""
        return [r for r in self.results if r.status == PhaseStatus.FAILED]

    @property
    def ok(self) -> bool:
        """True when no phase failed."""
        return not self.failed


class PhaseSequencer:
    """Runs an ordered list of phases with skip/fatal/warn semantics.

    Args:
        phases: Phases in execution order. Ids must be unique.
        on_phase_start: Optional hook called with each phase before it runs
            (the CLI uses it to print a banner).
    """

    def __init__(
        self,
        phases: Sequence[Phase],
        on_phase_start: Optional[Callable[[Phase], None]] = None,
    ) -> None:
        seen: set[str] = set()
        for phase in phases:
            if phase.phase_id in seen:
                raise ValueError(f"duplicate phase id: {phase.phase_id}")
            seen.add(phase.phase_id)
        self.phases = list(phases)
        self.on_phase_start = on_phase_start

    @property
    def phase_ids(self) -> list[str]:
        return [p.phase_id for p in self.phases]

    def run(
        self,
        start_at: Optional[str] = None,
        stop_after: Optional[str] = None,
    ) -> SequenceResult:
        """Run phases in order.

        Args:
            start_at: Skip (without recording) every phase before this id.
            stop_after: Stop once this phase has been handled.

        Returns:
            SequenceResult with one record per phase handled.

        Raises:
            PhaseFailedError: When a FATAL phase fails. Records up to and
                including the failed phase are attached as ``.result``.
        """
        if start_at is not None and start_at not in self.phase_ids:
            raise ValueError(f"unknown phase id: {start_at}")

        result = SequenceResult()
        started = start_at is None

        for phase in self.phases:
            if not started:
                if phase.phase_id != start_at:
                    continue
                started = True

            if self.on_phase_start is not None:
                self.on_phase_start(phase)

            if phase.is_satisfied():
                logger.info("Phase %s already done, skipping", phase.phase_id)
                result.results.append(PhaseResult(phase.phase_id, phase.title, PhaseStatus.SKIPPED))
            else:
                self._run_phase(phase, result)

            if stop_after is not None and phase.phase_id == stop_after:
                logger.info("Stopping after %s", stop_after)
                break

        return result

    def _run_phase(self, phase: Phase, result: SequenceResult) -> None:
        logger.info("Running phase %s", phase.phase_id)
        try:
            phase.action()
        except Exception as exc:
            record = PhaseResult(
                phase.phase_id, phase.title, PhaseStatus.FAILED,
                detail=str(exc), remedy=phase.remedy,
            )
            result.results.append(record)
            if phase.policy == FailurePolicy.FATAL:
                logger.error("Phase %s failed: %s", phase.phase_id, exc)
                raise PhaseFailedError(phase.phase_id, exc, result=result) from exc
            logger.warning("Phase %s failed, continuing: %s", phase.phase_id, exc)
            return

        logger.info("Phase %s completed", phase.phase_id)
        result.results.append(PhaseResult(phase.phase_id, phase.title, PhaseStatus.COMPLETED))
