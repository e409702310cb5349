"""Tests for the phase sequencer: skip, fatal and warn semantics."""

from __future__ import annotations

import pytest

from clawstrap.errors import PhaseFailedError
from clawstrap.models import FailurePolicy
from clawstrap.phases import Phase, PhaseSequencer, PhaseStatus


def _boom() -> None:
    raise RuntimeError("boom")


class Recorder:
    """Collects the order in which phase actions ran."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def action(self, name: str):
        return lambda: self.calls.append(name)


class TestPhase:

    def test_no_check_is_never_satisfied(self) -> None:
        assert Phase("a", "A", lambda: None).is_satisfied() is False

    def test_raising_check_is_unsatisfied(self) -> None:
        phase = Phase("a", "A", lambda: None, check=_boom)
        assert phase.is_satisfied() is False


class TestPhaseSequencer:

    def test_runs_in_order(self) -> None:
        rec = Recorder()
        result = PhaseSequencer([
            Phase("one", "One", rec.action("one")),
            Phase("two", "Two", rec.action("two")),
        ]).run()
        assert rec.calls == ["one", "two"]
        assert result.completed == ["one", "two"]
        assert result.ok

    def test_satisfied_phase_is_skipped(self) -> None:
        rec = Recorder()
        result = PhaseSequencer([
            Phase("done", "Done", rec.action("done"), check=lambda: True),
            Phase("todo", "Todo", rec.action("todo"), check=lambda: False),
        ]).run()
        assert rec.calls == ["todo"]
        assert result.skipped == ["done"]
        assert result.completed == ["todo"]

    def test_fatal_failure_stops_run(self) -> None:
        rec = Recorder()
        sequencer = PhaseSequencer([
            Phase("first", "First", rec.action("first")),
            Phase("bad", "Bad", _boom),
            Phase("never", "Never", rec.action("never")),
        ])
        with pytest.raises(PhaseFailedError) as excinfo:
            sequencer.run()
        assert excinfo.value.phase_id == "bad"
        assert isinstance(excinfo.value.cause, RuntimeError)
        assert rec.calls == ["first"]
        assert excinfo.value.result.completed == ["first"]
        assert excinfo.value.result.failed == ["bad"]

    def test_warn_failure_continues(self) -> None:
        rec = Recorder()
        result = PhaseSequencer([
            Phase("soft", "Soft", _boom, policy=FailurePolicy.WARN, remedy="fix it"),
            Phase("after", "After", rec.action("after")),
        ]).run()
        assert rec.calls == ["after"]
        assert not result.ok
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.status == PhaseStatus.FAILED
        assert warning.detail == "boom"
        assert warning.remedy == "fix it"

    def test_start_at_skips_earlier_phases(self) -> None:
        rec = Recorder()
        result = PhaseSequencer([
            Phase("a", "A", rec.action("a")),
            Phase("b", "B", rec.action("b")),
            Phase("c", "C", rec.action("c")),
        ]).run(start_at="b")
        assert rec.calls == ["b", "c"]
        assert [r.phase_id for r in result.results] == ["b", "c"]

    def test_stop_after(self) -> None:
        rec = Recorder()
        PhaseSequencer([
            Phase("a", "A", rec.action("a")),
            Phase("b", "B", rec.action("b")),
            Phase("c", "C", rec.action("c")),
        ]).run(stop_after="b")
        assert rec.calls == ["a", "b"]

    def test_unknown_start_at(self) -> None:
        with pytest.raises(ValueError, match="unknown phase id"):
            PhaseSequencer([Phase("a", "A", lambda: None)]).run(start_at="zzz")

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValueError, match="duplicate"):
            PhaseSequencer([Phase("a", "A", lambda: None), Phase("a", "A2", lambda: None)])

    def test_on_phase_start_hook(self) -> None:
        seen: list[str] = []
        PhaseSequencer(
            [Phase("a", "A", lambda: None, check=lambda: True), Phase("b", "B", lambda: None)],
            on_phase_start=lambda phase: seen.append(phase.phase_id),
        ).run()
        assert seen == ["a", "b"]

    def test_second_run_skips_everything(self) -> None:
        """Phases whose checks flip after running are all skipped next time."""
        state = {"a": False, "b": False}

        def mark(name):
            def _do():
                state[name] = True
            return _do

        phases = [
            Phase("a", "A", mark("a"), check=lambda: state["a"]),
            Phase("b", "B", mark("b"), check=lambda: state["b"]),
        ]
        first = PhaseSequencer(phases).run()
        second = PhaseSequencer(phases).run()
        assert first.completed == ["a", "b"]
        assert second.skipped == ["a", "b"]
        assert second.completed == []
