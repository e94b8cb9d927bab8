"""Two-phase orchestration: fail-fast critical checks, bounded parallel phase."""
from __future__ import annotations

import asyncio
from pathlib import Path
from time import perf_counter
from typing import List

import pytest

from helpers.contexts import load_settings, make_context, python_command, with_commands, with_settings
from prove.core.checks import (
    CheckCategory,
    CheckDefinition,
    CheckRegistry,
    CheckResult,
    build_default_registry,
    failed,
    passed,
)
from prove.core.exceptions import OrchestrationError
from prove.core.runner import TERMINAL_STATES, Runner, RunState, RunStateMachine


def _check(check_id: str, *, ok: bool = True, delay: float = 0.0, calls: List[str] | None = None):
    async def _fn(ctx) -> CheckResult:
        if calls is not None:
            calls.append(check_id)
        if delay:
            await asyncio.sleep(delay)
        return passed(check_id) if ok else failed(check_id, f"{check_id} broke")

    return _fn


def _critical(check_id: str, **kwargs) -> CheckDefinition:
    return CheckDefinition(check_id, check_id, "", CheckCategory.CRITICAL, _check(check_id, **kwargs))


def _parallel(check_id: str, fn=None, **kwargs) -> CheckDefinition:
    return CheckDefinition(check_id, check_id, "", CheckCategory.PARALLEL, fn or _check(check_id, **kwargs))


class TestCriticalPhase:
    def test_feature_branch_stops_after_trunk(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, branch="feature/x")

        outcome = Runner(build_default_registry()).run_sync(ctx)

        assert len(outcome.results) == 1
        assert outcome.results[0].id == "trunk"
        assert outcome.results[0].ok is False
        assert outcome.state is RunState.CRITICAL_FAILED
        assert outcome.first_failure == "trunk"
        assert outcome.state in TERMINAL_STATES
        assert not outcome.success

    def test_critical_failure_starts_nothing_else(self, tmp_path: Path) -> None:
        calls: List[str] = []
        registry = CheckRegistry(
            [
                _critical("a", calls=calls),
                _critical("b", ok=False, calls=calls),
                _critical("c", calls=calls),
                _parallel("p", calls=calls),
            ]
        )

        outcome = Runner(registry).run_sync(make_context(tmp_path))

        assert calls == ["a", "b"]
        assert [r.id for r in outcome.results] == ["a", "b"]

    def test_unrun_checks_can_be_reported(self, tmp_path: Path) -> None:
        registry = CheckRegistry(
            [_critical("a", ok=False), _critical("b"), _parallel("z"), _parallel("m")]
        )

        outcome = Runner(registry, report_skipped_on_critical_failure=True).run_sync(make_context(tmp_path))

        assert [r.id for r in outcome.results] == ["a", "b", "m", "z"]
        assert [r.status for r in outcome.results[1:]] == ["not-run"] * 3
        assert all(not r.ok for r in outcome.results)

    def test_report_skipped_follows_config(self, tmp_path: Path) -> None:
        settings = with_settings(load_settings(tmp_path), runner={"report_skipped_on_critical_failure": True})
        registry = CheckRegistry([_critical("a", ok=False), _parallel("p")])

        outcome = Runner(registry).run_sync(make_context(tmp_path, settings=settings))

        assert [r.id for r in outcome.results] == ["a", "p"]


class TestParallelPhase:
    def test_results_are_sorted_after_critical(self, tmp_path: Path) -> None:
        registry = CheckRegistry(
            [
                _critical("b-critical"),
                _critical("a-critical"),
                _parallel("zeta", delay=0.01),
                _parallel("alpha", delay=0.03),
                _parallel("mid"),
            ]
        )

        outcome = Runner(registry).run_sync(make_context(tmp_path))

        assert [r.id for r in outcome.results] == ["b-critical", "a-critical", "alpha", "mid", "zeta"]
        assert outcome.state is RunState.DONE
        assert outcome.success

    def test_failures_do_not_stop_parallel_checks(self, tmp_path: Path) -> None:
        registry = CheckRegistry([_parallel("a", ok=False), _parallel("b"), _parallel("c", ok=False)])

        outcome = Runner(registry).run_sync(make_context(tmp_path))

        assert [r.ok for r in outcome.results] == [False, True, False]
        assert outcome.first_failure == "a"

    def test_concurrency_is_bounded(self, tmp_path: Path) -> None:
        active = 0
        peak = 0

        def _tracked(check_id: str):
            async def _fn(ctx) -> CheckResult:
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                return passed(check_id)

            return _fn

        registry = CheckRegistry([_parallel(f"c{i}", _tracked(f"c{i}")) for i in range(8)])

        outcome = Runner(registry, concurrency=2).run_sync(make_context(tmp_path))

        assert len(outcome.results) == 8
        assert peak == 2

    def test_same_inputs_same_results(self, tmp_path: Path) -> None:
        registry = CheckRegistry(
            [_critical("c"), _parallel("b", delay=0.02), _parallel("a", ok=False), _parallel("d", delay=0.01)]
        )
        ctx = make_context(tmp_path)

        first = Runner(registry).run_sync(ctx)
        second = Runner(registry).run_sync(ctx)

        assert [(r.id, r.ok, r.reason) for r in first.results] == [(r.id, r.ok, r.reason) for r in second.results]


class TestRunCheck:
    def test_exception_becomes_failure(self, tmp_path: Path) -> None:
        async def _boom(ctx) -> CheckResult:
            raise RuntimeError("kaboom")

        result = asyncio.run(Runner(CheckRegistry([])).run_check(_parallel("boom", _boom), make_context(tmp_path)))

        assert not result.ok
        assert result.reason == "kaboom"
        assert result.details == {"exception": "RuntimeError"}

    def test_timeout_becomes_failure(self, tmp_path: Path) -> None:
        settings = with_settings(load_settings(tmp_path), runner={"timeout_ms": 20})
        definition = _parallel("slow", delay=5)

        result = asyncio.run(Runner(CheckRegistry([])).run_check(definition, make_context(tmp_path, settings=settings)))

        assert not result.ok
        assert result.reason == "timeout"
        assert result.details == {"timeoutMs": 20}

    def test_timeout_stops_the_tool_process(self, tmp_path: Path) -> None:
        settings = with_settings(
            with_commands(load_settings(tmp_path), lint=python_command("import time; time.sleep(6)")),
            check_timeouts={"lint": 500},
        )
        definition = build_default_registry().get("lint")

        start = perf_counter()
        result = asyncio.run(Runner(CheckRegistry([])).run_check(definition, make_context(tmp_path, settings=settings)))
        elapsed = perf_counter() - start

        assert result.reason == "timeout"
        assert elapsed < 3

    def test_gated_check_is_not_called(self, tmp_path: Path) -> None:
        calls: List[str] = []
        definition = CheckDefinition(
            "slow", "Slow", "", CheckCategory.PARALLEL, _check("slow", calls=calls), quick_mode=False
        )

        result = asyncio.run(Runner(CheckRegistry([])).run_check(definition, make_context(tmp_path, quick=True)))

        assert result.skipped
        assert calls == []

    def test_mismatched_id_is_corrected(self, tmp_path: Path) -> None:
        async def _wrong(ctx) -> CheckResult:
            return passed("other")

        result = asyncio.run(Runner(CheckRegistry([])).run_check(_parallel("right", _wrong), make_context(tmp_path)))

        assert result.id == "right"

    def test_non_result_return_fails(self, tmp_path: Path) -> None:
        async def _none(ctx):
            return None

        result = asyncio.run(Runner(CheckRegistry([])).run_check(_parallel("none", _none), make_context(tmp_path)))

        assert not result.ok
        assert "expected CheckResult" in result.reason


class TestStateMachine:
    def test_happy_path(self) -> None:
        machine = RunStateMachine()
        for state in (RunState.RUNNING_CRITICAL, RunState.RUNNING_PARALLEL, RunState.DONE):
            assert not machine.finished
            machine.advance(state)

        assert machine.state is RunState.DONE
        assert machine.finished

    @pytest.mark.parametrize(
        "path",
        [
            (RunState.RUNNING_PARALLEL,),
            (RunState.RUNNING_CRITICAL, RunState.DONE),
            (RunState.RUNNING_CRITICAL, RunState.CRITICAL_FAILED, RunState.RUNNING_PARALLEL),
        ],
    )
    def test_illegal_transitions(self, path) -> None:
        machine = RunStateMachine()

        with pytest.raises(OrchestrationError) as exc:
            for state in path:
                machine.advance(state)

        assert exc.value.context["to"] == path[-1].value
