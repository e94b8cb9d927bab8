"""Two-phase check orchestration.

State machine::

    idle -> running-critical -> critical-failed
                             -> running-parallel -> done

Critical checks run one at a time in declared order and stop at the first
failure; parallel checks never start after that. Parallel checks run
concurrently under a semaphore and all of them finish before ``done``.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from time import monotonic, perf_counter
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from prove.core.checks import CheckDefinition, CheckRegistry, CheckResult, check_deadline, failed, not_run
from prove.core.context import ExecutionContext
from prove.core.exceptions import OrchestrationError
from prove.core.utils.time import elapsed_ms

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING_CRITICAL = "running-critical"
    CRITICAL_FAILED = "critical-failed"
    RUNNING_PARALLEL = "running-parallel"
    DONE = "done"

    def __str__(self) -> str:
        return self.value


TRANSITIONS: Dict[RunState, FrozenSet[RunState]] = {
    RunState.IDLE: frozenset({RunState.RUNNING_CRITICAL}),
    RunState.RUNNING_CRITICAL: frozenset({RunState.CRITICAL_FAILED, RunState.RUNNING_PARALLEL}),
    RunState.RUNNING_PARALLEL: frozenset({RunState.DONE}),
    RunState.CRITICAL_FAILED: frozenset(),
    RunState.DONE: frozenset(),
}

TERMINAL_STATES = frozenset({RunState.CRITICAL_FAILED, RunState.DONE})


class RunStateMachine:
    def __init__(self) -> None:
        self.state = RunState.IDLE

    def advance(self, target: RunState) -> None:
        allowed = TRANSITIONS[self.state]
        if target not in allowed:
            allowed_part = f" Allowed next: {', '.join(s.value for s in allowed)}." if allowed else ""
            raise OrchestrationError(
                f"Invalid transition {self.state.value!r} -> {target.value!r}: not allowed.{allowed_part}",
                context={"from": self.state.value, "to": target.value},
            )
        logger.debug("Runner state %s -> %s", self.state.value, target.value)
        self.state = target

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES


@dataclass(frozen=True)
class RunOutcome:
    results: Tuple[CheckResult, ...]
    state: RunState
    first_failure: Optional[str] = None
    total_ms: int = 0

    @property
    def success(self) -> bool:
        return all(r.ok for r in self.results)


class Runner:
    """Execute a registry's checks against one context.

    Args:
        registry: The check catalog.
        concurrency: Parallel worker limit; defaults to ``runner.concurrency``.
        report_skipped_on_critical_failure: List unrun checks after a critical
            failure instead of omitting them; defaults to the config value.
    """

    def __init__(
        self,
        registry: CheckRegistry,
        *,
        concurrency: Optional[int] = None,
        report_skipped_on_critical_failure: Optional[bool] = None,
    ) -> None:
        self.registry = registry
        self.concurrency = concurrency
        self.report_skipped_on_critical_failure = report_skipped_on_critical_failure

    async def run_check(self, definition: CheckDefinition, ctx: ExecutionContext) -> CheckResult:
        """Gate, time-bound and time one check. Never raises for check failures."""
        start = perf_counter()
        gated = definition.gate(ctx)
        if gated is not None:
            return gated.with_ms(elapsed_ms(start))

        timeout_ms = ctx.config.check_timeout_ms(definition.timeout_key)
        token = check_deadline.set(monotonic() + timeout_ms / 1000.0)
        try:
            result = await asyncio.wait_for(definition.fn(ctx), timeout=timeout_ms / 1000.0)
        except asyncio.TimeoutError:
            logger.warning("Check %s timed out after %sms", definition.id, timeout_ms)
            result = failed(definition.id, "timeout", {"timeoutMs": timeout_ms})
        except Exception as exc:  # a throwing check must not crash the run
            logger.warning("Check %s raised %s: %s", definition.id, type(exc).__name__, exc)
            result = failed(definition.id, str(exc) or type(exc).__name__, {"exception": type(exc).__name__})
        finally:
            check_deadline.reset(token)

        if not isinstance(result, CheckResult):
            result = failed(definition.id, f"Check returned {type(result).__name__}, expected CheckResult")
        elif result.id != definition.id:
            result = replace(result, id=definition.id)

        result = result.with_ms(elapsed_ms(start))
        logger.info("%s %s (%sms)", "PASS" if result.ok else "FAIL", definition.id, result.ms)
        return result

    async def _run_parallel(
        self, checks: Sequence[CheckDefinition], ctx: ExecutionContext, concurrency: int
    ) -> List[CheckResult]:
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _bounded(definition: CheckDefinition) -> CheckResult:
            async with semaphore:
                return await self.run_check(definition, ctx)

        results = await asyncio.gather(*(_bounded(d) for d in checks))
        if len(results) != len(checks):
            raise OrchestrationError(
                "Parallel phase lost results",
                context={"expected": len(checks), "received": len(results)},
            )
        return sorted(results, key=lambda r: r.id)

    async def run(self, ctx: ExecutionContext) -> RunOutcome:
        """Run critical checks, then (if all passed) the parallel set.

        Raises:
            OrchestrationError: On an illegal state transition or lost results.
        """
        machine = RunStateMachine()
        start = perf_counter()
        critical = self.registry.critical()
        parallel = self.registry.parallel()
        concurrency = self.concurrency or ctx.config.runner.concurrency
        report_skipped = (
            ctx.config.runner.report_skipped_on_critical_failure
            if self.report_skipped_on_critical_failure is None
            else self.report_skipped_on_critical_failure
        )

        machine.advance(RunState.RUNNING_CRITICAL)
        results: List[CheckResult] = []
        for index, definition in enumerate(critical):
            result = await self.run_check(definition, ctx)
            results.append(result)
            if result.ok:
                continue
            machine.advance(RunState.CRITICAL_FAILED)
            logger.warning("Critical check %s failed: %s", definition.id, result.reason)
            if report_skipped:
                results.extend(not_run(d.id) for d in critical[index + 1:])
                results.extend(not_run(d.id) for d in sorted(parallel, key=lambda d: d.id))
            return self._outcome(machine, results, definition.id, start)

        machine.advance(RunState.RUNNING_PARALLEL)
        results.extend(await self._run_parallel(parallel, ctx, concurrency))
        ids = [r.id for r in results]
        if len(ids) != len(set(ids)):
            raise OrchestrationError("Duplicate check results", context={"ids": ids})
        machine.advance(RunState.DONE)

        first_failure = next((r.id for r in results if not r.ok), None)
        return self._outcome(machine, results, first_failure, start)

    @staticmethod
    def _outcome(
        machine: RunStateMachine, results: List[CheckResult], first_failure: Optional[str], start: float
    ) -> RunOutcome:
        if not machine.finished:
            raise OrchestrationError(
                "Run ended outside a terminal state", context={"state": machine.state.value}
            )
        return RunOutcome(tuple(results), machine.state, first_failure, elapsed_ms(start))

    def run_sync(self, ctx: ExecutionContext) -> RunOutcome:
        return asyncio.run(self.run(ctx))


__all__ = ["Runner", "RunOutcome", "RunState", "RunStateMachine", "TRANSITIONS", "TERMINAL_STATES"]
