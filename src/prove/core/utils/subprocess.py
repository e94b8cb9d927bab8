"""Subprocess execution for git and configured tool commands.

Commands always run without a shell. When no explicit timeout is passed, the
bucket from ``timeouts.*_seconds`` applies. A captured command that times out
has its whole process group terminated, so tool runners that spawn workers
cannot keep the output pipes open.
"""
from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
from pathlib import Path
from time import perf_counter
from typing import Any, MutableMapping, Optional, Sequence

from prove.core.config.domains.timeouts import TimeoutsConfig

logger = logging.getLogger(__name__)

GIT_BUCKET = "git_operations"
TEST_BUCKET = "test_execution"
BUILD_BUCKET = "build_operations"
DEFAULT_BUCKET = "default"

# Seconds to wait for a signalled process group before escalating.
_KILL_GRACE = 0.2


def _argv(cmd: Any) -> list[str]:
    if isinstance(cmd, (list, tuple)):
        return [str(part) for part in cmd]
    return shlex.split(str(cmd))


def bucket_for(argv: Sequence[str]) -> str:
    """Pick the timeout bucket for a command when the caller did not name one."""
    if not argv:
        return DEFAULT_BUCKET
    if argv[0].lower() == "git":
        return GIT_BUCKET
    lowered = [part.lower() for part in argv]
    if any("test" in part for part in lowered):
        return TEST_BUCKET
    if any("build" in part for part in lowered):
        return BUILD_BUCKET
    return DEFAULT_BUCKET


def configured_timeout(cmd: Any, timeout_type: str | None = None, cwd: Path | str | None = None) -> float:
    """Seconds allowed for ``cmd`` according to the project's timeout buckets."""
    config = TimeoutsConfig(repo_root=Path(cwd).resolve() if cwd is not None else None)
    return config.seconds(timeout_type or bucket_for(_argv(cmd)))


def _kill_group(proc: subprocess.Popen[Any]) -> None:
    if proc.poll() is not None:
        return
    if os.name != "posix":
        proc.kill()
        return
    for sig in (signal.SIGTERM, signal.SIGKILL):
        try:
            os.killpg(proc.pid, sig)
        except (ProcessLookupError, PermissionError):
            proc.kill()
        try:
            proc.wait(timeout=_KILL_GRACE)
            return
        except subprocess.TimeoutExpired:
            logger.debug("Process group %s survived %s", proc.pid, sig.name)


def _run_captured(
    argv: list[str],
    *,
    timeout: float,
    cwd: Optional[str],
    env: Optional[MutableMapping[str, str]],
    text: bool,
    check: bool,
    input: Any,
) -> subprocess.CompletedProcess:
    group = {"start_new_session": True} if os.name == "posix" else {}
    proc = subprocess.Popen(
        argv,
        cwd=cwd,
        env=env,
        stdin=subprocess.PIPE if input is not None else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=text,
        **group,
    )
    try:
        stdout, stderr = proc.communicate(input=input, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        _kill_group(proc)
        try:
            stdout, stderr = proc.communicate(timeout=_KILL_GRACE)
        except subprocess.TimeoutExpired:
            stdout, stderr = exc.output, exc.stderr
        raise subprocess.TimeoutExpired(argv, timeout, output=stdout, stderr=stderr) from None

    returncode = proc.returncode if proc.returncode is not None else 0
    if check and returncode != 0:
        raise subprocess.CalledProcessError(returncode, argv, output=stdout, stderr=stderr)
    return subprocess.CompletedProcess(argv, returncode, stdout=stdout, stderr=stderr)


def run_with_timeout(cmd, timeout_type: str | None = None, **kwargs):
    """Run ``cmd`` under a timeout; an explicit ``timeout=`` wins over the bucket.

    Raises:
        subprocess.TimeoutExpired: When the command exceeds its timeout.
        FileNotFoundError: When the executable does not exist.
    """
    argv = _argv(cmd)
    timeout = kwargs.pop("timeout", None)
    if timeout is None:
        timeout = configured_timeout(argv, timeout_type=timeout_type, cwd=kwargs.get("cwd"))

    start = perf_counter()
    logger.debug("exec %s (cwd=%s, timeout=%ss)", argv, kwargs.get("cwd"), timeout)
    try:
        if kwargs.pop("capture_output", False) and "stdout" not in kwargs and "stderr" not in kwargs:
            result = _run_captured(
                argv,
                timeout=float(timeout),
                cwd=kwargs.get("cwd"),
                env=kwargs.get("env"),
                text=bool(kwargs.get("text", True)),
                check=bool(kwargs.get("check", False)),
                input=kwargs.get("input"),
            )
        else:
            result = subprocess.run(argv, timeout=timeout, **kwargs)
    except subprocess.TimeoutExpired:
        logger.debug("timeout %s after %.0fms", argv, (perf_counter() - start) * 1000.0)
        raise
    logger.debug("exit %s rc=%s in %.0fms", argv, result.returncode, (perf_counter() - start) * 1000.0)
    return result


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Optional[Path | str] = None,
    env: Optional[MutableMapping[str, str]] = None,
    timeout: Optional[float] = None,
    capture_output: bool = False,
    text: bool = True,
    check: bool = False,
    input: Any = None,
) -> subprocess.CompletedProcess:
    return run_with_timeout(
        list(cmd),
        cwd=str(cwd) if cwd is not None else None,
        env=env,
        timeout=timeout,
        capture_output=capture_output,
        text=text,
        check=check,
        input=input,
    )


def run_git_command(
    cmd: Sequence[str],
    *,
    cwd: Optional[Path | str] = None,
    timeout: Optional[float] = None,
    capture_output: bool = False,
    text: bool = True,
    check: bool = False,
) -> subprocess.CompletedProcess:
    """Run ``git ...`` with ``timeouts.git_operations_seconds`` unless ``timeout`` is given."""
    if timeout is None:
        timeout = configured_timeout(cmd, timeout_type=GIT_BUCKET, cwd=cwd)
    return run_command(cmd, cwd=cwd, timeout=timeout, capture_output=capture_output, text=text, check=check)


def run_ci_command_from_string(
    base_cmd: str,
    extra_args: Sequence[str] = (),
    *,
    cwd: Optional[Path | str] = None,
    env: Optional[MutableMapping[str, str]] = None,
    timeout: Optional[float] = None,
    capture_output: bool = False,
    text: bool = True,
    check: bool = False,
) -> subprocess.CompletedProcess:
    """Run a configured tool command such as ``ci.commands.lint``.

    The string is tokenized with :mod:`shlex`; shell metacharacters stay literal.

    Raises:
        ValueError: If the string has unbalanced quotes.
    """
    argv = [*shlex.split(base_cmd), *extra_args]
    return run_command(
        argv,
        cwd=cwd,
        env=env,
        timeout=timeout,
        capture_output=capture_output,
        text=text,
        check=check,
    )


__all__ = [
    "GIT_BUCKET",
    "TEST_BUCKET",
    "BUILD_BUCKET",
    "DEFAULT_BUCKET",
    "bucket_for",
    "configured_timeout",
    "run_with_timeout",
    "run_command",
    "run_git_command",
    "run_ci_command_from_string",
]
