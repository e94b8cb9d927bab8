"""
Command dispatcher for the ``prove`` executable.

Root commands live in ``prove/cli/commands/``; every other public subpackage
of ``prove.cli`` is a command group (``prove tdd mark``). A command module
exposes ``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``, so
adding a command means dropping a module into the right folder.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import pkgutil
import sys
from dataclasses import dataclass
from functools import lru_cache
from types import ModuleType
from typing import Callable, Dict, Optional

from prove.core.exceptions import ConfigError, OrchestrationError, ProveError

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_INTERNAL = 2
EXIT_INTERRUPTED = 130

ROOT_PACKAGE = "commands"


@dataclass(frozen=True)
class CommandSpec:
    name: str
    summary: str
    register_args: Optional[Callable[[argparse.ArgumentParser], None]]
    handler: Optional[Callable[[argparse.Namespace], int]]

    @classmethod
    def from_module(cls, name: str, module: ModuleType) -> "CommandSpec":
        return cls(
            name=name,
            summary=getattr(module, "SUMMARY", name),
            register_args=getattr(module, "register_args", None),
            handler=getattr(module, "main", None),
        )


def _public_modules(package: str) -> list[tuple[str, bool]]:
    pkg = importlib.import_module(package)
    return sorted(
        (info.name, info.ispkg)
        for info in pkgutil.iter_modules(pkg.__path__)
        if not info.name.startswith("_")
    )


@lru_cache(maxsize=None)
def load_commands(group: str) -> Dict[str, CommandSpec]:
    """Import every command module of ``prove.cli.<group>``.

    A module that fails to import is reported on stderr and left out, so one
    broken command does not take the whole CLI down.
    """
    package = f"prove.cli.{group}"
    found: Dict[str, CommandSpec] = {}
    for name, is_pkg in _public_modules(package):
        if is_pkg:
            continue
        try:
            module = importlib.import_module(f"{package}.{name}")
        except ImportError as exc:
            print(f"Warning: could not load command {group}.{name}: {exc}", file=sys.stderr)
            continue
        found[name] = CommandSpec.from_module(name, module)
    return found


@lru_cache(maxsize=1)
def command_groups() -> tuple[str, ...]:
    return tuple(
        name for name, is_pkg in _public_modules("prove.cli") if is_pkg and name != ROOT_PACKAGE
    )


def _attach(subparsers: argparse._SubParsersAction, spec: CommandSpec) -> None:
    # history_clear -> history-clear, keeping the module name as an alias
    dashed = spec.name.replace("_", "-")
    parser = subparsers.add_parser(
        dashed, aliases=[spec.name] if dashed != spec.name else [], help=spec.summary
    )
    if spec.register_args is not None:
        spec.register_args(parser)
    if spec.handler is not None:
        parser.set_defaults(_func=spec.handler)


def build_parser() -> tuple[argparse.ArgumentParser, Dict[str, argparse.ArgumentParser]]:
    """Return the root parser plus the parser of each command group."""
    from prove import __version__

    parser = argparse.ArgumentParser(
        prog="prove",
        description="Prove - trunk-based quality gate with TDD phase enforcement",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    top = parser.add_subparsers(dest="domain", title="commands", metavar="<command>")

    for spec in load_commands(ROOT_PACKAGE).values():
        _attach(top, spec)

    groups: Dict[str, argparse.ArgumentParser] = {}
    for group in command_groups():
        specs = load_commands(group)
        if not specs:
            continue
        group_parser = top.add_parser(group, help=f"{group.upper()} commands")
        nested = group_parser.add_subparsers(dest="command", title=f"{group} commands", metavar="<command>")
        for spec in specs.values():
            _attach(nested, spec)
        groups[group] = group_parser
    return parser, groups


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for ``prove``.

    Exit codes: 0 success, 1 failed gate or rejected input, 2 configuration
    or orchestration error, 130 interrupted.
    """
    parser, groups = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    handler = getattr(args, "_func", None)
    if handler is None:
        groups.get(args.domain, parser).print_help()
        return 0

    from prove.cli._output import OutputFormatter
    from prove.cli._utils import setup_logging

    setup_logging(args)
    formatter = OutputFormatter(json_mode=bool(getattr(args, "json", False)))

    try:
        return int(handler(args))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except (ConfigError, OrchestrationError) as exc:
        logger.debug("Run aborted", exc_info=True)
        formatter.error(exc)
        return EXIT_INTERNAL
    except ProveError as exc:
        formatter.error(exc)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
