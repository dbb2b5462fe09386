"""Execute parsed SDC commands against an analysis session.

Each command handler receives the command's arguments split into options
and positional values. Nested ``get_*`` commands evaluate to
:class:`~sdc_toolkit.core.model.Selection` values that are resolved only
when the constraints are written.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sdc_toolkit.core.model import ClockGroupRelation, ObjectKind, Selection
from sdc_toolkit.errors import InvalidArgumentError, SDCError
from sdc_toolkit.parser.transformer import Command

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from sdc_toolkit.core.session import SDCSession
    from sdc_toolkit.parser.transformer import Argument

log = logging.getLogger(__name__)

_OPTION = re.compile(r"^-[A-Za-z_]\w*$")

_SELECTORS = {
    "get_ports": ObjectKind.PORTS,
    "get_nets": ObjectKind.NETS,
    "get_pins": ObjectKind.PINS,
    "get_cells": ObjectKind.CELLS,
}

_RELATIONS = {
    "-asynchronous": ClockGroupRelation.ASYNCHRONOUS,
    "-logically_exclusive": ClockGroupRelation.LOGICALLY_EXCLUSIVE,
    "-physically_exclusive": ClockGroupRelation.PHYSICALLY_EXCLUSIVE,
}


@dataclass
class Arguments:
    """Command arguments split by the option table of one command."""

    flags: set[str] = field(default_factory=set)
    options: dict[str, list[Argument]] = field(default_factory=dict)
    positional: list[Argument] = field(default_factory=list)

    def value(self, option: str) -> Argument | None:
        """Return the last value given for *option*."""
        values = self.options.get(option)
        return values[-1] if values else None


@dataclass
class ExecutionResult:
    """Outcome of executing a batch of commands.

    Attributes
    ----------
    executed : list[tuple[Command, Any]]
        Commands that ran, with the value each returned.
    skipped : list[Command]
        Unsupported commands.
    errors : list[tuple[Command, SDCError]]
        Commands that failed; the rest of the batch still ran.
    """

    executed: list[tuple[Command, Any]] = field(default_factory=list)
    skipped: list[Command] = field(default_factory=list)
    errors: list[tuple[Command, SDCError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Whether every command ran without error."""
        return not self.errors


def split_arguments(
    command: Command,
    flags: Iterable[str] = (),
    options: Iterable[str] = (),
) -> Arguments:
    """Split *command* arguments into flags, option values and positionals.

    Raises
    ------
    InvalidArgumentError
        On an unknown option or an option missing its value.
    """
    flags = set(flags)
    options = set(options)
    result = Arguments()
    args = list(command.args)
    i = 0
    while i < len(args):
        arg = args[i]
        if isinstance(arg, str) and _OPTION.match(arg):
            if arg in flags:
                result.flags.add(arg)
            elif arg in options:
                if i + 1 >= len(args):
                    msg = f"{command.name}: option {arg} needs a value"
                    raise InvalidArgumentError(msg)
                result.options.setdefault(arg, []).append(args[i + 1])
                i += 1
            else:
                msg = f"{command.name}: unknown option {arg}"
                raise InvalidArgumentError(msg)
        else:
            result.positional.append(arg)
        i += 1
    return result


def _is_get_clocks(arg: Argument) -> bool:
    return isinstance(arg, Command) and arg.name == "get_clocks"


def _number(command: Command, option: str, value: Argument | None) -> float:
    if isinstance(value, list) and len(value) == 1:
        value = value[0]
    if not isinstance(value, str):
        msg = f"{command.name}: {option} needs a number"
        raise InvalidArgumentError(msg)
    try:
        return float(value)
    except ValueError:
        msg = f"{command.name}: {option} value {value!r} is not a number"
        raise InvalidArgumentError(msg) from None


class SDCInterpreter:
    """Dispatch SDC commands to an :class:`SDCSession`.

    Parameters
    ----------
    session : SDCSession
        The session the commands act on.
    """

    def __init__(self, session: SDCSession) -> None:
        self.session = session
        self._handlers: dict[str, Callable[[Command], Any]] = {
            "create_clock": self._create_clock,
            "get_clocks": self._get_clocks,
            "get_ports": self._get_ports,
            "get_nets": self._select,
            "get_pins": self._select,
            "get_cells": self._select,
            "propagate_clocks": self._propagate_clocks,
            "set_false_path": self._set_false_path,
            "set_max_delay": self._set_max_delay,
            "set_clock_groups": self._set_clock_groups,
        }
        self._nested = False

    def supports(self, name: str) -> bool:
        """Whether command *name* is understood."""
        return name in self._handlers

    def execute(self, commands: Iterable[Command]) -> ExecutionResult:
        """Run *commands* in order, collecting errors instead of stopping.

        Returns
        -------
        ExecutionResult
            What ran, what was skipped and what failed.
        """
        result = ExecutionResult()
        for command in commands:
            if not self.supports(command.name):
                log.warning(
                    "Line %d: unsupported command %s skipped", command.line, command.name
                )
                result.skipped.append(command)
                continue
            try:
                value = self.run(command)
            except SDCError as e:
                log.error("Line %d: %s", command.line, e)  # noqa: TRY400
                result.errors.append((command, e))
                continue
            result.executed.append((command, value))
        return result

    def run(self, command: Command) -> Any:
        """Run a single top-level command and return its value."""
        return self._handlers[command.name](command)

    # ── Argument evaluation ──────────────────────────────────────────

    def _evaluate(self, command: Command) -> Any:
        """Evaluate a bracketed command."""
        handler = self._handlers.get(command.name)
        if handler is None:
            msg = f"Line {command.line}: unsupported nested command {command.name}"
            raise InvalidArgumentError(msg)
        previous = self._nested
        self._nested = True
        try:
            return handler(command)
        finally:
            self._nested = previous

    def _words(self, arg: Argument) -> list[str]:
        """Flatten an argument to plain names."""
        if isinstance(arg, list):
            return arg
        if not isinstance(arg, Command):
            return [arg]
        value = self._evaluate(arg)
        if isinstance(value, Selection):
            return list(value.patterns)
        if value is None:
            return []
        if isinstance(value, str | int | float):
            return [str(value)]
        return [str(v) for v in value]

    def _selection(self, command: Command, option: str, arg: Argument) -> Selection:
        """Turn an endpoint argument into a selection."""
        if isinstance(arg, Command) and arg.name in (*_SELECTORS, "get_clocks"):
            selection = self._evaluate(arg)
        else:
            selection = Selection(ObjectKind.NAMES, tuple(self._words(arg)))
        if not (selection.patterns or selection.of_nets):
            msg = f"{command.name}: {option} selects nothing"
            raise InvalidArgumentError(msg)
        return selection

    # ── Handlers ─────────────────────────────────────────────────────

    def _create_clock(self, command: Command) -> str:
        args = split_arguments(
            command,
            flags=("-add",),
            options=("-name", "-period", "-waveform", "-comment"),
        )
        if "-period" not in args.options:
            msg = "create_clock: -period is required"
            raise InvalidArgumentError(msg)
        period = _number(command, "-period", args.value("-period"))
        name = args.value("-name")
        waveform = None
        if (edges := args.value("-waveform")) is not None:
            waveform = [_number(command, "-waveform", e) for e in self._words(edges)]
        targets = [
            self._selection(command, "target", arg) for arg in args.positional
        ]
        clock = self.session.create_clock(
            period,
            targets,
            name=name if isinstance(name, str) else None,
            waveform=waveform,
        )
        return clock.name

    def _get_clocks(self, command: Command) -> Selection | list[str]:
        args = split_arguments(
            command, flags=("-include_generated_clocks",), options=("-of",)
        )
        patterns = [w for arg in args.positional for w in self._words(arg)]
        of = args.value("-of")
        of_nets = self._words(of) if of is not None else None
        include_generated = "-include_generated_clocks" in args.flags
        if self._nested:
            # Clocks are matched when the constraints are written.
            if of_nets is None:
                patterns = patterns or ["*"]
            return Selection(
                ObjectKind.CLOCKS,
                tuple(patterns),
                include_generated=include_generated,
                of_nets=tuple(of_nets) if of_nets is not None else None,
            )
        return self.session.get_clocks(
            patterns or None, of=of_nets, include_generated=include_generated
        )

    def _get_ports(self, command: Command) -> Selection | list[str]:
        args = split_arguments(command)
        patterns = [w for arg in args.positional for w in self._words(arg)]
        if self._nested:
            return Selection(ObjectKind.PORTS, tuple(patterns or ["*"]))
        if not patterns:
            return self.session.get_ports()
        return [p for pattern in patterns for p in self.session.get_ports(pattern)]

    def _select(self, command: Command) -> Selection:
        args = split_arguments(command)
        patterns = [w for arg in args.positional for w in self._words(arg)]
        return Selection(_SELECTORS[command.name], tuple(patterns or ["*"]))

    def _propagate_clocks(self, command: Command) -> int | None:
        split_arguments(command)
        return self.session.propagate_clocks().delay_target

    def _set_false_path(self, command: Command) -> None:
        args = split_arguments(command, options=("-from", "-to", "-through"))
        if args.positional:
            msg = "set_false_path: unexpected positional arguments"
            raise InvalidArgumentError(msg)
        endpoints = {
            option: self._selection(command, option, value)
            for option in ("-from", "-to", "-through")
            if (value := args.value(option)) is not None
        }
        self.session.set_false_path(
            from_=endpoints.get("-from"),
            to=endpoints.get("-to"),
            through=endpoints.get("-through"),
        )

    def _set_max_delay(self, command: Command) -> None:
        args = split_arguments(command, options=("-from", "-to"))
        if len(args.positional) != 1:
            msg = "set_max_delay: expected exactly one delay value"
            raise InvalidArgumentError(msg)
        delay = _number(command, "delay", args.positional[0])
        endpoints = {
            option: self._selection(command, option, value)
            for option in ("-from", "-to")
            if (value := args.value(option)) is not None
        }
        self.session.set_max_delay(
            delay, from_=endpoints.get("-from"), to=endpoints.get("-to")
        )

    def _set_clock_groups(self, command: Command) -> None:
        args = split_arguments(
            command,
            flags=(*_RELATIONS, "-allow_paths"),
            options=("-name", "-group"),
        )
        relations = [_RELATIONS[f] for f in _RELATIONS if f in args.flags]
        if len(relations) > 1:
            msg = "set_clock_groups: only one relation may be given"
            raise InvalidArgumentError(msg)
        relation = relations[0] if relations else ClockGroupRelation.NONE
        groups = [
            self._evaluate(group) if _is_get_clocks(group) else self._words(group)
            for group in args.options.get("-group", [])
        ]
        name = args.value("-name")
        self.session.set_clock_groups(
            groups, relation, name=name if isinstance(name, str) else None
        )
