"""Render the clock registry and timing exceptions as SDC text."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, TextIO

import jinja2

from sdc_toolkit.core.model import (
    ClockGroup,
    FalsePath,
    MaxDelay,
    ObjectKind,
    Selection,
    TimingException,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sdc_toolkit.core.constraints import TimingExceptionStore
    from sdc_toolkit.core.netlist import Netlist
    from sdc_toolkit.core.registry import ClockRegistry

log = logging.getLogger(__name__)

_DESIGN_OBJECT_KINDS = (
    ObjectKind.PORTS,
    ObjectKind.NETS,
    ObjectKind.PINS,
    ObjectKind.CELLS,
)


def format_number(value: float) -> str:
    """Format a time value without float noise or a trailing ``.0``.

    Examples
    --------
    >>> format_number(10.0)
    '10'
    >>> format_number(13.333333333)
    '13.3333333'
    >>> format_number(2e-7)
    '2e-07'
    """
    text = f"{value:.9g}"
    if text == "-0":
        return "0"
    return text


def tcl_list(items: Iterable[str]) -> str:
    """Render a single item bare and several items as a braced list."""
    items = list(items)
    if len(items) == 1:
        return items[0]
    return "{" + " ".join(items) + "}"


env = jinja2.Environment(
    loader=jinja2.PackageLoader("sdc_toolkit.io", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)
env.filters["num"] = format_number
env.filters["tcl_list"] = tcl_list


@dataclass(frozen=True)
class ResolutionIssue:
    """A timing exception pattern that matches no design object.

    Attributes
    ----------
    command : str
        The SDC command of the affected record.
    kind : ObjectKind
        The kind of object the pattern was looked up as.
    pattern : str
        The unresolved pattern.
    """

    command: str
    kind: ObjectKind
    pattern: str

    @property
    def message(self) -> str:
        """Human-readable description of the issue."""
        what = "object" if self.kind == ObjectKind.NAMES else self.kind.rstrip("s")
        return f"{self.command}: no {what} matches {self.pattern!r}"


def _netlist_names(netlist: Netlist, kind: ObjectKind, pattern: str) -> bool:
    """Check whether *pattern* matches an object of *kind* in the netlist."""
    if kind == ObjectKind.PORTS:
        if netlist.top_module is None:
            return False
        return any(fnmatch.fnmatchcase(p, pattern) for p in netlist.ports())
    if kind == ObjectKind.NETS:
        return bool(netlist.select_wires([pattern]))
    if kind == ObjectKind.PINS:
        return bool(netlist.select_pins([pattern]))
    if kind == ObjectKind.CELLS:
        return bool(netlist.select_cells([pattern]))
    return False


def _resolves(
    kind: ObjectKind,
    pattern: str,
    registry: ClockRegistry,
    netlist: Netlist | None,
) -> bool:
    """Check whether a selection pattern names an existing object."""
    if kind in (ObjectKind.CLOCKS, ObjectKind.NAMES):
        if registry.find_by_name_pattern(pattern):
            return True
        if kind == ObjectKind.CLOCKS:
            return False
    if netlist is None:
        # Without a design only clock references can be checked.
        return True
    if kind == ObjectKind.NAMES:
        return any(
            _netlist_names(netlist, k, pattern) for k in _DESIGN_OBJECT_KINDS
        )
    return _netlist_names(netlist, kind, pattern)


def _command(record: TimingException) -> str:
    if isinstance(record, FalsePath):
        return "set_false_path"
    if isinstance(record, MaxDelay):
        return "set_max_delay"
    return "set_clock_groups"


def _record_kind(record: TimingException) -> str:
    if isinstance(record, FalsePath):
        return "false_path"
    if isinstance(record, MaxDelay):
        return "max_delay"
    return "clock_group"


def _expand_record(
    record: TimingException,
    registry: ClockRegistry,
    netlist: Netlist | None,
) -> tuple[TimingException, list[ResolutionIssue]]:
    """Replace deferred clock selections by the clocks they name now."""
    issues: list[ResolutionIssue] = []

    def expand(selection: Selection | None) -> Selection | None:
        if selection is None or not selection.is_deferred:
            return selection
        clocks = registry.find_by_selection(selection, netlist)
        if not clocks:
            issues.append(
                ResolutionIssue(_command(record), ObjectKind.CLOCKS, str(selection))
            )
            return selection
        return Selection(ObjectKind.CLOCKS, tuple(c.name for c in clocks))

    if isinstance(record, ClockGroup):
        expanded = replace(record, groups=tuple(expand(g) for g in record.groups))
    elif isinstance(record, FalsePath):
        expanded = replace(
            record,
            from_=expand(record.from_),
            to=expand(record.to),
            through=expand(record.through),
        )
    else:
        expanded = replace(record, from_=expand(record.from_), to=expand(record.to))
    return expanded, issues


def _check_record(
    record: TimingException,
    registry: ClockRegistry,
    netlist: Netlist | None,
) -> list[ResolutionIssue]:
    """Return the unresolved patterns of one exception record."""
    selections: list[Selection] = record.selections
    return [
        ResolutionIssue(_command(record), selection.kind, pattern)
        for selection in selections
        for pattern in selection.patterns
        if not _resolves(selection.kind, pattern, registry, netlist)
    ]


def render_sdc(
    registry: ClockRegistry,
    store: TimingExceptionStore,
    include_generated: bool = False,
    netlist: Netlist | None = None,
) -> tuple[str, list[ResolutionIssue]]:
    """Render the constraint set and report unresolved references.

    Parameters
    ----------
    registry : ClockRegistry
        Clocks to write.
    store : TimingExceptionStore
        Timing exceptions to write.
    include_generated : bool
        Whether clocks derived by propagation are written.
    netlist : Netlist | None
        Design used to resolve port, net, pin and cell selections.

    Returns
    -------
    tuple[str, list[ResolutionIssue]]
        The SDC text and one issue per unresolved pattern. Records with an
        unresolved pattern are left out of the text.
    """
    clocks = [
        clock for clock in registry if include_generated or not clock.is_generated
    ]

    exceptions: list[tuple[str, TimingException]] = []
    issues: list[ResolutionIssue] = []
    for declared in store:
        record, record_issues = _expand_record(declared, registry, netlist)
        if not record_issues:
            record_issues = _check_record(record, registry, netlist)
        if record_issues:
            for issue in record_issues:
                log.warning("Skipping record: %s", issue.message)
            issues.extend(record_issues)
            continue
        exceptions.append((_record_kind(record), record))

    template = env.get_template("sdc.j2")
    return template.render(clocks=clocks, exceptions=exceptions), issues


def emit_sdc(
    registry: ClockRegistry,
    store: TimingExceptionStore,
    include_generated: bool = False,
    netlist: Netlist | None = None,
) -> str:
    """Render the constraint set as SDC text.

    See :func:`render_sdc`; unresolved references are only logged.
    """
    text, _issues = render_sdc(registry, store, include_generated, netlist)
    return text


def write_sdc(
    registry: ClockRegistry,
    store: TimingExceptionStore,
    stream: TextIO,
    include_generated: bool = False,
    netlist: Netlist | None = None,
) -> list[ResolutionIssue]:
    """Write the constraint set to a text stream.

    Returns
    -------
    list[ResolutionIssue]
        The references that could not be resolved.
    """
    text, issues = render_sdc(registry, store, include_generated, netlist)
    stream.write(text)
    return issues
