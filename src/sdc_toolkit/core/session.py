"""Analysis session: one design, its clocks and its timing exceptions.

The session is the only owner of mutable constraint state. Loading a new
netlist or calling :meth:`SDCSession.reset` clears the registry, the
exception store and the scratchpad, so nothing leaks between designs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, TextIO

from sdc_toolkit.core.constraints import TimingExceptionStore
from sdc_toolkit.core.model import (
    Clock,
    ClockGroup,
    ClockGroupRelation,
    FalsePath,
    MaxDelay,
    ObjectKind,
    Selection,
    Waveform,
)
from sdc_toolkit.core.registry import ClockRegistry
from sdc_toolkit.errors import (
    InvalidArgumentError,
    NotFoundError,
    StructuralPreconditionError,
)
from sdc_toolkit.io.writer import ResolutionIssue, render_sdc
from sdc_toolkit.propagation.engine import PropagationResult, propagate_clocks

if TYPE_CHECKING:
    from sdc_toolkit.core.netlist import Netlist, Wire
    from sdc_toolkit.parser.interpreter import ExecutionResult
    from sdc_toolkit.propagation.engine import PropagationPass
    from sdc_toolkit.propagation.rules import RuleSet

log = logging.getLogger(__name__)

Targets = str | Selection | Iterable[str | Selection]

DELAY_TARGET_KEY = "abc9.D"


def _as_selections(targets: Targets) -> list[Selection]:
    if isinstance(targets, str | Selection):
        targets = [targets]
    return [
        t if isinstance(t, Selection) else Selection(ObjectKind.NAMES, (t,))
        for t in targets
    ]


class SDCSession:
    """Command-level entry point tying netlist, clocks and exceptions.

    Parameters
    ----------
    netlist : Netlist | None
        The design to constrain.
    rules : RuleSet | None
        Transform rules used by :meth:`propagate_clocks`.
    passes : Sequence[PropagationPass] | None
        Propagation passes used by :meth:`propagate_clocks`.
    """

    def __init__(
        self,
        netlist: Netlist | None = None,
        rules: RuleSet | None = None,
        passes: Sequence[PropagationPass] | None = None,
    ) -> None:
        self.registry = ClockRegistry()
        self.exceptions = TimingExceptionStore()
        self.scratchpad: dict[str, Any] = {}
        self.rules = rules
        self.passes = passes
        self._netlist = netlist

    @property
    def netlist(self) -> Netlist:
        """The current design.

        Raises
        ------
        StructuralPreconditionError
            If no netlist has been loaded.
        """
        if self._netlist is None:
            msg = "No design loaded"
            raise StructuralPreconditionError(msg)
        return self._netlist

    def load_netlist(self, netlist: Netlist) -> None:
        """Start a new session on *netlist*."""
        self.reset()
        self._netlist = netlist

    def reset(self) -> None:
        """Forget every clock, exception and scratchpad value."""
        self.registry.reset()
        self.exceptions.reset()
        self.scratchpad.clear()

    # ── Selections ───────────────────────────────────────────────────

    def _selected_clocks(self, selection: Selection) -> list[Clock]:
        netlist = self.netlist if selection.of_nets is not None else self._netlist
        return self.registry.find_by_selection(selection, netlist)

    def _selected_wires(self, selection: Selection) -> list[Wire]:
        """Resolve a selection to wires of the current design."""
        netlist = self.netlist
        if selection.kind == ObjectKind.CLOCKS:
            clocks = self._selected_clocks(selection)
            return list(dict.fromkeys(w for c in clocks for w in c.wires))
        if selection.kind == ObjectKind.PORTS:
            top = netlist.top_module
            if top is None:
                msg = "No top module selected"
                raise StructuralPreconditionError(msg)
            wires = netlist.select_wires(selection.patterns)
            ports = netlist.ports()
            return [w for w in wires if w.module == top and w.name in ports]
        if selection.kind in (ObjectKind.NETS, ObjectKind.NAMES):
            return netlist.select_wires(selection.patterns)
        msg = f"Cannot select wires from {selection.kind}"
        raise InvalidArgumentError(msg)

    # ── Commands ─────────────────────────────────────────────────────

    def create_clock(
        self,
        period: float,
        targets: Targets,
        name: str | None = None,
        waveform: Sequence[float] | None = None,
    ) -> Clock:
        """Declare an explicit clock on the wires selected by *targets*.

        Parameters
        ----------
        period : float
            Period in nanoseconds.
        targets : Targets
            Wire patterns or selections carrying the clock.
        name : str | None
            Clock name; by default the path of the first selected wire.
        waveform : Sequence[float] | None
            Rising and falling edge times; by default ``{0 period/2}``.

        Returns
        -------
        Clock
            The registered clock.

        Raises
        ------
        InvalidArgumentError
            If the period or waveform is malformed or nothing is selected.
        """
        if not period > 0:
            msg = f"Incorrect period value {period}"
            raise InvalidArgumentError(msg)

        wires: list[Wire] = []
        for selection in _as_selections(targets):
            wires.extend(self._selected_wires(selection))
        wires = list(dict.fromkeys(wires))
        if not wires and name:
            wires = self.netlist.select_wires([name])
        if not wires:
            msg = "Target selection is empty"
            raise InvalidArgumentError(msg)

        if waveform is None:
            edges = Waveform.default(period)
            rising, falling = edges.rising_edge, edges.falling_edge
        else:
            if len(waveform) != 2:
                msg = f"Waveform needs a rising and a falling edge, got {list(waveform)}"
                raise InvalidArgumentError(msg)
            rising, falling = waveform

        return self.registry.add_clock(
            name or wires[0].path,
            wires,
            period,
            rising,
            falling,
        )

    def get_clocks(
        self,
        patterns: Iterable[str] | None = None,
        of: Iterable[str] | None = None,
        include_generated: bool = False,
    ) -> list[str]:
        """Return the names of clocks matching *patterns* or carried by *of*.

        Parameters
        ----------
        patterns : Iterable[str] | None
            Clock name patterns; none selects every clock.
        of : Iterable[str] | None
            Net patterns; selects the clocks carried by these nets.
        include_generated : bool
            Also return the clocks derived from the matched clocks.

        Returns
        -------
        list[str]
            Clock names in registration order. Empty, with a warning, when
            the design has no clock.
        """
        if len(self.registry) == 0:
            log.warning("No clocks found in design")
            return []

        selection = Selection(
            ObjectKind.CLOCKS,
            tuple(patterns or ()),
            include_generated=include_generated,
            of_nets=tuple(of) if of is not None else None,
        )
        return [c.name for c in self._selected_clocks(selection)]

    def get_ports(self, name: str | None = None) -> list[str]:
        """Return top-level port names, or the single port called *name*.

        Raises
        ------
        StructuralPreconditionError
            If the design has no top module.
        """
        netlist = self.netlist
        if netlist.top_module is None:
            msg = "No top module selected"
            raise StructuralPreconditionError(msg)
        ports = list(netlist.ports())
        if name is None:
            if not ports:
                log.warning("No ports found for 'get_ports'")
            return ports
        if name not in ports:
            msg = f"Port {name} does not exist"
            raise NotFoundError(msg)
        return [name]

    def propagate_clocks(self) -> PropagationResult:
        """Derive clocks through buffers and dividers of the design."""
        result = propagate_clocks(
            self.netlist, self.registry, rules=self.rules, passes=self.passes
        )
        if result.delay_target is not None:
            self.scratchpad[DELAY_TARGET_KEY] = result.delay_target
        return result

    def set_false_path(
        self,
        from_: Selection | None = None,
        to: Selection | None = None,
        through: Selection | None = None,
    ) -> FalsePath:
        """Record a false path."""
        return self.exceptions.add_false_path(from_, to, through)

    def set_max_delay(
        self,
        delay: float,
        from_: Selection | None = None,
        to: Selection | None = None,
    ) -> MaxDelay:
        """Record a max-delay bound."""
        return self.exceptions.add_max_delay(delay, from_, to)

    def set_clock_groups(
        self,
        groups: Iterable[Iterable[str] | Selection],
        relation: ClockGroupRelation | str = ClockGroupRelation.ASYNCHRONOUS,
        name: str | None = None,
    ) -> ClockGroup:
        """Record a clock-group partition."""
        return self.exceptions.add_clock_group(groups, relation, name)

    def emit_sdc(self, include_generated: bool = False) -> str:
        """Render the constraint set as SDC text."""
        text, _issues = render_sdc(
            self.registry, self.exceptions, include_generated, self._netlist
        )
        return text

    def write_sdc(
        self,
        stream: TextIO,
        include_generated: bool = False,
    ) -> list[ResolutionIssue]:
        """Write the constraint set to *stream*."""
        text, issues = render_sdc(
            self.registry, self.exceptions, include_generated, self._netlist
        )
        stream.write(text)
        return issues

    def read_sdc(self, text: str) -> ExecutionResult:
        """Parse SDC text and execute its commands against this session."""
        from sdc_toolkit.parser import parse_sdc
        from sdc_toolkit.parser.interpreter import SDCInterpreter

        return SDCInterpreter(self).execute(parse_sdc(text))
