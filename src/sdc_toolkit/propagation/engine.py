"""Clock propagation through buffers and clock dividers.

Each pass walks the netlist breadth-first from the wires that carry a
clock when the pass starts and registers a GENERATED clock on every wire
driven by a matching cell. Passes run in a fixed order, so a later pass
sees the clocks derived by the earlier ones.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sdc_toolkit.core.model import Clock, ClockOrigin, Waveform
from sdc_toolkit.errors import MalformedCellError, StructuralPreconditionError
from sdc_toolkit.propagation.rules import RuleKind, RuleSet, default_rules

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sdc_toolkit.core.netlist import Cell, Netlist, Wire
    from sdc_toolkit.core.registry import ClockRegistry
    from sdc_toolkit.propagation.rules import TransformRule

log = logging.getLogger(__name__)


@dataclass
class PropagationResult:
    """Outcome of a full propagation run.

    Attributes
    ----------
    generated : list[Clock]
        Clocks registered by the run, in registration order.
    delay_target : int | None
        Fastest clock period in picoseconds, or None without clocks.
    """

    generated: list[Clock] = field(default_factory=list)
    delay_target: int | None = None


def _unique_name(registry: ClockRegistry, wire: Wire) -> str:
    """Name a derived clock after its wire, avoiding foreign clock names."""
    base = wire.path
    name = base
    suffix = 0
    while True:
        existing = registry.get(name)
        if existing is None or wire in existing.wires:
            return name
        suffix += 1
        name = f"{base}_{suffix}"


class PropagationPass:
    """One breadth-first traversal applying the rules of a single kind.

    Parameters
    ----------
    name : str
        Name used in log messages.
    kind : RuleKind
        The rule family this pass applies.
    """

    def __init__(self, name: str, kind: RuleKind) -> None:
        self.name = name
        self.kind = kind

    def __repr__(self) -> str:
        return f"PropagationPass({self.name!r}, {self.kind!s})"

    def run(
        self,
        netlist: Netlist,
        registry: ClockRegistry,
        rules: RuleSet,
    ) -> list[Clock]:
        """Derive clocks reachable through cells matched by this pass.

        Parameters
        ----------
        netlist : Netlist
            The design to walk; it is only read.
        registry : ClockRegistry
            Source of the starting clocks, receives the derived ones.
        rules : RuleSet
            Transform rules to match fanout cells against.

        Returns
        -------
        list[Clock]
            The clocks registered by this pass.
        """
        frontier: deque[Wire] = deque(registry.wires())
        visited: set[Wire] = set()
        generated: list[Clock] = []

        while frontier:
            wire = frontier.popleft()
            if wire in visited:
                continue
            visited.add(wire)
            clock = registry.find_by_wire(wire)
            if clock is None:
                continue

            for cell, port in netlist.fanout(wire):
                for rule in rules.match(cell.type, port, self.kind):
                    for derived in self._apply(netlist, registry, clock, cell, rule):
                        generated.append(derived)
                        frontier.extend(derived.wires)

        log.info("%s: %d clock(s) derived", self.name, len(generated))
        return generated

    def _apply(
        self,
        netlist: Netlist,
        registry: ClockRegistry,
        clock: Clock,
        cell: Cell,
        rule: TransformRule,
    ) -> list[Clock]:
        """Register the clocks a single rule derives at one cell."""
        outputs = netlist.driven_wires(cell, rule.output_port)
        if not outputs:
            return []
        try:
            waveform = rule.transform(clock.waveform, cell.parameters)
        except MalformedCellError as e:
            log.warning(
                "Skipping %s (%s) while propagating %s: %s",
                cell.path,
                cell.type,
                clock.name,
                e,
            )
            return []

        derived: list[Clock] = []
        for out in outputs:
            if not self._should_register(registry, out, clock, waveform):
                continue
            name = _unique_name(registry, out)
            log.debug(
                "%s: %s -> %s through %s (period %s)",
                self.name,
                clock.name,
                name,
                cell.path,
                waveform.period,
            )
            derived.append(
                registry.add_clock(
                    name,
                    [out],
                    waveform.period,
                    waveform.rising_edge,
                    waveform.falling_edge,
                    origin=ClockOrigin.GENERATED,
                    parent=clock.name,
                )
            )
        return derived

    @staticmethod
    def _should_register(
        registry: ClockRegistry,
        wire: Wire,
        parent: Clock,
        waveform: Waveform,
    ) -> bool:
        """Decide whether *wire* receives a clock derived from *parent*."""
        current = registry.find_by_wire(wire)
        if current is None:
            return True
        if current.name == parent.name:
            return False
        if current.origin == ClockOrigin.EXPLICIT:
            log.debug(
                "Not overriding explicit clock %s on %s", current.name, wire.path
            )
            return False
        if current.parent == parent.name:
            return current.waveform != waveform
        # A loop leading back to an ancestor must not re-derive it.
        if _is_ancestor(registry, current.name, parent):
            return False
        if current.parent is not None and current.parent in registry:
            # Reconvergent clocks: the first derivation keeps the wire.
            log.warning(
                "Clock %s also reaches %s, which keeps clock %s",
                parent.name,
                wire.path,
                current.name,
            )
            return False
        return True


def _is_ancestor(registry: ClockRegistry, name: str, clock: Clock) -> bool:
    """Check whether clock *name* lies on the parent chain of *clock*."""
    seen: set[str] = set()
    parent = clock.parent
    while parent is not None and parent not in seen:
        if parent == name:
            return True
        seen.add(parent)
        ancestor = registry.get(parent)
        parent = ancestor.parent if ancestor is not None else None
    return False


class BufferPropagation(PropagationPass):
    """Transparent propagation through buffering elements."""

    def __init__(self) -> None:
        super().__init__("BufferPropagation", RuleKind.BUFFER)


class ClockDividerPropagation(PropagationPass):
    """Frequency-transform propagation through dividers, PLLs and MMCMs."""

    def __init__(self) -> None:
        super().__init__("ClockDividerPropagation", RuleKind.DIVIDER)


def default_passes() -> list[PropagationPass]:
    """Buffers first, then dividers, then buffers behind divider outputs."""
    return [BufferPropagation(), ClockDividerPropagation(), BufferPropagation()]


def delay_target(registry: ClockRegistry) -> int | None:
    """Return the fastest clock period in picoseconds.

    Synthesis uses it as the delay target for timing-driven mapping.

    Examples
    --------
    >>> from sdc_toolkit.core.netlist import Wire
    >>> from sdc_toolkit.core.registry import ClockRegistry
    >>> registry = ClockRegistry()
    >>> _ = registry.add_clock("a", [Wire("top", "a")], 10.0)
    >>> _ = registry.add_clock("b", [Wire("top", "b")], 2.5)
    >>> delay_target(registry)
    2500
    """
    periods = [clock.period for clock in registry]
    if not periods:
        return None
    return round(min(periods) * 1000)


def propagate_clocks(
    netlist: Netlist,
    registry: ClockRegistry,
    rules: RuleSet | None = None,
    passes: Sequence[PropagationPass] | None = None,
) -> PropagationResult:
    """Run every propagation pass in order and compute the delay target.

    Parameters
    ----------
    netlist : Netlist
        The design to propagate through.
    registry : ClockRegistry
        Clock registry; extended in place.
    rules : RuleSet | None
        Transform rules, by default :func:`default_rules`.
    passes : Sequence[PropagationPass] | None
        Passes to run, by default :func:`default_passes`.

    Returns
    -------
    PropagationResult
        Derived clocks and the resulting delay target.

    Raises
    ------
    StructuralPreconditionError
        If the design has no top module or no clock is registered.
    """
    if netlist.top_module is None:
        msg = "No top module selected"
        raise StructuralPreconditionError(msg)
    if len(registry) == 0:
        msg = "No clocks to propagate; declare a clock with create_clock first"
        raise StructuralPreconditionError(msg)

    rules = rules if rules is not None else default_rules()
    passes = passes if passes is not None else default_passes()

    log.info("Perform clock propagation")
    result = PropagationResult()
    for propagation_pass in passes:
        result.generated.extend(propagation_pass.run(netlist, registry, rules))
    result.delay_target = delay_target(registry)
    return result
