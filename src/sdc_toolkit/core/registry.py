"""Registry of the clocks known to an analysis session."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from sdc_toolkit.core.model import Clock, ClockOrigin
from sdc_toolkit.errors import InvalidArgumentError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from sdc_toolkit.core.model import Selection
    from sdc_toolkit.core.netlist import Netlist, Wire

log = logging.getLogger(__name__)


def _validate(
    name: str,
    wires: tuple[Wire, ...],
    period: float,
    rising_edge: float,
    falling_edge: float,
) -> None:
    """Check the invariants of a clock declaration.

    Raises
    ------
    InvalidArgumentError
        If any invariant is violated.
    """
    if not name:
        msg = "Clock name must not be empty"
        raise InvalidArgumentError(msg)
    if not wires:
        msg = f"Clock {name!r}: target selection is empty"
        raise InvalidArgumentError(msg)
    if not period > 0:
        msg = f"Clock {name!r}: incorrect period value {period}"
        raise InvalidArgumentError(msg)
    if not 0 <= rising_edge < period:
        msg = (
            f"Clock {name!r}: rising edge {rising_edge} "
            f"outside of [0, {period})"
        )
        raise InvalidArgumentError(msg)
    if falling_edge == rising_edge:
        msg = f"Clock {name!r}: falling edge equals rising edge ({rising_edge})"
        raise InvalidArgumentError(msg)


class ClockRegistry:
    """Clocks keyed by name and by wire.

    Iteration follows registration order, so anything rendered from the
    registry is stable across runs. A wire is carried by at most one
    clock; the last registration wins.

    Examples
    --------
    >>> from sdc_toolkit.core.netlist import Wire
    >>> registry = ClockRegistry()
    >>> clk = registry.add_clock("clk", [Wire("top", "CLK")], 10.0)
    >>> (clk.rising_edge, clk.falling_edge)
    (0.0, 5.0)
    >>> registry.find_by_wire(Wire("top", "CLK")).name
    'clk'
    """

    def __init__(self) -> None:
        self._clocks: dict[str, Clock] = {}
        self._by_wire: dict[Wire, str] = {}

    def add_clock(  # noqa: PLR0913
        self,
        name: str,
        wires: Iterable[Wire],
        period: float,
        rising_edge: float | None = None,
        falling_edge: float | None = None,
        origin: ClockOrigin = ClockOrigin.EXPLICIT,
        parent: str | None = None,
    ) -> Clock:
        """Register a clock and associate it with its wires.

        Parameters
        ----------
        name : str
            Clock name. Callers derive one (e.g. from the first wire)
            before calling when the user gave none.
        wires : Iterable[Wire]
            Wires carrying the clock.
        period : float
            Period in nanoseconds, strictly positive.
        rising_edge : float | None
            Rising edge time; defaults to 0.
        falling_edge : float | None
            Falling edge time; defaults to half the period.
        origin : ClockOrigin
            EXPLICIT for declared clocks, GENERATED for derived ones.
        parent : str | None
            Name of the clock a GENERATED clock was derived from.

        Returns
        -------
        Clock
            The registered clock.

        Raises
        ------
        InvalidArgumentError
            If the declaration is malformed. The registry is unchanged.
        """
        wires = tuple(dict.fromkeys(wires))
        if rising_edge is None and falling_edge is None:
            rising_edge, falling_edge = 0.0, period / 2
        elif rising_edge is None:
            rising_edge = 0.0
        elif falling_edge is None:
            falling_edge = rising_edge + period / 2
        _validate(name, wires, period, rising_edge, falling_edge)

        clock = Clock(
            name=name,
            wires=wires,
            period=float(period),
            rising_edge=float(rising_edge),
            falling_edge=float(falling_edge),
            origin=origin,
            parent=parent,
        )

        previous = self._clocks.get(name)
        if previous is not None:
            log.debug("Redefining clock %s", name)
            for wire in previous.wires:
                if self._by_wire.get(wire) == name:
                    del self._by_wire[wire]

        for wire in wires:
            owner = self._by_wire.get(wire)
            if owner is not None and owner != name:
                log.warning(
                    "Wire %s already carries clock %s; reassigning it to %s",
                    wire.path,
                    owner,
                    name,
                )
                self._release_wire(owner, wire)
            self._by_wire[wire] = name

        self._clocks[name] = clock
        return clock

    def _release_wire(self, name: str, wire: Wire) -> None:
        """Detach *wire* from clock *name*, dropping the clock if it empties."""
        clock = self._clocks[name]
        remaining = tuple(w for w in clock.wires if w != wire)
        if remaining:
            self._clocks[name] = replace(clock, wires=remaining)
        else:
            log.debug("Clock %s lost its last wire and is removed", name)
            del self._clocks[name]

    def find_by_wire(self, wire: Wire) -> Clock | None:
        """Return the clock carried by *wire*, if any."""
        name = self._by_wire.get(wire)
        if name is None:
            return None
        return self._clocks[name]

    def find_by_name_pattern(
        self,
        patterns: str | Iterable[str] | None = None,
    ) -> list[Clock]:
        """Return clocks whose name matches any of the glob *patterns*.

        An empty or missing pattern list matches every clock.
        """
        if patterns is None:
            return self.clocks()
        if isinstance(patterns, str):
            patterns = [patterns]
        patterns = [p for p in patterns if p]
        if not patterns:
            return self.clocks()
        return [
            clock
            for clock in self._clocks.values()
            if any(fnmatch.fnmatchcase(clock.name, p) for p in patterns)
        ]

    def find_by_selection(
        self,
        selection: Selection,
        netlist: Netlist | None = None,
    ) -> list[Clock]:
        """Return the clocks a clock selection names, in registration order.

        Parameters
        ----------
        selection : Selection
            Clock name patterns, or with ``of_nets`` the nets whose clocks
            are selected.
        netlist : Netlist | None
            Design used to look up ``of_nets``; without one nothing is
            carried by any net.

        Returns
        -------
        list[Clock]
            The matched clocks, plus their descendants when the selection
            includes generated clocks.
        """
        if selection.of_nets is not None:
            if netlist is None:
                return []
            wires = netlist.select_wires(selection.of_nets)
            names = set(self.clock_names_for_wires(wires))
        else:
            names = {c.name for c in self.find_by_name_pattern(selection.patterns)}
        if selection.include_generated:
            names.update(d.name for n in list(names) for d in self.generated_from(n))
        return [clock for clock in self._clocks.values() if clock.name in names]

    def clock_names_for_wires(self, wires: Iterable[Wire]) -> list[str]:
        """Return the names of the clocks carried by *wires*, in order."""
        names = (self._by_wire.get(wire) for wire in wires)
        return list(dict.fromkeys(n for n in names if n is not None))

    def generated_from(self, name: str) -> list[Clock]:
        """Return every clock derived, directly or not, from clock *name*."""
        lineage = {name}
        derived: list[Clock] = []
        changed = True
        while changed:
            changed = False
            for clock in self._clocks.values():
                if clock.parent in lineage and clock.name not in lineage:
                    lineage.add(clock.name)
                    derived.append(clock)
                    changed = True
        order = list(self._clocks)
        return sorted(derived, key=lambda c: order.index(c.name))

    def clocks(self) -> list[Clock]:
        """Return all clocks in registration order."""
        return list(self._clocks.values())

    def wires(self) -> list[Wire]:
        """Return every wire currently carrying a clock."""
        return list(self._by_wire)

    def get(self, name: str) -> Clock | None:
        """Return the clock called *name*, if any."""
        return self._clocks.get(name)

    def remove(self, name: str) -> None:
        """Forget clock *name* and its wire associations."""
        clock = self._clocks.pop(name, None)
        if clock is None:
            return
        for wire in clock.wires:
            if self._by_wire.get(wire) == name:
                del self._by_wire[wire]

    def reset(self) -> None:
        """Drop every clock; used at session boundaries."""
        self._clocks.clear()
        self._by_wire.clear()

    def __len__(self) -> int:
        """Return the number of registered clocks."""
        return len(self._clocks)

    def __iter__(self) -> Iterator[Clock]:
        """Iterate over clocks in registration order."""
        return iter(list(self._clocks.values()))

    def __contains__(self, name: object) -> bool:
        """Check whether a clock with this name is registered."""
        return name in self._clocks
