"""Store of timing exceptions: false paths, max delays and clock groups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sdc_toolkit.core.model import (
    ClockGroup,
    ClockGroupRelation,
    FalsePath,
    MaxDelay,
    ObjectKind,
    Selection,
    TimingException,
)
from sdc_toolkit.errors import InvalidArgumentError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


def _clock_selection(group: Iterable[str] | Selection) -> Selection:
    if isinstance(group, Selection):
        return group
    return Selection(ObjectKind.CLOCKS, tuple(group))


class TimingExceptionStore:
    """Insertion-ordered collection of timing exception records.

    Endpoint selections are kept unresolved; they are checked against the
    clock registry and the netlist only when constraints are written, so
    a record may name a clock that propagation has not derived yet.
    """

    def __init__(self) -> None:
        self._records: list[TimingException] = []

    def add_false_path(
        self,
        from_: Selection | None = None,
        to: Selection | None = None,
        through: Selection | None = None,
    ) -> FalsePath:
        """Record a false path between two endpoint selections."""
        record = FalsePath(from_=from_, to=to, through=through)
        self._records.append(record)
        return record

    def add_max_delay(
        self,
        delay: float,
        from_: Selection | None = None,
        to: Selection | None = None,
    ) -> MaxDelay:
        """Record a max-delay bound; missing endpoints mean all endpoints."""
        record = MaxDelay(delay=float(delay), from_=from_, to=to)
        self._records.append(record)
        return record

    def add_clock_group(
        self,
        groups: Iterable[Iterable[str] | Selection],
        relation: ClockGroupRelation | str = ClockGroupRelation.ASYNCHRONOUS,
        name: str | None = None,
    ) -> ClockGroup:
        """Record a partition of clocks into related groups.

        Parameters
        ----------
        groups : Iterable[Iterable[str] | Selection]
            One clock selection or iterable of clock name patterns per
            group.
        relation : ClockGroupRelation | str
            How the groups relate to each other.
        name : str | None
            Optional name of the clock group record.

        Returns
        -------
        ClockGroup
            The stored record.

        Raises
        ------
        InvalidArgumentError
            If there is no group or a group has no member.
        """
        frozen = tuple(_clock_selection(group) for group in groups)
        if not frozen:
            msg = "set_clock_groups needs at least one group"
            raise InvalidArgumentError(msg)
        if any(not group.patterns and group.of_nets is None for group in frozen):
            msg = "set_clock_groups: empty clock group"
            raise InvalidArgumentError(msg)
        record = ClockGroup(
            groups=frozen,
            relation=ClockGroupRelation(relation),
            name=name,
        )
        self._records.append(record)
        return record

    @property
    def false_paths(self) -> list[FalsePath]:
        """False-path records in insertion order."""
        return [r for r in self._records if isinstance(r, FalsePath)]

    @property
    def max_delays(self) -> list[MaxDelay]:
        """Max-delay records in insertion order."""
        return [r for r in self._records if isinstance(r, MaxDelay)]

    @property
    def clock_groups(self) -> list[ClockGroup]:
        """Clock-group records in insertion order."""
        return [r for r in self._records if isinstance(r, ClockGroup)]

    def reset(self) -> None:
        """Drop every record; used at session boundaries."""
        self._records.clear()

    def __len__(self) -> int:
        """Return the number of records."""
        return len(self._records)

    def __iter__(self) -> Iterator[TimingException]:
        """Iterate over all records in insertion order."""
        return iter(list(self._records))
