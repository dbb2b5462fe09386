"""Transform rules mapping a parent clock waveform through a netlist cell.

A rule is keyed by the cell type and the input pin the clock enters
through. Its transform is a pure function of the parent waveform and the
cell parameters, so supporting a new element kind only means registering
another rule.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum

from sdc_toolkit.core.model import Waveform
from sdc_toolkit.core.netlist import ParamValue
from sdc_toolkit.errors import MalformedCellError

Transform = Callable[[Waveform, Mapping[str, ParamValue]], Waveform]

_PRECISION = 9


class RuleKind(StrEnum):
    """Family of elements a rule belongs to; each propagation pass uses one."""

    BUFFER = "buffer"
    DIVIDER = "divider"


@dataclass(frozen=True)
class TransformRule:
    """How a clock entering ``input_port`` of ``cell_type`` leaves it.

    Attributes
    ----------
    cell_type : str
        Cell type the rule applies to.
    input_port : str
        Clock input pin.
    output_port : str
        Output pin carrying the derived clock.
    kind : RuleKind
        Element family.
    transform : Transform
        Computes the derived waveform from the parent waveform and the
        cell parameters.
    """

    cell_type: str
    input_port: str
    output_port: str
    kind: RuleKind
    transform: Transform


class RuleSet:
    """Registry of transform rules keyed by ``(cell type, input port)``."""

    def __init__(self, rules: Iterable[TransformRule] = ()) -> None:
        self._rules: dict[tuple[str, str], list[TransformRule]] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: TransformRule) -> None:
        """Add *rule*; several rules may share a key (multi-output cells)."""
        self._rules.setdefault((rule.cell_type, rule.input_port), []).append(rule)

    def match(
        self,
        cell_type: str,
        port: str,
        kind: RuleKind | None = None,
    ) -> list[TransformRule]:
        """Return the rules for a clock entering *port* of a *cell_type* cell."""
        rules = self._rules.get((cell_type, port), [])
        if kind is None:
            return list(rules)
        return [r for r in rules if r.kind == kind]

    def cell_types(self) -> set[str]:
        """Return every cell type with at least one rule."""
        return {cell_type for cell_type, _port in self._rules}

    def __iter__(self) -> Iterator[TransformRule]:
        """Iterate over all rules in registration order."""
        for rules in self._rules.values():
            yield from rules

    def __len__(self) -> int:
        """Return the number of registered rules."""
        return sum(len(rules) for rules in self._rules.values())


# ── Parameter helpers ────────────────────────────────────────────────


def _number(parameters: Mapping[str, ParamValue], name: str, default: float) -> float:
    """Read a numeric parameter, accepting numbers and numeric strings."""
    value = parameters.get(name, default)
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            msg = f"Parameter {name}={value!r} is not a number"
            raise MalformedCellError(msg) from None
    return float(value)


def _positive(parameters: Mapping[str, ParamValue], name: str, default: float) -> float:
    value = _number(parameters, name, default)
    if not value > 0:
        msg = f"Parameter {name}={value} must be positive"
        raise MalformedCellError(msg)
    return value


def _divisor(parameters: Mapping[str, ParamValue], name: str, default: int) -> int:
    """Read an integer clock divisor; ``"BYPASS"`` stands for 1."""
    value = parameters.get(name, default)
    if isinstance(value, str) and value.strip().upper() == "BYPASS":
        return 1
    number = _number({name: value}, name, default)
    if not number.is_integer() or number <= 0:
        msg = f"Divisor {name}={value!r} must be a positive integer"
        raise MalformedCellError(msg)
    return int(number)


def _wrap(value: float, period: float) -> float:
    """Fold a time into ``[0, period)``, dropping float noise."""
    wrapped = round(math.fmod(value, period), _PRECISION)
    if wrapped < 0:
        wrapped = round(wrapped + period, _PRECISION)
    if wrapped >= period:
        wrapped = 0.0
    return wrapped + 0.0


# ── Transforms ───────────────────────────────────────────────────────


def passthrough(parent: Waveform, _parameters: Mapping[str, ParamValue]) -> Waveform:
    """Buffers pass the clock unchanged in frequency and phase."""
    return parent


def divide(parameter: str, default: int = 1) -> Transform:
    """Build a transform for a divide-by-N element.

    The divided clock rises together with the parent and stays high for
    half of the new period. Dividing by one keeps the parent waveform.

    Parameters
    ----------
    parameter : str
        Name of the cell parameter holding the divisor.
    default : int
        Divisor used when the parameter is absent.

    Returns
    -------
    Transform
        The transform function.

    Examples
    --------
    >>> from sdc_toolkit.core.model import Waveform
    >>> by4 = divide("BUFR_DIVIDE")
    >>> by4(Waveform(10.0, 0.0, 5.0), {"BUFR_DIVIDE": "4"})
    Waveform(period=40.0, rising_edge=0.0, falling_edge=20.0)
    """

    def transform(parent: Waveform, parameters: Mapping[str, ParamValue]) -> Waveform:
        n = _divisor(parameters, parameter, default)
        if n == 1:
            return parent
        period = parent.period * n
        return Waveform(
            period=period,
            rising_edge=parent.rising_edge,
            falling_edge=parent.rising_edge + period / 2,
        )

    return transform


def pll_output(
    index: int,
    *,
    inverted: bool = False,
    mult: str = "CLKFBOUT_MULT",
    divide: str | None = None,
) -> Transform:
    """Build a transform for output ``CLKOUT<index>`` of a PLL or MMCM.

    The output period is ``period_in * DIVCLK_DIVIDE * CLKOUTn_DIVIDE /
    mult``. The output rises ``CLKOUTn_PHASE - CLKFBOUT_PHASE`` degrees of
    its own period after the input rising edge and falls after
    ``CLKOUTn_DUTY_CYCLE`` of the period; both edges are folded into one
    period. Complementary outputs are shifted by another 180 degrees.

    Parameters
    ----------
    index : int
        Output number.
    inverted : bool
        Whether this is the complementary ``CLKOUT<index>B`` output.
    mult : str
        Name of the feedback multiplier parameter.
    divide : str | None
        Name of the output divider parameter; defaults to
        ``CLKOUT<index>_DIVIDE``.

    Returns
    -------
    Transform
        The transform function.
    """
    divide = divide or f"CLKOUT{index}_DIVIDE"
    phase_name = f"CLKOUT{index}_PHASE"
    duty_name = f"CLKOUT{index}_DUTY_CYCLE"

    def transform(parent: Waveform, parameters: Mapping[str, ParamValue]) -> Waveform:
        multiplier = _positive(parameters, mult, 5.0)
        divclk = _positive(parameters, "DIVCLK_DIVIDE", 1.0)
        out_divide = _positive(parameters, divide, 1.0)
        duty = _number(parameters, duty_name, 0.5)
        if not 0 < duty < 1:
            msg = f"Parameter {duty_name}={duty} must lie in (0, 1)"
            raise MalformedCellError(msg)
        phase = _number(parameters, phase_name, 0.0)
        phase -= _number(parameters, "CLKFBOUT_PHASE", 0.0)
        if inverted:
            phase += 180.0

        period = round(parent.period * divclk * out_divide / multiplier, _PRECISION)
        rising = _wrap(parent.rising_edge + phase / 360.0 * period, period)
        falling = _wrap(rising + duty * period, period)
        return Waveform(period=period, rising_edge=rising, falling_edge=falling)

    return transform


# ── Default rule table ───────────────────────────────────────────────

_BUFFERS: dict[str, tuple[tuple[str, ...], str]] = {
    "IBUF": (("I",), "O"),
    "IBUFG": (("I",), "O"),
    "BUFG": (("I",), "O"),
    "BUFGCE": (("I",), "O"),
    "BUFH": (("I",), "O"),
    "BUFHCE": (("I",), "O"),
    "BUFIO": (("I",), "O"),
    "BUFGCTRL": (("I0", "I1"), "O"),
    "BUFGMUX": (("I0", "I1"), "O"),
    "$_BUF_": (("A",), "Y"),
    "$buf": (("A",), "Y"),
}

_DIVIDERS: dict[str, tuple[str, str, str]] = {
    "BUFR": ("I", "O", "BUFR_DIVIDE"),
    "BUFGCE_DIV": ("I", "O", "BUFGCE_DIVIDE"),
}

_PLL_INPUTS = ("CLKIN1", "CLKIN2")


def _pll_rules(cell_type: str) -> Iterator[TransformRule]:
    for port in _PLL_INPUTS:
        for index in range(6):
            yield TransformRule(
                cell_type,
                port,
                f"CLKOUT{index}",
                RuleKind.DIVIDER,
                pll_output(index),
            )


def _mmcm_rules(cell_type: str) -> Iterator[TransformRule]:
    for port in _PLL_INPUTS:
        for index in range(7):
            divide = "CLKOUT0_DIVIDE_F" if index == 0 else None
            yield TransformRule(
                cell_type,
                port,
                f"CLKOUT{index}",
                RuleKind.DIVIDER,
                pll_output(index, mult="CLKFBOUT_MULT_F", divide=divide),
            )
            if index < 4:
                yield TransformRule(
                    cell_type,
                    port,
                    f"CLKOUT{index}B",
                    RuleKind.DIVIDER,
                    pll_output(
                        index, inverted=True, mult="CLKFBOUT_MULT_F", divide=divide
                    ),
                )


def default_rules() -> RuleSet:
    """Return the rule set for common buffers, dividers, PLLs and MMCMs."""
    rules = RuleSet()
    for cell_type, (inputs, output) in _BUFFERS.items():
        for port in inputs:
            rules.register(
                TransformRule(cell_type, port, output, RuleKind.BUFFER, passthrough)
            )
    for cell_type, (port, output, parameter) in _DIVIDERS.items():
        rules.register(
            TransformRule(cell_type, port, output, RuleKind.DIVIDER, divide(parameter))
        )
    for cell_type in ("PLLE2_ADV", "PLLE2_BASE"):
        for rule in _pll_rules(cell_type):
            rules.register(rule)
    for cell_type in ("MMCME2_ADV", "MMCME2_BASE"):
        for rule in _mmcm_rules(cell_type):
            rules.register(rule)
    return rules
