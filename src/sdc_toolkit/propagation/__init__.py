"""Clock propagation through buffers, dividers, PLLs and MMCMs."""

from sdc_toolkit.propagation.engine import (
    BufferPropagation,
    ClockDividerPropagation,
    PropagationPass,
    PropagationResult,
    default_passes,
    delay_target,
    propagate_clocks,
)
from sdc_toolkit.propagation.rules import (
    RuleKind,
    RuleSet,
    TransformRule,
    default_rules,
    divide,
    passthrough,
    pll_output,
)

__all__ = [
    # engine
    "BufferPropagation",
    "ClockDividerPropagation",
    "PropagationPass",
    "PropagationResult",
    "default_passes",
    "delay_target",
    "propagate_clocks",
    # rules
    "RuleKind",
    "RuleSet",
    "TransformRule",
    "default_rules",
    "divide",
    "passthrough",
    "pll_output",
]
