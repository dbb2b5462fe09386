"""SDC parse tree transformer producing command records."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from lark import Token, Transformer, v_args

if TYPE_CHECKING:
    from lark.tree import Meta

_ESCAPE = re.compile(r"\\(.)", re.DOTALL)

# A braced list is kept as a list so that ``{clk}`` and ``clk`` differ.
Argument = Union[str, list[str], "Command"]


def unescape(text: str) -> str:
    r"""Drop Tcl backslash escapes.

    Examples
    --------
    >>> unescape(r"data\[0\]")
    'data[0]'
    """
    return _ESCAPE.sub(r"\1", text)


@dataclass(frozen=True)
class Command:
    """One SDC command as written in the source.

    Attributes
    ----------
    name : str
        Command name, e.g. ``create_clock``.
    args : tuple[Argument, ...]
        Words, braced lists and nested commands in source order.
    line : int
        Line of the command name.
    """

    name: str
    args: tuple[Argument, ...]
    line: int


class SDCTransformer(Transformer):
    """Transformer that turns the SDC parse tree into :class:`Command` records."""

    def start(self, commands: list[Command]) -> list[Command]:
        """Return the commands of the file in source order."""
        return list(commands)

    @v_args(meta=True)
    def command(self, meta: Meta, children: list[Argument]) -> Command:
        """Build a top-level command."""
        name, *args = children
        return Command(str(name), tuple(args), meta.line)

    @v_args(meta=True)
    def nested(self, meta: Meta, children: list[Argument]) -> Command:
        """Build a bracketed command substitution."""
        name, *args = children
        return Command(str(name), tuple(args), meta.line)

    # ── Terminals ────────────────────────────────────────────────────

    def WORD(self, token: Token) -> str:  # noqa: N802
        """Unescape a bare word."""
        return unescape(str(token))

    def BRACED(self, token: Token) -> list[str]:  # noqa: N802
        """Split a braced list into its elements, taken literally."""
        return str(token)[1:-1].split()

    def STRING(self, token: Token) -> str:  # noqa: N802
        """Strip the quotes of a quoted string."""
        return unescape(str(token)[1:-1])
