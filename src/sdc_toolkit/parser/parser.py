"""Lark-based SDC file parser with thread-safe caching."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING

from lark import Lark, LarkError

from sdc_toolkit.parser.transformer import SDCTransformer

if TYPE_CHECKING:
    from sdc_toolkit.parser.transformer import Command


class SDCLarkParser:
    """LALR parser for the Tcl command subset used in SDC files."""

    def __init__(self) -> None:
        """Initialize the parser with the SDC grammar."""
        grammar_path = (Path(__file__).parent / "sdc.lark").resolve()

        try:
            with grammar_path.open() as f:
                grammar = f.read()
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Grammar file not found: {grammar_path}") from exc

        # The transformer is applied per parse() call so no state is shared.
        self.parser = Lark(
            grammar, parser="lalr", start="start", propagate_positions=True
        )

    def parse(self, input_text: str) -> list[Command]:
        """Parse SDC text into commands.

        Parameters
        ----------
        input_text : str
            The SDC file content as a string.

        Returns
        -------
        list[Command]
            Top-level commands in source order.

        Raises
        ------
        LarkError
            If parsing fails.
        """
        try:
            # The last command needs a terminator as well.
            tree = self.parser.parse(input_text + "\n")
            return SDCTransformer().transform(tree)  # type: ignore[return-value]
        except LarkError as e:
            raise LarkError(
                f"SDC parsing failed at {getattr(e, 'line', 'unknown')}:"
                f"{getattr(e, 'column', 'unknown')} - {e!s}"
            ) from e

    def parse_file(self, filepath: Path | str) -> list[Command]:
        """Parse an SDC file directly.

        Parameters
        ----------
        filepath : Path | str
            Path to the SDC file.

        Returns
        -------
        list[Command]
            Top-level commands in source order.
        """
        try:
            with Path(filepath).open("r") as f:
                content = f.read()
        except OSError as e:
            raise OSError(f"Error reading SDC file {filepath}: {e!s}") from e
        return self.parse(content)


_local = threading.local()


def get_parser() -> SDCLarkParser:
    """Get or create a thread-local parser instance."""
    if not hasattr(_local, "parser"):
        _local.parser = SDCLarkParser()
    return _local.parser


def parse_sdc(input_text: str) -> list[Command]:
    """Parse SDC text.

    Parameters
    ----------
    input_text : str
        SDC content as string.

    Returns
    -------
    list[Command]
        Top-level commands in source order.
    """
    return get_parser().parse(input_text)


def parse_sdc_file(filepath: Path | str) -> list[Command]:
    """Parse an SDC file.

    Parameters
    ----------
    filepath : Path | str
        Path to SDC file.

    Returns
    -------
    list[Command]
        Top-level commands in source order.
    """
    return get_parser().parse_file(filepath)
