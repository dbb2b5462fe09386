"""Lark-based SDC reader and command interpreter."""

from sdc_toolkit.parser.interpreter import ExecutionResult, SDCInterpreter
from sdc_toolkit.parser.parser import (
    SDCLarkParser,
    get_parser,
    parse_sdc,
    parse_sdc_file,
)
from sdc_toolkit.parser.transformer import Command

__all__ = [
    "Command",
    "ExecutionResult",
    "SDCInterpreter",
    "SDCLarkParser",
    "get_parser",
    "parse_sdc",
    "parse_sdc_file",
]
