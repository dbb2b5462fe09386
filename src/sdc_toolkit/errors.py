"""Exception hierarchy shared by the clock model, propagation and writer."""


class SDCError(Exception):
    """Base class for all errors raised by sdc_toolkit."""


class InvalidArgumentError(SDCError, ValueError):
    """A declaration was malformed or is missing a required parameter."""


class NotFoundError(SDCError, LookupError):
    """A clock, wire or port referenced by name does not exist."""


class StructuralPreconditionError(SDCError, RuntimeError):
    """An operation needs design state that is absent (no top, no clocks)."""


class MalformedCellError(InvalidArgumentError):
    """A netlist cell carries parameters a transform rule cannot use."""
