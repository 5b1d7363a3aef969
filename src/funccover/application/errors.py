"""
Error handling for funccover instrumentation.

This module defines the exception classes raised while instrumenting a
compilation unit. Errors caused by the user's input derive from
InstrumentationError; errors that indicate a defect in funccover itself
derive from InternalError and are never treated as user errors.

I/O failures are not wrapped: OSError from reading a source or writing the
instrumented output propagates unchanged.
"""


class InstrumentationError(Exception):
    """
    Base class for errors that abort the instrumentation of one unit.

    The orchestrator (CLI or build tool) decides whether to skip the unit or
    abort the whole build.
    """
    pass


class ParseError(InstrumentationError):
    """
    Exception raised when a unit is not syntactically valid Python.

    Attributes:
        filename: Source path given for the unit (may be None)
        lineno: Line reported by the parser (may be None)
        msg: Parser message
    """

    def __init__(self, msg, filename=None, lineno=None):
        self.msg = msg
        self.filename = filename
        self.lineno = lineno
        super().__init__(str(self))

    def __str__(self):
        where = self.filename or "<unknown>"
        if self.lineno is not None:
            where = "%s:%d" % (where, self.lineno)
        return "%s: %s" % (where, self.msg)

    @classmethod
    def from_syntax_error(cls, exc, filename=None):
        """Build a ParseError from a SyntaxError raised by the parser."""
        return cls(exc.msg, filename=filename or exc.filename, lineno=exc.lineno)


class InternalError(Exception):
    """
    Exception raised for internal errors in funccover.

    This exception indicates a bug or a broken invariant in funccover's own
    implementation, as opposed to an error in the user's code.
    """
    pass


class InternalTemplateError(InternalError):
    """
    Exception raised when the declaration block cannot be rendered.

    The template inputs are constructed internally, so a rendering failure is
    always a defect in funccover.
    """
    pass
