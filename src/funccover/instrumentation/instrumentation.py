"""
Function-coverage instrumentation of a single compilation unit.

This module wires the pipeline together:

1. SyntaxScanner parses the unit and finds the function records and the
   declaration header
2. the planner orders the insertion anchors and finds the entry point
3. the declaration emitter renders the coverage table block
4. the rewriter splices everything into the original bytes

The output is built completely in memory. Nothing is written unless every
step succeeded, and outputs are replaced atomically.
"""

from __future__ import annotations

import io
import logging
from typing import Optional

from funccover.application.config import InstrumentConfig, is_valid_cover_var
from funccover.application.errors import InternalError
from funccover.frontend.scanner import SyntaxScanner
from funccover.instrumentation import planner
from funccover.instrumentation.declaration import emit_declaration
from funccover.instrumentation.rewriter import SourceRewriter
from funccover.util.io import filesystem

LOG = logging.getLogger(__name__)


def instrument(source_path: str, source_bytes: bytes, cover_var: str, config: Optional[InstrumentConfig] = None) -> bytes:
    """
    Instrument one unit for function coverage.

    Args:
        source_path: Path recorded in the coverage table and used in errors
        source_bytes: Original source
        cover_var: Name of the coverage table variable; must be unique in
            the unit's namespace
        config: Run options (entry-point name); defaults apply if omitted

    Returns:
        The instrumented source bytes

    Raises:
        ValueError: If cover_var is not a valid identifier
        ParseError: If source_bytes is not valid Python
        InternalTemplateError: If the declaration block cannot be rendered
    """
    if not is_valid_cover_var(cover_var):
        raise ValueError("invalid cover variable name: %r" % (cover_var,))
    config = config or InstrumentConfig()

    scanner = SyntaxScanner(source_bytes, source_path)
    records = scanner.functions()
    plan = planner.plan(records, scanner.header(), config.entry_point_name)

    declaration = emit_declaration(cover_var, source_path, plan.has_entry_point, records)

    buf = io.BytesIO()
    has_main = SourceRewriter(cover_var).rewrite(source_bytes, plan, declaration, buf)
    if has_main != plan.has_entry_point:
        raise InternalError("exit hook declared without guard in %s" % source_path)

    LOG.debug("instrumented %s: %d functions, entry point: %s", source_path, len(records), has_main)
    return buf.getvalue()


class Instrumentation(object):
    """
    Keeps the data needed to instrument one source file.

    Attributes:
        cover_var: Name of the coverage table variable
        out_path: Destination of the instrumented source
        src_name: Path recorded in the coverage table
        content: Source bytes, set by save_file
        config: Run options
    """

    def __init__(self, cover_var: str, out_path: str, src_name: str, config: Optional[InstrumentConfig] = None):
        self.cover_var = cover_var
        self.out_path = out_path
        self.src_name = src_name
        self.config = config or InstrumentConfig()
        self.content = None

    def save_file(self, src: str) -> None:
        """Read the source file to instrument."""
        self.content = filesystem.readData(src)

    def instrument(self) -> bytes:
        """Instrument the saved content."""
        if self.content is None:
            raise InternalError("no source saved for %s" % self.src_name)
        return instrument(self.src_name, self.content, self.cover_var, self.config)

    def write_instrumented(self, instrumented: bytes) -> bool:
        """
        Write the instrumented source to out_path.

        Returns:
            True if out_path was (re)written, False if it was up to date
        """
        written = filesystem.writeFileIfChanged(self.out_path, instrumented)
        if written:
            LOG.info("Instrumented output written to file: %s", self.out_path)
        else:
            LOG.debug("Instrumented output unchanged: %s", self.out_path)
        return written


def instrument_for_function_coverage(
    src_path: str,
    src_name: str,
    cover_var: str,
    out_path: str,
    config: Optional[InstrumentConfig] = None,
) -> bool:
    """
    Instrument src_path and write the result to out_path.

    Raises:
        OSError: If the source cannot be read or the output written
        ParseError: If the source is not valid Python
    """
    instrumentation = Instrumentation(cover_var=cover_var, out_path=out_path, src_name=src_name, config=config)
    instrumentation.save_file(src_path)
    instrumented = instrumentation.instrument()
    return instrumentation.write_instrumented(instrumented)
