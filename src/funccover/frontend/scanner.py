"""
Syntax scanner for function-coverage instrumentation.

This module parses a compilation unit with the standard library ``ast``
module and reports where coverage code has to be spliced into the original
bytes.

**Offsets:**
``ast`` reports positions as (line, column) pairs where the column is a UTF-8
byte offset into the line. A LineTable built from the raw content turns these
into absolute byte offsets, so the rewriter can splice text without ever
regenerating source from the tree. Sources are assumed to be UTF-8 encoded
(the Python 3 default); a leading BOM is accounted for. A unit that declares
any other encoding in a PEP 263 cookie is rejected with ParseError, since
its columns no longer line up with the raw bytes.

**Qualifying declarations:**
- ``def`` and ``async def`` statements in the module body
- the same statements directly inside class bodies (methods), recursively
  through nested classes
- nothing inside a function body: nested functions and lambdas are not
  declarations

Signature-only declarations (``@overload`` stubs and functions whose body is
just ``...``) produce no record.

**Anchors:**
Python has no block delimiters, so every insertion point is expressed
relative to a statement. An Anchor records the byte offset, whether the
inserted text goes before or after the statement and on its own line or on
the statement's line, and the indentation to use for a new line.
"""

from __future__ import annotations

import ast
import codecs
import enum
import io
import logging
import tokenize
from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Optional

from funccover.application.errors import ParseError

LOG = logging.getLogger(__name__)

_INDENT_CHARS = b" \t\f"

_SUPPORTED_ENCODINGS = ("utf-8", "utf-8-sig")


class Placement(enum.Enum):
    """How text is spliced at an anchor."""

    # text, newline, indent; then the statement
    NEWLINE_BEFORE = "newline-before"
    # text, "; "; then the statement
    INLINE_BEFORE = "inline-before"
    # the statement; then newline, indent, text
    NEWLINE_AFTER = "newline-after"
    # the statement; then "; ", text
    INLINE_AFTER = "inline-after"


class Anchor(NamedTuple):
    offset: int
    placement: Placement
    indent: bytes = b""


@dataclass(frozen=True)
class FunctionRecord:
    """
    One instrumentable function.

    Attributes:
        name: Function name, qualified by enclosing classes for methods
        line: 1-based line of the ``def`` keyword
        body: Anchor of the body's first statement (after any docstring)
        declaration: Anchor of the ``def``/``async def`` keyword
        is_method: True when defined in a class body
    """

    name: str
    line: int
    body: Anchor
    declaration: Anchor
    is_method: bool = False

    @property
    def body_offset(self) -> int:
        return self.body.offset


class LineTable(object):
    """Maps ``ast`` (line, column) positions to offsets in the raw bytes."""

    def __init__(self, content: bytes):
        self.content = content
        offset = len(codecs.BOM_UTF8) if content.startswith(codecs.BOM_UTF8) else 0
        self.starts = []
        for line in content[offset:].splitlines(keepends=True):
            self.starts.append(offset)
            offset += len(line)
        # Start of the (possibly empty) line after the last terminator.
        self.starts.append(offset)
        self._terminated = None

    def line_start(self, lineno: int) -> int:
        return self.starts[lineno - 1]

    def offset(self, lineno: int, col: int) -> int:
        return self.starts[lineno - 1] + col

    def indent(self, lineno: int) -> bytes:
        start = self.line_start(lineno)
        end = start
        while end < len(self.content) and self.content[end] in _INDENT_CHARS:
            end += 1
        return self.content[start:end]

    def starts_line(self, lineno: int, col: int) -> bool:
        """True if only whitespace precedes column col on line lineno."""
        start = self.line_start(lineno)
        return not self.content[start:start + col].strip()

    def continues(self, lineno: int) -> bool:
        """True if line lineno is joined to the previous one by a backslash."""
        if self._terminated is None:
            self._terminated = self._terminated_lines()
        return lineno > 1 and lineno - 1 not in self._terminated

    def starts_logical_line(self, lineno: int, col: int) -> bool:
        return self.starts_line(lineno, col) and not self.continues(lineno)

    def _terminated_lines(self):
        # Only explicit backslash joins and string literals leave a physical
        # line without a NEWLINE or NL token.
        lines = [line.rstrip(b"\r\n") + b"\n" for line in self.content.splitlines(keepends=True)]
        return {
            tok.start[0]
            for tok in tokenize.tokenize(iter(lines).__next__)
            if tok.type in (tokenize.NEWLINE, tokenize.NL)
        }


def is_docstring(stmt: ast.stmt) -> bool:
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and isinstance(stmt.value.value, str)
    )


def is_signature_only(node) -> bool:
    """
    True for declarations that only state a signature.

    These are functions decorated with ``overload`` (bare or qualified, e.g.
    ``typing.overload``) and functions whose body is ``...``, optionally
    preceded by a docstring.
    """
    for decorator in node.decorator_list:
        target = decorator.func if isinstance(decorator, ast.Call) else decorator
        if isinstance(target, ast.Name) and target.id == "overload":
            return True
        if isinstance(target, ast.Attribute) and target.attr == "overload":
            return True

    body = node.body[1:] if is_docstring(node.body[0]) else node.body
    return (
        len(body) == 1
        and isinstance(body[0], ast.Expr)
        and isinstance(body[0].value, ast.Constant)
        and body[0].value.value is Ellipsis
    )


def first_line(stmt: ast.stmt) -> int:
    """First source line of stmt, counting its decorators."""
    decorators = getattr(stmt, "decorator_list", ())
    return min([stmt.lineno] + [d.lineno for d in decorators])


def parse(content: bytes, filename: Optional[str] = None) -> ast.Module:
    """
    Parse content into a module tree.

    Raises:
        ParseError: If content is not valid Python source, or declares an
            encoding other than UTF-8
    """
    try:
        tree = ast.parse(content, filename=filename or "<unknown>")
    except SyntaxError as exc:
        raise ParseError.from_syntax_error(exc, filename) from exc
    except ValueError as exc:
        # Null bytes are reported as ValueError by older interpreters.
        raise ParseError(str(exc), filename=filename) from exc

    encoding, _ = tokenize.detect_encoding(io.BytesIO(content).readline)
    if encoding not in _SUPPORTED_ENCODINGS:
        raise ParseError("unsupported source encoding %r, only UTF-8 can be instrumented" % encoding, filename=filename)
    return tree


class SyntaxScanner(object):
    """
    Parses one compilation unit and extracts its instrumentation anchors.

    Attributes:
        content: Original source bytes
        filename: Name used in parse errors
        tree: Parsed module
        lines: LineTable for content
    """

    def __init__(self, content: bytes, filename: Optional[str] = None):
        self.content = content
        self.filename = filename
        self.tree = parse(content, filename)
        self.lines = LineTable(content)

    def functions(self) -> List[FunctionRecord]:
        """Return the qualifying function records in source order."""
        records = list(self._walk(self.tree.body, "", False))
        LOG.debug("%s: %d instrumentable functions", self.filename or "<unknown>", len(records))
        return records

    def header(self) -> Anchor:
        """
        Return the anchor of the declaration block.

        The block must run before any module code, but the module docstring
        and ``from __future__`` imports have to stay first.
        """
        body = self.tree.body
        index = 0
        if body and is_docstring(body[0]):
            index = 1
        while (
            index < len(body)
            and isinstance(body[index], ast.ImportFrom)
            and body[index].module == "__future__"
        ):
            index += 1

        if index:
            return self.after(body[index - 1])
        if body:
            return self.before(body[0])

        end = len(self.content)
        if end == self.lines.starts[0] or self.content.endswith((b"\n", b"\r")):
            return Anchor(end, Placement.NEWLINE_BEFORE)
        return Anchor(end, Placement.NEWLINE_AFTER)

    def before(self, stmt: ast.stmt) -> Anchor:
        lineno = first_line(stmt)
        if lineno != stmt.lineno or self.lines.starts_logical_line(stmt.lineno, stmt.col_offset):
            indent = self.lines.indent(lineno)
            return Anchor(self.lines.line_start(lineno) + len(indent), Placement.NEWLINE_BEFORE, indent)
        return Anchor(self.lines.offset(stmt.lineno, stmt.col_offset), Placement.INLINE_BEFORE)

    def after(self, stmt: ast.stmt) -> Anchor:
        offset = self.lines.offset(stmt.end_lineno, stmt.end_col_offset)
        if self.lines.starts_logical_line(stmt.lineno, stmt.col_offset):
            return Anchor(offset, Placement.NEWLINE_AFTER, self.lines.indent(stmt.lineno))
        return Anchor(offset, Placement.INLINE_AFTER)

    def _body_anchor(self, node) -> Anchor:
        body = node.body
        if is_docstring(body[0]):
            if len(body) == 1:
                return self.after(body[0])
            return self.before(body[1])
        return self.before(body[0])

    def _walk(self, body, prefix: str, in_class: bool) -> Iterator[FunctionRecord]:
        for stmt in body:
            if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
                if is_signature_only(stmt):
                    LOG.debug("skipping signature-only declaration %s%s", prefix, stmt.name)
                    continue
                yield FunctionRecord(
                    name=prefix + stmt.name,
                    line=stmt.lineno,
                    body=self._body_anchor(stmt),
                    declaration=Anchor(
                        self.lines.offset(stmt.lineno, stmt.col_offset),
                        Placement.NEWLINE_BEFORE,
                        self.lines.indent(stmt.lineno),
                    ),
                    is_method=in_class,
                )
            elif isinstance(stmt, ast.ClassDef):
                yield from self._walk(stmt.body, prefix + stmt.name + ".", True)


def scan(content: bytes, filename: Optional[str] = None) -> List[FunctionRecord]:
    """
    Parse content and return its instrumentable functions in source order.

    Raises:
        ParseError: If content is not valid Python source
    """
    return SyntaxScanner(content, filename).functions()


def locate_header(content: bytes, filename: Optional[str] = None) -> Anchor:
    """Parse content and return the anchor of its declaration block."""
    return SyntaxScanner(content, filename).header()
