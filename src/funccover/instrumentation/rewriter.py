"""
Byte-preserving source rewriter.

The rewriter copies the original bytes of a unit to an output stream and
splices coverage code at the anchors of an InsertionPlan:

- the declaration block at the plan's header
- ``@funccover_exit_hook.guard`` directly above the entry point's ``def``
- ``<cover_var>.flags[i] = True`` as the first statement of function i

Nothing of the original is removed or reordered, and the tree is never
printed back to text, so formatting and comments survive unchanged.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, List, Tuple

from funccover.frontend.scanner import Anchor, Placement
from funccover.instrumentation.declaration import EXIT_HOOK_NAME
from funccover.instrumentation.planner import InsertionPlan

LOG = logging.getLogger(__name__)

# Splice order for anchors sharing an offset.
_HEADER, _GUARD, _TRACK = range(3)


def detect_newline(content: bytes) -> bytes:
    """Return the first line terminator used in content, "\\n" by default."""
    index = content.find(b"\n")
    if index > 0 and content[index - 1:index] == b"\r":
        return b"\r\n"
    if index == -1 and b"\r" in content:
        return b"\r"
    return b"\n"


def render(anchor: Anchor, text: str, newline: bytes = b"\n") -> bytes:
    """Return the bytes spliced at anchor for text."""
    data = text.encode("utf-8").replace(b"\n", newline)
    if anchor.placement is Placement.NEWLINE_BEFORE:
        return data + newline + anchor.indent
    if anchor.placement is Placement.INLINE_BEFORE:
        return data + b"; "
    if anchor.placement is Placement.NEWLINE_AFTER:
        return newline + anchor.indent + data
    return b"; " + data


class SourceRewriter(object):
    """
    Splices coverage code into one unit.

    Attributes:
        cover_var: Name of the unit's coverage table variable
        hook_name: Name of the exit hook variable
    """

    def __init__(self, cover_var: str, hook_name: str = EXIT_HOOK_NAME):
        self.cover_var = cover_var
        self.hook_name = hook_name

    def tracking_statement(self, index: int) -> str:
        return "%s.flags[%d] = True" % (self.cover_var, index)

    def guard_decorator(self) -> str:
        return "@%s.guard" % self.hook_name

    def splices(self, content: bytes, plan: InsertionPlan, declaration: str) -> List[Tuple[int, int, bytes]]:
        """Return (offset, order, data) for every insertion, in output order."""
        newline = detect_newline(content)
        splices = [(plan.header.offset, _HEADER, render(plan.header, declaration.rstrip("\n"), newline))]
        if plan.entry_point is not None:
            splices.append((plan.entry_point.offset, _GUARD, render(plan.entry_point, self.guard_decorator(), newline)))
        for index, event in enumerate(plan.events):
            splices.append((event.offset, _TRACK, render(event, self.tracking_statement(index), newline)))
        splices.sort(key=lambda splice: splice[:2])
        return splices

    def rewrite(self, content: bytes, plan: InsertionPlan, declaration: str, out: BinaryIO) -> bool:
        """
        Write content with the planned insertions to out.

        Args:
            content: Original source bytes
            plan: Insertion plan computed from content
            declaration: Declaration block text
            out: Binary stream receiving the instrumented source

        Returns:
            True if the entry point received the exit-hook guard
        """
        position = 0
        for offset, _, data in self.splices(content, plan, declaration):
            out.write(content[position:offset])
            out.write(data)
            position = offset
        out.write(content[position:])

        LOG.debug("%s: spliced %d tracking statements", self.cover_var, len(plan.events))
        return plan.entry_point is not None
