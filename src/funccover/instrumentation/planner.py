"""
Insertion planning for function-coverage instrumentation.

The planner turns scanned function records into the ordered list of splice
points used by the rewriter. It has no side effects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from funccover.application.errors import InternalError
from funccover.frontend.scanner import Anchor, FunctionRecord

LOG = logging.getLogger(__name__)

ENTRY_POINT_NAME = "main"


@dataclass(frozen=True)
class InsertionPlan:
    """
    Where coverage code goes in one unit.

    Attributes:
        events: Body anchors, one per function record, strictly ascending by
            offset; the index of an event is the flag index of its function
        entry_point: Declaration anchor of the entry-point function, if any
        header: Anchor of the declaration block
    """

    events: Tuple[Anchor, ...]
    entry_point: Optional[Anchor]
    header: Anchor

    @property
    def offsets(self) -> Tuple[int, ...]:
        return tuple(event.offset for event in self.events)

    @property
    def has_entry_point(self) -> bool:
        return self.entry_point is not None


def find_entry_point(records: Sequence[FunctionRecord], name: str = ENTRY_POINT_NAME) -> Optional[FunctionRecord]:
    """
    Return the first top-level, non-method record called name.

    Several module-level definitions of the same name are legal Python; the
    first one in source order is the one that receives the exit hook.
    """
    for record in records:
        if not record.is_method and record.name == name:
            return record
    return None


def plan(records: Sequence[FunctionRecord], header: Anchor, entry_point_name: str = ENTRY_POINT_NAME) -> InsertionPlan:
    """
    Build the insertion plan for records.

    Args:
        records: Function records in source order
        header: Anchor of the declaration block
        entry_point_name: Name of the program entry point

    Raises:
        InternalError: If the records are not strictly ascending by body
            offset, or the header does not precede every event
    """
    events = tuple(record.body for record in records)

    for previous, current in zip(events, events[1:]):
        if current.offset <= previous.offset:
            raise InternalError(
                "insertion events out of order: %d after %d" % (current.offset, previous.offset)
            )
    if events and header.offset > events[0].offset:
        raise InternalError("declaration header at %d follows first event at %d" % (header.offset, events[0].offset))

    entry = find_entry_point(records, entry_point_name)
    if entry is not None:
        LOG.debug("entry point %s defined on line %d", entry.name, entry.line)

    return InsertionPlan(
        events=events,
        entry_point=entry.declaration if entry is not None else None,
        header=header,
    )
