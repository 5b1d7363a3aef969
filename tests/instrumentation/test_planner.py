"""Unit tests for the insertion planner."""

import unittest

from funccover.application.errors import InternalError
from funccover.frontend.scanner import Anchor, FunctionRecord, Placement, SyntaxScanner
from funccover.instrumentation.planner import find_entry_point, plan


def record(name, offset, is_method=False):
    return FunctionRecord(
        name=name,
        line=offset,
        body=Anchor(offset, Placement.NEWLINE_BEFORE, b"    "),
        declaration=Anchor(offset - 1, Placement.NEWLINE_BEFORE),
        is_method=is_method,
    )


HEADER = Anchor(0, Placement.NEWLINE_BEFORE)


class TestPlan(unittest.TestCase):

    def test_events_follow_records(self):
        records = [record("a", 10), record("b", 20), record("c", 30)]
        result = plan(records, HEADER)
        self.assertEqual(result.offsets, (10, 20, 30))
        self.assertEqual(result.events, tuple(r.body for r in records))
        self.assertIsNone(result.entry_point)
        self.assertFalse(result.has_entry_point)

    def test_empty(self):
        result = plan([], HEADER)
        self.assertEqual(result.events, ())
        self.assertIs(result.header, HEADER)

    def test_entry_point(self):
        records = [record("helper", 10), record("main", 20)]
        result = plan(records, HEADER)
        self.assertTrue(result.has_entry_point)
        self.assertEqual(result.entry_point, records[1].declaration)

    def test_method_named_main_is_not_entry_point(self):
        records = [record("App.main", 10, is_method=True)]
        self.assertIsNone(plan(records, HEADER).entry_point)

    def test_first_entry_point_wins(self):
        records = [record("main", 10), record("main", 20)]
        self.assertIs(find_entry_point(records), records[0])
        self.assertEqual(plan(records, HEADER).entry_point.offset, 9)

    def test_custom_entry_point_name(self):
        records = [record("main", 10), record("run", 20)]
        result = plan(records, HEADER, entry_point_name="run")
        self.assertEqual(result.entry_point, records[1].declaration)

    def test_out_of_order_records(self):
        with self.assertRaises(InternalError):
            plan([record("a", 20), record("b", 10)], HEADER)
        with self.assertRaises(InternalError):
            plan([record("a", 10), record("b", 10)], HEADER)

    def test_header_after_first_event(self):
        with self.assertRaises(InternalError):
            plan([record("a", 10)], Anchor(11, Placement.NEWLINE_AFTER))

    def test_plan_from_scanned_source(self):
        content = b"def Foo():\n    pass\n\ndef main():\n    Foo()\n"
        scanner = SyntaxScanner(content)
        result = plan(scanner.functions(), scanner.header())
        self.assertEqual(result.offsets, (content.index(b"pass"), content.index(b"Foo()\n")))
        self.assertEqual(result.entry_point.offset, content.index(b"def main"))
        self.assertEqual(result.header.offset, 0)


if __name__ == "__main__":
    unittest.main()
