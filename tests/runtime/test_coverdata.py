"""Unit tests for the runtime coverage registry."""

import asyncio
import subprocess
import sys
import threading
import unittest

import funccover.runtime as runtime
from funccover.runtime.coverdata import (
    FUNC_COVER_DATA,
    CoverageRow,
    CoverageTable,
    ExitHook,
    FlagRef,
    Registry,
)


class TestRegistry(unittest.TestCase):
    """Test cases for the Registry class."""

    def setUp(self):
        self.registry = Registry()

    def test_initially_empty(self):
        self.assertEqual(len(self.registry), 0)
        self.assertEqual(list(self.registry.rows()), [])

    def test_aggregates_units(self):
        first = CoverageTable("a.py", ["f", "g"], [1, 5], [False, False])
        second = CoverageTable("b.py", ["h", "i", "j"], [2, 4, 8], [False, False, False])
        for table in (first, second):
            self.registry.register(table.source_path, table.function_names, table.function_lines, table.flags)

        self.assertEqual(len(self.registry), 5)
        self.assertEqual(
            [(row.source_path, row.name, row.line) for row in self.registry.rows()],
            [("a.py", "f", 1), ("a.py", "g", 5), ("b.py", "h", 2), ("b.py", "i", 4), ("b.py", "j", 8)],
        )

    def test_rows_alias_caller_storage(self):
        flags = [False, False]
        self.registry.register("a.py", ["f", "g"], [1, 2], flags)

        flags[1] = True
        self.assertEqual([row.executed for row in self.registry.rows()], [False, True])
        self.assertIs(self.registry.executed[1].cells, flags)

    def test_rows_are_snapshots_of_current_values(self):
        flags = [False]
        self.registry.register("a.py", ["f"], [1], flags)
        before = next(self.registry.rows())
        flags[0] = True
        self.assertEqual(before, CoverageRow("a.py", "f", 1, False))
        self.assertEqual(next(self.registry.rows()), CoverageRow("a.py", "f", 1, True))

    def test_empty_unit_adds_no_rows(self):
        self.registry.register("empty.py", [], [], [])
        self.assertEqual(len(self.registry), 0)

    def test_mismatched_lengths(self):
        with self.assertRaises(ValueError):
            self.registry.register("a.py", ["f", "g"], [1], [False, False])
        with self.assertRaises(ValueError):
            self.registry.register("a.py", ["f"], [1], [])
        self.assertEqual(len(self.registry), 0)

    def test_concurrent_flag_writes(self):
        flags = [False] * 8
        self.registry.register("t.py", ["f%d" % i for i in range(8)], list(range(8)), flags)

        def worker(index):
            for _ in range(100):
                flags[index % 8] = True

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertTrue(all(row.executed for row in self.registry.rows()))

    def test_process_wide_register(self):
        before = len(FUNC_COVER_DATA)
        flags = [False]
        runtime.register("process.py", ["f"], [1], flags)
        self.assertIs(runtime.registry(), FUNC_COVER_DATA)
        self.assertEqual(len(FUNC_COVER_DATA), before + 1)
        flags[0] = True
        self.assertTrue(list(FUNC_COVER_DATA.rows())[-1].executed)


class TestFlagRef(unittest.TestCase):

    def test_read_write_through(self):
        cells = [False, False]
        ref = FlagRef(cells, 1)
        self.assertFalse(ref)
        ref.value = True
        self.assertEqual(cells, [False, True])
        cells[1] = False
        self.assertFalse(ref.value)


class TestExitHook(unittest.TestCase):

    def setUp(self):
        self.calls = []
        self.hook = ExitHook(lambda: None)

    def record(self):
        self.calls.append("exit")

    def test_callback_replaced_after_decoration(self):
        @self.hook.guard
        def main():
            return 1

        self.hook.callback = self.record
        self.assertEqual(main(), 1)
        self.assertEqual(self.calls, ["exit"])

    def test_runs_on_exception(self):
        @self.hook.guard
        def main():
            raise KeyError("x")

        self.hook.callback = self.record
        with self.assertRaises(KeyError):
            main()
        self.assertEqual(self.calls, ["exit"])

    def test_preserves_metadata(self):
        def main():
            """Entry point."""

        guarded = self.hook.guard(main)
        self.assertEqual(guarded.__name__, "main")
        self.assertEqual(guarded.__doc__, "Entry point.")

    def test_generator_runs_on_exhaustion(self):
        @self.hook.guard
        def main():
            yield 1
            yield 2

        self.hook.callback = self.record
        gen = main()
        self.assertEqual(self.calls, [])
        self.assertEqual(list(gen), [1, 2])
        self.assertEqual(self.calls, ["exit"])

    def test_coroutine_runs_on_completion(self):
        @self.hook.guard
        async def main():
            await asyncio.sleep(0)
            return "done"

        self.hook.callback = self.record
        coroutine = main()
        self.assertEqual(self.calls, [])
        self.assertEqual(asyncio.run(coroutine), "done")
        self.assertEqual(self.calls, ["exit"])


class TestRuntimeImport(unittest.TestCase):

    def test_runtime_does_not_load_instrumentation(self):
        code = (
            "import sys, funccover.runtime; "
            "print(sorted(m for m in ('jinja2', 'funccover.instrumentation', 'funccover.frontend') if m in sys.modules))"
        )
        result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True, check=True)
        self.assertEqual(result.stdout.strip(), "[]")


if __name__ == "__main__":
    unittest.main()
