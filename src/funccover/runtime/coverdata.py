"""
Runtime coverage registry.

Every instrumented module registers its coverage table here exactly once,
while it is being imported and before any of its own code runs. The registry
does not copy flag values: each row keeps a FlagRef to the module's flag
list, so writes made later by instrumented functions are visible to anyone
reading the registry.

**Lifecycle:**
1. Import: ``register`` is called once per instrumented module. Imports are
   serialised by the import system, so no locking is done.
2. Execution: instrumented functions store ``True`` into their flag cell
   from any thread without synchronisation. Every writer stores the same
   value and readers only ask "was it ever set", so the race is benign.
3. Exit: reporting code enumerates ``rows()``. There is no teardown and rows
   are never removed or reordered.
"""

from __future__ import annotations

import functools
import inspect
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, MutableSequence, NamedTuple, Sequence

__all__ = [
    "CoverageRow",
    "CoverageTable",
    "ExitHook",
    "FUNC_COVER_DATA",
    "FlagRef",
    "Registry",
    "register",
    "registry",
]


class FlagRef(object):
    """A reference to one cell of a flag list."""

    __slots__ = ("cells", "index")

    def __init__(self, cells: MutableSequence[bool], index: int):
        self.cells = cells
        self.index = index

    @property
    def value(self) -> bool:
        return bool(self.cells[self.index])

    @value.setter
    def value(self, value: bool) -> None:
        self.cells[self.index] = value

    def __bool__(self):
        return self.value

    def __repr__(self):
        return "FlagRef(index=%d, value=%r)" % (self.index, self.value)


@dataclass
class CoverageTable:
    """
    Coverage data of one instrumented module.

    The lists are parallel: entry i of each describes function i, and
    ``flags[i]`` is set by the tracking statement at the top of its body.
    """

    source_path: str
    function_names: List[str] = field(default_factory=list)
    function_lines: List[int] = field(default_factory=list)
    flags: List[bool] = field(default_factory=list)


class CoverageRow(NamedTuple):
    source_path: str
    name: str
    line: int
    executed: bool


class Registry(object):
    """
    Append-only coverage table of the whole process.

    Attributes:
        source_paths: Source path of each row
        func_names: Function name of each row
        func_lines: Definition line of each row
        executed: FlagRef of each row, aliasing the module's flag list
    """

    def __init__(self):
        self.source_paths: List[str] = []
        self.func_names: List[str] = []
        self.func_lines: List[int] = []
        self.executed: List[FlagRef] = []

    def register(
        self,
        source_path: str,
        names: Sequence[str],
        lines: Sequence[int],
        flags: MutableSequence[bool],
    ) -> None:
        """
        Append one row per function of a module.

        Args:
            source_path: Path of the module's source
            names: Function names
            lines: Function definition lines
            flags: The module's own flag list; rows keep references into it

        Raises:
            ValueError: If the three sequences differ in length
        """
        if not len(names) == len(lines) == len(flags):
            raise ValueError(
                "%s: mismatched coverage data (%d names, %d lines, %d flags)"
                % (source_path, len(names), len(lines), len(flags))
            )
        for i, name in enumerate(names):
            self.source_paths.append(source_path)
            self.func_names.append(name)
            self.func_lines.append(lines[i])
            self.executed.append(FlagRef(flags, i))

    def rows(self) -> Iterator[CoverageRow]:
        """Yield every row in registration order with its current flag value."""
        for i in range(len(self.executed)):
            yield CoverageRow(self.source_paths[i], self.func_names[i], self.func_lines[i], self.executed[i].value)

    def __len__(self):
        return len(self.executed)

    def __iter__(self):
        return self.rows()


class ExitHook(object):
    """
    Indirection to the callback run when the entry point returns.

    The instrumented entry-point module creates one hook pointing at a no-op.
    Reporting code may assign ``callback`` at any time before the entry point
    returns; ``guard`` always calls the callback current at that moment.
    """

    def __init__(self, callback: Callable[[], None]):
        self.callback = callback

    def __call__(self):
        self.callback()

    def guard(self, func):
        """
        Decorate func so that the hook runs once whenever it returns.

        The hook runs on normal return, early return and propagating
        exceptions. Coroutine and generator functions are guarded when they
        finish rather than when they are created. Abnormal process
        termination (signals, os._exit) skips the hook.
        """
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                finally:
                    self()
            return async_wrapper

        if inspect.isgeneratorfunction(func):
            @functools.wraps(func)
            def generator_wrapper(*args, **kwargs):
                try:
                    return (yield from func(*args, **kwargs))
                finally:
                    self()
            return generator_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            finally:
                self()
        return wrapper


# Process-wide registry; instrumented modules register here.
FUNC_COVER_DATA = Registry()


def register(source_path, names, lines, flags) -> None:
    """Register a module's coverage data with the process-wide registry."""
    FUNC_COVER_DATA.register(source_path, names, lines, flags)


def registry() -> Registry:
    return FUNC_COVER_DATA
