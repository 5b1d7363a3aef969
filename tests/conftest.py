from __future__ import annotations

from dataclasses import dataclass
import textwrap
from typing import Any, Dict

import pytest

from funccover.instrumentation import instrument


def normalize_code(code: str) -> bytes:
    # Allow indented triple-quoted snippets in tests.
    code = textwrap.dedent(code)
    # Trim leading blank line to keep expected line numbers stable.
    code = code.lstrip("\n")
    if code and not code.endswith("\n"):
        code += "\n"
    return code.encode("utf-8")


@dataclass(frozen=True)
class Instrumented:
    source_path: str
    cover_var: str
    source: bytes
    output: bytes

    @property
    def text(self) -> str:
        return self.output.decode("utf-8")

    def load(self) -> Dict[str, Any]:
        """Execute the instrumented unit in a fresh namespace."""
        namespace: Dict[str, Any] = {"__name__": "funccover_sample"}
        exec(compile(self.output, self.source_path, "exec"), namespace)
        return namespace

    def table(self, namespace: Dict[str, Any]):
        return namespace[self.cover_var]


@pytest.fixture()
def instrumented():
    def _instrument(code: str, *, source_path: str = "sample.py", cover_var: str = "_cov") -> Instrumented:
        source = normalize_code(code)
        output = instrument(source_path, source, cover_var)
        return Instrumented(source_path, cover_var, source, output)

    return _instrument
