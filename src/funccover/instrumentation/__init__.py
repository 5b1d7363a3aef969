"""
Function-coverage instrumentation of Python compilation units.

**Components:**

1. **Planner** (`planner.py`): ordered insertion anchors and entry point
2. **Declaration** (`declaration.py`): coverage table block, rendered with jinja2
3. **Rewriter** (`rewriter.py`): byte-preserving splicing
4. **Instrumentation** (`instrumentation.py`): the pipeline and file handling

**Usage:**
```python
from funccover.instrumentation import instrument

with open("app.py", "rb") as f:
    out = instrument("app.py", f.read(), "_funccover_app")
```
"""

from .declaration import emit_declaration
from .instrumentation import Instrumentation, instrument, instrument_for_function_coverage
from .planner import InsertionPlan, plan
from .rewriter import SourceRewriter

__all__ = [
    "InsertionPlan",
    "Instrumentation",
    "SourceRewriter",
    "emit_declaration",
    "instrument",
    "instrument_for_function_coverage",
    "plan",
]
