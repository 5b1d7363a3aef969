"""
funccover application layer.

**Core Components:**

1. **Errors** (`errors.py`):
   - `InstrumentationError`, `ParseError`: unit-fatal input errors
   - `InternalError`, `InternalTemplateError`: defects in funccover itself

2. **Configuration** (`config.py`):
   - `InstrumentConfig`: entry-point name, cover variable naming, output naming
"""

from .config import InstrumentConfig
from .errors import (
    InstrumentationError,
    InternalError,
    InternalTemplateError,
    ParseError,
)

__all__ = [
    "InstrumentConfig",
    "InstrumentationError",
    "InternalError",
    "InternalTemplateError",
    "ParseError",
]
