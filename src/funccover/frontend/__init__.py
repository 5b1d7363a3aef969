"""
Frontend for funccover: parsing compilation units into instrumentation anchors.
"""

from .scanner import (
    Anchor,
    FunctionRecord,
    Placement,
    SyntaxScanner,
    locate_header,
    scan,
)

__all__ = [
    "Anchor",
    "FunctionRecord",
    "Placement",
    "SyntaxScanner",
    "locate_header",
    "scan",
]
