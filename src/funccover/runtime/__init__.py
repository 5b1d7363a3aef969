"""
Runtime support for function-coverage instrumented code.

Instrumented modules import this package from their generated declaration
block; it must therefore stay importable without side effects beyond
creating the process-wide registry.
"""

from .coverdata import (
    FUNC_COVER_DATA,
    CoverageRow,
    CoverageTable,
    ExitHook,
    FlagRef,
    Registry,
    register,
    registry,
)

__all__ = [
    "FUNC_COVER_DATA",
    "CoverageRow",
    "CoverageTable",
    "ExitHook",
    "FlagRef",
    "Registry",
    "register",
    "registry",
]
