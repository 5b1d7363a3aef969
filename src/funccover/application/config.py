"""
Configuration for funccover instrumentation runs.

InstrumentConfig collects the few knobs that vary between builds: the name
of the program entry point, how per-unit cover variables are named, and the
suffix appended to instrumented output files.
"""

from __future__ import annotations

import keyword
import logging
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

LOG = logging.getLogger(__name__)

_NON_IDENTIFIER = re.compile(r"\W")


def is_valid_cover_var(name: str) -> bool:
    """Return True if name can be bound as a module-level variable."""
    return isinstance(name, str) and name.isidentifier() and not keyword.iskeyword(name)


@dataclass
class InstrumentConfig:
    """
    Options shared by every unit of an instrumentation run.

    Attributes:
        entry_point_name: Name of the top-level function that starts the
            program; it receives the exit-hook guard
        cover_var_prefix: Prefix of derived cover variable names
        output_suffix: Suffix inserted before ".py" in output file names
            when writing into a directory (empty keeps the source name)
    """

    entry_point_name: str = "main"
    cover_var_prefix: str = "_funccover_"
    output_suffix: str = ""

    def get_option(self, name: str) -> Any:
        if name not in self._option_names():
            raise KeyError("Unknown option: %s" % name)
        return getattr(self, name)

    def set_option(self, name: str, value: Any) -> None:
        if name not in self._option_names():
            raise KeyError("Unknown option: %s" % name)
        LOG.debug("config: %s = %r", name, value)
        setattr(self, name, value)

    @classmethod
    def _option_names(cls):
        return {f.name for f in fields(cls)}

    def cover_var_for(self, path) -> str:
        """
        Derive a cover variable name from a source path.

        The stem is sanitised to identifier characters, e.g.
        "pkg/my-mod.py" -> "_funccover_my_mod".
        """
        stem = _NON_IDENTIFIER.sub("_", Path(path).stem)
        name = self.cover_var_prefix + stem
        if not is_valid_cover_var(name):
            name = "_" + name
        return name

    def output_name_for(self, path) -> str:
        path = Path(path)
        return "%s%s%s" % (path.stem, self.output_suffix, path.suffix or ".py")
