r"""
=============
Text Report
=============

Renders the process-wide coverage registry as plain text.

:Example:

.. code-block:: none

    Function coverage:
    app.py:3: Foo                                     executed
    app.py:10: main                                   NOT executed

    Functions executed: 1 of 2 (50.0%)

The usual way to get a report at program end is to install it as the exit
hook callback of the entry-point module::

    import __main__
    from funccover.runtime import report
    report.report_on_exit(__main__.funccover_exit_hook)
"""
import logging
import sys

from .coverdata import FUNC_COVER_DATA

LOG = logging.getLogger(__name__)


def get_results(registry):
    rows = list(registry.rows())
    if not rows:
        return "\tNo instrumented functions registered."

    bits = []
    for row in rows:
        location = f"{row.source_path}:{row.line}: {row.name}"
        bits.append(f"{location:<50} {'executed' if row.executed else 'NOT executed'}")
    return "\n".join(bits)


def get_summary(registry):
    total = len(registry)
    executed = sum(1 for row in registry.rows() if row.executed)
    percent = 100.0 * executed / total if total else 0.0
    return f"Functions executed: {executed} of {total} ({percent:.1f}%)"


def format_text(registry=None):
    """Return the text report for registry (the process-wide one by default)."""
    registry = registry if registry is not None else FUNC_COVER_DATA
    bits = ["Function coverage:", get_results(registry), "", get_summary(registry)]
    return "\n".join(bits) + "\n"


def print_report(registry=None, fileobj=None):
    """Write the text report to fileobj (sys.stderr by default)."""
    fileobj = fileobj if fileobj is not None else sys.stderr
    fileobj.write(format_text(registry))
    fileobj.flush()

    name = getattr(fileobj, "name", None)
    if isinstance(name, str) and fileobj not in (sys.stdout, sys.stderr) and not name.startswith("<"):
        LOG.info("Coverage report written to file: %s", name)


def report_on_exit(hook, registry=None, fileobj=None):
    """Make hook print the report when the entry point returns."""
    hook.callback = lambda: print_report(registry, fileobj)
