"""
Declaration block emitter.

Renders the Python statements that every instrumented unit runs before its
own code: the coverage table literal, its registration with the runtime
registry and, for the unit defining the entry point, the exit-hook variables.

The block is rendered from a jinja2 template. All inputs are built by
funccover itself, so a rendering failure is reported as
InternalTemplateError rather than as a user error.
"""

from __future__ import annotations

import functools
import logging
from typing import Sequence

import jinja2

from funccover.application.errors import InternalTemplateError
from funccover.frontend.scanner import FunctionRecord

LOG = logging.getLogger(__name__)

RUNTIME_MODULE = "funccover.runtime"
RUNTIME_ALIAS = "_funccover_runtime"

# Module-level names looked up by reporting code in the entry-point module.
EXIT_HOOK_NAME = "funccover_exit_hook"
EXIT_HOOK_NOOP_NAME = "funccover_exit_hook_noop"

DECLARATION_TEMPLATE = """\
import {{ runtime_module }} as {{ runtime_alias }}
{{ cover_var }} = {{ runtime_alias }}.CoverageTable(
    source_path={{ source_path | pyrepr }},
    function_names=[
{% for record in records %}
        {{ record.name | pyrepr }},
{% endfor %}
    ],
    function_lines=[
{% for record in records %}
        {{ record.line }},
{% endfor %}
    ],
    flags=[
{% for record in records %}
        False,
{% endfor %}
    ],
)
{{ runtime_alias }}.register(
    {{ cover_var }}.source_path,
    {{ cover_var }}.function_names,
    {{ cover_var }}.function_lines,
    {{ cover_var }}.flags,
)
{% if has_entry_point %}
{{ noop_name }} = lambda: None
{{ hook_name }} = {{ runtime_alias }}.ExitHook({{ noop_name }})
{% endif %}
"""


@functools.lru_cache(maxsize=None)
def _template() -> jinja2.Template:
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["pyrepr"] = repr
    return env.from_string(DECLARATION_TEMPLATE)


def emit_declaration(
    cover_var: str,
    source_path: str,
    has_entry_point: bool,
    records: Sequence[FunctionRecord],
) -> str:
    """
    Render the declaration block of one unit.

    Args:
        cover_var: Name of the coverage table variable
        source_path: Path recorded in the table
        has_entry_point: Emit the exit-hook variables
        records: Function records in source order; the table lists them in
            the same order

    Returns:
        Python source text ending with a newline

    Raises:
        InternalTemplateError: If the template fails to render
    """
    try:
        text = _template().render(
            runtime_module=RUNTIME_MODULE,
            runtime_alias=RUNTIME_ALIAS,
            cover_var=cover_var,
            source_path=source_path,
            records=records,
            has_entry_point=has_entry_point,
            noop_name=EXIT_HOOK_NOOP_NAME,
            hook_name=EXIT_HOOK_NAME,
        )
    except jinja2.TemplateError as exc:
        raise InternalTemplateError(
            "cannot render coverage declaration for %s: %s" % (source_path, exc)
        ) from exc

    LOG.debug("declaration for %s: %d functions, entry point: %s", source_path, len(records), has_entry_point)
    return text
