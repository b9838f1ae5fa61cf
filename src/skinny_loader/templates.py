"""
Placeholder substitution for generated schema text.

Templates use a closed set of ``[% name %]`` placeholders. Every occurrence
is replaced literally, without escaping, in a single pass over the
template; substituted values are never scanned again.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from skinny_loader.exceptions import TemplateError


PLACEHOLDER_PATTERN = re.compile(r"\[%\s*(\w+)\s*%\]")

PLACEHOLDERS = ("table", "pk", "columns")

DEFAULT_TABLE_TEMPLATE = (
    "install_table [% table %] => schema {\n"
    "    pk '[% pk %]';\n"
    "    columns qw/[% columns %]/;\n"
    "};\n"
    "\n"
)


def check_template(template: str, template_name: Optional[str] = None) -> None:
    """
    Reject templates that use placeholders outside the known set.

    Raises:
        TemplateError: on the first unknown placeholder
    """
    for match in PLACEHOLDER_PATTERN.finditer(template):
        if match.group(1) not in PLACEHOLDERS:
            raise TemplateError(match.group(0), template_name)


def substitute(
    template: str,
    values: Dict[str, str],
    template_name: Optional[str] = None,
) -> str:
    """Replace every known placeholder in ``template`` with its value."""
    check_template(template, template_name)
    return PLACEHOLDER_PATTERN.sub(
        lambda match: values.get(match.group(1), ""),
        template,
    )


def render_table(
    table: str,
    pk: Optional[str],
    columns: List[str],
    template: Optional[str] = None,
) -> str:
    """
    Render one ``install_table`` block.

    Args:
        table: Table name
        pk: Primary key column, or None (rendered as an empty string)
        columns: Column names, joined by a single space
        template: Custom table template (default block if not provided)

    Returns:
        Rendered block text
    """
    return substitute(
        template or DEFAULT_TABLE_TEMPLATE,
        {
            "table": table,
            "pk": pk or "",
            "columns": " ".join(columns),
        },
        template_name="table_template",
    )


def insert_block(text: Optional[str]) -> str:
    """Free-text block: trailing whitespace trimmed, one blank line after."""
    if not text:
        return ""
    return text.rstrip() + "\n\n"
