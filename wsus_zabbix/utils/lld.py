"""Zabbix low-level discovery (LLD) JSON rendering."""

from typing import Any, Iterable, List, Sequence

from .formatting import format_value
from .metrics import get_property

INDENT = "    "


def _macro_pairs(item: Any, properties: Sequence[str]) -> List[str]:
    pairs = []
    for name in properties:
        rendered = format_value(get_property(item, name), escape=True, json_quote=True)
        if not rendered:
            rendered = '""'
        pairs.append(f'"{{#{name}}}":{rendered}')
    return pairs


def emit_discovery_json(
    items: Iterable[Any],
    properties: Sequence[str],
    pretty: bool = False
) -> str:
    """
    Render items as a Zabbix LLD document.

    Each item becomes {"{#PROP}":value, ...} for the given property names.
    None items are skipped.

    Args:
        items: Objects to enumerate
        properties: Property names, used verbatim inside the {#...} macro
        pretty: Add newlines and indentation

    Returns:
        str: {"data":[...]} document
    """
    entries = [_macro_pairs(item, properties) for item in items if item is not None]

    if not pretty:
        body = ",".join("{" + ", ".join(pairs) + "}" for pairs in entries)
        return '{"data":[' + body + ']}'

    lines = ["{", f'{INDENT}"data":[']
    for index, pairs in enumerate(entries):
        lines.append(INDENT * 2 + "{")
        for position, pair in enumerate(pairs):
            separator = "," if position < len(pairs) - 1 else ""
            lines.append(INDENT * 3 + pair + separator)
        closing = "}," if index < len(entries) - 1 else "}"
        lines.append(INDENT * 2 + closing)
    lines.append(f"{INDENT}]")
    lines.append("}")
    return "\n".join(lines)
