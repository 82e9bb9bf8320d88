"""Listing rendering and stdout writing."""

import codecs
import shutil
import sys
import textwrap
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional, TextIO

from .errors import ConfigurationError
from .formatting import format_value

# Wide enough that Zabbix never receives a wrapped listing line.
DEFAULT_WIDTH = 255


def resolve_width(adjust_console: bool = True, width: int = DEFAULT_WIDTH) -> int:
    """
    Width used for listings.

    Args:
        adjust_console: Use the fixed width; when False keep the terminal width
        width: Fixed width

    Returns:
        int: Column count
    """
    if adjust_console:
        return width
    return shutil.get_terminal_size(fallback=(80, 24)).columns


def _properties_of(item: Any) -> Dict[str, Any]:
    accessor = getattr(item, "properties", None)
    if callable(accessor):
        return accessor()
    if isinstance(item, Mapping):
        return dict(item)
    return {"Value": item}


def _render_object(item: Any, width: int) -> str:
    properties = _properties_of(item)
    if not properties:
        return ""

    label_width = max(len(name) for name in properties)
    indent = " " * (label_width + 3)
    lines = []
    for name, value in properties.items():
        text = format_value(value)
        prefix = f"{name.ljust(label_width)} : "
        if not text:
            lines.append(prefix.rstrip())
            continue
        wrapped = textwrap.wrap(
            text,
            width=max(width, len(prefix) + 10),
            initial_indent=prefix,
            subsequent_indent=indent,
            break_on_hyphens=False,
        )
        lines.extend(wrapped or [prefix.rstrip()])
    return "\n".join(lines)


def render_listing(items: Iterable[Any], width: int = DEFAULT_WIDTH) -> str:
    """
    Render objects in "Name : Value" list form, one blank line between objects.

    Args:
        items: Objects to list
        width: Maximum line width

    Returns:
        str: Listing text
    """
    blocks = [_render_object(item, width) for item in items if item is not None]
    return "\n\n".join(block for block in blocks if block)


def check_codepage(console_cp: Optional[str]) -> None:
    """
    Validate an output codepage name.

    Raises:
        ConfigurationError: If Python has no codec of that name
    """
    if not console_cp:
        return
    try:
        codecs.lookup(console_cp)
    except LookupError:
        raise ConfigurationError(f"Unknown console codepage: {console_cp}") from None


def write_output(
    text: str,
    console_cp: Optional[str] = None,
    stream: Optional[TextIO] = None
) -> None:
    """
    Write the result followed by a newline.

    Args:
        text: Result text
        console_cp: Codec to encode the output with, or None for the stream default
        stream: Target stream (default: sys.stdout)
    """
    stream = stream or sys.stdout
    line = text + "\n"

    if not console_cp:
        stream.write(line)
        stream.flush()
        return

    check_codepage(console_cp)
    data = line.encode(console_cp, errors="replace")
    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        stream.write(data.decode(console_cp))
    else:
        stream.flush()
        buffer.write(data)
        buffer.flush()
    stream.flush()
