"""Identifier filter for object collections."""

from typing import Any, List, Optional, Sequence

from .metrics import get_property


def select_by_id_or_all(
    items: Sequence[Any],
    id_property: str,
    id: Optional[str] = None
) -> List[Any]:
    """
    Select the items whose identifier equals id.

    None means "no filter"; every other value, including "0" and "",
    is compared by exact equality of its string form.

    Args:
        items: Collection to filter
        id_property: Name of the identifier property
        id: Identifier to match, or None

    Returns:
        List[Any]: Matching items in original order
    """
    if id is None:
        return list(items)

    selected = []
    for item in items:
        value = get_property(item, id_property)
        if value is None:
            continue
        if value == id or str(value) == str(id):
            selected.append(item)
    return selected
