"""Small helpers shared by the layout and cost modules."""

from __future__ import annotations

from bisect import bisect_left
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

T = TypeVar("T")


def binary_search(
    items: Sequence[T],
    x: float,
    key: Callable[[T], float] | None = None,
) -> int:
    """Find the index of the first element whose projection is >= x.

    Args:
        items: Elements sorted by their projection
        x: Value to look for
        key: Projection applied to each element (identity if omitted)

    Returns:
        0 when x is below every element, len(items) when above every element

    Example:
        binary_search([0, 1, 2, 3, 4], 0.5)  # == 1
        binary_search([0, 1, 2, 3, 4], 100)  # == 5
    """
    return bisect_left(items, x, key=key)


def extend(first: Mapping[str, Any], second: Mapping[str, Any]) -> dict[str, Any]:
    """Merge two mappings into a new dict, values of ``second`` winning."""
    merged = dict(first)
    merged.update(second)
    return merged
