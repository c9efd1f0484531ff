"""Depth-first topological ordering of keyed items.

Shared by referential filtering and DDL generation so that every item
is preceded by the items it depends on.
"""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, Sequence, TypeVar

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

ItemT = TypeVar("ItemT")
KeyT = TypeVar("KeyT", bound=Hashable)


def topological_sort(
    items: Iterable[ItemT],
    describe: Callable[[ItemT], tuple[KeyT, Sequence[KeyT]]],
) -> list[ItemT]:
    """Order items so dependencies come before their dependents.

    The sort is depth-first and stable with respect to input order.
    Visiting a key that is in progress or already emitted is a no-op, so
    a cycle never raises: each key is emitted exactly once and the cycle
    is logged. Dependencies naming unknown keys are ignored.

    Args:
        items: Items to order.
        describe: Returns ``(key, dependency_keys)`` for an item.

    Returns:
        Items in dependency order.
    """
    ordered_items = list(items)
    descriptions = [describe(item) for item in ordered_items]
    item_by_key = {key: item for item, (key, _dependencies) in zip(ordered_items, descriptions)}
    dependencies_by_key = {key: dependencies for key, dependencies in descriptions}
    visited: set[KeyT] = set()
    in_progress: set[KeyT] = set()
    output: list[ItemT] = []

    def visit(key: KeyT) -> None:
        if key in visited:
            return
        if key in in_progress:
            _LOGGER.warning("dependency_cycle_detected", key=str(key))
            return
        in_progress.add(key)
        for dependency in dependencies_by_key[key]:
            if dependency in item_by_key:
                visit(dependency)
        in_progress.discard(key)
        visited.add(key)
        output.append(item_by_key[key])

    for key, _dependencies in descriptions:
        visit(key)
    return output
