"""Priority ordering for XRD services and URIs.

Lower priorities come first. Entries that share a priority are shuffled:
callers must not rely on any order among them. Entries without a priority
come after every numbered priority.
"""

import random
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

T = TypeVar("T")


def _priority_key(priority: Optional[int]):
    return (priority is None, priority or 0)


def sort_by_priority(buckets: Mapping[Optional[int], Sequence[T]]) -> List[T]:
    """Flatten priority buckets into a single ordered list.

    Args:
        buckets: Mapping of priority to the entries sharing it

    Returns:
        Entries in ascending priority order, ties in random order
    """
    flattened: List[T] = []
    for priority in sorted(buckets, key=_priority_key):
        entries = list(buckets[priority])
        if len(entries) > 1:
            random.shuffle(entries)
        flattened.extend(entries)
    return flattened


def group_by_priority(
    items: Iterable[T], key: Callable[[T], Optional[int]]
) -> Dict[Optional[int], List[T]]:
    buckets: Dict[Optional[int], List[T]] = {}
    for item in items:
        buckets.setdefault(key(item), []).append(item)
    return buckets
