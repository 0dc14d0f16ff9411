"""
Comparator / sort engine.

`compare_by(config)` builds a three-way comparator for one sort key.
None sorts after every defined value in ascending order and, since descending
is the exact mirror, before every defined value in descending order. There is
no secondary key: `sort_records` relies on Python's stable sort, so records
that compare equal keep their input order in both directions.
"""

import locale
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import Enum
from functools import cmp_to_key
from typing import Any

from models.enums import SortDirection
from models.inventory import InventoryRecord
from models.query import SortConfig

from .accessors import SORT_ACCESSORS

Comparator = Callable[[InventoryRecord, InventoryRecord], int]


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _compare_strings(left: str, right: str) -> int:
    primary = _sign(locale.strcoll(left.casefold(), right.casefold()))
    if primary:
        return primary
    return _sign(locale.strcoll(left, right))


def compare_values(left: Any, right: Any) -> int:
    """Ascending three-way comparison with None last."""
    if left is None and right is None:
        return 0
    if left is None:
        return 1
    if right is None:
        return -1
    if isinstance(left, Enum):
        left = left.value
    if isinstance(right, Enum):
        right = right.value
    if isinstance(left, bool) or isinstance(right, bool):
        return _sign(int(left) - int(right))
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        if left == right:  # also covers inf == inf
            return 0
        return -1 if left < right else 1
    if isinstance(left, datetime) and isinstance(right, datetime):
        return (left > right) - (left < right)
    return _compare_strings(str(left), str(right))


def compare_by(config: SortConfig) -> Comparator:
    """Return a comparator ordering records by `config.field` in `config.direction`."""
    accessor = SORT_ACCESSORS[config.field]
    descending = config.direction == SortDirection.DESC

    def comparator(a: InventoryRecord, b: InventoryRecord) -> int:
        result = compare_values(accessor(a), accessor(b))
        return -result if descending else result

    return comparator


def sort_records(records: Iterable[InventoryRecord], config: SortConfig) -> list[InventoryRecord]:
    """Stable sort of `records` under `config`."""
    return sorted(records, key=cmp_to_key(compare_by(config)))


def toggle_sort(current: SortConfig, field: str) -> SortConfig:
    """Same field flips direction; a new field starts ascending."""
    if current.field == field:
        return current.reversed()
    return SortConfig(field=field, direction=SortDirection.ASC)
