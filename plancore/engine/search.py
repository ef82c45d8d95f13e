"""
Binary search helpers for sorted task and budget lists.

Records may be plain values, mappings or objects; ``key`` names the mapping
key or attribute the list is sorted by. String comparisons are
case-insensitive, so lists should be sorted by the lower-cased key.
"""

from bisect import bisect_left
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, Sequence


def _key_func(key: Optional[str]) -> Callable[[Any], Any]:
    def extract(record: Any) -> Any:
        if key is None:
            value = record
        elif isinstance(record, Mapping):
            value = record[key]
        else:
            value = getattr(record, key)
        return value.lower() if isinstance(value, str) else value

    return extract


def _normalise(target: Any) -> Any:
    return target.lower() if isinstance(target, str) else target


def binary_search(sorted_records: Sequence[Any], target: Any, key: Optional[str] = None) -> int:
    """Index of a record equal to target, or -1."""
    if not sorted_records or target is None or target == "":
        return -1
    extract = _key_func(key)
    wanted = _normalise(target)
    index = bisect_left(sorted_records, wanted, key=extract)
    if index < len(sorted_records) and extract(sorted_records[index]) == wanted:
        return index
    return -1


def fuzzy_binary_search(sorted_records: Sequence[Any], target: str, key: Optional[str] = None) -> List[int]:
    """
    Indices of the records containing target as a substring.

    Bisects until it hits a containing record, then widens to the contiguous
    run of containing records around it. Matches elsewhere in the list are
    not found.
    """
    if not sorted_records or not target:
        return []
    extract = _key_func(key)
    wanted = target.lower()

    left, right = 0, len(sorted_records) - 1
    hit = None
    while left <= right:
        mid = (left + right) // 2
        value = str(extract(sorted_records[mid]))
        if wanted in value:
            hit = mid
            break
        if value < wanted:
            left = mid + 1
        else:
            right = mid - 1
    if hit is None:
        return []

    low = hit
    while low > 0 and wanted in str(extract(sorted_records[low - 1])):
        low -= 1
    high = hit
    while high < len(sorted_records) - 1 and wanted in str(extract(sorted_records[high + 1])):
        high += 1
    return list(range(low, high + 1))


def closest_matches(sorted_records: Sequence[Any], target: Any, key: Optional[str] = None, max_results: int = 5) -> List[int]:
    """
    Up to max_results sorted indices nearest to target.

    Centred on the exact match when there is one, otherwise on the insertion
    point.
    """
    if not sorted_records or max_results <= 0:
        return []
    if len(sorted_records) <= max_results:
        return list(range(len(sorted_records)))

    exact = binary_search(sorted_records, target, key)
    if exact != -1:
        results = [exact]
        left, right = exact - 1, exact + 1
        while len(results) < max_results:
            if left >= 0:
                results.append(left)
                left -= 1
            if len(results) < max_results and right < len(sorted_records):
                results.append(right)
                right += 1
        return sorted(results)

    insert_at = bisect_left(sorted_records, _normalise(target), key=_key_func(key))
    start = max(0, insert_at - max_results // 2)
    end = min(len(sorted_records), start + max_results)
    return list(range(start, end))
