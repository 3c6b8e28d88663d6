from typing import List, Mapping, Optional, Sequence

from .models import DEFAULT_CATEGORY, ParsedLabResult
from .utils import (
    is_number,
    is_skip_term,
    is_unit,
    normalize_loose,
    parse_range,
    parse_upper_bound,
)


def backtrack_name_index(lines: List[str], index: int) -> int:
    """Index of the nearest plausible name line before ``index``, or -1."""
    k = index - 1
    while k >= 0 and (len(lines[k]) < 2 or is_skip_term(lines[k])):
        k -= 1
    return k


def _is_known_name(name: str, keys: Sequence[str]) -> bool:
    n = name.strip().lower()
    for k in keys:
        kl = k.strip().lower()
        # A short candidate ("Glucose") may name a longer key ("Glucose Fasting")
        if kl == n or kl in n or n in kl:
            return True
    return False


def resolve_category(test_name: str, known_tests: Mapping[str, str], keys: Sequence[str]) -> str:
    clean = normalize_loose(test_name)
    for k in keys:
        if normalize_loose(k) == clean:
            return known_tests[k]
    for k in keys:
        nk = normalize_loose(k)
        if nk and nk in clean:
            return known_tests[k]
    return DEFAULT_CATEGORY


def match_numeric(
    lines: List[str],
    index: int,
    known_tests: Mapping[str, str],
    keys: Sequence[str],
) -> Optional[ParsedLabResult]:
    """Anchor on a bare number at ``lines[index]`` and infer its test name.

    The name is the closest earlier line that is not page furniture. The
    candidate is kept only if a unit follows the number or the name is a
    known test.
    """
    current = lines[index]
    if not is_number(current):
        return None

    name_index = backtrack_name_index(lines, index)

    valid = False
    unit = ""
    test_name = ""

    unit_index = index + 1
    if unit_index < len(lines) and is_unit(lines[unit_index]):
        valid = True
        unit = lines[unit_index]

    if name_index >= 0:
        candidate = lines[name_index]
        if _is_known_name(candidate, keys):
            valid = True
            test_name = candidate
        elif valid:
            test_name = candidate

    if not (valid and test_name):
        return None
    if is_number(test_name):
        return None

    min_range = 0.0
    max_range = 0.0
    range_index = unit_index + 1 if unit else index + 1
    if range_index < len(lines):
        range_line = lines[range_index]
        rng = parse_range(range_line)
        if rng:
            min_range, max_range = rng
        else:
            upper = parse_upper_bound(range_line)
            if upper is not None:
                max_range = upper

    return ParsedLabResult(
        test_name=test_name,
        value=float(current),
        unit=unit,
        min_range=min_range,
        max_range=max_range,
        category=resolve_category(test_name, known_tests, keys),
    )
