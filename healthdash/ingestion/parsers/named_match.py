import re
import logging
from typing import List, Mapping, Optional, Sequence, Union

from .models import ParsedLabResult
from .utils import (
    find_known_key,
    find_unit_in,
    first_number,
    is_number,
    is_unit,
    parse_range,
)

logger = logging.getLogger(__name__)

# A next-line text value ("Negative", "Yellow") must be shorter than this
MAX_TEXT_VALUE_LEN = 20


def _strip_key(line: str, key: str) -> str:
    return re.sub(re.escape(key), "", line, count=1, flags=re.IGNORECASE).strip()


def _same_line_value(remainder: str):
    num = first_number(remainder)
    if num is None:
        return None, ""
    rest = remainder.replace(num, "", 1).strip()
    return float(num), find_unit_in(rest)


def match_named(
    lines: List[str],
    index: int,
    key: str,
    known_tests: Mapping[str, str],
    keys: Sequence[str],
) -> Optional[ParsedLabResult]:
    """Build a result for ``lines[index]``, which contains the known test name ``key``.

    Values may sit on the same line ("Hemoglobin 13.5 g/dL") or on the lines
    that follow (value, then unit, then range). Lookahead never moves the
    caller's cursor. Returns None when no value could be found.
    """
    remainder = _strip_key(lines[index], key)

    value: Union[float, str] = ""
    unit = ""
    min_range = 0.0
    max_range = 0.0
    reference_range: Optional[str] = None

    j = index + 1

    if remainder:
        val, same_unit = _same_line_value(remainder)
        if val is not None:
            value = val
            unit = same_unit

    if value == "" and j < len(lines):
        nxt = lines[j]
        if is_number(nxt):
            value = float(nxt)
            j += 1
        elif len(nxt) < MAX_TEXT_VALUE_LEN and find_known_key(nxt, keys) is None:
            value = nxt
            j += 1

    if not unit and j < len(lines) and is_unit(lines[j]):
        unit = lines[j]
        j += 1

    if j < len(lines):
        rng = parse_range(lines[j])
        if rng:
            min_range, max_range = rng
            reference_range = lines[j]

    if value == "":
        logger.debug(f"No value found for '{key}' at line {index}")
        return None

    return ParsedLabResult(
        test_name=key,
        value=value,
        unit=unit,
        min_range=min_range,
        max_range=max_range,
        reference_range=reference_range,
        category=known_tests[key],
    )
