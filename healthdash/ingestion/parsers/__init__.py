# Lab report text parser
# Turns the flattened text runs of a lab PDF into ParsedLabResult records:
# - parse_lab_results(lines, known_tests) -> List[ParsedLabResult]
import logging
from typing import List, Mapping, Sequence

from .models import DEFAULT_CATEGORY, ParsedLabResult
from .named_match import match_named
from .numeric_fallback import match_numeric
from .utils import find_known_key, sort_keys_longest_first

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_CATEGORY", "ParsedLabResult", "parse_lab_results"]


def _check_lines(lines: Sequence[str]) -> List[str]:
    if isinstance(lines, (str, bytes)) or not isinstance(lines, Sequence):
        raise TypeError(f"lines must be a sequence of str, got {type(lines).__name__}")
    for i, ln in enumerate(lines):
        if not isinstance(ln, str):
            raise TypeError(f"line {i} is {type(ln).__name__}, expected str")
    return list(lines)


def parse_lab_results(
    lines: Sequence[str],
    known_tests: Mapping[str, str],
) -> List[ParsedLabResult]:
    """Parse lab results out of a PDF's ordered text runs.

    Each line is tried against the known test names first (longest name
    wins). Lines with no known name fall back to the bare-number heuristic.
    At most one result is kept per test name; the first one wins.

    Args:
        lines: Trimmed, non-empty text runs in reading order.
        known_tests: Test name -> category, e.g. from load_lab_structure(). Read only.
    """
    lines = _check_lines(lines)
    if not isinstance(known_tests, Mapping):
        raise TypeError(f"known_tests must be a mapping of test name -> category, got {type(known_tests).__name__}")
    keys = sort_keys_longest_first(known_tests)

    results: List[ParsedLabResult] = []
    seen = set()
    for i, line in enumerate(lines):
        key = find_known_key(line, keys)
        if key is not None:
            res = match_named(lines, i, key, known_tests, keys)
        else:
            res = match_numeric(lines, i, known_tests, keys)
        if res is None or res.test_name in seen:
            continue
        logger.debug(f"Line {i}: {res.test_name} = {res.value} {res.unit}".rstrip())
        seen.add(res.test_name)
        results.append(res)

    logger.info(f"Parsed {len(results)} lab results from {len(lines)} lines")
    return results
