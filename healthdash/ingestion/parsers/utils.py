import re
from typing import List, Mapping, Optional, Sequence, Tuple

UNIT_TOKENS = [
    "%",
    # Mass/volume
    "mg/dL", "g/dL", "ng/dL", "g/L", "mg/L", "ng/mL", "pg/mL",
    # Enzyme and immuno units
    "U/L", "IU/L", "mIU/L", "µIU/mL", "uIU/mL",
    # Moles and electrolytes
    "mmol/L", "umol/L", "nmol/L", "mEq/L",
    # Cell sizes/counts
    "fl", "fL", "pg", "/uL", "10^3/uL", "10^6/uL", "μL", "10^3/μL", "cells/uL", "mili/cu.mm",
    # Rates
    "mm/hr",
]

units_lc = {u.lower() for u in UNIT_TOKENS}

# Generic table headers and page furniture, never a test name
SKIP_TERMS = [
    "Test Name", "Result", "Unit", "Bio. Ref", "Bio. Ref. Interval",
    "Method", "Page", "Report Status", "Sample Type",
]

num_re = re.compile(r"\d+(\.\d+)?", re.ASCII)
first_num_re = re.compile(r"\d+(?:\.\d+)?", re.ASCII)
range_re = re.compile(r"(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)", re.ASCII)
upper_bound_re = re.compile(r"<\s*(\d+)", re.ASCII)
loose_re = re.compile(r"[^a-z0-9]")


def is_number(tok: str) -> bool:
    # Plain decimals only: no sign, thousands separators or exponents
    return bool(num_re.fullmatch(tok))


def is_unit(tok: str) -> bool:
    return any(u in tok for u in UNIT_TOKENS) or tok.lower() in units_lc


def is_skip_term(tok: str) -> bool:
    return any(term in tok for term in SKIP_TERMS)


def normalize_loose(s: str) -> str:
    return loose_re.sub("", s.lower())


def find_unit_in(text: str) -> str:
    """Return the longest catalog unit contained in ``text``, or ""."""
    found = [u for u in UNIT_TOKENS if u in text]
    if not found:
        return ""
    return max(found, key=len)


def first_number(text: str) -> Optional[str]:
    m = first_num_re.search(text)
    return m.group(0) if m else None


def parse_range(text: str) -> Optional[Tuple[float, float]]:
    m = range_re.search(text)
    if m:
        return float(m.group(1)), float(m.group(2))
    return None


def parse_upper_bound(text: str) -> Optional[float]:
    m = upper_bound_re.search(text)
    if m:
        return float(m.group(1))
    return None


def sort_keys_longest_first(known_tests: Mapping[str, str]) -> List[str]:
    # sorted() is stable, so equal-length keys keep mapping order
    return sorted((k for k in known_tests.keys() if k.strip()), key=len, reverse=True)


def find_known_key(text: str, keys: Sequence[str]) -> Optional[str]:
    """First key (in ``keys`` order) appearing case-insensitively inside ``text``."""
    lower = text.lower()
    for k in keys:
        if k.lower() in lower:
            return k
    return None
