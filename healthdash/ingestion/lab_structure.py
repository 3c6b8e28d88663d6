import os
import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_LAB_STRUCTURE = Path(__file__).with_name("lab_structure.json")


@lru_cache(maxsize=8)
def _load(path: str) -> Mapping[str, str]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Lab structure at {path} must be a JSON object of test name -> category")
    for name, category in data.items():
        if not name.strip() or not isinstance(category, str):
            raise ValueError(f"Invalid lab structure entry in {path}: {name!r} -> {category!r}")
    logger.info(f"Loaded {len(data)} known tests from {path}")
    return MappingProxyType(dict(data))


def load_lab_structure(path: Optional[str] = None) -> Mapping[str, str]:
    """
    Return the read-only test name -> category dictionary.

    Args:
        path: JSON file to load. Defaults to $LAB_STRUCTURE_PATH, then the packaged lab_structure.json.
    """
    path = path or os.getenv("LAB_STRUCTURE_PATH") or str(DEFAULT_LAB_STRUCTURE)
    return _load(str(path))
