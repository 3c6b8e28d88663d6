"""
Centralized constants for processed data schemas and shared configuration.
These constants are imported by the ingestion CLI, the review app and tools
so that schemas are consistent and not guessed in multiple places.
"""
from __future__ import annotations

from typing import List

# Parsed lab results table schema
# `value` is always stored as text; `value_num` holds the float for numeric results.
# min_range == max_range == 0 means no reference range was found.
LAB_RESULT_COLS: List[str] = [
    "test_name",
    "value",
    "value_num",
    "unit",
    "min_range",
    "max_range",
    "reference_range",
    "category",
    "date",
    "source",
    "source_type",
    "ingested_at",
]

LABS_TABLE_FILE: str = "labs.parquet"
LABS_CORPUS_FILE: str = "labs_corpus.parquet"

DEFAULT_DATA_DIR: str = "./data/raw"
DEFAULT_PROCESSED_DIR: str = "./data/processed"
