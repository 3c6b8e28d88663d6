import argparse
import os
import glob
from typing import List, Dict, Mapping, Optional, Sequence
import pandas as pd
from datetime import datetime, UTC
import logging

from dotenv import load_dotenv
load_dotenv()

from healthdash.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_PROCESSED_DIR,
    LAB_RESULT_COLS,
    LABS_CORPUS_FILE,
    LABS_TABLE_FILE,
)
from healthdash.ingestion.lab_structure import load_lab_structure
from healthdash.ingestion.parsers import ParsedLabResult, parse_lab_results
from healthdash.ingestion.utils_pdf import extract_pdf_lines, extract_pdf_pages, extract_report_date

logger = logging.getLogger(__name__)


def ensure_dirs(base_out: str):
    os.makedirs(os.path.join(base_out, "tables"), exist_ok=True)
    os.makedirs(os.path.join(base_out, "corpus"), exist_ok=True)


def _now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


def results_to_frame(
    results: Sequence[ParsedLabResult],
    source: str,
    date: Optional[str] = None,
    ingested_at: Optional[str] = None,
) -> pd.DataFrame:
    """Convert parsed results of one report into rows of the labs table schema."""
    ingested_at = ingested_at or _now()
    rows: List[Dict] = []
    for r in results:
        row = r.to_row()
        row["value"] = str(r.value) if r.is_numeric else r.value
        row["value_num"] = r.value if r.is_numeric else None
        row["date"] = date
        row["source"] = source
        row["source_type"] = "labs"
        row["ingested_at"] = ingested_at
        rows.append(row)
    df = pd.DataFrame(rows)
    # Ensure columns exist
    for col in LAB_RESULT_COLS:
        if col not in df.columns:
            df[col] = None
    df["value_num"] = pd.to_numeric(df["value_num"], errors="coerce")
    return df[LAB_RESULT_COLS]


def save_results(df: pd.DataFrame, out: str) -> str:
    """Append rows to tables/labs.parquet, replacing earlier rows from the same source."""
    ensure_dirs(out)
    table_path = os.path.join(out, "tables", LABS_TABLE_FILE)
    if os.path.exists(table_path):
        existing = pd.read_parquet(table_path)
        sources = set(df["source"].dropna().unique())
        existing = existing[~existing["source"].isin(sources)]
        df = pd.concat([existing, df], ignore_index=True) if not existing.empty else df
    df.to_parquet(table_path, index=False)
    logger.info(f"Wrote labs table: {len(df)} rows to {table_path}")
    return table_path


def ingest_file(fp: str, known_tests: Optional[Mapping[str, str]] = None) -> pd.DataFrame:
    if known_tests is None:
        known_tests = load_lab_structure()
    lines = extract_pdf_lines(fp)
    results = parse_lab_results(lines, known_tests)
    if not results:
        logger.warning(f"No lab results recognised in {fp}; review its raw text with scripts/dump_pdf_lines.py")
    return results_to_frame(results, source=os.path.relpath(fp), date=extract_report_date(lines))


def main(src: str, out: str, structure: Optional[str] = None):
    ensure_dirs(out)
    known_tests = load_lab_structure(structure)
    corpus_rows: List[Dict] = []
    frames: List[pd.DataFrame] = []
    for fp in sorted(glob.glob(os.path.join(src, "*.pdf"))):
        # Always extract corpus text
        try:
            pages = extract_pdf_pages(fp)
        except Exception as e:
            logger.error(f"Failed to read {fp}: {e}")
            continue
        for p in pages:
            corpus_rows.append({
                "text": p.get("text", ""),
                "source": os.path.relpath(fp),
                "page": p.get("page"),
                "source_type": "labs",
                "ingested_at": _now(),
            })

        try:
            df = ingest_file(fp, known_tests)
        except Exception as e:
            logger.error(f"Failed to parse lab results for {fp}: {e}")
            continue
        if not df.empty:
            frames.append(df)

    # Write corpus
    if corpus_rows:
        cdf = pd.DataFrame(corpus_rows)
        cdf.to_parquet(os.path.join(out, "corpus", LABS_CORPUS_FILE))
        logger.info(f"Wrote corpus: {len(cdf)} rows")
    else:
        logger.warning("No lab PDFs found or text extracted.")

    # Write structured table
    if frames:
        save_results(pd.concat(frames, ignore_index=True), out)
    else:
        logger.warning("No lab results parsed from any PDF.")


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    parser = argparse.ArgumentParser()
    default_src = os.path.join(os.getenv("DATA_DIR", DEFAULT_DATA_DIR), "labs")
    parser.add_argument("--src", default=default_src)
    parser.add_argument("--out", default=os.getenv("PROCESSED_DIR", DEFAULT_PROCESSED_DIR))
    parser.add_argument("--structure", default=None, help="Known test dictionary (JSON); defaults to $LAB_STRUCTURE_PATH or the packaged one")
    args = parser.parse_args()
    main(args.src, args.out, args.structure)
