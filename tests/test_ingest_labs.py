import math

import pandas as pd

from healthdash.constants import LAB_RESULT_COLS
from healthdash.ingestion import ingest_labs as IL
from healthdash.ingestion.parsers import ParsedLabResult

RESULTS = [
    ParsedLabResult("Hemoglobin", 13.5, "g/dL", 12.0, 15.0, "12.0 - 15.0", "Hematology"),
    ParsedLabResult("Urine Colour", "Pale Yellow", category="Urine Analysis"),
]


def test_results_to_frame_schema_and_values():
    df = IL.results_to_frame(RESULTS, source="a.pdf", date="2024-03-15", ingested_at="2024-03-16T00:00:00Z")
    assert list(df.columns) == LAB_RESULT_COLS
    hb, urine = df.iloc[0], df.iloc[1]
    assert hb["value"] == "13.5"
    assert hb["value_num"] == 13.5
    assert hb["reference_range"] == "12.0 - 15.0"
    assert urine["value"] == "Pale Yellow"
    assert math.isnan(urine["value_num"])
    assert urine["min_range"] == 0 and urine["max_range"] == 0
    assert set(df["source"]) == {"a.pdf"}
    assert set(df["source_type"]) == {"labs"}
    assert set(df["date"]) == {"2024-03-15"}


def test_results_to_frame_empty():
    df = IL.results_to_frame([], source="empty.pdf")
    assert df.empty
    assert list(df.columns) == LAB_RESULT_COLS


def test_save_results_replaces_rows_from_same_source(tmp_path):
    out = str(tmp_path / "processed")
    IL.save_results(IL.results_to_frame(RESULTS, source="a.pdf", date="2024-03-15"), out)
    IL.save_results(IL.results_to_frame(RESULTS[:1], source="b.pdf", date="2024-04-01"), out)
    path = IL.save_results(IL.results_to_frame(RESULTS[:1], source="a.pdf", date="2024-03-15"), out)

    df = pd.read_parquet(path)
    assert len(df) == 2
    assert sorted(df["source"]) == ["a.pdf", "b.pdf"]


def test_main_writes_table_and_corpus(tmp_path, make_pdf):
    src = tmp_path / "labs"
    src.mkdir()
    make_pdf([["Collection Date: 03/15/2024", "Hemoglobin", "13.5", "g/dL", "12.0 - 15.0"]], name="cbc.pdf", directory=src)
    make_pdf([["Invoice", "Total", "Thank you"]], name="invoice.pdf", directory=src)
    out = tmp_path / "processed"

    IL.main(str(src), str(out))

    labs = pd.read_parquet(out / "tables" / "labs.parquet")
    assert list(labs["test_name"]) == ["Hemoglobin"]
    row = labs.iloc[0]
    assert row["value_num"] == 13.5
    assert row["unit"] == "g/dL"
    assert row["category"] == "Hematology"
    assert row["date"] == "2024-03-15"
    assert row["source"].endswith("cbc.pdf")

    corpus = pd.read_parquet(out / "corpus" / "labs_corpus.parquet")
    assert len(corpus) == 2
    assert set(corpus["source_type"]) == {"labs"}


def test_main_skips_unreadable_pdf(tmp_path, make_pdf):
    src = tmp_path / "labs"
    src.mkdir()
    (src / "broken.pdf").write_bytes(b"not a pdf")
    make_pdf([["Hemoglobin 14.0 g/dL"]], name="ok.pdf", directory=src)
    out = tmp_path / "processed"

    IL.main(str(src), str(out))

    labs = pd.read_parquet(out / "tables" / "labs.parquet")
    assert list(labs["test_name"]) == ["Hemoglobin"]


def main(argv=None):
    import sys
    import pytest as _pytest
    from pathlib import Path as _Path
    test_path = str(_Path(__file__).resolve())
    rc = _pytest.main([test_path] if argv is None else argv + [test_path])
    sys.exit(rc)


if __name__ == "__main__":
    main()
