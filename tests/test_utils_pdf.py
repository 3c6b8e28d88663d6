import pytest

from healthdash.ingestion.utils_pdf import (
    extract_pdf_lines,
    extract_pdf_pages,
    extract_report_date,
)

PAGE_1 = ["Collection Date: 03/15/2024", "Hemoglobin", "13.5", "g/dL", "12.0 - 15.0"]
PAGE_2 = ["Platelet Count", "250"]


def test_extract_pdf_lines_flattens_pages_in_order(make_pdf):
    fp = make_pdf([PAGE_1, PAGE_2])
    assert extract_pdf_lines(str(fp)) == PAGE_1 + PAGE_2


def test_extract_pdf_lines_from_bytes(make_pdf):
    fp = make_pdf([PAGE_1])
    assert extract_pdf_lines(fp.read_bytes()) == PAGE_1


def test_extract_pdf_pages(make_pdf):
    fp = make_pdf([PAGE_1, PAGE_2])
    pages = extract_pdf_pages(str(fp))
    assert [p["page"] for p in pages] == [1, 2]
    assert "Hemoglobin" in pages[0]["text"]
    assert "Platelet Count" in pages[1]["text"]


@pytest.mark.parametrize("lines,expected", [
    (["Collection Date: 03/15/2024"], "2024-03-15"),
    (["Report Date", "2024-01-09"], "2024-01-09"),
    (["Printed 01/02/2024", "Sample Collected 25/12/2023"], "2023-12-25"),
    (["Sample received Jan 5, 2024"], "2024-01-05"),
    (["Registered on", "12-Feb-2024 10:31"], "2024-02-12"),
    (["Collection Date: 02/31/2024", "Reported 03/01/2024"], "2024-03-01"),
    (["45-Jan-2024"], None),
    (["Printed 13/13/2024"], None),
    (["Sample received Feb 30, 2024 / Feb 28, 2024"], "2024-02-28"),
    (["Hemoglobin", "13.5"], None),
])
def test_extract_report_date(lines, expected):
    assert extract_report_date(lines) == expected


def main(argv=None):
    import sys
    import pytest as _pytest
    from pathlib import Path as _Path
    test_path = str(_Path(__file__).resolve())
    rc = _pytest.main([test_path] if argv is None else argv + [test_path])
    sys.exit(rc)


if __name__ == "__main__":
    main()
