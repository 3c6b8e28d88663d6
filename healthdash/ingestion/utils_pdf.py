import re
from datetime import date
from typing import List, Dict, Optional, Union

import fitz  # PyMuPDF

PdfSource = Union[str, bytes]

DATE_PATTERNS = [
    re.compile(r"\b(\d{1,2})/(\d{1,2})/(20\d{2})\b"),  # MM/DD/YYYY or DD/MM/YYYY
    re.compile(r"\b(20\d{2})-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])\b"),  # YYYY-MM-DD
    re.compile(r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\s+(\d{1,2}),\s*(20\d{2})\b", re.IGNORECASE),
    re.compile(r"\b(\d{1,2})[-\s](Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*[-\s](20\d{2})\b", re.IGNORECASE),
]

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}

DATE_LABELS = [
    "Collection Date", "Collected", "Date Collected", "Sample Collected",
    "Report Date", "Reported", "Registered", "Received Date",
]


def _open(pdf: PdfSource) -> fitz.Document:
    if isinstance(pdf, (bytes, bytearray)):
        return fitz.open(stream=bytes(pdf), filetype="pdf")
    return fitz.open(pdf)


def extract_pdf_pages(pdf: PdfSource) -> List[Dict]:
    """Extract text by page with basic metadata."""
    out = []
    with _open(pdf) as doc:
        for i, page in enumerate(doc, start=1):
            text = page.get_text("text") or ""
            out.append({"page": i, "text": text})
    return out


def page_text_runs(page: fitz.Page) -> List[str]:
    runs = []
    d = page.get_text("dict")
    for b in d.get("blocks", []):
        for l in b.get("lines", []):
            for s in l.get("spans", []):
                txt = s.get("text", "").strip()
                if txt:
                    runs.append(txt)
    return runs


def extract_pdf_lines(pdf: PdfSource) -> List[str]:
    """Return every text run of the document, page by page, as one flat list."""
    lines: List[str] = []
    with _open(pdf) as doc:
        for page in doc:
            lines.extend(page_text_runs(page))
    return lines


def to_iso(y: int, m: int, d: int) -> Optional[str]:
    try:
        return date(y, m, d).isoformat()
    except ValueError:
        return None


def _date_from_match(pat: re.Pattern, m: re.Match) -> Optional[str]:
    if pat is DATE_PATTERNS[0]:
        a, b, yyyy = int(m.group(1)), int(m.group(2)), int(m.group(3))
        # Day-first when the first field cannot be a month
        mm, dd = (b, a) if a > 12 else (a, b)
        return to_iso(yyyy, mm, dd)
    if pat is DATE_PATTERNS[1]:
        return to_iso(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    if pat is DATE_PATTERNS[2]:
        mon = MONTHS[m.group(1).lower()]
        return to_iso(int(m.group(3)), mon, int(m.group(2)))
    mon = MONTHS[m.group(2).lower()]
    return to_iso(int(m.group(3)), mon, int(m.group(1)))


def _first_date(text: str) -> Optional[str]:
    for pat in DATE_PATTERNS:
        for m in pat.finditer(text):
            iso = _date_from_match(pat, m)
            if iso:
                return iso
    return None


def extract_report_date(lines: List[str]) -> Optional[str]:
    """ISO date of the report: labelled collection/report dates first, else the first date seen."""
    for i, ln in enumerate(lines):
        if any(lbl.lower() in ln.lower() for lbl in DATE_LABELS):
            # The date may sit in the label's run or in the run right after it
            iso = _first_date(ln) or (_first_date(lines[i + 1]) if i + 1 < len(lines) else None)
            if iso:
                return iso
    for ln in lines:
        iso = _first_date(ln)
        if iso:
            return iso
    return None
