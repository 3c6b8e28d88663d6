import json
import sys
from pathlib import Path
import pytest

# Ensure project root is on sys.path so `import healthdash...` works when running pytest from repo root
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv
load_dotenv()

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def known_tests():
    with open(FIXTURES_DIR / "lab_reports.json", "r") as f:
        return json.load(f)["known_tests"]


@pytest.fixture
def make_pdf(tmp_path):
    """Write a PDF with one text run per entry; each inner list is a page."""
    import fitz  # PyMuPDF

    def _make(pages, name="report.pdf", directory=None):
        path = (directory or tmp_path) / name
        doc = fitz.open()
        for runs in pages:
            page = doc.new_page()
            y = 72
            for run in runs:
                page.insert_text((72, y), run)
                y += 20
        doc.save(str(path))
        doc.close()
        return path

    return _make
