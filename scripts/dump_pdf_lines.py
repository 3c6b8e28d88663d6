#!/usr/bin/env python3
import argparse
import logging
import os

from dotenv import load_dotenv

from healthdash.ingestion.lab_structure import load_lab_structure
from healthdash.ingestion.parsers import parse_lab_results
from healthdash.ingestion.utils_pdf import extract_pdf_lines, extract_report_date


def main():
    load_dotenv()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    parser = argparse.ArgumentParser(description="Print a lab PDF's text runs and what the parser makes of them")
    parser.add_argument("pdf")
    parser.add_argument("--structure", default=None)
    args = parser.parse_args()

    lines = extract_pdf_lines(args.pdf)
    print("=== Lines ===")
    for i, ln in enumerate(lines):
        print(f"{i:4d}  {ln}")

    print("\n=== Report date ===")
    print(extract_report_date(lines) or "not found")

    print("\n=== Parsed results ===")
    results = parse_lab_results(lines, load_lab_structure(args.structure))
    if not results:
        print("No results recognised.")
    for r in results:
        rng = f"{r.min_range} - {r.max_range}" if r.has_range else "no range"
        print(f"{r.test_name}: {r.value} {r.unit} [{rng}] ({r.category})")


if __name__ == "__main__":
    main()
