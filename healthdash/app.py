import os
import streamlit as st
import pandas as pd
from dotenv import load_dotenv

load_dotenv()

from healthdash.constants import DEFAULT_PROCESSED_DIR, LAB_RESULT_COLS
from healthdash.ingestion.ingest_labs import results_to_frame, save_results
from healthdash.ingestion.lab_structure import load_lab_structure
from healthdash.ingestion.parsers import parse_lab_results
from healthdash.ingestion.utils_pdf import extract_pdf_lines, extract_report_date
from healthdash.tools.labs_tool import group_by_category, result_status

st.set_page_config(page_title="Lab Results", page_icon="🩺", layout="wide")

st.sidebar.title("Settings")
processed_dir = os.getenv("PROCESSED_DIR", DEFAULT_PROCESSED_DIR)
st.sidebar.markdown(f"**Labs table:** {processed_dir}")
st.sidebar.markdown("This tool is not medical advice. Consult a clinician.")

st.title("🩺 Lab Results Import")
st.caption("Upload a lab report PDF, review the recognised tests, then save them to your labs table.")

uploaded = st.file_uploader("Lab report (PDF)", type=["pdf"])
if uploaded is not None:
    lines = extract_pdf_lines(uploaded.getvalue())
    results = parse_lab_results(lines, load_lab_structure())
    report_date = extract_report_date(lines)

    if not results:
        st.warning("No automatic results found. Check the raw text below to verify the PDF was read correctly.")
        st.text_area("Raw text", "\n".join(lines), height=400)
    else:
        st.subheader(f"{len(results)} results" + (f" ({report_date})" if report_date else ""))
        df = results_to_frame(results, source=uploaded.name, date=report_date)
        edited = st.data_editor(
            df[["test_name", "value", "unit", "min_range", "max_range", "category"]],
            num_rows="dynamic",
            use_container_width=True,
        )

        with st.expander("By category"):
            for category, items in group_by_category(results).items():
                st.markdown(f"**{category}**")
                for r in items:
                    status = result_status(r.value, r.min_range, r.max_range)
                    rng = r.reference_range or (f"{r.min_range} - {r.max_range}" if r.has_range else "")
                    st.markdown(f"- {r.test_name}: {r.value} {r.unit} {rng} {('· ' + status) if status else ''}")

        with st.expander("Raw text"):
            st.text("\n".join(lines))

        if st.button("Save"):
            merged = edited.dropna(subset=["test_name"]).copy()
            merged["value"] = merged["value"].astype(str)
            merged["value_num"] = pd.to_numeric(merged["value"], errors="coerce")
            merged["reference_range"] = df["reference_range"].reindex(merged.index)
            merged["date"] = report_date
            merged["source"] = uploaded.name
            merged["source_type"] = "labs"
            merged["ingested_at"] = df["ingested_at"].iloc[0]
            path = save_results(merged[LAB_RESULT_COLS].reset_index(drop=True), processed_dir)
            st.success(f"Saved {len(merged)} results to {path}")
