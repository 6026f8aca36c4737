"""Upload summary component."""
from __future__ import annotations
import streamlit as st

from models.intake import IntakeSummary


def render_summary(summary: IntakeSummary) -> None:
    """Show totals once at least one file has been parsed."""
    if not summary.success_count:
        return

    st.divider()
    col1, col2 = st.columns(2)
    col1.metric("Statements parsed", summary.success_count)
    col2.metric("Transactions imported", summary.total_results)
    if not summary.is_busy and not summary.has_files_to_upload and not summary.failed_count:
        st.success("✅ All statements processed.")
