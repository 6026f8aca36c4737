"""Upload form component."""
from __future__ import annotations
from typing import List, Optional
import streamlit as st

from models.intake import SourceFile
from models.template import Template


def render_upload_form(template: Optional[Template]) -> Optional[List[SourceFile]]:
    """
    Render the file picker for the active template.

    Returns:
        Files to queue when the form was submitted, else None
    """
    if template is None:
        st.info("Complete the selection above to upload statements.")
        return None

    file_format = template.file_format.value
    with st.form("upload_form", clear_on_submit=True):
        files = st.file_uploader(
            f"Upload {file_format.upper()} statements",
            accept_multiple_files=True,
            help=f"Only .{file_format} files are accepted for {template.label}.",
        )
        submitted = st.form_submit_button("Add to queue ➜")

    if not submitted:
        return None

    return [
        SourceFile(name=f.name, content=f.getvalue(), content_type=f.type or "application/octet-stream")
        for f in files or []
    ]
