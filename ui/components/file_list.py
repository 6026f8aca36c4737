"""Queued file list component."""
from __future__ import annotations
from typing import Any, Callable, Dict
import streamlit as st

from ingestion import IntakeQueue
from models.intake import FileStatus, IngestedFile

STATUS_ICONS = {
    FileStatus.IDLE: "📄",
    FileStatus.UPLOADING: "⏫",
    FileStatus.PROCESSING: "⏳",
    FileStatus.SUCCESS: "✅",
    FileStatus.ERROR: "❌",
}


def describe(entry: IngestedFile) -> str:
    """One-line status text for a queued file."""
    icon = STATUS_ICONS[entry.status]
    text = f"{icon} **{entry.name}** — {entry.source.size_human}"
    if entry.status == FileStatus.UPLOADING:
        text += f" · uploading {entry.progress}%"
    elif entry.status == FileStatus.PROCESSING:
        text += " · parsing…"
    elif entry.status == FileStatus.SUCCESS:
        text += f" · {entry.result_count or 0} transactions"
    elif entry.status == FileStatus.ERROR:
        text += f" · {entry.error}"
    if entry.format_mismatch:
        text += " · ⚠️ does not match the selected format"
    return text


def render_file_list(
    queue: IntakeQueue,
    on_upload: Callable[[int], None],
    on_remove: Callable[[int], None],
    on_retry: Callable[[int], None],
) -> Dict[str, Any]:
    """
    Display queued files with per-file actions.

    Returns:
        Status placeholders keyed by entry id, for live updates while
        an upload runs
    """
    placeholders = {}
    if not len(queue):
        return placeholders

    st.subheader("📂 Files")
    for index, entry in enumerate(queue):
        col_text, col_action, col_remove = st.columns([6, 1, 1])
        placeholders[entry.id] = col_text.empty()
        placeholders[entry.id].markdown(describe(entry))

        if entry.status == FileStatus.IDLE:
            col_action.button("Upload", key=f"upload-{entry.id}", on_click=on_upload, args=(index,))
        elif entry.status == FileStatus.ERROR:
            col_action.button("Retry", key=f"retry-{entry.id}", on_click=on_retry, args=(index,))

        if entry.is_removable:
            col_remove.button("✕", key=f"remove-{entry.id}", on_click=on_remove, args=(index,))
    return placeholders
