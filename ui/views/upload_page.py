"""Upload page - template selection, file queue, and upload progress."""
from __future__ import annotations
import asyncio
from typing import Any, Dict
import streamlit as st

from core.logger import get_logger
from ingestion import IntakeSession, QueueEvent
from ui.components import (
    describe,
    render_file_list,
    render_summary,
    render_template_selector,
    render_upload_form,
)
from ui.services import SessionManager

log = get_logger("ui/views/upload_page")

UPLOAD_ALL = -1


def render() -> None:
    """Render the upload page."""
    st.header("📥 Upload Statement")
    st.caption("Select your bank, account type, and file format to upload")

    session = SessionManager.get_intake_session()
    if session is None:
        st.error(f"❌ {SessionManager.get_catalog_error() or 'Bank templates are unavailable.'}")
        if st.button("Try again"):
            SessionManager.reload_catalog()
            st.rerun()
        return

    for level, message in SessionManager.pop_flash_messages():
        getattr(st, level)(message)

    template = render_template_selector(session.selection)

    files = render_upload_form(template)
    if files is not None:
        _handle_add_files(session, files)

    placeholders = render_file_list(
        session.queue,
        on_upload=_request_upload,
        on_remove=session.remove_file,
        on_retry=session.retry,
    )

    summary = session.summary()
    if summary.has_files_to_upload and template is not None:
        st.button("Upload all", type="primary", disabled=summary.is_busy, on_click=_request_upload, args=(UPLOAD_ALL,))

    pending = st.session_state.pop("pending_upload", None)
    if pending is not None:
        _run_upload(session, pending, placeholders)
        st.rerun()

    render_summary(summary)


def _request_upload(index: int) -> None:
    st.session_state["pending_upload"] = index


def _handle_add_files(session: IntakeSession, files) -> None:
    if not files:
        st.warning("Please upload at least one file.")
        return

    result = session.add_files(files)
    if result.added:
        SessionManager.flash("success", f"✅ {len(result.added)} file(s) added to the queue.")
    if result.rejected:
        SessionManager.flash("warning", f"Skipped (wrong format): {', '.join(result.rejected)}")
    if result.error and not result.added:
        SessionManager.flash("error", result.error.message)
    st.rerun()


def _run_upload(session: IntakeSession, index: int, placeholders: Dict[str, Any]) -> None:
    """Run an upload to completion, refreshing the file rows as it progresses."""

    def refresh(event: QueueEvent) -> None:
        if event.file_id is None or event.file_id not in placeholders:
            return
        entry = next((e for e in session.queue if e.id == event.file_id), None)
        if entry is not None:
            placeholders[event.file_id].markdown(describe(entry))

    unsubscribe = session.queue.subscribe(refresh)
    try:
        with st.spinner("Uploading and parsing…"):
            if index == UPLOAD_ALL:
                asyncio.run(session.upload_all())
            else:
                asyncio.run(session.upload_one(index))
    finally:
        unsubscribe()

    summary = session.summary()
    log.info(f"Upload run finished: success={summary.success_count} failed={summary.failed_count}")
    if summary.failed_count:
        SessionManager.flash("error", f"{summary.failed_count} file(s) failed. Use Retry to upload again.")
