"""Three-step template selector component."""
from __future__ import annotations
from typing import Optional
import streamlit as st

from ingestion import SelectionCascade
from models.template import Template


def _step_label(number: int, title: str, complete: bool) -> str:
    return f"{'✅' if complete else number}. {title}"


def render_template_selector(selection: SelectionCascade) -> Optional[Template]:
    """
    Render institution, account type and format pickers.

    Each widget change is routed through the cascade so later steps are
    cleared and a single format is picked automatically.

    Returns:
        The active template, or None while the selection is incomplete
    """
    state = selection.state
    institutions = selection.available_institutions()
    if not institutions:
        st.warning("No bank templates are available.")
        return None

    codes = [i.code for i in institutions]
    names = {i.code: i.name for i in institutions}
    bank = st.selectbox(
        _step_label(1, "Select Bank", state.institution_code is not None),
        options=codes,
        index=codes.index(state.institution_code) if state.institution_code in codes else None,
        format_func=lambda code: names[code],
        placeholder="Choose your bank",
    )
    if bank is not None and bank != state.institution_code:
        selection.select_institution(bank)

    record_types = selection.available_record_types()
    if record_types:
        chosen_type = st.radio(
            _step_label(2, "Account Type", state.record_type is not None),
            options=record_types,
            index=record_types.index(state.record_type) if state.record_type in record_types else None,
            format_func=lambda rt: rt.label,
            horizontal=True,
        )
        if chosen_type is not None and chosen_type != state.record_type:
            selection.select_record_type(chosen_type)

    formats = selection.available_formats()
    if formats:
        chosen_format = st.radio(
            _step_label(3, "File Format", state.file_format is not None),
            options=formats,
            index=formats.index(state.file_format) if state.file_format in formats else None,
            format_func=lambda ff: ff.label,
            horizontal=True,
        )
        if chosen_format is not None and chosen_format != state.file_format:
            selection.select_format(chosen_format)

    template = selection.active_template()
    if template is not None:
        st.caption(f"Template: **{template.institution_name}** — {template.label}")
    return template
