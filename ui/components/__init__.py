"""UI components module."""
from .upload_form import render_upload_form
from .template_selector import render_template_selector
from .file_list import describe, render_file_list
from .summary import render_summary

__all__ = [
    "describe",
    "render_upload_form",
    "render_template_selector",
    "render_file_list",
    "render_summary",
]
