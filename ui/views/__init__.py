"""UI views module."""
from .upload_page import render as render_upload_page

__all__ = ["render_upload_page"]
