"""Session state management service."""
from __future__ import annotations
import asyncio
from typing import Optional
import streamlit as st

from core.logger import get_logger
from ingestion import CatalogError, IntakeSession

log = get_logger("ui/services/session_manager")


class SessionManager:
    """Keeps one IntakeSession per browser session."""

    @staticmethod
    def init_session() -> None:
        """Initialize session-specific state."""
        if "catalog_error" not in st.session_state:
            st.session_state["catalog_error"] = None

        if "intake_session" not in st.session_state:
            try:
                st.session_state["intake_session"] = asyncio.run(IntakeSession.open())
                st.session_state["catalog_error"] = None
                log.info("Intake session created")
            except CatalogError as e:
                log.error(f"Could not load bank templates: {e}")
                st.session_state["intake_session"] = None
                st.session_state["catalog_error"] = e.message

        if "flash_messages" not in st.session_state:
            st.session_state["flash_messages"] = []

    @staticmethod
    def get_intake_session() -> Optional[IntakeSession]:
        """Get the current intake session, or None if templates failed to load."""
        SessionManager.init_session()
        return st.session_state.get("intake_session")

    @staticmethod
    def get_catalog_error() -> Optional[str]:
        SessionManager.init_session()
        return st.session_state.get("catalog_error")

    @staticmethod
    def reload_catalog() -> None:
        """Drop the session so templates are fetched again on the next run."""
        st.session_state.pop("intake_session", None)
        st.session_state.pop("catalog_error", None)
        log.debug("Intake session cleared for reload")

    @staticmethod
    def flash(level: str, message: str) -> None:
        """Queue a message to show after the next rerun."""
        SessionManager.init_session()
        st.session_state["flash_messages"].append((level, message))

    @staticmethod
    def pop_flash_messages() -> list[tuple[str, str]]:
        SessionManager.init_session()
        messages = st.session_state["flash_messages"]
        st.session_state["flash_messages"] = []
        return messages
