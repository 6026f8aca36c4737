"""Data models for templates and queued files."""
