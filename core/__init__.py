"""Core configuration, logging and helpers."""
