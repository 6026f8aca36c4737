"""
Utility functions for common operations.

Provides helper functions for:
- File size formatting
- File extension normalization
- Progress percentage calculation
"""
from __future__ import annotations
from pathlib import PurePath
from typing import Union

from core.logger import get_logger

log = get_logger("core/utils")


def human_size(num_bytes: Union[int, float]) -> str:
    """
    Convert bytes to human-readable size format.

    Converts byte values into appropriate units (B, KB, MB, GB, TB)
    with one decimal place precision.

    Args:
        num_bytes: Number of bytes to convert

    Returns:
        str: Formatted size string (e.g., "1.5 MB")

    Examples:
        >>> human_size(1024)
        "1.0 KB"
        >>> human_size(1536000)
        "1.5 MB"
        >>> human_size(0)
        "0.0 B"
    """
    if not isinstance(num_bytes, (int, float)):
        log.warning(f"Invalid input type for human_size: {type(num_bytes)}")
        return "0.0 B"

    if num_bytes < 0:
        log.warning(f"Negative byte value: {num_bytes}")
        return "0.0 B"

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    size = float(num_bytes)
    idx = 0

    while size >= 1024 and idx < len(units) - 1:
        size /= 1024
        idx += 1

    return f"{size:.1f} {units[idx]}"


def file_extension(filename: str) -> str:
    """
    Return the lower-cased extension of a filename without the leading dot.

    Only the last suffix counts, so "report.tar.csv" is a csv file and
    a name without a dot has no extension.

    Examples:
        >>> file_extension("Statement.CSV")
        "csv"
        >>> file_extension("README")
        ""
    """
    return PurePath(filename).suffix.lower().lstrip(".")


def percent(done: int, total: int) -> int:
    """
    Integer percentage of done over total, clamped to 0..100.

    An empty total counts as complete.
    """
    if total <= 0:
        return 100
    value = round(done * 100 / total)
    return max(0, min(100, value))
