# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Utility functions for WSH.
"""

import os
from typing import Any


def format_table(
    headers: list[str],
    rows: list[list[Any]],
    title: str = ""
) -> str:
    """
    Format data as a simple text table without external dependencies.

    Args:
        headers: List of column header names
        rows: List of rows, where each row is a list of values
        title: Optional title to display above the table

    Returns:
        Formatted table as a string
    """
    if not rows:
        return ""

    str_headers = [str(h) for h in headers]
    str_rows = [[str(val) for val in row] for row in rows]

    # Column width = max of header and all row values
    col_widths = []
    for i, header in enumerate(str_headers):
        max_width = len(header)
        for row in str_rows:
            if i < len(row):
                max_width = max(max_width, len(row[i]))
        col_widths.append(max_width)

    lines = []

    if title:
        lines.append(title)

    header_parts = []
    for i, header in enumerate(str_headers):
        header_parts.append(header.ljust(col_widths[i]))
    lines.append("  ".join(header_parts).rstrip())

    for row in str_rows:
        row_parts = []
        for i, val in enumerate(row):
            row_parts.append(val.ljust(col_widths[i]))
        lines.append("  ".join(row_parts).rstrip())

    return "\n".join(lines)


def home_dir() -> str:
    """Home directory from $HOME, falling back to expanduser."""
    return os.environ.get("HOME") or os.path.expanduser("~")


def expand_user(path: str, home: str | None = None) -> str:
    """Expand a leading ``~`` (only ``~`` and ``~/...``) to home."""
    if path != "~" and not path.startswith("~/"):
        return path
    return (home if home is not None else home_dir()) + path[1:]


def contract_user(path: str, home: str | None = None) -> str:
    """Show a path under home as ``~/...``."""
    home = home if home is not None else home_dir()
    if home and home != "/" and (
        path == home or path.startswith(home.rstrip("/") + "/")
    ):
        return "~" + path[len(home.rstrip("/")):]
    return path


def is_executable(path: str) -> bool:
    """Regular file with an execute bit set."""
    try:
        return os.path.isfile(path) and os.access(path, os.X_OK)
    except OSError:
        return False


def search_path_dirs(path_value: str | None = None) -> list[str]:
    """Split a PATH-style string into non-empty directories."""
    if path_value is None:
        path_value = os.environ.get("PATH", "")
    return [p for p in path_value.split(os.pathsep) if p]
