# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
WSH core package.

The line editor and completion engine are usable on their own; the
shell session and terminal UI build on them.
"""

__version__ = "0.1.0"

from .editor import LineEditor as LineEditor  # noqa: F401,E402 (re-export)
