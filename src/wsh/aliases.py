# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Alias resolution: substitute the first word of a finished line.

The alias table is owned by configuration and only read here.
"""

from __future__ import annotations

from collections.abc import Mapping

from .tokenizer import split_words


class AliasResolver:
    """Expand the command word through the alias table.

    An alias whose replacement starts with another alias is expanded
    again, up to ``max_depth`` times; an alias already expanded in the
    chain is left as-is so ``ls = "ls --color"`` works.
    """

    def __init__(
        self, aliases: Mapping[str, str], max_depth: int = 10
    ) -> None:
        self.aliases = aliases
        self.max_depth = max_depth

    def expand(self, name: str) -> str | None:
        """Replacement text for one alias name, or None."""
        if not name:
            return None
        return self.aliases.get(name)

    def resolve(self, argv: list[str]) -> list[str]:
        if not argv:
            return []

        seen: set[str] = set()
        words = list(argv)
        for _ in range(self.max_depth):
            name = words[0]
            if name in seen:
                break
            replacement = self.expand(name)
            if replacement is None:
                break
            seen.add(name)
            expanded = split_words(replacement)
            if not expanded:
                # Empty alias: drop the command word
                words = words[1:]
                if not words:
                    break
                continue
            words = expanded + words[1:]
        return words

    def names(self) -> list[str]:
        return sorted(self.aliases)
