"""
Summary: Longest-prefix alias table applied to module specifiers.
Why: Rewrite project shorthands like ``~/utils`` before any filesystem probing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


def _strip_separator(value: str) -> str:
    stripped = value.rstrip("/")
    return stripped or value


@dataclass(frozen=True, slots=True)
class AliasTable:
    """Static alias table ordered so the longest alias is tried first."""

    entries: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_mapping(cls, aliases: Mapping[str, str]) -> AliasTable:
        """Build a table, expanding targets that start with another alias."""

        normalized = {
            _strip_separator(alias): _strip_separator(target)
            for alias, target in aliases.items()
            if alias
        }
        ordered = sorted(normalized.items(), key=lambda item: (-len(item[0]), item[0]))

        expanded: dict[str, str] = {}
        for alias, target in ordered:
            others = cls(tuple(item for item in ordered if item[0] != alias))
            seen: set[str] = set()
            while target not in seen:
                seen.add(target)
                rewritten = others.apply(target)
                if rewritten == target:
                    break
                target = rewritten
            expanded[alias] = target

        return cls(tuple((alias, expanded[alias]) for alias, _ in ordered))

    def match(self, specifier: str) -> str | None:
        """Return the alias matching the leading segments of ``specifier``."""

        for alias, _ in self.entries:
            if specifier == alias or specifier.startswith(alias + "/"):
                return alias
        return None

    def apply(self, specifier: str) -> str:
        """Rewrite ``specifier`` with the longest matching alias, if any."""

        for alias, target in self.entries:
            if specifier == alias:
                return target
            if specifier.startswith(alias + "/"):
                return target + specifier[len(alias):]
        return specifier

    def __bool__(self) -> bool:
        return bool(self.entries)


__all__ = ["AliasTable"]
