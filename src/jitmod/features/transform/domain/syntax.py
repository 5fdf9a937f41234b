"""
Summary: Detect module-dialect syntax that the interpreter cannot run directly.
Why: Plain modules skip the transformer; only dialect files pay for a rewrite.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from jitmod.config.options import DIALECT_EXTENSIONS
from jitmod.shared.models import SyntaxFlags

_DIALECT_STATEMENT_RE: Final[re.Pattern[str]] = re.compile(
    r"""
    ^(?:
        export\s+(?:default\b|async\s+def\b|def\b|class\b|\{|[A-Za-z_]\w*\s*[=:])
      | import\s+(?:\*\s*as\s+\w+|\{[^}]*\}|\w+(?:\s*,\s*\{[^}]*\})?)\s+from\s+["']
      | from\s+["']
    )
    """,
    re.MULTILINE | re.VERBOSE,
)


def has_dialect_syntax(source: str) -> bool:
    """Return True when ``source`` contains top-level export or string-specifier import statements."""

    return _DIALECT_STATEMENT_RE.search(source) is not None


def detect_syntax(
    path: Path | str,
    source: str,
    *,
    dialect_extensions: Sequence[str] = DIALECT_EXTENSIONS,
) -> SyntaxFlags:
    """Describe which non-native syntax features ``source`` uses."""

    suffix = Path(path).suffix
    return SyntaxFlags(
        esm=has_dialect_syntax(source),
        dialect=suffix in dialect_extensions,
    )


def needs_transform(flags: SyntaxFlags) -> bool:
    return flags.requires_transform


__all__ = ["detect_syntax", "has_dialect_syntax", "needs_transform"]
