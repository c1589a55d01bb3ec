"""Glob-style wildcard patterns as used by KEYS and PSUBSCRIBE."""

from __future__ import annotations

import re

__all__ = ["PatternError", "Pattern", "compile_pattern"]

END_WITH_ESCAPE = "end with escape \\"

_REPLACEMENTS = {
    "+": r"\+",
    ")": r"\)",
    "$": r"\$",
    ".": r"\.",
    "{": r"\{",
    "}": r"\}",
    "|": r"\|",
    "*": ".*",
    "?": ".",
}


class PatternError(ValueError):
    """Raised when a wildcard pattern cannot be compiled."""


class Pattern:
    """A compiled wildcard pattern."""

    __slots__ = ("_exp",)

    def __init__(self, exp: re.Pattern[str]) -> None:
        self._exp = exp

    def is_match(self, s: str) -> bool:
        """Return whether the whole string matches the pattern."""
        return self._exp.fullmatch(s) is not None


def compile_pattern(src: str) -> Pattern:
    """Compile a wildcard string into a Pattern."""
    parts: list[str] = []
    chars = iter(enumerate(src))
    for i, ch in chars:
        if ch == "\\":
            if i == len(src) - 1:
                raise PatternError(END_WITH_ESCAPE)
            _, escaped = next(chars)
            parts.append(ch + escaped)
        elif ch == "^":
            negates_set = i >= 1 and src[i - 1] == "[" and (i == 1 or src[i - 2] != "\\")
            parts.append("^" if negates_set else r"\^")
        else:
            parts.append(_REPLACEMENTS.get(ch, ch))
    try:
        exp = re.compile("".join(parts))
    except re.error as exc:
        raise PatternError(str(exc)) from exc
    return Pattern(exp)