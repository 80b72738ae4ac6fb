"""Narrowing syntax: split raw input into pattern, filter terms and flags."""

from __future__ import annotations

import re
import shlex
import string
from collections.abc import Iterable
from dataclasses import dataclass

from narrowscope.config import SplitStyle

# One or more spaces, "--", then spaces or end of input.
_FLAGS_MARKER = re.compile(r" +--(?: +|$)")

CASE_INSENSITIVE_FLAG = "-C"


@dataclass(frozen=True, slots=True)
class SplitQuery:
    """Derived view of a raw query string."""

    raw: str
    pattern: str
    filter_terms: tuple[str, ...] = ()
    extra_args: tuple[str, ...] = ()


def _split_flags(raw: str) -> tuple[str, tuple[str, ...]]:
    match = _FLAGS_MARKER.search(raw)
    if match is None:
        return raw, ()

    text = raw[: match.start()]
    try:
        flags = tuple(shlex.split(raw[match.end() :]))
    except ValueError:
        # Unbalanced quotes while the user is still typing.
        flags = ()
    return text, flags


def _split_perl(text: str) -> tuple[str, str]:
    if not text or text[0] not in string.punctuation:
        return text, ""

    separator = text[0]
    end = text.find(separator, 1)
    if end == -1:
        return text[1:], ""
    return text[1:end], text[end + 1 :]


def _split_at(text: str, separator: str) -> tuple[str, str]:
    pattern, _, rest = text.partition(separator)
    return pattern, rest


def split(raw: str, style: SplitStyle = "perl") -> SplitQuery:
    """Split ``raw`` into a pattern, filter terms and pass-through flags.

    Examples:
        >>> split("#foo#bar -- -C")
        SplitQuery(raw='#foo#bar -- -C', pattern='foo', filter_terms=('bar',), extra_args=('-C',))
        >>> split("foo").pattern
        'foo'
    """
    text, flags = _split_flags(raw)

    if style == "perl":
        pattern, rest = _split_perl(text)
    elif style == "semicolon":
        pattern, rest = _split_at(text, ";")
    elif style == "space":
        pattern, rest = _split_at(text, " ")
    else:
        pattern, rest = text, ""

    return SplitQuery(
        raw=raw,
        pattern=pattern,
        filter_terms=tuple(rest.split()),
        extra_args=flags,
    )


def initial_input(text: str, style: SplitStyle = "perl") -> str:
    """Return the input to pre-populate so that ``text`` becomes the pattern."""
    if style == "perl":
        return f"#{text}"
    return text


def is_case_insensitive(tokens: Iterable[str]) -> bool:
    """Return True when the case-insensitivity flag is among ``tokens``."""
    return CASE_INSENSITIVE_FLAG in tokens
