"""Default pattern compiler turning typed words into an indexer regexp."""

from __future__ import annotations

import itertools
import logging
import re

from narrowscope.app.ports.pattern import (
    CompiledPattern,
    CompileMode,
    HighlightSpan,
    PatternCompilerPort,
)

logger = logging.getLogger(__name__)

# Beyond this many words the permutation count explodes; keep typed order.
MAX_PERMUTED_WORDS = 3


def _python_regex(word: str, flags: int) -> re.Pattern[str]:
    try:
        return re.compile(word, flags)
    except re.error as exc:
        logger.debug("Highlighting %r literally: %s", word, exc)
        return re.compile(re.escape(word), flags)


def _join_words(words: list[str], mode: CompileMode) -> str:
    if len(words) == 1:
        return words[0]

    orders = (
        itertools.permutations(words)
        if len(words) <= MAX_PERMUTED_WORDS
        else [tuple(words)]
    )
    alternatives = [".*".join(order) for order in orders]
    if len(alternatives) == 1:
        return alternatives[0]
    if mode == "extended":
        return "(" + "|".join(alternatives) + ")"
    return r"\(" + r"\|".join(alternatives) + r"\)"


class RegexpPatternCompiler(PatternCompilerPort):
    """Whitespace-separated words that must all occur, in any order.

    The matcher is handed to cscope, which does the actual searching; the
    highlighter uses Python ``re`` only to mark the words in shown results.
    """

    def compile(
        self,
        text: str,
        mode: CompileMode,
        case_insensitive: bool,
    ) -> CompiledPattern | None:
        words = list(dict.fromkeys(text.split()))
        if not words:
            return None

        flags = re.IGNORECASE if case_insensitive else 0
        regexes = [_python_regex(word, flags) for word in words]

        def highlighter(content: str) -> list[HighlightSpan]:
            spans: list[HighlightSpan] = []
            for regex in regexes:
                spans.extend(
                    match.span() for match in regex.finditer(content) if match.end() > match.start()
                )
            return _merge(spans)

        return CompiledPattern(matcher=_join_words(words, mode), highlighter=highlighter)


def _merge(spans: list[HighlightSpan]) -> list[HighlightSpan]:
    merged: list[HighlightSpan] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged
