"""Pure query pipeline stages.

Splitting raw input, building indexer invocations, parsing indexer output and
grouping candidates. Nothing in this package performs I/O. The functions
are pure; only `LineAccumulator` carries partial output between chunks.
"""

__all__ = [
    "SplitQuery",
    "split",
    "initial_input",
    "is_case_insensitive",
    "SearchType",
    "SearchInvocation",
    "build_invocation",
    "Candidate",
    "parse_line",
    "group_key",
    "group_title",
    "LineAccumulator",
]

from narrowscope.query.command import SearchInvocation, SearchType, build_invocation
from narrowscope.query.lines import LineAccumulator
from narrowscope.query.results import Candidate, group_key, group_title, parse_line
from narrowscope.query.splitter import SplitQuery, initial_input, is_case_insensitive, split
