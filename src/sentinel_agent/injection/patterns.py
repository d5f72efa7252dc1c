"""
Span-based matching of the application bootstrap expression in PHP source.

Laravel front controllers obtain the application container from a
parenthesised ``require`` of ``bootstrap/app.php``::

    (require_once __DIR__.'/../bootstrap/app.php')
        ->handleRequest(Request::capture());

The smart hook captures that value into a variable and hands it to
``sentinel_bind`` before the front controller uses it. Matching walks the
source with a small scanner that knows about string literals and comments,
so parentheses inside them never unbalance a group.
"""

import logging
import re
from typing import Iterator, Optional, Tuple

logger = logging.getLogger(__name__)

HOOK_VARIABLE = "$__sentinel_app"
HOOK_PREFIX = f"{HOOK_VARIABLE} = "
HOOK_SUFFIX = (
    ";\n"
    f"if (function_exists('sentinel_bind')) {{ sentinel_bind({HOOK_VARIABLE}); }}\n"
    f"{HOOK_VARIABLE}"
)

OPEN_TAG = "<?php"

# Inner content of the group: a require of the bootstrap file, either relative
# to public/ or through dirname(__DIR__).
_BOOTSTRAP_RE = re.compile(
    r"""
    \s*require(?:_once)?\s*
    (?:
        __DIR__\s*\.\s*(?P<q1>['"])/\.\./bootstrap/app\.php(?P=q1)
      |
        dirname\s*\(\s*__DIR__\s*\)\s*\.\s*(?P<q2>['"])/bootstrap/app\.php(?P=q2)
    )
    \s*
    """,
    re.VERBOSE | re.IGNORECASE,
)
_REQUIRE_START = re.compile(r"\s*require", re.IGNORECASE)
_DECLARE_START = re.compile(r"declare\s*\(", re.IGNORECASE)

# Characters that turn a trailing '=' into something other than a plain
# assignment ('==', '!=', '<=', '>=', '.=', '+=', ...).
_NON_PLAIN_ASSIGNMENT = set("=!<>.+-*/%&|^?:")


def _skip_non_code(text: str, i: int) -> Optional[int]:
    """If a string literal or comment starts at ``i``, return the index just past it."""
    n = len(text)
    ch = text[i]
    if ch == "'" or ch == '"':
        j = i + 1
        while j < n:
            c = text[j]
            if c == "\\":
                j += 2
                continue
            if c == ch:
                return j + 1
            j += 1
        return n
    if text.startswith("//", i) or (ch == "#" and not text.startswith("#[", i)):
        j = text.find("\n", i)
        return n if j == -1 else j
    if text.startswith("/*", i):
        j = text.find("*/", i + 2)
        return n if j == -1 else j + 2
    return None


def find_matching_paren(text: str, open_index: int) -> Optional[int]:
    """
    Return the index of the ')' closing the '(' at ``open_index``.

    Parentheses inside string literals and comments are ignored. Returns
    None when the group is never closed.
    """
    depth = 0
    i = open_index
    n = len(text)
    while i < n:
        skip = _skip_non_code(text, i)
        if skip is not None:
            i = skip
            continue
        c = text[i]
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def _iter_open_parens(text: str, start: int) -> Iterator[Tuple[int, Optional[int]]]:
    """Yield (index of '(', index of the previous significant code character)."""
    prev: Optional[int] = None
    i = start
    n = len(text)
    while i < n:
        skip = _skip_non_code(text, i)
        if skip is not None:
            if text[i] in "'\"":
                prev = skip - 1
            i = skip
            continue
        c = text[i]
        if c == "(":
            yield i, prev
        if not c.isspace():
            prev = i
        i += 1


def _next_significant(text: str, i: int) -> Optional[int]:
    n = len(text)
    while i < n:
        if text[i].isspace():
            i += 1
            continue
        if text[i] not in "'\"":
            skip = _skip_non_code(text, i)
            if skip is not None:
                i = skip
                continue
        return i
    return None


def _is_hook_position(text: str, close_index: int, prev: Optional[int]) -> bool:
    # Statement start: right after the open tag or after ';', '{', '}'.
    # Identifiers, ')' and ']' before the paren would make it a call.
    if prev is None or text[prev] in ";{}":
        return True
    # Whole right-hand side of a plain assignment.
    if text[prev] == "=" and (prev == 0 or text[prev - 1] not in _NON_PLAIN_ASSIGNMENT):
        nxt = _next_significant(text, close_index + 1)
        return nxt is not None and text[nxt] == ";"
    return False


def find_include_offset(source: str) -> Optional[int]:
    """
    Return the offset at which the probe include is inserted.

    That is just after the open tag, or after the ``declare(...);``
    statements that follow it, since PHP requires ``declare(strict_types=1)``
    to be the first statement of the file. Returns None without an open tag.
    """
    tag = source.find(OPEN_TAG)
    if tag == -1:
        return None
    offset = tag + len(OPEN_TAG)
    while True:
        start = _next_significant(source, offset)
        if start is None:
            break
        match = _DECLARE_START.match(source, start)
        if match is None:
            break
        close_index = find_matching_paren(source, match.end() - 1)
        if close_index is None:
            break
        end = _next_significant(source, close_index + 1)
        # Block form: declare(ticks=1) { ... }
        if end is None or source[end] != ";":
            break
        offset = end + 1
    return offset


def find_bootstrap_group(source: str) -> Optional[Tuple[int, int]]:
    """
    Locate the parenthesised bootstrap require in PHP source.

    Returns:
        The ``(start, end)`` span of the group including its parentheses, or
        None when no eligible group exists.
    """
    tag = source.find(OPEN_TAG)
    start = tag + len(OPEN_TAG) if tag >= 0 else 0

    for open_index, prev in _iter_open_parens(source, start):
        if not _REQUIRE_START.match(source, open_index + 1):
            continue
        close_index = find_matching_paren(source, open_index)
        if close_index is None:
            continue
        if not _BOOTSTRAP_RE.fullmatch(source, open_index + 1, close_index):
            continue
        if not _is_hook_position(source, close_index, prev):
            logger.debug(f"Bootstrap require at offset {open_index} is not a hookable expression")
            continue
        return open_index, close_index + 1
    return None


def apply_smart_hook(source: str) -> Tuple[str, bool]:
    """
    Capture the bootstrap expression so ``sentinel_bind`` receives the app.

    Returns:
        The (possibly) rewritten source and whether the hook was applied.
    """
    if HOOK_PREFIX in source:
        return source, False
    span = find_bootstrap_group(source)
    if span is None:
        return source, False
    start, end = span
    group = source[start:end]
    return source[:start] + HOOK_PREFIX + group + HOOK_SUFFIX + source[end:], True


def remove_smart_hook(source: str) -> Tuple[str, bool]:
    """
    Undo ``apply_smart_hook``.

    Only the exact emitted template is reversed: the literal prefix, a
    balanced group, then the literal suffix. Anything else is left alone.
    """
    changed = False
    search_from = 0
    while True:
        start = source.find(HOOK_PREFIX, search_from)
        if start == -1:
            break
        open_index = start + len(HOOK_PREFIX)
        close_index = (
            find_matching_paren(source, open_index)
            if source.startswith("(", open_index)
            else None
        )
        if close_index is None or not source.startswith(HOOK_SUFFIX, close_index + 1):
            search_from = start + len(HOOK_PREFIX)
            continue
        group = source[open_index:close_index + 1]
        source = source[:start] + group + source[close_index + 1 + len(HOOK_SUFFIX):]
        search_from = start + len(group)
        changed = True
    return source, changed
