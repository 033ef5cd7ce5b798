"""Shared text-scanning helpers for structural extractors."""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models import DatabaseQuery, QueryOperation

INLINE_HANDLER = "<inline>"

_PARAM_PATTERNS: List[Tuple[re.Pattern[str], str]] = [
    (re.compile(r"/:([A-Za-z_][A-Za-z0-9_]*)\??"), r"/{\1}"),
    (
        re.compile(r"/<(?:(?:[A-Za-z_][A-Za-z0-9_]*):)?([A-Za-z_][A-Za-z0-9_]*)>"),
        r"/{\1}",
    ),
    (re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\s*:\s*[^}]+\}"), r"{\1}"),
    (re.compile(r"\[(?:\.\.\.)?([A-Za-z_][A-Za-z0-9_]*)\]"), r"{\1}"),
]

_ORIGIN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://[^/]*")
_LEADING_TEMPLATE = re.compile(r"^\$\{[^}]*\}")
_TEMPLATE_EXPR = re.compile(r"\$\{([^}]*)\}")
_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")
_LEADING_NAME = re.compile(r"^\s*(?:await\s+)?(?:new\s+)?([A-Za-z_$][\w$]*(?:\s*\.\s*[A-Za-z_$][\w$]*)*)")

_CALL = re.compile(r"(?<![\w$.])([A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*)\s*\(")
_DECLARATION_PREFIX = re.compile(r"\bfunction\s*\*?\s*$")

JS_KEYWORDS = frozenset(
    {
        "if",
        "for",
        "while",
        "switch",
        "catch",
        "function",
        "return",
        "typeof",
        "await",
        "new",
        "super",
        "import",
        "require",
        "async",
        "yield",
        "delete",
        "void",
        "in",
        "of",
        "do",
        "else",
        "try",
        "throw",
        "case",
        "constructor",
    }
)

_BUILTIN_ROOTS = frozenset(
    {
        "console",
        "JSON",
        "Math",
        "Object",
        "Array",
        "Promise",
        "Number",
        "String",
        "Boolean",
        "Date",
        "Symbol",
        "Reflect",
        "Error",
        "parseInt",
        "parseFloat",
        "setTimeout",
        "setInterval",
        "clearTimeout",
        "clearInterval",
    }
)

_SQL_VERB = re.compile(
    r"^\s*\(?\s*(select|with|insert|update|delete|replace|merge|upsert|truncate|drop)\b",
    re.IGNORECASE,
)
_SQL_TABLES: Sequence[Tuple[str, re.Pattern[str]]] = (
    ("insert", re.compile(r"\binsert\s+(?:or\s+\w+\s+)?into\s+[`\"\[]?([\w.]+)", re.IGNORECASE)),
    ("replace", re.compile(r"\breplace\s+into\s+[`\"\[]?([\w.]+)", re.IGNORECASE)),
    ("update", re.compile(r"\bupdate\s+[`\"\[]?([\w.]+)", re.IGNORECASE)),
    ("delete", re.compile(r"\bdelete\s+from\s+[`\"\[]?([\w.]+)", re.IGNORECASE)),
    ("truncate", re.compile(r"\btruncate\s+(?:table\s+)?[`\"\[]?([\w.]+)", re.IGNORECASE)),
    ("select", re.compile(r"\bfrom\s+[`\"\[]?([\w.]+)", re.IGNORECASE)),
)

_DELETE_WORDS = ("delete", "remove", "destroy", "truncate", "drop")
_WRITE_WORDS = ("insert", "create", "update", "upsert", "save", "replace", "merge", "bulk", "increment")
_WRITE_EXACT = frozenset({"add", "set", "put", "push"})
_READ_WORDS = (
    "select",
    "find",
    "get",
    "count",
    "aggregate",
    "first",
    "pluck",
    "where",
    "query",
    "exists",
    "distinct",
    "filter",
    "exclude",
    "fetch",
    "values",
)
_READ_EXACT = frozenset({"all", "one", "many", "any", "none", "list"})


def normalize_path(path: str) -> str:
    """Return a canonical representation for endpoint paths."""
    if not path:
        return "/"
    result = path.strip()
    if not result.startswith("/"):
        result = "/" + result
    for pattern, replacement in _PARAM_PATTERNS:
        result = pattern.sub(replacement, result)
    result = re.sub(r"/{2,}", "/", result)
    if len(result) > 1 and result.endswith("/"):
        result = result[:-1]
    return result or "/"


def url_path(url: str) -> str:
    """Reduce a client URL (absolute, templated, or relative) to a normalized path."""
    value = _ORIGIN.sub("", url.strip())
    value = _LEADING_TEMPLATE.sub("", value)
    value = value.split("?", 1)[0].split("#", 1)[0]
    value = _TEMPLATE_EXPR.sub(lambda match: "{" + _param_name(match.group(1)) + "}", value)
    return normalize_path(value)


def looks_like_url(value: str) -> bool:
    stripped = value.strip()
    return stripped.startswith(("/", "http://", "https://", "${")) or "/" in stripped


def _param_name(expression: str) -> str:
    names = _IDENTIFIER.findall(expression)
    return names[-1] if names else "param"


class LineIndex:
    """Maps character offsets in one text to 1-based line numbers."""

    def __init__(self, text: str) -> None:
        self._starts = [0]
        self._starts.extend(index + 1 for index, char in enumerate(text) if char == "\n")

    def line(self, index: int) -> int:
        return bisect_right(self._starts, index)


def number_by_line(queries: Iterable[DatabaseQuery]) -> List[DatabaseQuery]:
    """Give queries that share a line increasing ordinals, in input order."""
    counts: Dict[int, int] = {}
    numbered: List[DatabaseQuery] = []
    for query in queries:
        ordinal = counts.get(query.line, 0)
        counts[query.line] = ordinal + 1
        numbered.append(replace(query, ordinal=ordinal) if ordinal else query)
    return numbered


def snippet(text: str, start: int, end: int, limit: int = 160) -> str:
    collapsed = " ".join(text[start:end].split())
    if len(collapsed) > limit:
        return collapsed[: limit - 3] + "..."
    return collapsed


def mask_comments(text: str) -> str:
    """Blank out ``//`` and ``/* */`` comments, keeping offsets and newlines intact."""
    chars = list(text)
    length = len(text)
    quote: Optional[str] = None
    index = 0
    while index < length:
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote or (char == "\n" and quote != "`"):
                quote = None
            index += 1
            continue
        if char in "'\"`":
            quote = char
        elif char == "/" and index + 1 < length:
            following = text[index + 1]
            if following == "/":
                end = text.find("\n", index)
                end = length if end == -1 else end
                _blank(chars, index, end)
                index = end
                continue
            if following == "*":
                end = text.find("*/", index + 2)
                end = length if end == -1 else end + 2
                _blank(chars, index, end)
                index = end
                continue
        index += 1
    return "".join(chars)


def _blank(chars: List[str], start: int, end: int) -> None:
    for position in range(start, end):
        if chars[position] != "\n":
            chars[position] = " "


def find_closing(text: str, start: int) -> int:
    """Return the index of the bracket closing ``text[start]``, or -1."""
    depth = 0
    quote: Optional[str] = None
    index = start
    length = len(text)
    while index < length:
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote or (char == "\n" and quote != "`"):
                quote = None
        elif char in "'\"`":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return -1


def argument_spans(text: str, start: int, end: int) -> List[Tuple[int, int]]:
    """Split ``text[start:end]`` on top-level commas; return trimmed spans."""
    spans: List[Tuple[int, int]] = []
    depth = 0
    quote: Optional[str] = None
    segment_start = start
    index = start
    while index < end:
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote or (char == "\n" and quote != "`"):
                quote = None
        elif char in "'\"`":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif char == "," and depth == 0:
            spans.append(_trim(text, segment_start, index))
            segment_start = index + 1
        index += 1
    spans.append(_trim(text, segment_start, end))
    return [span for span in spans if span[0] < span[1]]


def _trim(text: str, start: int, end: int) -> Tuple[int, int]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def split_top_level(value: str) -> List[str]:
    return [value[start:end] for start, end in argument_spans(value, 0, len(value))]


def string_literal(value: str) -> Optional[str]:
    """Return the contents of ``value`` when it is exactly one quoted literal."""
    stripped = value.strip()
    if len(stripped) < 2 or stripped[0] not in "'\"`" or stripped[-1] != stripped[0]:
        return None
    body = stripped[1:-1]
    if stripped[0] in body.replace("\\" + stripped[0], ""):
        return None
    return body


def leading_name(value: str) -> Optional[str]:
    match = _LEADING_NAME.match(value)
    if not match:
        return None
    return re.sub(r"\s+", "", match.group(1))


def collect_calls(text: str, exclude: Iterable[str] = ()) -> Tuple[str, ...]:
    """Return invoked identifiers in order of first appearance."""
    skipped = set(exclude)
    seen: List[str] = []
    for match in _CALL.finditer(text):
        name = match.group(1)
        root = name.split(".", 1)[0]
        if root in JS_KEYWORDS or root in _BUILTIN_ROOTS or name in skipped:
            continue
        if _DECLARATION_PREFIX.search(text, max(0, match.start() - 12), match.start()):
            continue
        if name not in seen:
            seen.append(name)
    return tuple(seen)


def looks_like_sql(value: str) -> bool:
    return bool(_SQL_VERB.match(value))


def sql_operation(sql: str) -> Optional[QueryOperation]:
    match = _SQL_VERB.match(sql)
    if not match:
        return None
    verb = match.group(1).lower()
    if verb in {"select", "with"}:
        return QueryOperation.READ
    if verb in {"delete", "truncate", "drop"}:
        return QueryOperation.DELETE
    return QueryOperation.WRITE


def sql_table(sql: str) -> Optional[str]:
    match = _SQL_VERB.match(sql)
    verb = match.group(1).lower() if match else None
    for kind, pattern in _SQL_TABLES:
        if verb is not None and verb not in {kind, "with"} and kind != "select":
            continue
        found = pattern.search(sql)
        if found:
            return found.group(1)
    return None


def infer_operation(method: str) -> Optional[QueryOperation]:
    """Map a data-access method name to a query operation."""
    lowered = method.lower()
    if lowered == "del" or any(word in lowered for word in _DELETE_WORDS):
        return QueryOperation.DELETE
    if lowered in _WRITE_EXACT or any(word in lowered for word in _WRITE_WORDS):
        return QueryOperation.WRITE
    if lowered in _READ_EXACT or any(word in lowered for word in _READ_WORDS):
        return QueryOperation.READ
    return None


__all__ = [
    "INLINE_HANDLER",
    "JS_KEYWORDS",
    "LineIndex",
    "argument_spans",
    "collect_calls",
    "find_closing",
    "infer_operation",
    "leading_name",
    "looks_like_sql",
    "looks_like_url",
    "mask_comments",
    "normalize_path",
    "number_by_line",
    "snippet",
    "split_top_level",
    "sql_operation",
    "sql_table",
    "string_literal",
    "url_path",
]
