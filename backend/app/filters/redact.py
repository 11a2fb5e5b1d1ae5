"""
Foundation API Backend — Key-Path Redaction
=============================================

What:  Builds redactor callables that replace sensitive values with a censor
       string before data leaves the process (error tracker, logs).
How:   Each sensitive key is expanded into depth+1 path variants:

           password, *.password, *.*.password, *.*.*.password   (depth=3)

       `*` matches any dict key or list index at that level. Keys nested
       deeper than `depth` are left untouched. Extra paths can be given
       verbatim in bracket notation for names with special characters:

           plain_keys=['["x-api-key"]', 'user["auth-token"]']

       The input is deep-copied first; the caller's object is never mutated.
       The copy skips the keys __proto__, constructor and prototype.

Example:
    redact = create_redactor(keys=["password", "token"], depth=2)
    redact({"user": {"password": "x"}})   # {"user": {"password": "[REDACTED]"}}
"""

import json
import re
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

Path = Tuple[str, ...]

WILDCARD = "*"

# Keys that are never copied out of untrusted input
UNSAFE_KEYS = frozenset({"__proto__", "constructor", "prototype"})

_SEGMENT_RE = re.compile(
    r"""\[\s*"([^"]*)"\s*\]      # ["quoted"]
      | \[\s*'([^']*)'\s*\]      # ['quoted']
      | \[\s*(\d+)\s*\]          # [0]
      | ([^.\[\]]+)              # bare segment
    """,
    re.VERBOSE,
)


def parse_path(expression: str) -> Path:
    """
    Splits a dotted / bracketed path expression into segments.

    >>> parse_path('headers["x-api-key"]')
    ('headers', 'x-api-key')
    """
    segments: List[str] = []
    for match in _SEGMENT_RE.finditer(expression):
        segment = next(group for group in match.groups() if group is not None)
        segments.append(segment.strip() if match.group(4) is not None else segment)
    if not segments:
        raise ValueError(f"redact - invalid path expression: {expression!r}")
    return tuple(segments)


def expand_key_paths(keys: Iterable[str], depth: int) -> List[Path]:
    """Returns the bare key plus one wildcard-prefixed variant per level up to depth."""
    paths: List[Path] = []
    for key in keys:
        paths.append((key,))
        for level in range(1, depth + 1):
            paths.append((WILDCARD,) * level + (key,))
    return paths


def safe_copy(value: Any) -> Any:
    """Deep-copies dicts and lists, dropping UNSAFE_KEYS at every level."""
    if isinstance(value, dict):
        return {
            key: safe_copy(item)
            for key, item in value.items()
            if key not in UNSAFE_KEYS
        }
    if isinstance(value, (list, tuple)):
        return [safe_copy(item) for item in value]
    return value


def _children(node: Any) -> List[Tuple[Union[str, int], Any]]:
    if isinstance(node, dict):
        return list(node.items())
    if isinstance(node, list):
        return list(enumerate(node))
    return []


def _lookup(node: Any, segment: str) -> Optional[Union[str, int]]:
    """Returns the container key addressed by a named segment, if present."""
    if isinstance(node, dict):
        return segment if segment in node else None
    if isinstance(node, list) and segment.isdigit():
        index = int(segment)
        return index if index < len(node) else None
    return None


def _apply(node: Any, path: Path, censor: Any) -> None:
    head, rest = path[0], path[1:]

    if head == WILDCARD:
        targets = [key for key, _ in _children(node)]
    else:
        key = _lookup(node, head)
        targets = [] if key is None else [key]

    for key in targets:
        if rest:
            child = node[key]
            if isinstance(child, (dict, list)):
                _apply(child, rest, censor)
        else:
            # Present-but-None values are censored too
            node[key] = censor


class Redactor:
    """
    Callable produced by create_redactor(). Immutable after construction and
    safe to share between concurrent requests.
    """

    def __init__(
        self,
        paths: Sequence[Path],
        censor: Any = "[REDACTED]",
        serialize: bool = False,
        strict: bool = False,
    ):
        self.paths: Tuple[Path, ...] = tuple(paths)
        self.censor = censor
        self.serialize = serialize
        self.strict = strict

    def __call__(self, value: Any) -> Any:
        if not isinstance(value, (dict, list, tuple)):
            if self.strict:
                raise TypeError("redact - primitives cannot be redacted")
            return json.dumps(value, default=str) if self.serialize else value

        redacted = safe_copy(value)
        for path in self.paths:
            _apply(redacted, path, self.censor)

        if self.serialize:
            return json.dumps(redacted, default=str)
        return redacted


def create_redactor(
    keys: Sequence[str],
    depth: int = 3,
    plain_keys: Sequence[str] = (),
    censor: Any = "[REDACTED]",
    serialize: bool = False,
    strict: bool = False,
) -> Redactor:
    """
    Creates a redactor for `keys` at every nesting level up to `depth`.

    Args:
        keys:       Sensitive key names (e.g. ["password", "token"]). Required.
        depth:      Maximum number of wildcard levels (default 3).
        plain_keys: Extra path expressions added verbatim, without expansion.
        censor:     Replacement value (default "[REDACTED]").
        serialize:  Return a JSON string instead of the redacted copy.
        strict:     Raise TypeError when called with a primitive.

    Raises:
        ValueError: keys is empty or depth is negative.
    """
    if not keys:
        raise ValueError("redact - keys array must not be empty")
    if depth < 0:
        raise ValueError("redact - depth must be a non-negative number")

    paths = expand_key_paths(keys, depth)
    paths.extend(parse_path(expression) for expression in plain_keys)
    return Redactor(paths, censor=censor, serialize=serialize, strict=strict)
