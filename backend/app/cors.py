"""
Foundation API Backend — CORS and Trusted-Origin Parsing
==========================================================

What:  Turns the CORS_ORIGIN setting into
       (a) options for the HTTP CORS middleware, and
       (b) the trusted-origin list used for cookie-authenticated requests.
How:   Pure functions; the CORS_ORIGIN grammar is:

           (unset)          development default: localhost / 127.0.0.1, any port
           "true"           every origin
           "false"          no origin
           "a,b,c"          comma-separated origins; `*` is a wildcard
                            (e.g. https://*.example.com, http://localhost:*)

       Requests without an Origin header (curl, native apps) are allowed
       whenever a predicate decides.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Pattern, Sequence, Union

from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp

DEFAULT_TRUSTED_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]
DEFAULT_ORIGIN_REGEX = re.compile(r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$")

OriginPredicate = Callable[[Optional[str]], bool]
OriginSetting = Union[bool, List[str], Pattern[str], OriginPredicate]


@dataclass(frozen=True)
class CorsOptions:
    origin: OriginSetting
    methods: List[str] = field(
        default_factory=lambda: ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    )
    allowed_headers: List[str] = field(default_factory=lambda: ["Content-Type", "Authorization"])
    credentials: bool = True
    max_age: int = 600  # seconds preflight responses may be cached


def _split(spec: str) -> List[str]:
    return [part.strip() for part in spec.split(",") if part.strip()]


def wildcard_to_regex(pattern: str) -> Pattern[str]:
    """Escapes the pattern and turns each `*` into `.*`, anchored at both ends."""
    escaped = ".*".join(re.escape(piece) for piece in pattern.split("*"))
    return re.compile(f"^{escaped}$")


def matches_origin(origin: str, pattern: str) -> bool:
    if "*" not in pattern:
        return origin == pattern
    return wildcard_to_regex(pattern).match(origin) is not None


def make_origin_predicate(patterns: Sequence[str]) -> OriginPredicate:
    """Predicate over request origins; an absent origin is allowed."""
    frozen = tuple(patterns)

    def is_allowed(origin: Optional[str]) -> bool:
        if not origin:
            return True
        return any(matches_origin(origin, pattern) for pattern in frozen)

    return is_allowed


def get_trusted_origins(spec: Optional[str] = None) -> List[str]:
    """
    Trusted origins for cookie-authenticated requests.

    >>> get_trusted_origins()
    ['http://localhost:*', 'http://127.0.0.1:*']
    >>> get_trusted_origins("true")
    ['*']
    >>> get_trusted_origins("https://app.example.com")
    ['http://localhost:*', 'http://127.0.0.1:*', 'https://app.example.com']
    """
    if not spec:
        return list(DEFAULT_TRUSTED_ORIGINS)
    if spec == "true":
        return ["*"]
    if spec == "false":
        return []
    return list(DEFAULT_TRUSTED_ORIGINS) + _split(spec)


def is_trusted_origin(origin: Optional[str], spec: Optional[str] = None) -> bool:
    return make_origin_predicate(get_trusted_origins(spec))(origin)


def get_cors_options(spec: Optional[str] = None) -> CorsOptions:
    """
    CORS middleware options for the given CORS_ORIGIN value.

    The `origin` value is a regex for the development default, a bool for
    "true"/"false", a plain list when no entry has a wildcard, and a
    predicate otherwise.
    """
    origin: OriginSetting
    if not spec:
        origin = DEFAULT_ORIGIN_REGEX
    elif spec == "true":
        origin = True
    elif spec == "false":
        origin = False
    else:
        patterns = _split(spec)
        if any("*" in pattern for pattern in patterns):
            origin = make_origin_predicate(patterns)
        else:
            origin = patterns
    return CorsOptions(origin=origin)


class OriginMatchingCORSMiddleware(CORSMiddleware):
    """
    Starlette's CORSMiddleware driven by a CorsOptions origin setting.

    Starlette only understands lists and regex strings, so the predicate
    form is plugged in through is_allowed_origin().
    """

    def __init__(self, app: ASGIApp, options: CorsOptions) -> None:
        origin = options.origin
        allow_origins: Sequence[str] = ()
        allow_origin_regex: Optional[str] = None
        if origin is True:
            allow_origins = ["*"]
        elif isinstance(origin, list):
            allow_origins = origin
        elif isinstance(origin, re.Pattern):
            allow_origin_regex = origin.pattern

        super().__init__(
            app,
            allow_origins=allow_origins,
            allow_origin_regex=allow_origin_regex,
            allow_methods=options.methods,
            allow_headers=options.allowed_headers,
            allow_credentials=options.credentials,
            expose_headers=["X-Request-ID"],
            max_age=options.max_age,
        )
        self._predicate: Optional[OriginPredicate] = origin if callable(origin) else None

    def is_allowed_origin(self, origin: str) -> bool:
        if self._predicate is not None:
            return self._predicate(origin)
        return super().is_allowed_origin(origin)
