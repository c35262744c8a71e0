# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""CORS policy definition."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from flycors.cors.matching import OriginPattern, PathPattern
from flycors.kernel.exceptions import CorsConfigurationException

ALL = "*"

HTTP_METHODS: frozenset[str] = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"}
)

DEFAULT_ALLOWED_METHODS: tuple[str, ...] = ("GET", "HEAD", "POST")
DEFAULT_MAX_AGE = 1800  # seconds


def _dedupe(values: Iterable[str], *, upper: bool = False) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        value = value.strip()
        if not value:
            continue
        seen[value.upper() if upper else value] = None
    return tuple(seen)


@dataclass(frozen=True)
class CorsPolicy:
    """One CORS mapping: a path pattern and the cross-origin rules that apply to it.

    Instances are immutable and validated on construction, so an insecure or
    meaningless combination fails at startup instead of producing bad headers.

    Attributes:
        path_pattern: Ant-style pattern the request path must match (``/**`` = all).
        allowed_origin_patterns: Origin globs, checked in order.
        allowed_methods: HTTP methods allowed cross-origin (``*`` = any).
        allow_credentials: Whether cookies / HTTP auth may accompany requests.
        allowed_origins: Literal origins, checked before the patterns. ``*``
            means any origin and is the only source of a wildcard
            ``Access-Control-Allow-Origin`` header.
        allowed_headers: Request headers allowed on preflight (``*`` = any).
        exposed_headers: Response headers the browser may expose to scripts.
        max_age: Preflight cache lifetime in seconds.
    """

    path_pattern: str = "/**"
    allowed_origin_patterns: Sequence[str] = ()
    allowed_methods: Sequence[str] = DEFAULT_ALLOWED_METHODS
    allow_credentials: bool = False
    allowed_origins: Sequence[str] = ()
    allowed_headers: Sequence[str] = (ALL,)
    exposed_headers: Sequence[str] = ()
    max_age: int = DEFAULT_MAX_AGE
    _path: PathPattern = field(init=False, repr=False, compare=False)
    _origin_patterns: tuple[OriginPattern, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "allowed_origin_patterns", _dedupe(self.allowed_origin_patterns))
        object.__setattr__(self, "allowed_methods", _dedupe(self.allowed_methods, upper=True))
        object.__setattr__(self, "allowed_origins", _dedupe(o.rstrip("/") for o in self.allowed_origins))
        object.__setattr__(self, "allowed_headers", _dedupe(self.allowed_headers))
        object.__setattr__(self, "exposed_headers", _dedupe(self.exposed_headers))
        self._validate()
        object.__setattr__(self, "_path", PathPattern(self.path_pattern))
        object.__setattr__(
            self,
            "_origin_patterns",
            tuple(OriginPattern(p) for p in self.allowed_origin_patterns),
        )

    def _validate(self) -> None:
        context = {"path_pattern": self.path_pattern}

        if not self.allowed_methods:
            raise CorsConfigurationException(
                "At least one allowed method is required", code="CORS_NO_METHODS", context=context
            )
        unknown = [m for m in self.allowed_methods if m != ALL and m not in HTTP_METHODS]
        if unknown:
            raise CorsConfigurationException(
                f"Unknown HTTP method(s): {', '.join(unknown)}",
                code="CORS_UNKNOWN_METHOD",
                context={**context, "methods": unknown},
            )
        if self.max_age < 0:
            raise CorsConfigurationException(
                f"max_age must be >= 0, got {self.max_age}", code="CORS_MAX_AGE", context=context
            )
        if ALL in self.exposed_headers and self.allow_credentials:
            raise CorsConfigurationException(
                "exposed_headers cannot contain '*' when allow_credentials is true",
                code="CORS_CREDENTIALS_WILDCARD",
                context=context,
            )
        # A credentialed response must echo a concrete origin, so a blanket
        # literal origin is refused outright. Use allowed_origin_patterns=["*"]
        # to accept any origin while still echoing it.
        if self.allow_credentials and ALL in self.allowed_origins:
            raise CorsConfigurationException(
                "allow_credentials cannot be true when allowed_origins contains '*'; "
                "list the origins explicitly or use allowed_origin_patterns",
                code="CORS_CREDENTIALS_WILDCARD",
                context=context,
            )

    @property
    def origin_patterns(self) -> tuple[OriginPattern, ...]:
        return self._origin_patterns

    def matches_path(self, path: str) -> bool:
        return self._path.matches(path)

    def check_origin(self, origin: str | None) -> str | None:
        """Return the ``Access-Control-Allow-Origin`` value for *origin*, or ``None`` if not allowed.

        The request origin is echoed verbatim, except that a policy without
        credentials whose literal origins include ``*`` answers with ``*``.
        """
        if not origin:
            return None
        normalized = origin.rstrip("/").lower()
        for allowed in self.allowed_origins:
            if allowed == ALL:
                return origin if self.allow_credentials else ALL
            if allowed.lower() == normalized:
                return origin
        for pattern in self._origin_patterns:
            if pattern.matches(origin):
                return origin
        return None

    def check_method(self, method: str | None) -> tuple[str, ...] | None:
        """Return the methods to advertise when *method* is allowed, else ``None``."""
        if not method:
            return None
        method = method.upper()
        if ALL in self.allowed_methods:
            return (method,)
        if method in self.allowed_methods:
            return tuple(self.allowed_methods)
        return None

    def check_headers(self, requested: Sequence[str]) -> tuple[str, ...] | None:
        """Return the headers to advertise for a preflight, or ``None`` if one is not allowed."""
        if not requested:
            return ()
        if ALL in self.allowed_headers:
            return tuple(requested)
        allowed = {h.lower() for h in self.allowed_headers}
        if all(h.lower() in allowed for h in requested):
            return tuple(requested)
        return None
