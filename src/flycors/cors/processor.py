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
"""CORS decision logic.

:class:`CorsPolicyProvider` turns request metadata into a
:class:`CorsDecision`.  It is pure: the policy table is immutable after
construction, evaluation performs no I/O, and a rejected request is a normal
negative decision rather than an exception.  The HTTP layer decides what a
rejection means on the wire.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

import structlog

from flycors.cors.policy import CorsPolicy

logger = structlog.get_logger("flycors.cors")

ORIGIN = "Origin"
ACCESS_CONTROL_REQUEST_METHOD = "Access-Control-Request-Method"
ACCESS_CONTROL_REQUEST_HEADERS = "Access-Control-Request-Headers"
ACCESS_CONTROL_ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ACCESS_CONTROL_ALLOW_METHODS = "Access-Control-Allow-Methods"
ACCESS_CONTROL_ALLOW_HEADERS = "Access-Control-Allow-Headers"
ACCESS_CONTROL_ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
ACCESS_CONTROL_EXPOSE_HEADERS = "Access-Control-Expose-Headers"
ACCESS_CONTROL_MAX_AGE = "Access-Control-Max-Age"

VARY_HEADERS: tuple[str, ...] = (ORIGIN, ACCESS_CONTROL_REQUEST_METHOD, ACCESS_CONTROL_REQUEST_HEADERS)

_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443}


class RejectionReason(str, Enum):
    NO_POLICY = "no-policy"
    ORIGIN_NOT_ALLOWED = "origin-not-allowed"
    METHOD_NOT_ALLOWED = "method-not-allowed"
    HEADERS_NOT_ALLOWED = "headers-not-allowed"


def _split_header_list(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _origin_key(origin: str) -> tuple[str, str, int | None] | None:
    try:
        parts = urlsplit(origin.strip().rstrip("/").lower())
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    return parts.scheme, parts.hostname, port or _DEFAULT_PORTS.get(parts.scheme)


def is_same_origin(origin: str, host_origin: str) -> bool:
    """Compare two origins by scheme, host and effective port."""
    left = _origin_key(origin)
    return left is not None and left == _origin_key(host_origin)


@dataclass(frozen=True)
class CorsRequest:
    """The request metadata CORS evaluation depends on.

    Attributes:
        path: Request path, e.g. ``/api/orders``.
        method: HTTP method of the request itself.
        origin: ``Origin`` header, ``None`` when absent.
        request_method: ``Access-Control-Request-Method`` (preflight only).
        request_headers: Parsed ``Access-Control-Request-Headers``.
        host_origin: The server's own ``scheme://host[:port]`` when known;
            an ``Origin`` equal to it is treated as same-origin.
    """

    path: str
    method: str = "GET"
    origin: str | None = None
    request_method: str | None = None
    request_headers: tuple[str, ...] = ()
    host_origin: str | None = None

    @classmethod
    def from_headers(
        cls,
        path: str,
        method: str,
        headers: Mapping[str, str],
        host_origin: str | None = None,
    ) -> CorsRequest:
        """Build a request from a case-insensitive header mapping."""
        return cls(
            path=path,
            method=method.upper(),
            origin=headers.get(ORIGIN) or None,
            request_method=headers.get(ACCESS_CONTROL_REQUEST_METHOD) or None,
            request_headers=_split_header_list(headers.get(ACCESS_CONTROL_REQUEST_HEADERS)),
            host_origin=host_origin,
        )

    @property
    def is_preflight(self) -> bool:
        return self.method.upper() == "OPTIONS" and self.origin is not None and self.request_method is not None

    @property
    def is_same_origin(self) -> bool:
        return self.origin is not None and self.host_origin is not None and is_same_origin(self.origin, self.host_origin)


@dataclass(frozen=True)
class CorsDecision:
    """Outcome of evaluating one request against the policy table.

    ``allowed`` with no ``echoed_origin`` means "proceed without CORS headers"
    (same-origin or non-browser request).
    """

    allowed: bool
    echoed_origin: str | None = None
    allowed_methods_header: tuple[str, ...] = ()
    allow_credentials_header: bool = False
    allowed_headers_header: tuple[str, ...] = ()
    exposed_headers: tuple[str, ...] = ()
    max_age: int | None = None
    preflight: bool = False
    policy: CorsPolicy | None = None
    reason: RejectionReason | None = None

    @classmethod
    def rejected(
        cls,
        reason: RejectionReason,
        policy: CorsPolicy | None = None,
        preflight: bool = False,
    ) -> CorsDecision:
        return cls(allowed=False, policy=policy, preflight=preflight, reason=reason)

    @property
    def vary_headers(self) -> tuple[str, ...]:
        """Header names to add to ``Vary``; the response depends on them whenever a policy applies."""
        return VARY_HEADERS if self.policy is not None else ()

    def to_headers(self) -> dict[str, str]:
        """Render the outbound CORS response headers (empty when none are due)."""
        if not self.allowed or self.echoed_origin is None:
            return {}

        headers = {ACCESS_CONTROL_ALLOW_ORIGIN: self.echoed_origin}
        if self.allowed_methods_header:
            headers[ACCESS_CONTROL_ALLOW_METHODS] = ", ".join(self.allowed_methods_header)
        if self.allow_credentials_header:
            headers[ACCESS_CONTROL_ALLOW_CREDENTIALS] = "true"
        if self.preflight:
            if self.allowed_headers_header:
                headers[ACCESS_CONTROL_ALLOW_HEADERS] = ", ".join(self.allowed_headers_header)
            if self.max_age is not None:
                headers[ACCESS_CONTROL_MAX_AGE] = str(self.max_age)
        elif self.exposed_headers:
            headers[ACCESS_CONTROL_EXPOSE_HEADERS] = ", ".join(self.exposed_headers)
        return headers


class CorsPolicyProvider:
    """Evaluates requests against an ordered, immutable table of :class:`CorsPolicy`.

    The first policy whose path pattern matches the request path applies.
    Safe to share between threads and event loops.
    """

    def __init__(self, policies: Iterable[CorsPolicy] = ()) -> None:
        self._policies: tuple[CorsPolicy, ...] = tuple(policies)

    @property
    def policies(self) -> tuple[CorsPolicy, ...]:
        return self._policies

    def find_policy(self, path: str) -> CorsPolicy | None:
        for policy in self._policies:
            if policy.matches_path(path):
                return policy
        return None

    def evaluate(self, request: CorsRequest) -> CorsDecision:
        preflight = request.is_preflight

        policy = self.find_policy(request.path)
        if policy is None:
            return CorsDecision.rejected(RejectionReason.NO_POLICY, preflight=preflight)

        if request.origin is None or request.is_same_origin:
            return CorsDecision(allowed=True, policy=policy)

        echoed_origin = policy.check_origin(request.origin)
        if echoed_origin is None:
            logger.debug(
                "cors_origin_rejected",
                origin=request.origin,
                path=request.path,
                path_pattern=policy.path_pattern,
            )
            return CorsDecision.rejected(RejectionReason.ORIGIN_NOT_ALLOWED, policy, preflight)

        method = request.request_method if preflight else request.method
        methods = policy.check_method(method)
        if methods is None:
            if preflight:
                logger.debug("cors_method_rejected", origin=request.origin, method=method, path=request.path)
                return CorsDecision.rejected(RejectionReason.METHOD_NOT_ALLOWED, policy, preflight)
            # The handler's own routing answers 405 for a disallowed method.
            methods = tuple(policy.allowed_methods)

        allowed_headers: tuple[str, ...] = ()
        if preflight:
            checked = policy.check_headers(request.request_headers)
            if checked is None:
                logger.debug(
                    "cors_headers_rejected",
                    origin=request.origin,
                    requested=list(request.request_headers),
                    path=request.path,
                )
                return CorsDecision.rejected(RejectionReason.HEADERS_NOT_ALLOWED, policy, preflight)
            allowed_headers = checked

        return CorsDecision(
            allowed=True,
            echoed_origin=echoed_origin,
            allowed_methods_header=methods,
            allow_credentials_header=policy.allow_credentials,
            allowed_headers_header=allowed_headers,
            exposed_headers=tuple(policy.exposed_headers),
            max_age=policy.max_age if preflight else None,
            preflight=preflight,
            policy=policy,
        )
