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
"""Fluent CORS mapping registration.

Usage::

    registry = CorsRegistry()
    (
        registry.add_mapping("/**")
        .allowed_origin_patterns("http://localhost*", "https://shop.example.com*")
        .allowed_methods("GET", "POST", "PUT", "DELETE", "HEAD")
        .allow_credentials(True)
    )
    provider = registry.provider()

Mappings left partly configured get permissive defaults: methods
``GET, HEAD, POST``, any request header, a 1800 second max age, and any
origin when neither literal origins nor origin patterns are given.
"""

from __future__ import annotations

from flycors.cors.policy import ALL, DEFAULT_ALLOWED_METHODS, DEFAULT_MAX_AGE, CorsPolicy
from flycors.cors.processor import CorsPolicyProvider


class CorsRegistration:
    """Builder for a single path mapping; every setter returns ``self``."""

    def __init__(self, path_pattern: str) -> None:
        self._path_pattern = path_pattern
        self._origins: list[str] | None = None
        self._origin_patterns: list[str] | None = None
        self._methods: list[str] = list(DEFAULT_ALLOWED_METHODS)
        self._headers: list[str] = [ALL]
        self._exposed: list[str] = []
        self._credentials = False
        self._max_age = DEFAULT_MAX_AGE

    @property
    def path_pattern(self) -> str:
        return self._path_pattern

    def allowed_origins(self, *origins: str) -> CorsRegistration:
        self._origins = list(origins)
        return self

    def allowed_origin_patterns(self, *patterns: str) -> CorsRegistration:
        self._origin_patterns = list(patterns)
        return self

    def allowed_methods(self, *methods: str) -> CorsRegistration:
        self._methods = list(methods)
        return self

    def allowed_headers(self, *headers: str) -> CorsRegistration:
        self._headers = list(headers)
        return self

    def exposed_headers(self, *headers: str) -> CorsRegistration:
        self._exposed = list(headers)
        return self

    def allow_credentials(self, allow: bool = True) -> CorsRegistration:
        self._credentials = allow
        return self

    def max_age(self, seconds: int) -> CorsRegistration:
        self._max_age = seconds
        return self

    def to_policy(self) -> CorsPolicy:
        """Validate and freeze this mapping; raises ``CorsConfigurationException`` if invalid."""
        origins = self._origins
        if origins is None and self._origin_patterns is None:
            origins = [ALL]
        return CorsPolicy(
            path_pattern=self._path_pattern,
            allowed_origin_patterns=tuple(self._origin_patterns or ()),
            allowed_methods=tuple(self._methods),
            allow_credentials=self._credentials,
            allowed_origins=tuple(origins or ()),
            allowed_headers=tuple(self._headers),
            exposed_headers=tuple(self._exposed),
            max_age=self._max_age,
        )


class CorsRegistry:
    """Collects :class:`CorsRegistration` mappings in registration order."""

    def __init__(self) -> None:
        self._registrations: list[CorsRegistration] = []

    def add_mapping(self, path_pattern: str) -> CorsRegistration:
        registration = CorsRegistration(path_pattern)
        self._registrations.append(registration)
        return registration

    def build(self) -> tuple[CorsPolicy, ...]:
        return tuple(r.to_policy() for r in self._registrations)

    def provider(self) -> CorsPolicyProvider:
        return CorsPolicyProvider(self.build())
