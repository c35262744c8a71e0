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
"""Unified exception hierarchy for flycors.

All flycors exceptions inherit from FlyCorsException, enabling unified
error handling across modules.

Categories:
- ConfigurationException: invalid or unresolvable configuration, raised at startup
- CorsConfigurationException: CORS policy definitions that would produce an
  insecure or meaningless header combination

A rejected cross-origin request is *not* an exception; it is reported as a
negative :class:`~flycors.cors.processor.CorsDecision`.
"""

from __future__ import annotations


class FlyCorsException(Exception):
    """Base exception for all flycors errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CORS_CREDENTIALS_WILDCARD").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


class ConfigurationException(FlyCorsException):
    """Configuration could not be loaded, resolved, or bound."""


class CorsConfigurationException(ConfigurationException):
    """A CORS policy definition is invalid and was rejected at startup."""
