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
"""CORS configuration properties (flycors.web.cors.*).

Example ``flycors.yaml``::

    flycors:
      web:
        cors:
          mappings:
            - path_pattern: "/api/**"
              allowed_origin_patterns: "${CORS_ORIGINS:http://localhost*}"
              allowed_methods: [GET, POST]
              allow_credentials: true

List fields also accept a comma-separated string, so one environment
variable can carry several origins through a ``${...}`` placeholder.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from flycors.core.config import Config, config_properties
from flycors.cors.policy import CorsPolicy
from flycors.cors.registry import CorsRegistry
from flycors.kernel.exceptions import CorsConfigurationException


class CorsMappingProperties(BaseModel):
    """One entry of ``flycors.web.cors.mappings``."""

    path_pattern: str = "/**"
    allowed_origins: list[str] | None = None
    allowed_origin_patterns: list[str] | None = None
    allowed_methods: list[str] = Field(default_factory=lambda: ["GET", "HEAD", "POST"])
    allowed_headers: list[str] = Field(default_factory=lambda: ["*"])
    exposed_headers: list[str] = Field(default_factory=list)
    allow_credentials: bool = False
    max_age: int = Field(default=1800, ge=0)

    @field_validator(
        "allowed_origins",
        "allowed_origin_patterns",
        "allowed_methods",
        "allowed_headers",
        "exposed_headers",
        mode="before",
    )
    @classmethod
    def _split_comma_separated(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


@config_properties(prefix="flycors.web.cors")
class CorsProperties(BaseModel):
    """Configuration for CORS handling (flycors.web.cors.*)."""

    enabled: bool = True
    mappings: list[CorsMappingProperties] = Field(default_factory=list)

    def to_registry(self) -> CorsRegistry:
        registry = CorsRegistry()
        for mapping in self.mappings:
            registration = (
                registry.add_mapping(mapping.path_pattern)
                .allowed_methods(*mapping.allowed_methods)
                .allowed_headers(*mapping.allowed_headers)
                .exposed_headers(*mapping.exposed_headers)
                .allow_credentials(mapping.allow_credentials)
                .max_age(mapping.max_age)
            )
            if mapping.allowed_origins is not None:
                registration.allowed_origins(*mapping.allowed_origins)
            if mapping.allowed_origin_patterns is not None:
                registration.allowed_origin_patterns(*mapping.allowed_origin_patterns)
        return registry


def load_cors_policies(config: Config) -> tuple[CorsPolicy, ...]:
    """Bind ``flycors.web.cors`` and build the validated policy table.

    Returns an empty tuple when CORS handling is disabled.

    Raises:
        CorsConfigurationException: If the section does not validate or a
            mapping describes an invalid policy.
    """
    try:
        properties = config.bind(CorsProperties)
    except ValueError as exc:
        raise CorsConfigurationException(str(exc), code="CORS_PROPERTIES") from exc

    if not properties.enabled:
        return ()
    return properties.to_registry().build()
