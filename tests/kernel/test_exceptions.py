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
"""Tests for the flycors exception hierarchy."""

from __future__ import annotations

import pytest

from flycors.kernel.exceptions import (
    ConfigurationException,
    CorsConfigurationException,
    FlyCorsException,
)


class TestFlyCorsException:
    def test_basic_creation(self):
        exc = FlyCorsException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_code_and_context(self):
        exc = FlyCorsException("bad policy", code="CORS_NO_METHODS", context={"path_pattern": "/**"})
        assert exc.code == "CORS_NO_METHODS"
        assert exc.context["path_pattern"] == "/**"

    def test_context_not_shared_between_instances(self):
        exc = FlyCorsException("a")
        exc.context["key"] = "value"
        assert FlyCorsException("b").context == {}


class TestExceptionHierarchy:
    def test_configuration_is_flycors(self):
        assert issubclass(ConfigurationException, FlyCorsException)

    def test_cors_configuration_is_configuration(self):
        assert issubclass(CorsConfigurationException, ConfigurationException)

    def test_catch_all(self):
        with pytest.raises(FlyCorsException):
            raise CorsConfigurationException("credentials with wildcard origin")
