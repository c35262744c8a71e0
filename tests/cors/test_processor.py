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
"""Tests for CorsPolicyProvider decisions and CorsDecision header rendering."""

from __future__ import annotations

import pytest

from flycors.cors.policy import CorsPolicy
from flycors.cors.processor import (
    VARY_HEADERS,
    CorsDecision,
    CorsPolicyProvider,
    CorsRequest,
    RejectionReason,
    is_same_origin,
)

ORDER_POLICY = CorsPolicy(
    path_pattern="/**",
    allowed_origin_patterns=(
        "http://localhost*",
        "https://splendid-madeleine-fb22ef.netlify.app*",
        "https://shop-client-c7tr.vercel.app*",
    ),
    allowed_methods=("GET", "POST", "PUT", "DELETE", "HEAD"),
    allow_credentials=True,
)


@pytest.fixture
def provider() -> CorsPolicyProvider:
    return CorsPolicyProvider([ORDER_POLICY])


def _preflight(method: str, origin: str = "http://localhost:3000", headers: tuple[str, ...] = ()) -> CorsRequest:
    return CorsRequest(
        path="/api/orders",
        method="OPTIONS",
        origin=origin,
        request_method=method,
        request_headers=headers,
    )


class TestCorsRequest:
    def test_from_headers(self):
        request = CorsRequest.from_headers(
            path="/api/orders",
            method="options",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, authorization,",
            },
        )
        assert request.method == "OPTIONS"
        assert request.origin == "http://localhost:3000"
        assert request.request_method == "POST"
        assert request.request_headers == ("content-type", "authorization")
        assert request.is_preflight

    def test_options_without_request_method_is_not_preflight(self):
        request = CorsRequest(path="/", method="OPTIONS", origin="http://localhost:3000")
        assert not request.is_preflight

    def test_options_without_origin_is_not_preflight(self):
        request = CorsRequest(path="/", method="OPTIONS", request_method="GET")
        assert not request.is_preflight

    def test_same_origin_detection(self):
        request = CorsRequest(path="/", origin="http://api.shop.test", host_origin="http://api.shop.test:80")
        assert request.is_same_origin

    def test_is_same_origin_helper(self):
        assert is_same_origin("https://shop.test", "https://shop.test:443")
        assert not is_same_origin("https://shop.test", "http://shop.test")
        assert not is_same_origin("null", "http://shop.test")


class TestPathScope:
    def test_no_matching_policy(self):
        provider = CorsPolicyProvider([CorsPolicy(path_pattern="/api/**", allowed_origins=["https://a.test"])])
        decision = provider.evaluate(CorsRequest(path="/health", origin="https://a.test"))
        assert decision.allowed is False
        assert decision.reason is RejectionReason.NO_POLICY
        assert decision.policy is None
        assert decision.to_headers() == {}
        assert decision.vary_headers == ()

    def test_first_matching_policy_wins(self):
        api = CorsPolicy(path_pattern="/api/**", allowed_origins=["https://api-client.test"])
        fallback = CorsPolicy(path_pattern="/**", allowed_origins=["https://other.test"])
        provider = CorsPolicyProvider([api, fallback])
        assert provider.find_policy("/api/orders") is api
        assert provider.find_policy("/health") is fallback
        decision = provider.evaluate(CorsRequest(path="/api/orders", origin="https://other.test"))
        assert decision.allowed is False
        assert decision.reason is RejectionReason.ORIGIN_NOT_ALLOWED

    def test_empty_provider(self):
        decision = CorsPolicyProvider().evaluate(CorsRequest(path="/", origin="https://a.test"))
        assert decision.allowed is False


class TestMissingOrigin:
    def test_absent_origin_allowed_without_headers(self, provider):
        decision = provider.evaluate(CorsRequest(path="/api/orders", method="GET"))
        assert decision.allowed is True
        assert decision.echoed_origin is None
        assert decision.to_headers() == {}
        assert decision.vary_headers == VARY_HEADERS

    def test_same_origin_allowed_without_headers(self, provider):
        decision = provider.evaluate(
            CorsRequest(path="/api/orders", origin="https://orders.test", host_origin="https://orders.test")
        )
        assert decision.allowed is True
        assert decision.to_headers() == {}


class TestSimpleRequests:
    def test_localhost_get_scenario(self, provider):
        decision = provider.evaluate(CorsRequest(path="/api/orders", method="GET", origin="http://localhost:3000"))
        assert decision.allowed is True
        assert decision.echoed_origin == "http://localhost:3000"
        assert "GET" in decision.allowed_methods_header
        assert decision.allow_credentials_header is True
        assert decision.preflight is False

        headers = decision.to_headers()
        assert headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
        assert "GET" in headers["Access-Control-Allow-Methods"]
        assert headers["Access-Control-Allow-Credentials"] == "true"
        assert "Access-Control-Max-Age" not in headers

    def test_evil_origin_scenario(self, provider):
        decision = provider.evaluate(CorsRequest(path="/api/orders", method="GET", origin="https://evil.example.com"))
        assert decision.allowed is False
        assert decision.reason is RejectionReason.ORIGIN_NOT_ALLOWED
        assert "Access-Control-Allow-Origin" not in decision.to_headers()
        assert decision.vary_headers == VARY_HEADERS

    @pytest.mark.parametrize(
        "origin",
        [
            "http://localhost",
            "http://localhost:8080",
            "https://splendid-madeleine-fb22ef.netlify.app",
            "https://shop-client-c7tr.vercel.app",
        ],
    )
    def test_matching_origins_echoed_never_star(self, provider, origin):
        decision = provider.evaluate(CorsRequest(path="/api/orders/7", method="POST", origin=origin))
        assert decision.allowed is True
        assert decision.echoed_origin == origin
        assert decision.echoed_origin != "*"

    def test_disallowed_method_on_simple_request_keeps_headers(self, provider):
        decision = provider.evaluate(CorsRequest(path="/api/orders", method="PATCH", origin="http://localhost:3000"))
        assert decision.allowed is True
        assert decision.allowed_methods_header == ("GET", "POST", "PUT", "DELETE", "HEAD")

    def test_exposed_headers_on_actual_request(self):
        provider = CorsPolicyProvider(
            [CorsPolicy(allowed_origins=["https://a.test"], exposed_headers=["X-Total-Count"])]
        )
        headers = provider.evaluate(CorsRequest(path="/", origin="https://a.test")).to_headers()
        assert headers["Access-Control-Expose-Headers"] == "X-Total-Count"
        assert "Access-Control-Allow-Credentials" not in headers

    def test_wildcard_origin_without_credentials(self):
        provider = CorsPolicyProvider([CorsPolicy(allowed_origins=["*"])])
        decision = provider.evaluate(CorsRequest(path="/", origin="https://anyone.test"))
        assert decision.echoed_origin == "*"
        assert decision.allow_credentials_header is False


class TestPreflight:
    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE", "HEAD"])
    def test_allowed_methods(self, provider, method):
        decision = provider.evaluate(_preflight(method))
        assert decision.allowed is True
        assert decision.preflight is True
        assert decision.max_age == 1800

    def test_patch_rejected(self, provider):
        decision = provider.evaluate(_preflight("PATCH"))
        assert decision.allowed is False
        assert decision.preflight is True
        assert decision.reason is RejectionReason.METHOD_NOT_ALLOWED
        assert decision.to_headers() == {}

    def test_preflight_headers(self, provider):
        decision = provider.evaluate(_preflight("PUT", headers=("Content-Type", "Authorization")))
        headers = decision.to_headers()
        assert headers == {
            "Access-Control-Allow-Origin": "http://localhost:3000",
            "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, HEAD",
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Headers": "Content-Type, Authorization",
            "Access-Control-Max-Age": "1800",
        }

    def test_unlisted_request_header_rejected(self):
        provider = CorsPolicyProvider(
            [CorsPolicy(allowed_origins=["https://a.test"], allowed_headers=["Content-Type"])]
        )
        decision = provider.evaluate(_preflight("GET", origin="https://a.test", headers=("X-Debug",)))
        assert decision.allowed is False
        assert decision.reason is RejectionReason.HEADERS_NOT_ALLOWED

    def test_preflight_from_unknown_origin(self, provider):
        decision = provider.evaluate(_preflight("GET", origin="https://evil.example.com"))
        assert decision.allowed is False
        assert decision.reason is RejectionReason.ORIGIN_NOT_ALLOWED


class TestCorsDecision:
    def test_rejected_factory(self):
        decision = CorsDecision.rejected(RejectionReason.NO_POLICY)
        assert decision.allowed is False
        assert decision.reason is RejectionReason.NO_POLICY
        assert decision.to_headers() == {}
