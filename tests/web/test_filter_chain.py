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
"""Tests for WebFilterChainMiddleware — ordering, short-circuit, conditional skip."""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from flycors.container.ordering import HIGHEST_PRECEDENCE, get_order, order
from flycors.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from flycors.web.filters import OncePerRequestFilter, compile_patterns
from flycors.web.ports.filter import WebFilter

# ---------------------------------------------------------------------------
# Test filters
# ---------------------------------------------------------------------------


@order(HIGHEST_PRECEDENCE + 10)
class OuterFilter(OncePerRequestFilter):
    """Records its position in X-Trace; runs first."""

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Trace"] = "outer," + response.headers.get("X-Trace", "")
        return response


@order(HIGHEST_PRECEDENCE + 20)
class InnerFilter(OncePerRequestFilter):
    """Records its position in X-Trace; runs after OuterFilter."""

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Trace"] = "inner"
        return response


@order(5)
class ApiOnlyFilter(OncePerRequestFilter):
    """Only applies to /api/** paths, except /api/internal/**."""

    url_patterns = ["/api/**"]
    exclude_patterns = ["/api/internal/**"]

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Api-Filter"] = "applied"
        return response


@order(10)
class ShortCircuitFilter(OncePerRequestFilter):
    """Returns 403 without calling next."""

    async def do_filter(self, request, call_next):
        return JSONResponse({"error": "blocked"}, status_code=403)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _ok_handler(request: Request) -> PlainTextResponse:
    return PlainTextResponse("OK", headers={"X-Handler": "yes"})


async def _failing_handler(request: Request) -> PlainTextResponse:
    raise RuntimeError("boom")


async def _render_error(request: Request, exc: Exception) -> PlainTextResponse:
    return PlainTextResponse(f"rendered {type(exc).__name__}", status_code=500)


def _make_app(*filters) -> Starlette:
    return Starlette(
        routes=[
            Route("/test", _ok_handler),
            Route("/api/orders", _ok_handler),
            Route("/api/internal/stats", _ok_handler),
        ],
        middleware=[Middleware(WebFilterChainMiddleware, filters=list(filters))],
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestFilterChainOrdering:
    def test_filters_sorted_by_order_not_registration(self):
        client = TestClient(_make_app(InnerFilter(), OuterFilter()))
        resp = client.get("/test")
        assert resp.status_code == 200
        assert resp.headers["X-Trace"] == "outer,inner"

    def test_filters_property_is_sorted(self):
        middleware = WebFilterChainMiddleware(app=None, filters=[InnerFilter(), OuterFilter()])  # type: ignore[arg-type]
        assert [type(f) for f in middleware.filters] == [OuterFilter, InnerFilter]

    def test_order_decorator_values(self):
        assert get_order(OuterFilter) < get_order(InnerFilter) < get_order(ApiOnlyFilter)


class TestFilterChainConditionalSkip:
    def test_url_pattern_applies_to_matching_path(self):
        resp = TestClient(_make_app(ApiOnlyFilter())).get("/api/orders")
        assert resp.headers.get("X-Api-Filter") == "applied"

    def test_url_pattern_skips_other_path(self):
        resp = TestClient(_make_app(ApiOnlyFilter())).get("/test")
        assert "X-Api-Filter" not in resp.headers

    def test_exclude_pattern_wins(self):
        resp = TestClient(_make_app(ApiOnlyFilter())).get("/api/internal/stats")
        assert "X-Api-Filter" not in resp.headers


class TestFilterChainShortCircuit:
    def test_short_circuit_skips_handler(self):
        resp = TestClient(_make_app(ShortCircuitFilter())).get("/test")
        assert resp.status_code == 403
        assert resp.json() == {"error": "blocked"}
        assert "X-Handler" not in resp.headers


class TestFilterChainPassThrough:
    def test_handler_headers_preserved(self):
        resp = TestClient(_make_app()).get("/test")
        assert resp.text == "OK"
        assert resp.headers["X-Handler"] == "yes"


class TestWebFilterProtocol:
    def test_once_per_request_filter_satisfies_protocol(self):
        assert isinstance(OuterFilter(), WebFilter)


class TestExceptionRendering:
    def _app(self, exception_handler=None) -> Starlette:
        return Starlette(
            routes=[Route("/fail", _failing_handler)],
            middleware=[
                Middleware(
                    WebFilterChainMiddleware,
                    filters=[OuterFilter(), InnerFilter()],
                    exception_handler=exception_handler,
                )
            ],
        )

    def test_rendered_error_passes_through_filters(self):
        resp = TestClient(self._app(_render_error)).get("/fail")
        assert resp.status_code == 500
        assert resp.text == "rendered RuntimeError"
        assert resp.headers["X-Trace"] == "outer,inner"

    def test_without_handler_exception_propagates(self):
        resp = TestClient(self._app(), raise_server_exceptions=False).get("/fail")
        assert resp.status_code == 500
        assert "X-Trace" not in resp.headers


class TestPatternCompilation:
    def test_patterns_compiled_once(self):
        compile_patterns.cache_clear()
        client = TestClient(_make_app(ApiOnlyFilter()))
        for _ in range(3):
            client.get("/api/orders")
            client.get("/api/internal/stats")

        info = compile_patterns.cache_info()
        assert info.misses == 2
        assert info.hits >= 8
