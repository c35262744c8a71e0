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
"""Tests for built-in WebFilter implementations (transaction_id, logging)."""

from __future__ import annotations

import structlog
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from flycors.container.ordering import HIGHEST_PRECEDENCE, get_order
from flycors.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from flycors.web.adapters.starlette.filters import RequestLoggingFilter, TransactionIdFilter

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _ok_handler(request: Request) -> PlainTextResponse:
    return PlainTextResponse("OK")


async def _tx_id_handler(request: Request) -> PlainTextResponse:
    """Echo back the transaction_id from request state."""
    tx_id = getattr(request.state, "transaction_id", "missing")
    return PlainTextResponse(tx_id)


async def _error_handler(request: Request) -> PlainTextResponse:
    raise ValueError("boom")


def _make_app(*filters, routes=None) -> Starlette:
    if routes is None:
        routes = [Route("/test", _ok_handler)]
    return Starlette(
        routes=routes,
        middleware=[Middleware(WebFilterChainMiddleware, filters=list(filters))],
    )


# ---------------------------------------------------------------------------
# TransactionIdFilter
# ---------------------------------------------------------------------------


class TestTransactionIdFilter:
    def test_generates_transaction_id(self):
        client = TestClient(_make_app(TransactionIdFilter()))
        resp = client.get("/test")
        assert resp.status_code == 200
        # UUID format
        assert len(resp.headers["X-Transaction-Id"]) == 36

    def test_propagates_existing_transaction_id(self):
        client = TestClient(_make_app(TransactionIdFilter()))
        resp = client.get("/test", headers={"X-Transaction-Id": "custom-123"})
        assert resp.headers["X-Transaction-Id"] == "custom-123"

    def test_malformed_transaction_id_replaced(self):
        client = TestClient(_make_app(TransactionIdFilter()))
        resp = client.get("/test", headers={"X-Transaction-Id": "not a valid id!"})
        assert resp.headers["X-Transaction-Id"] != "not a valid id!"
        assert len(resp.headers["X-Transaction-Id"]) == 36

    def test_binds_origin_to_log_context(self):
        seen: dict = {}

        async def _capture(request: Request) -> PlainTextResponse:
            seen.update(structlog.contextvars.get_contextvars())
            return PlainTextResponse("OK")

        app = _make_app(TransactionIdFilter(), routes=[Route("/test", _capture)])
        TestClient(app).get("/test", headers={"Origin": "http://localhost:3000", "X-Transaction-Id": "tx-1"})
        assert seen == {"transaction_id": "tx-1", "origin": "http://localhost:3000"}

    def test_sets_request_state(self):
        app = _make_app(TransactionIdFilter(), routes=[Route("/test", _tx_id_handler)])
        resp = TestClient(app).get("/test", headers={"X-Transaction-Id": "my-id"})
        assert resp.text == "my-id"

    def test_order_is_highest_precedence_plus_100(self):
        assert get_order(TransactionIdFilter) == HIGHEST_PRECEDENCE + 100


# ---------------------------------------------------------------------------
# RequestLoggingFilter
# ---------------------------------------------------------------------------


class TestRequestLoggingFilter:
    def test_passes_through(self):
        resp = TestClient(_make_app(RequestLoggingFilter())).get("/test", headers={"Origin": "http://localhost:3000"})
        assert resp.status_code == 200
        assert resp.text == "OK"

    def test_propagates_exceptions(self):
        app = _make_app(RequestLoggingFilter(), routes=[Route("/test", _error_handler)])
        resp = TestClient(app, raise_server_exceptions=False).get("/test")
        assert resp.status_code == 500

    def test_order_is_highest_precedence_plus_200(self):
        assert get_order(RequestLoggingFilter) == HIGHEST_PRECEDENCE + 200
