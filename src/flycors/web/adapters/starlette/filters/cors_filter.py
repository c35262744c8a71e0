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
"""CORS filter — applies :class:`CorsPolicyProvider` decisions to HTTP traffic."""

from __future__ import annotations

from typing import cast

import structlog
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from flycors.container.ordering import HIGHEST_PRECEDENCE, order
from flycors.cors.processor import ACCESS_CONTROL_ALLOW_ORIGIN, CorsDecision, CorsPolicyProvider, CorsRequest
from flycors.web.filters import OncePerRequestFilter
from flycors.web.ports.filter import CallNext

logger = structlog.get_logger("flycors.web.cors")

INVALID_CORS_REQUEST = "Invalid CORS request"


def _apply(response: Response, decision: CorsDecision) -> None:
    for name in decision.vary_headers:
        response.headers.add_vary_header(name)
    if ACCESS_CONTROL_ALLOW_ORIGIN in response.headers:
        return
    for name, value in decision.to_headers().items():
        response.headers[name] = value


@order(HIGHEST_PRECEDENCE + 300)
class CorsFilter(OncePerRequestFilter):
    """Answers preflight requests and decorates actual responses with CORS headers.

    - Allowed preflight: ``200`` with the policy headers; the handler is not called.
    - Rejected preflight: ``403 Invalid CORS request`` without CORS headers.
    - Actual request: the handler runs; CORS headers are attached only when
      the origin is allowed, so the browser blocks the response otherwise.

    A response that already carries ``Access-Control-Allow-Origin`` is left alone.
    """

    def __init__(self, provider: CorsPolicyProvider) -> None:
        self._provider = provider

    @property
    def provider(self) -> CorsPolicyProvider:
        return self._provider

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        cors_request = CorsRequest.from_headers(
            path=request.url.path,
            method=request.method,
            headers=request.headers,
            host_origin=f"{request.url.scheme}://{request.url.netloc}",
        )
        decision = self._provider.evaluate(cors_request)

        if cors_request.is_preflight and not cors_request.is_same_origin and decision.policy is not None:
            if not decision.allowed:
                logger.info(
                    "cors_preflight_rejected",
                    origin=cors_request.origin,
                    path=cors_request.path,
                    request_method=cors_request.request_method,
                    reason=decision.reason.value if decision.reason else None,
                )
                response: Response = PlainTextResponse(INVALID_CORS_REQUEST, status_code=403)
                for name in decision.vary_headers:
                    response.headers.add_vary_header(name)
                return response

            logger.debug("cors_preflight", origin=cors_request.origin, path=cors_request.path)
            response = Response(status_code=200)
            _apply(response, decision)
            return response

        response = cast(Response, await call_next(request))

        if not decision.allowed and decision.policy is not None:
            logger.info(
                "cors_rejected",
                origin=cors_request.origin,
                path=cors_request.path,
                method=cors_request.method,
                reason=decision.reason.value if decision.reason else None,
            )
        if decision.policy is not None:
            _apply(response, decision)
        return response
