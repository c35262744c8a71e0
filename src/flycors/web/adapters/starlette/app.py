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
"""flycors web application factory built on Starlette."""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.routing import BaseRoute

from flycors.config.properties.cors import load_cors_policies
from flycors.config.properties.web import WebProperties
from flycors.core.config import Config
from flycors.cors.policy import CorsPolicy
from flycors.cors.processor import CorsPolicyProvider
from flycors.logging.structlog_adapter import StructlogAdapter
from flycors.web.adapters.starlette.errors import global_exception_handler
from flycors.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from flycors.web.adapters.starlette.filters import (
    CorsFilter,
    RequestLoggingFilter,
    TransactionIdFilter,
)
from flycors.web.ports.filter import WebFilter

logger = structlog.get_logger("flycors.web")


def create_app(
    debug: bool = False,
    cors: CorsPolicyProvider | Sequence[CorsPolicy] | None = None,
    filters: Sequence[WebFilter] = (),
    extra_routes: Sequence[BaseRoute] | None = None,
    lifespan: object | None = None,
) -> Starlette:
    """Create a Starlette application with the flycors filter chain.

    Includes:
    - WebFilter chain (transaction ID, request logging, CORS when ``cors`` is given,
      plus any user ``filters``), sorted by ``@order``
    - Global exception handler (structured JSON), also applied inside the
      chain so error responses still carry CORS and transaction headers

    ``cors`` may be a ready :class:`CorsPolicyProvider` or a sequence of
    policies; the provider is exposed as ``app.state.cors_provider``.
    """
    chain: list[WebFilter] = [TransactionIdFilter(), RequestLoggingFilter()]

    provider: CorsPolicyProvider | None = None
    if cors is not None:
        provider = cors if isinstance(cors, CorsPolicyProvider) else CorsPolicyProvider(cors)
        chain.append(CorsFilter(provider))

    chain.extend(filters)

    app = Starlette(
        debug=debug,
        middleware=[
            Middleware(WebFilterChainMiddleware, filters=chain, exception_handler=global_exception_handler),
        ],
        routes=list(extra_routes or []),
        lifespan=lifespan,  # type: ignore[arg-type]
    )
    app.state.cors_provider = provider

    app.add_exception_handler(HTTPException, global_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)

    return app


def create_app_from_config(
    config: Config,
    filters: Sequence[WebFilter] = (),
    extra_routes: Sequence[BaseRoute] | None = None,
    lifespan: object | None = None,
) -> Starlette:
    """Configure logging, build the CORS policy table from ``config``, and create the app.

    Raises:
        CorsConfigurationException: If the CORS configuration is invalid.
    """
    StructlogAdapter().configure(config)

    web = config.bind(WebProperties)
    policies = load_cors_policies(config)
    logger.info(
        "cors_policies_loaded",
        count=len(policies),
        path_patterns=[p.path_pattern for p in policies],
        sources=config.loaded_sources,
    )

    return create_app(
        debug=web.debug,
        cors=policies if policies else None,
        filters=filters,
        extra_routes=extra_routes,
        lifespan=lifespan,
    )
