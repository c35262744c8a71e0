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
"""Transaction ID filter — propagates or generates X-Transaction-Id.

The id and the request ``Origin`` are bound to the structlog context, so
every event logged while handling the request (CORS rejections included)
can be correlated with the caller.  Incoming ids that are not short
``[A-Za-z0-9._-]`` tokens are replaced rather than echoed.
"""

from __future__ import annotations

import re
import uuid
from typing import cast

import structlog
from starlette.requests import Request
from starlette.responses import Response

from flycors.container.ordering import HIGHEST_PRECEDENCE, order
from flycors.web.filters import OncePerRequestFilter
from flycors.web.ports.filter import CallNext

TRANSACTION_ID_HEADER = "X-Transaction-Id"

_VALID_ID = re.compile(r"[A-Za-z0-9._-]{1,128}")


def resolve_transaction_id(header_value: str | None) -> str:
    if header_value and _VALID_ID.fullmatch(header_value):
        return header_value
    return str(uuid.uuid4())


@order(HIGHEST_PRECEDENCE + 100)
class TransactionIdFilter(OncePerRequestFilter):
    """Injects or propagates ``X-Transaction-Id`` and binds it to the log context."""

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        tx_id = resolve_transaction_id(request.headers.get(TRANSACTION_ID_HEADER))
        request.state.transaction_id = tx_id
        with structlog.contextvars.bound_contextvars(transaction_id=tx_id, origin=request.headers.get("Origin")):
            response = cast(Response, await call_next(request))
        response.headers[TRANSACTION_ID_HEADER] = tx_id
        return response
