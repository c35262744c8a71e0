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
"""Global exception handler — structured JSON error responses."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import structlog
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from flycors.kernel.exceptions import ConfigurationException, FlyCorsException

logger = structlog.get_logger("flycors.web")

_STATUS_MAP: dict[type, int] = {
    ConfigurationException: 500,
}


def _get_status_code(exc: Exception) -> int:
    if isinstance(exc, HTTPException):
        return exc.status_code
    for exc_type, status in _STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return status
    return 500


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any exception as ``{"error": {...}}`` with the request's transaction id."""
    transaction_id = getattr(request.state, "transaction_id", None) or str(uuid.uuid4())
    timestamp = datetime.now(UTC).isoformat()
    status = _get_status_code(exc)

    if isinstance(exc, HTTPException):
        message, code = exc.detail, f"HTTP_{status}"
    elif isinstance(exc, FlyCorsException):
        message, code = str(exc), exc.code or type(exc).__name__
    else:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
            transaction_id=transaction_id,
        )
        message, code = "Internal server error", "INTERNAL_ERROR"

    body: dict[str, Any] = {
        "error": {
            "message": message,
            "code": code,
            "transaction_id": transaction_id,
            "timestamp": timestamp,
            "status": status,
            "path": request.url.path,
        }
    }
    if isinstance(exc, FlyCorsException) and exc.context:
        body["error"]["context"] = exc.context

    headers = exc.headers if isinstance(exc, HTTPException) else None
    return JSONResponse(body, status_code=status, headers=headers)
