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
"""Error responses for the Starlette adapter.

CSRF rejections are answered with a fixed message and code: the actual
reason is only logged so that the response gives nothing away to someone
probing the protection.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from csrfguard.kernel.exceptions import (
    ConfigurationException,
    CsrfException,
    CsrfGuardException,
    SecurityException,
)

CSRF_ERROR_MESSAGE = "CSRF Error"
CSRF_ERROR_CODE = "CSRF_ERROR"

_STATUS_MAP: dict[type, int] = {
    CsrfException: 400,
    SecurityException: 403,
    ConfigurationException: 500,
}


def _status_for(exc: Exception) -> int:
    # _STATUS_MAP lists subclasses before their bases
    return next((status for exc_type, status in _STATUS_MAP.items() if isinstance(exc, exc_type)), 500)


def _error_body(request: Request, status: int, message: str, code: str) -> dict[str, Any]:
    return {
        "error": {
            "message": message,
            "code": code,
            "transaction_id": getattr(request.state, "transaction_id", str(uuid.uuid4())),
            "timestamp": datetime.now(UTC).isoformat(),
            "status": status,
            "path": request.url.path,
        }
    }


def csrf_error_response(request: Request) -> JSONResponse:
    """The 400 answer to a rejected request, identical for every reason."""
    return JSONResponse(
        _error_body(request, 400, CSRF_ERROR_MESSAGE, CSRF_ERROR_CODE),
        status_code=400,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """JSON error body for csrfguard exceptions; 5xx details stay server-side."""
    if isinstance(exc, CsrfException):
        return csrf_error_response(request)

    status = _status_for(exc)
    if isinstance(exc, CsrfGuardException) and status < 500:
        body = _error_body(request, status, str(exc), exc.code or type(exc).__name__)
        if exc.context:
            body["error"]["context"] = exc.context
    else:
        body = _error_body(request, status, "Internal server error", "INTERNAL_ERROR")

    return JSONResponse(body, status_code=status)
