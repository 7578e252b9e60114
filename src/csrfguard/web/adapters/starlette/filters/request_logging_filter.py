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
"""RequestLoggingFilter: one structured log line per request."""

from __future__ import annotations

import time
from typing import cast

import structlog
from starlette.requests import Request
from starlette.responses import Response

from csrfguard.web.filters import HIGHEST_PRECEDENCE, CallNext, OncePerRequestFilter

logger = structlog.get_logger("csrfguard.web")


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingFilter(OncePerRequestFilter):
    """Logs ``http_request`` with status and duration.

    Client errors (including CSRF rejections) are logged at warning, server
    errors at error.  A handler exception is logged as
    ``http_request_failed`` and re-raised.
    """

    order = HIGHEST_PRECEDENCE + 200

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        start = time.perf_counter()
        fields = {"method": request.method, "path": request.url.path}

        try:
            response = cast(Response, await call_next(request))
        except Exception as exc:
            logger.error("http_request_failed", **fields, duration_ms=_elapsed_ms(start), error_type=type(exc).__name__)
            raise

        status = response.status_code
        log = logger.error if status >= 500 else logger.warning if status >= 400 else logger.info
        log("http_request", **fields, status_code=status, duration_ms=_elapsed_ms(start))
        return response
