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
"""TransactionIdFilter: one id per request, echoed back and bound to the logs."""

from __future__ import annotations

import uuid
from typing import cast

import structlog
from starlette.requests import Request
from starlette.responses import Response

from csrfguard.web.filters import HIGHEST_PRECEDENCE, CallNext, OncePerRequestFilter

TRANSACTION_ID_HEADER = "X-Transaction-Id"
MAX_TRANSACTION_ID_LENGTH = 128


class TransactionIdFilter(OncePerRequestFilter):
    """Reuses the caller's ``X-Transaction-Id`` or mints a UUID4.

    The id is stored on ``request.state.transaction_id`` (CSRF error bodies
    quote it) and bound as structlog context for everything logged while the
    request is handled. Over-long incoming ids are replaced.
    """

    order = HIGHEST_PRECEDENCE + 100

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        incoming = request.headers.get(TRANSACTION_ID_HEADER, "")
        tx_id = incoming if 0 < len(incoming) <= MAX_TRANSACTION_ID_LENGTH else str(uuid.uuid4())
        request.state.transaction_id = tx_id

        with structlog.contextvars.bound_contextvars(transaction_id=tx_id):
            response = cast(Response, await call_next(request))
        response.headers[TRANSACTION_ID_HEADER] = tx_id
        return response
