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
"""CsrfFilter — double-submit cookie protection for Starlette apps.

For every request the :class:`~csrfguard.csrf.guard.Guard` decides whether
the ``csrfToken`` cookie and the request-supplied token (header, body field
or query parameter, depending on the method) must match:

* **Rejected**: the reason is logged and the client gets a bare HTTP 400.
  No token is attached.
* **Allowed**: the request goes downstream and the response gets a fresh
  token cookie according to the rotation policy.

.. _double-submit cookie:
   https://cheatsheetseries.owasp.org/cheatsheets/Cross-Site_Request_Forgery_Prevention_Cheat_Sheet.html#double-submit-cookie
"""

from __future__ import annotations

from typing import cast

import structlog
from starlette.requests import Request
from starlette.responses import Response

from csrfguard.csrf.attacher import ResponseTokenAttacher
from csrfguard.csrf.configuration import CsrfConfiguration
from csrfguard.csrf.guard import Guard
from csrfguard.csrf.verdict import Reject
from csrfguard.web.adapters.starlette.errors import csrf_error_response
from csrfguard.web.adapters.starlette.request import materialize
from csrfguard.web.filters import HIGHEST_PRECEDENCE, CallNext, OncePerRequestFilter

logger = structlog.get_logger("csrfguard.web")


class CsrfFilter(OncePerRequestFilter):
    """Double-submit cookie CSRF filter.

    Ordering: runs inside the transaction-id and request-logging filters so
    that rejections carry a transaction id and show up in request logs.
    """

    order = HIGHEST_PRECEDENCE + 300

    def __init__(self, configuration: CsrfConfiguration | None = None) -> None:
        self._guard = Guard(configuration)
        self._attacher = ResponseTokenAttacher(self._guard.configuration)

    @property
    def guard(self) -> Guard:
        return self._guard

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        read_body = self._guard.requires_body(request.method, request.url.path)
        snapshot, downstream = await materialize(request, read_body=read_body)

        verdict = self._guard.decide(snapshot)
        if isinstance(verdict, Reject):
            logger.warning(
                "csrf_rejected",
                reason=verdict.reason.value,
                detail=verdict.detail,
                method=snapshot.method,
                path=snapshot.path,
                transaction_id=getattr(request.state, "transaction_id", None),
            )
            return csrf_error_response(request)

        response = cast(Response, await call_next(downstream))

        cookie = self._attacher.cookie_for(snapshot)
        if cookie is not None:
            response.set_cookie(
                key=cookie.name,
                value=cookie.value,
                path=cookie.path,
                secure=cookie.secure,
                httponly=cookie.httponly,
                samesite=cookie.samesite,
            )
            logger.debug("csrf_token_rotated", cookie=cookie.name, path=snapshot.path)
        return response
